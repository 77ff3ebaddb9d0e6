"""File attribute helpers: byte-count formatting and type labels."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Optional

from .models import FileStats

UNKNOWN_SIZE = "N/A"
UNKNOWN_TYPE = "Unknown"

TYPE_LABELS: dict[str, str] = {
    "jpg": "JPEG image",
    "jpeg": "JPEG image",
    "jpe": "JPEG image",
    "png": "PNG image",
    "gif": "Graphics Interchange Format (GIF)",
    "tif": "TIFF image",
    "tiff": "TIFF image",
    "heic": "HEIF image",
    "heif": "HEIF image",
    "webp": "WebP image",
    "bmp": "Windows bitmap image",
    "ico": "Windows icon image",
    "jp2": "JPEG 2000 image",
    "dng": "Digital Negative (DNG) image",
    "cr2": "Canon CR2 raw image",
    "nef": "Nikon NEF raw image",
    "arw": "Sony ARW raw image",
    "psd": "Adobe Photoshop document",
    "mov": "QuickTime movie",
    "mp4": "MPEG-4 movie",
    "m4v": "MPEG-4 video",
    "avi": "AVI movie",
}

_UNITS = ((1e12, "TB", 2), (1e9, "GB", 2), (1e6, "MB", 1), (1e3, "KB", 0))


def _trim_fraction(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_byte_count(size: int) -> str:
    """Decimal-unit file size in the style of a desktop file browser."""

    if size == 0:
        return "Zero KB"
    if size == 1:
        return "1 byte"
    for threshold, unit, decimals in _UNITS:
        if size >= threshold:
            return f"{_trim_fraction(f'{size / threshold:.{decimals}f}')} {unit}"
    return f"{size} bytes"


def type_label(path: Path) -> str:
    extension = path.suffix.lower().lstrip(".")
    if not extension:
        return UNKNOWN_TYPE
    label = TYPE_LABELS.get(extension)
    if label:
        return label
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or UNKNOWN_TYPE


def build_file_stats(
    path: Path,
    *,
    pixel_width: Optional[int] = None,
    pixel_height: Optional[int] = None,
) -> tuple[FileStats, Optional[str]]:
    """Return stats for ``path`` and a diagnostic when attributes are unreadable."""

    try:
        size = path.stat().st_size
    except (OSError, ValueError) as exc:
        stats = FileStats(
            name=path.name,
            path=str(path),
            formatted_size=UNKNOWN_SIZE,
            mime_type_label=UNKNOWN_TYPE,
            pixel_width=pixel_width,
            pixel_height=pixel_height,
        )
        reason = getattr(exc, "strerror", None) or str(exc)
        return stats, f"Could not read file attributes: {reason}"
    stats = FileStats(
        name=path.name,
        path=str(path),
        formatted_size=format_byte_count(size),
        mime_type_label=type_label(path),
        pixel_width=pixel_width,
        pixel_height=pixel_height,
    )
    return stats, None


__all__ = ["TYPE_LABELS", "build_file_stats", "format_byte_count", "type_label"]
