from __future__ import annotations

import io
import logging
import numbers
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import exifread
import piexif
from PIL import ExifTags, Image, ImageOps, IptcImagePlugin

try:  # pragma: no cover - optional dependency
    from PIL import ImageCms  # type: ignore
except Exception:  # pragma: no cover - fallback when LittleCMS is unavailable
    ImageCms = None  # type: ignore[assignment]

from .keys import (
    COLOR_MODEL,
    DEPTH,
    DPI_HEIGHT,
    DPI_WIDTH,
    EXIF_GROUP,
    FILE_SIZE,
    GPS_GROUP,
    GPS_LATITUDE,
    GPS_LONGITUDE,
    GPS_VERSION,
    HAS_ALPHA,
    IMAGE_FORMAT,
    IPTC_GROUP,
    JFIF_GROUP,
    ORIENTATION,
    PIXEL_HEIGHT,
    PIXEL_WIDTH,
    PNG_GROUP,
    PROFILE_NAME,
    TIFF_GROUP,
)

_HEIF_REGISTERED = False
_HEIF_IMPORT_FAILED = False

_EXIF_IFD_POINTER = 0x8769
_GPS_IFD_POINTER = 0x8825
_INTEROP_IFD_POINTER = 0xA005
_POINTER_TAGS = frozenset({_EXIF_IFD_POINTER, _GPS_IFD_POINTER, _INTEROP_IFD_POINTER})

_RATIONAL_TYPES = frozenset({piexif.TYPES.Rational, piexif.TYPES.SRational})
_EXIFREAD_UNDEFINED = 7

_COLOR_MODELS = {
    "1": "Gray",
    "L": "Gray",
    "LA": "Gray",
    "La": "Gray",
    "I": "Gray",
    "I;16": "Gray",
    "I;16B": "Gray",
    "I;16L": "Gray",
    "F": "Gray",
    "P": "RGB",
    "PA": "RGB",
    "RGB": "RGB",
    "RGBA": "RGB",
    "RGBa": "RGB",
    "RGBX": "RGB",
    "YCbCr": "RGB",
    "HSV": "RGB",
    "CMYK": "CMYK",
    "LAB": "Lab",
}
_MODE_DEPTHS = {"1": 1, "I": 32, "F": 32, "I;16": 16, "I;16B": 16, "I;16L": 16}
_ALPHA_MODES = frozenset({"RGBA", "RGBa", "LA", "La", "PA"})

_IPTC_DATASETS: dict[int, str] = {
    3: "ObjectTypeReference",
    4: "ObjectAttributeReference",
    5: "ObjectName",
    7: "EditStatus",
    10: "Urgency",
    12: "SubjectReference",
    15: "Category",
    20: "SupplementalCategory",
    22: "FixtureIdentifier",
    25: "Keywords",
    26: "ContentLocationCode",
    27: "ContentLocationName",
    30: "ReleaseDate",
    35: "ReleaseTime",
    37: "ExpirationDate",
    38: "ExpirationTime",
    40: "SpecialInstructions",
    42: "ActionAdvised",
    45: "ReferenceService",
    47: "ReferenceDate",
    50: "ReferenceNumber",
    55: "DateCreated",
    60: "TimeCreated",
    62: "DigitalCreationDate",
    63: "DigitalCreationTime",
    65: "OriginatingProgram",
    70: "ProgramVersion",
    75: "ObjectCycle",
    80: "Byline",
    85: "BylineTitle",
    90: "City",
    92: "SubLocation",
    95: "Province/State",
    100: "Country/PrimaryLocationCode",
    101: "Country/PrimaryLocationName",
    103: "OriginalTransmissionReference",
    105: "Headline",
    110: "Credit",
    115: "Source",
    116: "CopyrightNotice",
    118: "Contact",
    120: "Caption/Abstract",
    122: "Writer/Editor",
    130: "ImageType",
    131: "ImageOrientation",
    135: "LanguageIdentifier",
}
# Datasets that may legitimately repeat and are always reported as lists.
_IPTC_REPEATABLE = frozenset({12, 20, 25, 26, 27, 80, 85, 118, 122})


class ExifSpyError(RuntimeError):
    """Base class for metadata reading failures."""


class SourceUnreadableError(ExifSpyError):
    """The file could not be opened or decoded as an image."""


class PropertiesUnavailableError(ExifSpyError):
    """The image opened but no property tree could be assembled."""


class PropertyReader(Protocol):
    def read_properties(self, path: Path) -> dict[str, Any]: ...

    def read_preview(self, path: Path, *, max_side: int) -> bytes | None: ...


class PillowReader:
    """Reads property trees with Pillow, piexif and exifread."""

    def read_properties(self, path: Path) -> dict[str, Any]:
        source = Path(path)
        format_hint = _detect_image_format(source)
        if format_hint == "HEIC":
            _ensure_heif_registered()
        image = _open_image(source)
        with image:
            try:
                return _build_property_tree(image, source, format_hint)
            except Exception as exc:
                logging.exception("Failed to assemble property tree")
                raise PropertiesUnavailableError(str(exc)) from exc

    def read_preview(self, path: Path, *, max_side: int) -> bytes | None:
        source = Path(path)
        if _detect_image_format(source) == "HEIC":
            _ensure_heif_registered()
        image = _open_image(source)
        with image:
            thumbnail = _embedded_thumbnail(image)
            if thumbnail:
                return thumbnail
            return _render_thumbnail(image, max_side)


def _open_image(path: Path) -> Image.Image:
    try:
        return Image.open(path)
    except Exception as exc:
        raise SourceUnreadableError(f"{type(exc).__name__}: {exc}") from exc


def _detect_image_format(path: Path) -> str | None:
    try:
        with path.open("rb") as handle:
            data = handle.read(12)
    except (OSError, ValueError):
        return None
    if data[:3] == b"\xff\xd8\xff":
        return "JPEG"
    if len(data) >= 4 and data[:4] in {b"II*\x00", b"MM\x00*"}:
        return "TIFF"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WEBP"
    if len(data) >= 12 and data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in {b"heic", b"heix", b"hevc", b"hevx", b"mif1", b"msf1"}:
            return "HEIC"
    return None


def _ensure_heif_registered() -> None:
    global _HEIF_REGISTERED, _HEIF_IMPORT_FAILED
    if _HEIF_REGISTERED or _HEIF_IMPORT_FAILED:
        return
    try:
        from pillow_heif import register_heif_opener  # type: ignore

        register_heif_opener()
        _HEIF_REGISTERED = True
    except Exception:
        logging.debug("Unable to register pillow_heif", exc_info=True)
        _HEIF_IMPORT_FAILED = True


def _build_property_tree(image: Image.Image, path: Path, format_hint: str | None) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    width, height = image.size
    tree[PIXEL_WIDTH] = int(width)
    tree[PIXEL_HEIGHT] = int(height)

    dpi = image.info.get("dpi")
    if isinstance(dpi, Sequence) and len(dpi) == 2:
        tree[DPI_WIDTH] = float(dpi[0])
        tree[DPI_HEIGHT] = float(dpi[1])

    color_model = _COLOR_MODELS.get(image.mode)
    if color_model:
        tree[COLOR_MODEL] = color_model
    tree[DEPTH] = _MODE_DEPTHS.get(image.mode, 8)
    tree[HAS_ALPHA] = image.mode in _ALPHA_MODES or "transparency" in image.info
    if image.format:
        tree[IMAGE_FORMAT] = image.format
    try:
        tree[FILE_SIZE] = path.stat().st_size
    except OSError:
        logging.debug("Unable to stat %s", path, exc_info=True)

    profile_name = _profile_name(image.info.get("icc_profile"))
    if profile_name:
        tree[PROFILE_NAME] = profile_name

    exif_groups = _read_exif_groups(image, path, format_hint)
    orientation = exif_groups.get(TIFF_GROUP, {}).get("Orientation")
    if isinstance(orientation, int) and not isinstance(orientation, bool):
        tree[ORIENTATION] = orientation

    groups = dict(exif_groups)
    groups[IPTC_GROUP] = _read_iptc(image)
    groups[JFIF_GROUP] = _read_jfif(image)
    groups[PNG_GROUP] = _read_png(image)
    for group_key, values in groups.items():
        if values:
            tree[group_key] = values
    return tree


def _profile_name(icc_profile: Any) -> str | None:
    if not icc_profile or ImageCms is None:
        return None
    try:
        profile = ImageCms.ImageCmsProfile(io.BytesIO(icc_profile))
        description = ImageCms.getProfileDescription(profile)
    except Exception:
        logging.debug("Unable to read ICC profile description", exc_info=True)
        return None
    return description.strip() or None


def _read_exif_groups(
    image: Image.Image, path: Path, format_hint: str | None
) -> dict[str, dict[str, Any]]:
    exif_dict: dict[str, Any] | None = None
    exif_bytes = image.info.get("exif")
    if exif_bytes:
        try:
            exif_dict = piexif.load(exif_bytes)
        except Exception:
            logging.debug("piexif failed on embedded bytes", exc_info=True)
            exif_dict = None

    if exif_dict is None and format_hint in {"JPEG", "TIFF", "WEBP"}:
        try:
            exif_dict = piexif.load(os.fspath(path))
        except Exception:
            logging.debug("piexif failed on full image", exc_info=True)
            exif_dict = None

    if exif_dict:
        groups = _groups_from_piexif(exif_dict)
        if any(groups.values()):
            return groups

    try:
        groups = _groups_from_pillow(image.getexif())
    except Exception:
        logging.debug("pillow getexif failed", exc_info=True)
        groups = {}
    if any(groups.values()):
        return groups

    try:
        groups = _groups_from_exifread(path)
    except Exception:
        logging.debug("exifread failed", exc_info=True)
        groups = {}
    return groups


def _groups_from_piexif(exif_dict: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    return {
        TIFF_GROUP: _named_piexif_ifd("0th", exif_dict.get("0th")),
        EXIF_GROUP: _named_piexif_ifd("Exif", exif_dict.get("Exif")),
        GPS_GROUP: _gps_group(_named_piexif_ifd("GPS", exif_dict.get("GPS"))),
    }


def _named_piexif_ifd(ifd_name: str, source_ifd: Any) -> dict[str, Any]:
    if not isinstance(source_ifd, Mapping):
        return {}
    tag_map = piexif.TAGS.get(ifd_name, {})
    fallback_names = ExifTags.GPSTAGS if ifd_name == "GPS" else ExifTags.TAGS
    result: dict[str, Any] = {}
    for tag_id, raw_value in source_ifd.items():
        if ifd_name != "GPS" and tag_id in _POINTER_TAGS:
            continue
        tag_info = tag_map.get(tag_id) or {}
        tag_name = tag_info.get("name") or fallback_names.get(tag_id, str(tag_id))
        result[tag_name] = _coerce_exif_value(raw_value, tag_info.get("type"))
    return result


def _groups_from_pillow(exif: Any) -> dict[str, dict[str, Any]]:
    if not exif:
        return {}
    tiff: dict[str, Any] = {}
    for tag_id, raw_value in exif.items():
        if tag_id in _POINTER_TAGS:
            continue
        tiff[ExifTags.TAGS.get(tag_id, str(tag_id))] = _coerce_exif_value(raw_value)
    exif_ifd = {
        ExifTags.TAGS.get(tag_id, str(tag_id)): _coerce_exif_value(raw_value)
        for tag_id, raw_value in exif.get_ifd(_EXIF_IFD_POINTER).items()
        if tag_id not in _POINTER_TAGS
    }
    gps_ifd = {
        ExifTags.GPSTAGS.get(tag_id, str(tag_id)): _coerce_exif_value(raw_value)
        for tag_id, raw_value in exif.get_ifd(_GPS_IFD_POINTER).items()
    }
    return {TIFF_GROUP: tiff, EXIF_GROUP: exif_ifd, GPS_GROUP: _gps_group(gps_ifd)}


def _exifread_field_type(field: Any) -> int | None:
    field_type = getattr(field, "field_type", None)
    value = getattr(field_type, "value", field_type)
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _groups_from_exifread(path: Path) -> dict[str, dict[str, Any]]:
    with path.open("rb") as handle:
        tags = exifread.process_file(handle, details=False)

    groups: dict[str, dict[str, Any]] = {TIFF_GROUP: {}, EXIF_GROUP: {}, GPS_GROUP: {}}
    prefixes = (("Image ", TIFF_GROUP), ("EXIF ", EXIF_GROUP), ("GPS ", GPS_GROUP))
    for tag_name, field in tags.items():
        for prefix, group_key in prefixes:
            if tag_name.startswith(prefix):
                break
        else:
            continue
        values = getattr(field, "values", field)
        if _exifread_field_type(field) == _EXIFREAD_UNDEFINED and isinstance(values, list):
            try:
                value: Any = bytes(values)
            except (TypeError, ValueError):
                value = _coerce_exif_value(values)
        else:
            value = _coerce_exif_value(values)
        if isinstance(value, list) and len(value) == 1:
            value = value[0]
        groups[group_key][tag_name[len(prefix):]] = value

    groups[GPS_GROUP] = _gps_group(groups[GPS_GROUP])
    return groups


def _ratio(numerator: int, denominator: int) -> float | str:
    if denominator == 0:
        return f"{numerator}/{denominator}"
    return numerator / denominator


def _is_rational_pair(value: Any) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 2
        and all(isinstance(part, int) for part in value)
    )


def _decode_text(value: bytes) -> str:
    for encoding in ("utf-8", "latin-1"):
        try:
            return value.decode(encoding).strip("\x00").strip()
        except UnicodeDecodeError:
            continue
    return value.decode("ascii", errors="replace").strip("\x00").strip()


def _coerce_exif_value(value: Any, tag_type: int | None = None) -> Any:
    if isinstance(value, (bytes, bytearray)):
        if tag_type == piexif.TYPES.Ascii:
            return _decode_text(bytes(value))
        return bytes(value)
    if isinstance(value, str):
        return value.strip("\x00").strip()
    if isinstance(value, (bool, int, float)):
        return value
    if tag_type in _RATIONAL_TYPES:
        if _is_rational_pair(value):
            return _ratio(*value)
        if isinstance(value, Sequence) and all(_is_rational_pair(item) for item in value):
            return [_ratio(*item) for item in value]
    numerator = getattr(value, "numerator", None)
    denominator = getattr(value, "denominator", None)
    if isinstance(numerator, int) and isinstance(denominator, int):
        return _ratio(numerator, denominator)
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, Mapping):
        return {str(k): _coerce_exif_value(v) for k, v in value.items()}
    if isinstance(value, Sequence):
        return [_coerce_exif_value(item, tag_type) for item in value]
    return value


def _dms_to_degrees(value: Any) -> float | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, list) or not value:
        return None
    parts: list[float] = []
    for part in value:
        if not isinstance(part, (int, float)) or isinstance(part, bool):
            return None
        parts.append(float(part))
    while len(parts) < 3:
        parts.append(0.0)
    return parts[0] + parts[1] / 60.0 + parts[2] / 3600.0


def _format_gps_time(value: Any) -> Any:
    if not isinstance(value, list) or len(value) != 3:
        return value
    if not all(isinstance(part, (int, float)) for part in value):
        return value
    hours, minutes, seconds = value
    return f"{int(hours):02d}:{int(minutes):02d}:{float(seconds):05.2f}"


def _gps_group(named: Mapping[str, Any]) -> dict[str, Any]:
    """Rename GPS tags to group field names and decode coordinates to degrees."""

    group: dict[str, Any] = {}
    for name, value in named.items():
        if name == "GPSVersionID":
            key = GPS_VERSION
        elif name.startswith("GPS"):
            key = name[3:]
        else:
            key = name
        if key in {GPS_LATITUDE, GPS_LONGITUDE, "DestLatitude", "DestLongitude"}:
            degrees = _dms_to_degrees(value)
            value = degrees if degrees is not None else value
        elif key == "TimeStamp":
            value = _format_gps_time(value)
        if key == GPS_VERSION and isinstance(value, bytes):
            value = list(value)
        group[key] = value
    return group


def _read_iptc(image: Image.Image) -> dict[str, Any]:
    try:
        info = IptcImagePlugin.getiptcinfo(image)
    except Exception:
        logging.debug("Unable to read IPTC data", exc_info=True)
        return {}
    if not info:
        return {}
    group: dict[str, Any] = {}
    for (record, dataset), raw_value in sorted(info.items()):
        if record != 2 or dataset == 0:
            continue
        name = _IPTC_DATASETS.get(dataset, f"Dataset{dataset}")
        if isinstance(raw_value, list):
            values = [_decode_text(item) for item in raw_value if isinstance(item, bytes)]
        elif isinstance(raw_value, bytes):
            values = [_decode_text(raw_value)]
        else:
            continue
        if dataset in _IPTC_REPEATABLE or len(values) > 1:
            group[name] = values
        elif values:
            group[name] = values[0]
    return group


def _read_jfif(image: Image.Image) -> dict[str, Any]:
    info = image.info
    if image.format != "JPEG" or "jfif" not in info:
        return {}
    group: dict[str, Any] = {}
    version = info.get("jfif_version")
    if isinstance(version, tuple) and len(version) == 2:
        group["JFIFVersion"] = f"{version[0]}.{version[1]:02d}"
    if "jfif_unit" in info:
        group["DensityUnit"] = int(info["jfif_unit"])
    density = info.get("jfif_density")
    if isinstance(density, tuple) and len(density) == 2:
        group["XDensity"] = int(density[0])
        group["YDensity"] = int(density[1])
    group["IsProgressive"] = bool(info.get("progressive") or info.get("progression"))
    return group


def _read_png(image: Image.Image) -> dict[str, Any]:
    if image.format != "PNG":
        return {}
    info = image.info
    group: dict[str, Any] = {}
    if "gamma" in info:
        group["Gamma"] = float(info["gamma"])
    if "interlace" in info:
        group["InterlaceType"] = int(info["interlace"])
    if "srgb" in info:
        group["sRGBIntent"] = int(info["srgb"])
    if "chromaticity" in info:
        group["Chromaticities"] = [float(value) for value in info["chromaticity"]]
    text_chunks = getattr(image, "text", None) or {}
    for keyword, value in text_chunks.items():
        group.setdefault(str(keyword), str(value))
    return group


def _embedded_thumbnail(image: Image.Image) -> bytes | None:
    exif_bytes = image.info.get("exif")
    if not exif_bytes:
        return None
    try:
        thumbnail = piexif.load(exif_bytes).get("thumbnail")
    except Exception:
        logging.debug("piexif failed while looking for a thumbnail", exc_info=True)
        return None
    return thumbnail or None


def _render_thumbnail(image: Image.Image, max_side: int) -> bytes:
    transposed = ImageOps.exif_transpose(image)
    converted = transposed if transposed.mode == "RGB" else transposed.convert("RGB")
    converted.thumbnail((max_side, max_side))
    buffer = io.BytesIO()
    converted.save(buffer, format="JPEG", quality=85)
    return buffer.getvalue()


__all__ = [
    "ExifSpyError",
    "PillowReader",
    "PropertiesUnavailableError",
    "PropertyReader",
    "SourceUnreadableError",
]
