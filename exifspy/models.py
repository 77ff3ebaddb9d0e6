"""Value types produced by one metadata extraction."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

# Checked in order; portrait variants follow the landscape ones.
STANDARD_RATIOS: tuple[tuple[str, int, int], ...] = (
    ("1:1", 1, 1),
    ("5:4", 5, 4),
    ("4:3", 4, 3),
    ("3:2", 3, 2),
    ("16:10", 16, 10),
    ("5:3", 5, 3),
    ("16:9", 16, 9),
    ("2:1", 2, 1),
    ("21:9", 21, 9),
    ("4:5", 4, 5),
    ("3:4", 3, 4),
    ("2:3", 2, 3),
    ("10:16", 10, 16),
    ("3:5", 3, 5),
    ("9:16", 9, 16),
    ("1:2", 1, 2),
    ("9:21", 9, 21),
)
RATIO_TOLERANCE = 0.01
MAX_REDUCED_TERM = 100


def _clean_value(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\r", "\n").strip()


@dataclass(frozen=True, slots=True)
class MetadataEntry:
    key: str
    value: str

    @classmethod
    def create(cls, key: str, value: str) -> "MetadataEntry":
        """Build an entry with the value trimmed and CR line breaks folded to LF."""

        return cls(key=key, value=_clean_value(value))

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.value


@dataclass(frozen=True, slots=True)
class MetadataSection:
    title: str
    entries: tuple[MetadataEntry, ...] = ()

    @classmethod
    def sorted_from(cls, title: str, entries: list[MetadataEntry]) -> "MetadataSection":
        return cls(title=title, entries=tuple(sorted(entries, key=lambda entry: entry.key)))


@dataclass(frozen=True, slots=True)
class FileStats:
    """File information plus the pixel dimensions reported by the decoder."""

    name: str
    path: str
    formatted_size: str
    mime_type_label: str
    pixel_width: Optional[int] = None
    pixel_height: Optional[int] = None

    @property
    def aspect_ratio(self) -> Optional[str]:
        """Closest standard ratio within 1%, else the GCD-reduced ratio."""

        width, height = self.pixel_width, self.pixel_height
        if width is None or height is None or width <= 0 or height <= 0:
            return None
        actual = width / height
        for name, std_w, std_h in STANDARD_RATIOS:
            standard = std_w / std_h
            if abs(actual - standard) / standard < RATIO_TOLERANCE:
                return name
        divisor = math.gcd(width, height)
        reduced_w = width // divisor
        reduced_h = height // divisor
        if reduced_w > MAX_REDUCED_TERM or reduced_h > MAX_REDUCED_TERM:
            return f"{actual:.2f}:1"
        return f"{reduced_w}:{reduced_h}"

    @property
    def total_pixels_display(self) -> Optional[str]:
        if self.pixel_width is None or self.pixel_height is None:
            return None
        total = float(self.pixel_width) * float(self.pixel_height)
        if total >= 1_000_000_000:
            return f"{total / 1_000_000_000:.1f}G pixels"
        if total >= 1_000_000:
            return f"{total / 1_000_000:.1f}M pixels"
        if total >= 1_000:
            return f"{total / 1_000:.0f}K pixels"
        return f"{int(total)} pixels"

    @property
    def dimensions_display(self) -> Optional[str]:
        if self.pixel_width is None or self.pixel_height is None:
            return None
        text = f"{self.pixel_width} x {self.pixel_height} pixels"
        ratio = self.aspect_ratio
        if ratio is not None:
            text += f" ({ratio})"
        return f"{text}, {self.total_pixels_display}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "size": self.formatted_size,
            "type": self.mime_type_label,
            "pixel_width": self.pixel_width,
            "pixel_height": self.pixel_height,
            "aspect_ratio": self.aspect_ratio,
            "dimensions": self.dimensions_display,
        }


def _split_degrees(value: float) -> tuple[int, float]:
    magnitude = abs(value)
    degrees = int(magnitude)
    return degrees, (magnitude - degrees) * 60.0


@dataclass(frozen=True, slots=True)
class GPSCoordinates:
    """Signed decimal coordinates: north and east are positive."""

    latitude: float
    longitude: float

    @property
    def apple_maps_url(self) -> str:
        lat, lon = self.latitude, self.longitude
        return f"https://maps.apple.com/?ll={lat},{lon}&q={lat},{lon}"

    @property
    def google_maps_url(self) -> str:
        return f"https://www.google.com/maps?q={self.latitude},{self.longitude}"

    @property
    def decimal_string(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"

    @property
    def dms_string(self) -> str:
        return f"{self._dms(self.latitude, 'N', 'S')}, {self._dms(self.longitude, 'E', 'W')}"

    @property
    def ddm_string(self) -> str:
        return f"{self._ddm(self.latitude, 'N', 'S')}, {self._ddm(self.longitude, 'E', 'W')}"

    @staticmethod
    def _dms(value: float, positive: str, negative: str) -> str:
        degrees, minutes_float = _split_degrees(value)
        minutes = int(minutes_float)
        seconds = round((minutes_float - minutes) * 60.0, 1)
        if seconds >= 60.0:
            seconds -= 60.0
            minutes += 1
        if minutes >= 60:
            minutes -= 60
            degrees += 1
        hemisphere = negative if value < 0 else positive
        return f"{degrees}°{minutes}′{seconds:.1f}″{hemisphere}"

    @staticmethod
    def _ddm(value: float, positive: str, negative: str) -> str:
        degrees, minutes = _split_degrees(value)
        minutes = round(minutes, 3)
        if minutes >= 60.0:
            minutes -= 60.0
            degrees += 1
        hemisphere = negative if value < 0 else positive
        return f"{degrees}°{minutes:.3f}′{hemisphere}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "decimal": self.decimal_string,
            "dms": self.dms_string,
            "ddm": self.ddm_string,
            "apple_maps_url": self.apple_maps_url,
            "google_maps_url": self.google_maps_url,
        }


@dataclass(frozen=True, slots=True)
class MetadataResult:
    file_stats: FileStats
    sections: tuple[MetadataSection, ...] = ()
    error_message: Optional[str] = None
    gps_coordinates: Optional[GPSCoordinates] = None
    preview: Optional[bytes] = field(default=None, repr=False)

    def section(self, title: str) -> Optional[MetadataSection]:
        for section in self.sections:
            if section.title == title:
                return section
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file_stats.to_dict(),
            "sections": [
                {
                    "title": section.title,
                    "entries": [
                        {"key": entry.key, "value": entry.value} for entry in section.entries
                    ],
                }
                for section in self.sections
            ],
            "error": self.error_message,
            "gps": self.gps_coordinates.to_dict() if self.gps_coordinates else None,
            "has_preview": self.preview is not None,
        }


__all__ = [
    "FileStats",
    "GPSCoordinates",
    "MetadataEntry",
    "MetadataResult",
    "MetadataSection",
    "STANDARD_RATIOS",
]
