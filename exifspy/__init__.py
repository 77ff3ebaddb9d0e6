"""Normalized, human-readable image metadata."""

from .formatter import format_number, format_value
from .models import FileStats, GPSCoordinates, MetadataEntry, MetadataResult, MetadataSection
from .normalizer import extract, normalize_properties
from .reader import (
    ExifSpyError,
    PillowReader,
    PropertiesUnavailableError,
    SourceUnreadableError,
)

__version__ = "2.1.2"

__all__ = [
    "ExifSpyError",
    "FileStats",
    "GPSCoordinates",
    "MetadataEntry",
    "MetadataResult",
    "MetadataSection",
    "PillowReader",
    "PropertiesUnavailableError",
    "SourceUnreadableError",
    "extract",
    "format_number",
    "format_value",
    "normalize_properties",
]
