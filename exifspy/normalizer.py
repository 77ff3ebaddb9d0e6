"""Turn a raw metadata property tree into titled, sorted sections."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from observability import context

from .config import DEFAULT_PREVIEW_MAX_SIDE
from .filestats import build_file_stats
from .formatter import format_value
from .keys import (
    GENERAL_SECTION_TITLE,
    GPS_GROUP,
    GPS_LATITUDE,
    GPS_LATITUDE_REF,
    GPS_LONGITUDE,
    GPS_LONGITUDE_REF,
    KNOWN_GROUP_KEYS,
    KNOWN_GROUPS,
    PIXEL_HEIGHT,
    PIXEL_WIDTH,
    TOP_LEVEL_DISPLAY_NAMES,
)
from .models import GPSCoordinates, MetadataEntry, MetadataResult, MetadataSection
from .properties import is_number
from .reader import (
    PillowReader,
    PropertiesUnavailableError,
    PropertyReader,
    SourceUnreadableError,
)

logger = logging.getLogger(__name__)

SOURCE_UNREADABLE_MESSAGE = "Could not create image source."
PROPERTIES_UNAVAILABLE_MESSAGE = "Could not get image properties."


def _as_dimension(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def extract_gps_coordinates(properties: Mapping[str, Any]) -> Optional[GPSCoordinates]:
    """Signed coordinates from the GPS group, or ``None`` when incomplete."""

    gps = properties.get(GPS_GROUP)
    if not isinstance(gps, Mapping):
        return None
    latitude = gps.get(GPS_LATITUDE)
    latitude_ref = gps.get(GPS_LATITUDE_REF)
    longitude = gps.get(GPS_LONGITUDE)
    longitude_ref = gps.get(GPS_LONGITUDE_REF)
    if not (is_number(latitude) and is_number(longitude)):
        return None
    if not (isinstance(latitude_ref, str) and isinstance(longitude_ref, str)):
        return None
    signed_latitude = -float(latitude) if latitude_ref == "S" else float(latitude)
    signed_longitude = -float(longitude) if longitude_ref == "W" else float(longitude)
    return GPSCoordinates(latitude=signed_latitude, longitude=signed_longitude)


def build_general_section(
    properties: Mapping[str, Any], *, debug: bool = False
) -> Optional[MetadataSection]:
    entries: list[MetadataEntry] = []
    emitted: set[str] = set()

    for key, display_name in TOP_LEVEL_DISPLAY_NAMES.items():
        if key not in properties:
            continue
        entries.append(MetadataEntry.create(display_name, format_value(properties[key], None, key)))
        emitted.add(display_name)

    for key, value in properties.items():
        if key in KNOWN_GROUP_KEYS or key in TOP_LEVEL_DISPLAY_NAMES:
            continue
        if isinstance(value, Mapping):
            continue
        name = str(key)
        if name in emitted:
            continue
        if debug:
            logger.debug("Processing top-level key %s", name)
        entries.append(MetadataEntry.create(name, format_value(value, None, name)))
        emitted.add(name)

    if not entries:
        return None
    return MetadataSection.sorted_from(GENERAL_SECTION_TITLE, entries)


def build_group_sections(
    properties: Mapping[str, Any], *, debug: bool = False
) -> list[MetadataSection]:
    sections: list[MetadataSection] = []
    for group_key, title in KNOWN_GROUPS:
        group = properties.get(group_key)
        if not isinstance(group, Mapping) or not group:
            continue
        entries: list[MetadataEntry] = []
        with context(group=group_key):
            for entry_key, raw_value in group.items():
                name = str(entry_key)
                value = format_value(raw_value, group_key, name)
                if debug:
                    logger.debug("Processing key %s (Group: %s) -> %r", name, title, value)
                entries.append(MetadataEntry.create(name, value))
        if entries:
            sections.append(MetadataSection.sorted_from(title, entries))
    return sections


def normalize_properties(
    properties: Mapping[str, Any], *, debug: bool = False
) -> tuple[MetadataSection, ...]:
    """Sections in catalog order: general info first, then each known group."""

    sections: list[MetadataSection] = []
    general = build_general_section(properties, debug=debug)
    if general is not None:
        sections.append(general)
    sections.extend(build_group_sections(properties, debug=debug))
    return tuple(section for section in sections if section.entries)


def _read_preview(reader: PropertyReader, path: Path, max_side: int) -> Optional[bytes]:
    try:
        return reader.read_preview(path, max_side=max_side)
    except SourceUnreadableError as exc:
        logger.debug("Preview unavailable: %s", exc)
    except Exception:
        logger.debug("Preview rendering failed", exc_info=True)
    return None


def extract(
    path: str | os.PathLike[str],
    *,
    debug: bool = False,
    reader: Optional[PropertyReader] = None,
    preview_max_side: int = DEFAULT_PREVIEW_MAX_SIDE,
) -> MetadataResult:
    """Extract the normalized metadata of one file.

    Never raises: failures are described by ``error_message`` while
    ``file_stats`` carries whatever the filesystem could tell.
    """

    source = Path(path)
    active_reader: PropertyReader = reader if reader is not None else PillowReader()
    errors: list[str] = []

    with context(path=str(source), stage="read"):
        preview = _read_preview(active_reader, source, preview_max_side)
        properties: Optional[dict[str, Any]] = None
        try:
            properties = active_reader.read_properties(source)
        except SourceUnreadableError as exc:
            logger.warning("Source unreadable: %s", exc)
            errors.append(SOURCE_UNREADABLE_MESSAGE)
        except PropertiesUnavailableError as exc:
            logger.warning("Properties unavailable: %s", exc)
            errors.append(PROPERTIES_UNAVAILABLE_MESSAGE)
        except Exception:
            logger.exception("Unexpected failure while reading properties")
            errors.append(PROPERTIES_UNAVAILABLE_MESSAGE)

    if properties is None:
        stats, stats_error = build_file_stats(source)
        if stats_error:
            errors.append(stats_error)
        return MetadataResult(
            file_stats=stats,
            sections=(),
            error_message="\n".join(errors),
            gps_coordinates=None,
            preview=preview,
        )

    stats, stats_error = build_file_stats(
        source,
        pixel_width=_as_dimension(properties.get(PIXEL_WIDTH)),
        pixel_height=_as_dimension(properties.get(PIXEL_HEIGHT)),
    )
    if stats_error:
        logger.warning(stats_error)
        errors.append(stats_error)

    with context(path=str(source), stage="normalize"):
        sections = normalize_properties(properties, debug=debug)
        gps_coordinates = extract_gps_coordinates(properties)

    return MetadataResult(
        file_stats=stats,
        sections=sections,
        error_message="\n".join(errors) if errors else None,
        gps_coordinates=gps_coordinates,
        preview=preview,
    )


__all__ = [
    "PROPERTIES_UNAVAILABLE_MESSAGE",
    "SOURCE_UNREADABLE_MESSAGE",
    "build_general_section",
    "build_group_sections",
    "extract",
    "extract_gps_coordinates",
    "normalize_properties",
]
