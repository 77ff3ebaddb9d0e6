"""Plain-text renderings used for copying metadata to a clipboard."""

from __future__ import annotations

from collections.abc import Iterable

from .models import GPSCoordinates, MetadataEntry, MetadataResult, MetadataSection


def entry_value_text(entry: MetadataEntry) -> str:
    return entry.value


def entry_field_text(entry: MetadataEntry) -> str:
    return f"{entry.key}: {entry.value}"


def section_text(section: MetadataSection) -> str:
    lines = [f"[{section.title}]\n"]
    lines.extend(f"{entry_field_text(entry)}\n" for entry in section.entries)
    return "".join(lines)


def all_sections_text(sections: Iterable[MetadataSection]) -> str:
    return "\n".join(section_text(section) for section in sections)


def coordinates_text(coordinates: GPSCoordinates) -> str:
    return "\n".join(
        [
            f"Decimal: {coordinates.decimal_string}",
            f"DMS: {coordinates.dms_string}",
            f"DDM: {coordinates.ddm_string}",
            f"Apple Maps: {coordinates.apple_maps_url}",
            f"Google Maps: {coordinates.google_maps_url}",
        ]
    )


def result_text(result: MetadataResult) -> str:
    """Full report: file summary, optional error and GPS block, then sections."""

    stats = result.file_stats
    header = [
        f"File: {stats.name}",
        f"Path: {stats.path}",
        f"Size: {stats.formatted_size}",
        f"Type: {stats.mime_type_label}",
    ]
    dimensions = stats.dimensions_display
    if dimensions:
        header.append(f"Dimensions: {dimensions}")
    blocks = ["\n".join(header)]
    if result.error_message:
        blocks.append(f"Error: {result.error_message}")
    if result.gps_coordinates is not None:
        blocks.append(coordinates_text(result.gps_coordinates))
    if result.sections:
        blocks.append(all_sections_text(result.sections).rstrip("\n"))
    return "\n\n".join(blocks) + "\n"


__all__ = [
    "all_sections_text",
    "coordinates_text",
    "entry_field_text",
    "entry_value_text",
    "result_text",
    "section_text",
]
