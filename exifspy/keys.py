"""Identifiers shared by the property-tree reader and the normalizer."""

from __future__ import annotations

EXIF_GROUP = "{Exif}"
TIFF_GROUP = "{TIFF}"
GPS_GROUP = "{GPS}"
IPTC_GROUP = "{IPTC}"
JFIF_GROUP = "{JFIF}"
PNG_GROUP = "{PNG}"

# Catalog order is the section order in results.
KNOWN_GROUPS: tuple[tuple[str, str], ...] = (
    (EXIF_GROUP, "EXIF Details"),
    (TIFF_GROUP, "TIFF Properties"),
    (GPS_GROUP, "GPS Data"),
    (IPTC_GROUP, "IPTC Information"),
    (JFIF_GROUP, "JFIF Properties"),
    (PNG_GROUP, "PNG Properties"),
)
KNOWN_GROUP_KEYS = frozenset(key for key, _ in KNOWN_GROUPS)

GENERAL_SECTION_TITLE = "General Image Info"

PIXEL_WIDTH = "PixelWidth"
PIXEL_HEIGHT = "PixelHeight"
DPI_WIDTH = "DPIWidth"
DPI_HEIGHT = "DPIHeight"
COLOR_MODEL = "ColorModel"
DEPTH = "Depth"
ORIENTATION = "Orientation"
PROFILE_NAME = "ProfileName"
HAS_ALPHA = "HasAlpha"
FILE_SIZE = "FileSize"
IMAGE_FORMAT = "ImageFormat"

TOP_LEVEL_DISPLAY_NAMES: dict[str, str] = {
    PIXEL_WIDTH: "Pixel Width",
    PIXEL_HEIGHT: "Pixel Height",
    DPI_WIDTH: "DPI Width",
    DPI_HEIGHT: "DPI Height",
    COLOR_MODEL: "Color Model",
    DEPTH: "Depth",
    ORIENTATION: "Orientation",
    PROFILE_NAME: "Color Profile",
}

GPS_VERSION = "GPSVersion"
GPS_LATITUDE = "Latitude"
GPS_LATITUDE_REF = "LatitudeRef"
GPS_LONGITUDE = "Longitude"
GPS_LONGITUDE_REF = "LongitudeRef"
EXIF_VERSION = "ExifVersion"
FLASHPIX_VERSION = "FlashPixVersion"
LENS_SPECIFICATION = "LensSpecification"
