from __future__ import annotations

import io
import os
import sys
from pathlib import Path

import piexif
import pytest
from PIL import Image

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from exifspy.normalizer import SOURCE_UNREADABLE_MESSAGE, extract
from exifspy.reader import PillowReader, SourceUnreadableError
from tests.fixtures.sample_images import (
    create_plain_jpeg,
    create_sample_jpeg,
    create_sample_png,
    sample_exif_dict,
)


def test_reads_top_level_properties(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg", dpi=(300, 300))
    properties = PillowReader().read_properties(path)

    assert properties["PixelWidth"] == 640
    assert properties["PixelHeight"] == 480
    assert properties["DPIWidth"] == pytest.approx(300.0)
    assert properties["ColorModel"] == "RGB"
    assert properties["Depth"] == 8
    assert properties["HasAlpha"] is False
    assert properties["ImageFormat"] == "JPEG"
    assert properties["Orientation"] == 1
    assert properties["FileSize"] == path.stat().st_size


def test_reads_exif_groups_with_piexif(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    properties = PillowReader().read_properties(path)

    assert properties["{TIFF}"]["Make"] == "UnitTest"
    assert properties["{TIFF}"]["Model"] == "Cam 1"
    assert "ExifTag" not in properties["{TIFF}"]
    assert "GPSTag" not in properties["{TIFF}"]
    assert properties["{Exif}"]["DateTimeOriginal"] == "2023:12:24 15:30:45"
    assert properties["{Exif}"]["ExifVersion"] == b"0231"
    assert properties["{Exif}"]["FNumber"] == pytest.approx(2.8)

    gps = properties["{GPS}"]
    assert gps["GPSVersion"] == [2, 3, 0, 0]
    assert gps["Latitude"] == pytest.approx(55.5)
    assert gps["Longitude"] == pytest.approx(37.6)
    assert gps["LatitudeRef"] == "N"


def test_reads_jfif_group(tmp_path):
    path = create_plain_jpeg(tmp_path / "plain.jpg")
    properties = PillowReader().read_properties(path)

    jfif = properties["{JFIF}"]
    assert jfif["JFIFVersion"] == "1.01"
    assert jfif["IsProgressive"] is False
    assert "DensityUnit" in jfif


def test_falls_back_to_pillow_exif(tmp_path, monkeypatch):
    path = create_sample_jpeg(tmp_path / "sample.jpg")

    def fail_load(*args, **kwargs):
        raise ValueError("corrupt exif")

    monkeypatch.setattr("exifspy.reader.piexif.load", fail_load)
    properties = PillowReader().read_properties(path)

    assert properties["{TIFF}"]["Make"] == "UnitTest"
    assert properties["{Exif}"]["DateTimeOriginal"] == "2023:12:24 15:30:45"
    assert properties["{GPS}"]["Latitude"] == pytest.approx(55.5)
    assert properties["{GPS}"]["GPSVersion"] == [2, 3, 0, 0]


class _FakeField:
    def __init__(self, values, field_type=2):
        self.values = values
        self.field_type = field_type


class _FakeRatio:
    def __init__(self, num: int, den: int):
        self.numerator = num
        self.denominator = den


def test_falls_back_to_exifread(tmp_path, monkeypatch):
    path = create_plain_jpeg(tmp_path / "plain.jpg")

    def fake_process_file(handle, details=False):
        return {
            "Image Make": _FakeField("ReadCam"),
            "EXIF ComponentsConfiguration": _FakeField([1, 2, 3, 0], field_type=7),
            "GPS GPSLatitudeRef": _FakeField("S"),
            "GPS GPSLatitude": _FakeField(
                [_FakeRatio(13, 1), _FakeRatio(15, 1), _FakeRatio(0, 1)], field_type=5
            ),
            "Thumbnail JPEGInterchangeFormat": _FakeField([1234], field_type=4),
        }

    monkeypatch.setattr("exifspy.reader.exifread.process_file", fake_process_file)
    properties = PillowReader().read_properties(path)

    assert properties["{TIFF}"]["Make"] == "ReadCam"
    assert properties["{Exif}"]["ComponentsConfiguration"] == b"\x01\x02\x03\x00"
    assert properties["{GPS}"]["LatitudeRef"] == "S"
    assert properties["{GPS}"]["Latitude"] == pytest.approx(13.25)


def test_reads_png_text_chunks(tmp_path):
    path = create_sample_png(tmp_path / "sample.png")
    properties = PillowReader().read_properties(path)

    assert properties["ImageFormat"] == "PNG"
    assert properties["HasAlpha"] is True
    assert properties["{PNG}"]["Description"] == "Harbour at dawn"
    assert "{JFIF}" not in properties


def test_reads_iptc_datasets(tmp_path, monkeypatch):
    path = create_plain_jpeg(tmp_path / "plain.jpg")

    def fake_getiptcinfo(image):
        return {
            (1, 90): b"\x1b%G",
            (2, 0): b"\x00\x04",
            (2, 5): b"Morning",
            (2, 25): [b"cat", b"sea"],
            (2, 120): b"Boats at rest",
        }

    monkeypatch.setattr("exifspy.reader.IptcImagePlugin.getiptcinfo", fake_getiptcinfo)
    properties = PillowReader().read_properties(path)

    assert properties["{IPTC}"] == {
        "ObjectName": "Morning",
        "Keywords": ["cat", "sea"],
        "Caption/Abstract": "Boats at rest",
    }


def test_unreadable_file_raises(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image at all")
    with pytest.raises(SourceUnreadableError):
        PillowReader().read_properties(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(SourceUnreadableError):
        PillowReader().read_properties(tmp_path / "missing.jpg")


def test_generated_preview_respects_max_side(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    preview = PillowReader().read_preview(path, max_side=64)

    assert preview is not None
    with Image.open(io.BytesIO(preview)) as image:
        assert image.format == "JPEG"
        assert max(image.size) <= 64


def test_extract_end_to_end(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    result = extract(path, preview_max_side=32)

    assert result.error_message is None
    titles = [section.title for section in result.sections]
    assert titles[:4] == ["General Image Info", "EXIF Details", "TIFF Properties", "GPS Data"]

    exif = {entry.key: entry.value for entry in result.section("EXIF Details").entries}
    assert exif["ExifVersion"] == "2.31"
    assert exif["LensSpecification"] == "24-70mm f/2.8"
    gps = {entry.key: entry.value for entry in result.section("GPS Data").entries}
    assert gps["GPSVersion"] == "2.3.0.0"

    assert result.gps_coordinates is not None
    assert result.gps_coordinates.latitude == pytest.approx(55.5)
    assert result.gps_coordinates.longitude == pytest.approx(37.6)
    assert result.file_stats.dimensions_display == "640 x 480 pixels (4:3), 307K pixels"
    assert result.preview is not None
    assert result.preview.startswith(b"\xff\xd8")


def test_extract_southern_western_hemisphere(tmp_path):
    exif_dict = sample_exif_dict()
    exif_dict["GPS"][piexif.GPSIFD.GPSLatitudeRef] = "S"
    exif_dict["GPS"][piexif.GPSIFD.GPSLongitudeRef] = "W"
    path = create_sample_jpeg(tmp_path / "south.jpg", exif_dict=exif_dict)

    result = extract(path)
    assert result.gps_coordinates is not None
    assert result.gps_coordinates.latitude == pytest.approx(-55.5)
    assert result.gps_coordinates.longitude == pytest.approx(-37.6)


def test_extract_unreadable_file(tmp_path):
    path = tmp_path / "notes.jpg"
    path.write_bytes(b"plain text")
    result = extract(path)

    assert result.error_message == SOURCE_UNREADABLE_MESSAGE
    assert result.sections == ()
    assert result.preview is None
    assert result.file_stats.formatted_size == "10 bytes"


def test_extract_without_gps(tmp_path):
    path: Path = create_plain_jpeg(tmp_path / "plain.jpg")
    result = extract(path)

    assert result.error_message is None
    assert result.gps_coordinates is None
    assert result.section("GPS Data") is None
    assert result.section("General Image Info") is not None
