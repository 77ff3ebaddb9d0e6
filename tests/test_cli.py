from __future__ import annotations

import io
import json
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import main
from exifspy.config import Settings
from tests.fixtures.sample_images import create_sample_jpeg


def test_run_prints_text_report(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    out = io.StringIO()

    exit_code = main.run([str(path)], settings=Settings(), out=out)

    text = out.getvalue()
    assert exit_code == 0
    assert text.startswith("File: sample.jpg\n")
    assert "[EXIF Details]\n" in text
    assert "LensSpecification: 24-70mm f/2.8\n" in text
    assert "Google Maps: https://www.google.com/maps?q=55.5,37.6" in text


def test_run_prints_json(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    out = io.StringIO()

    exit_code = main.run([str(path)], settings=Settings(), as_json=True, out=out)

    payload = json.loads(out.getvalue())
    assert exit_code == 0
    assert len(payload) == 1
    document = payload[0]
    assert document["error"] is None
    assert document["file"]["pixel_width"] == 640
    assert document["file"]["aspect_ratio"] == "4:3"
    assert document["gps"]["latitude"] == 55.5
    assert document["has_preview"] is True
    assert document["sections"][0]["title"] == "General Image Info"


def test_run_reports_failure_exit_code(tmp_path):
    good = create_sample_jpeg(tmp_path / "sample.jpg")
    bad = tmp_path / "broken.jpg"
    bad.write_bytes(b"nope")
    out = io.StringIO()

    exit_code = main.run([str(good), str(bad)], settings=Settings(), out=out)

    assert exit_code == 1
    assert "Error: Could not create image source." in out.getvalue()


def test_run_writes_previews(tmp_path):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    preview_dir = tmp_path / "previews"

    exit_code = main.run(
        [str(path)],
        settings=Settings(preview_max_side=48),
        preview_dir=preview_dir,
        out=io.StringIO(),
    )

    written = preview_dir / "sample.preview.jpg"
    assert exit_code == 0
    assert written.read_bytes().startswith(b"\xff\xd8")


def test_main_parses_arguments(tmp_path, monkeypatch, capsys):
    path = create_sample_jpeg(tmp_path / "sample.jpg")
    monkeypatch.setenv("LOG_FORMAT", "pretty")
    monkeypatch.delenv("EXIFSPY_DEBUG", raising=False)

    exit_code = main.main([str(path), "--json"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert json.loads(captured.out)[0]["file"]["name"] == "sample.jpg"
