import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from exifspy.config import DEFAULT_PREVIEW_MAX_SIDE, Settings, load_settings

_ENV_NAMES = ("EXIFSPY_DEBUG", "EXIFSPY_PREVIEW_MAX_SIDE", "LOG_FORMAT", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert load_settings() == Settings(
        debug=False,
        preview_max_side=DEFAULT_PREVIEW_MAX_SIDE,
        log_format="json",
        log_level="INFO",
    )


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("EXIFSPY_DEBUG", "yes")
    monkeypatch.setenv("EXIFSPY_PREVIEW_MAX_SIDE", "128")
    monkeypatch.setenv("LOG_FORMAT", " Pretty ")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings.debug is True
    assert settings.preview_max_side == 128
    assert settings.log_format == "pretty"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(("raw", "expected"), [("abc", DEFAULT_PREVIEW_MAX_SIDE), ("0", 1), ("-5", 1)])
def test_invalid_preview_size(monkeypatch, raw, expected):
    monkeypatch.setenv("EXIFSPY_PREVIEW_MAX_SIDE", raw)
    assert load_settings().preview_max_side == expected


def test_invalid_debug_flag_uses_default(monkeypatch):
    monkeypatch.setenv("EXIFSPY_DEBUG", "maybe")
    assert load_settings().debug is False
