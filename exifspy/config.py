from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_PREVIEW_MAX_SIDE = 320


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.warning("Invalid %s=%s, using %s", name, raw, default)
        return default
    return max(1, value)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off", ""}:
        return False
    logging.warning("Invalid %s=%s, using %s", name, raw, default)
    return default


@dataclass(frozen=True, slots=True)
class Settings:
    debug: bool = False
    preview_max_side: int = DEFAULT_PREVIEW_MAX_SIDE
    log_format: str = "json"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment once, at the program boundary."""

    return Settings(
        debug=_env_bool("EXIFSPY_DEBUG", False),
        preview_max_side=_env_int("EXIFSPY_PREVIEW_MAX_SIDE", DEFAULT_PREVIEW_MAX_SIDE),
        log_format=os.getenv("LOG_FORMAT", "json").strip().lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )


__all__ = ["DEFAULT_PREVIEW_MAX_SIDE", "Settings", "load_settings"]
