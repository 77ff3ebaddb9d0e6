"""Print normalized EXIF/TIFF/GPS/IPTC metadata for image files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from exifspy.config import Settings, load_settings
from exifspy.export import result_text
from exifspy.models import MetadataResult
from exifspy.normalizer import extract
from observability import log_exc, setup_logging


def _parse_args(argv: Sequence[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="exifspy",
        description="Show image metadata grouped into sorted, human-readable sections.",
    )
    parser.add_argument("paths", nargs="+", help="Image files to inspect.")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print one JSON document with a result per file instead of text.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.debug,
        help="Log every processed field (defaults to EXIFSPY_DEBUG).",
    )
    parser.add_argument(
        "--preview-dir",
        help="Write <name>.preview.jpg thumbnails into this directory.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def _write_preview(result: MetadataResult, directory: Path) -> Path | None:
    if result.preview is None:
        return None
    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / f"{Path(result.file_stats.name).stem}.preview.jpg"
    destination.write_bytes(result.preview)
    return destination


def run(
    paths: Sequence[str],
    *,
    settings: Settings,
    debug: bool = False,
    as_json: bool = False,
    preview_dir: Path | None = None,
    out: TextIO | None = None,
) -> int:
    stream = out if out is not None else sys.stdout
    results = [
        extract(path, debug=debug, preview_max_side=settings.preview_max_side)
        for path in paths
    ]

    if preview_dir is not None:
        for result in results:
            try:
                written = _write_preview(result, preview_dir)
            except OSError as exc:
                log_exc(f"Failed to write preview for {result.file_stats.path}", exc)
                continue
            if written is not None:
                logging.info("Preview written to %s", written)

    if as_json:
        json.dump([result.to_dict() for result in results], stream, ensure_ascii=False, indent=2)
        stream.write("\n")
    else:
        stream.write("\n".join(result_text(result) for result in results))

    return 1 if any(result.error_message for result in results) else 0


def main(argv: Sequence[str] | None = None) -> int:
    settings = load_settings()
    args = _parse_args(argv, settings)
    level = "DEBUG" if args.debug else settings.log_level
    setup_logging(stream=sys.stderr, log_format=settings.log_format, level=level)
    preview_dir = Path(args.preview_dir).expanduser() if args.preview_dir else None
    return run(
        args.paths,
        settings=settings,
        debug=bool(args.debug),
        as_json=bool(args.json),
        preview_dir=preview_dir,
    )


if __name__ == "__main__":
    raise SystemExit(main())
