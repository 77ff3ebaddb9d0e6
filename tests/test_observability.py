import io
import json
import logging
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from observability import context, is_pretty_format, log_exc, setup_logging


def test_json_logging_includes_context(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging(stream=stream)

    logger = logging.getLogger("test-context")
    with context(path="/photos/a.jpg", stage="read"):
        logger.info("reading %s", "a.jpg")

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["msg"] == "reading a.jpg"
    assert payload["level"] == "INFO"
    assert payload["path"] == "/photos/a.jpg"
    assert payload["stage"] == "read"
    assert "group" not in payload


def test_context_is_restored_after_block(monkeypatch):
    stream = io.StringIO()
    setup_logging(stream=stream, log_format="json")

    logger = logging.getLogger("test-context")
    with context(path="/photos/a.jpg"):
        with context(group="{GPS}"):
            logger.info("inner")
        logger.info("outer")
    logger.info("after")

    inner, outer, after = (json.loads(line) for line in stream.getvalue().strip().splitlines())
    assert inner["group"] == "{GPS}"
    assert "group" not in outer
    assert outer["path"] == "/photos/a.jpg"
    assert "path" not in after


def test_pretty_format(monkeypatch):
    stream = io.StringIO()
    setup_logging(stream=stream, log_format="pretty", level="DEBUG")

    with context(stage="normalize"):
        logging.getLogger("test-pretty").debug("hello")

    line = stream.getvalue().strip()
    assert is_pretty_format()
    assert "DEBUG" in line
    assert line.endswith("hello (stage=normalize)")


def test_level_filters_records():
    stream = io.StringIO()
    setup_logging(stream=stream, log_format="json", level="WARNING")

    logging.getLogger("test-level").info("hidden")
    logging.getLogger("test-level").warning("shown")

    lines = stream.getvalue().strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["msg"] == "shown"


def test_log_exc_records_error_type():
    stream = io.StringIO()
    setup_logging(stream=stream, log_format="json")

    log_exc("preview failed", ValueError("bad data"))

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["msg"] == "preview failed"
    assert payload["error_type"] == "ValueError"
    assert payload["error"] == "bad data"
