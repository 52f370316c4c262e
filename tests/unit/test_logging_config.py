import io
import json
import logging
import sys

import pytest

from strangify.logging_config import StructuredFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "strangify.test", logging.WARNING, __file__, 10, "hello %s", ("there",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_record_carries_extra_fields():
    payload = json.loads(StructuredFormatter().format(_record(identity="a.txt", seq=3)))

    assert payload["message"] == "hello there"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "strangify.test"
    assert payload["identity"] == "a.txt"
    assert payload["seq"] == 3
    assert "args" not in payload


def test_json_record_includes_exception():
    try:
        raise ValueError("broken")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(StructuredFormatter().format(record))
    assert "ValueError: broken" in payload["exception"]


def test_configure_json(restore_root_logger):
    stream = io.StringIO()
    configure_logging("debug", "json", stream=stream)

    logging.getLogger("strangify.x").info("ready", extra={"units": 2})

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[-1]["message"] == "ready"
    assert lines[-1]["units"] == 2
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("watchdog").level == logging.WARNING


def test_configure_text(restore_root_logger):
    stream = io.StringIO()
    configure_logging("WARNING", "text", stream=stream)

    logging.getLogger("strangify.x").info("hidden")
    logging.getLogger("strangify.x").warning("shown")

    output = stream.getvalue()
    assert "hidden" not in output
    assert "strangify.x - WARNING - shown" in output
