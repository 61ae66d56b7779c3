from __future__ import annotations

import json
import logging

from pga.config import Settings
from pga.utils.logging import _json_formatter, configure_logging_from_settings

EXPECTED_STATEMENTS = 3
EXPECTED_INDEX = 1


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.statements = EXPECTED_STATEMENTS
    record.state = "committing"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["statements"] == EXPECTED_STATEMENTS
    assert payload["state"] == "committing"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"index": EXPECTED_INDEX}

    payload = json.loads(_json_formatter(record))

    assert payload["index"] == EXPECTED_INDEX


def test_json_formatter_renders_unserializable_values() -> None:
    record = _record()
    record.error = RuntimeError("boom")

    payload = json.loads(_json_formatter(record))

    assert payload["error"] == "boom"


def test_configure_logging_from_settings_applies_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    previous_handlers = list(root.handlers)
    try:
        configure_logging_from_settings(Settings(log_level="WARNING", log_json=True))
        assert root.level == logging.WARNING
        assert root.handlers
        assert type(root.handlers[0].formatter).__name__ == "JsonFormatter"
    finally:
        root.handlers = previous_handlers
        root.setLevel(previous_level)
