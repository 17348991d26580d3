"""
tests/test_logging.py

JSON and text output from setup_logging.
"""

from __future__ import annotations

import logging

import orjson
import pytest

from inbox_cron.utils.logging import JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("inbox_cron.test", logging.INFO, __file__, 1, "Batch completed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_includes_extra_fields(self) -> None:
        line = JsonFormatter().format(make_record(success_count=2, failure_count=1))
        payload = orjson.loads(line)
        assert payload["message"] == "Batch completed"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "inbox_cron.test"
        assert payload["success_count"] == 2
        assert payload["failure_count"] == 1

    def test_standard_attributes_left_out(self) -> None:
        payload = orjson.loads(JsonFormatter().format(make_record()))
        assert "pathname" not in payload
        assert "args" not in payload

    def test_unserializable_extra_stringified(self) -> None:
        payload = orjson.loads(JsonFormatter().format(make_record(obj=object())))
        assert payload["obj"].startswith("<object")


class TestSetupLogging:
    def test_text_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="DEBUG", format_type="text")
        logging.getLogger("inbox_cron.test").debug("hello")
        assert " - inbox_cron.test - DEBUG - hello" in capsys.readouterr().out

    def test_json_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO", format_type="json")
        logging.getLogger("inbox_cron.test").info("hello", extra={"run_id": "r1"})
        payload = orjson.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["run_id"] == "r1"

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            setup_logging(format_type="xml")
