"""Tests for log.py."""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from log import ConsoleFormatter, JSONFormatter, RunContext, setup_logging


def _make_record(
    msg: str = "hello",
    level: int = logging.INFO,
    name: str = "planflow",
    **context: str,
) -> logging.LogRecord:
    """Create a minimal LogRecord, with *context* set as attributes."""
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in context.items():
        setattr(record, key, value)
    return record


# ---------------------------------------------------------------------------
# JSONFormatter
# ---------------------------------------------------------------------------


class TestJSONFormatter:
    def test_format_produces_valid_json_with_expected_keys(self) -> None:
        parsed = json.loads(JSONFormatter().format(_make_record("test message")))

        assert parsed["level"] == "INFO"
        assert parsed["msg"] == "test message"
        assert parsed["logger"] == "planflow"
        assert "ts" in parsed

    def test_timestamp_comes_from_record(self) -> None:
        record = _make_record()
        record.created = 0.0
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["ts"] == "1970-01-01T00:00:00+00:00"

    def test_format_includes_exception_info(self) -> None:
        record = _make_record("boom")
        try:
            raise ValueError("kaboom")
        except ValueError:
            record.exc_info = sys.exc_info()

        parsed = json.loads(JSONFormatter().format(record))
        assert "kaboom" in parsed["exception"]

    def test_run_context_is_merged(self) -> None:
        record = _make_record(group="govcloud", target="a/b", module_name="s3")

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["group"] == "govcloud"
        assert parsed["target"] == "a/b"
        assert parsed["module_name"] == "s3"
        assert "mode" not in parsed

    def test_output_is_single_line(self) -> None:
        output = JSONFormatter().format(_make_record("line one\nline two"))
        assert "\n" not in output


# ---------------------------------------------------------------------------
# ConsoleFormatter
# ---------------------------------------------------------------------------


class TestConsoleFormatter:
    def test_plain_line_hides_context(self) -> None:
        record = _make_record("Planning", group="commercial")
        assert ConsoleFormatter().format(record) == "INFO    Planning"

    def test_verbose_line_appends_context_in_field_order(self) -> None:
        record = _make_record("Planning", target="a/b", group="commercial")
        line = ConsoleFormatter(show_context=True).format(record)
        assert line == "INFO    Planning [group=commercial target=a/b]"

    def test_verbose_line_without_context_is_unchanged(self) -> None:
        line = ConsoleFormatter(show_context=True).format(_make_record("done"))
        assert line == "INFO    done"


# ---------------------------------------------------------------------------
# RunContext
# ---------------------------------------------------------------------------


class TestRunContext:
    def test_fixed_context_and_call_extra_are_merged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        log = RunContext(
            logging.getLogger("planflow.test"),
            {"module_name": "s3", "group": "govcloud"},
        )
        with caplog.at_level(logging.INFO, logger="planflow"):
            log.info("Planning", extra={"target": "a/b"})

        record = caplog.records[-1]
        assert record.module_name == "s3"
        assert record.group == "govcloud"
        assert record.target == "a/b"

    def test_call_extra_overrides_fixed_context(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        log = RunContext(logging.getLogger("planflow.test"), {"mode": "targeted"})
        with caplog.at_level(logging.INFO, logger="planflow"):
            log.info("fallback", extra={"mode": "batch"})
        assert caplog.records[-1].mode == "batch"


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_default_console_is_plain_info(self) -> None:
        logger = setup_logging()
        assert logger.name == "planflow"
        assert logger.level == logging.INFO
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        formatter = logger.handlers[0].formatter
        assert isinstance(formatter, ConsoleFormatter)
        assert formatter.show_context is False

    def test_verbose_shows_debug_with_context(self) -> None:
        logger = setup_logging(verbose=True)
        handler = logger.handlers[0]
        assert logger.level == logging.DEBUG
        assert handler.level == logging.DEBUG
        assert handler.formatter.show_context is True

    def test_json_console(self) -> None:
        logger = setup_logging(json_console=True)
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file_keeps_full_debug_trail(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "planflow.log"
        logger = setup_logging(log_file=log_file)

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert isinstance(file_handlers[0].formatter, JSONFormatter)
        console = next(h for h in logger.handlers if h not in file_handlers)
        assert console.level == logging.INFO

        logging.getLogger("planflow.group").debug(
            "Planning %s", "a/b", extra={"group": "commercial"}
        )
        file_handlers[0].flush()
        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry["msg"] == "Planning a/b"
        assert entry["level"] == "DEBUG"
        assert entry["group"] == "commercial"
