"""Logging for planflow runs.

All planflow loggers live under ``planflow``.  A record may carry run
context as attributes (see :data:`CONTEXT_FIELDS`); components attach
the parts that stay fixed for their lifetime with :class:`RunContext`
and pass only per-call values such as ``target`` through ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

CONTEXT_FIELDS = ("module_name", "group", "target", "mode")

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the run context fields set on *record*, in field order."""
    context: dict[str, Any] = {}
    for key in CONTEXT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class RunContext(logging.LoggerAdapter):
    """Adapter that stamps fixed run context onto every record.

    Per-call ``extra`` values are merged over the adapter's own, so a
    group runner can add ``target`` without repeating ``group``.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with run context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable progress lines for the terminal.

    With *show_context* the record's run context is appended as
    ``[group=govcloud target=...]``, which is what ``--verbose`` wants
    when both groups interleave their debug output.
    """

    def __init__(self, *, show_context: bool = False) -> None:
        super().__init__("%(levelname)-7s %(message)s")
        self.show_context = show_context

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.show_context:
            return line
        context = record_context(record)
        if not context:
            return line
        fields = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{line} [{fields}]"


def setup_logging(
    *,
    verbose: bool = False,
    json_console: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure the ``planflow`` logger for one CLI invocation.

    The console (stderr, so stdout stays free) shows INFO and up, or
    DEBUG with run context when *verbose*.  *json_console* switches it
    to JSON lines for log collectors.  A *log_file* always receives the
    full DEBUG trail as JSON, rotated at 10 MB.
    """
    logger = logging.getLogger("planflow")
    for handler in logger.handlers[:]:
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    console_level = logging.DEBUG if verbose else logging.INFO
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        JSONFormatter() if json_console else ConsoleFormatter(show_context=verbose)
    )
    logger.addHandler(console)
    logger.setLevel(console_level)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger
