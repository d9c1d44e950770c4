"""Custom logging handlers and formatters.

Console output uses short coloured labels::

    [INFO] Processing: movie.mkv
    [AMD] Using VA-API hardware encoding
    [SUCCESS] Converted: movie.mkv

The same label appears in the per-run log file. Records are labelled by
level, except INFO records from the hardware package (or any record logged
with ``extra={"label": ...}``), which carry their own label.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import click

# Between INFO and WARNING so it is shown whenever INFO is
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

AMD_LABEL = "AMD"

_LEVEL_LABELS: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUCCESS: "SUCCESS",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

_LABEL_COLORS: dict[str, str] = {
    "DEBUG": "blue",
    "INFO": "green",
    "SUCCESS": "green",
    "WARN": "yellow",
    "ERROR": "red",
    AMD_LABEL: "cyan",
}

_HARDWARE_LOGGER_PREFIX = "amdconv.hardware"


def log_success(logger: logging.Logger, msg: str, *args: Any) -> None:
    """Log a message at the SUCCESS level."""
    logger.log(SUCCESS, msg, *args)


def label_for(record: logging.LogRecord) -> str:
    """Return the display label for a record."""
    explicit = getattr(record, "label", None)
    if explicit:
        return str(explicit)
    if record.levelno == logging.INFO and record.name.startswith(
        _HARDWARE_LOGGER_PREFIX
    ):
        return AMD_LABEL
    return _LEVEL_LABELS.get(record.levelno, record.levelname)


class LabelFilter(logging.Filter):
    """Set ``record.label`` so formatters can use ``%(label)s``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.label = label_for(record)
        return True


class ConsoleHandler(logging.Handler):
    """Write records to the terminal with a coloured label.

    Errors go to stderr, everything else to stdout.
    """

    def __init__(self, level: int = logging.NOTSET, color: bool | None = None) -> None:
        super().__init__(level)
        self.color = color

    def emit(self, record: logging.LogRecord) -> None:
        try:
            label = label_for(record)
            message = self.format(record)
            prefix = click.style(
                f"[{label}]", fg=_LABEL_COLORS.get(label), bold=True
            )
            err = record.levelno >= logging.ERROR
            click.echo(
                f"{prefix} {message}",
                err=err,
                color=self.color,
            )
        except Exception:
            self.handleError(record)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Each log entry is a valid JSON object with:
    - timestamp: ISO-8601 UTC
    - level: Log level name
    - label: Display label (INFO, WARN, AMD, ...)
    - message: Log message
    - context: Additional context from record.extra
    """

    # Standard LogRecord attributes to exclude from context
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "message",
            "exc_info",
            "exc_text",
            "stack_info",
            "taskName",
            "label",
            # Job context fields (added by JobContextFilter)
            "job_index",
            "job_total",
            "file_path",
            "job_tag",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON-formatted string.
        """
        record_time = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: dict[str, Any] = {
            "timestamp": record_time.isoformat(),
            "level": record.levelname,
            "label": label_for(record),
            "message": record.getMessage(),
        }

        if record.name and record.name != "root":
            log_entry["logger"] = record.name

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS and not key.startswith("_")
        }
        for field in ("job_index", "job_total", "file_path"):
            value = getattr(record, field, None)
            if value is not None:
                context[field] = value
        if context:
            log_entry["context"] = context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)
