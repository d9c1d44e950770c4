"""Logging configuration.

Provides configure_logging() to set up console output and the per-run log
file based on LoggingConfig.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from amdconv.logging.context import JobContextFilter
from amdconv.logging.handlers import ConsoleHandler, JSONFormatter, LabelFilter

if TYPE_CHECKING:
    from amdconv.config.models import LoggingConfig

# CRITICAL is not exposed via configuration.
_LEVEL_MAP: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FILE_PREFIX = "conversion_"
LOG_FILE_SUFFIX = ".log"

TEXT_FORMAT = "[%(asctime)s] [%(label)s] %(job_tag)s%(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def default_log_file(directory: Path | None, now: datetime | None = None) -> Path:
    """Return the per-run log file path, ``conversion_YYYYmmdd_HHMMSS.log``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return (directory or Path.cwd()) / f"{LOG_FILE_PREFIX}{stamp}{LOG_FILE_SUFFIX}"


def prune_old_logs(directory: Path, keep: int) -> list[Path]:
    """Delete the oldest per-run log files beyond ``keep``.

    Args:
        directory: Directory holding conversion_*.log files.
        keep: Number of most recent files to keep; 0 keeps everything.

    Returns:
        Paths that were removed.
    """
    if keep <= 0 or not directory.is_dir():
        return []
    # Timestamped names sort chronologically
    logs = sorted(directory.glob(f"{LOG_FILE_PREFIX}*{LOG_FILE_SUFFIX}"))
    removed: list[Path] = []
    for path in logs[:-keep]:
        try:
            path.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug("Could not remove %s: %s", path, e)
        else:
            removed.append(path)
    return removed


def configure_logging(
    config: LoggingConfig,
    log_file: Path | None = None,
    *,
    file_enabled: bool = True,
    color: bool | None = None,
) -> Path | None:
    """Configure logging based on LoggingConfig.

    The console shows records at the configured level. The log file always
    receives DEBUG and above, so ffmpeg output is kept even in normal runs.

    Args:
        config: Logging configuration.
        log_file: Explicit log file path. If None, a timestamped file is
            created in ``config.directory`` (or the working directory).
        file_enabled: Set False to skip the log file entirely.
        color: Force console colours on or off. None falls back to
            ``config.color``.

    Returns:
        Path of the log file in use, or None if no file is written.
    """
    level = _LEVEL_MAP.get(config.level.casefold(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if file_enabled else level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    context_filter = JobContextFilter()
    label_filter = LabelFilter()

    console = ConsoleHandler(
        level=level, color=color if color is not None else config.color
    )
    console.setFormatter(logging.Formatter("%(job_tag)s%(message)s"))
    console.addFilter(context_filter)
    root_logger.addHandler(console)

    if not file_enabled:
        return None

    if config.format.casefold() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    path = log_file or default_log_file(config.directory)
    try:
        path = path.expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError as e:
        # Log file unavailable - keep console output only
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(context_filter)
    file_handler.addFilter(label_filter)
    root_logger.addHandler(file_handler)

    if log_file is None:
        prune_old_logs(path.parent, config.keep)

    return path
