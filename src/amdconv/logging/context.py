"""Job context for log records.

Uses contextvars to tag every record emitted while a file is being converted
with its position in the batch, e.g. ``[3/12]``.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_index: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "job_index", default=None
)
_job_total: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "job_total", default=None
)
_file_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file_path", default=None
)


@contextmanager
def job_context(
    index: int, total: int, file_path: Path | str | None = None
) -> Generator[None, None, None]:
    """Context manager marking the file currently being processed.

    Args:
        index: 1-based position of the file in the batch.
        total: Number of files in the batch.
        file_path: Input file path.

    Yields:
        None

    Example:
        with job_context(3, 12, "/videos/a.mkv"):
            logger.info("Processing")  # tagged [3/12]
    """
    tokens = (
        _job_index.set(index),
        _job_total.set(total),
        _file_path.set(str(file_path) if file_path is not None else None),
    )
    try:
        yield
    finally:
        _job_index.reset(tokens[0])
        _job_total.reset(tokens[1])
        _file_path.reset(tokens[2])


def get_job_context() -> tuple[int | None, int | None, str | None]:
    """Get current job context as (index, total, file_path)."""
    return _job_index.get(), _job_total.get(), _file_path.get()


class JobContextFilter(logging.Filter):
    """Logging filter that injects job context into log records.

    Adds job_index, job_total and file_path attributes for JSON output and
    a compact job_tag ("[3/12] " or "") for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject job context into log record.

        Returns:
            Always True (does not filter, only enriches).
        """
        index, total, file_path = get_job_context()
        record.job_index = index
        record.job_total = total
        record.file_path = file_path
        record.job_tag = f"[{index}/{total}] " if index is not None else ""
        return True
