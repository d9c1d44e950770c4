"""Logging module for amdconv.

Provides labelled console output, the per-run log file (text or JSON) and
job context tagging for batch processing.
"""

from amdconv.logging.config import configure_logging, default_log_file, prune_old_logs
from amdconv.logging.context import JobContextFilter, get_job_context, job_context
from amdconv.logging.handlers import (
    AMD_LABEL,
    SUCCESS,
    ConsoleHandler,
    JSONFormatter,
    LabelFilter,
    log_success,
)

__all__ = [
    "AMD_LABEL",
    "SUCCESS",
    "ConsoleHandler",
    "JSONFormatter",
    "JobContextFilter",
    "LabelFilter",
    "configure_logging",
    "default_log_file",
    "get_job_context",
    "job_context",
    "log_success",
    "prune_old_logs",
]
