"""Logging configuration factory.

Builds LoggingConfig instances with CLI overrides applied to a base
configuration.
"""

from __future__ import annotations

from pathlib import Path

from amdconv.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    directory: Path | None = None,
    format: str | None = None,
    keep: int | None = None,
) -> LoggingConfig:
    """Build LoggingConfig by merging base config with CLI overrides.

    Args:
        base: Base logging configuration (from config file and environment).
        level: Override log level (debug, info, warning, error).
        directory: Override directory for per-run log files.
        format: Override log file format (text, json).
        keep: Override number of per-run log files to keep.

    Returns:
        New LoggingConfig with overrides applied. Validation runs via
        LoggingConfig.__post_init__, so invalid values raise ValueError.

    Example:
        config = get_config()
        logging_config = build_logging_config(
            config.logging,
            level="debug" if debug else None,
        )
        configure_logging(logging_config)
    """
    return LoggingConfig(
        level=level if level is not None else base.level,
        directory=directory if directory is not None else base.directory,
        format=format if format is not None else base.format,
        keep=keep if keep is not None else base.keep,
        color=base.color,
    )
