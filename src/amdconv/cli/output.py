"""Console output shared by the amdconv command."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from amdconv import __version__
from amdconv.config.models import RunConfig
from amdconv.core.formatting import format_duration
from amdconv.hardware.probe import BACKEND_LABELS, Backend, CapabilityDecision
from amdconv.jobs.models import BatchSummary
from amdconv.logging import AMD_LABEL, log_success

from .exit_codes import ExitCode

logger = logging.getLogger(__name__)

_BANNER_WIDTH = 60


def error_exit(message: str, code: ExitCode | int = ExitCode.FAILURE) -> NoReturn:
    """Log an error and exit.

    Note:
        This function never returns; it always calls sys.exit().
    """
    logger.error(message)
    sys.exit(int(code))


def print_banner() -> None:
    """Print the program header."""
    title = f"AMD GPU Batch Video Converter v{__version__}"
    click.echo(click.style("=" * _BANNER_WIDTH, fg="cyan"))
    click.echo(click.style(title.center(_BANNER_WIDTH), fg="cyan", bold=True))
    click.echo(click.style("=" * _BANNER_WIDTH, fg="cyan"))


def log_backend(decision: CapabilityDecision) -> None:
    """Log which backend will encode and why."""
    if decision.is_hardware:
        logger.info(
            "Using %s hardware encoding",
            BACKEND_LABELS[decision.backend],
            extra={"label": AMD_LABEL},
        )
        if decision.downgraded:
            logger.warning(
                "%s hardware encoding not supported, falling back to %s",
                decision.requested_codec.value.upper(),
                decision.effective_codec.value.upper(),
            )
        return

    if decision.reason and "disabled" in decision.reason:
        logger.info(decision.reason)
    elif decision.reason:
        logger.warning(decision.reason)


def log_run_settings(config: RunConfig, decision: CapabilityDecision) -> None:
    """Log the effective encoding settings."""
    logger.info("Encoding settings:")
    logger.info("  Codec: %s", decision.effective_codec.value)
    logger.info("  Preset: %s", config.preset.value)
    logger.info("  Container: %s", config.container.value)
    if config.quality is not None:
        logger.info("  Quality: %d", config.quality)
    if config.scale:
        logger.info("  Resolution: %s", config.scale)
    if config.target_size:
        logger.info("  Target size: %s", config.target_size)
    logger.info("  Audio bitrate: %s", config.audio_bitrate)
    if decision.backend is Backend.AMF:
        textured = config.texture_preserve
        vbaq_off = config.no_vbaq and not textured
        preanalysis_off = config.no_preanalysis and not textured
        logger.info("  VBAQ: %s", "Disabled" if vbaq_off else "Enabled")
        logger.info("  Pre-analysis: %s", "Disabled" if preanalysis_off else "Enabled")
        logger.info("  Open GOP: %s", "Disabled" if config.no_opengop else "Enabled")
    if config.texture_preserve:
        logger.info("  Texture preservation: Enabled")


def log_summary(summary: BatchSummary, log_file: Path | None) -> None:
    """Log the end-of-run summary."""
    click.echo("=" * _BANNER_WIDTH)
    logger.info("=== Conversion Complete ===")
    logger.info("Attempted: %d", summary.attempted)
    log_success(logger, "Successful: %d", summary.succeeded)
    if summary.failed:
        logger.error("Failed: %d", summary.failed)
    if summary.skipped:
        logger.info("Skipped: %d", summary.skipped)
    if summary.missing:
        logger.info("Missing: %d", summary.missing)
    logger.info("Total time: %s", format_duration(summary.elapsed_seconds))
    if log_file is not None:
        logger.info("Log file: %s", log_file)
    click.echo("=" * _BANNER_WIDTH)
