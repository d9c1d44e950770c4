"""Sequential batch conversion.

Files are processed one at a time in the order given. A file that fails
never stops the batch; ffmpeg runs without a timeout and is not retried.
"""

from __future__ import annotations

import logging
import shlex
import subprocess  # nosec B404 - subprocess is required for ffmpeg execution
import time
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

import click

from amdconv.config.models import RunConfig
from amdconv.core.formatting import format_compression_ratio, format_file_size
from amdconv.core.units import (
    PLACEHOLDER_DURATION_SECONDS,
    bitrate_for_target_size,
    parse_size,
)
from amdconv.exceptions import MediaProbeError
from amdconv.executor.command import EncodeOptions, build_ffmpeg_command
from amdconv.hardware.probe import CapabilityDecision
from amdconv.introspector.ffprobe import FFprobeIntrospector, MediaInfo
from amdconv.jobs.discovery import resolve_output_path
from amdconv.jobs.models import BatchSummary, FileJob, JobState
from amdconv.logging import job_context, log_success

logger = logging.getLogger(__name__)


class BatchRunner:
    """Runs conversions for a list of input files."""

    def __init__(
        self,
        config: RunConfig,
        decision: CapabilityDecision,
        *,
        ffmpeg_path: str = "ffmpeg",
        introspector: FFprobeIntrospector | None = None,
        render_device: str | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Resolved run settings.
            decision: Backend and effective codec for the run.
            ffmpeg_path: ffmpeg executable.
            introspector: ffprobe wrapper; None when ffprobe is unavailable,
                in which case durations are unknown.
            render_device: DRM render node for hardware paths.
            cwd: Base for --keep-tree relative paths (default: working dir).
        """
        self.config = config
        self.decision = decision
        self.ffmpeg_path = ffmpeg_path
        self.introspector = introspector
        self.render_device = render_device
        self.cwd = cwd

    def run(self, inputs: Sequence[Path]) -> BatchSummary:
        """Process every input in order and return the summary."""
        summary = BatchSummary()
        total = len(inputs)
        logger.info("Found %d files to process", total)
        start = time.monotonic()

        for index, input_path in enumerate(inputs, start=1):
            job = FileJob(input_path=input_path)
            summary.jobs.append(job)
            with job_context(index, total, input_path):
                self.process(job)

        summary.elapsed_seconds = time.monotonic() - start
        return summary

    def process(self, job: FileJob) -> None:
        """Convert one file, leaving the job in a terminal state."""
        config = self.config
        input_path = job.input_path

        if not input_path.is_file():
            logger.warning("Skipping non-existent file: %s", input_path)
            job.transition(JobState.SKIPPED_MISSING)
            return

        output_path = resolve_output_path(
            input_path, config.output_dir, config.container, config.keep_tree, self.cwd
        )
        job.output_path = output_path
        if output_path.exists() and not config.force:
            logger.warning(
                "Output file exists, skipping (use --force to overwrite): %s",
                output_path,
            )
            job.transition(JobState.SKIPPED_EXISTS)
            return

        logger.info("Processing: %s", input_path)
        info = self._media_info(input_path)
        if info is not None:
            logger.info("Input: %s", info.describe())
        logger.info("Output: %s", output_path)

        target_bitrate: int | None = None
        if config.target_size:
            duration = info.duration if info is not None else None
            if duration is None:
                if not config.force:
                    logger.warning(
                        "Cannot determine duration of %s, skipping target size "
                        "conversion (use --force to assume %d seconds)",
                        input_path,
                        PLACEHOLDER_DURATION_SECONDS,
                    )
                    job.transition(JobState.SKIPPED_NO_DURATION)
                    return
                logger.warning(
                    "Cannot determine duration of %s, assuming %d seconds",
                    input_path,
                    PLACEHOLDER_DURATION_SECONDS,
                )
                duration = Decimal(PLACEHOLDER_DURATION_SECONDS)
            target_bitrate = bitrate_for_target_size(
                parse_size(config.target_size), duration
            )
            if target_bitrate < 1:
                logger.warning(
                    "Target size %s is too small for %s (%s seconds), skipping",
                    config.target_size,
                    input_path,
                    duration,
                )
                job.transition(JobState.SKIPPED_TARGET_TOO_SMALL)
                return
            logger.info(
                "Target size: %s, calculated bitrate: %dk",
                config.target_size,
                target_bitrate,
            )

        options = EncodeOptions.for_job(
            config,
            self.decision,
            input_path,
            output_path,
            render_device=self.render_device,
            target_bitrate=target_bitrate,
            ffmpeg_path=self.ffmpeg_path,
        )
        cmd = build_ffmpeg_command(options)

        if config.dry_run:
            click.echo(f"{click.style('[DRY RUN]', fg='yellow')} {shlex.join(cmd)}")
            job.transition(JobState.SUCCEEDED)
            return

        job.transition(JobState.RUNNING)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            returncode = self._execute(cmd)
        except OSError as e:
            logger.error("Failed to convert: %s (%s)", input_path, e)
            job.transition(JobState.FAILED, error=str(e))
            return

        if returncode != 0:
            logger.error(
                "Failed to convert: %s (ffmpeg exit code %d)", input_path, returncode
            )
            job.transition(
                JobState.FAILED, error=f"ffmpeg exited with code {returncode}"
            )
            return

        log_success(logger, "Successfully converted: %s", input_path)
        job.transition(JobState.SUCCEEDED)
        self._report_sizes(input_path, output_path)

    def _media_info(self, path: Path) -> MediaInfo | None:
        if self.introspector is None:
            return None
        try:
            return self.introspector.get_media_info(path)
        except MediaProbeError as e:
            logger.debug("Could not probe %s: %s", path, e)
            return None

    def _execute(self, cmd: list[str]) -> int:
        """Run ffmpeg to completion, logging its stderr at DEBUG level."""
        logger.debug("Running: %s", shlex.join(cmd))
        process = subprocess.Popen(  # nosec B603 - args built from validated options
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        assert process.stderr is not None
        for line in process.stderr:
            line = line.rstrip()
            if line:
                logger.debug("ffmpeg: %s", line)
        return process.wait()

    def _report_sizes(self, input_path: Path, output_path: Path) -> None:
        try:
            input_size = input_path.stat().st_size
            output_size = output_path.stat().st_size
        except OSError as e:
            logger.debug("Cannot stat output %s: %s", output_path, e)
            return
        logger.info("  Output size: %s", format_file_size(output_size))
        ratio = format_compression_ratio(input_size, output_size)
        if ratio is not None:
            logger.info("  Compression: %s of original", ratio)
