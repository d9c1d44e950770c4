"""Job state and batch summary models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class JobState(Enum):
    """Lifecycle state of one file conversion."""

    PENDING = "pending"
    RUNNING = "running"
    SKIPPED_MISSING = "skipped_missing"
    SKIPPED_EXISTS = "skipped_exists"
    SKIPPED_NO_DURATION = "skipped_no_duration"
    SKIPPED_TARGET_TOO_SMALL = "skipped_target_too_small"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self not in (JobState.PENDING, JobState.RUNNING)

    @property
    def is_skip(self) -> bool:
        return self.value.startswith("skipped_")


class InvalidTransitionError(ValueError):
    """A job was moved out of a terminal state."""


@dataclass
class FileJob:
    """One input-to-output conversion."""

    input_path: Path
    output_path: Path | None = None
    state: JobState = JobState.PENDING
    error: str | None = None

    def transition(self, state: JobState, error: str | None = None) -> None:
        """Move the job to a new state.

        Raises:
            InvalidTransitionError: If the job already reached a terminal state.
        """
        if self.state.is_terminal:
            raise InvalidTransitionError(
                f"Job for {self.input_path} is already {self.state.value}"
            )
        self.state = state
        if error is not None:
            self.error = error


@dataclass
class BatchSummary:
    """Outcome counts for a batch run."""

    jobs: list[FileJob] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def _count(self, *states: JobState) -> int:
        return sum(1 for job in self.jobs if job.state in states)

    @property
    def total(self) -> int:
        return len(self.jobs)

    @property
    def missing(self) -> int:
        return self._count(JobState.SKIPPED_MISSING)

    @property
    def attempted(self) -> int:
        """Jobs whose input existed; missing files are not counted."""
        return self.total - self.missing

    @property
    def succeeded(self) -> int:
        return self._count(JobState.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(JobState.FAILED)

    @property
    def skipped(self) -> int:
        """Existing inputs that were not converted."""
        return sum(
            1
            for job in self.jobs
            if job.state.is_skip and job.state is not JobState.SKIPPED_MISSING
        )

    @property
    def exit_code(self) -> int:
        """0 when no job failed, otherwise 1."""
        return 0 if self.failed == 0 else 1
