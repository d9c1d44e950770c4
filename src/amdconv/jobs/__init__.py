"""Batch job discovery and execution."""

from amdconv.jobs.discovery import (
    INPUT_EXTENSIONS,
    collect_inputs,
    is_video_file,
    resolve_output_path,
)
from amdconv.jobs.models import BatchSummary, FileJob, InvalidTransitionError, JobState
from amdconv.jobs.runner import BatchRunner

__all__ = [
    "INPUT_EXTENSIONS",
    "BatchRunner",
    "BatchSummary",
    "FileJob",
    "InvalidTransitionError",
    "JobState",
    "collect_inputs",
    "is_video_file",
    "resolve_output_path",
]
