"""FFmpeg command construction."""

from amdconv.executor.command import (
    BUILD_STEPS,
    EncodeOptions,
    build_ffmpeg_command,
    build_filter_chain,
)

__all__ = [
    "BUILD_STEPS",
    "EncodeOptions",
    "build_ffmpeg_command",
    "build_filter_chain",
]
