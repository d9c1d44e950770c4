"""Core utilities package.

Pure helpers with no dependencies on the rest of amdconv: size and bitrate
arithmetic, display formatting, and subprocess invocation.
"""

from amdconv.core.formatting import (
    format_compression_ratio,
    format_duration,
    format_file_size,
)
from amdconv.core.subprocess_utils import run_command
from amdconv.core.units import (
    PLACEHOLDER_DURATION_SECONDS,
    SizeParseError,
    bitrate_for_target_size,
    parse_size,
)

__all__ = [
    "PLACEHOLDER_DURATION_SECONDS",
    "SizeParseError",
    "bitrate_for_target_size",
    "format_compression_ratio",
    "format_duration",
    "format_file_size",
    "parse_size",
    "run_command",
]
