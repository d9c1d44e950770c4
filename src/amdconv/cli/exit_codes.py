"""Process exit codes for the amdconv command.

Usage errors detected by click itself (unknown option, missing option
value) keep click's own exit code 2.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for amdconv."""

    SUCCESS = 0
    # Any failed conversion, invalid settings, missing ffmpeg, unknown
    # profile or failed dependency install
    FAILURE = 1
