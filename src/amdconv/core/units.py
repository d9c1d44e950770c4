"""Size parsing and target-size bitrate arithmetic.

Sizes use binary multiples (1K = 1024 bytes). All arithmetic is done with
``Decimal`` and every division truncates to an integer, so results match a
scale-0 arbitrary-precision calculator exactly rather than drifting with
float rounding.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

# Duration substituted when ffprobe cannot read a file and --force is set
PLACEHOLDER_DURATION_SECONDS = 3600

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([A-Za-z]*)\s*$")

_UNIT_MULTIPLIERS: dict[str, int] = {
    "K": 1024,
    "KB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
}

# A bare number is read as megabytes
_DEFAULT_UNIT = "MB"


class SizeParseError(ValueError):
    """Raised when a size string cannot be parsed."""


def parse_size(text: str) -> Decimal:
    """Parse a human size string into bytes.

    Args:
        text: Size such as "100M", "1.5GB", "700k" or "250" (megabytes).

    Returns:
        Size in bytes. Fractional input sizes can yield a fractional value.

    Raises:
        SizeParseError: If the string is empty, malformed, or uses an
            unknown unit.
    """
    match = _SIZE_PATTERN.match(text or "")
    if not match:
        raise SizeParseError(f"Invalid size: {text!r}")

    number, unit = match.groups()
    unit = unit.upper() or _DEFAULT_UNIT
    if unit not in _UNIT_MULTIPLIERS:
        raise SizeParseError(
            f"Unknown size unit {unit!r} in {text!r} (use K, M or G)"
        )

    return Decimal(number) * _UNIT_MULTIPLIERS[unit]


def bitrate_for_target_size(
    size_bytes: Decimal | int, duration_seconds: Decimal | float | str
) -> int:
    """Compute the video bitrate that fits a file into a target size.

    ``target_bits = size * 8``, then bits per second and kilobits per second
    are each truncated to an integer.

    Args:
        size_bytes: Target output size in bytes.
        duration_seconds: Input duration in seconds (number or numeric
            string as printed by ffprobe).

    Returns:
        Bitrate in kbps.

    Raises:
        ValueError: If the duration is not a positive number.
    """
    try:
        duration = Decimal(str(duration_seconds))
    except InvalidOperation as e:
        raise ValueError(f"Invalid duration: {duration_seconds!r}") from e
    if not duration.is_finite() or duration <= 0:
        raise ValueError(f"Duration must be positive: {duration_seconds!r}")

    target_bits = Decimal(size_bytes) * 8
    bits_per_second = target_bits // duration
    return int(bits_per_second // 1024)
