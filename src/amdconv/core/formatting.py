"""Formatting utilities.

Pure functions for presenting sizes, durations and ratios in log output.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes.

    Returns:
        Formatted string (e.g., "4.2 GB", "128.0 MB", "1.5 KB").
    """
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f} GB"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f} MB"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes} B"


def format_duration(seconds: float) -> str:
    """Format elapsed seconds as "1h 02m 03s", "2m 05s" or "7s"."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


def format_compression_ratio(input_size: int, output_size: int) -> str | None:
    """Express the output size as a percentage of the input size.

    The percentage is truncated (not rounded) to two decimal places.

    Args:
        input_size: Input file size in bytes.
        output_size: Output file size in bytes.

    Returns:
        String such as "42.17%", or None when the input size is zero.
    """
    if input_size <= 0:
        return None
    ratio = Decimal(output_size) * 100 / Decimal(input_size)
    return f"{ratio.quantize(Decimal('0.01'), rounding=ROUND_DOWN)}%"
