"""
This module contains helper functions for formatting data into human-readable strings.
These functions are used in logging and in the run report to present durations,
file sizes and ratios in a clear and consistent way.
"""

from datetime import timedelta

from ..config.encoding import BYTES_PER_MB


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta object into a "HH:MM:SS" string.

    Args:
        td_object: The timedelta object to format.

    Returns:
        A string representing the timedelta in HH:MM:SS format.
        For example, a timedelta of 7261 seconds becomes "02:01:01".
        Returns "00:00:00" if the input is not a valid timedelta object.
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    Args:
        size_bytes: The size of the file in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 1536 becomes "1.50 KB", and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{size_bytes} {unit}"
            else:
                # "2.00 MB" -> "2 MB"
                return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")


def format_megabytes(size_bytes: int) -> str:
    """Formats a byte count as megabytes with two decimals, e.g. "25.00 MB"."""
    return f"{size_bytes / BYTES_PER_MB:.2f} MB"


def format_ratio(ratio: float) -> str:
    """Formats a relative deviation as a signed percentage, e.g. "+8.00%"."""
    return f"{ratio:+.2%}"
