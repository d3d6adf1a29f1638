"""
Helpers that turn durations and sizes into short strings for log messages.
"""
from typing import Optional

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def format_seconds(seconds: Optional[float]) -> str:
    """Renders a number of seconds as "HH:MM:SS"; unknown or negative values give "--:--:--"."""
    if seconds is None or seconds < 0:
        return "--:--:--"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02}:{minutes:02}:{secs:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a byte count into a binary-prefixed string.

    1536 becomes "1.50 KB" and 2097152 becomes "2 MB".
    """
    size = float(max(size_bytes, 0))
    for unit in _SIZE_UNITS:
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.2f} {unit}".replace(".00 ", " ")
        size /= 1024
    return f"{size:.2f} {_SIZE_UNITS[-1]}"
