"""
Time utilities for contest windows.

Handles conversion between wire timestamps, epoch milliseconds and display
strings.
"""

from datetime import datetime, timezone
from typing import Optional, Union
import math
import time

Timestamp = Union[str, int, float, datetime, None]


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def parse_timestamp_ms(value: Timestamp) -> Optional[float]:
    """
    Parse a wire timestamp into epoch milliseconds.

    Supported inputs:
    - ISO 8601 strings (e.g., 2025-01-10T00:00:00Z, 2025-01-10T02:00:00+02:00)
    - datetime objects
    - numbers, taken as epoch milliseconds

    Naive values are read as UTC.

    Args:
        value: Timestamp to parse

    Returns:
        Epoch milliseconds, or None when the value is missing, unparseable
        or not finite
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        ms = float(value)
        return ms if math.isfinite(ms) else None

    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    try:
        ms = dt.timestamp() * 1000
    except (OverflowError, OSError, ValueError):
        return None
    return ms if math.isfinite(ms) else None


def format_datetime(ms: Optional[float]) -> str:
    """Format epoch milliseconds as ``YYYY-MM-DD HH:MM UTC``; missing values become an em dash."""
    if ms is None or not math.isfinite(ms):
        return "—"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def format_timestamp(value: Timestamp) -> str:
    """Format a wire timestamp for display."""
    return format_datetime(parse_timestamp_ms(value))


def format_duration(ms: float) -> str:
    """
    Format a duration as ``HHh MMm SSs``.

    Hours are not wrapped into days, so a week reads ``168h 00m 00s``.
    Non-positive durations read ``00h 00m 00s``.
    """
    if ms <= 0:
        return "00h 00m 00s"

    total_seconds = int(ms // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}h {minutes:02d}m {seconds:02d}s"
