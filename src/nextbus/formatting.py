from datetime import datetime
from typing import Optional

import pytz


def minutes_until(timestamp: int, now: int) -> int:
    # floor division, clamped so a late "now" never shows a negative wait
    return max(0, int((timestamp - now) // 60))


def to_local(timestamp: int, tz_name: str = "America/Los_Angeles") -> Optional[datetime]:
    """Timestamp as an aware datetime in ``tz_name``, or None if the platform can't represent it."""
    try:
        return datetime.fromtimestamp(timestamp, pytz.timezone(tz_name))
    except (ValueError, OverflowError, OSError):
        return None


def format_wall_clock(timestamp: int, tz_name: str = "America/Los_Angeles") -> Optional[str]:
    """Render a unix timestamp as ``h:mm am`` in the given zone."""
    local = to_local(timestamp, tz_name)
    if local is None:
        return None
    hour = local.hour % 12 or 12
    marker = "am" if local.hour < 12 else "pm"
    return f"{hour}:{local.minute:02d} {marker}"


def format_arrival_time(
    timestamp: int,
    now: int,
    unit: str = "min",
    threshold_minutes: int = 60,
    tz_name: str = "America/Los_Angeles",
) -> str:
    """Relative minutes for arrivals within the hour, wall-clock time beyond.

    Timestamps too far out for a calendar date fall back to relative minutes.

    >>> format_arrival_time(1_000_150, 1_000_000)
    '2 min'
    >>> format_arrival_time(1_000_030, 1_000_000)
    'Now'
    """
    minutes = minutes_until(timestamp, now)
    if minutes < threshold_minutes:
        return "Now" if minutes == 0 else f"{minutes} {unit}"
    return format_wall_clock(timestamp, tz_name) or f"{minutes} {unit}"
