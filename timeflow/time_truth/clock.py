"""
Clock helpers - conversions between "HH:MM" strings and minute-of-day.

Minute values outside [0, 1439] wrap modulo 1440. A block that starts at
23:30 and lasts 90 minutes ends at "01:00" on the same day key; the day is
never incremented.
"""

import re
from datetime import datetime

from timeflow.errors import ParseError

MINUTES_PER_DAY = 24 * 60
SLOT_MINUTES = 30

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def to_minutes(time_string: str) -> int:
    """
    Parse "HH:MM" into minutes since midnight.

    Raises:
        ParseError: missing colon, non-numeric parts, or out-of-range values.
    """
    if not isinstance(time_string, str):
        raise ParseError(f"Time must be a string, got {type(time_string).__name__}")

    match = _TIME_RE.match(time_string.strip())
    if not match:
        raise ParseError(f"Invalid time format (use HH:MM): {time_string!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ParseError(f"Time out of range: {time_string!r}")

    return hours * 60 + minutes


def to_time_string(minutes: int) -> str:
    """Format minute-of-day as zero-padded "HH:MM", wrapping past midnight."""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_duration(start_time: str, duration: int) -> str:
    """End time for a block starting at start_time lasting duration minutes."""
    return to_time_string(to_minutes(start_time) + duration)


def minutes_between(start_time: str, end_time: str) -> int:
    """Forward distance from start_time to end_time, modulo one day."""
    return (to_minutes(end_time) - to_minutes(start_time)) % MINUTES_PER_DAY


def current_slot(now: datetime | None = None, slot_minutes: int = SLOT_MINUTES) -> str:
    """Wall-clock time floored to the preceding slot boundary."""
    now = now or datetime.now()
    minute = (now.minute // slot_minutes) * slot_minutes
    return f"{now.hour:02d}:{minute:02d}"


def time_slots(start_hour: int = 6, end_hour: int = 23, step: int = SLOT_MINUTES) -> list[str]:
    """Timeline grid labels from start_hour:00 through end_hour:(60 - step)."""
    return [
        to_time_string(minute)
        for minute in range(start_hour * 60, (end_hour + 1) * 60, step)
    ]


def format_duration(minutes: int) -> str:
    """Compact duration label: 45m, 2h, 1h 30m."""
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
