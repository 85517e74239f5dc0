"""Shared time and date helpers used across the scheduling core."""

import re
from datetime import date, datetime

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(value: str) -> int:
    """Convert an ``HH:MM`` string into minutes since midnight.

    ``24:00`` is accepted as the closing edge of a day.

    Examples:
        >>> parse_time("09:30")
        570
        >>> parse_time("24:00")
        1440
    """
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Convert minutes since midnight back into ``HH:MM``.

    Examples:
        >>> format_time(570)
        '09:30'
        >>> format_time(1440)
        '24:00'
    """
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a single day: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_hour_label(hour: int) -> str:
    """12-hour clock label for a grid hour line.

    Examples:
        >>> format_hour_label(0)
        '12 AM'
        >>> format_hour_label(14)
        '2 PM'
    """
    period = "PM" if 12 <= hour < 24 else "AM"
    return f"{hour % 12 or 12} {period}"


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def minutes_of(moment: datetime) -> int:
    """Minutes since midnight of a datetime, seconds dropped."""
    return moment.hour * 60 + moment.minute
