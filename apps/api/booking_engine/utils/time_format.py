"""Conversions between "HH:MM" strings and minutes since midnight."""

import re

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def parse_time_of_day(value: str) -> int:
    """
    Parse a 24-hour "HH:MM" string into minutes since midnight.

    "24:00" is accepted as the end of the day (1440).

    Raises:
        ValueError: malformed or out-of-range value
    """
    match = _TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
