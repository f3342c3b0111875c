"""
Time codec: free-form time strings <-> minutes since midnight.

Every time the engine touches is a wall-clock time-of-day held as an ``int``
in ``[0, 1440)``. Parsing never raises for bad data; callers treat ``None``
as "this slot is unusable".
"""

import re
from typing import Optional

import pendulum
from pendulum import DateTime

from .exceptions import TimeParseError

MINUTES_PER_DAY = 24 * 60

_CLOCK_24 = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_CLOCK_12 = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])$")
_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{1,2}:\d{2}")
_EMBEDDED_CLOCK = re.compile(
    r"(?<![\d:])(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?(?:\s*([AaPp][Mm])\b)?"
)


def _to_minutes(
    hour: int,
    minute: int,
    second: int = 0,
    meridiem: Optional[str] = None
) -> Optional[int]:
    if minute > 59 or second > 59:
        return None

    if meridiem is None:
        if hour > 23:
            return None
        return hour * 60 + minute

    if not 1 <= hour <= 12:
        return None
    meridiem = meridiem.upper()
    if meridiem == "AM" and hour == 12:
        hour = 0
    elif meridiem == "PM" and hour < 12:
        hour += 12
    return hour * 60 + minute


def _from_match(match: "re.Match[str]", meridiem_group: Optional[int]) -> Optional[int]:
    second = match.group(3)
    meridiem = match.group(meridiem_group) if meridiem_group else None
    return _to_minutes(
        int(match.group(1)),
        int(match.group(2)),
        int(second) if second else 0,
        meridiem,
    )


def _from_iso_datetime(raw: str) -> Optional[int]:
    """Take the wall-clock time written in an ISO-8601 datetime, ignoring its offset."""
    try:
        parsed = pendulum.parse(raw)
    except ValueError:
        return None
    if isinstance(parsed, DateTime):
        return parsed.hour * 60 + parsed.minute
    return None


def parse_time(raw: object) -> Optional[int]:
    """
    Parse a time string into minutes since midnight.

    Accepts ``HH:MM`` (24h, optional seconds), ``H:MM AM/PM``, ISO-8601
    datetimes and locale date strings that carry a time component.

    Returns:
        Minutes since midnight, or ``None`` if the input is not a usable time.
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    match = _CLOCK_24.match(text)
    if match:
        return _from_match(match, None)

    match = _CLOCK_12.match(text)
    if match:
        return _from_match(match, 4)

    if _ISO_DATETIME.match(text):
        minutes = _from_iso_datetime(text)
        if minutes is not None:
            return minutes

    # Locale strings such as "1/15/2025, 2:30:00 PM" or
    # "Wed Jan 15 2025 14:30:00 GMT+0000"
    match = _EMBEDDED_CLOCK.search(text)
    if match:
        return _from_match(match, 4)

    return None


def require_time(raw: object) -> int:
    """Parse a time or raise ``TimeParseError`` (for user input at the edges)."""
    minutes = parse_time(raw)
    if minutes is None:
        raise TimeParseError(f"Could not parse time: {raw!r}")
    return minutes


def format_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Time of day must be in [0, {MINUTES_PER_DAY}), got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_range(start: int, end: int) -> str:
    """Format a ``start - end`` range; an end past midnight wraps around."""
    return f"{format_time(start % MINUTES_PER_DAY)} - {format_time(end % MINUTES_PER_DAY)}"
