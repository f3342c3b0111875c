"""
Availability model: normalizing stored availability and resolving it per date.

Profiles have stored weekly availability in three shapes over time:

(a) ``{"available": true, "start": "09:00", "end": "17:00"}``
(b) ``{"available": true, "timeSlots": ["09:00", {"startTime": .., "endTime": ..}]}``
(c) ``["09:00", "9:00 AM - 10:00 AM"]``

All of them are normalized here into ``DayAvailability`` values, so the slot
generator and the conflict checks only ever see one model.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    AvailabilityIssue,
    AvailabilityWindow,
    Booking,
    DayAvailability,
    DayOfWeek,
    Person,
    sort_days,
)
from .timecodec import format_range, parse_time

logger = logging.getLogger(__name__)

_START_KEYS = ("startTime", "start", "from", "start_time", "time")
_END_KEYS = ("endTime", "end", "to", "end_time")
_RANGE_SEPARATOR = re.compile(r"\s*(?:-|–|\bto\b)\s*", re.IGNORECASE)


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _build_window(start_raw: Any, end_raw: Any) -> Optional[AvailabilityWindow]:
    start = parse_time(start_raw)
    if start is None:
        logger.warning("Skipping availability window with unparseable start %r", start_raw)
        return None

    if end_raw in (None, ""):
        return AvailabilityWindow(start=start)

    end = parse_time(end_raw)
    if end is None:
        logger.warning("Skipping availability window with unparseable end %r", end_raw)
        return None
    if end <= start:
        logger.warning("Skipping inverted availability window %r - %r", start_raw, end_raw)
        return None

    return AvailabilityWindow(start=start, end=end)


def _window_from_string(raw: str) -> Optional[AvailabilityWindow]:
    """A bare slot string is either a point (``"09:00"``) or a range (``"9:00 AM - 10:00 AM"``)."""
    parts = _RANGE_SEPARATOR.split(raw.strip())
    # a dash inside a date or an offset ("GMT-0500") is not a range separator
    if len(parts) == 2 and all(parse_time(part) is not None for part in parts):
        return _build_window(parts[0], parts[1])
    return _build_window(raw, None)


def normalize_window(raw: Any) -> Optional[AvailabilityWindow]:
    """
    Normalize one stored time slot into an ``AvailabilityWindow``.

    Returns ``None`` for anything that is not a usable slot.
    """
    if isinstance(raw, str):
        return _window_from_string(raw)

    if isinstance(raw, Mapping):
        start_raw = _first_present(raw, _START_KEYS)
        if start_raw is None:
            logger.warning("Skipping availability slot without a start time: %r", raw)
            return None
        return _build_window(start_raw, _first_present(raw, _END_KEYS))

    if raw is not None:
        logger.warning("Skipping availability slot of unsupported type %s", type(raw).__name__)
    return None


def _normalize_windows(slots: Iterable[Any]) -> List[AvailabilityWindow]:
    windows: List[AvailabilityWindow] = []
    for slot in slots:
        window = normalize_window(slot)
        if window is not None and window not in windows:
            windows.append(window)
    return windows


def _flag_is_false(value: Any) -> bool:
    """``False`` as stored by JSON, or as a string by some exports."""
    if isinstance(value, str):
        return value.strip().lower() in ("false", "no", "0")
    return value is False or value == 0


def normalize_day_availability(raw: Any) -> DayAvailability:
    """
    Normalize one day's stored availability, whichever encoding it uses.

    A mapping without an explicit ``available`` flag counts as available
    when it yields at least one window.
    """
    if raw is None:
        return DayAvailability.unavailable()

    if isinstance(raw, DayAvailability):
        return raw

    if isinstance(raw, (list, tuple)):
        windows = _normalize_windows(raw)
        return DayAvailability(available=bool(windows), windows=tuple(windows))

    if not isinstance(raw, Mapping):
        logger.warning("Unsupported availability encoding %s", type(raw).__name__)
        return DayAvailability.unavailable()

    if _flag_is_false(raw.get("available")):
        return DayAvailability.unavailable()

    windows: List[AvailabilityWindow] = []
    slots = raw.get("timeSlots")
    if isinstance(slots, (list, tuple)):
        windows.extend(_normalize_windows(slots))
    elif slots is not None:
        logger.warning("Ignoring non-list timeSlots value: %r", slots)

    if raw.get("start") not in (None, ""):
        window = _build_window(raw.get("start"), raw.get("end"))
        if window is not None and window not in windows:
            windows.append(window)

    available = bool(windows)
    return DayAvailability(available=available, windows=tuple(windows) if available else ())


def normalize_availability(raw: Optional[Mapping[Any, Any]]) -> Dict[DayOfWeek, DayAvailability]:
    """Normalize a whole week, keyed by day name (any case) or ``DayOfWeek``."""
    week: Dict[DayOfWeek, DayAvailability] = {}
    if not raw:
        return week

    for key, value in raw.items():
        day = key if isinstance(key, DayOfWeek) else DayOfWeek.parse(key)
        if day is None:
            logger.warning("Ignoring availability for unknown day %r", key)
            continue
        week[day] = normalize_day_availability(value)

    return week


def resolve_day_availability(person: Person, on_date: date) -> DayAvailability:
    """
    Availability of ``person`` on a calendar date.

    An absent day or ``available=False`` resolves to no windows at all.
    """
    day = person.availability.get(DayOfWeek.from_date(on_date))
    if day is None or not day.available:
        return DayAvailability.unavailable()
    return day


def is_available_at(person: Person, on_date: date, time_of_day: int) -> bool:
    """Whether availability alone allows a session to start at ``time_of_day``."""
    for window in resolve_day_availability(person, on_date).windows:
        if window.is_point:
            if window.start == time_of_day:
                return True
        elif window.start <= time_of_day < window.end:
            return True
    return False


def check_availability_fit(person: Person, booking: Booking) -> List[AvailabilityIssue]:
    """
    Check every weekday a booking occupies against a person's availability.

    Returns one issue per weekday on which no window holds the whole session.
    """
    issues: List[AvailabilityIssue] = []
    session = format_range(booking.start_time, booking.end_time).replace(" ", "")

    for day in sort_days(booking.occupied_days()):
        day_availability = person.availability.get(day)
        if day_availability is None or not day_availability.is_bookable:
            issues.append(AvailabilityIssue(
                person_id=person.id,
                name=person.display_name(),
                day=day,
                issue=f"Not available on {day.value}",
            ))
            continue

        windows = day_availability.windows
        if any(w.contains(booking.start_time, booking.duration) for w in windows):
            continue

        offered = ", ".join(w.label() for w in windows)
        issues.append(AvailabilityIssue(
            person_id=person.id,
            name=person.display_name(),
            day=day,
            issue=f"Not available {session} (available {offered})",
        ))

    return issues
