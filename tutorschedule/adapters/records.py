"""
Translation of stored class and profile records into domain models.

Records arrive as plain dicts from booking and profile storage. Malformed
bookings are logged and dropped; the engine never fails on bad data.
"""

import logging
from datetime import date, datetime
from typing import Any, Hashable, Iterable, List, Mapping, Optional

import pendulum
from pendulum import Date, DateTime

from ..domain.availability import normalize_availability
from ..domain.exceptions import MissingIdentifierError
from ..domain.models import Booking, DayOfWeek, Person, PersonRole, ScheduleType
from ..domain.timecodec import parse_time

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_DURATION = 35

_PROFILE_KEYS = ("tutorProfile", "tutor_profile", "studentProfile", "student_profile")


def parse_calendar_date(value: Any) -> Optional[date]:
    """
    Parse a stored date (``YYYY-MM-DD`` or a full ISO datetime) into a date.

    Returns None if the value is not a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = pendulum.parse(value.strip(), exact=True)
    except ValueError:
        return None

    if isinstance(parsed, DateTime):
        return parsed.date()
    if isinstance(parsed, Date):
        return parsed
    return None


def record_id(record: Mapping[str, Any]) -> Optional[Hashable]:
    """Stable id of a stored record (``_id`` or ``id``)."""
    for key in ("_id", "id"):
        value = record.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _reference_id(reference: Any) -> Optional[Hashable]:
    if isinstance(reference, Mapping):
        return record_id(reference)
    if reference in (None, ""):
        return None
    return str(reference)


def _duration(record: Mapping[str, Any], fallback: int) -> int:
    for key in ("customDuration", "duration"):
        value = record.get(key)
        if value in (None, "", 0):
            continue
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric %s %r", key, value)
            continue
        if minutes > 0:
            return minutes
    return fallback


def _recurring_days(raw: Any) -> frozenset:
    days = set()
    if raw is None:
        return frozenset(days)
    if not isinstance(raw, (list, tuple, set, frozenset)):
        logger.warning("Ignoring non-list recurringDays value %r", raw)
        return frozenset(days)
    for name in raw:
        day = DayOfWeek.parse(name)
        if day is None:
            logger.warning("Ignoring unknown recurring day %r", name)
            continue
        days.add(day)
    return frozenset(days)


def booking_from_record(
    record: Mapping[str, Any],
    fallback_duration: int = DEFAULT_FALLBACK_DURATION
) -> Optional[Booking]:
    """
    Build a Booking from a stored class record.

    Expected fields: ``scheduleType``, ``classDate``/``startDate``/``endDate``,
    ``recurringDays``, ``startTime``, ``customDuration``/``duration``,
    ``tutor`` (or ``tutorId``), ``students`` (or ``studentIds``), ``_id``/``id``.

    Returns:
        Booking, or None if the record cannot describe a schedulable class
    """
    if not isinstance(record, Mapping):
        logger.warning("Skipping booking record of unsupported type %s", type(record).__name__)
        return None

    booking_id = record_id(record)

    start_time = parse_time(record.get("startTime"))
    if start_time is None:
        logger.warning("Skipping booking %s: unparseable startTime %r", booking_id, record.get("startTime"))
        return None

    raw_type = str(record.get("scheduleType") or ScheduleType.ONE_TIME.value).lower()
    try:
        schedule_type = ScheduleType(raw_type)
    except ValueError:
        logger.warning("Skipping booking %s: unknown scheduleType %r", booking_id, raw_type)
        return None

    tutor_id = _reference_id(record.get("tutor")) or _reference_id(record.get("tutorId"))
    students = record.get("students")
    if students is None:
        students = record.get("studentIds") or []
    if not isinstance(students, (list, tuple)):
        logger.warning("Ignoring non-list students on booking %s", booking_id)
        students = []
    student_ids = frozenset(
        sid for sid in (_reference_id(student) for student in students) if sid is not None
    )

    try:
        return Booking(
            id=booking_id,
            schedule_type=schedule_type,
            start_time=start_time,
            duration=_duration(record, fallback_duration),
            tutor_id=tutor_id,
            student_ids=student_ids,
            date=parse_calendar_date(record.get("classDate")),
            recurring_days=_recurring_days(record.get("recurringDays")),
            start_date=parse_calendar_date(record.get("startDate")),
            end_date=parse_calendar_date(record.get("endDate")),
        )
    except ValueError as exc:
        logger.warning("Skipping booking %s: %s", booking_id, exc)
        return None


def bookings_from_records(
    records: Iterable[Mapping[str, Any]],
    fallback_duration: int = DEFAULT_FALLBACK_DURATION
) -> List[Booking]:
    """Convert stored records, dropping the ones that are not usable."""
    bookings: List[Booking] = []
    for record in records:
        booking = booking_from_record(record, fallback_duration)
        if booking is not None:
            bookings.append(booking)
    return bookings


def _display_name(record: Mapping[str, Any]) -> str:
    if record.get("name"):
        return str(record["name"])
    for first_key, last_key in (("firstName", "lastName"), ("first_name", "last_name")):
        full = " ".join(
            str(record[key]) for key in (first_key, last_key) if record.get(key)
        )
        if full:
            return full
    return str(record.get("username") or "")


def _raw_availability(record: Mapping[str, Any]) -> Any:
    if record.get("availability") is not None:
        return record["availability"]
    for key in _PROFILE_KEYS:
        profile = record.get(key)
        if isinstance(profile, Mapping) and profile.get("availability") is not None:
            return profile["availability"]
    return None


def person_from_record(record: Mapping[str, Any]) -> Person:
    """
    Build a Person from a stored user/profile record.

    Raises:
        MissingIdentifierError: If the record has no id
    """
    person_id = record_id(record)
    if person_id is None:
        raise MissingIdentifierError(f"Person record without an id: {dict(record)!r}")

    raw_role = str(record.get("role") or PersonRole.TUTOR.value).lower()
    try:
        role = PersonRole(raw_role)
    except ValueError:
        logger.warning("Unknown role %r for %s, treating as tutor", raw_role, person_id)
        role = PersonRole.TUTOR

    raw_availability = _raw_availability(record)
    if raw_availability is not None and not isinstance(raw_availability, Mapping):
        logger.warning("Ignoring availability of %s: expected a mapping of days", person_id)
        raw_availability = None

    return Person(
        id=person_id,
        name=_display_name(record),
        role=role,
        availability=normalize_availability(raw_availability),
    )
