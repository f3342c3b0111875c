"""
Domain models for availability, bookings and generated slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Hashable, List, Mapping, Optional, Tuple

from .timecodec import format_range, format_time


class DayOfWeek(Enum):
    """Weekday, indexed Sunday-first: Sunday is 0, Saturday is 6."""
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def index(self) -> int:
        return _DAY_ORDER.index(self)

    @property
    def short_name(self) -> str:
        """Three-letter label, e.g. ``Wed``."""
        return self.value[:3].capitalize()

    @classmethod
    def from_date(cls, day: date) -> "DayOfWeek":
        """Weekday of a calendar date (proleptic Gregorian)."""
        return _DAY_ORDER[day.isoweekday() % 7]

    @classmethod
    def parse(cls, name: str) -> "DayOfWeek | None":
        """Look up a weekday by full or three-letter name, case-insensitive."""
        key = str(name).strip().lower()
        for day in _DAY_ORDER:
            if key in (day.value, day.value[:3]):
                return day
        return None


_DAY_ORDER: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)


def sort_days(days) -> List[DayOfWeek]:
    """Order weekdays Sunday-first."""
    return sorted(days, key=lambda d: d.index)


class ScheduleType(Enum):
    ONE_TIME = "one-time"
    WEEKLY_RECURRING = "weekly-recurring"


class PersonRole(Enum):
    TUTOR = "tutor"
    STUDENT = "student"


@dataclass(frozen=True)
class AvailabilityWindow:
    """
    A bookable time-of-day range, or a single legacy "exact slot" point.

    Invariant: if ``end`` is set, ``start < end``. A point window has
    ``end = None`` and only ever matches a session starting exactly at
    ``start``.
    """
    start: int
    end: Optional[int] = None

    def __post_init__(self):
        if self.end is not None and self.start >= self.end:
            raise ValueError(
                f"Window start {self.start} must be before window end {self.end}"
            )

    @property
    def is_point(self) -> bool:
        return self.end is None

    def bounds(self, duration: int) -> Tuple[int, int]:
        """Concrete ``[start, end)`` for a session of ``duration`` minutes."""
        if self.end is None:
            return self.start, self.start + duration
        return self.start, self.end

    def contains(self, start: int, duration: int) -> bool:
        """Whether a session ``[start, start + duration)`` fits in this window."""
        if self.end is None:
            return start == self.start
        return self.start <= start and start + duration <= self.end

    def label(self) -> str:
        if self.end is None:
            return format_time(self.start)
        return format_range(self.start, self.end)


@dataclass(frozen=True)
class DayAvailability:
    """Availability for one weekday."""
    available: bool
    windows: Tuple[AvailabilityWindow, ...] = ()

    @classmethod
    def unavailable(cls) -> "DayAvailability":
        return cls(available=False, windows=())

    @property
    def is_bookable(self) -> bool:
        return self.available and bool(self.windows)


@dataclass(frozen=True)
class Person:
    """A tutor or a student, with weekly availability authored elsewhere."""
    id: Hashable
    name: str = ""
    role: PersonRole = PersonRole.TUTOR
    availability: Mapping[DayOfWeek, DayAvailability] = field(default_factory=dict)

    def display_name(self) -> str:
        return self.name or str(self.id)


@dataclass(frozen=True)
class Booking:
    """
    A scheduled class, either on one date or weekly on a set of weekdays.

    Bookings are compared pairwise by weekday pattern; occurrences are never
    materialized.
    """
    schedule_type: ScheduleType
    start_time: int
    duration: int
    tutor_id: Optional[Hashable] = None
    student_ids: FrozenSet[Hashable] = frozenset()
    date: Optional[date] = None
    recurring_days: FrozenSet[DayOfWeek] = frozenset()
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    id: Optional[Hashable] = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Booking duration must be positive, got {self.duration}")
        if self.schedule_type is ScheduleType.ONE_TIME and self.date is None:
            raise ValueError("One-time booking requires a date")
        if self.schedule_type is ScheduleType.WEEKLY_RECURRING and not self.recurring_days:
            raise ValueError("Weekly-recurring booking requires at least one recurring day")
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ValueError(
                f"Series start {self.start_date} must not be after series end {self.end_date}"
            )

    @property
    def is_recurring(self) -> bool:
        return self.schedule_type is ScheduleType.WEEKLY_RECURRING

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    def buffered_range(self, gap_minutes: int) -> Tuple[int, int]:
        """``[start - gap, end + gap)`` in minutes since midnight."""
        return self.start_time - gap_minutes, self.end_time + gap_minutes

    def occupied_days(self) -> FrozenSet[DayOfWeek]:
        """Weekdays this booking can fall on."""
        if self.is_recurring:
            return self.recurring_days
        return frozenset({DayOfWeek.from_date(self.date)})

    def involves(self, person_id: Hashable) -> bool:
        return self.tutor_id == person_id or person_id in self.student_ids

    def within_series(self, day: date) -> bool:
        """Whether ``day`` falls inside ``[start_date, end_date]`` (open bounds pass)."""
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True

    def time_label(self) -> str:
        return format_range(self.start_time, self.end_time)


@dataclass(frozen=True)
class Slot:
    """A generated candidate start time for a session."""
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def label(self) -> str:
        return format_range(self.start, self.end)


@dataclass
class AggregatedSlot:
    """A slot merged across people, with everyone free at that time."""
    start: int
    end: int
    label: str
    persons: List[Person] = field(default_factory=list)

    @property
    def first_person(self) -> Optional[Person]:
        """First eligible person, in the order the pool was given."""
        return self.persons[0] if self.persons else None


@dataclass(frozen=True)
class Conflict:
    """An existing booking that collides with a proposed one."""
    other: Booking
    day_label: str
    time_label: str
    conflicting_student_ids: Tuple[Hashable, ...] = ()

    @property
    def description(self) -> str:
        return f"class scheduled from {self.time_label} on {self.day_label}"


@dataclass
class ConflictReport:
    """All collisions found for one proposed booking."""
    collisions: List[Conflict] = field(default_factory=list)

    @property
    def conflict(self) -> bool:
        return bool(self.collisions)

    def __bool__(self) -> bool:
        return self.conflict


@dataclass(frozen=True)
class AvailabilityIssue:
    """A weekday on which a booking does not fit someone's availability."""
    person_id: Hashable
    name: str
    day: DayOfWeek
    issue: str

    def format_display(self) -> str:
        return f"{self.name} ({self.day.value}): {self.issue}"


AvailabilityMap = Dict[DayOfWeek, DayAvailability]
