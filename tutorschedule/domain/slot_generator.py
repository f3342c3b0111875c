"""
Core business logic for generating bookable session slots.

Pure domain logic: availability and existing bookings come in as plain
values, a sorted list of slots goes out. Nothing here fetches, caches or
mutates.
"""

import logging
from datetime import date
from typing import Dict, Iterator, List, Optional, Sequence

from .availability import resolve_day_availability
from .conflicts import ConflictDetector
from .models import AvailabilityWindow, Booking, Person, ScheduleType, Slot
from .timecodec import MINUTES_PER_DAY

logger = logging.getLogger(__name__)


class SlotGenerator:
    """
    Generates candidate start times for a session of a given duration.

    Algorithm, per availability window on the requested date:
    1. Point window: one candidate at the window's start
    2. Ranged window: candidates at start, start + (duration + gap), ...
       while the session still ends inside the window
    3. Drop every candidate that conflicts with an existing booking
    4. Deduplicate by start and sort ascending

    Stepping by ``duration + gap`` keeps sibling candidates buffer-compliant
    with each other, so only existing bookings need checking.
    """

    def __init__(self, conflict_detector: ConflictDetector, default_gap_minutes: int = 15):
        if default_gap_minutes < 0:
            raise ValueError(f"default_gap_minutes must not be negative, got {default_gap_minutes}")
        self.conflict_detector = conflict_detector
        self.default_gap_minutes = default_gap_minutes

    def generate_slots(
        self,
        person: Person,
        on_date: date,
        duration_minutes: int,
        existing_bookings: Optional[Sequence[Booking]],
        gap_minutes: Optional[int] = None
    ) -> List[Slot]:
        """
        Find all bookable slots for a person on a date.

        Args:
            person: Tutor or student whose availability is used
            on_date: Calendar date to generate slots for
            duration_minutes: Requested session length
            existing_bookings: Snapshot of the person's bookings, or None if not loaded yet
            gap_minutes: Minutes between consecutive candidates (defaults to the configured gap)

        Returns:
            Slots ordered by start time; empty if bookings are not loaded
        """
        if duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")
        gap = self.default_gap_minutes if gap_minutes is None else gap_minutes
        if gap < 0:
            raise ValueError(f"gap_minutes must not be negative, got {gap}")

        if existing_bookings is None:
            logger.debug(
                "Bookings for %s on %s not loaded; returning no slots",
                person.id,
                on_date,
            )
            return []

        day = resolve_day_availability(person, on_date)
        slots: Dict[int, Slot] = {}

        for window in day.windows:
            for start in self._candidate_starts(window, duration_minutes, gap):
                if start in slots:
                    continue
                if self._is_free(person, on_date, start, duration_minutes, existing_bookings):
                    slots[start] = Slot(start=start, end=start + duration_minutes)

        return [slots[start] for start in sorted(slots)]

    def _candidate_starts(
        self,
        window: AvailabilityWindow,
        duration: int,
        gap: int
    ) -> Iterator[int]:
        if window.is_point:
            # exact-slot availability; a session must not run past midnight
            if window.start + duration <= MINUTES_PER_DAY:
                yield window.start
            return

        start = window.start
        while start + duration <= window.end:
            yield start
            start += duration + gap

    def _is_free(
        self,
        person: Person,
        on_date: date,
        start: int,
        duration: int,
        existing_bookings: Sequence[Booking]
    ) -> bool:
        candidate = Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=start,
            duration=duration,
            date=on_date,
        )
        report = self.conflict_detector.has_conflict(candidate, existing_bookings, person.id)
        return not report.conflict
