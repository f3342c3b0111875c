"""
Conflict detection between a proposed booking and existing bookings.

Two bookings collide when they can land on the same calendar date and their
buffered time ranges overlap. The buffer is applied to both sides of both
bookings, so two back-to-back sessions need ``2 * buffer`` minutes between
them.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Hashable, Iterable, List, Mapping, Optional, Sequence

from .models import Booking, Conflict, ConflictReport, sort_days


class ConflictDetector:
    """
    Decides whether a proposed booking collides with existing ones.

    Date compatibility per pair of scheduling regimes:
    - one-time vs one-time: same date
    - one-time vs recurring: the one-time date's weekday is a recurring day
    - recurring vs recurring: the recurring day sets intersect

    The recurring series' start/end dates are ignored unless
    ``check_series_bounds`` is set.
    """

    def __init__(self, buffer_minutes: int = 5, check_series_bounds: bool = False):
        if buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {buffer_minutes}")
        self.buffer_minutes = buffer_minutes
        self.check_series_bounds = check_series_bounds

    def has_conflict(
        self,
        proposed: Booking,
        existing: Iterable[Booking],
        person_id: Hashable,
        exclude_booking_id: Optional[Hashable] = None
    ) -> ConflictReport:
        """
        Check ``proposed`` against every existing booking ``person_id`` is part of.

        Args:
            proposed: The booking being created or edited
            existing: Snapshot of existing bookings
            person_id: Tutor or student whose bookings are checked
            exclude_booking_id: Id of the booking being edited, never checked against itself

        Returns:
            ConflictReport listing every colliding booking
        """
        if person_id is None:
            raise ValueError("person_id is required for a conflict check")

        collisions: List[Conflict] = []
        for other in self._candidates(existing, exclude_booking_id):
            if not other.involves(person_id):
                continue
            conflict = self.collide(proposed, other)
            if conflict is None:
                continue
            if person_id in other.student_ids:
                conflict = replace(conflict, conflicting_student_ids=(person_id,))
            collisions.append(conflict)

        return ConflictReport(collisions=collisions)

    def check_tutor(
        self,
        proposed: Booking,
        existing: Iterable[Booking],
        tutor_id: Hashable,
        exclude_booking_id: Optional[Hashable] = None
    ) -> ConflictReport:
        """Collisions with bookings taught by ``tutor_id``."""
        if tutor_id is None:
            raise ValueError("tutor_id is required for a tutor conflict check")

        collisions: List[Conflict] = []
        for other in self._candidates(existing, exclude_booking_id):
            if other.tutor_id != tutor_id:
                continue
            conflict = self.collide(proposed, other)
            if conflict is not None:
                collisions.append(conflict)

        return ConflictReport(collisions=collisions)

    def check_students(
        self,
        proposed: Booking,
        existing: Iterable[Booking],
        student_ids: Sequence[Hashable],
        exclude_booking_id: Optional[Hashable] = None
    ) -> ConflictReport:
        """Collisions with bookings attended by any of ``student_ids``."""
        collisions: List[Conflict] = []
        if not student_ids:
            return ConflictReport(collisions=collisions)

        for other in self._candidates(existing, exclude_booking_id):
            shared = tuple(sid for sid in student_ids if sid in other.student_ids)
            if not shared:
                continue
            conflict = self.collide(proposed, other)
            if conflict is not None:
                collisions.append(Conflict(
                    other=other,
                    day_label=conflict.day_label,
                    time_label=conflict.time_label,
                    conflicting_student_ids=shared,
                ))

        return ConflictReport(collisions=collisions)

    def collide(self, proposed: Booking, other: Booking) -> Optional[Conflict]:
        """The collision between two bookings, or ``None`` if they never overlap."""
        day_label = self._shared_day_label(proposed, other)
        if day_label is None:
            return None
        if not self.overlaps(proposed, other):
            return None
        return Conflict(other=other, day_label=day_label, time_label=other.time_label())

    def overlaps(self, first: Booking, second: Booking) -> bool:
        """Half-open overlap of both bookings' buffered ranges."""
        start_a, end_a = first.buffered_range(self.buffer_minutes)
        start_b, end_b = second.buffered_range(self.buffer_minutes)
        return start_a < end_b and start_b < end_a

    @staticmethod
    def _candidates(
        existing: Iterable[Booking],
        exclude_booking_id: Optional[Hashable]
    ) -> Iterable[Booking]:
        for other in existing:
            if exclude_booking_id is not None and other.id == exclude_booking_id:
                continue
            yield other

    def _shared_day_label(self, proposed: Booking, other: Booking) -> Optional[str]:
        """
        Label of the date(s) both bookings can occupy, or ``None`` if there are none.
        """
        if not proposed.is_recurring and not other.is_recurring:
            if proposed.date == other.date:
                return proposed.date.isoformat()
            return None

        if not proposed.is_recurring or not other.is_recurring:
            single, series = (proposed, other) if other.is_recurring else (other, proposed)
            day = next(iter(single.occupied_days()))
            if day not in series.recurring_days:
                return None
            if self.check_series_bounds and not series.within_series(single.date):
                return None
            return day.value

        shared_days = proposed.recurring_days & other.recurring_days
        if not shared_days:
            return None
        if self.check_series_bounds and not _series_ranges_meet(proposed, other):
            return None
        return ", ".join(day.value for day in sort_days(shared_days))


def _series_ranges_meet(first: Booking, second: Booking) -> bool:
    if first.end_date is not None and second.start_date is not None:
        if first.end_date < second.start_date:
            return False
    if second.end_date is not None and first.start_date is not None:
        if second.end_date < first.start_date:
            return False
    return True


def conflict_messages(
    tutor_report: Optional[ConflictReport],
    student_report: Optional[ConflictReport],
    tutor_name: Optional[str] = None,
    student_names: Optional[Mapping[Hashable, str]] = None
) -> List[str]:
    """
    One user-facing sentence per collision, tutor collisions first.
    """
    messages: List[str] = []
    names = student_names or {}

    if tutor_report:
        who = tutor_name or "Selected tutor"
        for conflict in tutor_report.collisions:
            messages.append(
                f"{who} already has a {conflict.description}. "
                "Please select a different time slot."
            )

    if student_report:
        for conflict in student_report.collisions:
            students = conflict.conflicting_student_ids
            who = ", ".join(names.get(sid, "Selected student") for sid in students)
            verb = "have" if len(students) > 1 else "has"
            messages.append(
                f"{who} already {verb} a {conflict.description}. "
                "Please select a different time slot."
            )

    return messages
