"""
Application service for finding slots and validating bookings.

The service fetches a snapshot of existing bookings through a store adapter
and only then hands plain data to the pure domain engine. The engine never
fetches anything itself; this is the one place where loading and computing
are sequenced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Hashable, List, Mapping, Optional, Protocol, Sequence

from ..domain.aggregator import aggregate_slots
from ..domain.availability import check_availability_fit
from ..domain.conflicts import ConflictDetector, conflict_messages
from ..domain.exceptions import IncompleteDataError
from ..domain.models import (
    AggregatedSlot,
    AvailabilityIssue,
    Booking,
    ConflictReport,
    Person,
    Slot,
)
from ..domain.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the booking storage behaviour needed by the service."""

    async def get_bookings(self, person_id: Hashable) -> Sequence[Booking]:
        """Return every booking the person teaches or attends."""


@dataclass
class BookingValidation:
    """
    Outcome of validating a proposed booking for its tutor and students.

    ``unverified_person_ids`` lists participants whose bookings were not
    loaded; their collisions are unknown until the booking is revalidated.
    """
    tutor_report: ConflictReport = field(default_factory=ConflictReport)
    student_report: ConflictReport = field(default_factory=ConflictReport)
    availability_issues: List[AvailabilityIssue] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    unverified_person_ids: List[Hashable] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return self.tutor_report.conflict or self.student_report.conflict

    @property
    def is_complete(self) -> bool:
        return not self.unverified_person_ids


class SchedulingService:
    """
    Orchestrates booking retrieval, slot generation and conflict checks.

    Dependency inversion toward a protocol makes it easy to plug in the real
    booking backend or the JSON snapshot store in tests.
    """

    def __init__(
        self,
        booking_store: BookingStoreProtocol,
        slot_generator: SlotGenerator,
    ) -> None:
        self._booking_store = booking_store
        self._slot_generator = slot_generator

    @property
    def conflict_detector(self) -> ConflictDetector:
        return self._slot_generator.conflict_detector

    async def find_slots(
        self,
        *,
        person: Person,
        on_date: date,
        duration_minutes: int,
        gap_minutes: Optional[int] = None,
    ) -> List[Slot]:
        """
        Load the person's bookings, then generate slots from that snapshot.
        """
        existing = await self.fetch_bookings(person.id)
        return self._slot_generator.generate_slots(
            person,
            on_date,
            duration_minutes,
            existing,
            gap_minutes,
        )

    async def find_slots_across(
        self,
        *,
        persons: Sequence[Person],
        on_date: date,
        duration_minutes: int,
        gap_minutes: Optional[int] = None,
    ) -> List[AggregatedSlot]:
        """Load every person's bookings, then aggregate their slots by start time."""
        bookings_by_person = await self.fetch_bookings_for(
            [person.id for person in persons]
        )
        return aggregate_slots(
            persons,
            on_date,
            duration_minutes,
            gap_minutes,
            bookings_by_person,
            self._slot_generator,
        )

    async def validate_booking(
        self,
        *,
        proposed: Booking,
        exclude_booking_id: Optional[Hashable] = None,
        tutor: Optional[Person] = None,
        students: Sequence[Person] = (),
    ) -> BookingValidation:
        """
        Check a proposed booking against the tutor's and students' bookings.

        Persons whose bookings are not loaded are not checked at all and are
        listed in ``unverified_person_ids``; the caller should revalidate
        once the store has them.
        """
        result = BookingValidation()
        student_ids = sorted(proposed.student_ids, key=str)
        participant_ids: List[Hashable] = []
        if proposed.tutor_id is not None:
            participant_ids.append(proposed.tutor_id)
        participant_ids.extend(sid for sid in student_ids if sid not in participant_ids)

        loaded = await self.fetch_bookings_for(participant_ids)
        result.unverified_person_ids = [pid for pid in participant_ids if pid not in loaded]
        if result.unverified_person_ids:
            logger.info(
                "Validating without bookings for %s",
                ", ".join(map(str, result.unverified_person_ids)),
            )
        snapshot = self._merge_snapshots(loaded)

        if proposed.tutor_id is not None and proposed.tutor_id in loaded:
            result.tutor_report = self.conflict_detector.check_tutor(
                proposed, snapshot, proposed.tutor_id, exclude_booking_id
            )
        result.student_report = self.conflict_detector.check_students(
            proposed,
            snapshot,
            [sid for sid in student_ids if sid in loaded],
            exclude_booking_id,
        )

        for person in [tutor, *students]:
            if person is not None:
                result.availability_issues.extend(check_availability_fit(person, proposed))

        result.messages = conflict_messages(
            result.tutor_report,
            result.student_report,
            tutor.display_name() if tutor else None,
            {student.id: student.display_name() for student in students},
        )
        return result

    async def fetch_bookings(self, person_id: Hashable) -> Optional[List[Booking]]:
        """
        Fetch one person's bookings; None if the store has no snapshot yet.
        """
        try:
            return list(await self._booking_store.get_bookings(person_id))
        except IncompleteDataError as exc:
            logger.info("Bookings for %s not available yet: %s", person_id, exc)
            return None

    async def fetch_bookings_for(
        self,
        person_ids: Sequence[Hashable],
    ) -> Dict[Hashable, List[Booking]]:
        """
        Fetch bookings for several persons.

        Persons without a snapshot are left out of the map, which downstream
        code treats as "not loaded".
        """
        loaded: Dict[Hashable, List[Booking]] = {}
        for person_id in person_ids:
            if person_id in loaded:
                continue
            bookings = await self.fetch_bookings(person_id)
            if bookings is not None:
                loaded[person_id] = bookings
        return loaded

    @staticmethod
    def _merge_snapshots(
        bookings_by_person: Mapping[Hashable, Sequence[Booking]],
    ) -> List[Booking]:
        """Union of several persons' bookings, each booking once."""
        merged: List[Booking] = []
        seen_ids = set()
        for bookings in bookings_by_person.values():
            for booking in bookings:
                if booking.id is not None:
                    if booking.id in seen_ids:
                        continue
                    seen_ids.add(booking.id)
                elif booking in merged:
                    continue
                merged.append(booking)
        return merged
