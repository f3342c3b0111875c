"""
File-backed schedule store for local use and testing without the backend.
"""

import json
import logging
from pathlib import Path
from typing import Hashable, List, Mapping, Optional

from ..domain.exceptions import BookingStoreError, IncompleteDataError, MissingIdentifierError
from ..domain.models import Booking, Person, PersonRole
from .records import DEFAULT_FALLBACK_DURATION, bookings_from_records, person_from_record

logger = logging.getLogger(__name__)

SAMPLE_DATA_FILE = Path(__file__).parent / "sample_schedule.json"


class JsonScheduleStore:
    """
    Store that serves persons and bookings from a JSON snapshot.

    The file holds ``{"persons": [...], "bookings": [...]}`` in the same
    record shapes the profile and booking storage return.
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        fallback_duration: int = DEFAULT_FALLBACK_DURATION
    ):
        """
        Initialize the store.

        Args:
            data_file: JSON snapshot to load; the packaged sample if omitted
            fallback_duration: Duration for booking records that carry none
        """
        self.data_file = data_file or SAMPLE_DATA_FILE
        self.fallback_duration = fallback_duration
        self.persons: List[Person] = []
        self.bookings: List[Booking] = []
        self._load()

    def _load(self) -> None:
        """Load persons and bookings from the JSON file."""
        if not self.data_file.exists():
            raise BookingStoreError(f"Schedule data file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise BookingStoreError(f"Could not read {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise BookingStoreError("Schedule data must contain a mapping at the root level.")

        persons = data.get("persons") or []
        bookings = data.get("bookings") or []
        if not isinstance(persons, list) or not isinstance(bookings, list):
            raise BookingStoreError("'persons' and 'bookings' must be lists.")

        for record in persons:
            if not isinstance(record, Mapping):
                logger.warning("Skipping person record of unsupported type %s", type(record).__name__)
                continue
            try:
                self.persons.append(person_from_record(record))
            except MissingIdentifierError as exc:
                logger.warning("Skipping person record: %s", exc)

        self.bookings = bookings_from_records(
            bookings,
            fallback_duration=self.fallback_duration,
        )
        logger.debug(
            "Loaded %d persons and %d bookings from %s",
            len(self.persons),
            len(self.bookings),
            self.data_file,
        )

    def get_person(self, person_id: Hashable) -> Optional[Person]:
        for person in self.persons:
            if person.id == person_id:
                return person
        return None

    def persons_by_role(self, role: PersonRole) -> List[Person]:
        return [person for person in self.persons if person.role is role]

    async def get_bookings(self, person_id: Hashable) -> List[Booking]:
        """
        Bookings the person teaches or attends.

        Raises:
            IncompleteDataError: If the snapshot holds no such person
        """
        if self.get_person(person_id) is None:
            raise IncompleteDataError(f"No schedule snapshot for person {person_id!r}")
        return [booking for booking in self.bookings if booking.involves(person_id)]
