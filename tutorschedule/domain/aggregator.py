"""
Cross-person slot aggregation: "pick a time" before "pick a tutor".
"""

import logging
from datetime import date
from typing import Dict, Hashable, List, Mapping, Optional, Sequence

from .models import AggregatedSlot, Booking, DayOfWeek, Person
from .slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


def aggregate_slots(
    persons: Sequence[Person],
    on_date: date,
    duration_minutes: int,
    gap_minutes: Optional[int],
    bookings_by_person: Mapping[Hashable, Sequence[Booking]],
    generator: SlotGenerator
) -> List[AggregatedSlot]:
    """
    Merge every person's slots into one list keyed by start time.

    Persons are appended to each slot in input order, so ``first_person`` is
    the first eligible one. A person missing from ``bookings_by_person`` has
    no loaded snapshot and contributes nothing.
    """
    weekday = DayOfWeek.from_date(on_date).short_name
    merged: Dict[int, AggregatedSlot] = {}

    for person in persons:
        existing = bookings_by_person.get(person.id)
        if existing is None:
            logger.debug("Skipping %s: bookings not loaded", person.id)
            continue

        for slot in generator.generate_slots(
            person, on_date, duration_minutes, existing, gap_minutes
        ):
            entry = merged.get(slot.start)
            if entry is None:
                entry = AggregatedSlot(
                    start=slot.start,
                    end=slot.end,
                    label=f"{weekday} {slot.label}",
                )
                merged[slot.start] = entry
            entry.persons.append(person)

    return [merged[start] for start in sorted(merged)]
