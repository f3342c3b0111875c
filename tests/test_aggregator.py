"""
Tests for cross-tutor slot aggregation.
"""

from datetime import date

from tutorschedule.domain.aggregator import aggregate_slots
from tutorschedule.domain.availability import normalize_availability
from tutorschedule.domain.conflicts import ConflictDetector
from tutorschedule.domain.models import Booking, Person, ScheduleType
from tutorschedule.domain.slot_generator import SlotGenerator

WEDNESDAY = date(2025, 1, 15)


def _tutor(person_id, raw_week) -> Person:
    return Person(id=person_id, name=person_id.upper(), availability=normalize_availability(raw_week))


class TestAggregateSlots:
    """Tests for aggregate_slots."""

    def setup_method(self):
        self.generator = SlotGenerator(ConflictDetector(buffer_minutes=5), default_gap_minutes=15)
        self.ana = _tutor("ana", {"wednesday": {"start": "09:00", "end": "11:00"}})
        self.ben = _tutor("ben", {"wednesday": ["09:00", "10:15"]})
        self.cara = _tutor("cara", {"wednesday": {"start": "13:00", "end": "14:00"}})

    def test_merges_by_start_in_priority_order(self):
        """Test that each start lists every free tutor, first one first."""
        merged = aggregate_slots(
            [self.ben, self.ana, self.cara],
            WEDNESDAY,
            60,
            None,
            {"ana": [], "ben": [], "cara": []},
            self.generator,
        )

        assert [entry.label for entry in merged] == [
            "Wed 09:00 - 10:00",
            "Wed 10:15 - 11:15",
            "Wed 13:00 - 14:00",
        ]
        assert [p.id for p in merged[0].persons] == ["ben", "ana"]
        assert merged[0].first_person is self.ben
        assert [p.id for p in merged[1].persons] == ["ben"]
        assert [p.id for p in merged[2].persons] == ["cara"]

    def test_persons_without_snapshot_are_skipped(self):
        merged = aggregate_slots(
            [self.ana, self.cara],
            WEDNESDAY,
            60,
            None,
            {"ana": []},
            self.generator,
        )

        assert [entry.start for entry in merged] == [540]
        assert merged[0].persons == [self.ana]

    def test_busy_tutor_drops_out_of_slot(self):
        busy = Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=540,
            duration=60,
            date=WEDNESDAY,
            tutor_id="ben",
        )

        merged = aggregate_slots(
            [self.ben, self.ana],
            WEDNESDAY,
            60,
            None,
            {"ana": [], "ben": [busy]},
            self.generator,
        )

        assert [p.id for p in merged[0].persons] == ["ana"]
        assert merged[0].first_person is self.ana

    def test_nobody_available(self):
        merged = aggregate_slots([self.ana], date(2025, 1, 16), 60, None, {"ana": []}, self.generator)

        assert merged == []
