"""
Tests for the slot generation engine.
"""

from datetime import date

import pytest

from tutorschedule.domain.availability import normalize_availability
from tutorschedule.domain.conflicts import ConflictDetector
from tutorschedule.domain.models import Booking, DayOfWeek, Person, ScheduleType, Slot
from tutorschedule.domain.slot_generator import SlotGenerator

WEDNESDAY = date(2025, 1, 15)
FRIDAY = date(2025, 1, 17)


def _tutor(raw_week, person_id="t-1") -> Person:
    return Person(id=person_id, name="Tutor", availability=normalize_availability(raw_week))


def _generator(buffer_minutes: int = 5, gap: int = 15) -> SlotGenerator:
    return SlotGenerator(ConflictDetector(buffer_minutes=buffer_minutes), default_gap_minutes=gap)


MORNING = {"wednesday": {"available": True, "start": "09:00", "end": "12:00"}}


class TestSlotGenerator:
    """Tests for SlotGenerator.generate_slots."""

    def test_window_without_bookings(self):
        """Test stride stepping stops once a session would run past the window."""
        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, [])

        assert slots == [Slot(540, 600), Slot(615, 675)]
        assert [slot.label for slot in slots] == ["09:00 - 10:00", "10:15 - 11:15"]

    def test_existing_booking_removes_candidate(self):
        """Test that a candidate overlapping an existing booking is dropped."""
        existing = [Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=615,
            duration=60,
            date=WEDNESDAY,
            tutor_id="t-1",
            id="b-1",
        )]

        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, existing)

        assert [slot.label for slot in slots] == ["09:00 - 10:00"]

    def test_buffer_larger_than_half_gap_blocks_neighbour(self):
        """Test that buffer is applied to both sides independently of the stride gap."""
        existing = [Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=615,
            duration=60,
            date=WEDNESDAY,
            tutor_id="t-1",
        )]

        slots = _generator(buffer_minutes=8).generate_slots(_tutor(MORNING), WEDNESDAY, 60, existing)

        assert slots == []

    def test_other_persons_bookings_are_ignored(self):
        existing = [Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=540,
            duration=60,
            date=WEDNESDAY,
            tutor_id="t-other",
        )]

        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, existing)

        assert len(slots) == 2

    def test_booking_on_other_date_is_ignored(self):
        existing = [Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=540,
            duration=60,
            date=date(2025, 1, 22),
            tutor_id="t-1",
        )]

        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, existing)

        assert len(slots) == 2

    def test_recurring_booking_blocks_weekday(self):
        """Test that a weekly booking on the same weekday removes the candidate."""
        existing = [Booking(
            schedule_type=ScheduleType.WEEKLY_RECURRING,
            start_time=540,
            duration=60,
            recurring_days=frozenset({DayOfWeek.WEDNESDAY}),
            student_ids=frozenset({"t-1"}),
        )]

        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, existing)

        assert [slot.start for slot in slots] == [615]

    def test_bookings_not_loaded_yields_nothing(self):
        """Test that a missing snapshot never reports the person as free."""
        assert _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, None) == []

    def test_unavailable_day(self):
        assert _generator().generate_slots(_tutor(MORNING), FRIDAY, 60, []) == []

    def test_point_windows(self):
        """Test that point windows give exactly one slot at their start."""
        person = _tutor({"wednesday": ["10:00", "14:30", "23:30"]})

        slots = _generator().generate_slots(person, WEDNESDAY, 45, [])

        # 23:30 + 45 would pass midnight
        assert slots == [Slot(600, 645), Slot(870, 915)]

    def test_duplicates_are_merged_and_sorted(self):
        """Test overlapping windows that produce the same start only once."""
        person = _tutor({
            "wednesday": ["14:00 - 16:00", "09:00", "14:00"],
        })

        slots = _generator().generate_slots(person, WEDNESDAY, 60, [])

        assert [slot.start for slot in slots] == [540, 840]

    def test_explicit_gap_overrides_default(self):
        slots = _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, [], gap_minutes=0)

        assert [slot.start for slot in slots] == [540, 600, 660]

    def test_window_shorter_than_duration(self):
        person = _tutor({"wednesday": {"start": "09:00", "end": "09:30"}})

        assert _generator().generate_slots(person, WEDNESDAY, 60, []) == []

    def test_slots_do_not_overlap(self):
        """Test that consecutive slots from one window keep the gap between them."""
        person = _tutor({"wednesday": {"start": "08:00", "end": "18:00"}})

        slots = _generator().generate_slots(person, WEDNESDAY, 35, [])

        assert len(slots) > 1
        for previous, current in zip(slots, slots[1:]):
            assert current.start - previous.end == 15
            assert previous.end <= 18 * 60
            assert current.end <= 18 * 60

    def test_more_bookings_never_add_slots(self):
        """Test that adding a booking can only remove slots."""
        person = _tutor({"wednesday": {"start": "08:00", "end": "18:00"}})
        generator = _generator()
        first = Booking(
            schedule_type=ScheduleType.ONE_TIME,
            start_time=600,
            duration=60,
            date=WEDNESDAY,
            tutor_id="t-1",
        )
        second = Booking(
            schedule_type=ScheduleType.WEEKLY_RECURRING,
            start_time=900,
            duration=90,
            recurring_days=frozenset({DayOfWeek.WEDNESDAY}),
            tutor_id="t-1",
        )

        free = set(generator.generate_slots(person, WEDNESDAY, 60, []))
        fewer = set(generator.generate_slots(person, WEDNESDAY, 60, [first]))
        fewest = set(generator.generate_slots(person, WEDNESDAY, 60, [first, second]))

        assert fewest <= fewer <= free
        assert len(fewest) < len(fewer) < len(free)

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_raises(self, duration):
        with pytest.raises(ValueError, match="duration_minutes must be positive"):
            _generator().generate_slots(_tutor(MORNING), WEDNESDAY, duration, [])

    def test_negative_gap_raises(self):
        with pytest.raises(ValueError, match="gap_minutes must not be negative"):
            _generator().generate_slots(_tutor(MORNING), WEDNESDAY, 60, [], gap_minutes=-1)

        with pytest.raises(ValueError, match="default_gap_minutes"):
            SlotGenerator(ConflictDetector(), default_gap_minutes=-5)


class TestBufferMonotonicity:
    """Growing the conflict buffer never adds slots."""

    def test_slot_count_never_increases(self):
        person = _tutor({"wednesday": {"start": "08:00", "end": "18:00"}})
        existing = [
            Booking(
                schedule_type=ScheduleType.ONE_TIME,
                start_time=600,
                duration=60,
                date=WEDNESDAY,
                tutor_id="t-1",
            ),
            Booking(
                schedule_type=ScheduleType.WEEKLY_RECURRING,
                start_time=900,
                duration=90,
                recurring_days=frozenset({DayOfWeek.WEDNESDAY}),
                tutor_id="t-1",
            ),
        ]

        previous = None
        counts = []
        for buffer_minutes in [0, 5, 10, 15, 30]:
            slots = set(_generator(buffer_minutes=buffer_minutes).generate_slots(person, WEDNESDAY, 60, existing))
            if previous is not None:
                assert slots <= previous
            previous = slots
            counts.append(len(slots))

        assert counts == sorted(counts, reverse=True)
        assert counts[0] > counts[-1]
