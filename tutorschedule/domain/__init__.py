"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .aggregator import aggregate_slots
from .availability import (
    check_availability_fit,
    is_available_at,
    normalize_availability,
    normalize_day_availability,
    resolve_day_availability,
)
from .conflicts import ConflictDetector, conflict_messages
from .models import (
    AggregatedSlot,
    AvailabilityIssue,
    AvailabilityWindow,
    Booking,
    Conflict,
    ConflictReport,
    DayAvailability,
    DayOfWeek,
    Person,
    PersonRole,
    ScheduleType,
    Slot,
)
from .slot_generator import SlotGenerator
from .timecodec import format_range, format_time, parse_time, require_time

__all__ = [
    "AggregatedSlot",
    "AvailabilityIssue",
    "AvailabilityWindow",
    "Booking",
    "Conflict",
    "ConflictDetector",
    "ConflictReport",
    "DayAvailability",
    "DayOfWeek",
    "Person",
    "PersonRole",
    "ScheduleType",
    "Slot",
    "SlotGenerator",
    "aggregate_slots",
    "check_availability_fit",
    "conflict_messages",
    "format_range",
    "format_time",
    "is_available_at",
    "normalize_availability",
    "normalize_day_availability",
    "parse_time",
    "require_time",
    "resolve_day_availability",
]
