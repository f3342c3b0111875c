"""
Adapters layer - Booking and profile storage integrations.
"""

from .json_store import JsonScheduleStore
from .records import booking_from_record, bookings_from_records, person_from_record

__all__ = ["JsonScheduleStore", "booking_from_record", "bookings_from_records", "person_from_record"]
