"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduler import BookingStoreProtocol, BookingValidation, SchedulingService

__all__ = ["BookingStoreProtocol", "BookingValidation", "SchedulingService"]
