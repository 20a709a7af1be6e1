# tutor_scheduling/models/__init__.py
"""
Database models for the scheduling core.

Importing this package registers every table on Base.metadata.
"""

from .booking import ACTIVE_STATUSES, BOOKING_TRANSITIONS, TERMINAL_STATUSES, Booking, BookingStatus
from .time_slot import TimeSlot

__all__ = [
    "ACTIVE_STATUSES",
    "BOOKING_TRANSITIONS",
    "TERMINAL_STATUSES",
    "Booking",
    "BookingStatus",
    "TimeSlot",
]
