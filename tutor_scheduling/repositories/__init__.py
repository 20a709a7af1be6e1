"""
Repository layer for the scheduling core.

Repositories keep SQL out of the services. They never commit; the service
that owns the transaction does.

Usage:
    from tutor_scheduling.repositories import RepositoryFactory

    repository = RepositoryFactory.create_time_slot_repository(db)
    slots = repository.get_slots_for_day(provider_id, slot_date)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .time_slot_repository import TimeSlotRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "RepositoryFactory",
    "TimeSlotRepository",
]
