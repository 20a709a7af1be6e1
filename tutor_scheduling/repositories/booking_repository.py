# tutor_scheduling/repositories/booking_repository.py
"""
Booking repository.

Read queries for the booking engine and the earnings stats, plus the slot
detachment used when a provider deletes a slot that only terminal bookings
still point at.
"""

from datetime import date, datetime
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _status_values(statuses: Iterable[BookingStatus]) -> List[str]:
    return [BookingStatus(status).value for status in statuses]


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_active_booking_for_slot(self, slot_id: str) -> Optional[Booking]:
        query = self._build_query().filter(
            Booking.slot_id == slot_id,
            Booking.status.in_(_status_values(ACTIVE_STATUSES)),
        )
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Active booking lookup failed for slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking for slot: {str(e)}")

    def get_bookings_for_provider(
        self,
        provider_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
        since_date: Optional[date] = None,
    ) -> List[Booking]:
        query = self._build_query().filter(Booking.provider_id == provider_id)
        if statuses is not None:
            query = query.filter(Booking.status.in_(_status_values(statuses)))
        if since_date is not None:
            query = query.filter(Booking.booking_date >= since_date)
        return self._execute_query(query.order_by(Booking.booking_date, Booking.start_time))

    def get_bookings_for_consumer(
        self,
        consumer_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[Booking]:
        query = self._build_query().filter(Booking.consumer_id == consumer_id)
        if statuses is not None:
            query = query.filter(Booking.status.in_(_status_values(statuses)))
        return self._execute_query(query.order_by(Booking.booking_date, Booking.start_time))

    def get_confirmed_ended_by(
        self, now: datetime, provider_id: Optional[str] = None
    ) -> List[Booking]:
        """Confirmed bookings whose end datetime is at or before ``now``."""
        query = self._build_query().filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.booking_date <= now.date(),
        )
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        # Date+time arithmetic differs per dialect; the day filter above keeps this small
        return [booking for booking in self._execute_query(query) if booking.has_elapsed(now)]

    def detach_slot(self, slot_id: str) -> int:
        """Null out ``slot_id`` on bookings that reference a slot about to be deleted."""
        try:
            return (
                self._build_query()
                .filter(Booking.slot_id == slot_id)
                .update({Booking.slot_id: None}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to detach bookings from slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to detach bookings: {str(e)}")
