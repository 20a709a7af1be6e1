# tutor_scheduling/repositories/time_slot_repository.py
"""
Time slot repository.

Data access for provider calendars. Occupancy writes (``claim_slot`` and
``release_slot``) are single conditional UPDATE statements so the
check-and-set is atomic in the database as well as under the calendar lock.
"""

from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.time_slot import TimeSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TimeSlotRepository(BaseRepository[TimeSlot]):
    def __init__(self, db: Session):
        super().__init__(db, TimeSlot)

    def get_slots_for_day(self, provider_id: str, slot_date: date) -> List[TimeSlot]:
        # Another session may have flipped ``occupied``; reload rows already in the identity map
        query = (
            self._build_query()
            .filter(TimeSlot.provider_id == provider_id, TimeSlot.slot_date == slot_date)
            .order_by(TimeSlot.start_time)
            .populate_existing()
        )
        return self._execute_query(query)

    def get_slots_in_range(
        self,
        provider_id: str,
        start_date: date,
        end_date: date,
        include_occupied: bool = True,
    ) -> List[TimeSlot]:
        query = self._build_query().filter(
            TimeSlot.provider_id == provider_id,
            TimeSlot.slot_date >= start_date,
            TimeSlot.slot_date <= end_date,
        )
        if not include_occupied:
            query = query.filter(TimeSlot.occupied.is_(False))
        query = query.order_by(TimeSlot.slot_date, TimeSlot.start_time).populate_existing()
        return self._execute_query(query)

    def find_overlapping(
        self,
        provider_id: str,
        slot_date: date,
        start_time: time,
        end_time: time,
    ) -> Optional[TimeSlot]:
        """Return the first slot on that day whose half-open interval overlaps the range."""
        query = (
            self._build_query()
            .filter(
                TimeSlot.provider_id == provider_id,
                TimeSlot.slot_date == slot_date,
                TimeSlot.start_time < end_time,
                TimeSlot.end_time > start_time,
            )
            .order_by(TimeSlot.start_time)
        )
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Overlap lookup failed: {str(e)}")
            raise RepositoryException(f"Failed to check slot overlap: {str(e)}")

    def claim_slot(self, slot_id: str) -> bool:
        """Flip ``occupied`` to true only if it is currently false. True if this call won."""
        try:
            updated = (
                self._build_query()
                .filter(TimeSlot.id == slot_id, TimeSlot.occupied.is_(False))
                .update({TimeSlot.occupied: True}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to claim slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to claim slot: {str(e)}")
        return updated == 1

    def release_slot(self, slot_id: str) -> bool:
        """Clear ``occupied``. False when the slot no longer exists."""
        try:
            updated = (
                self._build_query()
                .filter(TimeSlot.id == slot_id)
                .update({TimeSlot.occupied: False}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to release slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to release slot: {str(e)}")
        return updated == 1

    def get_unoccupied_ids_for_day(self, provider_id: str, slot_date: date) -> List[str]:
        """Ids of the day's free slots, read from the database rather than the session."""
        try:
            rows = (
                self.db.query(TimeSlot.id)
                .filter(
                    TimeSlot.provider_id == provider_id,
                    TimeSlot.slot_date == slot_date,
                    TimeSlot.occupied.is_(False),
                )
                .order_by(TimeSlot.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Free slot lookup failed for {provider_id} on {slot_date}: {str(e)}")
            raise RepositoryException(f"Failed to load free slots: {str(e)}")
        return [slot_id for (slot_id,) in rows]

    def delete_unoccupied(self, slot_ids: List[str]) -> int:
        """Delete the given slots in one statement, skipping any that became occupied."""
        if not slot_ids:
            return 0
        try:
            return (
                self._build_query()
                .filter(TimeSlot.id.in_(slot_ids), TimeSlot.occupied.is_(False))
                .delete(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete free slots: {str(e)}")
            raise RepositoryException(f"Failed to delete slots: {str(e)}")

    def count_occupied_for_day(self, provider_id: str, slot_date: date) -> int:
        return (
            self._build_query()
            .filter(
                TimeSlot.provider_id == provider_id,
                TimeSlot.slot_date == slot_date,
                TimeSlot.occupied.is_(True),
            )
            .count()
        )
