# tutor_scheduling/services/availability_service.py
"""
Availability Service for the scheduling core.

Owns the lifecycle of provider time slots: publishing single slots, bulk
copying a day or a week, removing slots and closing a day. Every write runs
under the calendar lock for the affected (provider, date) and re-checks the
no-overlap rule against the database inside that lock.

The only slot column this service never writes is ``occupied``; that belongs
to the booking service.
"""

from dataclasses import dataclass, field
from datetime import date, time, timedelta
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.calendar_lock import CalendarLock, get_calendar_lock
from ..core.clock import Clock, system_clock
from ..core.constants import DAYS_IN_WEEK
from ..core.exceptions import (
    SlotNotFoundError,
    SlotOccupiedError,
    SlotOverlapError,
    ValidationException,
    WeekCopyConflictError,
)
from ..models.time_slot import TimeSlot
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.time_slot_repository import TimeSlotRepository
from ..utils.time_windows import overlaps, validate_range, week_dates
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CloseDayResult:
    """Outcome of closing a day: free slots removed, occupied slots left in place."""

    removed: int
    retained: int
    removed_slot_ids: List[str] = field(default_factory=list)


@dataclass
class WeekCopyResult:
    source_week_start: date
    target_week_start: date
    slots_by_day: Dict[date, List[TimeSlot]] = field(default_factory=dict)

    @property
    def created_count(self) -> int:
        return sum(len(slots) for slots in self.slots_by_day.values())

    @property
    def created_slot_ids(self) -> List[str]:
        return [slot.id for slots in self.slots_by_day.values() for slot in slots]


class AvailabilityService(BaseService):
    """
    Service for provider calendar slots.

    Collaborators are injectable so tests and embedding applications can
    swap the clock, the lock backend or the repositories.
    """

    def __init__(
        self,
        db: Session,
        *,
        clock: Optional[Clock] = None,
        calendar_lock: Optional[CalendarLock] = None,
        slot_repository: Optional[TimeSlotRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.clock = clock or system_clock
        self.calendar_lock = calendar_lock or get_calendar_lock()
        self.slot_repository = slot_repository or RepositoryFactory.create_time_slot_repository(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    @BaseService.measure_operation("add_slot")
    def add_slot(
        self,
        provider_id: str,
        slot_date: date,
        start_time: time,
        end_time: time,
    ) -> TimeSlot:
        """
        Publish one bookable window.

        Raises:
            InvalidRangeError: ``start_time >= end_time``
            SlotOverlapError: the window overlaps an existing slot that day,
                occupied or not
        """
        validate_range(start_time, end_time)

        with self.calendar_lock.hold(provider_id, slot_date):
            with self.transaction():
                self._ensure_no_overlap(provider_id, slot_date, start_time, end_time)
                slot = self.slot_repository.create(
                    provider_id=provider_id,
                    slot_date=slot_date,
                    start_time=start_time,
                    end_time=end_time,
                    occupied=False,
                    created_at=self.clock.now(),
                )

        self.log_operation(
            "add_slot",
            provider_id=provider_id,
            slot_id=slot.id,
            slot_date=slot_date.isoformat(),
        )
        return slot

    @BaseService.measure_operation("remove_slot")
    def remove_slot(self, slot_id: str, provider_id: Optional[str] = None) -> None:
        """
        Delete a slot that does not back a pending or confirmed booking.

        Completed and cancelled bookings that still point at the slot keep
        their copied date and times; only their ``slot_id`` is cleared.
        When ``provider_id`` is given the slot must belong to that provider.
        """
        slot = self._get_slot_or_raise(slot_id, provider_id)

        with self.calendar_lock.hold(slot.provider_id, slot.slot_date):
            with self.transaction():
                active = self.booking_repository.get_active_booking_for_slot(slot_id)
                if active is not None:
                    raise SlotOccupiedError(slot_id, active.id)
                detached = self.booking_repository.detach_slot(slot_id)
                self.slot_repository.delete(slot_id)

        self.log_operation(
            "remove_slot",
            provider_id=slot.provider_id,
            slot_id=slot_id,
            detached_bookings=detached,
        )

    @BaseService.measure_operation("copy_day")
    def copy_day(self, provider_id: str, source_date: date, target_date: date) -> List[TimeSlot]:
        """
        Copy every unoccupied slot of ``source_date`` onto ``target_date``.

        All-or-nothing: if any copy would overlap a slot already on the
        target day, nothing is written and SlotOverlapError is raised.
        """
        if source_date == target_date:
            raise ValidationException(
                "Cannot copy a day onto itself",
                code="COPY_SAME_DAY",
                details={"date": source_date.isoformat()},
            )
        created = self._copy_day(provider_id, source_date, target_date)
        self.log_operation(
            "copy_day",
            provider_id=provider_id,
            source_date=source_date.isoformat(),
            target_date=target_date.isoformat(),
            created=len(created),
        )
        return created

    @BaseService.measure_operation("copy_week")
    def copy_week(self, provider_id: str, week_start: date) -> WeekCopyResult:
        """
        Copy the seven days from ``week_start`` to the same weekdays one week later.

        Days are copied in order, each as its own all-or-nothing unit. The
        first day that conflicts stops the batch with WeekCopyConflictError;
        days copied before it stay committed and are listed on the error.
        """
        target_week_start = week_start + timedelta(days=DAYS_IN_WEEK)
        result = WeekCopyResult(source_week_start=week_start, target_week_start=target_week_start)

        for source_date in week_dates(week_start):
            target_date = source_date + timedelta(days=DAYS_IN_WEEK)
            try:
                result.slots_by_day[target_date] = self._copy_day(
                    provider_id, source_date, target_date
                )
            except SlotOverlapError as conflict:
                self.logger.warning(
                    f"Week copy for {provider_id} stopped on {target_date}: {conflict.message}"
                )
                raise WeekCopyConflictError(
                    conflict,
                    committed_days=list(result.slots_by_day),
                    created_slot_ids=result.created_slot_ids,
                ) from conflict

        self.log_operation(
            "copy_week",
            provider_id=provider_id,
            week_start=week_start.isoformat(),
            created=result.created_count,
        )
        return result

    @BaseService.measure_operation("close_day")
    def close_day(self, provider_id: str, slot_date: date) -> CloseDayResult:
        """Remove all unoccupied slots on the day; occupied slots are retained."""
        with self.calendar_lock.hold(provider_id, slot_date):
            with self.transaction():
                # Occupancy comes from the database, not from slots cached in this session
                free_ids = self.slot_repository.get_unoccupied_ids_for_day(provider_id, slot_date)
                for slot_id in free_ids:
                    # Cancelled bookings can still reference a freed slot
                    self.booking_repository.detach_slot(slot_id)
                self.slot_repository.delete_unoccupied(free_ids)
                retained = self.slot_repository.count_occupied_for_day(provider_id, slot_date)

        result = CloseDayResult(
            removed=len(free_ids), retained=retained, removed_slot_ids=free_ids
        )
        self.log_operation(
            "close_day",
            provider_id=provider_id,
            slot_date=slot_date.isoformat(),
            removed=result.removed,
            retained=result.retained,
        )
        return result

    @BaseService.measure_operation("get_slot")
    def get_slot(self, slot_id: str) -> TimeSlot:
        return self._get_slot_or_raise(slot_id)

    @BaseService.measure_operation("list_slots")
    def list_slots(
        self,
        provider_id: str,
        start_date: date,
        end_date: Optional[date] = None,
        include_occupied: bool = True,
    ) -> List[TimeSlot]:
        """Slots between ``start_date`` and ``end_date`` inclusive, ordered by date and time."""
        last = end_date or start_date
        if last < start_date:
            raise ValidationException(
                "end_date must not be before start_date",
                code="INVALID_DATE_RANGE",
                details={"start_date": start_date.isoformat(), "end_date": last.isoformat()},
            )
        return self.slot_repository.get_slots_in_range(
            provider_id, start_date, last, include_occupied=include_occupied
        )

    # Private helpers

    def _get_slot_or_raise(self, slot_id: str, provider_id: Optional[str] = None) -> TimeSlot:
        slot = self.slot_repository.get_by_id(slot_id)
        # Another provider's slot is reported as missing
        if slot is None or (provider_id is not None and slot.provider_id != provider_id):
            raise SlotNotFoundError(slot_id)
        return slot

    def _ensure_no_overlap(
        self, provider_id: str, slot_date: date, start_time: time, end_time: time
    ) -> None:
        conflict = self.slot_repository.find_overlapping(
            provider_id, slot_date, start_time, end_time
        )
        if conflict is not None:
            raise SlotOverlapError(
                slot_date,
                start_time,
                end_time,
                conflict.id,
                conflict.start_time,
                conflict.end_time,
            )

    def _copy_day(self, provider_id: str, source_date: date, target_date: date) -> List[TimeSlot]:
        """Copy one day inside its own lock and transaction."""
        with self.calendar_lock.hold(provider_id, target_date):
            with self.transaction():
                sources = [
                    slot
                    for slot in self.slot_repository.get_slots_for_day(provider_id, source_date)
                    if not slot.occupied
                ]
                if not sources:
                    return []

                existing = self.slot_repository.get_slots_for_day(provider_id, target_date)
                for source in sources:
                    for slot in existing:
                        if overlaps(source.start_time, source.end_time, slot.start_time, slot.end_time):
                            raise SlotOverlapError(
                                target_date,
                                source.start_time,
                                source.end_time,
                                slot.id,
                                slot.start_time,
                                slot.end_time,
                            )

                created_at = self.clock.now()
                return self.slot_repository.bulk_create(
                    [
                        {
                            "provider_id": provider_id,
                            "slot_date": target_date,
                            "start_time": source.start_time,
                            "end_time": source.end_time,
                            "occupied": False,
                            "created_at": created_at,
                        }
                        for source in sources
                    ]
                )
