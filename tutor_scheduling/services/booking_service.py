# tutor_scheduling/services/booking_service.py
"""
Booking Service for the scheduling core.

Owns the booking lifecycle:

    pending -> confirmed -> completed
    pending | confirmed -> cancelled

and is the only writer of ``TimeSlot.occupied``. Requests and state changes
run under the calendar lock for the booking's (provider, date). Claiming a
slot is a conditional UPDATE, and the partial unique index on active
bookings refuses a second claim at the database level as well.

Domain events are queued after the transaction commits and delivered on the
publisher's background worker. A slow or failing sink never delays or
undoes a transition.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.calendar_lock import CalendarLock, get_calendar_lock
from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.constants import MAX_NOTES_LENGTH
from ..core.enums import CancelledBy
from ..core.exceptions import (
    BookingNotFoundError,
    ForbiddenException,
    InvalidRangeError,
    InvalidStateError,
    NotConfirmedError,
    NotPendingError,
    NotYetElapsedError,
    PayoutNotReadyError,
    RepositoryException,
    SlotNotFoundError,
    SlotUnavailableError,
    ValidationException,
)
from ..events.booking_events import (
    BookingCompleted,
    BookingConfirmed,
    BookingRejected,
    BookingRequested,
)
from ..events.publisher import EventPublisher, get_event_publisher
from ..integrations.payout_status import InMemoryPayoutStatus, PayoutStatusProvider
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.time_slot_repository import TimeSlotRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def _parse_price(price: Union[Decimal, int, float, str]) -> Decimal:
    try:
        amount = Decimal(str(price))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidRangeError(f"Invalid price: {price!r}", details={"price": str(price)}) from exc
    if not amount.is_finite() or amount < 0:
        raise InvalidRangeError("Price must be a non-negative amount", details={"price": str(price)})
    return amount


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Collaborators (clock, payout lookup, event publisher, calendar lock and
    repositories) are injectable; defaults are the process-wide ones.
    """

    def __init__(
        self,
        db: Session,
        *,
        clock: Optional[Clock] = None,
        payout_status: Optional[PayoutStatusProvider] = None,
        event_publisher: Optional[EventPublisher] = None,
        calendar_lock: Optional[CalendarLock] = None,
        slot_repository: Optional[TimeSlotRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        meeting_reference_template: Optional[str] = None,
    ):
        super().__init__(db)
        self.clock = clock or system_clock
        self.payout_status = payout_status or InMemoryPayoutStatus()
        self.event_publisher = event_publisher or get_event_publisher()
        self.calendar_lock = calendar_lock or get_calendar_lock()
        self.slot_repository = slot_repository or RepositoryFactory.create_time_slot_repository(db)
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.meeting_reference_template = (
            meeting_reference_template or settings.meeting_reference_template
        )

    @BaseService.measure_operation("request_booking")
    def request_booking(
        self,
        slot_id: str,
        consumer_id: str,
        price: Union[Decimal, int, float, str],
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Reserve a free slot for a consumer as a pending booking.

        Args:
            slot_id: Slot to book
            consumer_id: Requesting consumer
            price: Amount supplied by the caller, copied onto the booking
            notes: Optional free text for the provider

        Raises:
            SlotNotFoundError: Unknown slot
            SlotUnavailableError: Slot already occupied (pick another slot)
            InvalidRangeError: Negative or malformed price
        """
        amount = _parse_price(price)
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationException(
                f"Notes must be at most {MAX_NOTES_LENGTH} characters",
                code="NOTES_TOO_LONG",
            )

        slot = self.slot_repository.get_by_id(slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)

        with self.calendar_lock.hold(slot.provider_id, slot.slot_date):
            try:
                with self.transaction():
                    if not self.slot_repository.claim_slot(slot_id):
                        raise SlotUnavailableError(slot_id)
                    now = self.clock.now()
                    booking = self.repository.create(
                        slot_id=slot.id,
                        provider_id=slot.provider_id,
                        consumer_id=consumer_id,
                        booking_date=slot.slot_date,
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                        price=amount,
                        paid=False,
                        status=BookingStatus.PENDING.value,
                        notes=notes,
                        created_at=now,
                        status_changed_at=now,
                    )
            except RepositoryException as exc:
                # Partial unique index on active bookings per slot
                if isinstance(exc.__cause__, IntegrityError):
                    raise SlotUnavailableError(slot_id) from exc
                raise

        self.log_operation(
            "request_booking",
            booking_id=booking.id,
            slot_id=slot_id,
            provider_id=booking.provider_id,
            consumer_id=consumer_id,
        )
        self.event_publisher.publish(BookingRequested.from_booking(booking))
        return booking

    @BaseService.measure_operation("confirm_booking")
    def confirm(self, booking_id: str, provider_id: Optional[str] = None) -> Booking:
        """
        Confirm a pending booking and assign its meeting reference.

        Paid bookings (``price > 0``) need the provider to be payout-ready;
        otherwise PayoutNotReadyError is raised and the booking stays pending.
        """
        booking = self._get_booking_or_raise(booking_id)
        self._ensure_provider(booking, provider_id)

        with self.calendar_lock.hold(booking.provider_id, booking.booking_date):
            with self.transaction():
                self.db.refresh(booking)
                if booking.status_enum is not BookingStatus.PENDING:
                    raise NotPendingError(booking.id, booking.status)
                if booking.price_amount > 0 and not self.payout_status.is_payout_ready(
                    booking.provider_id
                ):
                    raise PayoutNotReadyError(booking.provider_id, booking.id)

                booking.transition_to(BookingStatus.CONFIRMED, self.clock.now())
                booking.meeting_reference = self.meeting_reference_template.format(
                    booking_id=booking.id
                )
                self.repository.flush()

        self.log_operation("confirm_booking", booking_id=booking.id, provider_id=booking.provider_id)
        self.event_publisher.publish(BookingConfirmed.from_booking(booking))
        return booking

    @BaseService.measure_operation("reject_booking")
    def reject(
        self,
        booking_id: str,
        cancelled_by: CancelledBy = CancelledBy.PROVIDER,
        actor_id: Optional[str] = None,
    ) -> Booking:
        """
        Cancel a pending or confirmed booking and free its slot.

        When ``actor_id`` is given it must be the party named by
        ``cancelled_by``. The slot may already have been deleted, in which
        case only the booking changes.
        """
        cancelled_by = CancelledBy(cancelled_by)
        booking = self._get_booking_or_raise(booking_id)
        if actor_id is not None:
            expected = (
                booking.provider_id if cancelled_by is CancelledBy.PROVIDER else booking.consumer_id
            )
            if actor_id != expected:
                raise ForbiddenException(
                    "You can only cancel your own bookings",
                    code="BOOKING_FORBIDDEN",
                    details={"booking_id": booking_id},
                )

        with self.calendar_lock.hold(booking.provider_id, booking.booking_date):
            with self.transaction():
                self.db.refresh(booking)
                previous_status = booking.status
                if booking.status_enum not in ACTIVE_STATUSES:
                    raise InvalidStateError(
                        booking.id, previous_status, BookingStatus.CANCELLED.value
                    )

                booking.transition_to(BookingStatus.CANCELLED, self.clock.now())
                booking.cancelled_by = cancelled_by.value
                self.repository.flush()
                if booking.slot_id is not None:
                    self.slot_repository.release_slot(booking.slot_id)

        self.log_operation(
            "reject_booking",
            booking_id=booking.id,
            cancelled_by=cancelled_by.value,
            previous_status=previous_status,
        )
        self.event_publisher.publish(BookingRejected.from_booking(booking, previous_status))
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete(self, booking_id: str, provider_id: Optional[str] = None) -> Booking:
        """
        Mark a confirmed booking completed once its end time has passed.

        The slot stays occupied; a completed session keeps its calendar slot.
        """
        booking = self._get_booking_or_raise(booking_id)
        self._ensure_provider(booking, provider_id)

        with self.calendar_lock.hold(booking.provider_id, booking.booking_date):
            with self.transaction():
                self.db.refresh(booking)
                self._complete_locked(booking, self.clock.now())

        self.log_operation("complete_booking", booking_id=booking.id)
        self.event_publisher.publish(BookingCompleted.from_booking(booking))
        return booking

    @BaseService.measure_operation("complete_elapsed")
    def complete_elapsed(self, provider_id: Optional[str] = None) -> List[Booking]:
        """
        Sweep: complete every confirmed booking whose end time has passed.

        Bookings that change state concurrently (for example cancelled while
        the sweep runs) are skipped.
        """
        now = self.clock.now()
        completed: List[Booking] = []
        for booking in self.repository.get_confirmed_ended_by(now, provider_id):
            try:
                with self.calendar_lock.hold(booking.provider_id, booking.booking_date):
                    with self.transaction():
                        self.db.refresh(booking)
                        self._complete_locked(booking, now)
            except InvalidStateError as exc:
                self.logger.info(f"Sweep skipped booking {booking.id}: {exc.message}")
                continue
            self.event_publisher.publish(BookingCompleted.from_booking(booking))
            completed.append(booking)

        self.log_operation(
            "complete_elapsed",
            provider_id=provider_id,
            completed=len(completed),
            now=now.isoformat(),
        )
        return completed

    @BaseService.measure_operation("mark_paid")
    def mark_paid(self, booking_id: str, paid: bool = True) -> Booking:
        """Record the payment collaborator's verdict on a booking."""
        with self.transaction():
            booking = self._get_booking_or_raise(booking_id)
            booking.paid = paid
            self.repository.flush()

        self.log_operation("mark_paid", booking_id=booking_id, paid=paid)
        return booking

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str) -> Booking:
        return self._get_booking_or_raise(booking_id)

    @BaseService.measure_operation("list_bookings_for_provider")
    def list_bookings_for_provider(
        self,
        provider_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[Booking]:
        return self.repository.get_bookings_for_provider(provider_id, statuses=statuses)

    @BaseService.measure_operation("list_bookings_for_consumer")
    def list_bookings_for_consumer(
        self,
        consumer_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[Booking]:
        return self.repository.get_bookings_for_consumer(consumer_id, statuses=statuses)

    # Private helpers

    def _get_booking_or_raise(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    def _ensure_provider(self, booking: Booking, provider_id: Optional[str]) -> None:
        if provider_id is not None and booking.provider_id != provider_id:
            raise ForbiddenException(
                "Only the booking's provider can perform this action",
                code="BOOKING_FORBIDDEN",
                details={"booking_id": booking.id},
            )

    def _complete_locked(self, booking: Booking, now: datetime) -> None:
        if booking.status_enum is not BookingStatus.CONFIRMED:
            raise NotConfirmedError(booking.id, booking.status)
        if not booking.has_elapsed(now):
            raise NotYetElapsedError(booking.id, booking.end_at, now)
        booking.transition_to(BookingStatus.COMPLETED, now)
        self.repository.flush()
