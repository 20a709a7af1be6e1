# tutor_scheduling/models/booking.py
"""
Booking model for the scheduling core.

A booking is a reservation against one time slot. It copies the slot's date
and times at creation, so the record stays meaningful after the provider
deletes the slot. Status only moves along BOOKING_TRANSITIONS:

    pending -> confirmed -> completed
    pending -> cancelled
    confirmed -> cancelled
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
import logging
from typing import Dict, FrozenSet

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.exceptions import InvalidStateError
from ..database import Base
from ..utils.time_windows import combine, duration_hours

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Requested by the consumer, awaiting the provider
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)
TERMINAL_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)

_ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'confirmed') AND slot_id IS NOT NULL")


class Booking(Base):
    """
    Self-contained reservation between a consumer and a provider.

    Only one active (pending/confirmed) booking may reference a slot at a
    time; the partial unique index below backs the service-level check.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))

    slot_id = Column(String(26), ForeignKey("time_slots.id", ondelete="SET NULL"), nullable=True)
    provider_id = Column(String(64), nullable=False, index=True)
    consumer_id = Column(String(64), nullable=False, index=True)

    # Copied from the slot at request time
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    price = Column(Numeric(10, 2), nullable=False)
    paid = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    meeting_reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    cancelled_by = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    status_changed_at = Column(DateTime, nullable=False, default=datetime.now)
    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    slot = relationship("TimeSlot", foreign_keys=[slot_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        Index(
            "uq_bookings_active_slot",
            "slot_id",
            unique=True,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_bookings_provider_date", "provider_id", "booking_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: consumer={self.consumer_id}, "
            f"provider={self.provider_id}, date={self.booking_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def start_at(self) -> datetime:
        return combine(self.booking_date, self.start_time)

    @property
    def end_at(self) -> datetime:
        return combine(self.booking_date, self.end_time)

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.booking_date, self.start_time, self.end_time)

    @property
    def price_amount(self) -> Decimal:
        return Decimal(self.price)

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in BOOKING_TRANSITIONS[self.status_enum]

    def transition_to(self, target: BookingStatus, at: datetime) -> None:
        """Move to ``target`` and stamp the matching timestamp, or raise InvalidStateError."""
        current = self.status_enum
        if not self.can_transition_to(target):
            raise InvalidStateError(self.id, current.value, target.value)

        self.status = target.value
        self.status_changed_at = at
        if target is BookingStatus.CONFIRMED:
            self.confirmed_at = at
        elif target is BookingStatus.CANCELLED:
            self.cancelled_at = at
        elif target is BookingStatus.COMPLETED:
            self.completed_at = at
        logger.info(f"Booking {self.id} moved {current.value} -> {target.value}")

    def has_elapsed(self, now: datetime) -> bool:
        return now >= self.end_at
