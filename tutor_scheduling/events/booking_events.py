"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..models.booking import Booking


def _base_fields(booking: "Booking") -> Dict[str, Any]:
    return {
        "booking_id": booking.id,
        "provider_id": booking.provider_id,
        "consumer_id": booking.consumer_id,
        "start_at": booking.start_at,
        "end_at": booking.end_at,
        "price": booking.price_amount,
    }


@dataclass
class BookingRequested:
    """Fired after a consumer's booking request is stored as pending."""

    booking_id: str
    provider_id: str
    consumer_id: str
    start_at: datetime
    end_at: datetime
    price: Decimal
    slot_id: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: "Booking") -> "BookingRequested":
        return cls(slot_id=booking.slot_id, **_base_fields(booking))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after the provider confirms a pending booking."""

    booking_id: str
    provider_id: str
    consumer_id: str
    start_at: datetime
    end_at: datetime
    price: Decimal
    meeting_reference: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: "Booking") -> "BookingConfirmed":
        return cls(meeting_reference=booking.meeting_reference, **_base_fields(booking))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingRejected:
    """Fired after a pending or confirmed booking is cancelled."""

    booking_id: str
    provider_id: str
    consumer_id: str
    start_at: datetime
    end_at: datetime
    price: Decimal
    cancelled_by: Optional[str] = None  # 'provider' or 'consumer'
    previous_status: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: "Booking", previous_status: str) -> "BookingRejected":
        return cls(
            cancelled_by=booking.cancelled_by,
            previous_status=previous_status,
            **_base_fields(booking),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCompleted:
    """Fired after a booking is marked complete."""

    booking_id: str
    provider_id: str
    consumer_id: str
    start_at: datetime
    end_at: datetime
    price: Decimal
    completed_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: "Booking") -> "BookingCompleted":
        return cls(completed_at=booking.completed_at, **_base_fields(booking))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
