# tutor_scheduling/schemas/booking.py
"""Booking request and response schemas."""

import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..core.constants import MAX_ID_LENGTH, MAX_NOTES_LENGTH
from ..core.enums import CancelledBy
from ._strict_base import StrictModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    slot_id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    price: Decimal = Field(
        ...,
        max_digits=10,
        decimal_places=2,
        description="Session price, set or validated by the pricing layer in front of this API",
    )
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class BookingReject(StrictRequestModel):
    cancelled_by: CancelledBy = CancelledBy.PROVIDER


class BookingResponse(StrictModel):
    id: str
    slot_id: Optional[str] = None
    provider_id: str
    consumer_id: str
    booking_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    price: Decimal
    paid: bool
    status: str
    meeting_reference: Optional[str] = None
    notes: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: datetime.datetime
    status_changed_at: datetime.datetime
    confirmed_at: Optional[datetime.datetime] = None
    cancelled_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
