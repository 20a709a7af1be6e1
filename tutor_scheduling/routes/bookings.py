# tutor_scheduling/routes/bookings.py
"""
Booking routes.

All business logic delegated to BookingService. The principal is the
consumer when requesting and the provider when confirming, rejecting or
completing.

Endpoints:
    POST / - Request a booking on a free slot
    GET /{booking_id} - Booking details (either party)
    POST /{booking_id}/confirm - Provider confirms a pending booking
    POST /{booking_id}/reject - Provider (or consumer) cancels a booking
    POST /{booking_id}/complete - Provider marks an elapsed booking completed
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, status

from ..api.dependencies import get_booking_service, get_principal_id
from ..api.errors import handle_domain_exception
from ..core.exceptions import BookingNotFoundError, DomainException
from ..schemas.booking import BookingCreate, BookingReject, BookingResponse
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def request_booking(
    payload: BookingCreate,
    consumer_id: str = Depends(get_principal_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Request a booking on a free slot.

    ``price`` is copied onto the booking as sent, and a price of 0 skips the
    payout check on confirm. Deployments that expose this route to consumers
    directly must set or validate the price in the gateway or pricing layer in
    front of this API.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.request_booking,
            payload.slot_id,
            consumer_id,
            payload.price,
            payload.notes,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    principal_id: str = Depends(get_principal_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
        # Bookings are only visible to the two parties
        if principal_id not in (booking.provider_id, booking.consumer_id):
            raise BookingNotFoundError(booking_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
async def confirm_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    provider_id: str = Depends(get_principal_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.confirm, booking_id, provider_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/reject", response_model=BookingResponse)
async def reject_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    payload: Optional[BookingReject] = Body(None),
    principal_id: str = Depends(get_principal_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    reject = payload or BookingReject()
    try:
        booking = await asyncio.to_thread(
            booking_service.reject, booking_id, reject.cancelled_by, principal_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    provider_id: str = Depends(get_principal_id),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.complete, booking_id, provider_id)
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)
