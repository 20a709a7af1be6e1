# tutor_scheduling/routes/availability.py
"""
Provider availability routes.

The caller is the provider; every endpoint acts on the principal's own
calendar. All business logic is delegated to AvailabilityService.

Endpoints:
    GET /slots - List slots in a date range
    POST /slots - Publish one slot
    DELETE /slots/{slot_id} - Remove a slot
    POST /copy-day - Copy one day's free slots to another day
    POST /copy-week - Copy a week's free slots to the following week
    POST /close-day - Remove every free slot on a day
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..api.dependencies import get_availability_service, get_principal_id
from ..api.errors import handle_domain_exception
from ..core.exceptions import DomainException
from ..schemas.availability import (
    CloseDayRequest,
    CloseDayResponse,
    CopyDayRequest,
    CopyWeekRequest,
    CopyWeekResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from ..services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability"])


@router.get("/slots", response_model=List[TimeSlotResponse])
async def list_slots(
    start_date: date = Query(...),
    end_date: Optional[date] = Query(None),
    include_occupied: bool = Query(True),
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[TimeSlotResponse]:
    try:
        slots = await asyncio.to_thread(
            availability_service.list_slots,
            provider_id,
            start_date,
            end_date,
            include_occupied,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [TimeSlotResponse.model_validate(slot) for slot in slots]


@router.post("/slots", response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
async def add_slot(
    payload: TimeSlotCreate,
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> TimeSlotResponse:
    try:
        slot = await asyncio.to_thread(
            availability_service.add_slot,
            provider_id,
            payload.slot_date,
            payload.start_time,
            payload.end_time,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return TimeSlotResponse.model_validate(slot)


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_slot(
    slot_id: str,
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    try:
        await asyncio.to_thread(availability_service.remove_slot, slot_id, provider_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/copy-day", response_model=List[TimeSlotResponse])
async def copy_day(
    payload: CopyDayRequest,
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[TimeSlotResponse]:
    try:
        slots = await asyncio.to_thread(
            availability_service.copy_day,
            provider_id,
            payload.source_date,
            payload.target_date,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [TimeSlotResponse.model_validate(slot) for slot in slots]


@router.post("/copy-week", response_model=CopyWeekResponse)
async def copy_week(
    payload: CopyWeekRequest,
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> CopyWeekResponse:
    try:
        result = await asyncio.to_thread(
            availability_service.copy_week, provider_id, payload.week_start
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CopyWeekResponse(
        source_week_start=result.source_week_start,
        target_week_start=result.target_week_start,
        created_count=result.created_count,
        slots=[
            TimeSlotResponse.model_validate(slot)
            for slots in result.slots_by_day.values()
            for slot in slots
        ],
    )


@router.post("/close-day", response_model=CloseDayResponse)
async def close_day(
    payload: CloseDayRequest,
    provider_id: str = Depends(get_principal_id),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> CloseDayResponse:
    try:
        result = await asyncio.to_thread(
            availability_service.close_day, provider_id, payload.slot_date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CloseDayResponse.model_validate(result)
