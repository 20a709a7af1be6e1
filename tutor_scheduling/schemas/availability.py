# tutor_scheduling/schemas/availability.py
"""
Availability schemas.

Time ordering is checked by the service (InvalidRangeError) rather than
here, so API callers and in-process callers see the same error.
"""

import datetime
from typing import List

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel

DateType = datetime.date
TimeType = datetime.time


class TimeSlotCreate(StrictRequestModel):
    slot_date: DateType
    start_time: TimeType
    end_time: TimeType


class CopyDayRequest(StrictRequestModel):
    source_date: DateType
    target_date: DateType


class CopyWeekRequest(StrictRequestModel):
    week_start: DateType = Field(..., description="First day of the source week")


class CloseDayRequest(StrictRequestModel):
    slot_date: DateType


class TimeSlotResponse(StrictModel):
    id: str
    provider_id: str
    slot_date: DateType
    start_time: TimeType
    end_time: TimeType
    occupied: bool


class CloseDayResponse(StrictModel):
    removed: int
    retained: int
    removed_slot_ids: List[str]


class CopyWeekResponse(StrictModel):
    source_week_start: DateType
    target_week_start: DateType
    created_count: int
    slots: List[TimeSlotResponse]
