from .availability import (
    CloseDayRequest,
    CloseDayResponse,
    CopyDayRequest,
    CopyWeekRequest,
    CopyWeekResponse,
    TimeSlotCreate,
    TimeSlotResponse,
)
from .booking import BookingCreate, BookingReject, BookingResponse
from .stats import EarningsRollupResponse, SeriesPointResponse

__all__ = [
    "BookingCreate",
    "BookingReject",
    "BookingResponse",
    "CloseDayRequest",
    "CloseDayResponse",
    "CopyDayRequest",
    "CopyWeekRequest",
    "CopyWeekResponse",
    "EarningsRollupResponse",
    "SeriesPointResponse",
    "TimeSlotCreate",
    "TimeSlotResponse",
]
