"""
Service layer for the scheduling core.

Services own business rules and transactions; repositories own queries.
"""

from .availability_service import AvailabilityService, CloseDayResult, WeekCopyResult
from .base import BaseService
from .booking_service import BookingService
from .earnings_stats import EarningsRollup, SeriesPoint, rollup, series
from .stats_service import StatsService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "CloseDayResult",
    "EarningsRollup",
    "SeriesPoint",
    "StatsService",
    "WeekCopyResult",
    "rollup",
    "series",
]
