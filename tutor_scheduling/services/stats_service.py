# tutor_scheduling/services/stats_service.py
"""
Stats Service for the scheduling core.

Loads a provider's booking history and hands it to the pure aggregation
functions in ``earnings_stats`` with the injected clock's "now". Read-only:
takes no calendar locks and never writes.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.enums import StatsWindow
from ..models.booking import Booking
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..utils.time_windows import window_start_date
from .base import BaseService
from .earnings_stats import EarningsRollup, SeriesPoint, rollup, series

logger = logging.getLogger(__name__)


class StatsService(BaseService):
    def __init__(
        self,
        db: Session,
        *,
        clock: Optional[Clock] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.clock = clock or system_clock
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("rollup_for_provider")
    def rollup_for_provider(
        self,
        provider_id: str,
        window: StatsWindow = StatsWindow.LAST_30_DAYS,
        zero_fill: bool = False,
    ) -> EarningsRollup:
        window = StatsWindow(window)
        now = self.clock.now()
        result = rollup(self._load(provider_id, window, now), window, now, zero_fill=zero_fill)
        self.log_operation(
            "rollup_for_provider",
            provider_id=provider_id,
            window=window.value,
            booking_count=result.booking_count,
        )
        return result

    @BaseService.measure_operation("series_for_provider")
    def series_for_provider(
        self,
        provider_id: str,
        window: StatsWindow = StatsWindow.LAST_30_DAYS,
        zero_fill: bool = False,
    ) -> List[SeriesPoint]:
        window = StatsWindow(window)
        now = self.clock.now()
        return series(self._load(provider_id, window, now), window, now, zero_fill=zero_fill)

    @BaseService.measure_operation("all_time_totals")
    def all_time_totals(self, provider_id: str) -> EarningsRollup:
        """The unbounded rollup shown next to the windowed figures."""
        return self.rollup_for_provider(provider_id, StatsWindow.ALL)

    def _load(self, provider_id: str, window: StatsWindow, now: datetime) -> List[Booking]:
        # Coarse date prefilter; the exact window check happens in earnings_stats
        return self.repository.get_bookings_for_provider(
            provider_id, since_date=window_start_date(window, now)
        )
