# tutor_scheduling/routes/stats.py
"""
Provider earnings routes.

Endpoints:
    GET /earnings - Rollup for a window (gross, fee, net, counts, hours, series)
    GET /series - Per-day net earnings and booking counts
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from ..api.dependencies import get_principal_id, get_stats_service
from ..core.enums import StatsWindow
from ..schemas.stats import EarningsRollupResponse, SeriesPointResponse
from ..services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["stats"])


@router.get("/earnings", response_model=EarningsRollupResponse)
async def get_earnings(
    window: StatsWindow = Query(StatsWindow.LAST_30_DAYS),
    zero_fill: bool = Query(False),
    provider_id: str = Depends(get_principal_id),
    stats_service: StatsService = Depends(get_stats_service),
) -> EarningsRollupResponse:
    result = await asyncio.to_thread(
        stats_service.rollup_for_provider, provider_id, window, zero_fill
    )
    return EarningsRollupResponse.model_validate(result)


@router.get("/series", response_model=List[SeriesPointResponse])
async def get_series(
    window: StatsWindow = Query(StatsWindow.LAST_30_DAYS),
    zero_fill: bool = Query(False),
    provider_id: str = Depends(get_principal_id),
    stats_service: StatsService = Depends(get_stats_service),
) -> List[SeriesPointResponse]:
    points = await asyncio.to_thread(
        stats_service.series_for_provider, provider_id, window, zero_fill
    )
    return [SeriesPointResponse.model_validate(point) for point in points]
