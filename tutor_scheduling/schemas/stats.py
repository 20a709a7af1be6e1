# tutor_scheduling/schemas/stats.py
"""Earnings stats response schemas."""

import datetime
from decimal import Decimal
from typing import List

from ..core.enums import StatsWindow
from ._strict_base import StrictModel


class SeriesPointResponse(StrictModel):
    date: datetime.date
    earnings: Decimal
    booking_count: int


class EarningsRollupResponse(StrictModel):
    window: StatsWindow
    gross_earnings: Decimal
    platform_fee: Decimal
    net_earnings: Decimal
    platform_fee_rate: Decimal
    booking_count: int
    completed_hours: float
    series: List[SeriesPointResponse]
