# tutor_scheduling/services/earnings_stats.py
"""
Earnings aggregation over a provider's booking history.

Pure functions: they take the bookings and "now" explicitly and never touch
the database, so results are recomputed on every call and can be tested
without a session.

Rules:
- A booking is in a window when its start lies between ``now - span`` and
  ``now`` (``all`` has no bound).
- Gross earnings sum the price of ``paid`` bookings.
- Booking counts and the series only include confirmed or completed bookings.
- Completed hours sum the durations of completed bookings.
- Net = gross * (1 - fee rate). Money is rounded half-up to cents.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from ..core.constants import MONEY_QUANTUM, PLATFORM_FEE_RATE
from ..core.enums import StatsWindow
from ..models.booking import Booking, BookingStatus
from ..utils.time_windows import date_range, in_window, window_start_date

COUNTED_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.COMPLETED})


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def net_of_fee(amount: Decimal, fee_rate: Decimal = PLATFORM_FEE_RATE) -> Decimal:
    return amount * (Decimal(1) - fee_rate)


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    earnings: Decimal
    booking_count: int


@dataclass(frozen=True)
class EarningsRollup:
    window: StatsWindow
    gross_earnings: Decimal
    platform_fee: Decimal
    net_earnings: Decimal
    platform_fee_rate: Decimal
    booking_count: int
    completed_hours: float
    series: List[SeriesPoint] = field(default_factory=list)


def _in_window(bookings: Iterable[Booking], window: StatsWindow, now: datetime) -> List[Booking]:
    return [booking for booking in bookings if in_window(booking.start_at, window, now)]


def series(
    bookings: Iterable[Booking],
    window: StatsWindow,
    now: datetime,
    zero_fill: bool = False,
    fee_rate: Decimal = PLATFORM_FEE_RATE,
) -> List[SeriesPoint]:
    """
    Net earnings and booking count per calendar day, ordered by date.

    Sparse by default: days without bookings are absent. With ``zero_fill``
    every day of the window (or, for ``all``, between the first and last
    booked day) gets a point.
    """
    window = StatsWindow(window)
    earnings: Dict[date, Decimal] = defaultdict(Decimal)
    counts: Dict[date, int] = defaultdict(int)

    for booking in _in_window(bookings, window, now):
        if booking.status_enum not in COUNTED_STATUSES:
            continue
        earnings[booking.booking_date] += net_of_fee(booking.price_amount, fee_rate)
        counts[booking.booking_date] += 1

    days: Sequence[date] = sorted(counts)
    if zero_fill:
        first: Optional[date] = window_start_date(window, now)
        if first is None and days:
            first = days[0]
        last = days[-1] if window is StatsWindow.ALL and days else now.date()
        days = date_range(first, last) if first is not None else []

    return [
        SeriesPoint(
            date=day,
            earnings=quantize_money(earnings.get(day, Decimal(0))),
            booking_count=counts.get(day, 0),
        )
        for day in days
    ]


def rollup(
    bookings: Iterable[Booking],
    window: StatsWindow,
    now: datetime,
    fee_rate: Decimal = PLATFORM_FEE_RATE,
    zero_fill: bool = False,
) -> EarningsRollup:
    """Aggregate one provider's bookings for ``window`` as seen at ``now``."""
    window = StatsWindow(window)
    windowed = _in_window(list(bookings), window, now)

    gross = sum((b.price_amount for b in windowed if b.paid), Decimal(0))
    fee = gross * fee_rate
    completed_hours = sum(
        (b.duration_hours for b in windowed if b.status_enum is BookingStatus.COMPLETED),
        0.0,
    )

    return EarningsRollup(
        window=window,
        gross_earnings=quantize_money(gross),
        platform_fee=quantize_money(fee),
        net_earnings=quantize_money(gross - fee),
        platform_fee_rate=fee_rate,
        booking_count=sum(1 for b in windowed if b.status_enum in COUNTED_STATUSES),
        completed_hours=round(completed_hours, 4),
        series=series(windowed, window, now, zero_fill=zero_fill, fee_rate=fee_rate),
    )
