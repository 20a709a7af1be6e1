# tests/services/test_earnings_stats.py
"""Pure aggregation tests; bookings are transient model instances."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest

from tutor_scheduling.core.enums import StatsWindow
from tutor_scheduling.models.booking import Booking, BookingStatus
from tutor_scheduling.services.earnings_stats import net_of_fee, quantize_money, rollup, series

NOW = datetime(2025, 3, 10, 12, 0)


def make_booking(
    price,
    status=BookingStatus.COMPLETED,
    paid=True,
    start_at=None,
    hours=1,
) -> Booking:
    start_at = start_at or NOW - timedelta(days=1)
    end_at = start_at + timedelta(hours=hours)
    return Booking(
        id=f"b-{price}-{start_at.isoformat()}",
        provider_id="p1",
        consumer_id="c1",
        booking_date=start_at.date(),
        start_time=start_at.time(),
        end_time=end_at.time(),
        price=Decimal(str(price)),
        paid=paid,
        status=BookingStatus(status).value,
    )


class TestRollup:
    def test_three_completed_paid_bookings(self):
        bookings = [
            make_booking(10, start_at=datetime(2025, 3, 1, 9, 0)),
            make_booking(20, start_at=datetime(2025, 3, 2, 9, 0)),
            make_booking(30, start_at=datetime(2025, 3, 3, 9, 0)),
        ]

        result = rollup(bookings, StatsWindow.ALL, NOW)

        assert result.gross_earnings == Decimal("60.00")
        assert result.net_earnings == Decimal("48.00")
        assert result.platform_fee == Decimal("12.00")
        assert result.platform_fee_rate == Decimal("0.20")
        assert result.booking_count == 3
        assert result.completed_hours == 3.0

    @pytest.mark.parametrize("count", [1, 5, 17])
    def test_net_is_eighty_percent_of_gross(self, count):
        prices = [Decimal("12.35") * (i + 1) for i in range(count)]
        bookings = [
            make_booking(p, start_at=NOW - timedelta(days=i + 1)) for i, p in enumerate(prices)
        ]

        result = rollup(bookings, StatsWindow.ALL, NOW)

        assert result.gross_earnings == quantize_money(sum(prices))
        assert result.net_earnings == quantize_money(sum(prices) * Decimal("0.8"))

    def test_only_paid_bookings_earn(self):
        bookings = [make_booking(10), make_booking(99, paid=False, start_at=NOW - timedelta(hours=2))]
        result = rollup(bookings, StatsWindow.ALL, NOW)
        assert result.gross_earnings == Decimal("10.00")
        assert result.booking_count == 2

    def test_counts_only_confirmed_and_completed(self):
        bookings = [
            make_booking(10, status=BookingStatus.COMPLETED, start_at=NOW - timedelta(hours=5)),
            make_booking(10, status=BookingStatus.CONFIRMED, start_at=NOW - timedelta(hours=4)),
            make_booking(10, status=BookingStatus.PENDING, start_at=NOW - timedelta(hours=3)),
            make_booking(10, status=BookingStatus.CANCELLED, start_at=NOW - timedelta(hours=2)),
        ]
        result = rollup(bookings, StatsWindow.ALL, NOW)
        assert result.booking_count == 2
        # Earnings follow the paid flag regardless of status
        assert result.gross_earnings == Decimal("40.00")

    def test_completed_hours_only_from_completed(self):
        bookings = [
            make_booking(10, status=BookingStatus.COMPLETED, hours=2, start_at=NOW - timedelta(days=2)),
            make_booking(10, status=BookingStatus.CONFIRMED, hours=3, start_at=NOW - timedelta(days=3)),
        ]
        assert rollup(bookings, StatsWindow.ALL, NOW).completed_hours == 2.0

    def test_window_filters_on_start(self):
        bookings = [
            make_booking(10, start_at=NOW - timedelta(hours=3)),
            make_booking(20, start_at=NOW - timedelta(days=3)),
            make_booking(40, start_at=NOW - timedelta(days=20)),
            make_booking(80, start_at=NOW - timedelta(days=200)),
            make_booking(160, start_at=NOW + timedelta(days=2)),
        ]

        gross = {
            window: rollup(bookings, window, NOW).gross_earnings for window in StatsWindow
        }

        assert gross[StatsWindow.LAST_24_HOURS] == Decimal("10.00")
        assert gross[StatsWindow.LAST_7_DAYS] == Decimal("30.00")
        assert gross[StatsWindow.LAST_30_DAYS] == Decimal("70.00")
        assert gross[StatsWindow.LAST_YEAR] == Decimal("150.00")
        assert gross[StatsWindow.ALL] == Decimal("310.00")

    def test_money_rounds_half_up_to_cents(self):
        result = rollup([make_booking("0.05")], StatsWindow.ALL, NOW)
        # 0.05 * 0.8 = 0.040, fee 0.010
        assert result.net_earnings == Decimal("0.04")
        assert result.platform_fee == Decimal("0.01")
        assert quantize_money(Decimal("0.125")) == Decimal("0.13")

    def test_empty_history(self):
        result = rollup([], StatsWindow.LAST_7_DAYS, NOW)
        assert result.gross_earnings == Decimal("0.00")
        assert result.booking_count == 0
        assert result.completed_hours == 0.0
        assert result.series == []


class TestSeries:
    def test_groups_by_day_with_net_earnings(self):
        day1 = datetime(2025, 3, 5, 9, 0)
        day2 = datetime(2025, 3, 7, 9, 0)
        bookings = [
            make_booking(10, start_at=day2),
            make_booking(20, start_at=day1),
            make_booking(30, status=BookingStatus.CONFIRMED, start_at=day1 + timedelta(hours=3)),
            make_booking(50, status=BookingStatus.CANCELLED, start_at=day2 + timedelta(hours=2)),
        ]

        points = series(bookings, StatsWindow.LAST_7_DAYS, NOW)

        assert [(p.date, p.earnings, p.booking_count) for p in points] == [
            (date(2025, 3, 5), Decimal("40.00"), 2),
            (date(2025, 3, 7), Decimal("8.00"), 1),
        ]

    def test_series_counts_unpaid_confirmed_bookings(self):
        points = series([make_booking(10, paid=False)], StatsWindow.ALL, NOW)
        assert points[0].earnings == net_of_fee(Decimal("10")).quantize(Decimal("0.01"))

    def test_zero_fill_covers_the_window(self):
        bookings = [make_booking(10, start_at=datetime(2025, 3, 8, 9, 0))]

        points = series(bookings, StatsWindow.LAST_7_DAYS, NOW, zero_fill=True)

        assert [p.date for p in points] == [date(2025, 3, 3) + timedelta(days=i) for i in range(8)]
        filled = {p.date: p for p in points}
        assert filled[date(2025, 3, 8)].booking_count == 1
        assert filled[date(2025, 3, 4)].earnings == Decimal("0.00")

    def test_zero_fill_all_spans_first_to_last_booking(self):
        bookings = [
            make_booking(10, start_at=datetime(2025, 2, 27, 9, 0)),
            make_booking(10, start_at=datetime(2025, 3, 2, 9, 0)),
        ]
        points = series(bookings, StatsWindow.ALL, NOW, zero_fill=True)
        assert [p.date for p in points] == [
            date(2025, 2, 27),
            date(2025, 2, 28),
            date(2025, 3, 1),
            date(2025, 3, 2),
        ]
        assert [p.booking_count for p in points] == [1, 0, 0, 1]
