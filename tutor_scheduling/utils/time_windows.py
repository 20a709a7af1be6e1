"""Interval arithmetic on naive wall-clock dates and times."""

from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from ..core.constants import DAYS_IN_WEEK
from ..core.enums import StatsWindow
from ..core.exceptions import InvalidRangeError

WINDOW_SPANS: Dict[StatsWindow, Optional[timedelta]] = {
    StatsWindow.LAST_24_HOURS: timedelta(hours=24),
    StatsWindow.LAST_7_DAYS: timedelta(days=7),
    StatsWindow.LAST_30_DAYS: timedelta(days=30),
    StatsWindow.LAST_YEAR: timedelta(days=365),
    StatsWindow.ALL: None,
}


def overlaps(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    """Half-open overlap: touching edges (10:00-11:00, 11:00-12:00) do not overlap."""
    return a_start < b_end and b_start < a_end


def validate_range(start: time, end: time) -> None:
    if start >= end:
        raise InvalidRangeError(
            "End time must be after start time",
            details={"start_time": start.isoformat(), "end_time": end.isoformat()},
        )


def combine(day: date, at: time) -> datetime:
    return datetime.combine(day, at)


def duration(day: date, start: time, end: time) -> timedelta:
    return combine(day, end) - combine(day, start)


def duration_hours(day: date, start: time, end: time) -> float:
    return duration(day, start, end).total_seconds() / 3600


def window_span(window: StatsWindow) -> Optional[timedelta]:
    return WINDOW_SPANS[StatsWindow(window)]


def in_window(start_at: datetime, window: StatsWindow, now: datetime) -> bool:
    """
    True when ``start_at`` lies in the window that ends at ``now``.

    Bounded windows only look back: a booking that starts after ``now`` is
    outside every window except ``all``.
    """
    span = window_span(window)
    if span is None:
        return True
    elapsed = now - start_at
    return timedelta(0) <= elapsed <= span


def window_start_date(window: StatsWindow, now: datetime) -> Optional[date]:
    span = window_span(window)
    if span is None:
        return None
    return (now - span).date()


def week_dates(week_start: date) -> List[date]:
    return [week_start + timedelta(days=offset) for offset in range(DAYS_IN_WEEK)]


def date_range(first: date, last: date) -> List[date]:
    """Inclusive list of consecutive dates from ``first`` to ``last``."""
    days = (last - first).days
    return [first + timedelta(days=offset) for offset in range(days + 1)]
