# tutor_scheduling/core/enums.py
"""
Core enums for the scheduling core.

These enums are shared across models, services and the HTTP surface so
that wire values stay consistent.
"""

from enum import Enum


class StatsWindow(str, Enum):
    """Relative time ranges used to filter and aggregate bookings."""

    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_YEAR = "1y"
    ALL = "all"


class CancelledBy(str, Enum):
    """Which party moved a booking to cancelled."""

    PROVIDER = "provider"
    CONSUMER = "consumer"
