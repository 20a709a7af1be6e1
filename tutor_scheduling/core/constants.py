"""Application-wide constants for the scheduling core."""

from __future__ import annotations

from decimal import Decimal

# Share of every paid booking retained by the platform
PLATFORM_FEE_RATE = Decimal("0.20")

# Money is stored and reported with two decimal places
MONEY_QUANTUM = Decimal("0.01")

# Text constraints
MAX_NOTES_LENGTH = 1000
MAX_ID_LENGTH = 64

DAYS_IN_WEEK = 7
