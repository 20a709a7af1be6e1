"""Time sources for operations that compare against "now".

All wall-clock values in the scheduling core are naive local datetimes.
"""

from __future__ import annotations

from datetime import datetime
import threading
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Local wall-clock time."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a settable instant (tests, replayed sweeps)."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._instant

    def set(self, instant: datetime) -> None:
        with self._lock:
            self._instant = instant


system_clock = SystemClock()
