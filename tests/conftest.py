# tests/conftest.py
"""
Pytest configuration for the scheduling core.

Every test gets its own file-backed SQLite database under tmp_path, so
thread-based tests can open several connections to the same store.
"""

import os

# Set before any tutor_scheduling import so the module-level engine is harmless
os.environ.setdefault("TUTOR_SCHEDULING_DATABASE_URL", "sqlite://")
os.environ.setdefault("TUTOR_SCHEDULING_CALENDAR_LOCK_BACKEND", "memory")

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytest
from sqlalchemy.orm import Session

from tutor_scheduling.core.calendar_lock import InProcessCalendarLock
from tutor_scheduling.core.clock import FixedClock
from tutor_scheduling.database import create_engine_from_url, init_db, make_session_factory
from tutor_scheduling.events.publisher import EventPublisher
from tutor_scheduling.integrations.payout_status import InMemoryPayoutStatus
from tutor_scheduling.services.availability_service import AvailabilityService
from tutor_scheduling.services.booking_service import BookingService
from tutor_scheduling.services.stats_service import StatsService

PROVIDER_ID = "provider-1"
OTHER_PROVIDER_ID = "provider-2"
CONSUMER_ID = "consumer-a"
OTHER_CONSUMER_ID = "consumer-b"

# Monday; slots in tests are placed later in the same week unless noted
NOW = datetime(2025, 3, 10, 8, 0)
SLOT_DATE = date(2025, 3, 10)


class RecordingSink:
    """Event sink that keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.events.append((event_type, payload))

    @property
    def event_types(self) -> List[str]:
        return [event_type for event_type, _ in self.events]


class FailingSink:
    def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        raise RuntimeError("notification backend down")


@pytest.fixture
def engine(tmp_path):
    test_engine = create_engine_from_url(f"sqlite:///{tmp_path / 'scheduling.db'}")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def calendar_lock() -> InProcessCalendarLock:
    return InProcessCalendarLock(timeout_s=5.0)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def publisher(sink) -> EventPublisher:
    event_publisher = EventPublisher(sink)
    yield event_publisher
    event_publisher.shutdown()


@pytest.fixture
def payout_status() -> InMemoryPayoutStatus:
    return InMemoryPayoutStatus()


@pytest.fixture
def availability_service(db, clock, calendar_lock) -> AvailabilityService:
    return AvailabilityService(db, clock=clock, calendar_lock=calendar_lock)


@pytest.fixture
def booking_service(db, clock, payout_status, publisher, calendar_lock) -> BookingService:
    return BookingService(
        db,
        clock=clock,
        payout_status=payout_status,
        event_publisher=publisher,
        calendar_lock=calendar_lock,
    )


@pytest.fixture
def stats_service(db, clock) -> StatsService:
    return StatsService(db, clock=clock)


@pytest.fixture
def slot(availability_service):
    """One free 09:00-10:00 slot for PROVIDER_ID on SLOT_DATE."""
    return availability_service.add_slot(PROVIDER_ID, SLOT_DATE, time(9, 0), time(10, 0))


@pytest.fixture
def pending_booking(booking_service, slot):
    return booking_service.request_booking(slot.id, CONSUMER_ID, Decimal("10.00"))


@pytest.fixture
def confirmed_booking(booking_service, payout_status, pending_booking):
    payout_status.set_ready(PROVIDER_ID)
    return booking_service.confirm(pending_booking.id)
