# tests/services/test_booking_concurrency.py
"""
Concurrent writers on one calendar day: exactly one booking or slot wins.

Each worker uses its own session on the same file-backed database, as
separate API requests would.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import time
from decimal import Decimal
import itertools
import threading

import pytest

from tests.conftest import PROVIDER_ID, SLOT_DATE
from tutor_scheduling.core.exceptions import SlotOverlapError, SlotUnavailableError
from tutor_scheduling.models.booking import Booking
from tutor_scheduling.models.time_slot import TimeSlot
from tutor_scheduling.services.availability_service import AvailabilityService
from tutor_scheduling.services.booking_service import BookingService
from tutor_scheduling.utils.time_windows import overlaps

WORKERS = 6


def _race(session_factory, clock, payout_status, publisher, calendar_lock, slot_id):
    barrier = threading.Barrier(WORKERS)

    def attempt(index: int):
        session = session_factory()
        try:
            service = BookingService(
                session,
                clock=clock,
                payout_status=payout_status,
                event_publisher=publisher,
                calendar_lock=calendar_lock,
            )
            barrier.wait(timeout=10)
            try:
                return service.request_booking(slot_id, f"consumer-{index}", Decimal("10")).id
            except SlotUnavailableError:
                return None
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(attempt, range(WORKERS)))


@pytest.mark.parametrize("round_", range(3))
def test_exactly_one_concurrent_request_wins(
    db, session_factory, availability_service, clock, payout_status, publisher, calendar_lock, round_
):
    slot = availability_service.add_slot(PROVIDER_ID, SLOT_DATE, time(9, 0), time(10, 0))

    results = _race(session_factory, clock, payout_status, publisher, calendar_lock, slot.id)

    winners = [booking_id for booking_id in results if booking_id is not None]
    assert len(winners) == 1

    db.expire_all()
    assert db.get(TimeSlot, slot.id).occupied is True
    bookings = db.query(Booking).filter(Booking.slot_id == slot.id).all()
    assert [b.id for b in bookings] == winners


def test_loser_can_book_after_winner_is_rejected(
    db, session_factory, availability_service, booking_service, clock, payout_status, publisher, calendar_lock
):
    slot = availability_service.add_slot(PROVIDER_ID, SLOT_DATE, time(9, 0), time(10, 0))
    results = _race(session_factory, clock, payout_status, publisher, calendar_lock, slot.id)
    (winner,) = [booking_id for booking_id in results if booking_id is not None]

    booking_service.reject(winner)
    rebooked = booking_service.request_booking(slot.id, "consumer-late", Decimal("10"))

    assert rebooked.status == "pending"
    db.expire_all()
    assert db.get(TimeSlot, slot.id).occupied is True


def test_concurrent_overlapping_add_slot_has_one_winner(
    db, session_factory, clock, calendar_lock
):
    barrier = threading.Barrier(WORKERS)

    def attempt(index: int):
        # Each window overlaps every other one: 09:00-10:00, 09:10-10:10, ...
        start = time(9, index * 10)
        end = time(10, index * 10)
        session = session_factory()
        try:
            service = AvailabilityService(session, clock=clock, calendar_lock=calendar_lock)
            barrier.wait(timeout=10)
            try:
                return service.add_slot(PROVIDER_ID, SLOT_DATE, start, end).id
            except SlotOverlapError:
                return None
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(attempt, range(WORKERS)))

    winners = [slot_id for slot_id in results if slot_id is not None]
    assert len(winners) == 1

    stored = db.query(TimeSlot).filter(TimeSlot.provider_id == PROVIDER_ID).all()
    assert [slot.id for slot in stored] == winners
    for a, b in itertools.combinations(stored, 2):
        assert not overlaps(a.start_time, a.end_time, b.start_time, b.end_time)
