from datetime import date, datetime, time

from tutor_scheduling.core.exceptions import (
    CalendarLockTimeout,
    InvalidStateError,
    NotPendingError,
    NotYetElapsedError,
    PayoutNotReadyError,
    SlotOverlapError,
    SlotUnavailableError,
    WeekCopyConflictError,
)


def _overlap() -> SlotOverlapError:
    return SlotOverlapError(
        date(2025, 3, 10),
        time(9, 30),
        time(10, 30),
        "01HXSLOT",
        time(9, 0),
        time(10, 0),
    )


class TestErrorDetails:
    def test_overlap_carries_conflicting_slot(self):
        err = _overlap()
        assert err.status_code == 409
        assert err.code == "AVAILABILITY_OVERLAP"
        assert err.details == {
            "date": "2025-03-10",
            "new_slot": "09:30-10:30",
            "conflicting_slot_id": "01HXSLOT",
            "conflicting_slot": "09:00-10:00",
        }

    def test_week_copy_conflict_lists_committed_days(self):
        err = WeekCopyConflictError(_overlap(), [date(2025, 3, 3)], ["a", "b"])
        assert isinstance(err, SlotOverlapError)
        assert err.code == "WEEK_COPY_CONFLICT"
        assert err.details["committed_days"] == ["2025-03-03"]
        assert err.details["created_slot_ids"] == ["a", "b"]
        assert err.details["conflicting_slot_id"] == "01HXSLOT"

    def test_state_errors_carry_current_status(self):
        err = NotPendingError("b1", "confirmed")
        assert isinstance(err, InvalidStateError)
        assert err.current_status == "confirmed"
        assert err.details["current_status"] == "confirmed"
        assert err.status_code == 422

    def test_only_elapsed_and_lock_errors_are_retryable(self):
        end_at = datetime(2025, 3, 10, 10, 0)
        assert NotYetElapsedError("b1", end_at, datetime(2025, 3, 10, 9, 0)).retryable
        assert CalendarLockTimeout("calendar:p1:2025-03-10", 1.0).retryable
        assert not SlotUnavailableError("s1").retryable
        assert not PayoutNotReadyError("p1", "b1").retryable


def test_to_http_exception_uses_status_and_envelope():
    http_exc = SlotUnavailableError("s1").to_http_exception()
    assert http_exc.status_code == 409
    assert http_exc.detail["code"] == "SLOT_UNAVAILABLE"
    assert http_exc.detail["details"] == {"slot_id": "s1"}
