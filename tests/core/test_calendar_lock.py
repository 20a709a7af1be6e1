from datetime import date
import threading
from unittest.mock import Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from tutor_scheduling.core.calendar_lock import (
    InProcessCalendarLock,
    RedisCalendarLock,
    calendar_lock_key,
)
from tutor_scheduling.core.exceptions import CalendarLockTimeout, ServiceException

DAY = date(2025, 3, 10)


def test_calendar_lock_key():
    assert calendar_lock_key("p1", DAY) == "calendar:p1:2025-03-10"


class TestInProcessCalendarLock:
    def test_times_out_while_another_thread_holds_the_day(self):
        lock = InProcessCalendarLock(timeout_s=0.1)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with lock.hold("p1", DAY):
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            assert held.wait(5)
            with pytest.raises(CalendarLockTimeout) as exc_info:
                with lock.hold("p1", DAY):
                    pass
            assert exc_info.value.status_code == 503
            assert exc_info.value.code == "CALENDAR_BUSY"
        finally:
            release.set()
            thread.join()

    def test_different_days_and_providers_do_not_block(self):
        lock = InProcessCalendarLock(timeout_s=0.1)
        with lock.hold("p1", DAY):
            with lock.hold("p1", date(2025, 3, 11)):
                with lock.hold("p2", DAY):
                    pass

    def test_released_after_exception(self):
        lock = InProcessCalendarLock(timeout_s=0.1)
        with pytest.raises(ValueError):
            with lock.hold("p1", DAY):
                raise ValueError("boom")
        with lock.hold("p1", DAY):
            pass


class TestRedisCalendarLock:
    def _lock(self, client, timeout_s=0.2):
        return RedisCalendarLock(client, timeout_s=timeout_s, ttl_s=30, namespace="test")

    def test_acquires_with_set_nx_and_deletes_own_token(self):
        client = Mock()
        tokens = []
        client.get.side_effect = lambda key: tokens[0]

        def _set(key, token, nx, ex):
            tokens.append(token)
            return True

        client.set.side_effect = _set

        with self._lock(client).hold("p1", DAY):
            pass

        key = "test:lock:calendar:p1:2025-03-10"
        client.set.assert_called_once()
        args, kwargs = client.set.call_args
        assert args[0] == key
        assert kwargs == {"nx": True, "ex": 30}
        client.delete.assert_called_once_with(key)

    def test_times_out_when_key_is_held(self):
        client = Mock()
        client.set.return_value = None

        with pytest.raises(CalendarLockTimeout):
            with self._lock(client, timeout_s=0.1).hold("p1", DAY):
                pass

        assert client.set.call_count >= 1
        client.delete.assert_not_called()

    def test_does_not_delete_a_lease_taken_over_by_another_worker(self):
        client = Mock()
        client.set.return_value = True
        client.get.return_value = "someone-else"

        with self._lock(client).hold("p1", DAY):
            pass

        client.delete.assert_not_called()

    def test_redis_outage_does_not_fail_open(self):
        client = Mock()
        client.set.side_effect = RedisConnectionError("down")
        entered = False

        with pytest.raises(ServiceException) as exc_info:
            with self._lock(client).hold("p1", DAY):
                entered = True

        assert not entered
        assert exc_info.value.code == "CALENDAR_LOCK_UNAVAILABLE"
