"""Mutual exclusion over one provider's calendar day.

Every operation that reads slot occupancy and then writes it holds the lock
for the affected ``(provider_id, date)`` pair. Unlike cache or rate-limit
locks, a calendar lock never fails open: if it cannot be acquired the caller
gets ``CalendarLockTimeout`` (or ``ServiceException`` when Redis is down).
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import ContextManager, Dict, Iterator, Optional, Protocol
import uuid

from redis import Redis
from redis.exceptions import RedisError

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import CalendarLockTimeout, ServiceException

logger = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.05


def calendar_lock_key(provider_id: str, day: date) -> str:
    return f"calendar:{provider_id}:{day.isoformat()}"


class CalendarLock(Protocol):
    def hold(self, provider_id: str, day: date) -> ContextManager[None]:
        ...


class InProcessCalendarLock:
    """Per-(provider, date) ``threading.Lock`` registry for a single process."""

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self.timeout_s = timeout_s if timeout_s is not None else settings.calendar_lock_timeout_s
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, provider_id: str, day: date) -> Iterator[None]:
        key = calendar_lock_key(provider_id, day)
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self.timeout_s):
            prometheus_metrics.record_calendar_lock("acquire", "timeout")
            logger.warning("calendar_lock_timeout", extra={"lock_key": key})
            raise CalendarLockTimeout(key, self.timeout_s)
        prometheus_metrics.record_calendar_lock("acquire", "success")
        try:
            yield
        finally:
            lock.release()
            prometheus_metrics.record_calendar_lock("release", "success")


class RedisCalendarLock:
    """Calendar lock shared by every worker through ``SET NX EX`` on Redis."""

    def __init__(
        self,
        client: Optional[Redis] = None,
        *,
        timeout_s: Optional[float] = None,
        ttl_s: Optional[int] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self._client = client
        self._client_lock = threading.Lock()
        self.timeout_s = timeout_s if timeout_s is not None else settings.calendar_lock_timeout_s
        self.ttl_s = ttl_s if ttl_s is not None else settings.calendar_lock_ttl_s
        self.namespace = namespace or settings.lock_namespace

    def _namespaced_key(self, key: str) -> str:
        return f"{self.namespace}:lock:{key}"

    def _get_client(self) -> Redis:
        if self._client is not None:
            return self._client
        with self._client_lock:
            if self._client is None:
                self._client = Redis.from_url(
                    settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            return self._client

    def _acquire(self, client: Redis, key: str, token: str) -> bool:
        deadline = time.monotonic() + self.timeout_s
        while True:
            if client.set(key, token, nx=True, ex=self.ttl_s):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(_POLL_INTERVAL_S)

    def _release(self, client: Redis, key: str, token: str) -> None:
        try:
            if client.get(key) == token:
                client.delete(key)
                prometheus_metrics.record_calendar_lock("release", "success")
            else:
                # Our lease expired and another worker holds the key now
                prometheus_metrics.record_calendar_lock("release", "expired")
                logger.warning("calendar_lock_lease_expired", extra={"lock_key": key})
        except RedisError as exc:
            prometheus_metrics.record_calendar_lock("release", "error")
            logger.warning(
                "calendar_lock_release_failed",
                extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
            )

    @contextmanager
    def hold(self, provider_id: str, day: date) -> Iterator[None]:
        key = self._namespaced_key(calendar_lock_key(provider_id, day))
        token = uuid.uuid4().hex
        client = self._get_client()
        try:
            acquired = self._acquire(client, key, token)
        except RedisError as exc:
            prometheus_metrics.record_calendar_lock("acquire", "error")
            logger.error(
                "calendar_lock_redis_unavailable",
                extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise ServiceException(
                "Calendar lock backend unavailable",
                code="CALENDAR_LOCK_UNAVAILABLE",
                details={"lock_key": key},
            ) from exc
        if not acquired:
            prometheus_metrics.record_calendar_lock("acquire", "timeout")
            raise CalendarLockTimeout(key, self.timeout_s)
        prometheus_metrics.record_calendar_lock("acquire", "success")
        try:
            yield
        finally:
            self._release(client, key, token)


_DEFAULT_LOCK: Optional[CalendarLock] = None
_DEFAULT_LOCK_GUARD = threading.Lock()


def get_calendar_lock() -> CalendarLock:
    """Return the process-wide calendar lock for the configured backend."""
    global _DEFAULT_LOCK
    if _DEFAULT_LOCK is not None:
        return _DEFAULT_LOCK
    with _DEFAULT_LOCK_GUARD:
        if _DEFAULT_LOCK is None:
            if settings.calendar_lock_backend == "redis":
                _DEFAULT_LOCK = RedisCalendarLock()
            else:
                _DEFAULT_LOCK = InProcessCalendarLock()
        return _DEFAULT_LOCK
