"""Event publisher - queues committed booking events for background delivery."""
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import date, datetime, time
from decimal import Decimal
import logging
import threading
from typing import Any, Dict, Optional, Protocol, Set

from ..monitoring.prometheus_metrics import prometheus_metrics
from .sinks import EventSink, LoggingEventSink

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class EventPublisher:
    """
    Publishes domain events fire-and-forget.

    ``publish`` serializes the event on the caller's thread and hands it to a
    single background worker, so a slow or failing sink never delays the
    request that produced the event. Callers publish only after their
    transaction has committed. Sink failures are logged and counted, never
    raised.
    """

    def __init__(self, sink: Optional[EventSink] = None, max_workers: int = 1):
        self.sink = sink or LoggingEventSink()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="domain-events"
        )
        self._pending: Set["Future[bool]"] = set()
        self._pending_lock = threading.Lock()

    def publish(self, event: Event) -> "Future[bool]":
        """
        Queue one event for delivery.

        Returns a future that resolves to False when the sink raised or the
        publisher was already shut down.
        """
        event_type = type(event).__name__
        payload = {key: _serialize(value) for key, value in event.to_dict().items()}

        try:
            future = self._executor.submit(self._deliver, event_type, payload)
        except RuntimeError:
            logger.warning(
                "Event publisher is shut down; dropping %s (booking %s)",
                event_type,
                payload.get("booking_id"),
            )
            prometheus_metrics.record_domain_event(event_type, "dropped")
            dropped: "Future[bool]" = Future()
            dropped.set_result(False)
            return dropped

        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued events. True when nothing is left pending."""
        with self._pending_lock:
            pending = set(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending)

    def _forget(self, future: "Future[bool]") -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _deliver(self, event_type: str, payload: Dict[str, Any]) -> bool:
        try:
            self.sink.emit(event_type, payload)
        except Exception:
            logger.exception(
                "Event sink error for %s (booking %s)", event_type, payload.get("booking_id")
            )
            prometheus_metrics.record_domain_event(event_type, "error")
            return False

        prometheus_metrics.record_domain_event(event_type, "delivered")
        return True


_DEFAULT_PUBLISHER: Optional[EventPublisher] = None
_DEFAULT_PUBLISHER_GUARD = threading.Lock()


def get_event_publisher() -> EventPublisher:
    """Return the process-wide publisher backed by the logging sink."""
    global _DEFAULT_PUBLISHER
    with _DEFAULT_PUBLISHER_GUARD:
        if _DEFAULT_PUBLISHER is None:
            _DEFAULT_PUBLISHER = EventPublisher()
        return _DEFAULT_PUBLISHER
