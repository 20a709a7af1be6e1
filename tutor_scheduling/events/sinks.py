"""Destinations for booking domain events."""

import json
import logging
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Receives serialized events; delivery (email, push) happens behind it."""

    def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingEventSink:
    """Default sink: writes each event as one structured log line."""

    def __init__(self, logger_name: str = "tutor_scheduling.events") -> None:
        self.logger = logging.getLogger(logger_name)

    def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.logger.info(
            "domain_event=%s payload=%s",
            event_type,
            json.dumps(payload, sort_keys=True),
            extra={"event_type": event_type, "booking_id": payload.get("booking_id")},
        )
