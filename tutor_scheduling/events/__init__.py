"""Booking domain events and their delivery."""

from .booking_events import (
    BookingCompleted,
    BookingConfirmed,
    BookingRejected,
    BookingRequested,
)
from .publisher import EventPublisher, get_event_publisher
from .sinks import EventSink, LoggingEventSink

__all__ = [
    # Booking domain events
    "BookingRequested",
    "BookingConfirmed",
    "BookingRejected",
    "BookingCompleted",
    # Delivery
    "EventPublisher",
    "get_event_publisher",
    "EventSink",
    "LoggingEventSink",
]
