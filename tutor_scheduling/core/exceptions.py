# tutor_scheduling/core/exceptions.py
"""
Domain-specific exceptions for the scheduling core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def _fmt_range(start: time, end: time) -> str:
    return f"{start.strftime('%H:%M')}-{end.strftime('%H:%M')}"


# Availability errors


class InvalidRangeError(ValidationException):
    """Raised when a time range or amount is malformed."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_RANGE", details=details)


class SlotOverlapError(ConflictException):
    """Raised when a slot would overlap an existing slot on the same day."""

    def __init__(
        self,
        slot_date: date,
        start_time: time,
        end_time: time,
        conflicting_slot_id: str,
        conflicting_start: time,
        conflicting_end: time,
        *,
        message: Optional[str] = None,
        code: str = "AVAILABILITY_OVERLAP",
        extra: Optional[Dict[str, Any]] = None,
    ):
        new_range = _fmt_range(start_time, end_time)
        conflicting_range = _fmt_range(conflicting_start, conflicting_end)
        details: Dict[str, Any] = {
            "date": slot_date.isoformat(),
            "new_slot": new_range,
            "conflicting_slot_id": conflicting_slot_id,
            "conflicting_slot": conflicting_range,
        }
        if extra:
            details.update(extra)
        super().__init__(
            message=message
            or (f"Overlapping slot on {slot_date.isoformat()}: {new_range} conflicts with {conflicting_range}"),
            code=code,
            details=details,
        )
        self.slot_date = slot_date
        self.start_time = start_time
        self.end_time = end_time
        self.conflicting_slot_id = conflicting_slot_id
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end


class WeekCopyConflictError(SlotOverlapError):
    """Raised when one day of a week copy conflicts; earlier days stay committed."""

    def __init__(
        self,
        conflict: SlotOverlapError,
        committed_days: Iterable[date],
        created_slot_ids: Iterable[str],
    ):
        committed = [d.isoformat() for d in committed_days]
        created = list(created_slot_ids)
        super().__init__(
            slot_date=conflict.slot_date,
            start_time=conflict.start_time,
            end_time=conflict.end_time,
            conflicting_slot_id=conflict.conflicting_slot_id,
            conflicting_start=conflict.conflicting_start,
            conflicting_end=conflict.conflicting_end,
            message=(
                f"Week copy stopped on {conflict.slot_date.isoformat()}: {conflict.message}"
            ),
            code="WEEK_COPY_CONFLICT",
            extra={"committed_days": committed, "created_slot_ids": created},
        )
        self.committed_days = committed
        self.created_slot_ids = created


class SlotOccupiedError(ConflictException):
    """Raised when deleting a slot that still backs an active booking."""

    def __init__(self, slot_id: str, booking_id: Optional[str] = None):
        super().__init__(
            message=f"Slot {slot_id} backs an active booking and cannot be removed",
            code="SLOT_OCCUPIED",
            details={"slot_id": slot_id, "booking_id": booking_id},
        )


class SlotNotFoundError(NotFoundException):
    def __init__(self, slot_id: str):
        super().__init__(
            message=f"Slot {slot_id} not found",
            code="SLOT_NOT_FOUND",
            details={"slot_id": slot_id},
        )


# Booking errors


class SlotUnavailableError(ConflictException):
    """Raised when the requested slot is already taken; pick another slot."""

    def __init__(self, slot_id: str):
        super().__init__(
            message="This time slot is no longer available",
            code="SLOT_UNAVAILABLE",
            details={"slot_id": slot_id},
        )


class BookingNotFoundError(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            message=f"Booking {booking_id} not found",
            code="BOOKING_NOT_FOUND",
            details={"booking_id": booking_id},
        )


class PayoutNotReadyError(BusinessRuleException):
    """Raised when confirming a paid booking before the provider can receive payouts."""

    def __init__(self, provider_id: str, booking_id: str):
        super().__init__(
            message="Set up payouts before confirming paid bookings",
            code="PAYOUT_NOT_READY",
            details={"provider_id": provider_id, "booking_id": booking_id},
        )


class InvalidStateError(BusinessRuleException):
    """Raised when a booking transition is illegal from its current status."""

    default_code = "INVALID_BOOKING_STATE"

    def __init__(
        self,
        booking_id: str,
        current_status: str,
        target_status: str,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message
            or f"Cannot move booking from {current_status} to {target_status}",
            code=self.default_code,
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )
        self.current_status = current_status


class NotPendingError(InvalidStateError):
    default_code = "BOOKING_NOT_PENDING"

    def __init__(self, booking_id: str, current_status: str, target_status: str = "confirmed"):
        super().__init__(
            booking_id,
            current_status,
            target_status,
            message=f"Only pending bookings can be confirmed - current status: {current_status}",
        )


class NotConfirmedError(InvalidStateError):
    default_code = "BOOKING_NOT_CONFIRMED"

    def __init__(self, booking_id: str, current_status: str, target_status: str = "completed"):
        super().__init__(
            booking_id,
            current_status,
            target_status,
            message=f"Only confirmed bookings can be completed - current status: {current_status}",
        )


class NotYetElapsedError(BusinessRuleException):
    """Raised when completing a booking before its end time; retry once it has passed."""

    retryable = True

    def __init__(self, booking_id: str, end_at: datetime, now: datetime):
        super().__init__(
            message=f"Booking cannot be completed before it ends at {end_at.isoformat()}",
            code="BOOKING_NOT_ELAPSED",
            details={
                "booking_id": booking_id,
                "end_at": end_at.isoformat(),
                "now": now.isoformat(),
            },
        )
        self.end_at = end_at


class CalendarLockTimeout(ServiceException):
    """Raised when a provider calendar stays busy past the configured timeout."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(self, lock_key: str, timeout_s: float):
        super().__init__(
            message="Calendar is busy, please retry",
            code="CALENDAR_BUSY",
            details={"lock_key": lock_key, "timeout_s": timeout_s},
        )
