# tutor_scheduling/api/dependencies.py
"""
FastAPI dependencies for the scheduling routes.

Collaborators (session factory, clock, payout lookup, event publisher and
calendar lock) live on ``app.state`` so an embedding application or a test
can build the app with its own.
"""

import logging
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..core.constants import MAX_ID_LENGTH
from ..services.availability_service import AvailabilityService
from ..services.booking_service import BookingService
from ..services.stats_service import StatsService

logger = logging.getLogger(__name__)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_principal_id(
    x_principal_id: Optional[str] = Header(None, alias="X-Principal-Id"),
) -> str:
    """Verified principal id supplied by the identity layer in front of this API."""
    if not x_principal_id or len(x_principal_id) > MAX_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Missing or invalid principal", "code": "PRINCIPAL_REQUIRED"},
        )
    return x_principal_id


def get_availability_service(
    request: Request, db: Session = Depends(get_db)
) -> AvailabilityService:
    state = request.app.state
    return AvailabilityService(db, clock=state.clock, calendar_lock=state.calendar_lock)


def get_booking_service(request: Request, db: Session = Depends(get_db)) -> BookingService:
    state = request.app.state
    return BookingService(
        db,
        clock=state.clock,
        payout_status=state.payout_status,
        event_publisher=state.event_publisher,
        calendar_lock=state.calendar_lock,
    )


def get_stats_service(request: Request, db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db, clock=request.app.state.clock)
