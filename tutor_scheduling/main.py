# tutor_scheduling/main.py
"""
HTTP surface for the scheduling core.

``create_app`` wires the routers onto a FastAPI app with its collaborators
on ``app.state``; ``app`` is the default instance for ``uvicorn
tutor_scheduling.main:app``.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Response
from sqlalchemy.orm import Session, sessionmaker

from .api.errors import register_error_handlers
from .core.calendar_lock import CalendarLock, get_calendar_lock
from .core.clock import Clock, system_clock
from .core.config import settings
from .database import SessionLocal, init_db
from .events.publisher import EventPublisher, get_event_publisher
from .integrations.payout_status import InMemoryPayoutStatus, PayoutStatusProvider
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes import availability, bookings, stats

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Tutor Scheduling API"
API_VERSION = "1.0.0"


def create_app(
    *,
    session_factory: Optional[sessionmaker[Session]] = None,
    clock: Optional[Clock] = None,
    payout_status: Optional[PayoutStatusProvider] = None,
    event_publisher: Optional[EventPublisher] = None,
    calendar_lock: Optional[CalendarLock] = None,
    create_tables: bool = False,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if create_tables:
            init_db(app.state.session_factory.kw["bind"])
        yield
        # Deliver what is queued before the worker process exits
        app.state.event_publisher.flush(timeout=settings.event_flush_timeout_s)

    app = FastAPI(title=API_TITLE, version=API_VERSION, lifespan=lifespan)

    app.state.session_factory = session_factory or SessionLocal
    app.state.clock = clock or system_clock
    app.state.payout_status = payout_status or InMemoryPayoutStatus()
    app.state.event_publisher = event_publisher or get_event_publisher()
    app.state.calendar_lock = calendar_lock or get_calendar_lock()

    register_error_handlers(app)

    app.include_router(availability.router, prefix="/api/availability")
    app.include_router(bookings.router, prefix="/api/bookings")
    app.include_router(stats.router, prefix="/api/stats")

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(
            content=prometheus_metrics.get_metrics(),
            media_type=prometheus_metrics.get_content_type(),
        )

    @app.get("/health", include_in_schema=False)
    def health() -> dict:
        return {"status": "ok", "environment": settings.environment}

    logger.info(
        "Scheduling API ready (lock backend: %s)", type(app.state.calendar_lock).__name__
    )
    return app


app = create_app(create_tables=not settings.is_production)
