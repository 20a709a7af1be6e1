# tutor_scheduling/database.py
from datetime import datetime
import logging
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from .core.config import settings

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()


def _is_sqlite(url: str) -> bool:
    return url.lower().startswith("sqlite")


def create_engine_from_url(url: str, *, echo: bool = False) -> Engine:
    """
    Build an engine for the scheduling store.

    SQLite gets a busy timeout and enforced foreign keys so that local and
    test databases behave like the production store for concurrent writers.
    """
    if _is_sqlite(url):
        new_engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(new_engine, "connect")
        def _sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            connection_record.info["connect_time"] = datetime.now()

        return new_engine

    new_engine = create_engine(
        url,
        echo=echo,
        pool_size=10,  # Number of persistent connections
        max_overflow=10,  # Maximum overflow connections
        pool_timeout=30,  # Timeout for getting connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Test connections before using
    )

    @event.listens_for(new_engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    return new_engine


engine: Engine = create_engine_from_url(settings.database_url, echo=settings.database_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind, expire_on_commit=False)


def init_db(bind: Engine = engine) -> None:
    """Create all scheduling tables that do not exist yet."""
    # Register models on Base.metadata before create_all
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Scheduling tables ready")

