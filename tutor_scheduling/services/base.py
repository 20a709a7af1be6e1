# tutor_scheduling/services/base.py
"""
Shared plumbing for the scheduling services.

Each service owns one SQLAlchemy session. Writes go through ``transaction()``
so a failed unit of work is rolled back before the error leaves the
service, and public operations are timed with ``measure_operation``.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class BaseService:
    """Session holder with transaction, timing and logging helpers."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Driver errors surface as ServiceException; domain errors raised inside
        the block propagate unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Rolling back after database error: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and report it to Prometheus.

        Calls slower than ``settings.slow_operation_threshold_s`` are also
        logged as warnings.
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    if elapsed > settings.slow_operation_threshold_s:
                        self.logger.warning(f"Slow {operation_name}: {elapsed:.2f}s")
                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="error" if error_type else "success",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Info log line with ``context`` attached as structured fields."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})
