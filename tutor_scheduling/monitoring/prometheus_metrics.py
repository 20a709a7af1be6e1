"""
Prometheus metrics for the scheduling core.

Service operation timings are fed by the @measure_operation decorator on
BaseService; calendar-lock and domain-event counters are fed directly by the
lock and the event publisher.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry so embedding applications keep their own default registry clean
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "tutor_scheduling_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "tutor_scheduling_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "tutor_scheduling_errors_total",
    "Total number of errors by type",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

calendar_lock_total = Counter(
    "tutor_scheduling_calendar_lock_total",
    "Calendar lock acquisitions and releases by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

domain_events_total = Counter(
    "tutor_scheduling_domain_events_total",
    "Domain events handed to the event sink",
    ["event_type", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers never touch metric objects directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'request_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_calendar_lock(action: str, outcome: str) -> None:
        calendar_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_domain_event(event_type: str, outcome: str) -> None:
        domain_events_total.labels(event_type=event_type, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
