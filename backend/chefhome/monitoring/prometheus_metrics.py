"""
Prometheus metrics module for Chef@Home.

Service operation timings come from @measure_operation; reservation
lock and outcome counters come from the reservation engine.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "chefhome_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "chefhome_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

service_operation_errors_total = Counter(
    "chefhome_service_operation_errors_total",
    "Total number of failed service operations",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

reservation_lock_total = Counter(
    "chefhome_reservation_lock_total",
    "Reservation lock acquisitions and releases by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

reservation_outcomes_total = Counter(
    "chefhome_reservation_outcomes_total",
    "Reservation creation outcomes",
    ["kind", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade over the module level collectors."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if error_type:
            service_operation_errors_total.labels(
                service=service, operation=operation, error_type=error_type
            ).inc()

    @staticmethod
    def record_reservation_lock(action: str, outcome: str) -> None:
        reservation_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_reservation_outcome(kind: str, outcome: str) -> None:
        reservation_outcomes_total.labels(kind=kind, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    content_type = CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
