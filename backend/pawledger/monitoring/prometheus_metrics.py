"""
Prometheus metrics module for PawLedger.

Service timings come from the ``@BaseService.measure_operation`` decorator;
domain counters are incremented by the booking and checkout services.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps test processes from colliding with default collectors
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "pawledger_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "pawledger_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "pawledger_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

checkouts_total = Counter(
    "pawledger_checkouts_total",
    "Committed checkouts",
    ["payment_method"],
    registry=REGISTRY,
)

checkout_replays_total = Counter(
    "pawledger_checkout_replays_total",
    "Checkouts answered from a stored idempotent result",
    registry=REGISTRY,
)

capacity_rejections_total = Counter(
    "pawledger_capacity_rejections_total",
    "Booking attempts rejected for lack of capacity",
    ["stage"],  # advisory | locked
    registry=REGISTRY,
)

ledger_conflicts_total = Counter(
    "pawledger_ledger_conflicts_total",
    "Conditional balance updates that lost a race",
    ["ledger"],  # wallet | points
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers do not import individual collectors."""

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
            service: Service name (e.g., 'CheckoutService')
            operation: Operation name (e.g., 'process_checkout')
            duration: Operation duration in seconds
            status: 'success' or 'error'
            error_type: Exception class name when status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def inc_checkout(payment_method: str) -> None:
        checkouts_total.labels(payment_method=payment_method).inc()

    @staticmethod
    def inc_checkout_replay() -> None:
        checkout_replays_total.inc()

    @staticmethod
    def inc_capacity_rejection(stage: str) -> None:
        capacity_rejections_total.labels(stage=stage).inc()

    @staticmethod
    def inc_ledger_conflict(ledger: str) -> None:
        ledger_conflicts_total.labels(ledger=ledger).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
