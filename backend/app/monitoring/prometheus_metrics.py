"""
Prometheus metrics for the session credit ledger.

Service timings come from the @measure_operation decorator; the ledger
counters below track credit flow and the incidents operators must act on.
"""

from typing import Optional, cast

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
    "session_ledger_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "session_ledger_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "session_ledger_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

# Ledger counters
credits_issued_total = Counter(
    "session_ledger_credits_issued_total",
    "Credit units issued to clients",
    ["source"],  # purchase | cancellation_refund
    registry=REGISTRY,
)

credits_consumed_total = Counter(
    "session_ledger_credits_consumed_total",
    "Credit units redeemed for bookings",
    registry=REGISTRY,
)

cancellations_total = Counter(
    "session_ledger_cancellations_total",
    "Cancellations settled, by outcome tier",
    ["cancellation_type"],
    registry=REGISTRY,
)

compensation_failures_total = Counter(
    "session_ledger_compensation_failures_total",
    "Bookings whose compensating delete failed (ledger-integrity incidents)",
    registry=REGISTRY,
)

outbound_failures_total = Counter(
    "session_ledger_outbound_failures_total",
    "Best-effort collaborator calls that failed",
    ["collaborator"],  # video | notifications
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

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
            operation: Operation/method name (e.g., 'book')
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
    def inc_credits_issued(source: str, count: int = 1) -> None:
        credits_issued_total.labels(source=source).inc(count)

    @staticmethod
    def inc_credits_consumed() -> None:
        credits_consumed_total.inc()

    @staticmethod
    def inc_cancellation(cancellation_type: str) -> None:
        cancellations_total.labels(cancellation_type=cancellation_type).inc()

    @staticmethod
    def inc_compensation_failure() -> None:
        compensation_failures_total.inc()

    @staticmethod
    def inc_outbound_failure(collaborator: str) -> None:
        outbound_failures_total.labels(collaborator=collaborator).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
