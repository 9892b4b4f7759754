"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    'rental_booking_attempts_total',
    'Total booking creation attempts',
    ['result']  # success, conflict, invalid, not_found, error
)

booking_latency = Histogram(
    'rental_booking_latency_seconds',
    'Time spent inside create_booking, lock wait included',
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

status_transitions = Counter(
    'rental_status_transitions_total',
    'Booking status change requests',
    ['from_status', 'to_status', 'result']  # result: applied, illegal
)

# Availability metrics
availability_checks = Counter(
    'rental_availability_checks_total',
    'Availability probe results',
    ['result']  # available, unavailable
)

held_ranges = Gauge(
    'rental_held_ranges',
    'Ranges currently held in the availability index'
)

# Cache metrics
cache_operations = Counter(
    'rental_cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)

redis_connection_errors = Counter(
    'rental_redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(result: str):
    """Record booking attempt. Result: success, conflict, invalid, not_found, error"""
    booking_attempts.labels(result=result).inc()


def record_transition(from_status: str, to_status: str, applied: bool):
    result = "applied" if applied else "illegal"
    status_transitions.labels(from_status=from_status, to_status=to_status, result=result).inc()


def record_availability_check(available: bool):
    availability_checks.labels(result="available" if available else "unavailable").inc()


def record_cache_operation(operation: str, result: str):
    """Record cache operation. Result: hit, miss, set, error"""
    cache_operations.labels(operation=operation, result=result).inc()
