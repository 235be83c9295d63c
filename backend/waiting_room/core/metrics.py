"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Queue metrics
queue_entries = Counter(
    'waiting_room_queue_entries_total',
    'Total queue entries issued'
)

queue_depth = Gauge(
    'waiting_room_queue_depth',
    'Tokens waiting in an event queue after the last sweep',
    ['event_id']
)

# Admission scheduler metrics
admissions = Counter(
    'waiting_room_admissions_total',
    'Popped queue tokens by admission outcome',
    ['result']  # admitted, stale, error
)

sweeps = Counter(
    'waiting_room_sweeps_total',
    'Admission scheduler ticks',
    ['outcome']  # completed, skipped, failed
)

sweep_latency = Histogram(
    'waiting_room_sweep_latency_seconds',
    'Admission sweep duration',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Reservation handoff metrics
redemptions = Counter(
    'waiting_room_redemptions_total',
    'Exchange token redemption attempts',
    ['result']  # success, invalid
)

# Infrastructure metrics
redis_errors = Counter(
    'waiting_room_redis_errors_total',
    'Redis errors surfaced to callers'
)

request_latency = Histogram(
    'waiting_room_request_latency_seconds',
    'HTTP request latency',
    ['method', 'status'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_admission(result: str):
    """Record a popped token's fate. Result: admitted, stale, error"""
    admissions.labels(result=result).inc()


def record_sweep(outcome: str):
    """Record scheduler tick. Outcome: completed, skipped, failed"""
    sweeps.labels(outcome=outcome).inc()


def record_redemption(success: bool):
    """Record exchange token redemption."""
    result = "success" if success else "invalid"
    redemptions.labels(result=result).inc()
