"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Reservation metrics
reservation_attempts = Counter(
    'slot_reservation_attempts_total',
    'Total slot reservation attempts',
    ['result']  # success, slot_full, error
)

reservation_latency = Histogram(
    'slot_reservation_latency_seconds',
    'Slot reservation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

slot_releases = Counter(
    'slot_releases_total',
    'Capacity released back to a slot',
    ['result']  # released, floored, error
)

# Lifecycle metrics
status_transitions = Counter(
    'booking_status_transitions_total',
    'Committed booking status transitions',
    ['from_status', 'to_status']
)

rejected_transitions = Counter(
    'booking_rejected_transitions_total',
    'Transition requests rejected by the transition table',
    ['from_status', 'to_status']
)

# Store metrics
db_retries = Counter(
    'db_retry_attempts_total',
    'Store retries due to conflicts or transient failures',
    ['operation']  # reserve, transition
)

# Notification metrics
notification_deliveries = Counter(
    'notification_deliveries_total',
    'Notification channel delivery attempts',
    ['channel', 'result']  # sms/email, sent/failed
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


def record_reservation(result: str):
    """Record reservation attempt. Result: success, slot_full, error"""
    reservation_attempts.labels(result=result).inc()


def record_release(result: str):
    slot_releases.labels(result=result).inc()


def record_transition(from_status: str, to_status: str, accepted: bool = True):
    counter = status_transitions if accepted else rejected_transitions
    counter.labels(from_status=from_status, to_status=to_status).inc()


def record_db_retry(operation: str):
    """Record a store retry. Operation: reserve, transition"""
    db_retries.labels(operation=operation).inc()


def record_notification(channel: str, sent: bool):
    result = "sent" if sent else "failed"
    notification_deliveries.labels(channel=channel, result=result).inc()
