"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# RSVP metrics
rsvp_attempts = Counter(
    'rsvp_attempts_total',
    'Total RSVP registration attempts',
    ['result']  # created, past, full, duplicate, not_found, unauthenticated
)

rsvp_cancellations = Counter(
    'rsvp_cancellations_total',
    'Total RSVP cancellations',
    ['result']  # cancelled, not_found
)

rsvp_latency = Histogram(
    'rsvp_latency_seconds',
    'Registration request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

capacity_races_lost = Counter(
    'rsvp_capacity_races_lost_total',
    'Registrations that passed the capacity pre-check but lost the conditional claim'
)

# Event metrics
event_mutations = Counter(
    'event_mutations_total',
    'Event create/update/delete operations',
    ['operation']  # create, update, delete
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_rsvp_attempt(result: str):
    rsvp_attempts.labels(result=result).inc()


def record_rsvp_cancellation(result: str):
    rsvp_cancellations.labels(result=result).inc()


def record_event_mutation(operation: str):
    event_mutations.labels(operation=operation).inc()
