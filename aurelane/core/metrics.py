from __future__ import annotations

from prometheus_client import Counter, Histogram

CACHE_EVENTS = Counter(
    "aurelane_cache_events_total",
    "Request cache operations recorded by the Aurelane client.",
    labelnames=("cache", "event"),
)
API_REQUESTS = Counter(
    "aurelane_api_requests_total",
    "Outbound Aurelane API requests.",
    labelnames=("endpoint", "result"),
)
API_REQUEST_LATENCY = Histogram(
    "aurelane_api_request_seconds",
    "Latency of outbound Aurelane API requests.",
    labelnames=("endpoint",),
)
CHECKOUT_TRANSITIONS = Counter(
    "aurelane_checkout_transitions_total",
    "Checkout workflow state entries.",
    labelnames=("state",),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def observe_api_request(endpoint: str, result: str, duration_seconds: float) -> None:
    """Record API request result and latency."""
    API_REQUESTS.labels(endpoint=endpoint, result=result).inc()
    API_REQUEST_LATENCY.labels(endpoint=endpoint).observe(duration_seconds)


def record_checkout_transition(state: str) -> None:
    """Count entries into a checkout state."""
    CHECKOUT_TRANSITIONS.labels(state=state).inc()
