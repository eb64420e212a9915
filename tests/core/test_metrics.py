"""Unit tests for metrics recording helpers."""

from prometheus_client import CollectorRegistry, Counter, Histogram
import pytest

import aurelane.core.metrics as metrics


@pytest.fixture
def metric_registry(monkeypatch):
    """Provide a fresh registry and rebind module-level metrics."""
    registry = CollectorRegistry()

    monkeypatch.setattr(
        metrics,
        "CACHE_EVENTS",
        Counter(
            "aurelane_cache_events_total",
            "Cache events",
            ["cache", "event"],
            registry=registry,
        ),
    )
    monkeypatch.setattr(
        metrics,
        "API_REQUESTS",
        Counter(
            "aurelane_api_requests_total",
            "API requests",
            ["endpoint", "result"],
            registry=registry,
        ),
    )
    monkeypatch.setattr(
        metrics,
        "API_REQUEST_LATENCY",
        Histogram(
            "aurelane_api_request_seconds",
            "API request latency",
            ["endpoint"],
            registry=registry,
        ),
    )
    monkeypatch.setattr(
        metrics,
        "CHECKOUT_TRANSITIONS",
        Counter(
            "aurelane_checkout_transitions_total",
            "Checkout transitions",
            ["state"],
            registry=registry,
        ),
    )

    return registry


def test_record_cache_event_increments_counter(metric_registry):
    metrics.record_cache_event("api", "hit")
    metrics.record_cache_event("api", "hit")
    metrics.record_cache_event("api", "coalesced")

    hits = metric_registry.get_sample_value(
        "aurelane_cache_events_total", {"cache": "api", "event": "hit"}
    )
    coalesced = metric_registry.get_sample_value(
        "aurelane_cache_events_total", {"cache": "api", "event": "coalesced"}
    )
    assert hits == 2.0
    assert coalesced == 1.0


def test_observe_api_request_updates_counters(metric_registry):
    metrics.observe_api_request("GET /gems", "success", 0.5)
    metrics.observe_api_request("GET /gems", "server_error", 1.5)

    success_value = metric_registry.get_sample_value(
        "aurelane_api_requests_total",
        {"endpoint": "GET /gems", "result": "success"},
    )
    error_value = metric_registry.get_sample_value(
        "aurelane_api_requests_total",
        {"endpoint": "GET /gems", "result": "server_error"},
    )
    latency_sum = metric_registry.get_sample_value(
        "aurelane_api_request_seconds_sum", {"endpoint": "GET /gems"}
    )
    latency_count = metric_registry.get_sample_value(
        "aurelane_api_request_seconds_count", {"endpoint": "GET /gems"}
    )

    assert success_value == 1.0
    assert error_value == 1.0
    assert latency_count == 2.0
    assert latency_sum == pytest.approx(2.0)


def test_record_checkout_transition(metric_registry):
    metrics.record_checkout_transition("submitting")
    metrics.record_checkout_transition("completed")
    metrics.record_checkout_transition("submitting")

    assert (
        metric_registry.get_sample_value(
            "aurelane_checkout_transitions_total", {"state": "submitting"}
        )
        == 2.0
    )
    assert (
        metric_registry.get_sample_value(
            "aurelane_checkout_transitions_total", {"state": "completed"}
        )
        == 1.0
    )
