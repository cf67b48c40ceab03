"""Tests for federation counters."""

from federated_retrieval.services.metrics import FederationMetrics


def test_empty_snapshot():
    """Test snapshot before any request."""
    snapshot = FederationMetrics().snapshot()
    assert snapshot == {
        "requests": 0,
        "cache_hits": 0,
        "cache_misses": 0,
        "cache_hit_rate": 0.0,
        "providers": {},
    }


def test_cache_hit_rate():
    """Test hit rate from hits and misses."""
    metrics = FederationMetrics()
    metrics.record_cache_hit()
    metrics.record_cache_miss()
    metrics.record_cache_miss()
    metrics.record_cache_miss()
    assert metrics.snapshot()["cache_hit_rate"] == 0.25


def test_provider_counters():
    """Test per-provider counters and latency."""
    metrics = FederationMetrics()
    metrics.record_request()
    metrics.record_provider_success("internal", 100.0)
    metrics.record_provider_success("internal", 50.0)
    metrics.record_provider_failure("searxng", 2500.0, "PROVIDER_TIMEOUT", timeout=True)
    metrics.record_provider_failure("searxng", 10.0, "ProviderError")
    metrics.record_provider_skip("media")

    snapshot = metrics.snapshot()

    assert snapshot["requests"] == 1
    internal = snapshot["providers"]["internal"]
    assert internal["successes"] == 2
    assert internal["avg_latency_ms"] == 75.0
    assert internal["last_latency_ms"] == 50.0

    searxng = snapshot["providers"]["searxng"]
    assert searxng["failures"] == 2
    assert searxng["timeouts"] == 1
    assert searxng["last_error"] == "ProviderError"

    media = snapshot["providers"]["media"]
    assert media["skips"] == 1
    assert media["avg_latency_ms"] == 0.0
    assert list(snapshot["providers"]) == ["internal", "media", "searxng"]
