"""Process-level counters for federation requests and providers."""

import threading
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ProviderMetric:
    successes: int = 0
    failures: int = 0
    timeouts: int = 0
    skips: int = 0
    total_latency_ms: float = 0.0
    last_latency_ms: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def calls(self) -> int:
        return self.successes + self.failures


class FederationMetrics:
    """Thread-safe request, cache and provider counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._providers: dict[str, ProviderMetric] = {}

    def record_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache_hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self._cache_misses += 1

    def record_provider_success(self, provider: str, latency_ms: float) -> None:
        with self._lock:
            stat = self._ensure(provider)
            stat.successes += 1
            stat.total_latency_ms += latency_ms
            stat.last_latency_ms = latency_ms

    def record_provider_failure(
        self,
        provider: str,
        latency_ms: float,
        error: str,
        timeout: bool = False,
    ) -> None:
        with self._lock:
            stat = self._ensure(provider)
            stat.failures += 1
            stat.total_latency_ms += latency_ms
            stat.last_latency_ms = latency_ms
            stat.last_error = error
            if timeout:
                stat.timeouts += 1

    def record_provider_skip(self, provider: str) -> None:
        with self._lock:
            self._ensure(provider).skips += 1

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            lookups = self._cache_hits + self._cache_misses
            providers = {
                name: {
                    "successes": stat.successes,
                    "failures": stat.failures,
                    "timeouts": stat.timeouts,
                    "skips": stat.skips,
                    "last_error": stat.last_error,
                    "last_latency_ms": stat.last_latency_ms,
                    "avg_latency_ms": round(stat.total_latency_ms / stat.calls, 1) if stat.calls else 0.0,
                }
                for name, stat in sorted(self._providers.items())
            }
            return {
                "requests": self._requests,
                "cache_hits": self._cache_hits,
                "cache_misses": self._cache_misses,
                "cache_hit_rate": round(self._cache_hits / lookups, 3) if lookups else 0.0,
                "providers": providers,
            }

    def _ensure(self, provider: str) -> ProviderMetric:
        # Caller holds the lock.
        stat = self._providers.get(provider)
        if stat is None:
            stat = ProviderMetric()
            self._providers[provider] = stat
        return stat
