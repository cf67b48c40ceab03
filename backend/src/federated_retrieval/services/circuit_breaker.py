"""Per-provider circuit breakers."""

import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from pydantic import BaseModel, Field

from federated_retrieval.logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Provider is skipped
    HALF_OPEN = "half-open"  # Trial calls allowed


class BreakerConfig(BaseModel):
    """Configuration shared by every breaker in a registry."""
    failure_threshold: int = Field(default=3, ge=1)
    reset_timeout_ms: int = Field(default=30_000, ge=0)
    success_threshold: int = Field(default=1, ge=1)


class BreakerSnapshot(BaseModel):
    """Point-in-time view of one breaker."""
    state: CircuitState
    failures: int
    successes: int
    opened_at: str | None = None


class CircuitBreaker:
    """Circuit breaker guarding a single provider.

    All reads and transitions happen under one lock so a timeout path and a
    late completion can update the counters concurrently.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        reset_timeout_ms: int = 30_000,
        success_threshold: int = 1,
        name: str = "unknown",
        clock: Clock = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if success_threshold < 1:
            raise ValueError("success_threshold must be >= 1")
        if reset_timeout_ms < 0:
            raise ValueError("reset_timeout_ms must be >= 0")
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout_ms = reset_timeout_ms
        self.success_threshold = success_threshold
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at: float | None = None
        self._opened_at_wall: datetime | None = None
        self._clock = clock
        self._lock = threading.Lock()

    def can_request(self) -> bool:
        """Check whether the provider may be called right now."""
        with self._lock:
            if self.state != CircuitState.OPEN:
                return True

            if self.opened_at is not None:
                elapsed_ms = (self._clock() - self.opened_at) * 1000
                if elapsed_ms >= self.reset_timeout_ms:
                    self.state = CircuitState.HALF_OPEN
                    self.failure_count = 0
                    self.success_count = 0
                    logger.info("circuit_half_open", provider=self.name, elapsed_ms=round(elapsed_ms, 1))
                    return True

            return False

    def record_success(self) -> None:
        """Record a completed call."""
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.success_threshold:
                    self._close()
                return

            if self.state == CircuitState.CLOSED:
                self.failure_count = 0

    def record_failure(self) -> None:
        """Record a failed or timed-out call."""
        with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                self._open()
                return

            if self.state == CircuitState.CLOSED:
                self.failure_count += 1
                if self.failure_count >= self.failure_threshold:
                    self._open()

    def get_state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            return self.state

    def snapshot(self) -> BreakerSnapshot:
        with self._lock:
            return BreakerSnapshot(
                state=self.state,
                failures=self.failure_count,
                successes=self.success_count,
                opened_at=self._opened_at_wall.isoformat() if self._opened_at_wall else None,
            )

    def reset(self) -> None:
        """Reset the circuit breaker to closed state."""
        with self._lock:
            self._close()

    def _open(self) -> None:
        # Caller holds the lock.
        self.state = CircuitState.OPEN
        self.opened_at = self._clock()
        self._opened_at_wall = datetime.now(timezone.utc)
        self.failure_count = 0
        self.success_count = 0
        logger.warning("circuit_opened", provider=self.name, reset_timeout_ms=self.reset_timeout_ms)

    def _close(self) -> None:
        # Caller holds the lock.
        previous = self.state
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at = None
        self._opened_at_wall = None
        if previous != CircuitState.CLOSED:
            logger.info("circuit_closed", provider=self.name)


class BreakerRegistry:
    """Owns one breaker per provider, created lazily on first use."""

    def __init__(self, config: BreakerConfig | None = None, clock: Clock = time.monotonic):
        self.config = config or BreakerConfig()
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, provider: str) -> CircuitBreaker:
        """Return the breaker for provider, creating it if needed."""
        with self._lock:
            breaker = self._breakers.get(provider)
            if breaker is None:
                breaker = CircuitBreaker(
                    failure_threshold=self.config.failure_threshold,
                    reset_timeout_ms=self.config.reset_timeout_ms,
                    success_threshold=self.config.success_threshold,
                    name=provider,
                    clock=self._clock,
                )
                self._breakers[provider] = breaker
            return breaker

    def snapshot(self) -> dict[str, BreakerSnapshot]:
        with self._lock:
            breakers = dict(self._breakers)
        return {name: breaker.snapshot() for name, breaker in sorted(breakers.items())}

    def reset_all(self) -> None:
        with self._lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()
