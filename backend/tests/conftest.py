"""Pytest configuration and fixtures."""

from typing import Any, Callable

import pytest
import federated_retrieval.logging_config as logging_config_module
from federated_retrieval.contracts.candidate import Candidate
from federated_retrieval.logging_config import configure_logging
from federated_retrieval.services.normalization import create_candidate


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests.

    This fixture runs once per session and configures structlog for testing.
    cache_logger_on_first_use=False ensures test isolation.
    """
    configure_logging(log_level="DEBUG")


@pytest.fixture(autouse=True)
def reset_logging_config() -> None:
    """Reset logging config state before each test for isolation."""
    logging_config_module._CONFIGURED = False


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    """Factory building candidates through the normalizer."""

    def _make(
        title: str = "Example article",
        url: str = "https://example.com/article",
        score: float = 0.5,
        provider: str = "internal",
        trust_tier: str = "high",
        provider_ref: str | None = None,
        **extra: Any,
    ) -> Candidate:
        fields: dict[str, Any] = {
            "title": title,
            "url": url,
            "snippet": extra.pop("snippet", f"Snippet for {title}"),
            "score": score,
            "source": {"provider": provider, "provider_ref": provider_ref, "trust_tier": trust_tier},
        }
        fields.update(extra)
        return create_candidate(fields)

    return _make
