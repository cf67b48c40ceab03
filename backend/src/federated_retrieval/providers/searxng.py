"""Web meta-search provider via the SearXNG JSON API."""

import threading
from typing import Any

import httpx

from federated_retrieval.contracts.candidate import Candidate, TrustTier
from federated_retrieval.contracts.request import RetrievalRequest
from federated_retrieval.errors import CandidateValidationError, ProviderError
from federated_retrieval.logging_config import get_logger
from federated_retrieval.services.normalization import create_candidate

logger = get_logger(__name__)

DEFAULT_SEARXNG_BASE_URL = "http://localhost:8080"
DEFAULT_SEARXNG_TIMEOUT_MS = 2500
DEFAULT_SEARXNG_WEIGHT = 0.6


class SearxngProvider:
    """General web search through a self-hosted SearXNG instance (low trust)."""

    trust_tier: TrustTier = "low"

    def __init__(
        self,
        base_url: str = DEFAULT_SEARXNG_BASE_URL,
        *,
        name: str = "searxng",
        weight: float = DEFAULT_SEARXNG_WEIGHT,
        timeout_ms: int = DEFAULT_SEARXNG_TIMEOUT_MS,
        language: str = "en",
        categories: str = "general",
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.weight = weight
        self.timeout_ms = timeout_ms
        self.language = language
        self.categories = categories
        self._client = client
        self._client_lock = threading.Lock()

    def _load_client(self) -> httpx.Client:
        """Create the HTTP client on first use."""
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self.base_url,
                    timeout=self.timeout_ms / 1000,
                    headers={"Accept": "application/json"},
                )
            return self._client

    def search(self, request: RetrievalRequest) -> list[Candidate]:
        client = self._load_client()
        params = {
            "q": request.query,
            "format": "json",
            "language": self.language,
            "safesearch": 0,
            "categories": self.categories,
        }
        try:
            response = client.get("/search", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"SearXNG returned HTTP {e.response.status_code}",
                provider=self.name,
                context={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"SearXNG request failed: {type(e).__name__}",
                provider=self.name,
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("SearXNG returned invalid JSON", provider=self.name) from e
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise ProviderError("SearXNG payload has no results list", provider=self.name)

        return self._to_candidates(results, request.limit)

    def _to_candidates(self, results: list[Any], limit: int) -> list[Candidate]:
        candidates: list[Candidate] = []
        for index, item in enumerate(results[:limit]):
            if not isinstance(item, dict):
                continue
            score = item.get("score")
            if not isinstance(score, (int, float)) or isinstance(score, bool):
                score = 1 - index / limit
            category = item.get("category")
            engine = item.get("engine")
            engines = item.get("engines") or ([engine] if engine else [])
            try:
                candidates.append(
                    create_candidate(
                        {
                            "title": item.get("title"),
                            "url": item.get("url"),
                            "snippet": item.get("content") or "",
                            "score": score,
                            "content_type": "news" if category == "news" else None,
                            "published_at": item.get("publishedDate"),
                            "provider_rank": index + 1,
                            "source": {
                                "provider": self.name,
                                "provider_ref": engine or (engines[0] if engines else None),
                                "trust_tier": self.trust_tier,
                            },
                            "metadata": {"engines": engines, "category": category},
                        }
                    )
                )
            except CandidateValidationError as e:
                logger.warning("searxng_result_dropped", row_index=index, error_code=e.code)
        return candidates

    def close(self) -> None:
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None
