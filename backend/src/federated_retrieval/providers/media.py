"""Media transcript index provider (podcasts, TV, film)."""

from __future__ import annotations

from federated_retrieval.contracts.candidate import Candidate, TrustTier
from federated_retrieval.contracts.request import RetrievalRequest
from federated_retrieval.errors import ProviderError
from federated_retrieval.providers.base import DocumentSearchBackend, rows_to_candidates

DEFAULT_MEDIA_TIMEOUT_MS = 2000
DEFAULT_MEDIA_WEIGHT = 0.85

_MEDIA_TYPES = {"podcast", "tv", "movie"}


class MediaProvider:
    """Searches transcript-backed media records."""

    trust_tier: TrustTier = "medium"

    def __init__(
        self,
        backend: DocumentSearchBackend,
        *,
        name: str = "media",
        weight: float = DEFAULT_MEDIA_WEIGHT,
        timeout_ms: int = DEFAULT_MEDIA_TIMEOUT_MS,
    ):
        self.backend = backend
        self.name = name
        self.weight = weight
        self.timeout_ms = timeout_ms

    def search(self, request: RetrievalRequest) -> list[Candidate]:
        try:
            rows = self.backend.search(
                request.query,
                mode=request.mode,
                limit=request.limit,
                expand=request.expand,
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Media search failed: {type(e).__name__}",
                provider=self.name,
            ) from e

        candidates = rows_to_candidates(
            rows,
            provider=self.name,
            trust_tier=self.trust_tier,
            limit=request.limit,
        )
        # Transcript rows without a recognised media type default to podcast.
        return [
            c.model_copy(update={"content_type": "podcast"}) if c.content_type not in _MEDIA_TYPES else c
            for c in candidates
        ]
