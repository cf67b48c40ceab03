"""Internal hybrid vector/text index provider."""

from __future__ import annotations

from federated_retrieval.contracts.candidate import Candidate, TrustTier
from federated_retrieval.contracts.request import RetrievalRequest
from federated_retrieval.errors import ProviderError
from federated_retrieval.logging_config import get_logger
from federated_retrieval.providers.base import DocumentSearchBackend, rows_to_candidates

logger = get_logger(__name__)

DEFAULT_INTERNAL_TIMEOUT_MS = 1800
DEFAULT_INTERNAL_WEIGHT = 0.95


class InternalIndexProvider:
    """Searches the organisation's own document index (highest trust)."""

    trust_tier: TrustTier = "high"

    def __init__(
        self,
        backend: DocumentSearchBackend,
        *,
        name: str = "internal",
        weight: float = DEFAULT_INTERNAL_WEIGHT,
        timeout_ms: int = DEFAULT_INTERNAL_TIMEOUT_MS,
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
                f"Internal index search failed: {type(e).__name__}",
                provider=self.name,
                context={"mode": request.mode},
            ) from e

        candidates = rows_to_candidates(
            rows,
            provider=self.name,
            trust_tier=self.trust_tier,
            limit=request.limit,
        )
        logger.debug("internal_index_rows_normalized", rows=len(rows), candidates=len(candidates))
        return candidates
