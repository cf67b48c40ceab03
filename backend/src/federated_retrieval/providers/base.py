"""Provider contract consumed by the orchestrator."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from federated_retrieval.contracts.candidate import Candidate, TrustTier
from federated_retrieval.contracts.request import RetrievalRequest, SearchMode
from federated_retrieval.errors import CandidateValidationError
from federated_retrieval.logging_config import get_logger
from federated_retrieval.services.normalization import create_candidate

logger = get_logger(__name__)


@runtime_checkable
class Provider(Protocol):
    """A search backend the orchestrator can fan out to.

    search() returns an empty list for "no results" and raises only for real
    faults. It may block; the orchestrator enforces timeout_ms.
    """

    name: str
    trust_tier: TrustTier
    weight: float
    timeout_ms: int

    def search(self, request: RetrievalRequest) -> list[Candidate]: ...


class DocumentSearchBackend(Protocol):
    """Row source behind the internal index and media providers."""

    def search(
        self,
        query: str,
        *,
        mode: SearchMode,
        limit: int,
        expand: bool,
    ) -> Sequence[Mapping[str, Any]]: ...


def rows_to_candidates(
    rows: Sequence[Mapping[str, Any]],
    *,
    provider: str,
    trust_tier: TrustTier,
    limit: int,
) -> list[Candidate]:
    """
    Normalize backend rows (id, title, url, content, score, document_type, ...).

    Rows that cannot be normalized are dropped with a warning; one bad row
    does not fail the provider.
    """
    candidates: list[Candidate] = []
    for index, row in enumerate(rows[:limit]):
        row_id = row.get("id")
        metadata = {
            key: value
            for key, value in row.items()
            if key not in {"id", "title", "url", "content", "snippet", "score", "published_at"}
        }
        try:
            candidates.append(
                create_candidate(
                    {
                        "title": row.get("title"),
                        "url": row.get("url"),
                        "snippet": row.get("snippet") or row.get("content") or "",
                        "score": row.get("score", 0.0),
                        "document_type": row.get("document_type"),
                        "published_at": row.get("published_at"),
                        "provider_rank": index + 1,
                        "source": {
                            "provider": provider,
                            "provider_ref": str(row_id) if row_id is not None else None,
                            "trust_tier": trust_tier,
                        },
                        "metadata": metadata,
                    }
                )
            )
        except CandidateValidationError as e:
            logger.warning("provider_row_dropped", provider=provider, row_index=index, error_code=e.code)
    return candidates
