"""Audit records emitted after each orchestration call."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from federated_retrieval.contracts.candidate import CanonicalEntity, CandidateSignals
from federated_retrieval.contracts.request import ProviderStats


class RequestAuditRecord(BaseModel):
    """One record per retrieve() call."""

    # Identity
    request_id: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    # Request snapshot
    query: str
    mode: str
    limit: int
    requested_providers: list[str] | None = None

    # Routing outcome
    providers_attempted: list[str] = Field(default_factory=list)
    providers_skipped: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    provider_stats: list[ProviderStats] = Field(default_factory=list)

    # Result statistics
    candidate_count: int = Field(default=0, ge=0)
    latency_ms: float = Field(default=0.0, ge=0.0)

    # Error tracking
    status: Literal["ok", "error"] = "ok"
    error_type: str | None = None
    error_message: str | None = None


class CandidateAuditRecord(BaseModel):
    """One record per surviving candidate."""

    request_id: str
    candidate_id: str
    provider: str
    provider_ref: str | None = None
    trust_tier: str
    url: str
    canonical_url: str
    title: str
    signals: CandidateSignals
    canonical: CanonicalEntity | None = None


class RankLogRecord(BaseModel):
    """Rank outcome for one candidate."""

    request_id: str
    candidate_id: str
    rank: int = Field(ge=1)
    rank_score: float


class AuditBatch(BaseModel):
    """Everything emitted for a single orchestration call."""

    request: RequestAuditRecord
    candidates: list[CandidateAuditRecord] = Field(default_factory=list)
    rank_log: list[RankLogRecord] = Field(default_factory=list)
