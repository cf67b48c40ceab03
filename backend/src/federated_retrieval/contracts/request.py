import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from federated_retrieval.contracts.candidate import Candidate

SearchMode = Literal["vector", "text", "hybrid"]
ProviderOutcome = Literal["ok", "error", "timeout", "skipped"]


class RetrievalRequest(BaseModel):
    """Request to the federation orchestrator. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    query: str
    limit: int = Field(default=10, ge=1, le=500)
    mode: SearchMode = "hybrid"
    providers: tuple[str, ...] | None = None
    timeout_ms: int | None = Field(default=None, ge=1)
    expand: bool = False
    use_cache: bool = True

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("query must not be empty")
        return stripped

    @field_validator("providers")
    @classmethod
    def normalize_providers(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if v is None:
            return None
        names: list[str] = []
        for name in v:
            cleaned = name.strip().lower()
            if cleaned and cleaned not in names:
                names.append(cleaned)
        return tuple(names)


class ProviderStats(BaseModel):
    """Lightweight per-provider outcome for one orchestration call."""

    provider: str
    status: ProviderOutcome
    candidate_count: int = Field(default=0, ge=0)
    latency_ms: float = Field(default=0.0, ge=0.0)
    timeout_ms: int | None = None
    error: str | None = None


class RetrievalResponse(BaseModel):
    """Ranked result list plus provider statistics."""

    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    query: str
    results: list[Candidate] = Field(default_factory=list)
    providers: list[ProviderStats] = Field(default_factory=list)
    providers_attempted: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    latency_ms: float = Field(default=0.0, ge=0.0)
    errors: list[str] = Field(default_factory=list)

    @property
    def total_candidates(self) -> int:
        return len(self.results)
