from datetime import datetime, timezone
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

TrustTier = Literal["high", "medium", "low"]
ContentType = Literal["web", "doc", "podcast", "tv", "movie", "news", "unknown"]
MatchedBy = Literal["term", "alias", "synonym", "partial"]

# Provider-specific extras stay scalar (or a flat list of strings).
MetadataValue = Union[str, int, float, bool, list[str], None]

TRUST_TIER_ORDER: dict[str, int] = {"high": 2, "medium": 1, "low": 0}


def trust_tier_rank(tier: str) -> int:
    """Numeric ordering for trust tiers (high > medium > low)."""
    return TRUST_TIER_ORDER.get(tier, -1)


class CandidateSource(BaseModel):
    """Provenance of a candidate. Written once at creation."""

    model_config = ConfigDict(frozen=True)

    provider: str
    provider_ref: str | None = None
    trust_tier: TrustTier


class CandidateSignals(BaseModel):
    """Mutable signal bag filled in as the pipeline progresses."""

    score: float = Field(ge=0.0, le=1.0)
    provider_rank: int | None = Field(default=None, ge=1)
    provider_score: float | None = None
    domain: str | None = None
    freshness_days: float | None = Field(default=None, ge=0.0)


class CanonicalEntity(BaseModel):
    """Controlled-vocabulary concept a candidate title resolved to."""

    concept_id: str
    preferred_term: str
    confidence: float = Field(ge=0.0, le=1.0)
    matched_by: MatchedBy
    matched_value: str
    taxonomies: list[str] = Field(default_factory=list)
    synonyms: list[str] = Field(default_factory=list)


class EnrichmentProvenance(BaseModel):
    """Where a candidate's enrichment came from and when."""

    sources: list[str]
    enriched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnrichmentConfidence(BaseModel):
    overall: float = Field(ge=0.0, le=1.0)
    entity_resolution: float = Field(ge=0.0, le=1.0)
    source_trust: TrustTier


class CandidateEnrichment(BaseModel):
    """Topics, provenance and confidence derived after entity resolution."""

    topics: list[str] = Field(default_factory=list)
    provenance: EnrichmentProvenance
    confidence: EnrichmentConfidence


class ScoreBreakdown(BaseModel):
    """Factors that produced a candidate's rank score."""

    base_score: float
    provider_weight: float
    canonical_boost: float
    total: float


class Candidate(BaseModel):
    """One normalized search result."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(frozen=True)
    title: str = Field(frozen=True)
    url: str = Field(frozen=True)
    canonical_url: str = Field(frozen=True)
    canonical_domain: str = Field(default="", frozen=True)
    source: CandidateSource = Field(frozen=True)
    snippet: str = ""
    content_type: ContentType = "unknown"
    published_at: datetime | None = None
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    signals: CandidateSignals
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    canonical: CanonicalEntity | None = None
    enrichment: CandidateEnrichment | None = None
    rank: int | None = Field(default=None, ge=1)
    rank_score: float | None = None
    explanation: str | None = None
    score_breakdown: ScoreBreakdown | None = None

    @property
    def provider(self) -> str:
        return self.source.provider

    @property
    def trust_tier(self) -> str:
        return self.source.trust_tier
