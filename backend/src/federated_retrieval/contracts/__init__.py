"""Contracts package - export key models."""

from federated_retrieval.contracts.candidate import (
    Candidate,
    CandidateEnrichment,
    CandidateSignals,
    CandidateSource,
    CanonicalEntity,
    ContentType,
    EnrichmentConfidence,
    EnrichmentProvenance,
    MatchedBy,
    MetadataValue,
    ScoreBreakdown,
    TrustTier,
    trust_tier_rank,
)
from federated_retrieval.contracts.request import (
    ProviderStats,
    RetrievalRequest,
    RetrievalResponse,
    SearchMode,
)
from federated_retrieval.contracts.audit import (
    AuditBatch,
    CandidateAuditRecord,
    RankLogRecord,
    RequestAuditRecord,
)
from federated_retrieval.contracts.vocabulary import (
    AliasMatch,
    VocabularyAlias,
    VocabularyConcept,
)

__all__ = [
    "AliasMatch",
    "AuditBatch",
    "Candidate",
    "CandidateAuditRecord",
    "CandidateEnrichment",
    "CandidateSignals",
    "CandidateSource",
    "CanonicalEntity",
    "ContentType",
    "EnrichmentConfidence",
    "EnrichmentProvenance",
    "MatchedBy",
    "MetadataValue",
    "ProviderStats",
    "RankLogRecord",
    "RequestAuditRecord",
    "RetrievalRequest",
    "RetrievalResponse",
    "ScoreBreakdown",
    "SearchMode",
    "TrustTier",
    "VocabularyAlias",
    "VocabularyConcept",
    "trust_tier_rank",
]
