"""Services package - export federation building blocks."""

from federated_retrieval.services.audit import AuditEmitter, AuditSink, InMemoryAuditSink
from federated_retrieval.services.cache import CacheStats, ResultCache
from federated_retrieval.services.dedup import DeduplicationResult, dedupe, dedupe_candidates
from federated_retrieval.services.entity_resolver import EntityResolver, enrich
from federated_retrieval.services.metrics import FederationMetrics
from federated_retrieval.services.normalization import canonicalize_url, create_candidate
from federated_retrieval.services.ranking import Ranker, rank_candidates
from federated_retrieval.services.vocabulary import InMemoryVocabulary, VocabularyStore

# Export breaker-related classes
from federated_retrieval.services.circuit_breaker import (
    BreakerConfig,
    BreakerRegistry,
    BreakerSnapshot,
    CircuitBreaker,
    CircuitState,
)

__all__ = [
    "AuditEmitter",
    "AuditSink",
    "BreakerConfig",
    "BreakerRegistry",
    "BreakerSnapshot",
    "CacheStats",
    "CircuitBreaker",
    "CircuitState",
    "DeduplicationResult",
    "EntityResolver",
    "FederationMetrics",
    "InMemoryAuditSink",
    "InMemoryVocabulary",
    "Ranker",
    "ResultCache",
    "VocabularyStore",
    "canonicalize_url",
    "create_candidate",
    "dedupe",
    "dedupe_candidates",
    "enrich",
    "rank_candidates",
]
