"""Dependency injection helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from federated_retrieval.config import Settings, get_settings
from federated_retrieval.contracts.candidate import Candidate
from federated_retrieval.providers.base import DocumentSearchBackend, Provider
from federated_retrieval.providers.internal_index import InternalIndexProvider
from federated_retrieval.providers.media import MediaProvider
from federated_retrieval.providers.searxng import SearxngProvider
from federated_retrieval.services.audit import AuditEmitter, AuditSink, InMemoryAuditSink
from federated_retrieval.services.cache import ResultCache
from federated_retrieval.services.circuit_breaker import BreakerConfig, BreakerRegistry
from federated_retrieval.services.entity_resolver import EntityResolver
from federated_retrieval.services.metrics import FederationMetrics
from federated_retrieval.services.ranking import Ranker
from federated_retrieval.services.vocabulary import VocabularyStore

if TYPE_CHECKING:
    from federated_retrieval.orchestration.federation import FederatedOrchestrator


def create_breaker_registry(settings: Settings | None = None) -> BreakerRegistry:
    """Create the process-wide breaker registry."""
    s = settings or get_settings()
    return BreakerRegistry(
        BreakerConfig(
            failure_threshold=s.breaker_failure_threshold,
            reset_timeout_ms=s.breaker_reset_timeout_ms,
            success_threshold=s.breaker_success_threshold,
        )
    )


def create_result_cache(settings: Settings | None = None) -> ResultCache[list[Candidate]]:
    """Create result cache instance."""
    s = settings or get_settings()
    return ResultCache(max_entries=s.cache_max_entries, default_ttl_seconds=s.cache_ttl_seconds)


def create_ranker(settings: Settings | None = None, providers: list[Provider] | None = None) -> Ranker:
    """Create ranker; a provider's own weight overrides the configured one."""
    s = settings or get_settings()
    weights = s.provider_weights()
    weights.update({provider.name: provider.weight for provider in providers or []})
    return Ranker(
        provider_weights=weights,
        default_weight=s.default_provider_weight,
        canonical_boost_factor=s.canonical_boost_factor,
    )


def create_audit_emitter(
    settings: Settings | None = None,
    sink: AuditSink | None = None,
) -> AuditEmitter:
    """Create audit emitter; defaults to a bounded in-memory sink."""
    s = settings or get_settings()
    return AuditEmitter(
        sink or InMemoryAuditSink(max_batches=s.audit_max_records),
        enabled=s.audit_enabled,
    )


def create_default_providers(
    settings: Settings | None = None,
    internal_backend: DocumentSearchBackend | None = None,
    media_backend: DocumentSearchBackend | None = None,
) -> list[Provider]:
    """
    Build the enabled providers.

    Index-backed providers need a backend and are skipped without one;
    SearXNG only needs its base URL.
    """
    s = settings or get_settings()
    enabled = s.enabled_provider_names()
    providers: list[Provider] = []

    if "internal" in enabled and internal_backend is not None:
        providers.append(
            InternalIndexProvider(
                internal_backend,
                weight=s.internal_index_weight,
                timeout_ms=s.internal_index_timeout_ms,
            )
        )
    if "media" in enabled and media_backend is not None:
        providers.append(
            MediaProvider(
                media_backend,
                weight=s.media_weight,
                timeout_ms=s.media_timeout_ms,
            )
        )
    if "searxng" in enabled:
        providers.append(
            SearxngProvider(
                s.searxng_base_url,
                weight=s.searxng_weight,
                timeout_ms=s.searxng_timeout_ms,
                language=s.searxng_language,
                categories=s.searxng_categories,
            )
        )
    return providers


def create_orchestrator(
    settings: Settings | None = None,
    providers: list[Provider] | None = None,
    vocabulary: VocabularyStore | None = None,
    audit_sink: AuditSink | None = None,
    internal_backend: DocumentSearchBackend | None = None,
    media_backend: DocumentSearchBackend | None = None,
) -> FederatedOrchestrator:
    """Create orchestrator with every collaborator built from settings."""
    from federated_retrieval.orchestration.federation import FederatedOrchestrator

    s = settings or get_settings()
    if providers is None:
        providers = create_default_providers(s, internal_backend, media_backend)
    return FederatedOrchestrator(
        providers=providers,
        breakers=create_breaker_registry(s),
        cache=create_result_cache(s),
        ranker=create_ranker(s, providers),
        resolver=EntityResolver(vocabulary) if vocabulary is not None else None,
        audit_emitter=create_audit_emitter(s, audit_sink),
        metrics=FederationMetrics(),
        cache_ttl_seconds=s.cache_ttl_seconds,
        cache_enabled=s.cache_enabled,
        default_limit=s.default_limit,
        max_limit=s.max_limit,
    )
