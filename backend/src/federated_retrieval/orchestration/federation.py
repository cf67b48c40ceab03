"""Federation orchestrator: cache, fan-out, merge, dedupe, resolve, rank."""

import hashlib
import json
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from federated_retrieval.contracts.audit import (
    AuditBatch,
    CandidateAuditRecord,
    RankLogRecord,
    RequestAuditRecord,
)
from federated_retrieval.contracts.candidate import Candidate
from federated_retrieval.contracts.request import ProviderStats, RetrievalRequest, RetrievalResponse
from federated_retrieval.errors import (
    ConfigurationError,
    InvalidRequestError,
    ProviderError,
    ProviderTimeoutError,
)
from federated_retrieval.logging_config import bind_request_context, clear_request_context, get_logger
from federated_retrieval.orchestration.provider_selection import select_providers
from federated_retrieval.providers.base import Provider
from federated_retrieval.services.audit import AuditEmitter
from federated_retrieval.services.cache import ResultCache
from federated_retrieval.services.circuit_breaker import BreakerRegistry
from federated_retrieval.services.dedup import dedupe_candidates
from federated_retrieval.services.entity_resolver import EntityResolver
from federated_retrieval.services.metrics import FederationMetrics
from federated_retrieval.services.ranking import Ranker

logger = get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300.0


def request_fingerprint(request: RetrievalRequest, provider_names: Sequence[str]) -> str:
    """
    Deterministic cache key for a request.

    Query whitespace and case are normalized and provider names sorted, so
    equivalent requests share a key. provider_names is the allow-list when
    one was given, otherwise every registered provider.
    """
    payload = {
        "query": " ".join(request.query.lower().split()),
        "mode": request.mode,
        "providers": sorted(provider_names),
        "limit": request.limit,
        "expand": request.expand,
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _timed_search(provider: Provider, request: RetrievalRequest) -> tuple[list[Candidate], float]:
    started = time.perf_counter()
    results = provider.search(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if results is None:
        raise ProviderError("provider returned None instead of a list", provider=provider.name)
    candidates = list(results)
    for candidate in candidates:
        if not isinstance(candidate, Candidate):
            raise ProviderError(
                f"provider returned {type(candidate).__name__}, expected Candidate",
                provider=provider.name,
            )
    return candidates, elapsed_ms


class FederatedOrchestrator:
    """
    Fans a query out to every eligible provider and fuses the answers.

    Breakers, cache, metrics and the audit emitter are injected and outlive
    any single call. Provider faults never fail a request: a request with
    no surviving candidates returns an empty, well-formed response.
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        breakers: Optional[BreakerRegistry] = None,
        cache: Optional[ResultCache[list[Candidate]]] = None,
        ranker: Optional[Ranker] = None,
        resolver: Optional[EntityResolver] = None,
        audit_emitter: Optional[AuditEmitter] = None,
        metrics: Optional[FederationMetrics] = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        cache_enabled: bool = True,
        default_limit: int = 10,
        max_limit: int = 500,
    ):
        registry: dict[str, Provider] = {}
        for provider in providers:
            if provider.name in registry:
                raise ConfigurationError(
                    f"Duplicate provider name: {provider.name}",
                    context={"provider": provider.name},
                )
            registry[provider.name] = provider
        if cache_ttl_seconds <= 0:
            raise ConfigurationError("cache_ttl_seconds must be > 0")
        if not 1 <= default_limit <= max_limit:
            raise ConfigurationError(
                "default_limit must be within [1, max_limit]",
                context={"default_limit": default_limit, "max_limit": max_limit},
            )

        self.providers = registry
        self.breakers = breakers or BreakerRegistry()
        self.cache = cache if cache is not None else ResultCache()
        self.ranker = ranker or Ranker(provider_weights={p.name: p.weight for p in providers})
        self.resolver = resolver
        self.audit_emitter = audit_emitter
        self.metrics = metrics or FederationMetrics()
        self.cache_ttl_seconds = cache_ttl_seconds
        self.cache_enabled = cache_enabled
        self.default_limit = default_limit
        self.max_limit = max_limit

    def retrieve(self, request: Union[RetrievalRequest, Mapping[str, Any]]) -> RetrievalResponse:
        """
        Run one federated retrieval.

        Args:
            request: RetrievalRequest or a mapping of its fields

        Returns:
            RetrievalResponse with ranked results and per-provider stats

        Raises:
            InvalidRequestError: request fails validation; no provider is contacted
        """
        start_time = time.perf_counter()
        request_id = str(uuid.uuid4())
        bind_request_context(request_id)
        try:
            self.metrics.record_request()
            try:
                validated = self._coerce_request(request)
            except InvalidRequestError as e:
                logger.info("retrieval_rejected", error_code=e.code)
                self._emit_rejection(request_id, request, e, start_time)
                raise
            bind_request_context(request_id, query=validated.query)
            return self._run(request_id, validated, start_time)
        finally:
            clear_request_context()

    def _run(self, request_id: str, request: RetrievalRequest, start_time: float) -> RetrievalResponse:
        provider_names = request.providers if request.providers is not None else tuple(self.providers)
        use_cache = self.cache_enabled and request.use_cache
        cache_key = request_fingerprint(request, provider_names)

        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.metrics.record_cache_hit()
                results = [candidate.model_copy(deep=True) for candidate in cached]
                response = RetrievalResponse(
                    request_id=request_id,
                    query=request.query,
                    results=results,
                    cache_hit=True,
                    latency_ms=self._elapsed_ms(start_time),
                )
                logger.info("retrieval_cache_hit", result_count=len(results))
                self._emit(request, response, skipped=[])
                return response
            self.metrics.record_cache_miss()

        selection = select_providers(self.providers, self.breakers, request.providers)
        for name in selection.breaker_skipped:
            self.metrics.record_provider_skip(name)
            logger.info("provider_skipped", provider=name, reason="circuit_open")

        merged, stats = self._fan_out(request, selection.eligible)
        stats.extend(
            ProviderStats(provider=name, status="skipped")
            for name in selection.breaker_skipped
        )

        deduped = dedupe_candidates(merged)
        survivors = deduped.unique
        if self.resolver is not None:
            survivors = self.resolver.resolve_candidates(survivors)
        ranked = self.ranker.rank(survivors)
        results = ranked[: request.limit]

        if use_cache:
            self.cache.set(
                cache_key,
                [candidate.model_copy(deep=True) for candidate in results],
                self.cache_ttl_seconds,
            )

        response = RetrievalResponse(
            request_id=request_id,
            query=request.query,
            results=results,
            providers=stats,
            providers_attempted=selection.eligible_names,
            cache_hit=False,
            latency_ms=self._elapsed_ms(start_time),
            errors=[f"{s.provider}: {s.error}" for s in stats if s.error],
        )
        logger.info(
            "retrieval_completed",
            providers_attempted=len(selection.eligible),
            merged=len(merged),
            duplicates_removed=deduped.duplicates_removed,
            result_count=len(results),
            latency_ms=response.latency_ms,
        )
        self._emit(request, response, skipped=selection.breaker_skipped, survivors=ranked)
        return response

    def _fan_out(
        self,
        request: RetrievalRequest,
        providers: Sequence[Provider],
    ) -> tuple[list[Candidate], list[ProviderStats]]:
        """
        Dispatch search to every provider concurrently.

        Each task has its own deadline measured from its own submission.
        Timed-out tasks are abandoned; their late results are never read.
        """
        if not providers:
            return [], []

        executor = ThreadPoolExecutor(
            max_workers=len(providers),
            thread_name_prefix="federation-provider",
        )
        tasks: list[tuple[Provider, Future, float, int]] = []
        try:
            for provider in providers:
                budget_ms = self._budget_ms(provider, request)
                submitted = time.monotonic()
                tasks.append((provider, executor.submit(_timed_search, provider, request), submitted, budget_ms))

            merged: list[Candidate] = []
            stats: list[ProviderStats] = []
            for provider, future, submitted, budget_ms in tasks:
                remaining = submitted + budget_ms / 1000 - time.monotonic()
                try:
                    candidates, elapsed_ms = future.result(timeout=max(0.0, remaining))
                except FutureTimeoutError:
                    future.cancel()
                    stats.append(self._record_timeout(provider, budget_ms, (time.monotonic() - submitted) * 1000))
                    continue
                except Exception as e:
                    stats.append(self._record_error(provider, e, budget_ms, (time.monotonic() - submitted) * 1000))
                    continue

                if elapsed_ms > budget_ms:
                    stats.append(self._record_timeout(provider, budget_ms, elapsed_ms))
                    continue

                self.breakers.get(provider.name).record_success()
                self.metrics.record_provider_success(provider.name, elapsed_ms)
                merged.extend(candidates)
                stats.append(
                    ProviderStats(
                        provider=provider.name,
                        status="ok",
                        candidate_count=len(candidates),
                        latency_ms=round(elapsed_ms, 1),
                        timeout_ms=budget_ms,
                    )
                )
            return merged, stats
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _record_timeout(self, provider: Provider, budget_ms: int, latency_ms: float) -> ProviderStats:
        error = ProviderTimeoutError(
            f"{provider.name} exceeded {budget_ms} ms",
            provider=provider.name,
            timeout_ms=budget_ms,
        )
        self.breakers.get(provider.name).record_failure()
        self.metrics.record_provider_failure(provider.name, latency_ms, error.code, timeout=True)
        logger.warning("provider_timeout", provider=provider.name, timeout_ms=budget_ms)
        return ProviderStats(
            provider=provider.name,
            status="timeout",
            latency_ms=round(latency_ms, 1),
            timeout_ms=budget_ms,
            error=error.message,
        )

    def _record_error(
        self,
        provider: Provider,
        error: Exception,
        budget_ms: int,
        latency_ms: float,
    ) -> ProviderStats:
        self.breakers.get(provider.name).record_failure()
        self.metrics.record_provider_failure(provider.name, latency_ms, type(error).__name__)
        logger.warning(
            "provider_failed",
            provider=provider.name,
            error_type=type(error).__name__,
            error_message=str(error)[:200],
        )
        return ProviderStats(
            provider=provider.name,
            status="error",
            latency_ms=round(latency_ms, 1),
            timeout_ms=budget_ms,
            error=f"{type(error).__name__}: {str(error)[:200]}",
        )

    @staticmethod
    def _budget_ms(provider: Provider, request: RetrievalRequest) -> int:
        if request.timeout_ms is None:
            return provider.timeout_ms
        return min(provider.timeout_ms, request.timeout_ms)

    def _coerce_request(self, request: Union[RetrievalRequest, Mapping[str, Any]]) -> RetrievalRequest:
        if isinstance(request, RetrievalRequest):
            return self._check_limit(request)
        if not isinstance(request, Mapping):
            raise InvalidRequestError(
                f"Unsupported request type: {type(request).__name__}",
                context={"type": type(request).__name__},
            )
        fields = dict(request)
        fields.setdefault("limit", self.default_limit)
        try:
            validated = RetrievalRequest.model_validate(fields)
        except ValidationError as e:
            raise InvalidRequestError(
                "Invalid retrieval request",
                context={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
        return self._check_limit(validated)

    def _check_limit(self, request: RetrievalRequest) -> RetrievalRequest:
        if request.limit > self.max_limit:
            raise InvalidRequestError(
                f"limit {request.limit} exceeds max_limit {self.max_limit}",
                context={"limit": request.limit, "max_limit": self.max_limit},
            )
        return request

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 1)

    # Operations exposed alongside retrieve()

    def rank(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        return self.ranker.rank(candidates)

    def resolve(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        if self.resolver is None:
            return list(candidates)
        return self.resolver.resolve_candidates(candidates)

    def explain(self, candidate: Candidate) -> dict[str, Any]:
        """Score breakdown for a candidate, recomputed when it was never ranked."""
        breakdown = candidate.score_breakdown or self.ranker.breakdown(candidate)
        return {
            "candidate_id": candidate.id,
            "rank": candidate.rank,
            "breakdown": breakdown.model_dump(),
            "explanation": candidate.explanation or self.ranker.explain(candidate, breakdown),
        }

    def provider_health(self) -> dict[str, dict[str, Any]]:
        return {
            name: self.breakers.get(name).snapshot().model_dump(mode="json")
            for name in self.providers
        }

    def metrics_snapshot(self) -> dict[str, Any]:
        snapshot = self.metrics.snapshot()
        snapshot["cache"] = self.cache.stats().model_dump()
        if self.audit_emitter is not None:
            snapshot["audit_dropped"] = self.audit_emitter.dropped
        return snapshot

    def close(self) -> None:
        """Flush audit output and release provider resources."""
        if self.audit_emitter is not None:
            self.audit_emitter.close()
        for provider in self.providers.values():
            closer = getattr(provider, "close", None)
            if callable(closer):
                closer()

    # Audit

    def _emit(
        self,
        request: RetrievalRequest,
        response: RetrievalResponse,
        skipped: list[str],
        survivors: Optional[Sequence[Candidate]] = None,
    ) -> None:
        """Candidate and rank records cover every ranked survivor, not only the returned page."""
        if self.audit_emitter is None:
            return
        audited = response.results if survivors is None else survivors
        request_record = RequestAuditRecord(
            request_id=response.request_id,
            query=request.query,
            mode=request.mode,
            limit=request.limit,
            requested_providers=list(request.providers) if request.providers is not None else None,
            providers_attempted=list(response.providers_attempted),
            providers_skipped=list(skipped),
            cache_hit=response.cache_hit,
            provider_stats=list(response.providers),
            candidate_count=len(response.results),
            latency_ms=response.latency_ms,
        )
        candidates = [
            CandidateAuditRecord(
                request_id=response.request_id,
                candidate_id=c.id,
                provider=c.source.provider,
                provider_ref=c.source.provider_ref,
                trust_tier=c.source.trust_tier,
                url=c.url,
                canonical_url=c.canonical_url,
                title=c.title,
                signals=c.signals.model_copy(),
                canonical=c.canonical.model_copy() if c.canonical else None,
            )
            for c in audited
        ]
        rank_log = [
            RankLogRecord(
                request_id=response.request_id,
                candidate_id=c.id,
                rank=c.rank,
                rank_score=c.rank_score or 0.0,
            )
            for c in audited
            if c.rank is not None
        ]
        self.audit_emitter.emit(AuditBatch(request=request_record, candidates=candidates, rank_log=rank_log))

    def _emit_rejection(
        self,
        request_id: str,
        raw: Any,
        error: InvalidRequestError,
        start_time: float,
    ) -> None:
        if self.audit_emitter is None:
            return
        if isinstance(raw, RetrievalRequest):
            fields: Mapping[str, Any] = raw.model_dump()
        elif isinstance(raw, Mapping):
            fields = raw
        else:
            fields = {}
        limit = fields.get("limit")
        record = RequestAuditRecord(
            request_id=request_id,
            query=str(fields.get("query") or ""),
            mode=str(fields.get("mode") or "hybrid"),
            limit=limit if isinstance(limit, int) and not isinstance(limit, bool) else 0,
            latency_ms=self._elapsed_ms(start_time),
            status="error",
            error_type=error.code,
            error_message=error.message,
        )
        self.audit_emitter.emit(AuditBatch(request=record))
