"""Rank fusion over native score, provider weight and canonical boost."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from federated_retrieval.contracts.candidate import Candidate, ScoreBreakdown, trust_tier_rank

DEFAULT_PROVIDER_WEIGHT = 0.5
DEFAULT_CANONICAL_BOOST_FACTOR = 0.15


def _freshness_days(published_at: Optional[datetime], now: datetime) -> Optional[float]:
    if published_at is None:
        return None
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return round(max(0.0, (now - published_at).total_seconds() / 86400.0), 3)


class Ranker:
    """
    Fuses per-candidate signals into one deterministic order.

    rank_score = signals.score * provider_weight + canonical.confidence * boost_factor

    Ties fall back to trust tier, then native score, then input order.
    Ranking never mutates its input; it returns ranked copies.
    """

    def __init__(
        self,
        provider_weights: Optional[Mapping[str, float]] = None,
        default_weight: float = DEFAULT_PROVIDER_WEIGHT,
        canonical_boost_factor: float = DEFAULT_CANONICAL_BOOST_FACTOR,
    ):
        weights = dict(provider_weights or {})
        for name, weight in weights.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"weight for provider '{name}' must be within [0, 1], got {weight}")
        if not 0.0 <= default_weight <= 1.0:
            raise ValueError("default_weight must be within [0, 1]")
        self.provider_weights = weights
        self.default_weight = default_weight
        self.canonical_boost_factor = canonical_boost_factor

    def weight_for(self, provider: str) -> float:
        return self.provider_weights.get(provider, self.default_weight)

    def breakdown(self, candidate: Candidate) -> ScoreBreakdown:
        """Compute the score components for a single candidate."""
        base = candidate.signals.score
        weight = self.weight_for(candidate.source.provider)
        boost = candidate.canonical.confidence * self.canonical_boost_factor if candidate.canonical else 0.0
        return ScoreBreakdown(
            base_score=base,
            provider_weight=weight,
            canonical_boost=boost,
            total=base * weight + boost,
        )

    def explain(self, candidate: Candidate, breakdown: Optional[ScoreBreakdown] = None) -> str:
        """Human-readable summary of what contributed to the score."""
        parts = breakdown or self.breakdown(candidate)
        weight_note = "" if candidate.source.provider in self.provider_weights else " (default)"
        text = (
            f"native score {parts.base_score:.3f} x provider weight {parts.provider_weight:.2f}"
            f"{weight_note} [{candidate.source.provider}, {candidate.source.trust_tier} trust]"
        )
        if candidate.canonical is not None:
            text += (
                f"; canonical boost +{parts.canonical_boost:.3f} "
                f"('{candidate.canonical.preferred_term}' via {candidate.canonical.matched_by}, "
                f"confidence {candidate.canonical.confidence:.2f})"
            )
        else:
            text += "; no canonical boost"
        return f"{text}; total {parts.total:.3f}"

    def rank(self, candidates: Sequence[Candidate], now: Optional[datetime] = None) -> list[Candidate]:
        """Return ranked copies of candidates with rank 1..N assigned."""
        moment = now or datetime.now(timezone.utc)
        scored = []
        for index, candidate in enumerate(candidates):
            parts = self.breakdown(candidate)
            scored.append((parts, index, candidate))

        scored.sort(
            key=lambda item: (
                -item[0].total,
                -trust_tier_rank(item[2].source.trust_tier),
                -item[2].signals.score,
                item[1],
            )
        )

        ranked: list[Candidate] = []
        for position, (parts, _, candidate) in enumerate(scored, start=1):
            signals = candidate.signals.model_copy(
                update={"freshness_days": _freshness_days(candidate.published_at, moment)}
            )
            ranked.append(
                candidate.model_copy(
                    deep=True,
                    update={
                        "signals": signals,
                        "rank": position,
                        "rank_score": parts.total,
                        "score_breakdown": parts,
                        "explanation": self.explain(candidate, parts),
                    },
                )
            )
        return ranked


def rank_candidates(
    candidates: Sequence[Candidate],
    provider_weights: Optional[Mapping[str, float]] = None,
) -> list[Candidate]:
    """Rank with default boost settings; convenience for one-off callers."""
    return Ranker(provider_weights=provider_weights).rank(candidates)
