"""Canonical-URL deduplication for merged provider results."""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel

from federated_retrieval.contracts.candidate import Candidate, trust_tier_rank
from federated_retrieval.logging_config import get_logger

logger = get_logger(__name__)


class DeduplicationResult(BaseModel):
    unique: list[Candidate]
    duplicates_removed: int
    group_count: int


def _beats(challenger: Candidate, incumbent: Candidate) -> bool:
    """True when challenger should replace incumbent as a group's survivor.

    Higher score wins, then higher trust tier. Full ties keep the incumbent,
    which is always the earlier-seen candidate.
    """
    if challenger.signals.score != incumbent.signals.score:
        return challenger.signals.score > incumbent.signals.score
    return trust_tier_rank(challenger.source.trust_tier) > trust_tier_rank(incumbent.source.trust_tier)


def dedupe_candidates(candidates: Sequence[Candidate]) -> DeduplicationResult:
    """
    Collapse candidates sharing a canonical URL, keeping the strongest.

    Losers are discarded, not merged. Survivors keep the position at which
    their canonical URL was first seen.
    """
    survivors: dict[str, Candidate] = {}
    for candidate in candidates:
        key = candidate.canonical_url
        incumbent = survivors.get(key)
        if incumbent is None:
            survivors[key] = candidate
        elif _beats(candidate, incumbent):
            # dict assignment keeps the first-seen insertion slot
            survivors[key] = candidate

    unique = list(survivors.values())
    removed = len(candidates) - len(unique)
    if removed:
        logger.debug("candidates_deduplicated", removed=removed, remaining=len(unique))
    return DeduplicationResult(unique=unique, duplicates_removed=removed, group_count=len(unique))


def dedupe(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Convenience wrapper returning only the surviving candidates."""
    return dedupe_candidates(candidates).unique
