"""Tiered canonical-entity resolution against a controlled vocabulary."""

from __future__ import annotations

from typing import Sequence

from federated_retrieval.contracts.candidate import (
    Candidate,
    CandidateEnrichment,
    CanonicalEntity,
    EnrichmentConfidence,
    EnrichmentProvenance,
)
from federated_retrieval.contracts.vocabulary import VocabularyConcept
from federated_retrieval.logging_config import get_logger
from federated_retrieval.services.vocabulary import VocabularyStore

logger = get_logger(__name__)

EXACT_CONFIDENCE = 0.95
ALIAS_BASE_CONFIDENCE = 0.8
ALIAS_WEIGHT_FACTOR = 0.1
ALIAS_MAX_CONFIDENCE = 0.9
SYNONYM_CONFIDENCE = 0.8
PARTIAL_CONFIDENCE = 0.6

# overall = base + factor * entity confidence, capped at 1
ENRICHMENT_BASE_CONFIDENCE = 0.45
ENRICHMENT_ENTITY_FACTOR = 0.55
VOCABULARY_SOURCE = "vocabulary"


def _entity(
    concept: VocabularyConcept,
    confidence: float,
    matched_by: str,
    matched_value: str,
) -> CanonicalEntity:
    return CanonicalEntity(
        concept_id=concept.concept_id,
        preferred_term=concept.term,
        confidence=confidence,
        matched_by=matched_by,  # type: ignore[arg-type]
        matched_value=matched_value,
        taxonomies=list(concept.taxonomies),
        synonyms=list(concept.synonyms),
    )


def enrich(candidate: Candidate) -> CandidateEnrichment:
    """Derive topics, provenance and confidence from a candidate's source and canonical entity."""
    entity = candidate.canonical
    sources = [candidate.source.provider]
    topics: list[str] = []
    entity_confidence = 0.0
    if entity is not None:
        sources.append(VOCABULARY_SOURCE)
        # taxonomies first, then synonyms, without repeats
        topics = list(dict.fromkeys([*entity.taxonomies, *entity.synonyms]))
        entity_confidence = entity.confidence
    return CandidateEnrichment(
        topics=topics,
        provenance=EnrichmentProvenance(sources=sources),
        confidence=EnrichmentConfidence(
            overall=min(1.0, ENRICHMENT_BASE_CONFIDENCE + ENRICHMENT_ENTITY_FACTOR * entity_confidence),
            entity_resolution=entity_confidence,
            source_trust=candidate.source.trust_tier,
        ),
    )


class EntityResolver:
    """Resolves titles to vocabulary concepts, stopping at the first tier that matches.

    Tiers: exact term (0.95), alias (0.8 + 0.1 * weight, capped at 0.9),
    synonym (0.8), partial containment (0.6, shortest term wins).
    """

    def __init__(self, vocabulary: VocabularyStore):
        self.vocabulary = vocabulary

    def resolve(self, title: str) -> CanonicalEntity | None:
        """Resolve one title. Vocabulary errors propagate to the caller."""
        normalized = title.strip().lower()
        if not normalized:
            return None

        exact = self.vocabulary.find_exact(normalized)
        if exact is not None:
            return _entity(exact, EXACT_CONFIDENCE, "term", normalized)

        aliases = self.vocabulary.find_aliases(normalized)
        if aliases:
            # max() keeps the first of equally weighted aliases
            best = max(aliases, key=lambda match: match.weight)
            confidence = min(ALIAS_MAX_CONFIDENCE, ALIAS_BASE_CONFIDENCE + ALIAS_WEIGHT_FACTOR * best.weight)
            return _entity(best.concept, confidence, "alias", best.alias)

        synonym = self.vocabulary.find_by_synonym(normalized)
        if synonym is not None:
            return _entity(synonym, SYNONYM_CONFIDENCE, "synonym", normalized)

        containing = self.vocabulary.search_containing(normalized)
        if containing:
            shortest = min(containing, key=lambda concept: len(concept.term))
            return _entity(shortest, PARTIAL_CONFIDENCE, "partial", normalized)

        return None

    def resolve_candidates(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        """
        Attach a canonical entity to each candidate whose title resolves,
        then an enrichment to every candidate.

        A lookup failure for one candidate is logged and leaves that candidate
        unresolved; the rest of the batch still resolves.
        """
        resolved: list[Candidate] = []
        for candidate in candidates:
            try:
                entity = self.resolve(candidate.title)
            except Exception as e:
                logger.warning(
                    "entity_resolution_failed",
                    candidate_id=candidate.id,
                    error_type=type(e).__name__,
                )
                entity = None
            if entity is not None:
                candidate.canonical = entity
            candidate.enrichment = enrich(candidate)
            resolved.append(candidate)
        return resolved
