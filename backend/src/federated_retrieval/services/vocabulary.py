"""Controlled-vocabulary lookup surface."""

from __future__ import annotations

import threading
from typing import Iterable, Protocol

from federated_retrieval.contracts.vocabulary import AliasMatch, VocabularyConcept
from federated_retrieval.errors import VocabularyError


class VocabularyStore(Protocol):
    """Read-only lookups over canonical concepts. Inputs arrive lower-cased."""

    def find_exact(self, term: str) -> VocabularyConcept | None: ...

    def find_aliases(self, alias: str) -> list[AliasMatch]: ...

    def find_by_synonym(self, value: str) -> VocabularyConcept | None: ...

    def search_containing(self, fragment: str) -> list[VocabularyConcept]: ...


class InMemoryVocabulary:
    """Thread-safe in-memory vocabulary indexed for case-insensitive lookups."""

    def __init__(self, concepts: Iterable[VocabularyConcept] = ()):
        self._lock = threading.Lock()
        self._concepts: dict[str, VocabularyConcept] = {}
        self._by_term: dict[str, str] = {}
        self._by_alias: dict[str, list[tuple[str, str, float]]] = {}
        self._by_synonym: dict[str, list[str]] = {}
        for concept in concepts:
            self.add(concept)

    def add(self, concept: VocabularyConcept) -> None:
        """Register a concept. Concept ids and terms must be unique."""
        term_key = concept.term.lower()
        with self._lock:
            if concept.concept_id in self._concepts:
                raise VocabularyError(
                    f"Duplicate concept id {concept.concept_id}",
                    context={"concept_id": concept.concept_id},
                    retry_hint=False,
                )
            existing = self._by_term.get(term_key)
            if existing is not None:
                raise VocabularyError(
                    f"Term '{concept.term}' already registered",
                    context={"concept_id": existing, "term": concept.term},
                    retry_hint=False,
                )
            self._concepts[concept.concept_id] = concept
            self._by_term[term_key] = concept.concept_id
            for alias in concept.aliases:
                self._by_alias.setdefault(alias.alias.lower(), []).append(
                    (concept.concept_id, alias.alias, alias.weight)
                )
            for synonym in concept.synonyms:
                key = synonym.strip().lower()
                if key:
                    self._by_synonym.setdefault(key, []).append(concept.concept_id)

    def get(self, concept_id: str) -> VocabularyConcept | None:
        with self._lock:
            return self._concepts.get(concept_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._concepts)

    def find_exact(self, term: str) -> VocabularyConcept | None:
        with self._lock:
            concept_id = self._by_term.get(term.lower())
            return self._concepts[concept_id] if concept_id else None

    def find_aliases(self, alias: str) -> list[AliasMatch]:
        with self._lock:
            entries = list(self._by_alias.get(alias.lower(), []))
            return [
                AliasMatch(concept=self._concepts[concept_id], alias=value, weight=weight)
                for concept_id, value, weight in entries
            ]

    def find_by_synonym(self, value: str) -> VocabularyConcept | None:
        with self._lock:
            concept_ids = self._by_synonym.get(value.lower())
            return self._concepts[concept_ids[0]] if concept_ids else None

    def search_containing(self, fragment: str) -> list[VocabularyConcept]:
        needle = fragment.lower()
        with self._lock:
            return [c for c in self._concepts.values() if needle in c.term.lower()]
