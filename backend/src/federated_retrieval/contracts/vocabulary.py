"""Controlled-vocabulary records consumed by the entity resolver."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class VocabularyAlias(BaseModel):
    """Alternate spelling or abbreviation recorded for a concept."""

    alias: str
    weight: float = Field(default=1.0, ge=0.0)
    alias_type: str | None = None

    @field_validator("alias")
    @classmethod
    def validate_alias(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("alias must not be empty")
        return stripped


class VocabularyConcept(BaseModel):
    """One canonical concept in the vocabulary."""

    concept_id: str
    term: str
    aliases: list[VocabularyAlias] = Field(default_factory=list)
    synonyms: list[str] = Field(default_factory=list)
    taxonomies: list[str] = Field(default_factory=list)

    @field_validator("term")
    @classmethod
    def validate_term(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("term must not be empty")
        return stripped


class AliasMatch(BaseModel):
    """A concept reached through one of its aliases."""

    concept: VocabularyConcept
    alias: str
    weight: float
