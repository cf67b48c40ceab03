"""Centralized configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Federation settings from environment variables.

    All fields are optional with sensible defaults.
    Validation occurs on first get_settings() call.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Circuit breaker
    breaker_failure_threshold: int = Field(default=3, ge=1)
    breaker_success_threshold: int = Field(default=1, ge=1)
    breaker_reset_timeout_ms: int = Field(default=30_000, ge=0)

    # Result cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_max_entries: int = Field(default=500, ge=1)

    # Request defaults
    default_limit: int = Field(default=10, ge=1, le=500)
    max_limit: int = Field(default=500, ge=1, le=500)

    # Ranker
    default_provider_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    canonical_boost_factor: float = Field(default=0.15, ge=0.0, le=1.0)

    # Providers
    enabled_providers: str = "internal,media,searxng"
    internal_index_timeout_ms: int = Field(default=1800, ge=1)
    internal_index_weight: float = Field(default=0.95, ge=0.0, le=1.0)
    media_timeout_ms: int = Field(default=2000, ge=1)
    media_weight: float = Field(default=0.85, ge=0.0, le=1.0)
    searxng_timeout_ms: int = Field(default=2500, ge=1)
    searxng_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    searxng_base_url: str = "http://localhost:8080"
    searxng_language: str = "en"
    searxng_categories: str = "general"

    # Audit
    audit_enabled: bool = True
    audit_max_records: int = Field(default=1000, ge=1)

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(sorted(valid_levels))}")
        return upper

    @field_validator("searxng_base_url")
    @classmethod
    def validate_searxng_base_url(cls, v: str) -> str:
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"searxng_base_url must be an http(s) URL, got '{v}'")
        return stripped

    def enabled_provider_names(self) -> list[str]:
        """Parse the comma-separated provider list, preserving order."""
        names: list[str] = []
        for raw in self.enabled_providers.split(","):
            name = raw.strip().lower()
            if name and name not in names:
                names.append(name)
        return names

    def provider_weights(self) -> dict[str, float]:
        """Weights handed to the ranker, keyed by provider name."""
        return {
            "internal": self.internal_index_weight,
            "media": self.media_weight,
            "searxng": self.searxng_weight,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to a plain dictionary snapshot."""
        return self.model_dump()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached Settings singleton.

    Use this function for dependency injection and testing overrides.
    The cache ensures only one Settings instance exists per process.

    For testing: override with get_settings.cache_clear() then set env vars.
    """
    return Settings()
