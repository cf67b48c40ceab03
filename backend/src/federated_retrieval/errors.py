"""
Error taxonomy for the federated retrieval engine.

Defines hierarchical exceptions with standardized attributes for consistent
error handling and logging throughout the orchestrator and its collaborators.

Each error class implements:
- code: String identifier for the error type
- message: Human-readable description
- context: Dict containing additional contextual information
- retry_hint: Boolean indicating if retry might succeed

Only InvalidRequestError and ConfigurationError ever escape
FederatedOrchestrator.retrieve(); provider and audit failures are isolated.
"""
from __future__ import annotations
from typing import Any


class FederationError(Exception):
    """Base exception for all federation errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context) if context else {}
        self.retry_hint = retry_hint

    def to_dict(self) -> dict[str, Any]:
        """Serialize to structured dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
            "retry_hint": self.retry_hint,
        }


class InvalidRequestError(FederationError):
    """Request rejected before any provider is contacted."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "INVALID_REQUEST",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class ProviderError(FederationError):
    """Search provider failure (network, parse, unexpected payload)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "unknown",
        code: str = "PROVIDER_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        ctx = dict(context) if context else {}
        ctx["provider"] = provider
        self.provider = provider
        super().__init__(message, code=code, context=ctx, retry_hint=retry_hint)


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within its deadline."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "unknown",
        timeout_ms: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = dict(context) if context else {}
        if timeout_ms is not None:
            ctx["timeout_ms"] = timeout_ms
        super().__init__(
            message,
            provider=provider,
            code="PROVIDER_TIMEOUT",
            context=ctx,
            retry_hint=True,
        )


class ConfigurationError(FederationError):
    """Missing or invalid configuration."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CONFIGURATION_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class CandidateValidationError(FederationError):
    """Provider row could not be normalized into a Candidate."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CANDIDATE_INVALID",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class VocabularyError(FederationError):
    """Controlled-vocabulary lookup failure."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "VOCABULARY_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = True,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)


class AuditSinkError(FederationError):
    """Audit/telemetry sink could not persist a batch."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "AUDIT_SINK_ERROR",
        context: dict[str, Any] | None = None,
        retry_hint: bool = False,
    ) -> None:
        super().__init__(message, code=code, context=context, retry_hint=retry_hint)
