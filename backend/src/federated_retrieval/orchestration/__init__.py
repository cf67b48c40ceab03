"""Orchestration package - export the orchestrator and provider selection."""

from federated_retrieval.orchestration.federation import (
    FederatedOrchestrator,
    request_fingerprint,
)
from federated_retrieval.orchestration.provider_selection import (
    ProviderSelection,
    SkipReason,
    select_providers,
)

__all__ = [
    "FederatedOrchestrator",
    "ProviderSelection",
    "SkipReason",
    "request_fingerprint",
    "select_providers",
]
