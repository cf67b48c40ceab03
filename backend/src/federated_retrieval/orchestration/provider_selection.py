"""Eligible-provider selection for one orchestration call."""

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from federated_retrieval.providers.base import Provider
from federated_retrieval.services.circuit_breaker import BreakerRegistry


class SkipReason:
    """Why a registered provider was not dispatched."""
    NOT_REQUESTED = "not_requested"
    CIRCUIT_OPEN = "circuit_open"
    UNKNOWN = "unknown_provider"


@dataclass
class ProviderSelection:
    """Deterministic selection result."""
    eligible: list[Provider] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def eligible_names(self) -> list[str]:
        return [provider.name for provider in self.eligible]

    @property
    def breaker_skipped(self) -> list[str]:
        return [name for name, reason in self.skipped.items() if reason == SkipReason.CIRCUIT_OPEN]


def select_providers(
    registry: Mapping[str, Provider],
    breakers: BreakerRegistry,
    allow_list: Sequence[str] | None = None,
) -> ProviderSelection:
    """
    Intersect the registry with an optional allow-list, then drop providers
    whose breaker refuses the call.

    Registry order is preserved. Allow-listed names that are not registered
    are reported as unknown. can_request() is consulted once per provider,
    since an open breaker past its cooldown moves to half-open on that call.

    Args:
        registry: Registered providers keyed by name
        breakers: Breaker registry owning one breaker per provider
        allow_list: Optional request-supplied provider names

    Returns:
        ProviderSelection with eligible providers and skip reasons
    """
    selection = ProviderSelection()
    allowed = set(allow_list) if allow_list is not None else None

    for name, provider in registry.items():
        if allowed is not None and name not in allowed:
            selection.skipped[name] = SkipReason.NOT_REQUESTED
            continue
        if not breakers.get(name).can_request():
            selection.skipped[name] = SkipReason.CIRCUIT_OPEN
            continue
        selection.eligible.append(provider)

    if allow_list is not None:
        for name in allow_list:
            if name not in registry:
                selection.skipped[name] = SkipReason.UNKNOWN

    return selection
