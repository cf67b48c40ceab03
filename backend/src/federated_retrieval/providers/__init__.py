"""Search providers the orchestrator fans out to."""

from federated_retrieval.providers.base import DocumentSearchBackend, Provider, rows_to_candidates
from federated_retrieval.providers.internal_index import InternalIndexProvider
from federated_retrieval.providers.media import MediaProvider
from federated_retrieval.providers.searxng import SearxngProvider

__all__ = [
    "DocumentSearchBackend",
    "InternalIndexProvider",
    "MediaProvider",
    "Provider",
    "SearxngProvider",
    "rows_to_candidates",
]
