"""Tests for the example providers."""

import threading
import time
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from federated_retrieval.contracts.request import RetrievalRequest
from federated_retrieval.errors import ProviderError
from federated_retrieval.providers import InternalIndexProvider, MediaProvider, Provider, SearxngProvider
from federated_retrieval.providers import searxng as searxng_module


def _searxng(handler, **kwargs: Any) -> SearxngProvider:
    client = httpx.Client(base_url="http://searx.test", transport=httpx.MockTransport(handler))
    return SearxngProvider("http://searx.test", client=client, **kwargs)


class TestSearxngProvider:
    def test_maps_results_to_candidates(self):
        """Test SearXNG results map to candidates."""
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["path"] = request.url.path
            return httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "title": "Rust 1.80 released",
                            "url": "https://blog.rust-lang.org/2024/07/25/Rust-1.80.0/?utm_source=rss",
                            "content": "The Rust team is happy to announce",
                            "engine": "duckduckgo",
                            "engines": ["duckduckgo", "brave"],
                            "score": 0.73,
                            "category": "news",
                            "publishedDate": "2024-07-25T00:00:00",
                        },
                        {
                            "title": "Rust (programming language)",
                            "url": "https://en.wikipedia.org/wiki/Rust_(programming_language)",
                            "content": "",
                            "engine": "wikipedia",
                        },
                    ]
                },
            )

        provider = _searxng(handler, language="de", categories="general,news")
        candidates = provider.search(RetrievalRequest(query="rust release", limit=4))

        assert seen["path"] == "/search"
        assert seen["params"] == {
            "q": "rust release",
            "format": "json",
            "language": "de",
            "safesearch": "0",
            "categories": "general,news",
        }
        first, second = candidates
        assert first.source.provider == "searxng"
        assert first.source.trust_tier == "low"
        assert first.source.provider_ref == "duckduckgo"
        assert first.signals.score == 0.73
        assert first.signals.provider_rank == 1
        assert first.content_type == "news"
        assert first.canonical_url == "https://blog.rust-lang.org/2024/07/25/Rust-1.80.0"
        assert first.metadata == {"engines": ["duckduckgo", "brave"], "category": "news"}
        assert first.published_at is not None
        # missing score decays by position
        assert second.signals.score == pytest.approx(0.75)
        assert second.content_type == "web"

    def test_results_capped_at_limit(self):
        """Test results are capped at the request limit."""
        results = [{"title": f"r{i}", "url": f"https://example.com/{i}"} for i in range(10)]
        provider = _searxng(lambda request: httpx.Response(200, json={"results": results}))
        assert len(provider.search(RetrievalRequest(query="q", limit=3))) == 3

    def test_invalid_rows_dropped(self):
        """Test malformed results are dropped."""
        results = [{"title": "no url"}, "junk", {"title": "ok", "url": "https://example.com"}]
        provider = _searxng(lambda request: httpx.Response(200, json={"results": results}))
        [candidate] = provider.search(RetrievalRequest(query="q"))
        assert candidate.title == "ok"

    def test_empty_results_is_not_an_error(self):
        """Test empty results are not an error."""
        provider = _searxng(lambda request: httpx.Response(200, json={"results": []}))
        assert provider.search(RetrievalRequest(query="q")) == []

    def test_http_error_raises_provider_error(self):
        """Test non-2xx responses raise ProviderError."""
        provider = _searxng(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(ProviderError) as exc_info:
            provider.search(RetrievalRequest(query="q"))
        assert exc_info.value.context["status_code"] == 503
        assert exc_info.value.provider == "searxng"

    def test_invalid_json_raises_provider_error(self):
        """Test invalid JSON raises ProviderError."""
        provider = _searxng(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderError):
            provider.search(RetrievalRequest(query="q"))

    def test_missing_results_list_raises_provider_error(self):
        """Test a payload without results raises ProviderError."""
        provider = _searxng(lambda request: httpx.Response(200, json={"answers": []}))
        with pytest.raises(ProviderError):
            provider.search(RetrievalRequest(query="q"))

    def test_transport_error_raises_provider_error(self):
        """Test transport errors raise ProviderError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderError):
            _searxng(handler).search(RetrievalRequest(query="q"))

    def test_client_created_lazily_and_closed(self):
        """Test client is created on first use and closed."""
        provider = SearxngProvider("http://searx.test/")
        assert provider.base_url == "http://searx.test"
        assert provider._client is None
        client = provider._load_client()
        assert provider._load_client() is client
        provider.close()
        assert provider._client is None

    def test_same_title_different_urls_get_distinct_ids(self):
        """Results sharing a title and engine stay distinct items."""
        results = [
            {"title": "Home", "url": "https://a.example.com/", "engine": "google"},
            {"title": "Home", "url": "https://b.example.org/", "engine": "google"},
        ]
        provider = _searxng(lambda request: httpx.Response(200, json={"results": results}))
        first, second = provider.search(RetrievalRequest(query="home"))
        assert first.id != second.id
        assert first.source.provider_ref == second.source.provider_ref == "google"

    def test_engine_falls_back_to_engines_list(self):
        """Engine and engines fill in for each other."""
        results = [
            {"title": "Only engines", "url": "https://example.com/1", "engines": ["brave", "bing"]},
            {"title": "Only engine", "url": "https://example.com/2", "engine": "qwant"},
        ]
        provider = _searxng(lambda request: httpx.Response(200, json={"results": results}))
        first, second = provider.search(RetrievalRequest(query="q"))
        assert first.source.provider_ref == "brave"
        assert first.metadata["engines"] == ["brave", "bing"]
        assert second.source.provider_ref == "qwant"
        assert second.metadata["engines"] == ["qwant"]

    def test_concurrent_first_use_creates_one_client(self, monkeypatch):
        """Overlapping first requests share a single lazily created client."""
        created: list[MagicMock] = []

        def slow_client(**kwargs: Any) -> MagicMock:
            time.sleep(0.05)
            client = MagicMock()
            created.append(client)
            return client

        monkeypatch.setattr(searxng_module.httpx, "Client", slow_client)
        provider = SearxngProvider("http://searx.test")
        barrier = threading.Barrier(4)
        loaded: list[Any] = []

        def load() -> None:
            barrier.wait()
            loaded.append(provider._load_client())

        threads = [threading.Thread(target=load) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert all(client is created[0] for client in loaded)

    def test_satisfies_provider_protocol(self):
        """Test SearxngProvider satisfies Provider."""
        assert isinstance(SearxngProvider(), Provider)


class TestIndexProviders:
    def _backend(self, rows):
        backend = MagicMock()
        backend.search.return_value = rows
        return backend

    def test_internal_index_maps_rows(self):
        """Test internal index rows map to candidates."""
        backend = self._backend(
            [
                {
                    "id": "doc-42",
                    "title": "Onboarding guide",
                    "url": "https://wiki.internal.example/onboarding/",
                    "content": "Welcome aboard",
                    "score": 0.91,
                    "document_type": "policy",
                    "published_at": "2024-01-02T03:04:05Z",
                    "collection": "hr",
                }
            ]
        )
        provider = InternalIndexProvider(backend)

        [candidate] = provider.search(RetrievalRequest(query="onboarding", mode="vector", limit=5, expand=True))

        backend.search.assert_called_once_with("onboarding", mode="vector", limit=5, expand=True)
        assert candidate.source.provider == "internal"
        assert candidate.source.trust_tier == "high"
        assert candidate.source.provider_ref == "doc-42"
        assert candidate.snippet == "Welcome aboard"
        assert candidate.content_type == "doc"
        assert candidate.metadata == {"document_type": "policy", "collection": "hr"}
        assert candidate.canonical_url == "https://wiki.internal.example/onboarding"
        assert provider.weight == 0.95
        assert provider.timeout_ms == 1800

    def test_backend_failure_wrapped(self):
        """Test backend errors are wrapped in ProviderError."""
        backend = MagicMock()
        backend.search.side_effect = ConnectionError("db down")
        with pytest.raises(ProviderError) as exc_info:
            InternalIndexProvider(backend).search(RetrievalRequest(query="q"))
        assert exc_info.value.provider == "internal"

    def test_media_defaults_content_type(self):
        """Test media rows default to a media content type."""
        backend = self._backend(
            [
                {"id": 1, "title": "Episode 12", "url": "https://media.example/e/12", "score": 0.5},
                {
                    "id": 2,
                    "title": "Pilot",
                    "url": "https://media.example/s/1",
                    "score": 0.4,
                    "document_type": "tv",
                },
            ]
        )
        provider = MediaProvider(backend)

        first, second = provider.search(RetrievalRequest(query="episode"))

        assert first.content_type == "podcast"
        assert second.content_type == "tv"
        assert first.source.trust_tier == "medium"
        assert first.source.provider_ref == "1"
        assert provider.weight == 0.85
