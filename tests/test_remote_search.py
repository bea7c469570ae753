"""Tests for the Azure AI Search adapter."""

import asyncio

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError

from ragbot.models import PassageSource
from ragbot.retrieval.remote_search import RemoteSearchAdapter

from conftest import FakeSearchClient

DOCUMENTS = [
    {"id": "refund-policy-1", "title": "Refund Policy", "url": "https://example.com/refund",
     "content": "We accept returns within 30 days."},
    {"id": "pricing-1", "title": None, "url": "https://example.com/pricing",
     "content": "We offer three plans."},
    {"id": "broken-1", "title": "Broken", "url": "https://example.com/broken", "content": None},
]


@pytest.fixture
def adapter(fake_search, retry_config):
    fake_search.documents = list(DOCUMENTS)
    return RemoteSearchAdapter(fake_search, "contentVector", retry_config, default_score=0.5, timeout_seconds=1)


class SlowSearchClient(FakeSearchClient):
    async def search(self, **kwargs):
        self.calls.append(kwargs)
        await asyncio.sleep(1)
        return await super().search(**kwargs)


class TestRemoteSearchAdapter:
    """Test query shape, mapping and soft failure."""

    async def test_hybrid_query_shape(self, adapter, fake_search):
        await adapter.search("refund policy", [0.1, 0.2], 4)

        call = fake_search.calls[0]
        assert call["search_text"] == "refund policy"
        assert call["top"] == 4
        vector_query = call["vector_queries"][0]
        assert vector_query.vector == [0.1, 0.2]
        assert vector_query.k_nearest_neighbors == 4
        assert vector_query.fields == "contentVector"

    async def test_maps_documents_to_passages(self, adapter):
        """Test that hits get the fixed score, a default title, and that empty content is skipped."""
        passages = await adapter.search("plans", [0.1], 4)

        assert [p.title for p in passages] == ["Refund Policy", "Untitled"]
        assert all(p.score == 0.5 for p in passages)
        assert all(p.source is PassageSource.REMOTE_INDEX for p in passages)
        assert passages[0].url == "https://example.com/refund"

    async def test_azure_error_returns_empty(self, adapter, fake_search):
        error = HttpResponseError(message="bad query")
        error.status_code = 400
        fake_search.error = error

        assert await adapter.search("anything", [0.1], 4) == []
        assert len(fake_search.calls) == 1

    async def test_unexpected_error_returns_empty(self, adapter, fake_search):
        fake_search.error = KeyError("@search.score")

        assert await adapter.search("anything", [0.1], 4) == []
        assert len(fake_search.calls) == 1

    async def test_transient_error_retried(self, adapter, fake_search):
        fake_search.failures = [ServiceRequestError("connection reset")]

        passages = await adapter.search("refund", [0.1], 4)

        assert len(passages) == 2
        assert len(fake_search.calls) == 2

    async def test_persistent_transient_error_returns_empty(self, adapter, fake_search, retry_config):
        fake_search.error = ServiceRequestError("down")

        assert await adapter.search("refund", [0.1], 4) == []
        assert len(fake_search.calls) == retry_config.max_attempts

    async def test_timeout_returns_empty(self, retry_config):
        client = SlowSearchClient(list(DOCUMENTS))
        adapter = RemoteSearchAdapter(client, "contentVector", retry_config, timeout_seconds=0.01)

        assert await adapter.search("refund", [0.1], 4) == []
        print(f"Timed out after {len(client.calls)} attempts")

    async def test_ping_uses_minimal_query(self, adapter, fake_search):
        await adapter.ping()

        assert fake_search.calls[0]["top"] == 1

    async def test_ping_propagates_errors(self, adapter, fake_search):
        fake_search.error = ServiceRequestError("down")

        with pytest.raises(ServiceRequestError):
            await adapter.ping()
