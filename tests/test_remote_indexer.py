"""Tests for loading and uploading knowledge base documents."""

import json
from pathlib import Path

import pytest

from ragbot.clients.embedding_client import EmbeddingClient
from ragbot.ingestion.remote_indexer import (
    RemoteIndexingError,
    SourceDocument,
    build_chunk_records,
    index_documents,
    load_source_documents,
    sanity_search,
)
from ragbot.retrieval.remote_search import RemoteSearchAdapter
from ragbot.services.embedding_cache import EmbeddingCache

from conftest import EMBEDDING_DIMENSIONS

SOURCE_DOCS = Path(__file__).resolve().parent.parent / "data" / "source_docs.yaml"


@pytest.fixture
def embedding_client(fake_openai, retry_config):
    return EmbeddingClient(fake_openai, "emb", EMBEDDING_DIMENSIONS, EmbeddingCache(), retry_config)


class TestLoadSourceDocuments:

    def test_bundled_documents(self):
        documents = load_source_documents(SOURCE_DOCS)

        assert [d.id for d in documents] == ["refund-policy", "pricing"]
        assert documents[0].title == "Refund Policy"
        assert documents[0].content.startswith("We accept returns within 30 days")

    def test_json_list(self, tmp_path):
        path = tmp_path / "docs.json"
        path.write_text(json.dumps([{"id": 7, "content": "Body text"}]))

        documents = load_source_documents(path)

        assert documents == [SourceDocument(id="7", title="7", url="", content="Body text")]

    def test_malformed_document(self, tmp_path):
        path = tmp_path / "docs.yaml"
        path.write_text("- title: Missing id and content\n")

        with pytest.raises(RemoteIndexingError):
            load_source_documents(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(RemoteIndexingError):
            load_source_documents(tmp_path / "absent.yaml")


class TestIndexDocuments:

    def test_chunk_records(self):
        document = SourceDocument("guide", "Guide", "https://example.com/guide", "")

        records = build_chunk_records(document, ["first", "second", "third"])

        assert [r["id"] for r in records] == ["guide-1", "guide-2", "guide-3"]
        assert [r["title"] for r in records] == ["Guide", "Guide (part 2)", "Guide (part 3)"]
        assert all(r["url"] == "https://example.com/guide" for r in records)

    async def test_uploads_embedded_chunks(self, embedding_client, fake_search, app_config):
        long_content = " ".join(f"word{i}" for i in range(400))
        documents = [
            SourceDocument("short", "Short", "https://example.com/short",
                           "A short but sufficient document body that clears the minimum length."),
            SourceDocument("long", "Long", "https://example.com/long", long_content),
            SourceDocument("tiny", "Tiny", "https://example.com/tiny", "too small"),
        ]

        total = await index_documents(documents, embedding_client, fake_search, app_config)

        uploaded_ids = [d["id"] for d in fake_search.uploaded]
        assert total == len(fake_search.uploaded)
        assert uploaded_ids[0] == "short-1"
        assert all(i.startswith("long-") for i in uploaded_ids[1:])
        assert len(uploaded_ids) > 2
        assert all(len(d["contentVector"]) == EMBEDDING_DIMENSIONS for d in fake_search.uploaded)
        print(f"Uploaded {total} chunks: {uploaded_ids}")

    async def test_embedding_failure_aborts(self, embedding_client, fake_search, fake_openai, app_config):
        fake_openai.embeddings.fail_markers = ["broken"]
        documents = [SourceDocument("bad", "Bad", "", "This broken document cannot be embedded by the service at all.")]

        with pytest.raises(RemoteIndexingError):
            await index_documents(documents, embedding_client, fake_search, app_config)

        assert fake_search.uploaded == []

    async def test_sanity_search(self, embedding_client, fake_search, retry_config):
        fake_search.documents = [
            {"id": "refund-policy-1", "title": "Refund Policy", "url": "https://example.com/refund",
             "content": "We accept returns within 30 days."},
        ]
        remote = RemoteSearchAdapter(fake_search, "contentVector", retry_config)

        results = await sanity_search(embedding_client, remote)

        assert [p.title for p in results] == ["Refund Policy"]
        assert fake_search.calls[0]["search_text"] == "What is the refund policy?"
        assert fake_search.calls[0]["top"] == 3

    async def test_sanity_search_tolerates_search_failure(self, embedding_client, fake_search, retry_config):
        fake_search.error = RuntimeError("unexpected payload")
        remote = RemoteSearchAdapter(fake_search, "contentVector", retry_config)

        assert await sanity_search(embedding_client, remote) == []
