"""Embed knowledge base documents and upload them to Azure AI Search."""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml
from azure.core.exceptions import AzureError
from azure.search.documents.aio import SearchClient

from ragbot.clients.azure_clients import (
    create_openai_client,
    create_search_client,
    create_search_index_client,
)
from ragbot.clients.embedding_client import EmbeddingClient, EmbeddingError
from ragbot.config.configuration import AppConfig, get_config
from ragbot.ingestion.chunker import chunk_text
from ragbot.ingestion.search_index import SearchIndexManager
from ragbot.models import RetrievedPassage
from ragbot.retrieval.remote_search import RemoteSearchAdapter
from ragbot.services.embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)

SANITY_QUERY = "What is the refund policy?"


class RemoteIndexingError(Exception):
    """Raised when source documents cannot be loaded, embedded or uploaded."""
    pass


@dataclass(frozen=True)
class SourceDocument:
    """A knowledge base document before chunking."""
    id: str
    title: str
    url: str
    content: str


def load_source_documents(path: Path) -> List[SourceDocument]:
    """
    Load source documents from a YAML or JSON file.

    The file holds a list of mappings with ``id``, ``title``, ``url`` and
    ``content`` keys (optionally under a top-level ``documents`` key).

    Raises:
        RemoteIndexingError: If the file is missing or malformed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                raw = json.load(f)
            else:
                raw = yaml.safe_load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise RemoteIndexingError(f"Failed to read source documents from {path}: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("documents", [])
    if not isinstance(raw, list):
        raise RemoteIndexingError(f"{path} must contain a list of documents")

    documents = []
    for position, item in enumerate(raw):
        try:
            documents.append(
                SourceDocument(
                    id=str(item["id"]),
                    title=item.get("title") or str(item["id"]),
                    url=item.get("url", ""),
                    content=str(item["content"]).strip(),
                )
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteIndexingError(f"Document {position} in {path} is malformed: {e}") from e
    return documents


def build_chunk_records(document: SourceDocument, fragments: List[str]) -> List[Dict[str, Any]]:
    """Shape chunk fragments as index documents without vectors.

    Chunk ids are ``<doc id>-<n>`` (1-based); titles after the first get a
    ``(part n)`` suffix.
    """
    records = []
    for i, fragment in enumerate(fragments):
        records.append(
            {
                "id": f"{document.id}-{i + 1}",
                "title": document.title if i == 0 else f"{document.title} (part {i + 1})",
                "url": document.url,
                "content": fragment,
            }
        )
    return records


async def index_documents(
    documents: List[SourceDocument],
    embedding_client: EmbeddingClient,
    search_client: SearchClient,
    config: AppConfig,
) -> int:
    """
    Chunk, embed and upload documents to the remote index.

    Returns:
        Number of chunks uploaded.

    Raises:
        RemoteIndexingError: If embedding or upload fails.
    """
    vector_field = config.azure_ai_search.vector_field
    upload_batch: List[Dict[str, Any]] = []

    for document in documents:
        fragments = chunk_text(
            document.content,
            max_length=config.ingestion.chunk_size,
            overlap=config.ingestion.chunk_overlap,
            min_length=config.ingestion.min_chunk_length,
        )
        if not fragments:
            logger.warning(f"Document {document.id} produced no chunks, skipping")
            continue

        for record in build_chunk_records(document, fragments):
            try:
                record[vector_field] = await embedding_client.embed(record["content"])
            except EmbeddingError as e:
                raise RemoteIndexingError(f"Failed to embed chunk {record['id']}: {e}") from e
            upload_batch.append(record)

        logger.info(f"Prepared {len(fragments)} chunks for {document.id}")

    if not upload_batch:
        return 0

    try:
        await search_client.merge_or_upload_documents(documents=upload_batch)
    except AzureError as e:
        raise RemoteIndexingError(f"Failed to upload chunks: {e}") from e

    logger.info(f"Uploaded {len(upload_batch)} chunks")
    return len(upload_batch)


async def sanity_search(
    embedding_client: EmbeddingClient,
    remote_search: RemoteSearchAdapter,
    query: str = SANITY_QUERY,
    k: int = 3,
) -> List[RetrievedPassage]:
    """Run one hybrid query against the freshly loaded index."""
    vector = await embedding_client.embed(query)
    return await remote_search.search(query, vector, k)


async def _main(source_path: Path) -> None:
    config = get_config()
    documents = load_source_documents(source_path)

    openai_client = create_openai_client(config)
    search_client = create_search_client(config)
    index_client = create_search_index_client(config)

    embedding_client = EmbeddingClient(
        openai_client,
        config.azure_openai.embedding_deployment,
        config.azure_openai.embedding_dimensions,
        EmbeddingCache(config.cache.max_entries, config.cache.eviction_fraction),
        config.retry,
    )

    async with index_client, search_client:
        await SearchIndexManager(
            index_client,
            config.azure_ai_search.index_name,
            config.azure_openai.embedding_dimensions,
            config.retry,
            vector_field=config.azure_ai_search.vector_field,
        ).ensure_index()

        total = await index_documents(documents, embedding_client, search_client, config)
        print(f"Uploaded {total} chunks.")

        remote_search = RemoteSearchAdapter(
            search_client,
            config.azure_ai_search.vector_field,
            config.retry,
            timeout_seconds=config.azure_ai_search.timeout_seconds,
        )
        print("Sample search results:")
        for passage in await sanity_search(embedding_client, remote_search):
            print(f"- {passage.title} -> {passage.content[:80]}...")

    await openai_client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "source",
        nargs="?",
        default="data/source_docs.yaml",
        help="YAML or JSON file with the documents to index",
    )
    args = parser.parse_args()
    asyncio.run(_main(Path(args.source)))
