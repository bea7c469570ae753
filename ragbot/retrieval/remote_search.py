"""Hybrid (text + vector) search against the Azure AI Search index."""

import asyncio
import logging
from typing import Any, Dict, List

from azure.core.exceptions import AzureError
from azure.search.documents.aio import SearchClient
from azure.search.documents.models import VectorizedQuery

from ragbot.clients.retry import call_with_retry, is_transient_azure_error
from ragbot.config.configuration import RetryConfig
from ragbot.models import PassageSource, RetrievedPassage

logger = logging.getLogger(__name__)

SELECT_FIELDS = ["id", "title", "url", "content"]
UNTITLED = "Untitled"


class RemoteSearchAdapter:
    """Queries the remote index and maps hits to passages.

    Fails soft: any Azure error or timeout is logged and yields no results,
    so retrieval can continue with the local store alone.
    """

    def __init__(
        self,
        search_client: SearchClient,
        vector_field: str,
        retry_config: RetryConfig,
        default_score: float = 0.5,
        timeout_seconds: float = 30,
    ):
        self._client = search_client
        self._vector_field = vector_field
        self._retry_config = retry_config
        self._default_score = default_score
        self._timeout = timeout_seconds

    async def search(self, query_text: str, query_vector: List[float], k: int) -> List[RetrievedPassage]:
        """
        Run a hybrid query.

        Args:
            query_text: Text for the keyword part of the query.
            query_vector: Embedding of the query text.
            k: Maximum number of results.

        Returns:
            Passages with the fixed remote score, or [] on failure.
        """
        if k <= 0:
            return []

        vector_query = VectorizedQuery(
            vector=query_vector,
            k_nearest_neighbors=k,
            fields=self._vector_field,
        )

        try:
            documents = await call_with_retry(
                lambda: asyncio.wait_for(self._run_query(query_text, [vector_query], k), self._timeout),
                self._retry_config,
                is_transient=is_transient_azure_error,
                operation_name="Azure AI Search query",
            )
        except (AzureError, TimeoutError) as e:
            logger.error(f"Azure AI Search query failed: {e}")
            return []
        except Exception:
            logger.exception("Unexpected error during Azure AI Search query")
            return []

        passages = []
        for document in documents:
            passage = self._to_passage(document)
            if passage is not None:
                passages.append(passage)
        return passages

    async def ping(self) -> None:
        """
        Issue a minimal query to verify the index answers.

        Raises:
            AzureError: If the service rejects the query.
            TimeoutError: If it does not answer in time.
        """
        await asyncio.wait_for(self._run_query("test", None, 1), self._timeout)

    async def _run_query(self, search_text: str, vector_queries, top: int) -> List[Dict[str, Any]]:
        results = await self._client.search(
            search_text=search_text,
            vector_queries=vector_queries,
            top=top,
            select=SELECT_FIELDS,
        )
        return [result async for result in results]

    def _to_passage(self, document: Dict[str, Any]) -> RetrievedPassage | None:
        content = document.get("content")
        if not isinstance(content, str) or not content.strip():
            logger.debug(f"Skipping search result without content: {document.get('id')}")
            return None
        return RetrievedPassage(
            title=document.get("title") or UNTITLED,
            url=document.get("url") or "",
            content=content,
            source=PassageSource.REMOTE_INDEX,
            score=self._default_score,
        )
