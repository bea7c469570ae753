"""Fuses remote index and local store results into one ranked list."""

import asyncio
import logging
from typing import List

from ragbot.clients.embedding_client import EmbeddingClient, EmbeddingError
from ragbot.models import PassageSource, RetrievedPassage
from ragbot.retrieval.local_store import LocalVectorStore
from ragbot.retrieval.remote_search import RemoteSearchAdapter

logger = logging.getLogger(__name__)


class RetrievalFusionEngine:
    """Embeds a query once and searches both sources concurrently.

    Remote passages carry a fixed score and local passages a cosine score,
    so remote hits get a small bonus when the two are compared.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        local_store: LocalVectorStore,
        remote_search: RemoteSearchAdapter,
        remote_bonus: float = 0.01,
    ):
        self._embedding_client = embedding_client
        self._local_store = local_store
        self._remote_search = remote_search
        self._remote_bonus = remote_bonus

    def fusion_score(self, passage: RetrievedPassage) -> float:
        if passage.source is PassageSource.REMOTE_INDEX:
            return passage.score + self._remote_bonus
        return passage.score

    async def retrieve(self, query_text: str, k: int) -> List[RetrievedPassage]:
        """
        Retrieve the ``k`` best passages for a query.

        Never raises for upstream failures: an embedding failure yields [],
        and a failing search branch contributes nothing.
        """
        if k <= 0:
            return []

        try:
            query_vector = await self._embedding_client.embed(query_text)
        except EmbeddingError as e:
            logger.error(f"Retrieval skipped, query embedding failed: {e}")
            return []

        remote_result, local_result = await asyncio.gather(
            self._remote_search.search(query_text, query_vector, k),
            self._local_store.search(query_vector, k),
            return_exceptions=True,
        )

        combined: List[RetrievedPassage] = []
        for name, result in (("remote", remote_result), ("local", local_result)):
            if isinstance(result, BaseException):
                logger.error(f"{name.capitalize()} retrieval failed: {result!r}")
                continue
            combined.extend(result)

        # Stable sort keeps remote ahead of local on equal fused scores
        combined.sort(key=self.fusion_score, reverse=True)
        logger.debug(f"Retrieved {len(combined)} passages, returning top {k}")
        return combined[:k]
