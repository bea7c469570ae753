"""Brute-force vector search over uploaded documents."""

import asyncio
import logging
import math
from typing import List, Optional, Sequence

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ragbot.models import DocumentRecord, PassageSource, RetrievedPassage
from ragbot.services.document_store import DocumentCatalog, DocumentStorage

logger = logging.getLogger(__name__)

UPLOADED_URL_PREFIX = "uploaded://"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero norm. The result is clamped to
    [-1, 1] and values with magnitude below 1e-10 are reported as 0.0.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector length mismatch: {len(a)} != {len(b)}")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = max(-1.0, min(1.0, dot / (norm_a * norm_b)))
    if abs(similarity) < 1e-10:
        return 0.0
    return similarity


class LocalVectorStore:
    """Scores every chunk of every catalogued document against a query vector."""

    def __init__(
        self,
        catalog: DocumentCatalog,
        storage: DocumentStorage,
        similarity_floor: float = 0.1,
        read_attempts: int = 3,
        read_retry_delay: float = 0.1,
    ):
        self._catalog = catalog
        self._storage = storage
        self._similarity_floor = similarity_floor
        self._read_attempts = read_attempts
        self._read_retry_delay = read_retry_delay

    async def search(self, query_vector: List[float], k: int) -> List[RetrievedPassage]:
        """
        Return up to ``k`` passages from uploaded documents, best first.

        Each document contributes at most ``ceil(k / 2)`` passages. Chunks
        scoring below the similarity floor are ignored. Documents whose
        record cannot be read are skipped for this query.
        """
        if k <= 0:
            return []

        document_ids = self._catalog.ids()
        if not document_ids:
            return []

        records = await asyncio.gather(*(self._load_record(doc_id) for doc_id in document_ids))
        per_document = math.ceil(k / 2)

        passages: List[RetrievedPassage] = []
        for record in records:
            if record is None:
                continue
            passages.extend(self._score_document(record, query_vector)[:per_document])

        passages.sort(key=lambda p: p.score, reverse=True)
        return passages[:k]

    def _score_document(self, record: DocumentRecord, query_vector: List[float]) -> List[RetrievedPassage]:
        scored: List[RetrievedPassage] = []
        for chunk in record.chunks:
            try:
                score = cosine_similarity(query_vector, chunk.embedding)
            except ValueError as e:
                logger.warning(f"Skipping chunk {chunk.index} of document {record.id}: {e}")
                continue
            if score < self._similarity_floor:
                continue
            scored.append(
                RetrievedPassage(
                    title=record.filename,
                    url=f"{UPLOADED_URL_PREFIX}{record.id}",
                    content=chunk.content,
                    source=PassageSource.LOCAL_STORE,
                    score=score,
                )
            )
        scored.sort(key=lambda p: p.score, reverse=True)
        return scored

    async def _load_record(self, document_id: str) -> Optional[DocumentRecord]:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((FileNotFoundError, ValueError)),
            stop=stop_after_attempt(self._read_attempts),
            wait=wait_fixed(self._read_retry_delay),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._storage.load(document_id)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping document {document_id} in local search: {e}")
            return None
