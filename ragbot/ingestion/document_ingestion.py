"""Ingestion pipeline for documents uploaded through the dashboard."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List

from ragbot.clients.embedding_client import EmbeddingClient, EmbeddingError
from ragbot.config.configuration import IngestionConfig
from ragbot.ingestion.chunker import chunk_text, normalize_whitespace
from ragbot.ingestion.exceptions import DocumentTooLargeError, ExtractionError
from ragbot.ingestion.text_extraction import extract_text, resolve_content_type
from ragbot.models import Chunk, DocumentRecord, DocumentSummary
from ragbot.services.document_store import DocumentCatalog, DocumentStorage

logger = logging.getLogger(__name__)


class DocumentIngestionPipeline:
    """Turns an uploaded file into a persisted, searchable document.

    Steps: resolve type → extract text → normalize → chunk → embed in
    batches → persist → register in the catalog. A document becomes visible
    to retrieval only after its record is fully written.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        storage: DocumentStorage,
        catalog: DocumentCatalog,
        ingestion_config: IngestionConfig,
    ):
        self._embedding_client = embedding_client
        self._storage = storage
        self._catalog = catalog
        self._config = ingestion_config

    async def ingest(self, file_bytes: bytes, filename: str, mime_type: str) -> DocumentSummary:
        """
        Ingest one uploaded file.

        Args:
            file_bytes: Raw file content.
            filename: Original filename.
            mime_type: Declared MIME type (may be generic).

        Returns:
            Summary of the stored document.

        Raises:
            DocumentTooLargeError: If the file exceeds the upload limit.
            UnsupportedTypeError: If the file type is not supported.
            ExtractionError: If no text could be extracted.
        """
        if len(file_bytes) > self._config.max_upload_bytes:
            raise DocumentTooLargeError(
                f"{filename} is {len(file_bytes)} bytes, limit is {self._config.max_upload_bytes}"
            )

        content_type = resolve_content_type(filename, mime_type)
        raw_text = await asyncio.to_thread(extract_text, file_bytes, filename, content_type)
        text = normalize_whitespace(raw_text)
        if not text:
            raise ExtractionError(f"No text content found in {filename}")

        fragments = chunk_text(
            text,
            max_length=self._config.chunk_size,
            overlap=self._config.chunk_overlap,
            min_length=self._config.min_chunk_length,
        )
        logger.info(f"Processing {filename}: {len(text)} characters, {len(fragments)} chunks")

        chunks = await self._embed_fragments(fragments, filename)

        summary = DocumentSummary(
            id=str(uuid.uuid4()),
            filename=filename,
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
            text_length=len(text),
            chunk_count=len(fragments),
            embedded_chunk_count=len(chunks),
        )
        record = DocumentRecord(summary=summary, chunks=tuple(chunks))

        await self._storage.save(record)
        self._catalog.register(summary)

        logger.info(
            f"Document {filename} stored as {summary.id} "
            f"({summary.embedded_chunk_count}/{summary.chunk_count} chunks embedded)"
        )
        return summary

    async def _embed_fragments(self, fragments: List[str], filename: str) -> List[Chunk]:
        batch_size = self._config.embedding_batch_size
        chunks: List[Chunk] = []

        for batch_start in range(0, len(fragments), batch_size):
            batch = fragments[batch_start:batch_start + batch_size]
            results = await asyncio.gather(
                *(self._embedding_client.embed(fragment) for fragment in batch),
                return_exceptions=True,
            )

            for offset, (fragment, result) in enumerate(zip(batch, results)):
                index = batch_start + offset
                if isinstance(result, EmbeddingError):
                    logger.warning(f"Dropping chunk {index} of {filename}: {result}")
                    continue
                if isinstance(result, BaseException):
                    raise result
                chunks.append(Chunk(index=index, content=fragment, embedding=result))

        return chunks

    async def delete(self, document_id: str) -> bool:
        """
        Remove a document from the catalog, then delete its file.

        Returns:
            False if the document is unknown.
        """
        summary = self._catalog.remove(document_id)
        if summary is None:
            return False
        if not await self._storage.delete(document_id):
            logger.warning(f"Document {document_id} had no record file")
        logger.info(f"Deleted document {summary.filename} ({document_id})")
        return True
