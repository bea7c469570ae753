"""Persistence and in-memory catalog for uploaded documents.

Each document is stored as one JSON file (``<storage_dir>/<id>.json``) holding
its summary and embedded chunks. The catalog keeps only summaries and is
rebuilt from the storage directory at startup.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from ragbot.models import DocumentRecord, DocumentSummary

logger = logging.getLogger(__name__)


class DocumentStorage:
    """Reads and writes document records as JSON files."""

    def __init__(self, storage_dir: str):
        self._dir = Path(storage_dir)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, document_id: str) -> Path:
        return self._dir / f"{document_id}.json"

    def _write(self, record: DocumentRecord) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        # Write to a temp file in the same directory, then rename over the target
        fd, tmp_path = tempfile.mkstemp(dir=self._dir, prefix=f".{record.id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f)
            os.replace(tmp_path, self._path(record.id))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _read(self, document_id: str) -> DocumentRecord:
        with open(self._path(document_id), "r", encoding="utf-8") as f:
            return DocumentRecord.from_dict(json.load(f))

    async def save(self, record: DocumentRecord) -> None:
        await asyncio.to_thread(self._write, record)
        logger.debug(f"Persisted document {record.id} ({len(record.chunks)} chunks)")

    async def load(self, document_id: str) -> DocumentRecord:
        """
        Load a persisted record.

        Raises:
            FileNotFoundError: If no record exists for the id.
            ValueError: If the file is not a valid record (includes JSON errors).
        """
        try:
            return await asyncio.to_thread(self._read, document_id)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed document record {document_id}: {e}") from e

    async def delete(self, document_id: str) -> bool:
        """Delete a record file. Returns False if it did not exist."""
        path = self._path(document_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        return True

    def list_ids(self) -> List[str]:
        if not self._dir.exists():
            return []
        return sorted(p.stem for p in self._dir.glob("*.json"))


class DocumentCatalog:
    """In-memory index of uploaded documents, id → summary."""

    def __init__(self):
        self._summaries: Dict[str, DocumentSummary] = {}

    def register(self, summary: DocumentSummary) -> None:
        self._summaries[summary.id] = summary

    def get(self, document_id: str) -> Optional[DocumentSummary]:
        return self._summaries.get(document_id)

    def remove(self, document_id: str) -> Optional[DocumentSummary]:
        return self._summaries.pop(document_id, None)

    def list(self) -> List[DocumentSummary]:
        """Summaries ordered newest upload first."""
        return sorted(self._summaries.values(), key=lambda s: s.uploaded_at, reverse=True)

    def ids(self) -> List[str]:
        return list(self._summaries)

    def __len__(self) -> int:
        return len(self._summaries)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._summaries

    async def rebuild(self, storage: DocumentStorage) -> int:
        """
        Repopulate the catalog from persisted records.

        Unreadable files are logged and skipped.

        Returns:
            Number of documents registered.
        """
        self._summaries.clear()
        for document_id in storage.list_ids():
            try:
                record = await storage.load(document_id)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable document record {document_id}: {e}")
                continue
            self.register(record.summary)

        logger.info(f"Document catalog rebuilt with {len(self._summaries)} documents")
        return len(self._summaries)
