"""Document and chunk models for uploaded documents."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Chunk:
    """A slice of cleaned document text with its embedding vector."""

    index: int  # Position of the chunk within the document
    content: str
    embedding: List[float]


@dataclass(frozen=True)
class DocumentSummary:
    """Catalog entry for an uploaded document (no chunk bodies)."""

    id: str
    filename: str
    content_type: str
    uploaded_at: datetime
    text_length: int  # Length of the whitespace-normalized text
    chunk_count: int  # Chunks produced by the chunker
    embedded_chunk_count: int  # Chunks that were embedded and stored

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "content_type": self.content_type,
            "uploaded_at": self.uploaded_at.isoformat(),
            "text_length": self.text_length,
            "chunk_count": self.chunk_count,
            "embedded_chunk_count": self.embedded_chunk_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentSummary":
        return cls(
            id=data["id"],
            filename=data["filename"],
            content_type=data["content_type"],
            uploaded_at=datetime.fromisoformat(data["uploaded_at"]),
            text_length=data["text_length"],
            chunk_count=data["chunk_count"],
            embedded_chunk_count=data["embedded_chunk_count"],
        )


@dataclass(frozen=True)
class DocumentRecord:
    """Full persisted record of an uploaded document.

    Only successfully embedded chunks are stored, so
    ``summary.chunk_count >= len(chunks)`` always holds.
    """

    summary: DocumentSummary
    chunks: Tuple[Chunk, ...]

    @property
    def id(self) -> str:
        return self.summary.id

    @property
    def filename(self) -> str:
        return self.summary.filename

    def to_dict(self) -> Dict[str, Any]:
        data = self.summary.to_dict()
        data["chunks"] = [
            {"index": chunk.index, "content": chunk.content, "embedding": chunk.embedding}
            for chunk in self.chunks
        ]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Document record must be a JSON object, got {type(data).__name__}")
        chunks = tuple(
            Chunk(
                index=item["index"],
                content=item["content"],
                embedding=list(item["embedding"]),
            )
            for item in data.get("chunks", [])
        )
        return cls(summary=DocumentSummary.from_dict(data), chunks=chunks)
