"""Document ingestion: extraction, chunking, embedding and indexing."""

from ragbot.ingestion.chunker import chunk_text, normalize_whitespace
from ragbot.ingestion.document_ingestion import DocumentIngestionPipeline
from ragbot.ingestion.exceptions import (
    DocumentTooLargeError,
    ExtractionError,
    IngestionError,
    UnsupportedTypeError,
)
from ragbot.ingestion.search_index import (
    SearchIndexError,
    SearchIndexManager,
    build_index_definition,
)
from ragbot.ingestion.text_extraction import extract_text, resolve_content_type

__all__ = [
    "chunk_text",
    "normalize_whitespace",
    "DocumentIngestionPipeline",
    "DocumentTooLargeError",
    "ExtractionError",
    "IngestionError",
    "UnsupportedTypeError",
    "SearchIndexError",
    "SearchIndexManager",
    "build_index_definition",
    "extract_text",
    "resolve_content_type",
]
