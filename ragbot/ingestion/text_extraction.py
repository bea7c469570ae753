"""Text extraction for uploaded PDF, Word and plain-text files."""

import io
import logging
from pathlib import PurePath
from typing import Callable, Dict, Optional

import docx
from pypdf import PdfReader

from ragbot.ingestion.exceptions import ExtractionError, UnsupportedTypeError

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"
MARKDOWN_TYPE = "text/markdown"

EXTENSION_TYPES: Dict[str, str] = {
    ".pdf": PDF_TYPE,
    ".docx": DOCX_TYPE,
    ".txt": TEXT_TYPE,
    ".md": MARKDOWN_TYPE,
}


def _extract_pdf(file_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(file_bytes))
    text_parts = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            text_parts.append(page_text)
    return "\n".join(text_parts)


def _extract_docx(file_bytes: bytes) -> str:
    document = docx.Document(io.BytesIO(file_bytes))
    text_parts = [p.text.strip() for p in document.paragraphs if p.text.strip()]

    for table in document.tables:
        for row in table.rows:
            row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if row_text:
                text_parts.append(" | ".join(row_text))

    return "\n".join(text_parts)


def _extract_plain(file_bytes: bytes) -> str:
    return file_bytes.decode("utf-8-sig", errors="replace")


EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    PDF_TYPE: _extract_pdf,
    DOCX_TYPE: _extract_docx,
    TEXT_TYPE: _extract_plain,
    MARKDOWN_TYPE: _extract_plain,
}


def resolve_content_type(filename: str, mime_type: Optional[str]) -> str:
    """
    Decide which extractor handles a file.

    The declared MIME type wins when it is supported; otherwise the filename
    extension is used (clients often send ``application/octet-stream``).

    Raises:
        UnsupportedTypeError: If neither identifies a supported type.
    """
    declared = (mime_type or "").split(";")[0].strip().lower()
    if declared in EXTRACTORS:
        return declared

    extension = PurePath(filename or "").suffix.lower()
    if extension in EXTENSION_TYPES:
        return EXTENSION_TYPES[extension]

    raise UnsupportedTypeError(
        f"Unsupported file type '{mime_type or 'unknown'}' for {filename!r}. "
        f"Supported: PDF, Word (.docx), plain text, Markdown."
    )


def extract_text(file_bytes: bytes, filename: str, content_type: str) -> str:
    """
    Extract raw text from a file.

    Args:
        file_bytes: Raw file content.
        filename: Original filename (for messages).
        content_type: A type returned by ``resolve_content_type``.

    Returns:
        The extracted text (not yet normalized).

    Raises:
        UnsupportedTypeError: If the content type has no extractor.
        ExtractionError: If parsing fails.
    """
    extractor = EXTRACTORS.get(content_type)
    if extractor is None:
        raise UnsupportedTypeError(f"Unsupported file type: {content_type}")

    try:
        text = extractor(file_bytes)
    except Exception as e:
        raise ExtractionError(f"Failed to extract text from {filename}: {e}") from e

    logger.debug(f"Extracted {len(text)} characters from {filename} ({content_type})")
    return text
