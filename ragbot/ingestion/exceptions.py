"""Exceptions raised by the document ingestion pipeline."""


class IngestionError(Exception):
    """Base class for document ingestion failures."""
    pass


class UnsupportedTypeError(IngestionError):
    """Raised when a file type cannot be ingested."""
    pass


class ExtractionError(IngestionError):
    """Raised when text cannot be extracted from a file."""
    pass


class DocumentTooLargeError(IngestionError):
    """Raised when an upload exceeds the configured size limit."""
    pass
