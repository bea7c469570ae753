"""Sliding-window text chunker."""

import re
from typing import List

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_MIN_CHUNK_LENGTH = 50

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def chunk_text(
    text: str,
    max_length: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
    min_length: int = DEFAULT_MIN_CHUNK_LENGTH,
) -> List[str]:
    """
    Split text into overlapping fixed-size windows.

    The text is whitespace-normalized, then cut into windows of
    ``max_length`` characters starting every ``max_length - overlap``
    characters. The walk stops at the first window that reaches the end of
    the text. Intermediate windows add ``max_length - overlap`` new
    characters; the last one may add as few as one. Fragments shorter than
    ``min_length`` are dropped.

    Args:
        text: Raw extracted text.
        max_length: Window size in characters.
        overlap: Characters shared by consecutive windows.
        min_length: Minimum fragment length to keep.

    Returns:
        Ordered list of fragments.

    Raises:
        ValueError: If the window parameters are inconsistent.
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")
    if overlap < 0 or overlap >= max_length:
        raise ValueError("overlap must be >= 0 and smaller than max_length")

    normalized = normalize_whitespace(text)
    step = max_length - overlap
    chunks: List[str] = []

    for start in range(0, len(normalized), step):
        fragment = normalized[start:start + max_length]
        if len(fragment) >= min_length:
            chunks.append(fragment)
        if start + max_length >= len(normalized):
            break

    return chunks
