"""In-memory text → vector cache with size-based eviction."""

import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """Memoizes embedding lookups.

    Entries never expire by time. ``put`` does not evict; a periodic ``sweep``
    removes the oldest-inserted entries once occupancy exceeds ``max_entries``.
    Plain dict state: safe under the single asyncio loop, needs a lock if
    shared across threads.
    """

    def __init__(self, max_entries: int = 1000, eviction_fraction: float = 0.2):
        """Initialize the cache.

        Args:
            max_entries: Occupancy above which a sweep evicts entries.
            eviction_fraction: Share of entries (oldest first) removed per sweep.
        """
        self._max_entries = max_entries
        self._eviction_fraction = eviction_fraction
        self._entries: Dict[str, List[float]] = {}

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, text: str) -> Optional[List[float]]:
        return self._entries.get(text)

    def put(self, text: str, vector: List[float]) -> None:
        self._entries[text] = vector

    def sweep(self) -> int:
        """Evict the oldest entries if the cache is over capacity.

        Removes the larger of ``eviction_fraction`` of the entries and the
        overflow above ``max_entries``, so occupancy ends at or below the cap.

        Returns:
            Number of entries removed.
        """
        size = len(self._entries)
        if size <= self._max_entries:
            return 0

        to_remove = max(int(size * self._eviction_fraction), size - self._max_entries)
        # Dicts iterate in insertion order, so the first keys are the oldest
        for key in list(self._entries)[:to_remove]:
            del self._entries[key]

        logger.info(f"Embedding cache sweep evicted {to_remove} entries ({len(self._entries)} remain)")
        return to_remove

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries
