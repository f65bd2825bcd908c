"""Content-addressed store of evolved regions.

Maps a node's structural value to its flat, one-generation-advanced cells.
Each ``get`` and ``put`` holds the lock only for its own duration, so callers
never hold it while recursing.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Optional

import numpy as np

from .cell import CellState
from .node import Branch

logger = logging.getLogger(__name__)


class EvolutionCache:
    """Thread-safe memo of evolved regions with optional LRU eviction.

    With ``max_size=None`` entries are kept for the lifetime of the cache.
    """

    def __init__(self, max_size: Optional[int] = None) -> None:
        """Initialize the cache.

        Args:
            max_size: Maximum number of entries, or None for no limit

        Raises:
            ValueError: If max_size is not positive
        """
        if max_size is not None and max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")

        self.max_size = max_size
        self._entries: "OrderedDict[Branch, np.ndarray]" = OrderedDict()
        self._lock = threading.Lock()

        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, node: Branch) -> Optional[np.ndarray]:
        """Look up the evolved cells for a node.

        Args:
            node: Region to look up

        Returns:
            Read-only flat int8 array, or None on a miss
        """
        with self._lock:
            result = self._entries.get(node)
            if result is None:
                self.misses += 1
                return None
            self.hits += 1
            if self.max_size is not None:
                self._entries.move_to_end(node)
            return result

    def put(self, node: Branch, cells: Any) -> None:
        """Store the evolved cells for a node.

        Args:
            node: Region that was evolved
            cells: Flat evolved cells, as an array or a sequence of CellState
        """
        if isinstance(cells, np.ndarray):
            stored = cells.astype(np.int8).ravel()
        else:
            stored = np.fromiter((CellState.coerce(c).value for c in cells), dtype=np.int8)
        stored.flags.writeable = False

        with self._lock:
            self._entries[node] = stored
            if self.max_size is None:
                return
            self._entries.move_to_end(node)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
                self.evictions += 1

    def clear(self) -> None:
        """Remove all entries and reset statistics."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
            self.hits = 0
            self.misses = 0
            self.evictions = 0
        logger.debug("Cleared evolution cache (%d entries)", size)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, node: object) -> bool:
        with self._lock:
            return node in self._entries

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that were hits."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with size, limits and hit/miss counts
        """
        return {
            "size": len(self),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }
