"""Tests for the EvolutionCache."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from quadlife.core.cache import EvolutionCache
from quadlife.core.cell import CellState
from quadlife.core.node import build


def single_cell_board(index, side=4):
    """Board with one living cell at a flat index."""
    cells = [0] * (side * side)
    cells[index] = 1
    return build(cells)


class TestEvolutionCache:
    """Test cases for the EvolutionCache class."""

    def test_miss(self):
        """An unknown node misses."""
        cache = EvolutionCache()
        assert cache.get(single_cell_board(0)) is None
        assert cache.misses == 1
        assert cache.hits == 0

    def test_put_and_get(self):
        """Stored results come back unchanged."""
        cache = EvolutionCache()
        node = single_cell_board(5)
        cache.put(node, np.arange(16) % 2)

        result = cache.get(node)
        np.testing.assert_array_equal(result, np.arange(16) % 2)
        assert cache.hits == 1
        assert node in cache
        assert len(cache) == 1

    def test_put_cell_states(self):
        """Sequences of CellState are accepted."""
        cache = EvolutionCache()
        node = single_cell_board(1)
        cache.put(node, [CellState.ALIVE] + [CellState.DEAD] * 15)

        result = cache.get(node)
        assert result[0] == 1
        assert result.sum() == 1

    def test_stored_results_are_read_only(self):
        """Cached arrays cannot be modified in place."""
        cache = EvolutionCache()
        node = single_cell_board(2)
        source = np.zeros(16, dtype=np.int8)
        cache.put(node, source)

        result = cache.get(node)
        assert not result.flags.writeable
        with pytest.raises(ValueError):
            result[0] = 1

        # The caller's array is unaffected
        source[0] = 1
        assert cache.get(node)[0] == 0

    def test_keyed_by_content(self):
        """A separately built, identical tree hits the same entry."""
        cache = EvolutionCache()
        cache.put(single_cell_board(7), np.ones(16))

        assert cache.get(single_cell_board(7)) is not None
        assert cache.get(single_cell_board(8)) is None

    def test_unbounded_by_default(self):
        """Without a limit nothing is evicted."""
        cache = EvolutionCache()
        for i in range(16):
            cache.put(single_cell_board(i), np.zeros(16))
        assert len(cache) == 16
        assert cache.evictions == 0

    def test_lru_eviction(self):
        """With a limit the least recently used entry goes first."""
        cache = EvolutionCache(max_size=2)
        a, b, c = single_cell_board(0), single_cell_board(1), single_cell_board(2)

        cache.put(a, np.zeros(16))
        cache.put(b, np.zeros(16))
        assert cache.get(a) is not None  # a is now most recent
        cache.put(c, np.zeros(16))

        assert len(cache) == 2
        assert a in cache
        assert b not in cache
        assert c in cache
        assert cache.evictions == 1

    def test_invalid_max_size(self):
        """The limit must be positive."""
        with pytest.raises(ValueError):
            EvolutionCache(max_size=0)

    def test_clear(self):
        """Clearing removes entries and statistics."""
        cache = EvolutionCache()
        node = single_cell_board(3)
        cache.put(node, np.zeros(16))
        cache.get(node)
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0
        assert cache.get(node) is None

    def test_stats(self):
        """Statistics report sizes and hit rate."""
        cache = EvolutionCache(max_size=10)
        node = single_cell_board(4)
        cache.get(node)
        cache.put(node, np.zeros(16))
        cache.get(node)

        stats = cache.get_stats()
        assert stats["size"] == 1
        assert stats["max_size"] == 10
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(0.5)

    def test_hit_rate_empty(self):
        """Hit rate is zero before any lookups."""
        assert EvolutionCache().hit_rate == 0.0

    def test_concurrent_access(self):
        """Concurrent puts and gets of the same keys never corrupt the store."""
        cache = EvolutionCache()
        nodes = [single_cell_board(i) for i in range(16)]

        def worker(i):
            node = nodes[i % 16]
            cache.put(node, np.full(16, i % 2))
            return cache.get(node) is not None

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(worker, range(400)))

        assert all(results)
        assert len(cache) == 16
