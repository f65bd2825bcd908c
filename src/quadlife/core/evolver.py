"""Memoized one-generation evolution of quadtree regions.

A region of side 4 is advanced directly: its four inner cells are updated
from their Moore neighbours and the outer twelve cells pass through. Larger
regions are advanced by evolving their nine overlapping children and
stitching the central parts of each result back together. The net effect is
one true Life generation for every cell except the board's outermost ring,
which is carried over unchanged.
"""

import threading
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from .cache import EvolutionCache
from .cell import CellState
from .errors import InvalidShape, StructuralInvariantViolation
from .node import CHILD_NAMES, Branch, Leaf, QuadNode, build

# Row-major slots of the 4x4 buffer that each corner quadrant fills.
CORNER_OFFSETS = (("nw", 0), ("ne", 2), ("se", 10), ("sw", 8))

# Inner slot of the 4x4 buffer and the slots of its eight neighbours.
INNER_NEIGHBOURS = (
    (5, (0, 1, 2, 4, 6, 8, 9, 10)),
    (6, (1, 2, 3, 5, 7, 9, 10, 11)),
    (10, (5, 6, 7, 9, 11, 13, 14, 15)),
    (9, (4, 5, 6, 8, 10, 12, 13, 14)),
)

_CELL_VALUES = (CellState.DEAD, CellState.ALIVE)


def next_state(alive: bool, neighbours: int) -> bool:
    """Apply Conway's rules to a single cell.

    Args:
        alive: Whether the cell is currently alive
        neighbours: Number of living Moore neighbours

    Returns:
        Whether the cell is alive in the next generation
    """
    if alive:
        return neighbours in (2, 3)
    return neighbours == 3


def check_structure(node: QuadNode) -> Branch:
    """Verify a branch's recorded size agrees with its children.

    Args:
        node: Node about to be evolved

    Returns:
        The node, typed as a Branch

    Raises:
        StructuralInvariantViolation: If depth, area and children disagree
    """
    if not isinstance(node, Branch):
        raise StructuralInvariantViolation(f"Expected a branch, found {node!r}")

    depth = node.depth
    if depth < 2 or depth & (depth - 1):
        raise StructuralInvariantViolation(f"Depth {depth} is not a power of two")
    if node.area != depth * depth:
        raise StructuralInvariantViolation(f"Area {node.area} does not match depth {depth}")

    for child in node.children:
        if depth == 2:
            if not isinstance(child, Leaf):
                raise StructuralInvariantViolation("A 2x2 branch may only hold leaves")
        elif not isinstance(child, Branch) or child.depth != depth // 2:
            raise StructuralInvariantViolation(f"Child {child!r} does not fit inside depth {depth}")

    return node


class Evolver:
    """Advances trees by one generation, memoizing every region it evolves.

    The cache is injected so that it can be shared between evolvers, bounded
    or cleared independently. Two counters record how much real work was done:
    ``base_case_evaluations`` counts 4x4 neighbour-count passes and
    ``stitches`` counts recursive combines. Cache hits increment neither.
    Counters are updated under a lock, so they stay exact when one evolver
    is shared between threads.
    """

    def __init__(self, cache: Optional[EvolutionCache] = None) -> None:
        """Initialize the evolver.

        Args:
            cache: Cache to consult and populate; a new unbounded one if None
        """
        self.cache = cache if cache is not None else EvolutionCache()
        self.base_case_evaluations = 0
        self.stitches = 0
        self._counter_lock = threading.Lock()

    def reset_counters(self) -> None:
        """Zero the work counters."""
        with self._counter_lock:
            self.base_case_evaluations = 0
            self.stitches = 0

    def evolve(self, node: QuadNode) -> Tuple[CellState, ...]:
        """Advance a region by one generation.

        Args:
            node: Branch of side 4 or more

        Returns:
            Flat row-major cells of the advanced region, same area as the node

        Raises:
            InvalidShape: If the node is a leaf or smaller than 4x4
            StructuralInvariantViolation: If the tree is malformed
        """
        return tuple(_CELL_VALUES[v] for v in self.evolve_array(node))

    def evolve_array(self, node: QuadNode) -> np.ndarray:
        """Advance a region by one generation, returning a read-only int8 array."""
        if isinstance(node, Leaf) or check_structure(node).depth < 4:
            raise InvalidShape("Only regions of side 4 or more can be evolved")
        return self._evolve(node)

    def step(self, cells: Any, side: Optional[int] = None) -> Tuple[CellState, ...]:
        """Build a tree from flat cells and advance it one generation."""
        return self.evolve(build(cells, side))

    def _evolve(self, node: QuadNode) -> np.ndarray:
        cached = self.cache.get(node)
        if cached is not None:
            return cached

        branch = check_structure(node)
        if branch.depth == 4:
            result = self._evolve_base(branch)
        else:
            result = self._evolve_recursive(branch)

        result.flags.writeable = False
        self.cache.put(branch, result)
        return result

    def _evolve_base(self, node: Branch) -> np.ndarray:
        buffer = np.zeros(16, dtype=np.int8)
        for name, start in CORNER_OFFSETS:
            quadrant = check_structure(getattr(node, name))
            buffer[start] = quadrant.nw.state.value
            buffer[start + 1] = quadrant.ne.state.value
            buffer[start + 4] = quadrant.sw.state.value
            buffer[start + 5] = quadrant.se.state.value

        result = buffer.copy()
        for slot, neighbours in INNER_NEIGHBOURS:
            count = int(buffer[list(neighbours)].sum())
            result[slot] = 1 if next_state(bool(buffer[slot]), count) else 0

        with self._counter_lock:
            self.base_case_evaluations += 1
        return result

    def _evolve_recursive(self, node: Branch) -> np.ndarray:
        side = node.depth
        half = side // 2
        evolved = {
            name: self._evolve(getattr(node, name)).reshape(half, half)
            for name in CHILD_NAMES
        }

        result = np.empty((side, side), dtype=np.int8)
        for name, rows, cols, row_offset, col_offset in _stitch_plan(side):
            src = evolved[name]
            result[rows[0] : rows[1], cols[0] : cols[1]] = src[
                rows[0] - row_offset : rows[1] - row_offset,
                cols[0] - col_offset : cols[1] - col_offset,
            ]

        with self._counter_lock:
            self.stitches += 1
        return result.ravel()


def _stitch_plan(side: int) -> Sequence[Tuple[str, Tuple[int, int], Tuple[int, int], int, int]]:
    """Destination bands and source offsets for each child of a region.

    Each entry is ``(child, (row_start, row_stop), (col_start, col_stop),
    row_offset, col_offset)``; the child's result is read at the destination
    coordinates minus the offsets.
    """
    eighth = side // 8
    quarter = side // 4
    half = side // 2
    low = (0, 3 * eighth)
    mid = (3 * eighth, 5 * eighth)
    high = (5 * eighth, side)
    return (
        ("nw", low, low, 0, 0),
        ("nn", low, mid, 0, quarter),
        ("ne", low, high, 0, half),
        ("ee", mid, high, quarter, half),
        ("se", high, high, half, half),
        ("ss", high, mid, half, quarter),
        ("sw", high, low, half, 0),
        ("ww", mid, low, quarter, 0),
        ("cc", mid, mid, quarter, quarter),
    )
