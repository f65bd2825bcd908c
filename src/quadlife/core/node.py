"""Quadtree nodes with overlapping children, and the builder that makes them.

A board of side ``n`` (a power of two) is represented by a ``Branch`` holding
nine half-size children: the four disjoint quadrants ``nw``, ``ne``, ``sw``,
``se``; four edge regions ``nn``, ``ee``, ``ss``, ``ww`` straddling the
boundary between two quadrants; and the centre region ``cc``. The overlap
gives every child enough surrounding context to be advanced on its own.
"""

import logging
import math
import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .cell import CellState
from .errors import InvalidShape

logger = logging.getLogger(__name__)

CHILD_NAMES = ("nw", "ne", "sw", "se", "nn", "ee", "ss", "ww", "cc")


@dataclass(frozen=True)
class Leaf:
    """A single cell."""

    state: CellState


LEAF_DEAD = Leaf(CellState.DEAD)
LEAF_ALIVE = Leaf(CellState.ALIVE)
_LEAVES = (LEAF_DEAD, LEAF_ALIVE)


def leaf(state: CellState) -> Leaf:
    """Return the shared leaf for a state."""
    return _LEAVES[state.value]


# One live representative per distinct branch content.
_CANONICAL: "weakref.WeakValueDictionary[tuple, Branch]" = weakref.WeakValueDictionary()
_CANONICAL_LOCK = threading.Lock()


@dataclass(frozen=True, eq=False, repr=False)
class Branch:
    """A square region decomposed into nine overlapping half-size regions.

    Equality and hashing are structural: two branches built separately from
    the same cells compare equal and hash alike. At construction every branch
    is linked to the one canonical branch with its content, so equality is a
    single identity check on the canonical branches rather than a walk of the
    two trees.
    """

    nw: "QuadNode"
    ne: "QuadNode"
    sw: "QuadNode"
    se: "QuadNode"
    nn: "QuadNode"
    ee: "QuadNode"
    ss: "QuadNode"
    ww: "QuadNode"
    cc: "QuadNode"
    depth: int
    area: int
    _hash: int = field(init=False, compare=False)
    _canonical: "Branch" = field(init=False, compare=False)

    def __post_init__(self) -> None:
        # Children are linked already, so the key compares by identity.
        key = (self.depth, self.area) + tuple(
            child._canonical if isinstance(child, Branch) else child for child in self.children
        )
        object.__setattr__(self, "_hash", hash(key))
        with _CANONICAL_LOCK:
            canonical = _CANONICAL.get(key)
            if canonical is None:
                canonical = self
                _CANONICAL[key] = self
        object.__setattr__(self, "_canonical", canonical)

    @property
    def children(self) -> Tuple["QuadNode", ...]:
        """Children in the order nw, ne, sw, se, nn, ee, ss, ww, cc."""
        return (self.nw, self.ne, self.sw, self.se, self.nn, self.ee, self.ss, self.ww, self.cc)

    @property
    def corners(self) -> Tuple["QuadNode", ...]:
        """The four disjoint quadrants: nw, ne, sw, se."""
        return (self.nw, self.ne, self.sw, self.se)

    @property
    def side(self) -> int:
        """Side length of the region."""
        return self.depth

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Branch):
            return NotImplemented
        return self._canonical is other._canonical

    def __repr__(self) -> str:
        return f"Branch(depth={self.depth}, area={self.area})"


QuadNode = Union[Leaf, Branch]


def as_square_array(cells: Any, side: Optional[int] = None) -> np.ndarray:
    """Convert cells to a square ``(side, side)`` int8 array of 0/1 values.

    Args:
        cells: Flat sequence of CellState (bools or 0/1 also accepted), or a
            flat or square 2-D numpy array
        side: Expected side length, inferred from the cell count if omitted

    Returns:
        Array indexed ``[row, col]``

    Raises:
        InvalidShape: If the cells cannot form a square power-of-two board
        ValueError: If a value is not a valid cell value
    """
    if isinstance(cells, np.ndarray):
        if cells.ndim == 2 and cells.shape[0] != cells.shape[1]:
            raise InvalidShape(f"Board must be square, got shape {cells.shape}")
        if cells.ndim > 2:
            raise InvalidShape(f"Board must be flat or 2-D, got {cells.ndim} dimensions")
        values = cells.ravel()
        if values.size and not np.isin(values, (0, 1)).all():
            raise ValueError("Cell array may only contain 0 and 1")
        values = values.astype(np.int8)
    else:
        values = np.fromiter((CellState.coerce(c).value for c in cells), dtype=np.int8)

    length = int(values.size)
    if length == 0:
        raise InvalidShape("Cannot build a board from no cells")

    root = math.isqrt(length)
    if root * root != length:
        raise InvalidShape(f"Cell count {length} is not a perfect square")
    if side is not None and side != root:
        raise InvalidShape(f"Side {side} does not match cell count {length}")
    if root < 2 or root & (root - 1):
        raise InvalidShape(f"Side {root} is not a power of two")

    return values.reshape(root, root)


class _Builder:
    """Builds branches, sharing one node per distinct sub-grid."""

    def __init__(self) -> None:
        self._memo: Dict[Tuple[int, bytes], Branch] = {}

    def __len__(self) -> int:
        return len(self._memo)

    def build(self, grid: np.ndarray) -> Branch:
        n = grid.shape[0]
        key = (n, grid.tobytes())
        node = self._memo.get(key)
        if node is not None:
            return node

        if n == 2:
            # Edge and centre children carry no overlap data at this size.
            node = Branch(
                nw=_LEAVES[grid[0, 0]],
                ne=_LEAVES[grid[0, 1]],
                sw=_LEAVES[grid[1, 0]],
                se=_LEAVES[grid[1, 1]],
                nn=LEAF_DEAD,
                ee=LEAF_DEAD,
                ss=LEAF_DEAD,
                ww=LEAF_DEAD,
                cc=LEAF_DEAD,
                depth=2,
                area=4,
            )
        else:
            h = n // 2
            q = n // 4
            node = Branch(
                nw=self.build(grid[:h, :h]),
                ne=self.build(grid[:h, h:]),
                sw=self.build(grid[h:, :h]),
                se=self.build(grid[h:, h:]),
                nn=self.build(grid[:h, q : 3 * q]),
                ee=self.build(grid[q : 3 * q, h:]),
                ss=self.build(grid[h:, q : 3 * q]),
                ww=self.build(grid[q : 3 * q, :h]),
                cc=self.build(grid[q : 3 * q, q : 3 * q]),
                depth=n,
                area=n * n,
            )

        self._memo[key] = node
        return node


def build(cells: Any, side: Optional[int] = None) -> Branch:
    """Build a tree from a flat row-major board.

    Args:
        cells: Flat sequence of CellState of length ``side * side``
        side: Optional side length; inferred when omitted

    Returns:
        Root branch of the tree

    Raises:
        InvalidShape: If the length is not a square of a power of two
    """
    grid = as_square_array(cells, side)
    builder = _Builder()
    root = builder.build(grid)
    logger.debug("Built %dx%d tree with %d distinct regions", grid.shape[0], grid.shape[0], len(builder))
    return root


def to_array(node: QuadNode) -> np.ndarray:
    """Reassemble the ``(side, side)`` int8 array a tree was built from."""
    if isinstance(node, Leaf):
        return np.array([[node.state.value]], dtype=np.int8)

    if node.depth == 2:
        return np.array(
            [[c.state.value for c in node.corners[:2]], [c.state.value for c in node.corners[2:]]],
            dtype=np.int8,
        )

    nw, ne, sw, se = (to_array(c) for c in node.corners)
    return np.block([[nw, ne], [sw, se]])


def flatten(node: QuadNode) -> Tuple[CellState, ...]:
    """Inverse of :func:`build`: the flat row-major cells of a tree."""
    return tuple(CellState(int(v)) for v in to_array(node).ravel())


def node_population(node: QuadNode) -> int:
    """Count living cells in the disjoint quadrants of a tree."""
    if isinstance(node, Leaf):
        return node.state.value
    return sum(node_population(c) for c in node.corners)


def cells_from_values(values: Sequence[int]) -> Tuple[CellState, ...]:
    """Convert 0/1 values to a tuple of CellState."""
    return tuple(CellState(int(v)) for v in values)
