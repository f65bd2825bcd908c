"""Memoized quadtree engine for Conway's Game of Life."""

__version__ = "0.1.0"

from .core.cell import CellState
from .core.errors import InvalidShape, StructuralInvariantViolation
from .core.node import build
from .core.cache import EvolutionCache
from .core.evolver import Evolver
from .core.universe import Universe
from .core.patterns import Pattern, PatternLibrary

__all__ = [
    "CellState",
    "InvalidShape",
    "StructuralInvariantViolation",
    "build",
    "EvolutionCache",
    "Evolver",
    "Universe",
    "Pattern",
    "PatternLibrary",
]
