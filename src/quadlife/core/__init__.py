"""Core quadtree evolution engine."""

from .cell import CellState
from .errors import QuadLifeError, InvalidShape, StructuralInvariantViolation
from .node import Leaf, Branch, QuadNode, build, flatten
from .cache import EvolutionCache
from .evolver import Evolver
from .config import UniverseConfig
from .universe import Universe
from .patterns import Pattern, PatternLibrary
from .batch import BatchStepper

__all__ = [
    "CellState",
    "QuadLifeError",
    "InvalidShape",
    "StructuralInvariantViolation",
    "Leaf",
    "Branch",
    "QuadNode",
    "build",
    "flatten",
    "EvolutionCache",
    "Evolver",
    "UniverseConfig",
    "Universe",
    "Pattern",
    "PatternLibrary",
    "BatchStepper",
]
