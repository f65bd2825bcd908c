"""Exceptions raised by the quadtree evolution engine."""


class QuadLifeError(Exception):
    """Base class for errors raised by quadlife."""


class InvalidShape(QuadLifeError, ValueError):
    """A cell sequence cannot be arranged into a square power-of-two board."""


class StructuralInvariantViolation(QuadLifeError, AssertionError):
    """A tree's recorded depth or area disagrees with its children.

    This indicates a construction defect and is never recovered from.
    """
