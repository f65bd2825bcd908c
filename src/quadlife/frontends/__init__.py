"""Frontend interfaces for the quadtree engine."""

from .cli import CLIQuadLife

__all__ = ["CLIQuadLife"]
