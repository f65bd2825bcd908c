"""Common Conway's Game of Life patterns and pattern management."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .universe import Universe

logger = logging.getLogger(__name__)


class Pattern:
    """Represents a Game of Life pattern."""

    def __init__(
        self,
        name: str,
        cells: List[Tuple[int, int]],
        description: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize a pattern.

        Args:
            name: Pattern name
            cells: List of (x, y) coordinates for living cells
            description: Optional description
            metadata: Optional metadata dictionary
        """
        self.name = name
        self.cells = cells
        self.description = description
        self.metadata = metadata or {}

    def apply_to_universe(
        self, universe: Universe, offset_x: int = 0, offset_y: int = 0, clear: bool = True
    ) -> int:
        """Place this pattern on a universe, in viewport coordinates.

        Args:
            universe: Target universe
            offset_x: Horizontal offset within the viewport
            offset_y: Vertical offset within the viewport
            clear: Whether to clear the board first

        Returns:
            Number of cells placed; cells outside the board are skipped
        """
        if clear:
            universe.clear()

        origin = universe.config.viewport_offset
        placed = 0
        for x, y in self.cells:
            try:
                universe.set_cell(origin + offset_x + x, origin + offset_y + y, True)
            except IndexError:
                continue
            placed += 1
        return placed

    def get_bounding_box(self) -> Tuple[int, int, int, int]:
        """Get bounding box of the pattern.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        if not self.cells:
            return (0, 0, 0, 0)

        xs, ys = zip(*self.cells)
        return (min(xs), min(ys), max(xs), max(ys))

    def get_size(self) -> Tuple[int, int]:
        """Get pattern size as (width, height)."""
        min_x, min_y, max_x, max_y = self.get_bounding_box()
        return (max_x - min_x + 1, max_y - min_y + 1)

    def normalize(self) -> "Pattern":
        """Return a new pattern with coordinates normalized to start at (0, 0)."""
        if not self.cells:
            return Pattern(self.name, [], self.description, self.metadata.copy())

        min_x, min_y, _, _ = self.get_bounding_box()
        normalized_cells = [(x - min_x, y - min_y) for x, y in self.cells]

        return Pattern(self.name, normalized_cells, self.description, self.metadata.copy())

    def to_dict(self) -> Dict[str, Any]:
        """Convert pattern to dictionary for serialization."""
        return {
            "name": self.name,
            "cells": [list(cell) for cell in self.cells],
            "description": self.description,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pattern":
        """Create pattern from dictionary.

        Raises:
            KeyError: If name or cells are missing
            ValueError: If a cell is not an (x, y) pair
        """
        cells = []
        for cell in data["cells"]:
            if len(cell) != 2:
                raise ValueError(f"Cell {cell!r} is not an (x, y) pair")
            cells.append((int(cell[0]), int(cell[1])))

        return cls(
            name=data["name"],
            cells=cells,
            description=data.get("description", ""),
            metadata=data.get("metadata", {}),
        )

    @classmethod
    def from_universe(cls, universe: Universe, name: str, description: str = "") -> "Pattern":
        """Capture the living cells of a universe's viewport as a pattern."""
        view = universe.viewport_array()
        cells = [(int(x), int(y)) for y, x in zip(*view.nonzero())]
        metadata = {"source_board_size": universe.side, "generation": universe.generation, "population": len(cells)}
        return cls(name, cells, description, metadata)


class PatternLibrary:
    """Manages a collection of patterns."""

    CATEGORIES = {
        "Still Life": ["Block", "Beehive", "Loaf"],
        "Oscillators": ["Blinker", "Toad", "Beacon", "Pulsar"],
        "Spaceships": ["Glider", "Lightweight Spaceship"],
        "Methuselahs": ["R-pentomino", "Diehard", "Acorn"],
    }

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize pattern library.

        Args:
            storage_dir: Directory for storing patterns (defaults to 'patterns');
                created on first save
        """
        self.storage_dir = Path(storage_dir or "patterns")
        self._patterns: Dict[str, Pattern] = {}
        self._load_builtin_patterns()

    def _load_builtin_patterns(self) -> None:
        """Load built-in common patterns."""
        # Still life patterns
        self.add_pattern(Pattern("Block", [(0, 0), (0, 1), (1, 0), (1, 1)], "2x2 still life block"))
        self.add_pattern(
            Pattern("Beehive", [(1, 0), (2, 0), (0, 1), (3, 1), (1, 2), (2, 2)], "Beehive still life")
        )
        self.add_pattern(
            Pattern("Loaf", [(1, 0), (2, 0), (0, 1), (3, 1), (1, 2), (3, 2), (2, 3)], "Loaf still life")
        )

        # Oscillators
        self.add_pattern(Pattern("Blinker", [(0, 1), (1, 1), (2, 1)], "Period-2 oscillator"))
        self.add_pattern(
            Pattern("Toad", [(1, 0), (2, 0), (3, 0), (0, 1), (1, 1), (2, 1)], "Period-2 oscillator")
        )
        self.add_pattern(
            Pattern("Beacon", [(0, 0), (1, 0), (0, 1), (3, 2), (2, 3), (3, 3)], "Period-2 oscillator")
        )

        # Pulsar is symmetric in both axes; build one quadrant and mirror it.
        quadrant = [(2, 0), (3, 0), (4, 0), (0, 2), (5, 2), (0, 3), (5, 3), (0, 4), (5, 4), (2, 5), (3, 5), (4, 5)]
        pulsar = sorted({(mx, my) for x, y in quadrant for mx in (x, 12 - x) for my in (y, 12 - y)})
        self.add_pattern(Pattern("Pulsar", pulsar, "Period-3 oscillator"))

        # Spaceships
        self.add_pattern(
            Pattern("Glider", [(1, 0), (2, 1), (0, 2), (1, 2), (2, 2)], "Smallest spaceship, period-4")
        )
        self.add_pattern(
            Pattern(
                "Lightweight Spaceship",
                [(0, 0), (3, 0), (4, 1), (0, 2), (4, 2), (1, 3), (2, 3), (3, 3), (4, 3)],
                "LWSS - Period-4 spaceship",
            )
        )

        # Methuselahs
        self.add_pattern(
            Pattern(
                "R-pentomino",
                [(1, 0), (2, 0), (0, 1), (1, 1), (1, 2)],
                "Famous methuselah that stabilizes after 1103 generations",
            )
        )
        self.add_pattern(
            Pattern(
                "Diehard",
                [(6, 0), (0, 1), (1, 1), (1, 2), (5, 2), (6, 2), (7, 2)],
                "Dies after exactly 130 generations",
            )
        )
        self.add_pattern(
            Pattern(
                "Acorn",
                [(1, 0), (3, 1), (0, 2), (1, 2), (4, 2), (5, 2), (6, 2)],
                "Takes 5206 generations to stabilize",
            )
        )

    def add_pattern(self, pattern: Pattern) -> None:
        """Add a pattern to the library."""
        self._patterns[pattern.name] = pattern

    def get_pattern(self, name: str) -> Optional[Pattern]:
        """Get a pattern by name, or None if not found."""
        return self._patterns.get(name)

    def list_patterns(self) -> List[str]:
        """Get list of all pattern names."""
        return list(self._patterns.keys())

    def get_patterns_by_category(self) -> Dict[str, List[str]]:
        """Get patterns organized by category.

        Returns:
            Dictionary mapping categories to pattern name lists
        """
        categories = {name: list(patterns) for name, patterns in self.CATEGORIES.items()}

        builtin = {name for patterns in self.CATEGORIES.values() for name in patterns}
        categories["Custom"] = [name for name in self._patterns if name not in builtin]

        # Remove empty categories
        return {cat: patterns for cat, patterns in categories.items() if patterns}

    def save_pattern(self, pattern: Pattern, filename: Optional[str] = None) -> Path:
        """Save a pattern to disk.

        Args:
            pattern: Pattern to save
            filename: Optional filename (defaults to pattern name)

        Returns:
            Path of the written file
        """
        if filename is None:
            filename = f"{pattern.name.replace(' ', '_').lower()}.json"

        self.storage_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.storage_dir / filename
        with open(filepath, "w") as f:
            json.dump(pattern.to_dict(), f, indent=2)
        return filepath

    def load_pattern(self, filename: str) -> Pattern:
        """Load a pattern from disk and add it to the library.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
            KeyError: If required fields are missing
        """
        filepath = self.storage_dir / filename

        with open(filepath, "r") as f:
            data = json.load(f)

        pattern = Pattern.from_dict(data)
        self.add_pattern(pattern)
        return pattern

    def load_all_patterns(self) -> int:
        """Load all patterns from the storage directory.

        Returns:
            Number of patterns loaded
        """
        loaded = 0
        if not self.storage_dir.is_dir():
            return loaded

        for filepath in sorted(self.storage_dir.glob("*.json")):
            try:
                self.load_pattern(filepath.name)
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.warning("Failed to load pattern from %s: %s", filepath.name, e)
                continue
            loaded += 1
        return loaded
