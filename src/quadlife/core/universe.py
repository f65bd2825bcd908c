"""A fixed-size board advanced one generation at a time by the quadtree engine."""

import logging
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

import numpy as np

from .cache import EvolutionCache
from .cell import CellState
from .config import UniverseConfig
from .evolver import Evolver
from .node import as_square_array, build, cells_from_values

logger = logging.getLogger(__name__)


class Universe:
    """Square board of cells with a centred viewport.

    Every ``step()`` rebuilds a tree from the flat board, evolves it and
    replaces the board with the result. The board's outermost ring is carried
    over unchanged by the engine, so frontends show only the centred
    ``viewport_size`` window.
    """

    def __init__(self, config: Optional[UniverseConfig] = None, evolver: Optional[Evolver] = None) -> None:
        """Initialize an empty universe.

        Args:
            config: Board settings (defaults to a 32x32 board with a 16x16 view)
            evolver: Engine to step with; one with its own cache is created if None

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or UniverseConfig()
        self.config.validate()

        if evolver is None:
            evolver = Evolver(EvolutionCache(self.config.cache_max_size))
        self.evolver = evolver

        self.side = self.config.board_size
        self._cells = np.zeros((self.side, self.side), dtype=np.int8)
        self._generation = 0
        self._population_history: Deque[int] = deque(maxlen=self.config.history_size)
        self._state_history: Deque[bytes] = deque(maxlen=1000)
        self._seen_states: Dict[bytes, int] = {}
        self._cycle_detected = False
        self._cycle_length = 0
        self._cycle_start_generation = 0

        self._update_population_history()

    @property
    def cells(self) -> Tuple[CellState, ...]:
        """Flat row-major board."""
        return cells_from_values(self._cells.ravel())

    @property
    def generation(self) -> int:
        """Current generation number."""
        return self._generation

    @property
    def population(self) -> int:
        """Current number of living cells."""
        return int(self._cells.sum())

    @property
    def population_history(self) -> list:
        """History of population counts."""
        return list(self._population_history)

    @property
    def cycle_detected(self) -> bool:
        """Whether a cycle has been detected."""
        return self._cycle_detected

    @property
    def cycle_length(self) -> int:
        """Length of detected cycle (0 if no cycle)."""
        return self._cycle_length

    @property
    def cycle_start_generation(self) -> int:
        """Generation where cycle started (0 if no cycle)."""
        return self._cycle_start_generation

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.side and 0 <= y < self.side):
            raise IndexError(f"Coordinates ({x}, {y}) out of bounds")

    def get_cell(self, x: int, y: int) -> bool:
        """Get the state of a cell.

        Args:
            x: Column coordinate
            y: Row coordinate

        Returns:
            True if cell is alive, False if dead

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        return bool(self._cells[y, x])

    def set_cell(self, x: int, y: int, alive: bool) -> None:
        """Set the state of a cell.

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        self._cells[y, x] = 1 if alive else 0

    def toggle_cell(self, x: int, y: int) -> bool:
        """Toggle the state of a cell.

        Returns:
            New state of the cell
        """
        new_state = not self.get_cell(x, y)
        self.set_cell(x, y, new_state)
        return new_state

    def viewport_to_board(self, x: int, y: int) -> Tuple[int, int]:
        """Map viewport coordinates to board coordinates.

        Coordinates outside the viewport are clamped to its edge.
        """
        last = self.config.viewport_size - 1
        x = min(max(x, 0), last)
        y = min(max(y, 0), last)
        offset = self.config.viewport_offset
        return (x + offset, y + offset)

    def toggle_viewport_cell(self, x: int, y: int) -> bool:
        """Toggle a cell addressed in viewport coordinates.

        Returns:
            New state of the cell
        """
        return self.toggle_cell(*self.viewport_to_board(x, y))

    def step(self) -> None:
        """Advance the simulation by one generation."""
        self.check_for_cycles()

        tree = build(self._cells)
        self._cells = self.evolver.evolve_array(tree).reshape(self.side, self.side).copy()

        self._generation += 1
        self._update_population_history()

    def run(self, generations: int) -> None:
        """Advance the simulation by a number of generations."""
        for _ in range(generations):
            self.step()

    def run_until_stable(self, max_generations: int = 10000) -> Tuple[int, str]:
        """Run simulation until it becomes stable or cycles.

        Args:
            max_generations: Maximum generations to run

        Returns:
            Tuple of (final_generation, reason) where reason is one of:
            'cycle', 'extinction', 'max_generations'
        """
        for _ in range(max_generations):
            self.step()

            if self.population == 0:
                return self._generation, "extinction"

            if self.check_for_cycles():
                return self._generation, "cycle"

        return self._generation, "max_generations"

    def _update_population_history(self) -> None:
        self._population_history.append(self.population)

    def check_for_cycles(self) -> bool:
        """Record the current state and flag a cycle if it was seen before.

        Returns:
            Whether a cycle has been detected
        """
        if self._cycle_detected:
            return True

        current_state = self._cells.tobytes()

        first_occurrence = self._seen_states.get(current_state)
        if first_occurrence is not None:
            if first_occurrence == self._generation:
                return False
            self._cycle_detected = True
            self._cycle_length = self._generation - first_occurrence
            self._cycle_start_generation = first_occurrence
            logger.debug(
                "Cycle of length %d detected at generation %d", self._cycle_length, self._generation
            )
            return True

        self._seen_states[current_state] = self._generation
        # Forget the state about to fall out of the bounded history.
        if len(self._state_history) == self._state_history.maxlen:
            self._seen_states.pop(self._state_history[0], None)
        self._state_history.append(current_state)
        return False

    def clear_cycle_detection(self) -> None:
        """Forget seen states, e.g. after the board was edited by hand."""
        self._cycle_detected = False
        self._cycle_length = 0
        self._cycle_start_generation = 0
        self._seen_states.clear()
        self._state_history.clear()

    def reset(self, clear_board: bool = True) -> None:
        """Reset the simulation.

        Args:
            clear_board: Whether to clear the board as well
        """
        if clear_board:
            self._cells.fill(0)

        self._generation = 0
        self._population_history.clear()
        self.clear_cycle_detection()
        self._update_population_history()
        logger.debug("Reset %dx%d universe", self.side, self.side)

    def clear(self) -> None:
        """Set every cell dead."""
        self._cells.fill(0)

    def randomize(self, probability: float = 0.1, seed: Optional[int] = None, viewport_only: bool = True) -> None:
        """Randomly populate the board.

        Args:
            probability: Chance each cell will be alive (0.0 to 1.0)
            seed: Optional seed for reproducible boards
            viewport_only: Only populate the visible window, leaving the rest dead
        """
        rng = np.random.default_rng(seed)
        self._cells.fill(0)
        if viewport_only:
            size = self.config.viewport_size
            offset = self.config.viewport_offset
            mask = rng.random((size, size)) < probability
            self._cells[offset : offset + size, offset : offset + size] = mask
        else:
            self._cells[:] = rng.random((self.side, self.side)) < probability

    def load_cells(self, cells: Any) -> None:
        """Replace the board with flat row-major cells of the same size.

        Raises:
            InvalidShape: If the cells do not form a board of this universe's side
        """
        self._cells = as_square_array(cells, self.side).copy()

    def to_array(self) -> np.ndarray:
        """Copy of the board as a ``(side, side)`` array indexed ``[row, col]``."""
        return self._cells.copy()

    def viewport_array(self) -> np.ndarray:
        """Copy of the visible window."""
        size = self.config.viewport_size
        offset = self.config.viewport_offset
        return self._cells[offset : offset + size, offset : offset + size].copy()

    def get_bounding_box(self) -> Optional[Tuple[int, int, int, int]]:
        """Get bounding box of living cells.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y) or None if no living cells
        """
        rows, cols = np.nonzero(self._cells)
        if len(rows) == 0:
            return None
        return (int(cols.min()), int(rows.min()), int(cols.max()), int(rows.max()))

    def get_statistics(self) -> Dict[str, Any]:
        """Get simulation statistics, including the evolution cache's."""
        bbox = self.get_bounding_box()
        return {
            "generation": self._generation,
            "population": self.population,
            "population_history": list(self._population_history),
            "cycle_detected": self._cycle_detected,
            "cycle_length": self._cycle_length,
            "cycle_start_generation": self._cycle_start_generation,
            "board_size": self.side,
            "viewport_size": self.config.viewport_size,
            "population_density": self.population / (self.side * self.side),
            "bounding_box": bbox,
            "base_case_evaluations": self.evolver.base_case_evaluations,
            "cache": self.evolver.cache.get_stats(),
        }

    def __str__(self) -> str:
        """Viewport with living cells as '*' and dead as '.'."""
        return "\n".join("".join("*" if v else "." for v in row) for row in self.viewport_array())
