"""Binary cell state."""

from enum import Enum
from typing import Any


class CellState(Enum):
    """State of a single grid cell."""

    DEAD = 0
    ALIVE = 1

    @property
    def is_alive(self) -> bool:
        """Whether this is the live state."""
        return self is CellState.ALIVE

    def toggled(self) -> "CellState":
        """Return the opposite state."""
        return CellState.DEAD if self is CellState.ALIVE else CellState.ALIVE

    @classmethod
    def coerce(cls, value: Any) -> "CellState":
        """Convert a CellState, bool or 0/1 integer to a CellState.

        Args:
            value: Value to convert

        Returns:
            Matching CellState

        Raises:
            ValueError: If the value is not a recognised cell value
        """
        if isinstance(value, CellState):
            return value
        if isinstance(value, bool):
            return cls.ALIVE if value else cls.DEAD
        try:
            as_int = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Not a cell value: {value!r}") from None
        if as_int not in (0, 1) or as_int != value:
            raise ValueError(f"Not a cell value: {value!r}")
        return cls(as_int)

    def __str__(self) -> str:
        return "*" if self is CellState.ALIVE else "."


ALIVE = CellState.ALIVE
DEAD = CellState.DEAD
