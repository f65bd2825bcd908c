"""Configuration for a quadlife universe."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


@dataclass
class UniverseConfig:
    """Settings fixed for the lifetime of a universe."""

    board_size: int = 32
    viewport_size: int = 16
    cache_max_size: Optional[int] = None
    history_size: int = 100

    def errors(self) -> List[str]:
        """List every problem with this configuration."""
        errors = []

        if self.board_size < 4 or self.board_size & (self.board_size - 1):
            errors.append("Board size must be a power of two of at least 4")

        if self.viewport_size <= 0 or self.viewport_size % 2:
            errors.append("Viewport size must be a positive even number")
        elif self.viewport_size > self.board_size:
            errors.append("Viewport size must not exceed board size")

        if self.cache_max_size is not None and self.cache_max_size <= 0:
            errors.append("Cache size must be positive")

        if self.history_size <= 0:
            errors.append("History size must be positive")

        return errors

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If any setting is invalid
        """
        errors = self.errors()
        if errors:
            raise ValueError("Invalid configuration: " + "; ".join(errors))

    @property
    def viewport_offset(self) -> int:
        """Board coordinate of the viewport's top-left corner on both axes."""
        return (self.board_size - self.viewport_size) // 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UniverseConfig":
        """Create a configuration from a dictionary, ignoring unknown keys.

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        known = {f.name for f in fields(cls)}
        config = cls(**{key: value for key, value in data.items() if key in known})
        config.validate()
        return config

    @classmethod
    def load(cls, path: Union[str, Path]) -> "UniverseConfig":
        """Load a configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid JSON or the configuration is invalid
        """
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(data)
