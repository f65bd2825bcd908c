"""Step several independent boards concurrently over one shared cache."""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from .evolver import Evolver
from .node import Branch
from .universe import Universe


class BatchStepper:
    """Runs independent evolutions on a thread pool.

    All work goes through one evolver, so regions shared between boards are
    computed once. The cache lock is only held per lookup or insert, so
    threads never wait on each other's recursion.
    """

    def __init__(self, evolver: Optional[Evolver] = None, workers: Optional[int] = None) -> None:
        """Initialize the batch stepper.

        Args:
            evolver: Shared engine; a new one is created if None
            workers: Number of worker threads (None for CPU count)
        """
        self.evolver = evolver or Evolver()
        self.workers = workers or os.cpu_count() or 1

    def evolve_many(self, trees: Sequence[Branch]) -> List[np.ndarray]:
        """Evolve prebuilt trees concurrently.

        Args:
            trees: Trees to advance one generation

        Returns:
            Read-only flat results, in the same order as the trees
        """
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(self.evolver.evolve_array, trees))

    def step_all(self, universes: Sequence[Universe]) -> None:
        """Advance every universe one generation.

        Each universe is stepped with this stepper's evolver rather than its own.

        Raises:
            ValueError: If the same universe appears twice
        """
        if len({id(u) for u in universes}) != len(universes):
            raise ValueError("Each universe may only be stepped once per batch")

        for universe in universes:
            universe.evolver = self.evolver

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            # Consume the iterator so worker exceptions propagate.
            list(executor.map(lambda universe: universe.step(), universes))
