"""Tests for the BatchStepper."""

import numpy as np
import pytest

from quadlife.core.batch import BatchStepper
from quadlife.core.evolver import Evolver
from quadlife.core.node import build
from quadlife.core.reference import reference_step
from quadlife.core.universe import Universe


def random_grid(side, seed):
    return np.random.default_rng(seed).integers(0, 2, size=(side, side)).astype(np.int8)


class TestBatchStepper:
    """Test cases for concurrent stepping."""

    def test_evolve_many_preserves_order(self):
        """Results line up with their input trees."""
        grids = [random_grid(16, seed) for seed in range(6)]
        results = BatchStepper(workers=4).evolve_many([build(g) for g in grids])

        assert len(results) == 6
        for grid, result in zip(grids, results):
            np.testing.assert_array_equal(result.reshape(16, 16), reference_step(grid))

    def test_evolve_many_shares_cache(self):
        """Identical trees are served from one shared cache."""
        grid = random_grid(16, 42)
        stepper = BatchStepper(workers=4)
        stepper.evolve_many([build(grid) for _ in range(8)])

        assert stepper.evolver.cache.hits > 0
        assert stepper.evolver.cache.get(build(grid)) is not None

    def test_work_counters_exact_across_threads(self):
        """Every cache miss is matched by exactly one counted evaluation."""
        grids = [random_grid(64, seed) for seed in range(16)]
        stepper = BatchStepper(workers=8)
        stepper.evolve_many([build(g) for g in grids])

        evolver = stepper.evolver
        assert evolver.base_case_evaluations + evolver.stitches == evolver.cache.misses

    def test_step_all(self):
        """Every universe advances one generation."""
        universes = [Universe() for _ in range(4)]
        expected = []
        for seed, universe in enumerate(universes):
            universe.randomize(0.4, seed=seed)
            expected.append(reference_step(universe.to_array()))

        evolver = Evolver()
        BatchStepper(evolver, workers=2).step_all(universes)

        for universe, board in zip(universes, expected):
            assert universe.generation == 1
            assert universe.evolver is evolver
            np.testing.assert_array_equal(universe.to_array(), board)

    def test_step_all_rejects_duplicates(self):
        """A universe cannot be stepped twice in one batch."""
        universe = Universe()
        with pytest.raises(ValueError):
            BatchStepper().step_all([universe, universe])

    def test_default_workers(self):
        """Worker count defaults to at least one."""
        assert BatchStepper().workers >= 1
