"""Basic tests for the quadlife package."""

from quadlife import CellState, Evolver, InvalidShape, PatternLibrary, Universe, build


def test_package_exports():
    """The main types are importable from the package root."""
    assert CellState.ALIVE.is_alive
    assert issubclass(InvalidShape, ValueError)


def test_evolve_round_trip():
    """A flat array goes in and a flat array of the same length comes out."""
    cells = [CellState.DEAD] * 64
    result = Evolver().evolve(build(cells))
    assert len(result) == 64


def test_universe_with_pattern():
    """A library glider keeps five cells while it moves."""
    universe = Universe()
    PatternLibrary().get_pattern("Glider").apply_to_universe(universe, 4, 4)

    for _ in range(4):
        universe.step()
        assert universe.population == 5
