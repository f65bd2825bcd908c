#!/usr/bin/env python3
"""
Example usage of the quadlife package.
"""

from quadlife import Evolver, EvolutionCache, PatternLibrary, Universe
from quadlife.core.config import UniverseConfig


def main():
    """Demonstrate programmatic usage of the quadlife package."""
    # Two universes sharing one bounded cache
    evolver = Evolver(EvolutionCache(max_size=50000))
    config = UniverseConfig(board_size=32, viewport_size=16)
    first = Universe(config, evolver)
    second = Universe(config, evolver)

    library = PatternLibrary()
    library.get_pattern("Glider").apply_to_universe(first, offset_x=2, offset_y=2)
    library.get_pattern("Glider").apply_to_universe(second, offset_x=2, offset_y=2)

    print("Initial state:")
    print(first)
    print(f"Population: {first.population}")
    print()

    for _ in range(8):
        first.step()
    print(f"Generation {first.generation}:")
    print(first)
    print(f"Base case evaluations: {evolver.base_case_evaluations}")
    print()

    # The second universe replays the same history entirely from the cache
    evolver.reset_counters()
    for _ in range(8):
        second.step()
    print(f"Second universe, generation {second.generation}: "
          f"{evolver.base_case_evaluations} base case evaluations")

    stats = first.get_statistics()
    print("\nFinal statistics:")
    for key, value in stats.items():
        if key != "population_history":
            print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
