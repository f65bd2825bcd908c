"""Command-line interface for the quadtree Game of Life engine."""

import argparse
import logging
import sys
import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..core.config import UniverseConfig
from ..core.patterns import PatternLibrary
from ..core.reference import reference_step
from ..core.universe import Universe


class CLIQuadLife:
    """Command-line interface for running quadtree simulations."""

    def __init__(self, pattern_dir: Optional[str] = None):
        """Initialize CLI interface.

        Args:
            pattern_dir: Directory with extra JSON patterns to load
        """
        self.pattern_library = PatternLibrary(pattern_dir)
        if pattern_dir is not None:
            self.pattern_library.load_all_patterns()

    def run_simulation(
        self,
        config: UniverseConfig,
        generations: int,
        pattern: Optional[str] = None,
        pattern_x: int = 0,
        pattern_y: int = 0,
        population_rate: float = 0.1,
        seed: Optional[int] = None,
        until_stable: bool = False,
        verify: bool = False,
        verbose: bool = False,
        show_grid: bool = False,
    ) -> Tuple[int, str, Dict[str, Any]]:
        """Run a simulation.

        Args:
            config: Board settings
            generations: Number of generations (the maximum when until_stable)
            pattern: Optional pattern name to load
            pattern_x: X offset for pattern placement within the viewport
            pattern_y: Y offset for pattern placement within the viewport
            population_rate: Random population rate used without a pattern
            seed: Random seed for the initial population
            until_stable: Stop early on extinction or a cycle
            verify: Check every step against the direct reference stepper
            verbose: Print progress updates
            show_grid: Show initial and final viewport

        Returns:
            Tuple of (final_generation, finish_reason, statistics)
        """
        universe = Universe(config)

        if verbose:
            print(f"Initializing {config.board_size}x{config.board_size} board "
                  f"({config.viewport_size}x{config.viewport_size} visible)")

        loaded_pattern = self.pattern_library.get_pattern(pattern) if pattern else None
        if loaded_pattern:
            if verbose:
                print(f"Loading pattern '{pattern}' at ({pattern_x}, {pattern_y})")
            loaded_pattern.apply_to_universe(universe, pattern_x, pattern_y)
        else:
            if pattern:
                print(f"Warning: Pattern '{pattern}' not found, using random population")
            if verbose:
                print(f"Generating random population (rate: {population_rate:.2%})")
            universe.randomize(population_rate, seed=seed)

        initial_population = universe.population
        if verbose:
            print(f"Initial population: {initial_population} cells")

        if show_grid:
            print("\nInitial grid:")
            print(universe)

        mismatches = 0
        reason = "max_generations"
        start_time = time.time()

        for _ in range(generations):
            expected = reference_step(universe.to_array()) if verify else None

            universe.step()

            if expected is not None:
                mismatches += int(np.count_nonzero(universe.to_array() != expected))

            if until_stable:
                if universe.population == 0:
                    reason = "extinction"
                    break
                if universe.check_for_cycles():
                    reason = "cycle"
                    break

        duration = time.time() - start_time
        final_generation = universe.generation

        stats = universe.get_statistics()
        stats["duration_seconds"] = duration
        stats["generations_per_second"] = final_generation / duration if duration > 0 else 0
        stats["initial_population"] = initial_population
        if verify:
            stats["verify_mismatches"] = mismatches

        if show_grid:
            print(f"\nFinal grid (generation {final_generation}):")
            print(universe)

        return final_generation, reason, stats

    def list_patterns(self) -> None:
        """List available patterns by category."""
        categories = self.pattern_library.get_patterns_by_category()

        print("Available patterns:")
        for category, patterns in categories.items():
            print(f"\n{category}:")
            for pattern_name in patterns:
                pattern = self.pattern_library.get_pattern(pattern_name)
                if pattern:
                    size = pattern.get_size()
                    print(f"  {pattern_name}: {size[0]}x{size[1]}, {len(pattern.cells)} cells")
                    if pattern.description:
                        print(f"    {pattern.description}")


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        description="Run Game of Life on the memoized quadtree engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a glider on the default 32x32 board for 20 generations
  quadlife-cli --pattern Glider --generations 20 --show-grid

  # Random 64x64 board, stop on extinction or a cycle
  quadlife-cli --board-size 64 --viewport 48 --population 0.3 --until-stable

  # Check the engine against a direct convolution step
  quadlife-cli --population 0.4 --seed 7 --generations 50 --verify

  # Bound the evolution cache to 10000 regions
  quadlife-cli --pattern R-pentomino --generations 200 --cache-size 10000 --verbose
        """,
    )

    # Board configuration; None means "use the config file or default"
    parser.add_argument("-b", "--board-size", type=int, default=None, help="Board side, a power of two (default: 32)")
    parser.add_argument("--viewport", type=int, default=None, help="Visible window side (default: 16)")
    parser.add_argument("--cache-size", type=int, default=None, help="Maximum cached regions (default: unbounded)")
    parser.add_argument("--config", type=str, default=None, help="JSON file with board settings")

    # Initial state
    parser.add_argument("-p", "--pattern", type=str, default=None, help="Pattern to load (see --list-patterns)")
    parser.add_argument("--pattern-x", type=int, default=0, help="Pattern X offset in the viewport (default: 0)")
    parser.add_argument("--pattern-y", type=int, default=0, help="Pattern Y offset in the viewport (default: 0)")
    parser.add_argument("--pattern-dir", type=str, default=None, help="Directory with extra JSON patterns")
    parser.add_argument(
        "--population", type=float, default=0.1, help="Random population rate 0.0-1.0 (default: 0.1)"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the initial population")

    # Run control
    parser.add_argument("-g", "--generations", type=int, default=100, help="Generations to run (default: 100)")
    parser.add_argument("--until-stable", action="store_true", help="Stop on extinction or a cycle")
    parser.add_argument("--verify", action="store_true", help="Check each step against a direct Life step")

    # Output
    parser.add_argument("--show-grid", action="store_true", help="Show initial and final viewport")
    parser.add_argument("--list-patterns", action="store_true", help="List available patterns and exit")
    parser.add_argument("--verbose", action="store_true", help="Show progress and detailed statistics")

    return parser


def build_config(args: argparse.Namespace) -> UniverseConfig:
    """Combine the optional config file with command-line overrides.

    Raises:
        ValueError: If the resulting configuration is invalid
        FileNotFoundError: If the config file doesn't exist
    """
    config = UniverseConfig.load(args.config) if args.config else UniverseConfig()

    if args.board_size is not None:
        config.board_size = args.board_size
        if args.viewport is None and args.config is None:
            config.viewport_size = args.board_size // 2
    if args.viewport is not None:
        config.viewport_size = args.viewport
    if args.cache_size is not None:
        config.cache_max_size = args.cache_size

    config.validate()
    return config


def format_finish_reason(reason: str, stats: dict) -> str:
    """Format the simulation finish reason for display."""
    if reason == "extinction":
        return "Extinction - all cells died"
    elif reason == "cycle":
        cycle_len = stats.get("cycle_length", 0)
        cycle_start = stats.get("cycle_start_generation", 0)
        return f"Cycle detected - length {cycle_len}, started at generation {cycle_start}"
    elif reason == "max_generations":
        return f"Generation limit reached ({stats.get('generation', 0)})"
    else:
        return f"Unknown reason: {reason}"


def print_results(final_generation: int, reason: str, stats: dict, verbose: bool) -> None:
    """Print simulation results.

    Args:
        final_generation: Final generation number
        reason: Finish reason
        stats: Statistics dictionary
        verbose: Whether to show detailed statistics
    """
    print(f"\nSimulation completed after {final_generation} generations")
    print(f"Finish reason: {format_finish_reason(reason, stats)}")

    cache = stats["cache"]
    if verbose:
        print("\nDetailed Statistics:")
        print(f"  Board size: {stats['board_size']}x{stats['board_size']}")
        print(f"  Initial population: {stats['initial_population']}")
        print(f"  Final population: {stats['population']}")
        print(f"  Population density: {stats['population_density']:.2%}")
        print(f"  Duration: {stats['duration_seconds']:.3f} seconds")
        print(f"  Speed: {stats['generations_per_second']:.0f} generations/second")
        print(f"  Base case evaluations: {stats['base_case_evaluations']}")
        print(f"  Cache entries: {cache['size']} (hits {cache['hits']}, misses {cache['misses']}, "
              f"evictions {cache['evictions']}, hit rate {cache['hit_rate']:.1%})")
    else:
        print(
            f"Population: {stats['initial_population']} -> {stats['population']}, "
            f"Duration: {stats['duration_seconds']:.3f}s, "
            f"Cache hit rate: {cache['hit_rate']:.1%}"
        )

    if "verify_mismatches" in stats:
        if stats["verify_mismatches"]:
            print(f"Verification FAILED: {stats['verify_mismatches']} cells differ from the reference step")
        else:
            print("Verification passed: every step matches the reference step")


def validate_args(args: argparse.Namespace) -> bool:
    """Validate command-line arguments that the config does not cover.

    Args:
        args: Parsed arguments

    Returns:
        True if arguments are valid
    """
    errors: List[str] = []

    if not 0.0 <= args.population <= 1.0:
        errors.append("Population rate must be between 0.0 and 1.0")

    if args.generations <= 0:
        errors.append("Generations must be positive")

    if args.pattern_x < 0:
        errors.append("Pattern X offset must be non-negative")

    if args.pattern_y < 0:
        errors.append("Pattern Y offset must be non-negative")

    if errors:
        print("Error: Invalid arguments:")
        for error in errors:
            print(f"  - {error}")
        return False

    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI interface.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli = CLIQuadLife(args.pattern_dir)

    if args.list_patterns:
        cli.list_patterns()
        return 0

    if not validate_args(args):
        return 1

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    try:
        final_generation, reason, stats = cli.run_simulation(
            config,
            args.generations,
            pattern=args.pattern,
            pattern_x=args.pattern_x,
            pattern_y=args.pattern_y,
            population_rate=args.population,
            seed=args.seed,
            until_stable=args.until_stable,
            verify=args.verify,
            verbose=args.verbose,
            show_grid=args.show_grid,
        )
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 1

    print_results(final_generation, reason, stats, args.verbose)

    if stats.get("verify_mismatches"):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
