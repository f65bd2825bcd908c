"""Tests for the CLI frontend."""

import json
from io import StringIO
from unittest.mock import patch

from quadlife.core.config import UniverseConfig
from quadlife.frontends.cli import (
    CLIQuadLife,
    build_config,
    create_parser,
    format_finish_reason,
    main,
    print_results,
    validate_args,
)


class TestCLIQuadLife:
    """Test cases for the CLI runner."""

    def test_initialization(self):
        """Test CLI initialization."""
        cli = CLIQuadLife()
        assert cli.pattern_library is not None
        assert len(cli.pattern_library.list_patterns()) > 0

    def test_run_simulation_pattern(self):
        """A still life keeps its population."""
        cli = CLIQuadLife()
        final_gen, reason, stats = cli.run_simulation(UniverseConfig(), 5, pattern="Block", pattern_x=6, pattern_y=6)

        assert final_gen == 5
        assert reason == "max_generations"
        assert stats["initial_population"] == 4
        assert stats["population"] == 4
        assert "duration_seconds" in stats

    def test_run_simulation_random(self):
        """Random runs are reproducible with a seed."""
        cli = CLIQuadLife()
        config = UniverseConfig(board_size=16, viewport_size=8)
        first = cli.run_simulation(config, 10, population_rate=0.4, seed=5)
        second = cli.run_simulation(config, 10, population_rate=0.4, seed=5)

        assert first[2]["population"] == second[2]["population"]
        assert first[2]["initial_population"] == second[2]["initial_population"]

    def test_run_simulation_until_stable(self):
        """Stopping early reports the cycle."""
        cli = CLIQuadLife()
        final_gen, reason, stats = cli.run_simulation(
            UniverseConfig(), 100, pattern="Blinker", pattern_x=6, pattern_y=6, until_stable=True
        )

        assert reason == "cycle"
        assert final_gen == 2
        assert stats["cycle_length"] == 2

    def test_run_simulation_verify(self):
        """Verification finds no differences from the direct step."""
        cli = CLIQuadLife()
        _, _, stats = cli.run_simulation(UniverseConfig(), 20, population_rate=0.35, seed=1, verify=True)
        assert stats["verify_mismatches"] == 0

    def test_run_simulation_invalid_pattern(self):
        """An unknown pattern falls back to a random board."""
        cli = CLIQuadLife()
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cli.run_simulation(UniverseConfig(), 1, pattern="NonExistentPattern", population_rate=0.2, seed=0)
        assert "not found" in mock_stdout.getvalue()

    def test_show_grid(self):
        """The viewport is printed before and after."""
        cli = CLIQuadLife()
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cli.run_simulation(UniverseConfig(), 1, pattern="Block", show_grid=True)
        output = mock_stdout.getvalue()
        assert "Initial grid:" in output
        assert "Final grid (generation 1):" in output
        assert "**" in output

    def test_pattern_dir(self, tmp_path):
        """Extra patterns are loaded from a directory."""
        (tmp_path / "dot.json").write_text(json.dumps({"name": "Dot", "cells": [[0, 0]]}))
        cli = CLIQuadLife(str(tmp_path))
        assert cli.pattern_library.get_pattern("Dot") is not None

    def test_list_patterns(self):
        """Patterns are listed by category."""
        cli = CLIQuadLife()
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            cli.list_patterns()
        output = mock_stdout.getvalue()
        assert "Available patterns:" in output
        assert "Still Life:" in output
        assert "Glider" in output


class TestArguments:
    """Test cases for argument handling."""

    def test_parser_defaults(self):
        """Defaults leave board settings to the config."""
        args = create_parser().parse_args([])
        assert args.board_size is None
        assert args.viewport is None
        assert args.generations == 100
        assert args.population == 0.1
        assert not args.verify

    def test_validate_args(self):
        """Bad values are reported."""
        parser = create_parser()
        assert validate_args(parser.parse_args([]))

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert not validate_args(parser.parse_args(["--population", "1.5", "--generations", "0"]))
        output = mock_stdout.getvalue()
        assert "Population rate" in output
        assert "Generations must be positive" in output

    def test_build_config_defaults(self):
        """Without flags the default config is used."""
        config = build_config(create_parser().parse_args([]))
        assert config == UniverseConfig()

    def test_build_config_board_size(self):
        """A board size alone gets a half-size viewport."""
        config = build_config(create_parser().parse_args(["--board-size", "64", "--cache-size", "500"]))
        assert config.board_size == 64
        assert config.viewport_size == 32
        assert config.cache_max_size == 500

    def test_build_config_file_with_override(self, tmp_path):
        """Command-line flags override the config file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"board_size": 64, "viewport_size": 32}))

        config = build_config(create_parser().parse_args(["--config", str(path), "--viewport", "48"]))
        assert config.board_size == 64
        assert config.viewport_size == 48


class TestOutput:
    """Test cases for result formatting."""

    def test_format_finish_reason(self):
        """Each reason has a readable description."""
        assert "Extinction" in format_finish_reason("extinction", {})
        assert "length 2" in format_finish_reason("cycle", {"cycle_length": 2, "cycle_start_generation": 0})
        assert "limit" in format_finish_reason("max_generations", {"generation": 10})
        assert "Unknown" in format_finish_reason("other", {})

    def test_print_results(self):
        """Verbose results include cache statistics."""
        _, reason, stats = CLIQuadLife().run_simulation(UniverseConfig(), 2, pattern="Block", verify=True)
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            print_results(2, reason, stats, verbose=True)
        output = mock_stdout.getvalue()
        assert "Simulation completed after 2 generations" in output
        assert "Cache entries" in output
        assert "Verification passed" in output


class TestMain:
    """Test cases for the entry point."""

    def test_list_patterns(self):
        """--list-patterns exits successfully."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert main(["--list-patterns"]) == 0
        assert "Glider" in mock_stdout.getvalue()

    def test_run(self):
        """A normal run exits successfully."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert main(["--pattern", "Glider", "--generations", "8", "--verify"]) == 0
        output = mock_stdout.getvalue()
        assert "Simulation completed after 8 generations" in output
        assert "Verification passed" in output

    def test_invalid_arguments(self):
        """Invalid arguments exit with an error."""
        with patch("sys.stdout", new_callable=StringIO):
            assert main(["--population", "2.0"]) == 1

    def test_invalid_board(self):
        """A board size that is not a power of two is rejected."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert main(["--board-size", "24"]) == 1
        assert "Board size" in mock_stdout.getvalue()

    def test_missing_config(self, tmp_path):
        """A missing config file is reported."""
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            assert main(["--config", str(tmp_path / "none.json")]) == 1
        assert "Error" in mock_stdout.getvalue()
