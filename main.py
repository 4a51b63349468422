"""CLI entrypoint for the puzzle solvers."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from puzzlekit.core.config import SolverConfig
from puzzlekit.core.constants import CheckResult, Engine
from puzzlekit.core.exceptions import InputError
from puzzlekit.io.loaders import load_graph, load_nanobots, load_nonogram, load_restaurant
from puzzlekit.puzzles import arithmetic, optimization
from puzzlekit.puzzles.coloring import Graph, color_graph, cycle_graph, petersen_graph
from puzzlekit.puzzles.nanobots import solve_nanobots
from puzzlekit.puzzles.nonogram import solve_nonogram
from puzzlekit.puzzles.restaurant import solve_restaurant
from puzzlekit.puzzles.shidoku import ShidokuBoard
from puzzlekit.utils.logger import configure_logging
from puzzlekit.utils.pretty import (
    format_coloring,
    format_nonogram,
    print_restaurant,
    print_section,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve combinatorial puzzles with z3 or OR-Tools CP-SAT",
    )
    parser.add_argument(
        "--engine",
        type=str,
        choices=[e.value for e in Engine],
        default=None,
        help="Solving engine (default: PUZZLEKIT_ENGINE or z3)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Per-check timeout in seconds")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    nonogram = sub.add_parser("nonogram", help="Solve a nonogram from JSON")
    nonogram.add_argument("input", nargs="?", type=Path, help="Puzzle file (stdin when omitted)")
    nonogram.add_argument(
        "--max-solutions",
        type=int,
        default=1,
        help="Stop after this many distinct solutions",
    )

    restaurant = sub.add_parser("restaurant", help="Pick the happiest affordable restaurant")
    restaurant.add_argument("input", nargs="?", type=Path, help="Puzzle file (stdin when omitted)")

    nanobots = sub.add_parser("nanobots", help="Find the point covered by the most nanobots")
    nanobots.add_argument("input", nargs="?", type=Path, help="Bot list file (stdin when omitted)")

    coloring = sub.add_parser("coloring", help="Color a graph by backtracking search")
    coloring.add_argument("--colors", type=int, default=3, help="Number of colors")
    coloring.add_argument(
        "--graph",
        type=str,
        default="petersen",
        help="'petersen', 'cycle:N', or a JSON file with num_nodes and edges",
    )

    sub.add_parser("classics", help="Run the worked arithmetic and optimization examples")
    return parser


def _config(args: argparse.Namespace) -> SolverConfig:
    overrides: Dict[str, Any] = {}
    if args.engine:
        overrides["engine"] = Engine(args.engine)
    if args.timeout is not None:
        overrides["timeout_seconds"] = args.timeout
    return SolverConfig.from_env(**overrides)


def _graph(choice: str) -> Graph:
    if choice == "petersen":
        return petersen_graph()
    if choice.startswith("cycle:"):
        size = choice.split(":", 1)[1]
        if not size.isdigit():
            raise InputError(f"cycle size must be a non-negative integer, got {size!r}")
        return cycle_graph(int(size))
    return load_graph(choice)


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def run_nonogram(args: argparse.Namespace, config: SolverConfig) -> int:
    if args.max_solutions < 1:
        raise InputError(f"--max-solutions must be at least 1, got {args.max_solutions}")
    puzzle = load_nonogram(args.input)
    result = solve_nonogram(puzzle, max_solutions=args.max_solutions, config=config)
    if args.json:
        _emit({"status": result.status.value, "solutions": result.solutions, "unique": result.unique})
    elif result.solutions:
        for index, grid in enumerate(result.solutions, start=1):
            print_section(f"Solution {index}", format_nonogram(grid))
    else:
        print("Unsolvable." if result.status == CheckResult.UNSAT else "Unknown.")
    return 0 if result.solutions else 1


def run_restaurant(args: argparse.Namespace, config: SolverConfig) -> int:
    choice = solve_restaurant(load_restaurant(args.input), config=config)
    if args.json:
        _emit(
            {
                "status": choice.status.value,
                "index": choice.index,
                "restaurant": choice.restaurant.name if choice.restaurant else None,
                "total_happiness": choice.total_happiness,
                "happiness": choice.happiness,
            }
        )
    else:
        print_restaurant(choice)
    return 0 if choice.restaurant else 1


def run_nanobots(args: argparse.Namespace, config: SolverConfig) -> int:
    result = solve_nanobots(load_nanobots(args.input), config=config)
    if args.json:
        _emit(
            {
                "status": result.status.value,
                "point": list(result.point) if result.point else None,
                "in_range": result.in_range,
                "distance": result.distance,
            }
        )
    elif result.point is None:
        print(result.status.value.upper())
    else:
        print(f"Optimal coordinate: {result.point}")
        print(f"Bots in range: {result.in_range}")
        print(f"Solution: {result.distance}")
    return 0 if result.point else 1


def run_coloring(args: argparse.Namespace, config: SolverConfig) -> int:
    if args.colors < 1:
        raise InputError(f"--colors must be at least 1, got {args.colors}")
    graph = _graph(args.graph)
    result = color_graph(graph, args.colors, config=config)
    if args.json:
        _emit({"status": result.status.value, "colors": {str(k): v for k, v in result.colors.items()}})
    elif result.colors:
        print("Solution found!")
        print(format_coloring(result.colors))
    else:
        print("No solution exists." if result.status == CheckResult.UNSAT else "Search gave up.")
    return 0 if result.colors else 1


def _shidoku_demo(config: SolverConfig) -> Dict[str, Any]:
    board = ShidokuBoard(config=config)
    try:
        solution = board.solution()
        board.place(0, 0, 3)
        conflict = list(board.conflict)
        board.undo()
        return {"solution": solution, "conflict": conflict, "board": board.as_dict()}
    finally:
        board.close()


def run_classics(args: argparse.Namespace, config: SolverConfig) -> int:
    sections: List[Any] = [
        ("System of integer equations", arithmetic.linear_system(config)),
        ("Basic solving", arithmetic.bounded_sum(config)),
        ("Bakery receipt", arithmetic.bakery_receipt(config)),
        ("Pairs with x + y = 2", arithmetic.pairs_summing_to(config=config)),
        (
            "Scopes over x < 10",
            [
                {"scope": label, "result": result.value, "x": value}
                for label, result, value in arithmetic.scope_demo(config)
            ],
        ),
        ("Magic squares", arithmetic.magic_squares(config=config)),
        ("Minimize x + y", optimization.minimize_pair(config)),
        ("Production plan", optimization.production_plan(config)),
        ("Knapsack", optimization.knapsack(config=config).__dict__),
        ("Button presses", optimization.total_button_presses(config=config)),
        (
            "Meeting schedule",
            {
                name: optimization.schedule_meeting(prefs, config=config)[0]
                for name, prefs in optimization.MEETING_SCENARIOS.items()
            },
        ),
    ]
    sections.append(("Shidoku", _shidoku_demo(config)))
    if config.engine == Engine.Z3:
        sections.append(("Rock trajectory", arithmetic.rock_trajectory(config=config)))
    if args.json:
        _emit({title: body for title, body in sections})
    else:
        for title, body in sections:
            print_section(title, json.dumps(body))
    return 0


COMMANDS = {
    "nonogram": run_nonogram,
    "restaurant": run_restaurant,
    "nanobots": run_nanobots,
    "coloring": run_coloring,
    "classics": run_classics,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.WARNING)
    configure_logging(level)
    config = _config(args)
    try:
        return COMMANDS[args.command](args, config)
    except InputError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
