import unittest

from puzzlekit.core.config import SolverConfig
from puzzlekit.core.constants import CheckResult, Engine
from puzzlekit.core.exceptions import InvalidMoveError
from puzzlekit.core.models import Nanobot, NonogramPuzzle, Person, Restaurant, RestaurantPuzzle
from puzzlekit.engine.context import ConstraintContext
from puzzlekit.puzzles import arithmetic, optimization
from puzzlekit.puzzles.nanobots import solve_nanobots
from puzzlekit.puzzles.nonogram import is_unique, solve_nonogram
from puzzlekit.puzzles.restaurant import solve_restaurant
from puzzlekit.puzzles.shidoku import GameState, ShidokuBoard

SAMPLE_BOTS = [
    Nanobot(10, 12, 12, 2),
    Nanobot(12, 14, 12, 2),
    Nanobot(16, 12, 12, 4),
    Nanobot(14, 14, 14, 6),
    Nanobot(50, 50, 50, 200),
    Nanobot(10, 10, 10, 5),
]

SHIDOKU_SOLUTION = [[2, 1, 3, 4], [4, 3, 1, 2], [3, 4, 2, 1], [1, 2, 4, 3]]


def dinner(budget: int) -> RestaurantPuzzle:
    return RestaurantPuzzle(
        budget=budget,
        restaurants=[
            Restaurant("Grill", 30, False),
            Restaurant("Greens", 20, True),
            Restaurant("Diner", 10, False),
        ],
        people=[
            Person("Ann", True, [9, 5, 3]),
            Person("Bob", False, [8, 6, 7]),
            Person("Cat", False, [10, 4, 9]),
        ],
    )


class PuzzleCases:
    engine = Engine.Z3

    def config(self) -> SolverConfig:
        return SolverConfig(engine=self.engine)

    # ------------------------------------------------------------------
    # Nonograms
    # ------------------------------------------------------------------
    def test_plus_shaped_nonogram_is_unique(self) -> None:
        puzzle = NonogramPuzzle(3, 3, [[1], [3], [1]], [[1], [3], [1]])
        result = solve_nonogram(puzzle, max_solutions=2, config=self.config())
        self.assertEqual(result.status, CheckResult.SAT)
        self.assertEqual(
            result.grid,
            [[False, True, False], [True, True, True], [False, True, False]],
        )
        self.assertTrue(result.unique)

    def test_diagonal_nonogram_has_two_solutions(self) -> None:
        puzzle = NonogramPuzzle(2, 2, [[1], [1]], [[1], [1]])
        result = solve_nonogram(puzzle, max_solutions=5, config=self.config())
        self.assertEqual(len(result.solutions), 2)
        self.assertFalse(result.unique)
        self.assertFalse(is_unique(puzzle, self.config()))

    def test_contradictory_nonogram_is_unsat(self) -> None:
        puzzle = NonogramPuzzle(1, 2, [[2]], [[0], [0]])
        result = solve_nonogram(puzzle, config=self.config())
        self.assertEqual(result.status, CheckResult.UNSAT)
        self.assertIsNone(result.grid)

    # ------------------------------------------------------------------
    # Restaurant, nanobots
    # ------------------------------------------------------------------
    def test_restaurant_prefers_happiest_affordable_choice(self) -> None:
        choice = solve_restaurant(dinner(100), config=self.config())
        assert choice.restaurant is not None
        self.assertEqual(choice.restaurant.name, "Grill")
        self.assertEqual(choice.total_happiness, 18)
        self.assertEqual(choice.happiness["Ann"], 0)

        cheaper = solve_restaurant(dinner(80), config=self.config())
        assert cheaper.restaurant is not None
        self.assertEqual(cheaper.restaurant.name, "Diner")
        self.assertEqual(cheaper.total_happiness, 16)

    def test_restaurant_over_budget_everywhere(self) -> None:
        choice = solve_restaurant(dinner(20), config=self.config())
        self.assertEqual(choice.status, CheckResult.UNSAT)
        self.assertIsNone(choice.restaurant)

    def test_nanobot_sample(self) -> None:
        result = solve_nanobots(SAMPLE_BOTS, config=self.config())
        self.assertEqual(result.point, (12, 12, 12))
        self.assertEqual(result.in_range, 5)
        self.assertEqual(result.distance, 36)

    # ------------------------------------------------------------------
    # Shidoku
    # ------------------------------------------------------------------
    def test_shidoku_solution_and_conflict(self) -> None:
        board = ShidokuBoard(config=self.config())
        self.assertEqual(board.solution(), SHIDOKU_SOLUTION)
        self.assertEqual(board.place(0, 0, 3), GameState.ERROR)
        self.assertIn("(0,0)=3", board.conflict)
        with self.assertRaises(InvalidMoveError):
            board.place(0, 1, 1)
        self.assertEqual(board.undo(), (0, 0, 3))
        self.assertEqual(board.state, GameState.PLAYING)
        self.assertEqual(board.conflict, ())

    def test_shidoku_fills_to_solved_and_closes(self) -> None:
        board = ShidokuBoard(config=self.config())
        depth = board.context.depth
        for r, row in enumerate(SHIDOKU_SOLUTION):
            for c, value in enumerate(row):
                if not board.fixed[r][c]:
                    board.place(r, c, value)
        self.assertEqual(board.state, GameState.SOLVED)
        self.assertEqual(board.context.depth, depth + 12)
        board.close()
        self.assertEqual(board.context.depth, 0)

    def test_shidoku_rejects_bad_moves(self) -> None:
        board = ShidokuBoard(config=self.config())
        with self.assertRaises(InvalidMoveError):
            board.place(0, 2, 3)
        with self.assertRaises(InvalidMoveError):
            board.place(4, 0, 1)
        with self.assertRaises(InvalidMoveError):
            board.place(0, 0, 5)
        self.assertIsNone(board.undo())

    def test_shidoku_bad_given_leaves_shared_context_untouched(self) -> None:
        context = ConstraintContext(self.config())
        context.push()
        with self.assertRaises(InvalidMoveError):
            ShidokuBoard(givens=[(0, 0, 1), (0, 0, 2)], context=context)
        self.assertEqual(context.depth, 1)
        with self.assertRaises(InvalidMoveError):
            ShidokuBoard(givens=[(0, 0, 7)], context=context)
        self.assertEqual(context.depth, 1)

    def test_shidoku_boards_of_different_sizes_share_a_context(self) -> None:
        context = ConstraintContext(self.config())
        small = ShidokuBoard(context=context)
        self.assertEqual(small.solution(), SHIDOKU_SOLUTION)
        small.close()
        large = ShidokuBoard(givens=(), box_size=3, context=context)
        try:
            grid = large.solution()
        finally:
            large.close()
        assert grid is not None
        for row in grid:
            self.assertEqual(sorted(row), list(range(1, 10)))
        self.assertEqual(context.depth, 0)

    # ------------------------------------------------------------------
    # Arithmetic and optimization
    # ------------------------------------------------------------------
    def test_small_integer_systems(self) -> None:
        config = self.config()
        self.assertEqual(arithmetic.linear_system(config), {"x": 6, "y": 4})
        values = arithmetic.bounded_sum(config)
        self.assertEqual(values["x"] + values["y"], 25)
        self.assertTrue(values["x"] > 10 and values["y"] > 10)
        receipt = arithmetic.bakery_receipt(config)
        self.assertEqual(receipt["bagels"], receipt["muffins"] + 10)
        self.assertEqual(receipt["croissants"], 10 - 2 * receipt["muffins"])
        self.assertEqual(sorted(arithmetic.pairs_summing_to(config=config)), [(0, 2), (1, 1), (2, 0)])

    def test_scope_demo(self) -> None:
        (first, first_result, first_x), (second, second_result, second_x) = arithmetic.scope_demo(self.config())
        self.assertEqual((first, first_result), ("x > 5", CheckResult.SAT))
        self.assertIn(first_x, range(6, 10))
        self.assertEqual((second, second_result, second_x), ("x == 2", CheckResult.SAT, 2))

    def test_magic_squares(self) -> None:
        squares = arithmetic.magic_squares(3, self.config())
        self.assertEqual(len(squares), 8)
        for square in squares:
            self.assertEqual(square[1][1], 5)
            self.assertTrue(all(sum(row) == 15 for row in square))

    def test_optimization_exercises(self) -> None:
        config = self.config()
        self.assertEqual(optimization.minimize_pair(config)["total"], 6)
        self.assertEqual(
            optimization.production_plan(config),
            {"chairs": 11, "tables": 7, "profit": 570},
        )
        result = optimization.knapsack(config=config)
        self.assertEqual(sorted(result.taken), ["B", "C", "D", "E"])
        self.assertEqual((result.value, result.weight), (15, 8))
        presses = [optimization.min_button_presses(m, config) for m in optimization.SAMPLE_MACHINES]
        self.assertEqual(presses, [10, 12, 11])

    def test_meeting_scenarios(self) -> None:
        scenarios = optimization.MEETING_SCENARIOS
        hour, penalty = optimization.schedule_meeting(scenarios["equal"], config=self.config())
        self.assertIn(hour, (9, 10))
        self.assertEqual(penalty, 10)
        self.assertEqual(optimization.schedule_meeting(scenarios["boss"], config=self.config()), (10, 10))
        self.assertEqual(optimization.schedule_meeting(scenarios["crowd"], config=self.config()), (10, 20))


class Z3PuzzleTests(PuzzleCases, unittest.TestCase):
    engine = Engine.Z3

    def test_rock_trajectory(self) -> None:
        self.assertEqual(arithmetic.rock_trajectory(config=self.config()), ((24, 13, 10), (-3, 1, 2)))


class CpSatPuzzleTests(PuzzleCases, unittest.TestCase):
    engine = Engine.CPSAT


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
