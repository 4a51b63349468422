import unittest

from puzzlekit.core.config import SolverConfig
from puzzlekit.core.constants import CheckResult, Engine
from puzzlekit.core.exceptions import SearchStateError
from puzzlekit.engine.context import ConstraintContext
from puzzlekit.engine.search import BacktrackingSearch
from puzzlekit.puzzles.coloring import Graph, color_graph, cycle_graph, petersen_graph


class SearchCases:
    engine = Engine.Z3

    def config(self) -> SolverConfig:
        return SolverConfig(engine=self.engine)

    def make_context(self) -> ConstraintContext:
        return ConstraintContext(self.config())

    def test_petersen_graph_is_three_colorable(self) -> None:
        graph = petersen_graph()
        result = color_graph(graph, 3, config=self.config())
        self.assertEqual(result.status, CheckResult.SAT)
        self.assertEqual(len(result.colors), 10)
        self.assertTrue(result.is_proper(graph))
        self.assertTrue(set(result.colors.values()) <= {1, 2, 3})

    def test_petersen_graph_is_not_two_colorable(self) -> None:
        result = color_graph(petersen_graph(), 2, config=self.config())
        self.assertEqual(result.status, CheckResult.UNSAT)
        self.assertEqual(result.colors, {})
        assert result.search is not None
        self.assertEqual(result.search.failed_at, 0)

    def test_odd_cycle_needs_three_colors(self) -> None:
        self.assertEqual(color_graph(cycle_graph(5), 2, config=self.config()).status, CheckResult.UNSAT)
        self.assertTrue(color_graph(cycle_graph(4), 2, config=self.config()).is_proper(cycle_graph(4)))

    def test_coloring_leaves_context_depth_untouched(self) -> None:
        context = self.make_context()
        context.push()
        color_graph(petersen_graph(), 3, context=context)
        self.assertEqual(context.depth, 1)

    def test_context_reused_across_color_counts(self) -> None:
        context = self.make_context()
        graph = petersen_graph()
        self.assertEqual(color_graph(graph, 3, context=context).status, CheckResult.SAT)
        self.assertEqual(color_graph(graph, 2, context=context).status, CheckResult.UNSAT)
        again = color_graph(graph, 4, context=context)
        self.assertTrue(again.is_proper(graph))
        self.assertTrue(set(again.colors.values()) <= {1, 2, 3, 4})
        self.assertEqual(context.depth, 0)

    def test_successful_run_keeps_committed_scopes_until_unwind(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 5)
        y = context.int_var("y", 0, 5)
        context.add(x + y == 5)
        context.add(x > y)
        search = BacktrackingSearch(context, [x, y], range(6))
        result = search.run()
        self.assertTrue(result.solved)
        self.assertEqual(result.assignment, {"x": 3, "y": 2})
        assert result.model is not None
        self.assertEqual(result.model[y], 2)
        self.assertEqual(context.depth, 2)
        search.unwind()
        self.assertEqual(context.depth, 0)
        with self.assertRaises(SearchStateError):
            search.run()

    def test_per_variable_domains(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 9)
        y = context.int_var("y", 0, 9)
        context.add(x != y)
        search = BacktrackingSearch(context, [x, y], {"x": [7, 8], "y": [7, 1]})
        result = search.run()
        self.assertEqual(result.assignment, {"x": 7, "y": 1})
        search.unwind()
        with self.assertRaises(ValueError):
            BacktrackingSearch(context, [x, y], {"x": [1]})

    def test_empty_variable_list_checks_the_base_formula(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 1)
        context.add(x > 1)
        result = BacktrackingSearch(context, [], range(2)).run()
        self.assertEqual(result.status, CheckResult.UNSAT)
        self.assertEqual(result.failed_at, 0)
        self.assertEqual(result.checks, 1)

    def test_depth_mismatch_is_detected(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 1)
        search = BacktrackingSearch(context, [x], [0, 1])
        search.base_depth = context.depth
        context.push()
        with self.assertRaises(SearchStateError):
            search._assert_depth()

    def test_graph_rejects_unknown_nodes(self) -> None:
        with self.assertRaises(ValueError):
            Graph(num_nodes=2, edges=[(0, 2)])


class Z3SearchTests(SearchCases, unittest.TestCase):
    engine = Engine.Z3


class CpSatSearchTests(SearchCases, unittest.TestCase):
    engine = Engine.CPSAT


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
