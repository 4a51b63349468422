import unittest

from puzzlekit.core.config import SolverConfig
from puzzlekit.core.constants import CheckResult, Engine, VarType
from puzzlekit.core.exceptions import (
    DuplicateTrackerError,
    EncodingError,
    NoCoreError,
    NoModelError,
    StackUnderflowError,
    VariableConflictError,
)
from puzzlekit.core.expr import Variable
from puzzlekit.engine.context import ConstraintContext


class ContextCases:
    engine = Engine.Z3

    def make_context(self) -> ConstraintContext:
        return ConstraintContext(SolverConfig(engine=self.engine))

    def test_redeclaration_keys_on_name_and_sort(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 5)
        self.assertIs(context.int_var("x", 0, 5), x)
        with self.assertRaises(VariableConflictError):
            context.bool_var("x")
        with context.scope():
            wider = context.int_var("x", 0, 6)
            self.assertEqual((wider.lo, wider.hi), (0, 6))
            context.add(wider == 6)
            self.assertEqual(context.check(), CheckResult.UNSAT)
        context.add(x == 5)
        self.assertEqual(context.check(), CheckResult.SAT)
        self.assertEqual(context.model()[x], 5)

    def test_bounds_can_change_after_their_scope_is_popped(self) -> None:
        context = self.make_context()
        with context.scope():
            context.int_var("x", 1, 3)
        x = context.int_var("x", 5, 7)
        context.add(x < 6)
        self.assertEqual(context.check(), CheckResult.SAT)
        self.assertEqual(context.model()[x], 5)

    def test_tracker_prefix_is_reserved(self) -> None:
        context = self.make_context()
        with self.assertRaises(ValueError):
            context.int_var("track::x")
        self.assertEqual(context.variables, {})

    def test_add_rejects_non_boolean_and_undeclared(self) -> None:
        context = self.make_context()
        x = context.int_var("x")
        with self.assertRaises(TypeError):
            context.add(x + 1)
        with self.assertRaises(EncodingError):
            context.add(Variable("ghost") > 0)
        self.assertEqual(context.assertions, [])

    def test_popped_assertions_are_retracted(self) -> None:
        context = self.make_context()
        x = context.int_var("x")
        context.add(x < 10)
        context.push()
        context.add(x == 1)
        context.add(x == 2)
        self.assertEqual(context.check(), CheckResult.UNSAT)
        context.pop()
        self.assertEqual(context.depth, 0)
        self.assertEqual(len(context.assertions), 1)
        self.assertEqual(context.check(), CheckResult.SAT)
        self.assertLess(context.model()[x], 10)

    def test_pop_beyond_depth_fails_without_side_effects(self) -> None:
        context = self.make_context()
        context.push()
        context.push()
        with self.assertRaises(StackUnderflowError):
            context.pop(3)
        self.assertEqual(context.depth, 2)
        with self.assertRaises(ValueError):
            context.pop(-1)
        context.pop(2)
        self.assertEqual(context.depth, 0)
        context.pop(0)
        self.assertEqual(context.depth, 0)

    def test_scope_context_manager_restores_depth(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 3)
        with self.assertRaises(RuntimeError):
            with context.scope():
                context.add(x == 2)
                context.push()
                raise RuntimeError("boom")
        self.assertEqual(context.depth, 0)
        self.assertEqual(len(context.assertions), 2)

    def test_model_requires_fresh_satisfiable_check(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 3)
        with self.assertRaises(NoModelError):
            context.model()
        self.assertEqual(context.check(), CheckResult.SAT)
        self.assertIn(context.model()[x], range(4))
        context.add(x > 1)
        with self.assertRaises(NoModelError):
            context.model()
        context.add(x > 3)
        self.assertEqual(context.check(), CheckResult.UNSAT)
        with self.assertRaises(NoModelError):
            context.model()

    def test_core_names_conflicting_trackers(self) -> None:
        context = self.make_context()
        x = context.int_var("x")
        y = context.int_var("y")
        context.add_tracked(x > 5, "big")
        context.add_tracked(x < 3, "small")
        context.add_tracked(y == 1, "other")
        self.assertEqual(context.check(), CheckResult.UNSAT)
        core = context.unsat_core()
        self.assertIn("big", core)
        self.assertIn("small", core)
        self.assertTrue(set(core) <= {"big", "small", "other"})

    def test_core_requires_fresh_unsatisfiable_check(self) -> None:
        context = self.make_context()
        x = context.int_var("x")
        context.add_tracked(x > 5, "big")
        with self.assertRaises(NoCoreError):
            context.unsat_core()
        self.assertEqual(context.check(), CheckResult.SAT)
        with self.assertRaises(NoCoreError):
            context.unsat_core()

    def test_tracker_names_are_unique_while_live(self) -> None:
        context = self.make_context()
        x = context.int_var("x")
        context.push()
        context.add_tracked(x > 0, "t")
        with self.assertRaises(DuplicateTrackerError):
            context.add_tracked(x > 1, "t")
        context.pop()
        context.add_tracked(x > 1, "t")
        self.assertEqual(context.live_trackers, {"t"})

    def test_bounds_follow_their_scope(self) -> None:
        context = self.make_context()
        with context.scope():
            x = context.int_var("x", 0, 3)
            context.add(x == 5)
            self.assertEqual(context.check(), CheckResult.UNSAT)
        context.add(x == 5)
        self.assertEqual(context.check(), CheckResult.SAT)
        self.assertEqual(context.model()[x], 5)

        fresh = self.make_context()
        with fresh.scope():
            fresh.int_var("y", 0, 3)
        y = fresh.int_var("y", 0, 3)
        fresh.add(y == 5)
        self.assertEqual(fresh.check(), CheckResult.UNSAT)

    def test_boolean_variables_and_counters(self) -> None:
        context = self.make_context()
        a = context.bool_var("a")
        b = context.bool_var("b")
        self.assertEqual(a.sort, VarType.BOOL)
        context.add(a != b)
        context.add(a)
        self.assertEqual(context.check(), CheckResult.SAT)
        model = context.model()
        self.assertTrue(model[a])
        self.assertFalse(model[b])
        self.assertEqual(model.as_dict(), {"a": True, "b": False})
        self.assertEqual(context.num_checks, 1)
        self.assertEqual(context.last_result, CheckResult.SAT)


class Z3ContextTests(ContextCases, unittest.TestCase):
    engine = Engine.Z3


class CpSatContextTests(ContextCases, unittest.TestCase):
    engine = Engine.CPSAT


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
