import unittest

from puzzlekit.core.config import SolverConfig
from puzzlekit.core.constants import CheckResult, Engine
from puzzlekit.core.exceptions import NoCoreError
from puzzlekit.engine.context import ConstraintContext
from puzzlekit.engine.objectives import WeightedObjectiveManager


class ObjectiveCases:
    engine = Engine.Z3

    def make_context(self) -> ConstraintContext:
        return ConstraintContext(SolverConfig(engine=self.engine))

    def meeting(self, preferences):
        context = self.make_context()
        time = context.int_var("meeting_time", 9, 11)
        objectives = WeightedObjectiveManager(context)
        for hour, weight in preferences:
            objectives.add_soft(time == hour, weight)
        self.assertEqual(objectives.check(), CheckResult.SAT)
        model = context.model()
        return model[time], objectives.penalty(model)

    def test_heavier_preference_wins(self) -> None:
        self.assertEqual(self.meeting([(9, 10), (10, 50)]), (10, 10))

    def test_equal_weights_accept_either_optimum(self) -> None:
        hour, penalty = self.meeting([(9, 10), (10, 10)])
        self.assertIn(hour, (9, 10))
        self.assertEqual(penalty, 10)

    def test_soft_constraints_never_cause_unsat(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 3)
        objectives = WeightedObjectiveManager(context)
        objectives.add_soft(x > 5, 3)
        objectives.add_soft(x == 2, 1)
        self.assertEqual(objectives.check(), CheckResult.SAT)
        model = context.model()
        self.assertEqual(model[x], 2)
        self.assertEqual(objectives.penalties(model), {"soft": 3})

    def test_hard_objective_comes_before_soft_groups(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 10)
        objectives = WeightedObjectiveManager(context)
        objectives.add_soft(x <= 2, 5, group="small")
        objectives.maximize(x)
        self.assertEqual(objectives.check(), CheckResult.SAT)
        model = context.model()
        self.assertEqual(model[x], 10)
        self.assertEqual(objectives.objective_values(model), [10])
        self.assertEqual(objectives.penalty(model, "small"), 5)

    def test_groups_are_optimized_in_registration_order(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 10)
        objectives = WeightedObjectiveManager(context)
        objectives.add_soft(x >= 8, 1, group="first")
        objectives.add_soft(x <= 2, 5, group="second")
        self.assertEqual(objectives.groups, ["first", "second"])
        self.assertEqual(objectives.check(), CheckResult.SAT)
        model = context.model()
        self.assertGreaterEqual(model[x], 8)
        self.assertEqual(objectives.penalties(model), {"first": 0, "second": 5})

    def test_lexicographic_objectives(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 5)
        y = context.int_var("y", 0, 5)
        context.add(x + y <= 6)
        objectives = WeightedObjectiveManager(context)
        objectives.maximize(x)
        objectives.minimize(y - 10)
        self.assertEqual(objectives.check(), CheckResult.SAT)
        model = context.model()
        self.assertEqual((model[x], model[y]), (5, 0))
        self.assertEqual(objectives.objective_values(model), [5, -10])

    def test_hard_constraints_still_bind(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 3)
        context.add(x > 3)
        objectives = WeightedObjectiveManager(context)
        objectives.minimize(x)
        self.assertEqual(objectives.check(), CheckResult.UNSAT)
        with self.assertRaises(NoCoreError):
            context.unsat_core()

    def test_validation_and_clear(self) -> None:
        context = self.make_context()
        x = context.int_var("x", 0, 3)
        objectives = WeightedObjectiveManager(context)
        with self.assertRaises(TypeError):
            objectives.add_soft(x + 1)
        for weight in (0, -2, 1.5, True):
            with self.assertRaises(ValueError):
                objectives.add_soft(x == 1, weight)
        objectives.add_soft(x == 1)
        objectives.minimize(x)
        objectives.clear()
        self.assertEqual((objectives.soft, objectives.objectives), ([], []))


class Z3ObjectiveTests(ObjectiveCases, unittest.TestCase):
    engine = Engine.Z3


class CpSatObjectiveTests(ObjectiveCases, unittest.TestCase):
    engine = Engine.CPSAT


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
