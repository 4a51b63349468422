"""Pick the restaurant that makes the group happiest within budget."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.expr import If, Implies, Sum, as_expr
from ..core.models import Restaurant, RestaurantPuzzle
from ..engine.context import ConstraintContext
from ..engine.objectives import WeightedObjectiveManager
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass
class RestaurantChoice:
    status: CheckResult
    index: Optional[int] = None
    restaurant: Optional[Restaurant] = None
    total_happiness: int = 0
    happiness: Dict[str, int] = field(default_factory=dict)


def group_happiness(puzzle: RestaurantPuzzle, index: int) -> int:
    restaurant = puzzle.restaurants[index]
    return sum(person.happiness_at(index, restaurant) for person in puzzle.people)


def solve_restaurant(
    puzzle: RestaurantPuzzle,
    config: Optional[SolverConfig] = None,
    context: Optional[ConstraintContext] = None,
) -> RestaurantChoice:
    context = context or ConstraintContext(config)
    headcount = len(puzzle.people)
    with context.scope():
        chosen = [context.bool_var(f"restaurant_{i}") for i in range(len(puzzle.restaurants))]
        context.add(Sum(chosen) == 1)
        for i, restaurant in enumerate(puzzle.restaurants):
            context.add(Implies(chosen[i], as_expr(restaurant.cost * headcount) <= puzzle.budget))
        total = Sum(If(chosen[i], group_happiness(puzzle, i), 0) for i in range(len(chosen)))

        objectives = WeightedObjectiveManager(context)
        objectives.maximize(total)
        status = objectives.check()
        if status != CheckResult.SAT:
            LOGGER.warning("restaurant: no choice within budget %d (%s)", puzzle.budget, status.value)
            return RestaurantChoice(status=status)
        model = context.model()

    index = next(i for i, var in enumerate(chosen) if model[var])
    restaurant = puzzle.restaurants[index]
    happiness = {person.name: person.happiness_at(index, restaurant) for person in puzzle.people}
    LOGGER.info("restaurant: %s selected, happiness %d", restaurant.name, sum(happiness.values()))
    return RestaurantChoice(
        status=status,
        index=index,
        restaurant=restaurant,
        total_happiness=int(model.eval(total)),
        happiness=happiness,
    )
