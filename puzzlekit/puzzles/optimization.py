"""Optimization exercises: production, knapsack, button presses, meetings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.exceptions import NoModelError
from ..core.expr import If, Sum
from ..core.models import Model
from ..engine.context import ConstraintContext
from ..engine.objectives import WeightedObjectiveManager
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


def _optimum(objectives: WeightedObjectiveManager) -> Model:
    result = objectives.check()
    if result != CheckResult.SAT:
        raise NoModelError(f"Expected an optimum, got {result.value}")
    return objectives.context.model()


def minimize_pair(config: Optional[SolverConfig] = None) -> Dict[str, int]:
    """Minimize x + y subject to x > 0, y > 0 and 2x + y >= 10."""

    context = ConstraintContext(config)
    x, y = context.int_var("x"), context.int_var("y")
    context.add(x > 0)
    context.add(y > 0)
    context.add(2 * x + y >= 10)
    objectives = WeightedObjectiveManager(context)
    objectives.minimize(x + y)
    model = _optimum(objectives)
    return {"x": model[x], "y": model[y], "total": model[x] + model[y]}


def production_plan(config: Optional[SolverConfig] = None) -> Dict[str, int]:
    """Chairs ($20) and tables ($50) under 40 carpentry and 40 painting hours."""

    context = ConstraintContext(config)
    chairs = context.int_var("chairs", lo=0)
    tables = context.int_var("tables", lo=0)
    context.add(chairs * 1 + tables * 4 <= 40)
    context.add(chairs * 3 + tables * 1 <= 40)
    profit = chairs * 20 + tables * 50
    objectives = WeightedObjectiveManager(context)
    objectives.maximize(profit)
    model = _optimum(objectives)
    return {"chairs": model[chairs], "tables": model[tables], "profit": int(model.eval(profit))}


@dataclass(frozen=True)
class Item:
    name: str
    value: int
    weight: int


DEFAULT_ITEMS: Tuple[Item, ...] = (
    Item("A", 4, 12),
    Item("B", 2, 2),
    Item("C", 2, 1),
    Item("D", 1, 1),
    Item("E", 10, 4),
)


@dataclass
class KnapsackResult:
    taken: List[str] = field(default_factory=list)
    value: int = 0
    weight: int = 0


def knapsack(
    items: Sequence[Item] = DEFAULT_ITEMS,
    limit: int = 15,
    config: Optional[SolverConfig] = None,
) -> KnapsackResult:
    context = ConstraintContext(config)
    taken = [context.bool_var(item.name) for item in items]
    total_weight = Sum(If(flag, item.weight, 0) for flag, item in zip(taken, items))
    total_value = Sum(If(flag, item.value, 0) for flag, item in zip(taken, items))
    context.add(total_weight <= limit)
    objectives = WeightedObjectiveManager(context)
    objectives.maximize(total_value)
    model = _optimum(objectives)
    return KnapsackResult(
        taken=[item.name for flag, item in zip(taken, items) if model[flag]],
        value=int(model.eval(total_value)),
        weight=int(model.eval(total_weight)),
    )


@dataclass(frozen=True)
class Machine:
    targets: Tuple[int, ...]
    buttons: Tuple[Tuple[int, ...], ...]


SAMPLE_MACHINES: Tuple[Machine, ...] = (
    Machine((3, 5, 4, 7), ((3,), (1, 3), (2,), (2, 3), (0, 2), (0, 1))),
    Machine((7, 5, 12, 7, 2), ((0, 2, 3, 4), (2, 3), (0, 4), (0, 1, 2), (1, 2, 3, 4))),
    Machine((10, 11, 11, 5, 10, 5), ((0, 1, 2, 3, 4), (0, 3, 4), (0, 1, 2, 4, 5), (1, 2))),
)


def min_button_presses(machine: Machine, config: Optional[SolverConfig] = None) -> int:
    """Fewest presses so that every counter reaches its target.

    Each button adds one to every counter it lists.
    """

    context = ConstraintContext(config)
    presses = [context.int_var(f"p_{i}", lo=0) for i in range(len(machine.buttons))]
    for counter, target in enumerate(machine.targets):
        context.add(
            Sum(presses[b] for b, affects in enumerate(machine.buttons) if counter in affects) == target
        )
    objectives = WeightedObjectiveManager(context)
    total = Sum(presses)
    objectives.minimize(total)
    model = _optimum(objectives)
    LOGGER.debug("machine %s: presses %s", machine.targets, [model[p] for p in presses])
    return int(model.eval(total))


def total_button_presses(
    machines: Sequence[Machine] = SAMPLE_MACHINES,
    config: Optional[SolverConfig] = None,
) -> int:
    return sum(min_button_presses(machine, config) for machine in machines)


@dataclass(frozen=True)
class Preference:
    who: str
    time: int
    weight: int


MEETING_SCENARIOS: Dict[str, Tuple[Preference, ...]] = {
    "equal": (Preference("Alice", 9, 10), Preference("Bob", 10, 10)),
    "boss": (Preference("Alice", 9, 10), Preference("Boss", 10, 50)),
    "crowd": (
        Preference("Alice", 9, 10),
        Preference("Bob", 10, 10),
        Preference("Charlie", 11, 10),
        Preference("Boss", 10, 50),
    ),
}


def schedule_meeting(
    preferences: Sequence[Preference],
    window: Tuple[int, int] = (9, 11),
    config: Optional[SolverConfig] = None,
) -> Tuple[int, int]:
    """Meeting hour inside ``window`` that violates the least preference weight.

    Returns the hour and the violated weight.
    """

    context = ConstraintContext(config)
    time = context.int_var("meeting_time", *window)
    objectives = WeightedObjectiveManager(context)
    for preference in preferences:
        objectives.add_soft(time == preference.time, preference.weight, group="preferences")
    model = _optimum(objectives)
    hour = int(model[time])
    penalty = objectives.penalty(model)
    LOGGER.info("meeting at %d:00, violated weight %d", hour, penalty)
    return hour, penalty
