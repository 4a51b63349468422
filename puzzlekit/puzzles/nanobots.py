"""Find the point in range of the most nanobots, closest to the origin."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.expr import Abs, If, Sum
from ..core.models import Nanobot
from ..engine.context import ConstraintContext
from ..engine.objectives import WeightedObjectiveManager
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass
class NanobotResult:
    status: CheckResult
    point: Optional[Tuple[int, int, int]] = None
    in_range: int = 0

    @property
    def distance(self) -> Optional[int]:
        if self.point is None:
            return None
        return sum(abs(axis) for axis in self.point)


def solve_nanobots(
    bots: Sequence[Nanobot],
    config: Optional[SolverConfig] = None,
    context: Optional[ConstraintContext] = None,
) -> NanobotResult:
    """Maximize the bots in range first, then minimize the Manhattan distance to the origin."""

    context = context or ConstraintContext(config)
    with context.scope():
        # Any optimum lies inside the bots' bounding box or at the origin.
        tx, ty, tz = (
            context.int_var(
                name,
                min([0] + [getattr(bot, axis) - bot.r for bot in bots]),
                max([0] + [getattr(bot, axis) + bot.r for bot in bots]),
            )
            for name, axis in (("tx", "x"), ("ty", "y"), ("tz", "z"))
        )
        covered = [
            Abs(tx - bot.x) + Abs(ty - bot.y) + Abs(tz - bot.z) <= bot.r
            for bot in bots
        ]
        objectives = WeightedObjectiveManager(context)
        objectives.maximize(Sum(If(condition, 1, 0) for condition in covered))
        objectives.minimize(Abs(tx) + Abs(ty) + Abs(tz))
        status = objectives.check()
        if status != CheckResult.SAT:
            return NanobotResult(status=status)
        model = context.model()

    point = (int(model[tx]), int(model[ty]), int(model[tz]))
    in_range = sum(1 for bot in bots if bot.distance_to(point) <= bot.r)
    LOGGER.info("nanobots: %s in range of %d/%d bot(s)", point, in_range, len(bots))
    return NanobotResult(status=status, point=point, in_range=in_range)
