"""Soft constraints and hard objectives over a constraint context."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..core.constants import DEFAULT_SOFT_GROUP, CheckResult, Sense, VarType
from ..core.expr import Operand, as_expr
from ..core.models import Model, Objective, SoftConstraint
from ..utils.logger import get_logger
from .context import ConstraintContext

LOGGER = get_logger(__name__)


class WeightedObjectiveManager:
    """Collect preferences and run optimizing checks on ``context``.

    Hard objectives are optimized first, in registration order. Soft
    constraints are then grouped by name; each group, in the order its first
    member was registered, minimizes the total weight of its violated
    members. Soft constraints can never make a check unsatisfiable. Among
    assignments with equal penalty the engine picks one arbitrarily.
    """

    def __init__(self, context: ConstraintContext) -> None:
        self.context = context
        self.soft: List[SoftConstraint] = []
        self.objectives: List[Objective] = []

    def add_soft(self, condition: Operand, weight: int = 1, group: Optional[str] = None) -> SoftConstraint:
        expr = as_expr(condition)
        if expr.sort != VarType.BOOL:
            raise TypeError(f"Soft constraints must be boolean, got {expr!r}")
        if isinstance(weight, bool) or int(weight) != weight or weight <= 0:
            raise ValueError(f"Soft constraint weight must be a positive integer, got {weight!r}")
        constraint = SoftConstraint(expr, int(weight), group or DEFAULT_SOFT_GROUP)
        self.soft.append(constraint)
        return constraint

    def minimize(self, expression: Operand) -> Objective:
        return self._objective(expression, Sense.MINIMIZE)

    def maximize(self, expression: Operand) -> Objective:
        return self._objective(expression, Sense.MAXIMIZE)

    def _objective(self, expression: Operand, sense: Sense) -> Objective:
        objective = Objective(as_expr(expression), sense)
        self.objectives.append(objective)
        return objective

    def clear(self) -> None:
        self.soft.clear()
        self.objectives.clear()

    @property
    def groups(self) -> List[str]:
        seen: List[str] = []
        for constraint in self.soft:
            if constraint.group not in seen:
                seen.append(constraint.group)
        return seen

    def check(self, timeout: Optional[float] = None) -> CheckResult:
        """Optimizing check; read the optimum with ``context.model()``."""

        LOGGER.debug(
            "optimizing %d objective(s) and %d soft constraint(s) in %d group(s)",
            len(self.objectives),
            len(self.soft),
            len(self.groups),
        )
        return self.context.optimize(self.soft, self.objectives, timeout)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def penalty(self, model: Model, group: Optional[str] = None) -> int:
        """Total weight of soft constraints ``model`` violates."""

        return sum(
            constraint.weight
            for constraint in self.soft
            if (group is None or constraint.group == group) and not model.eval(constraint.condition)
        )

    def penalties(self, model: Model) -> Dict[str, int]:
        return {group: self.penalty(model, group) for group in self.groups}

    def objective_values(self, model: Model) -> List[int]:
        return [int(model.eval(objective.expression)) for objective in self.objectives]
