"""OR-Tools CP-SAT adapter.

CP-SAT has no incremental scope stack. The adapter keeps the mirror of live
scopes held by :class:`SolverBackend` and rebuilds a ``CpModel`` on every
check. Tracked assertions are enforced by assumption literals so that the
conflict set can be read back with
``sufficient_assumptions_for_infeasibility``. Optimizing checks run one
minimize-and-fix stage per objective, then per soft group.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ortools.sat.python import cp_model

from ..core.config import SolverConfig
from ..core.constants import TRACKER_PREFIX, CheckResult, Sense, VarType
from ..core.exceptions import BackendError, EncodingError, NoModelError
from ..core.expr import (
    Absolute,
    Addition,
    Comparison,
    COMPARATORS,
    Complement,
    Conditional,
    Conjunction,
    Constant,
    Disjunction,
    Distinctness,
    Expr,
    Implication,
    Negation,
    Product,
    Value,
    Variable,
)
from ..core.models import Objective, SoftConstraint
from ..utils.logger import get_logger
from .backend import SolverBackend

LOGGER = get_logger(__name__)

# Auxiliary domains are clamped so that CP-SAT never sees an overflowing bound.
_DOMAIN_LIMIT = 2 ** 62

_NEGATED_OPS = {"==": "!=", "!=": "==", "<": ">=", "<=": ">", ">": "<=", ">=": "<"}

Linear = Union[int, cp_model.LinearExpr]


def _clamp(lo: int, hi: int) -> Tuple[int, int]:
    return max(lo, -_DOMAIN_LIMIT), min(hi, _DOMAIN_LIMIT)


class CpSatTranslator:
    """Translate formula trees into constraints on one ``CpModel``.

    Integer-sorted nodes become linear expressions; boolean-sorted nodes become
    positive ``BoolVar`` literals reified with two half-constraints.
    """

    def __init__(
        self,
        model: cp_model.CpModel,
        variables: Dict[str, Variable],
        default_bounds: Tuple[int, int],
    ) -> None:
        self.model = model
        self.default_bounds = default_bounds
        self.refs: Dict[str, cp_model.IntVar] = {}
        self.domains: Dict[str, Tuple[int, int]] = {}
        self._fixed: Dict[bool, cp_model.IntVar] = {}
        for var in variables.values():
            self._declare(var)

    def _declare(self, var: Variable) -> None:
        if var.sort == VarType.BOOL:
            self.refs[var.name] = self.model.new_bool_var(var.name)
            self.domains[var.name] = (0, 1)
            return
        # Declared bounds are asserted in a scope and may be popped, so the
        # native domain only widens the default range.
        lo, hi = self.default_bounds
        if var.lo is not None:
            lo = min(lo, var.lo)
        if var.hi is not None:
            hi = max(hi, var.hi)
        self.refs[var.name] = self.model.new_int_var(lo, hi, var.name)
        self.domains[var.name] = (lo, hi)

    def _ref(self, var: Variable) -> cp_model.IntVar:
        try:
            return self.refs[var.name]
        except KeyError:
            raise EncodingError(f"Variable {var.name!r} is not declared on this context") from None

    # ------------------------------------------------------------------
    # Interval bounds for auxiliary variables
    # ------------------------------------------------------------------
    def bounds(self, expr: Expr) -> Tuple[int, int]:
        if expr.sort == VarType.BOOL:
            return 0, 1
        if isinstance(expr, Variable):
            if expr.name not in self.domains:
                raise EncodingError(f"Variable {expr.name!r} is not declared on this context")
            return self.domains[expr.name]
        if isinstance(expr, Constant):
            return int(expr.value), int(expr.value)
        if isinstance(expr, Addition):
            parts = [self.bounds(term) for term in expr.terms]
            return _clamp(sum(lo for lo, _ in parts), sum(hi for _, hi in parts))
        if isinstance(expr, Product):
            llo, lhi = self.bounds(expr.left)
            rlo, rhi = self.bounds(expr.right)
            corners = [llo * rlo, llo * rhi, lhi * rlo, lhi * rhi]
            return _clamp(min(corners), max(corners))
        if isinstance(expr, Negation):
            lo, hi = self.bounds(expr.arg)
            return -hi, -lo
        if isinstance(expr, Absolute):
            lo, hi = self.bounds(expr.arg)
            top = max(abs(lo), abs(hi))
            bottom = 0 if lo <= 0 <= hi else min(abs(lo), abs(hi))
            return bottom, top
        if isinstance(expr, Conditional):
            tlo, thi = self.bounds(expr.then)
            elo, ehi = self.bounds(expr.orelse)
            return min(tlo, elo), max(thi, ehi)
        raise EncodingError(f"Unsupported formula node {type(expr).__name__}")

    def _materialize(self, value: Linear, lo: int, hi: int) -> Linear:
        if isinstance(value, (int, cp_model.IntVar)):
            return value
        aux = self.model.new_int_var(lo, hi, "")
        self.model.add(aux == value)
        return aux

    # ------------------------------------------------------------------
    # Integer view
    # ------------------------------------------------------------------
    def linear(self, expr: Expr) -> Linear:
        if isinstance(expr, Constant):
            return int(expr.value)
        if isinstance(expr, Complement):
            return 1 - self.linear(expr.arg)
        if expr.sort == VarType.BOOL:
            return self.literal(expr)
        if isinstance(expr, Variable):
            return self._ref(expr)
        if isinstance(expr, Addition):
            return sum(self.linear(term) for term in expr.terms)
        if isinstance(expr, Negation):
            return -self.linear(expr.arg)
        if isinstance(expr, Product):
            left = self.linear(expr.left)
            right = self.linear(expr.right)
            if isinstance(left, int) or isinstance(right, int):
                return left * right
            left = self._materialize(left, *self.bounds(expr.left))
            right = self._materialize(right, *self.bounds(expr.right))
            target = self.model.new_int_var(*self.bounds(expr), "")
            self.model.add_multiplication_equality(target, [left, right])
            return target
        if isinstance(expr, Absolute):
            inner = self.linear(expr.arg)
            if isinstance(inner, int):
                return abs(inner)
            inner = self._materialize(inner, *self.bounds(expr.arg))
            target = self.model.new_int_var(*self.bounds(expr), "")
            self.model.add_abs_equality(target, inner)
            return target
        if isinstance(expr, Conditional):
            cond = self.literal(expr.cond)
            target = self.model.new_int_var(*self.bounds(expr), "")
            self.model.add(target == self.linear(expr.then)).only_enforce_if(cond)
            self.model.add(target == self.linear(expr.orelse)).only_enforce_if(~cond)
            return target
        raise EncodingError(f"Unsupported formula node {type(expr).__name__}")

    # ------------------------------------------------------------------
    # Boolean view
    # ------------------------------------------------------------------
    def fixed(self, value: bool) -> cp_model.IntVar:
        if value not in self._fixed:
            literal = self.model.new_bool_var(str(value).lower())
            self.model.add(literal == int(value))
            self._fixed[value] = literal
        return self._fixed[value]

    def _reify_linear(self, op: str, left: Linear, right: Linear) -> cp_model.IntVar:
        holds = COMPARATORS[op](left, right)
        if isinstance(holds, bool):
            return self.fixed(holds)
        literal = self.model.new_bool_var("")
        self.model.add(holds).only_enforce_if(literal)
        self.model.add(COMPARATORS[_NEGATED_OPS[op]](left, right)).only_enforce_if(~literal)
        return literal

    def literal(self, expr: Expr) -> cp_model.IntVar:
        if isinstance(expr, Constant):
            return self.fixed(bool(expr.value))
        if expr.sort == VarType.INT:
            return self._reify_linear("!=", self.linear(expr), 0)
        if isinstance(expr, Variable):
            return self._ref(expr)
        if isinstance(expr, Comparison):
            return self._reify_linear(expr.op, self.linear(expr.left), self.linear(expr.right))
        if isinstance(expr, Complement):
            literal = self.model.new_bool_var("")
            self.model.add(literal + self.literal(expr.arg) == 1)
            return literal
        if isinstance(expr, Conjunction):
            if not expr.args:
                return self.fixed(True)
            parts = [self.literal(arg) for arg in expr.args]
            literal = self.model.new_bool_var("")
            self.model.add_bool_and(parts).only_enforce_if(literal)
            self.model.add_bool_or([~part for part in parts]).only_enforce_if(~literal)
            return literal
        if isinstance(expr, Disjunction):
            if not expr.args:
                return self.fixed(False)
            parts = [self.literal(arg) for arg in expr.args]
            literal = self.model.new_bool_var("")
            self.model.add_bool_or(parts).only_enforce_if(literal)
            self.model.add_bool_and([~part for part in parts]).only_enforce_if(~literal)
            return literal
        if isinstance(expr, Implication):
            premise = self.literal(expr.premise)
            conclusion = self.literal(expr.conclusion)
            literal = self.model.new_bool_var("")
            self.model.add_bool_or([~premise, conclusion]).only_enforce_if(literal)
            self.model.add_bool_and([premise, ~conclusion]).only_enforce_if(~literal)
            return literal
        if isinstance(expr, Conditional):
            cond = self.literal(expr.cond)
            literal = self.model.new_bool_var("")
            self.model.add(literal == self.literal(expr.then)).only_enforce_if(cond)
            self.model.add(literal == self.literal(expr.orelse)).only_enforce_if(~cond)
            return literal
        if isinstance(expr, Distinctness):
            pairs = [
                Comparison("!=", expr.args[i], expr.args[j])
                for i in range(len(expr.args))
                for j in range(i + 1, len(expr.args))
            ]
            return self.literal(Conjunction(tuple(pairs)))
        raise EncodingError(f"Unsupported formula node {type(expr).__name__}")

    # ------------------------------------------------------------------
    # Top-level assertions
    # ------------------------------------------------------------------
    def enforce(self, expr: Expr, assumption: Optional[cp_model.IntVar] = None) -> None:
        """Add ``expr`` as a constraint, optionally guarded by ``assumption``."""

        if isinstance(expr, Conjunction):
            for arg in expr.args:
                self.enforce(arg, assumption)
            return
        if isinstance(expr, Distinctness) and assumption is None:
            if len(expr.args) > 1:
                self.model.add_all_different([self.linear(arg) for arg in expr.args])
            return
        if isinstance(expr, Comparison) and not expr.is_boolean:
            holds = COMPARATORS[expr.op](self.linear(expr.left), self.linear(expr.right))
            if isinstance(holds, bool):
                holds = self.fixed(holds) == 1
            constraint = self.model.add(holds)
        else:
            constraint = self.model.add_bool_or([self.literal(expr)])
        if assumption is not None:
            constraint.only_enforce_if(assumption)


class CpSatBackend(SolverBackend):
    """Rebuild-per-check oracle on top of ``cp_model.CpSolver``."""

    name = "cpsat"

    def __init__(self, config: SolverConfig) -> None:
        super().__init__(config)
        self._values: Optional[Dict[str, Value]] = None
        self._core: List[str] = []

    # ------------------------------------------------------------------
    # Model construction
    # ------------------------------------------------------------------
    def _build(self, track: bool) -> Tuple[cp_model.CpModel, CpSatTranslator, Dict[int, str]]:
        model = cp_model.CpModel()
        translator = CpSatTranslator(model, self.variables, self.config.default_int_bounds)
        assumptions: Dict[int, str] = {}
        literals = []
        for assertion in self.live_assertions():
            if track and assertion.tracker is not None:
                literal = model.new_bool_var(TRACKER_PREFIX + assertion.tracker)
                translator.enforce(assertion.formula, literal)
                assumptions[literal.index] = assertion.tracker
                literals.append(literal)
            else:
                translator.enforce(assertion.formula)
        if literals:
            model.add_assumptions(literals)
        return model, translator, assumptions

    def _solver(self, timeout: Optional[float], single_worker: bool = False) -> cp_model.CpSolver:
        solver = cp_model.CpSolver()
        if timeout is not None:
            solver.parameters.max_time_in_seconds = timeout
        # Assumption cores are only reported by the sequential search.
        solver.parameters.num_workers = 1 if single_worker else self.config.num_workers
        if self.config.random_seed is not None:
            solver.parameters.random_seed = self.config.random_seed
        return solver

    def _solve(self, solver: cp_model.CpSolver, model: cp_model.CpModel) -> int:
        status = solver.solve(model)
        if status == cp_model.MODEL_INVALID:
            raise BackendError(f"CP-SAT rejected the model: {model.validate()}")
        return status

    def _read_values(self, solver: cp_model.CpSolver, translator: CpSatTranslator) -> None:
        values: Dict[str, Value] = {}
        for name, var in self.variables.items():
            ref = translator.refs[name]
            if var.sort == VarType.BOOL:
                values[name] = bool(solver.boolean_value(ref))
            else:
                values[name] = int(solver.value(ref))
        self._values = values

    def _unknown(self, solver: cp_model.CpSolver, status: int, timeout: Optional[float]) -> CheckResult:
        if timeout is not None and solver.wall_time >= timeout:
            self.reason_unknown = "timeout"
        else:
            self.reason_unknown = solver.status_name(status).lower()
        return CheckResult.UNKNOWN

    # ------------------------------------------------------------------
    # Oracle primitives
    # ------------------------------------------------------------------
    def check(self, timeout: Optional[float]) -> CheckResult:
        self._values = None
        self._core = []
        self.reason_unknown = ""
        model, translator, assumptions = self._build(track=True)
        solver = self._solver(timeout, single_worker=bool(assumptions))
        started = time.perf_counter()
        status = self._solve(solver, model)
        LOGGER.debug(
            "cpsat: check -> %s in %.3fs", solver.status_name(status), time.perf_counter() - started
        )
        if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            self._read_values(solver, translator)
            return CheckResult.SAT
        if status == cp_model.INFEASIBLE:
            if assumptions:
                self._core = [
                    assumptions[index]
                    for index in solver.sufficient_assumptions_for_infeasibility()
                    if index in assumptions
                ]
            return CheckResult.UNSAT
        return self._unknown(solver, status, timeout)

    def model_values(self, complete: bool) -> Dict[str, Value]:
        # CP-SAT assigns every variable, so completion changes nothing here.
        if self._values is None:
            raise NoModelError("CP-SAT holds no model")
        return dict(self._values)

    def unsat_core(self) -> List[str]:
        return list(self._core)

    def optimize(
        self,
        soft: Sequence[SoftConstraint],
        objectives: Sequence[Objective],
        timeout: Optional[float],
    ) -> CheckResult:
        self._values = None
        self._core = []
        self.reason_unknown = ""
        model, translator, _ = self._build(track=False)

        stages: List[Tuple[Linear, Sense]] = [
            (translator.linear(objective.expression), objective.sense) for objective in objectives
        ]
        groups: "OrderedDict[str, List[SoftConstraint]]" = OrderedDict()
        for constraint in soft:
            groups.setdefault(constraint.group, []).append(constraint)
        for members in groups.values():
            penalty = sum(
                constraint.weight * (1 - translator.literal(constraint.condition))
                for constraint in members
            )
            stages.append((penalty, Sense.MINIMIZE))

        solver = self._solver(timeout)
        started = time.perf_counter()
        if not stages:
            stages.append((0, Sense.MINIMIZE))
        for position, (expression, sense) in enumerate(stages):
            model.clear_objective()
            if not isinstance(expression, int):
                if sense == Sense.MAXIMIZE:
                    model.maximize(expression)
                else:
                    model.minimize(expression)
            status = self._solve(solver, model)
            LOGGER.debug(
                "cpsat: optimize stage %d/%d -> %s",
                position + 1,
                len(stages),
                solver.status_name(status),
            )
            if status == cp_model.INFEASIBLE:
                return CheckResult.UNSAT
            if status != cp_model.OPTIMAL:
                return self._unknown(solver, status, timeout)
            if not isinstance(expression, int):
                model.add(expression == int(solver.value(expression)))

        LOGGER.debug(
            "cpsat: optimize (%d soft, %d objectives) -> sat in %.3fs",
            len(soft),
            len(objectives),
            time.perf_counter() - started,
        )
        self._read_values(solver, translator)
        return CheckResult.SAT
