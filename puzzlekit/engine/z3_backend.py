"""Z3 adapter: native push/pop, tracked assertions and ``z3.Optimize``."""

from __future__ import annotations

import time
from typing import Dict, List, Optional, Sequence

import z3

from ..core.config import SolverConfig
from ..core.constants import TRACKER_PREFIX, CheckResult, Sense, VarType
from ..core.exceptions import EncodingError, NoModelError
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

# z3 reads a timeout of UINT_MAX as "no limit".
_NO_TIMEOUT_MS = 4294967295


def _timeout_ms(timeout: Optional[float]) -> int:
    if timeout is None:
        return _NO_TIMEOUT_MS
    return max(1, int(timeout * 1000))


def _to_result(verdict: z3.CheckSatResult) -> CheckResult:
    if verdict == z3.sat:
        return CheckResult.SAT
    if verdict == z3.unsat:
        return CheckResult.UNSAT
    return CheckResult.UNKNOWN


class Z3Translator:
    """Translate formula trees into z3 terms."""

    def __init__(self) -> None:
        self._refs: Dict[str, z3.ExprRef] = {}

    def declare(self, var: Variable) -> z3.ExprRef:
        if var.name not in self._refs:
            if var.sort == VarType.BOOL:
                self._refs[var.name] = z3.Bool(var.name)
            else:
                self._refs[var.name] = z3.Int(var.name)
        return self._refs[var.name]

    def ref(self, name: str) -> z3.ExprRef:
        return self._refs[name]

    def as_int(self, expr: Expr) -> z3.ArithRef:
        term = self.term(expr)
        if expr.sort == VarType.BOOL:
            return z3.If(term, z3.IntVal(1), z3.IntVal(0))
        return term

    def as_bool(self, expr: Expr) -> z3.BoolRef:
        term = self.term(expr)
        if expr.sort == VarType.INT:
            return term != 0
        return term

    def term(self, expr: Expr) -> z3.ExprRef:
        if isinstance(expr, Variable):
            try:
                return self._refs[expr.name]
            except KeyError:
                raise EncodingError(f"Variable {expr.name!r} is not declared on this context") from None
        if isinstance(expr, Constant):
            if isinstance(expr.value, bool):
                return z3.BoolVal(expr.value)
            return z3.IntVal(expr.value)
        if isinstance(expr, Addition):
            if not expr.terms:
                return z3.IntVal(0)
            return z3.Sum([self.as_int(term) for term in expr.terms])
        if isinstance(expr, Product):
            return self.as_int(expr.left) * self.as_int(expr.right)
        if isinstance(expr, Negation):
            return -self.as_int(expr.arg)
        if isinstance(expr, Absolute):
            inner = self.as_int(expr.arg)
            return z3.If(inner >= 0, inner, -inner)
        if isinstance(expr, Conditional):
            cond = self.as_bool(expr.cond)
            if expr.sort == VarType.BOOL:
                return z3.If(cond, self.as_bool(expr.then), self.as_bool(expr.orelse))
            return z3.If(cond, self.as_int(expr.then), self.as_int(expr.orelse))
        if isinstance(expr, Comparison):
            if expr.is_boolean:
                left, right = self.as_bool(expr.left), self.as_bool(expr.right)
            else:
                left, right = self.as_int(expr.left), self.as_int(expr.right)
            return COMPARATORS[expr.op](left, right)
        if isinstance(expr, Conjunction):
            if not expr.args:
                return z3.BoolVal(True)
            return z3.And([self.as_bool(arg) for arg in expr.args])
        if isinstance(expr, Disjunction):
            if not expr.args:
                return z3.BoolVal(False)
            return z3.Or([self.as_bool(arg) for arg in expr.args])
        if isinstance(expr, Complement):
            return z3.Not(self.as_bool(expr.arg))
        if isinstance(expr, Implication):
            return z3.Implies(self.as_bool(expr.premise), self.as_bool(expr.conclusion))
        if isinstance(expr, Distinctness):
            if len(expr.args) < 2:
                return z3.BoolVal(True)
            return z3.Distinct(*[self.as_int(arg) for arg in expr.args])
        raise EncodingError(f"Unsupported formula node {type(expr).__name__}")


class Z3Backend(SolverBackend):
    """Incremental oracle on top of ``z3.Solver``."""

    name = "z3"

    def __init__(self, config: SolverConfig) -> None:
        super().__init__(config)
        self.translator = Z3Translator()
        self.solver = z3.Solver()
        self._model: Optional[z3.ModelRef] = None
        self._tracker_names: Dict[str, str] = {}

    def declare(self, var: Variable) -> None:
        super().declare(var)
        self.translator.declare(var)

    def add(self, formula: Expr, tracker: Optional[str] = None) -> None:
        term = self.translator.as_bool(formula)
        super().add(formula, tracker)
        if tracker is None:
            self.solver.add(term)
            return
        literal = TRACKER_PREFIX + tracker
        self._tracker_names[literal] = tracker
        self.solver.assert_and_track(term, z3.Bool(literal))

    def push(self) -> None:
        super().push()
        self.solver.push()

    def pop(self, n: int) -> None:
        super().pop(n)
        if n:
            self.solver.pop(n)

    def check(self, timeout: Optional[float]) -> CheckResult:
        self._model = None
        self.reason_unknown = ""
        self.solver.set("timeout", _timeout_ms(timeout))
        started = time.perf_counter()
        result = _to_result(self.solver.check())
        LOGGER.debug("z3: check -> %s in %.3fs", result.value, time.perf_counter() - started)
        if result == CheckResult.SAT:
            self._model = self.solver.model()
        elif result == CheckResult.UNKNOWN:
            self.reason_unknown = self.solver.reason_unknown()
        return result

    def model_values(self, complete: bool) -> Dict[str, Value]:
        if self._model is None:
            raise NoModelError("z3 holds no model")
        values: Dict[str, Value] = {}
        for name in self.variables:
            value = self._model.eval(self.translator.ref(name), model_completion=complete)
            if z3.is_int_value(value):
                values[name] = value.as_long()
            elif z3.is_true(value):
                values[name] = True
            elif z3.is_false(value):
                values[name] = False
        return values

    def unsat_core(self) -> List[str]:
        core = []
        for literal in self.solver.unsat_core():
            key = literal.decl().name()
            core.append(self._tracker_names.get(key, key))
        return core

    def optimize(
        self,
        soft: Sequence[SoftConstraint],
        objectives: Sequence[Objective],
        timeout: Optional[float],
    ) -> CheckResult:
        self._model = None
        self.reason_unknown = ""
        opt = z3.Optimize()
        if timeout is not None:
            opt.set("timeout", _timeout_ms(timeout))
        for assertion in self.live_assertions():
            opt.add(self.translator.as_bool(assertion.formula))
        # Objectives are prioritized lexicographically in the order they are
        # registered, so hard objectives go in before any soft group.
        for objective in objectives:
            term = self.translator.as_int(objective.expression)
            if objective.sense == Sense.MAXIMIZE:
                opt.maximize(term)
            else:
                opt.minimize(term)
        for constraint in soft:
            opt.add_soft(self.translator.as_bool(constraint.condition), constraint.weight, constraint.group)

        started = time.perf_counter()
        result = _to_result(opt.check())
        LOGGER.debug(
            "z3: optimize (%d soft, %d objectives) -> %s in %.3fs",
            len(soft),
            len(objectives),
            result.value,
            time.perf_counter() - started,
        )
        if result == CheckResult.SAT:
            self._model = opt.model()
        elif result == CheckResult.UNKNOWN:
            self.reason_unknown = opt.reason_unknown()
        return result
