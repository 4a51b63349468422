"""Incremental solving session over one engine adapter."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..core.config import SolverConfig
from ..core.constants import TRACKER_PREFIX, CheckResult, Engine, VarType
from ..core.exceptions import (
    DuplicateTrackerError,
    EncodingError,
    NoCoreError,
    NoModelError,
    StackUnderflowError,
    VariableConflictError,
)
from ..core.expr import Expr, Operand, Variable, as_expr, iter_variables
from ..core.models import Assertion, Model, Objective, Scope, SoftConstraint
from ..utils.logger import get_logger
from .backend import SolverBackend, create_backend

LOGGER = get_logger(__name__)


def _widened(old: Variable, new: Variable) -> Variable:
    """Native declaration covering both ranges; scoped bounds do the narrowing."""

    if old.lo is None or new.lo is None:
        lo = None
    else:
        lo = min(old.lo, new.lo)
    if old.hi is None or new.hi is None:
        hi = None
    else:
        hi = max(old.hi, new.hi)
    return Variable(new.name, new.sort, lo, hi)


class ConstraintContext:
    """Own the live formula and its scope stack.

    Every assertion lands in the top scope and disappears when that scope is
    popped. Models and cores are only readable right after the check that
    produced them; any ``add``/``push``/``pop`` invalidates them.
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        backend: Optional[SolverBackend] = None,
    ) -> None:
        self.config = config or SolverConfig()
        self.backend = backend or create_backend(self.config)
        self._variables: Dict[str, Variable] = {}
        self._scopes: List[Scope] = [Scope(level=0)]
        self._bounded: Dict[str, int] = {}
        self._last_result: Optional[CheckResult] = None
        self._fresh = False
        self._core_available = False
        self.num_checks = 0

    def __repr__(self) -> str:
        return (
            f"ConstraintContext(engine={self.engine.value!r}, depth={self.depth}, "
            f"assertions={len(self.assertions)})"
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def engine(self) -> Engine:
        return self.config.engine

    @property
    def depth(self) -> int:
        return len(self._scopes) - 1

    @property
    def assertions(self) -> List[Assertion]:
        return [assertion for scope in self._scopes for assertion in scope.assertions]

    @property
    def live_trackers(self) -> Set[str]:
        return {tracker for scope in self._scopes for tracker in scope.trackers}

    @property
    def variables(self) -> Dict[str, Variable]:
        return dict(self._variables)

    @property
    def last_result(self) -> Optional[CheckResult]:
        return self._last_result

    @property
    def reason_unknown(self) -> str:
        return self.backend.reason_unknown

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def declare(
        self,
        name: str,
        sort: VarType = VarType.INT,
        lo: Optional[int] = None,
        hi: Optional[int] = None,
    ) -> Variable:
        """Declare a variable by name and sort.

        Bounds are asserted in the current scope, so popping that scope also
        drops them. Redeclaring with the same sort returns a variable carrying
        the requested bounds and asserts them again when they are not live.
        """

        if name.startswith(TRACKER_PREFIX):
            raise ValueError(f"Variable names may not start with {TRACKER_PREFIX!r}")
        var = Variable(name, sort, lo, hi)
        existing = self._variables.get(name)
        if existing is None:
            self._variables[name] = var
            self.backend.declare(var)
            LOGGER.debug("declare %s: %s [%s, %s]", name, var.sort.value, lo, hi)
            self._assert_bounds(var)
            return var
        if existing.sort != var.sort:
            raise VariableConflictError(f"Variable {name!r} already declared as {existing.sort.value}")
        if existing.same_declaration(var):
            if name not in self._bounded:
                self._assert_bounds(existing)
            return existing
        self._variables[name] = var
        self.backend.declare(_widened(self.backend.variables.get(name, existing), var))
        LOGGER.debug("redeclare %s: [%s, %s] -> [%s, %s]", name, existing.lo, existing.hi, lo, hi)
        self._assert_bounds(var)
        return var

    def _assert_bounds(self, var: Variable) -> None:
        if var.lo is None and var.hi is None:
            return
        if var.lo is not None:
            self.add(var >= var.lo)
        if var.hi is not None:
            self.add(var <= var.hi)
        self._bounded[var.name] = self.depth

    def int_var(self, name: str, lo: Optional[int] = None, hi: Optional[int] = None) -> Variable:
        return self.declare(name, VarType.INT, lo, hi)

    def bool_var(self, name: str) -> Variable:
        return self.declare(name, VarType.BOOL)

    # ------------------------------------------------------------------
    # Assertions and scopes
    # ------------------------------------------------------------------
    def _validate(self, formula: Operand) -> Expr:
        expr = as_expr(formula)
        if expr.sort != VarType.BOOL:
            raise TypeError(f"Only boolean formulas can be asserted, got {expr!r}")
        for var in iter_variables(expr):
            declared = self._variables.get(var.name)
            if declared is None:
                raise EncodingError(f"Variable {var.name!r} is not declared on this context")
            if declared is not var and declared.sort != var.sort:
                raise VariableConflictError(f"Variable {var.name!r} does not match its declaration")
        return expr

    def _invalidate(self) -> None:
        self._fresh = False

    def add(self, formula: Operand) -> None:
        """Assert ``formula`` in the current scope."""

        expr = self._validate(formula)
        self.backend.add(expr)
        self._scopes[-1].assertions.append(Assertion(expr))
        self._invalidate()
        LOGGER.debug("assert@%d %r", self.depth, expr)

    def add_tracked(self, formula: Operand, tracker: str) -> None:
        """Assert ``formula`` under ``tracker`` so it can show up in a core."""

        if not tracker:
            raise ValueError("Tracker name must be non-empty")
        if tracker in self.live_trackers:
            raise DuplicateTrackerError(f"Tracker {tracker!r} is already live")
        expr = self._validate(formula)
        self.backend.add(expr, tracker)
        self._scopes[-1].assertions.append(Assertion(expr, tracker))
        self._invalidate()
        LOGGER.debug("assert@%d [%s] %r", self.depth, tracker, expr)

    def push(self) -> None:
        self.backend.push()
        self._scopes.append(Scope(level=len(self._scopes)))
        self._invalidate()
        LOGGER.debug("push -> depth %d", self.depth)

    def pop(self, n: int = 1) -> None:
        if n < 0:
            raise ValueError("Cannot pop a negative number of scopes")
        if n > self.depth:
            raise StackUnderflowError(f"Cannot pop {n} scope(s) at depth {self.depth}")
        self.backend.pop(n)
        if n:
            del self._scopes[-n:]
            self._bounded = {name: level for name, level in self._bounded.items() if level <= self.depth}
        self._invalidate()
        LOGGER.debug("pop %d -> depth %d", n, self.depth)

    @contextmanager
    def scope(self) -> Iterator["ConstraintContext"]:
        """Push on entry and pop back to the entry depth on exit."""

        level = self.depth
        self.push()
        try:
            yield self
        finally:
            if self.depth > level:
                self.pop(self.depth - level)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.config.timeout_seconds if timeout is None else timeout

    def _record(self, result: CheckResult, started: float, label: str, core: bool) -> CheckResult:
        self.num_checks += 1
        self._last_result = result
        self._fresh = True
        self._core_available = core and result == CheckResult.UNSAT
        elapsed = time.perf_counter() - started
        if result == CheckResult.UNKNOWN:
            LOGGER.warning(
                "%s: unknown after %.3fs (%s)", label, elapsed, self.backend.reason_unknown or "no reason"
            )
        else:
            LOGGER.info("%s: %s in %.3fs (depth %d)", label, result.value, elapsed, self.depth)
        return result

    def check(self, timeout: Optional[float] = None) -> CheckResult:
        """Decide the live formula."""

        started = time.perf_counter()
        result = self.backend.check(self._timeout(timeout))
        return self._record(result, started, "check", core=True)

    def optimize(
        self,
        soft: Sequence[SoftConstraint] = (),
        objectives: Sequence[Objective] = (),
        timeout: Optional[float] = None,
    ) -> CheckResult:
        """Optimizing check over the live formula; no core is kept."""

        started = time.perf_counter()
        result = self.backend.optimize(list(soft), list(objectives), self._timeout(timeout))
        return self._record(result, started, "optimize", core=False)

    def model(self, complete: Optional[bool] = None) -> Model:
        if not self._fresh or self._last_result != CheckResult.SAT:
            raise NoModelError("No model: the last check was not satisfiable or the formula changed since")
        if complete is None:
            complete = self.config.model_completion
        return Model(self.backend.model_values(complete), complete=complete)

    def unsat_core(self) -> Tuple[str, ...]:
        if not self._fresh or not self._core_available:
            raise NoCoreError("No core: the last check was not unsatisfiable or the formula changed since")
        return tuple(self.backend.unsat_core())
