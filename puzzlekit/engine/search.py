"""Chronological backtracking driven by the context's scope stack.

The search keeps no assignment snapshot of its own: every accepted decision
is a live scope holding ``v_idx == value``, and backtracking is a pop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..core.constants import CheckResult
from ..core.exceptions import SearchStateError
from ..core.expr import Variable
from ..core.models import Model
from ..utils.logger import get_logger
from .context import ConstraintContext

LOGGER = get_logger(__name__)


@dataclass
class SearchResult:
    """Outcome of :meth:`BacktrackingSearch.run`.

    ``failed_at`` is the index the search was at when it gave up: ``0`` when
    the space was exhausted, otherwise the level of an unknown check.
    """

    status: CheckResult
    assignment: Dict[str, int] = field(default_factory=dict)
    model: Optional[Model] = None
    pushes: int = 0
    backtracks: int = 0
    checks: int = 0
    failed_at: Optional[int] = None

    @property
    def solved(self) -> bool:
        return self.status == CheckResult.SAT


class BacktrackingSearch:
    """Assign ``variables`` in order, each from ``domain``.

    ``domain`` is either one sequence shared by every variable or a mapping
    from variable name to its own sequence. Values are tried in the given
    order. On success the committed scopes stay live so that the model can be
    inspected; call :meth:`unwind` to pop them.
    """

    def __init__(
        self,
        context: ConstraintContext,
        variables: Sequence[Variable],
        domain,
        timeout: Optional[float] = None,
    ) -> None:
        self.context = context
        self.variables = list(variables)
        if isinstance(domain, dict):
            missing = [var.name for var in self.variables if var.name not in domain]
            if missing:
                raise ValueError(f"No domain given for {missing}")
            self.domains: List[List[int]] = [list(domain[var.name]) for var in self.variables]
        else:
            values = list(domain)
            self.domains = [values for _ in self.variables]
        self.timeout = timeout
        self.base_depth: Optional[int] = None
        self.idx = 0
        self.tried: List[int] = [0] * len(self.variables)
        self.committed: List[int] = []

    def _assert_depth(self) -> None:
        actual = self.context.depth - self.base_depth
        if actual != self.idx:
            raise SearchStateError(f"Search index {self.idx} but {actual} committed scope(s) are live")

    def run(self, timeout: Optional[float] = None) -> SearchResult:
        if self.base_depth is not None:
            raise SearchStateError("BacktrackingSearch.run() can only be called once")
        timeout = self.timeout if timeout is None else timeout
        context = self.context
        self.base_depth = context.depth
        k = len(self.variables)
        result = SearchResult(status=CheckResult.UNKNOWN)
        LOGGER.info("search: %d variable(s) from depth %d", k, self.base_depth)

        # An empty decision list still needs the base formula checked.
        if k == 0:
            result.checks += 1
            result.status = context.check(timeout)
            if result.status == CheckResult.SAT:
                result.model = context.model()
            else:
                result.failed_at = 0
            return result

        while 0 <= self.idx < k:
            self._assert_depth()
            idx = self.idx
            var = self.variables[idx]
            domain = self.domains[idx]
            accepted = False
            while self.tried[idx] < len(domain):
                value = domain[self.tried[idx]]
                self.tried[idx] += 1
                context.push()
                result.pushes += 1
                context.add(var == value)
                verdict = context.check(timeout)
                result.checks += 1
                if verdict == CheckResult.SAT:
                    LOGGER.debug("search: %s = %s accepted at level %d", var.name, value, idx)
                    if idx == k - 1:
                        result.model = context.model()
                    self.committed.append(value)
                    accepted = True
                    break
                context.pop()
                if verdict == CheckResult.UNKNOWN:
                    LOGGER.warning("search: unknown while trying %s = %s, aborting", var.name, value)
                    result.status = CheckResult.UNKNOWN
                    result.failed_at = idx
                    result.model = None
                    self.unwind()
                    return result
            if accepted:
                self.idx += 1
                continue

            self.tried[idx] = 0
            if idx == 0:
                self.idx = -1
                break
            context.pop()
            self.committed.pop()
            result.backtracks += 1
            self.idx -= 1
            LOGGER.debug("search: backtrack to level %d", self.idx)

        if self.idx == -1:
            LOGGER.warning("search: no solution after %d push(es)", result.pushes)
            result.status = CheckResult.UNSAT
            result.failed_at = 0
            result.model = None
            return result

        self._assert_depth()
        result.status = CheckResult.SAT
        result.assignment = {var.name: value for var, value in zip(self.variables, self.committed)}
        LOGGER.info(
            "search: solved with %d push(es), %d backtrack(s)", result.pushes, result.backtracks
        )
        return result

    def unwind(self) -> None:
        """Pop every scope this search committed."""

        if self.base_depth is None:
            return
        extra = self.context.depth - self.base_depth
        if extra > 0:
            self.context.pop(extra)
        self.committed.clear()
        self.idx = 0
