"""Lazy enumeration of distinct solutions with blocking clauses."""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from ..core.constants import CheckResult
from ..core.expr import And, Not, Variable
from ..core.models import Model
from ..utils.logger import get_logger
from .context import ConstraintContext

LOGGER = get_logger(__name__)

SolutionTuple = Tuple[Optional[object], ...]


class SolutionEnumerator:
    """Iterate over distinct value tuples of ``variables``.

    Each step checks the context, yields the tuple read back from the model
    and asserts a blocking clause in the current scope. The iterator is
    single-use; once exhausted, ``stop_reason`` records the last check result
    (``UNSAT`` when the space was covered, ``UNKNOWN`` when the engine gave up)
    or ``None`` when ``limit`` cut the sequence short.

    With ``complete`` unset, variables the engine left unassigned read as
    ``None`` and are left out of the blocking clause. Termination needs a
    finite domain for the distinguishing variables.
    """

    def __init__(
        self,
        context: ConstraintContext,
        variables: Sequence[Variable],
        complete: bool = True,
        limit: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if not variables:
            raise ValueError("At least one variable is needed to tell solutions apart")
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")
        self.context = context
        self.variables = list(variables)
        self.complete = complete
        self.limit = limit
        self.timeout = timeout
        self.count = 0
        self.stop_reason: Optional[CheckResult] = None
        self.last_model: Optional[Model] = None
        self._started = False
        self._done = False

    def __iter__(self) -> Iterator[SolutionTuple]:
        if self._started:
            raise RuntimeError("SolutionEnumerator cannot be restarted")
        self._started = True
        return self._generate()

    def _generate(self) -> Iterator[SolutionTuple]:
        while not self._done:
            if self.limit is not None and self.count >= self.limit:
                LOGGER.debug("enumeration stopped at limit %d", self.limit)
                return
            result = self.context.check(self.timeout)
            if result != CheckResult.SAT:
                self.stop_reason = result
                self._done = True
                LOGGER.info("enumeration finished after %d solution(s): %s", self.count, result.value)
                return
            model = self.context.model(complete=self.complete)
            self.last_model = model
            values = tuple(model[var] if self.complete else model.get(var) for var in self.variables)
            self.count += 1
            self._block(values)
            yield values

    def _block(self, values: SolutionTuple) -> None:
        assigned = [var == value for var, value in zip(self.variables, values) if value is not None]
        if not assigned:
            # Nothing to distinguish the next solution by.
            self._done = True
            self.stop_reason = None
            return
        self.context.add(Not(And(assigned)))


def iter_solutions(
    context: ConstraintContext,
    variables: Sequence[Variable],
    complete: bool = True,
    limit: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Iterator[SolutionTuple]:
    return iter(SolutionEnumerator(context, variables, complete, limit, timeout))


def all_solutions(
    context: ConstraintContext,
    variables: Sequence[Variable],
    limit: Optional[int] = None,
) -> List[SolutionTuple]:
    return list(iter_solutions(context, variables, limit=limit))
