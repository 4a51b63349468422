"""Engine adapter interface.

An adapter is the only place that talks to a solving library. It mirrors the
context's scope stack so that engines without native incremental solving can
rebuild the live formula, and so that one-shot optimizing checks can replay it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Sequence

from ..core.config import SolverConfig
from ..core.constants import CheckResult, Engine
from ..core.expr import Expr, Value, Variable
from ..core.models import Assertion, Objective, SoftConstraint


class SolverBackend(ABC):
    """Incremental solving oracle used by :class:`ConstraintContext`."""

    name = "abstract"

    def __init__(self, config: SolverConfig) -> None:
        self.config = config
        self.variables: Dict[str, Variable] = {}
        self.frames: List[List[Assertion]] = [[]]
        self.reason_unknown = ""

    # ------------------------------------------------------------------
    # Formula bookkeeping
    # ------------------------------------------------------------------
    def declare(self, var: Variable) -> None:
        self.variables[var.name] = var

    def add(self, formula: Expr, tracker: Optional[str] = None) -> None:
        self.frames[-1].append(Assertion(formula, tracker))

    def push(self) -> None:
        self.frames.append([])

    def pop(self, n: int) -> None:
        del self.frames[len(self.frames) - n:]

    def live_assertions(self) -> Iterator[Assertion]:
        for frame in self.frames:
            yield from frame

    # ------------------------------------------------------------------
    # Oracle primitives
    # ------------------------------------------------------------------
    @abstractmethod
    def check(self, timeout: Optional[float]) -> CheckResult:
        """Decide the live formula."""

    @abstractmethod
    def model_values(self, complete: bool) -> Dict[str, Value]:
        """Values of declared variables after a satisfiable check."""

    @abstractmethod
    def unsat_core(self) -> List[str]:
        """Tracker names explaining the last unsatisfiable check."""

    @abstractmethod
    def optimize(
        self,
        soft: Sequence[SoftConstraint],
        objectives: Sequence[Objective],
        timeout: Optional[float],
    ) -> CheckResult:
        """Optimizing check over the live formula."""


def create_backend(config: SolverConfig) -> SolverBackend:
    """Instantiate the adapter named by ``config.engine``."""

    if config.engine == Engine.Z3:
        from .z3_backend import Z3Backend

        return Z3Backend(config)
    if config.engine == Engine.CPSAT:
        from .cpsat_backend import CpSatBackend

        return CpSatBackend(config)
    raise ValueError(f"Unsupported engine {config.engine!r}")

