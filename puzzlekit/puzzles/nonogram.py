"""Nonogram solving on top of the line encoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.models import NonogramPuzzle
from ..engine.context import ConstraintContext
from ..engine.enumerator import SolutionEnumerator
from ..engine.line_encoder import encode_grid
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

Grid = List[List[bool]]


@dataclass
class NonogramResult:
    """Solutions found for one puzzle, in discovery order.

    ``unique`` is only decided when more than one solution was asked for.
    """

    status: CheckResult
    solutions: List[Grid] = field(default_factory=list)
    unique: Optional[bool] = None

    @property
    def grid(self) -> Optional[Grid]:
        return self.solutions[0] if self.solutions else None


def solve_nonogram(
    puzzle: NonogramPuzzle,
    max_solutions: int = 1,
    config: Optional[SolverConfig] = None,
    context: Optional[ConstraintContext] = None,
) -> NonogramResult:
    if max_solutions < 1:
        raise ValueError("max_solutions must be at least 1")
    context = context or ConstraintContext(config)
    with context.scope():
        cells = encode_grid(context, puzzle.row_clues, puzzle.col_clues, name="g")
        flat = [cell for row in cells for cell in row]
        enumerator = SolutionEnumerator(context, flat, limit=max_solutions)
        solutions = []
        for values in enumerator:
            solutions.append(
                [list(values[r * puzzle.cols:(r + 1) * puzzle.cols]) for r in range(puzzle.rows)]
            )

    if solutions:
        status = CheckResult.SAT
    else:
        status = enumerator.stop_reason or CheckResult.UNKNOWN
    unique = None
    if max_solutions > 1 and status == CheckResult.SAT:
        if len(solutions) > 1:
            unique = False
        elif enumerator.stop_reason == CheckResult.UNSAT:
            unique = True
    LOGGER.info(
        "nonogram %dx%d: %s, %d solution(s)", puzzle.rows, puzzle.cols, status.value, len(solutions)
    )
    return NonogramResult(status=status, solutions=solutions, unique=unique)


def is_unique(puzzle: NonogramPuzzle, config: Optional[SolverConfig] = None) -> Optional[bool]:
    """True when exactly one grid fits the clues; None when the engine gave up."""

    result = solve_nonogram(puzzle, max_solutions=2, config=config)
    if result.status == CheckResult.UNSAT:
        return False
    return result.unique
