"""Small integer puzzles: equation systems, receipts, magic squares, trajectories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.exceptions import NoModelError
from ..core.expr import Distinct, Sum
from ..core.models import Model
from ..engine.context import ConstraintContext
from ..engine.enumerator import SolutionEnumerator
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


def _solve(context: ConstraintContext) -> Model:
    result = context.check()
    if result != CheckResult.SAT:
        raise NoModelError(f"Expected a satisfiable system, got {result.value}")
    return context.model()


def linear_system(config: Optional[SolverConfig] = None) -> Dict[str, int]:
    """x + y = 10 and x - y = 2."""

    context = ConstraintContext(config)
    x, y = context.int_var("x"), context.int_var("y")
    context.add(x + y == 10)
    context.add(x - y == 2)
    model = _solve(context)
    return {"x": model[x], "y": model[y]}


def bounded_sum(config: Optional[SolverConfig] = None) -> Dict[str, int]:
    """x > 10, y > 10 and x + y = 25."""

    context = ConstraintContext(config)
    x, y = context.int_var("x"), context.int_var("y")
    context.add(x > 10)
    context.add(y > 10)
    context.add(x + y == 25)
    model = _solve(context)
    return {"x": model[x], "y": model[y]}


def bakery_receipt(config: Optional[SolverConfig] = None) -> Dict[str, int]:
    """Twenty pastries for $50: croissants $3, bagels $2, muffins $4.

    At least one of each, and more bagels than muffins.
    """

    context = ConstraintContext(config)
    croissants = context.int_var("croissants", lo=1)
    bagels = context.int_var("bagels", lo=1)
    muffins = context.int_var("muffins", lo=1)
    context.add(bagels > muffins)
    context.add(croissants + bagels + muffins == 20)
    context.add(croissants * 3 + bagels * 2 + muffins * 4 == 50)
    model = _solve(context)
    return {"croissants": model[croissants], "bagels": model[bagels], "muffins": model[muffins]}


def pairs_summing_to(total: int = 2, upper: int = 2, config: Optional[SolverConfig] = None) -> List[Tuple[int, int]]:
    """Every (x, y) with 0 <= x, y <= upper and x + y = total."""

    context = ConstraintContext(config)
    x = context.int_var("x", 0, upper)
    y = context.int_var("y", 0, upper)
    context.add(x + y == total)
    return [(int(a), int(b)) for a, b in SolutionEnumerator(context, [x, y])]


def scope_demo(config: Optional[SolverConfig] = None) -> List[Tuple[str, CheckResult, Optional[int]]]:
    """Check two scopes over the base ``x < 10``: ``x > 5``, then ``x == 2``."""

    context = ConstraintContext(config)
    x = context.int_var("x")
    context.add(x < 10)
    outcomes = []
    for label, formula in (("x > 5", x > 5), ("x == 2", x == 2)):
        with context.scope():
            context.add(formula)
            result = context.check()
            value = context.model()[x] if result == CheckResult.SAT else None
            outcomes.append((label, result, value))
    return outcomes


def magic_squares(size: int = 3, config: Optional[SolverConfig] = None) -> List[List[List[int]]]:
    """Every normal magic square of the given size."""

    n = size
    magic = n * (n * n + 1) // 2
    context = ConstraintContext(config)
    grid = [[context.int_var(f"x_{r}_{c}", 1, n * n) for c in range(n)] for r in range(n)]
    cells = [cell for row in grid for cell in row]
    context.add(Distinct(cells))
    for r in range(n):
        context.add(Sum(grid[r]) == magic)
    for c in range(n):
        context.add(Sum(grid[r][c] for r in range(n)) == magic)
    context.add(Sum(grid[i][i] for i in range(n)) == magic)
    context.add(Sum(grid[i][n - 1 - i] for i in range(n)) == magic)

    squares = []
    for values in SolutionEnumerator(context, cells):
        squares.append([[int(values[r * n + c]) for c in range(n)] for r in range(n)])
    LOGGER.info("magic squares %dx%d: %d found", n, n, len(squares))
    return squares


@dataclass(frozen=True)
class Hailstone:
    px: int
    py: int
    pz: int
    vx: int
    vy: int
    vz: int


SAMPLE_HAILSTONES: Tuple[Hailstone, ...] = (
    Hailstone(19, 13, 30, -2, 1, -2),
    Hailstone(18, 19, 22, -1, -1, -2),
    Hailstone(20, 25, 34, -2, -2, -4),
    Hailstone(12, 31, 28, -1, -2, -1),
    Hailstone(20, 19, 15, 1, -5, -3),
)


def rock_trajectory(
    hailstones: Sequence[Hailstone] = SAMPLE_HAILSTONES,
    config: Optional[SolverConfig] = None,
) -> Optional[Tuple[Tuple[int, int, int], Tuple[int, int, int]]]:
    """Position and velocity of a rock that hits every hailstone.

    Each hailstone gets its own collision time, which makes the system
    nonlinear.
    """

    context = ConstraintContext(config)
    rp = [context.int_var(f"rp{axis}") for axis in "xyz"]
    rv = [context.int_var(f"rv{axis}") for axis in "xyz"]
    for i, stone in enumerate(hailstones):
        t = context.int_var(f"t_{i}", lo=0)
        for p, v, hp, hv in zip(rp, rv, (stone.px, stone.py, stone.pz), (stone.vx, stone.vy, stone.vz)):
            context.add(p + v * t == hp + hv * t)
    result = context.check()
    if result != CheckResult.SAT:
        LOGGER.warning("rock trajectory: %s", result.value)
        return None
    model = context.model()
    position = tuple(int(model[p]) for p in rp)
    velocity = tuple(int(model[v]) for v in rv)
    return position, velocity  # type: ignore[return-value]
