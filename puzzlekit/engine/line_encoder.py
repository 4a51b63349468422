"""Run-length line constraints.

A clue such as ``[3, 1]`` asks for a run of three filled cells, at least one
blank, then a single filled cell, with free space on either side. Each block
gets an integer start variable; a cell is filled exactly when it falls inside
one of the blocks.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.constants import VarType
from ..core.expr import And, Not, Or, Variable
from ..utils.logger import get_logger
from .context import ConstraintContext

LOGGER = get_logger(__name__)


def normalize_clue(clue: Sequence[int]) -> List[int]:
    """Drop zero-length blocks; a clue of ``[0]`` means an empty line."""

    blocks = []
    for length in clue:
        if int(length) < 0:
            raise ValueError(f"Block lengths must be non-negative, got {list(clue)}")
        if length:
            blocks.append(int(length))
    return blocks


def clue_of(values: Sequence[bool]) -> List[int]:
    """Run lengths of the filled cells in ``values``."""

    runs: List[int] = []
    current = 0
    for filled in values:
        if filled:
            current += 1
        elif current:
            runs.append(current)
            current = 0
    if current:
        runs.append(current)
    return runs


def encode_line(
    context: ConstraintContext,
    cells: Sequence[Variable],
    clue: Sequence[int],
    prefix: str,
) -> List[Variable]:
    """Constrain ``cells`` to match ``clue``; returns the block start variables.

    Infeasible clues are encoded as given and surface as an unsatisfiable check.
    """

    for cell in cells:
        if cell.sort != VarType.BOOL:
            raise TypeError(f"Line cells must be boolean, {cell.name!r} is {cell.sort.value}")
    size = len(cells)
    blocks = normalize_clue(clue)

    starts: List[Variable] = []
    for i, length in enumerate(blocks):
        start = context.int_var(f"{prefix}_s_{i}")
        context.add(start >= 0)
        context.add(start + length <= size)
        if i:
            context.add(start >= starts[i - 1] + blocks[i - 1] + 1)
        starts.append(start)

    if not blocks:
        for cell in cells:
            context.add(Not(cell))
        return starts

    for j, cell in enumerate(cells):
        covered = Or(
            And(start <= j, start + length > j)
            for start, length in zip(starts, blocks)
        )
        context.add(cell == covered)

    LOGGER.debug("line %s: %d cells, clue %s", prefix, size, blocks)
    return starts


def encode_grid(
    context: ConstraintContext,
    row_clues: Sequence[Sequence[int]],
    col_clues: Sequence[Sequence[int]],
    name: str = "g",
    cells: Optional[List[List[Variable]]] = None,
) -> List[List[Variable]]:
    """Declare a ``rows x cols`` boolean grid and encode every row and column."""

    rows, cols = len(row_clues), len(col_clues)
    if cells is None:
        cells = [[context.bool_var(f"{name}_{r}_{c}") for c in range(cols)] for r in range(rows)]
    for r, clue in enumerate(row_clues):
        encode_line(context, cells[r], clue, f"{name}_r{r}")
    for c, clue in enumerate(col_clues):
        encode_line(context, [cells[r][c] for r in range(rows)], clue, f"{name}_c{c}")
    return cells
