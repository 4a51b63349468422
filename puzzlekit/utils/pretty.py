"""Pretty-print helpers for solver results."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

if TYPE_CHECKING:
    from ..puzzles.restaurant import RestaurantChoice
    from ..puzzles.shidoku import ShidokuBoard


FILLED = "#"
BLANK = "."

COLOR_NAMES = {1: "Red", 2: "Green", 3: "Blue", 4: "Yellow"}


def format_nonogram(grid: Sequence[Sequence[bool]]) -> str:
    return "\n".join("".join(FILLED if cell else BLANK for cell in row) for row in grid)


def format_board(board: ShidokuBoard) -> str:
    """Render the board with box separators, e.g. ``2 1 | 3 4``."""

    b = board.box_size
    rule = "-+-".join("-" * (2 * b - 1) for _ in range(b))
    lines: List[str] = []
    for r, row in enumerate(board.grid):
        if r and r % b == 0:
            lines.append(rule)
        chunks = []
        for start in range(0, board.size, b):
            chunks.append(" ".join("_" if v is None else str(v) for v in row[start:start + b]))
        lines.append(" | ".join(chunks))
    lines.append(f"state: {board.state.value}")
    if board.conflict:
        lines.append(f"conflict: [{', '.join(board.conflict)}]")
    return "\n".join(lines)


def format_coloring(colors: Dict[int, int]) -> str:
    lines = ["Region colors:"]
    for node in sorted(colors):
        value = colors[node]
        lines.append(f"  Node {node}: {COLOR_NAMES.get(value, 'Color ' + str(value))} ({value})")
    return "\n".join(lines)


def print_restaurant(choice: RestaurantChoice, *, stream=None) -> None:
    stream = stream or sys.stdout
    if choice.restaurant is None:
        print("No suitable restaurant found within budget/constraints.", file=stream)
        return
    print(f"Selected restaurant: {choice.restaurant.name} (index {choice.index})", file=stream)
    print(f"Total happiness: {choice.total_happiness}", file=stream)
    print(f"Cost per head: ${choice.restaurant.cost}", file=stream)
    print(file=stream)
    print("Individual happiness:", file=stream)
    for name, score in choice.happiness.items():
        print(f"  {name}: {score}", file=stream)


def print_section(title: str, body: Optional[str] = None, *, stream=None) -> None:
    stream = stream or sys.stdout
    print(f"--- {title} ---", file=stream)
    if body:
        print(body, file=stream)
    print(file=stream)
