"""Shidoku board whose move history is the context's scope stack.

Each given and each move is pushed in its own scope as a tracked assertion
named ``"(r,c)=v"``. A conflicting move puts the board in ``ERROR`` with the
engine's conflict set until it is undone.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..core.exceptions import InvalidMoveError
from ..core.expr import Distinct
from ..engine.context import ConstraintContext
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

Move = Tuple[int, int, int]

# . . 3 .
# 4 . . .
# . . . 1
# . 2 . .
DEFAULT_GIVENS: Tuple[Move, ...] = ((0, 2, 3), (1, 0, 4), (2, 3, 1), (3, 1, 2))


class GameState(str, Enum):
    PLAYING = "playing"
    ERROR = "error"
    SOLVED = "solved"


def tracker_name(row: int, col: int, value: int) -> str:
    return f"({row},{col})={value}"


class ShidokuBoard:
    """Latin square of side ``box_size ** 2`` with ``box_size`` square boxes."""

    def __init__(
        self,
        givens: Sequence[Move] = DEFAULT_GIVENS,
        box_size: int = 2,
        config: Optional[SolverConfig] = None,
        context: Optional[ConstraintContext] = None,
    ) -> None:
        if box_size < 1:
            raise ValueError("box_size must be at least 1")
        self.box_size = box_size
        self.size = box_size * box_size
        self.context = context or ConstraintContext(config)
        self.grid: List[List[Optional[int]]] = [[None] * self.size for _ in range(self.size)]
        self.fixed: List[List[bool]] = [[False] * self.size for _ in range(self.size)]
        self.history: List[Move] = []
        self.state = GameState.PLAYING
        self.conflict: Tuple[str, ...] = ()
        self._base_depth = self.context.depth
        self.context.push()
        try:
            self.cells = [
                [self.context.int_var(f"c_{r}_{c}", 1, self.size) for c in range(self.size)]
                for r in range(self.size)
            ]
            self._add_rules()
            for row, col, value in givens:
                self._set_fixed(row, col, value)
        except Exception:
            self.close()
            raise

    def _add_rules(self) -> None:
        n, b = self.size, self.box_size
        for r in range(n):
            self.context.add(Distinct(self.cells[r]))
        for c in range(n):
            self.context.add(Distinct(self.cells[r][c] for r in range(n)))
        for br in range(b):
            for bc in range(b):
                self.context.add(
                    Distinct(
                        self.cells[br * b + dr][bc * b + dc] for dr in range(b) for dc in range(b)
                    )
                )

    def _validate(self, row: int, col: int, value: int) -> None:
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise InvalidMoveError(f"Cell ({row},{col}) is outside the {self.size}x{self.size} board")
        if not 1 <= value <= self.size:
            raise InvalidMoveError(f"Value {value} is outside 1..{self.size}")
        if self.fixed[row][col]:
            raise InvalidMoveError(f"Cell ({row},{col}) is a given")
        if self.grid[row][col] is not None:
            raise InvalidMoveError(f"Cell ({row},{col}) is already filled; undo first")

    def _push_value(self, row: int, col: int, value: int) -> None:
        self.context.push()
        self.context.add_tracked(self.cells[row][col] == value, tracker_name(row, col, value))
        self.grid[row][col] = value

    def _set_fixed(self, row: int, col: int, value: int) -> None:
        self._validate(row, col, value)
        self._push_value(row, col, value)
        self.fixed[row][col] = True

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------
    @property
    def filled(self) -> int:
        return sum(1 for row in self.grid for value in row if value is not None)

    def place(self, row: int, col: int, value: int) -> GameState:
        """Fill an empty cell and re-check the board."""

        if self.state == GameState.ERROR:
            raise InvalidMoveError("Board is in conflict; undo the last move first")
        self._validate(row, col, value)
        self._push_value(row, col, value)
        self.history.append((row, col, value))
        self._refresh(after_undo=False)
        LOGGER.debug("place %s -> %s", tracker_name(row, col, value), self.state.value)
        return self.state

    def undo(self) -> Optional[Move]:
        """Pop the most recent move; givens cannot be undone."""

        if not self.history:
            return None
        row, col, value = self.history.pop()
        self.grid[row][col] = None
        self.context.pop()
        self._refresh(after_undo=True)
        LOGGER.debug("undo %s -> %s", tracker_name(row, col, value), self.state.value)
        return row, col, value

    def _refresh(self, after_undo: bool) -> None:
        result = self.context.check()
        if result == CheckResult.SAT:
            self.conflict = ()
            full = self.filled == self.size * self.size
            self.state = GameState.SOLVED if full else GameState.PLAYING
        elif result == CheckResult.UNSAT:
            self.state = GameState.ERROR
            self.conflict = self.context.unsat_core()
        elif after_undo:
            self.state = GameState.PLAYING
            self.conflict = ()
        else:
            self.state = GameState.ERROR
            self.conflict = ()

    def solution(self) -> Optional[List[List[int]]]:
        """A completion of the current board, or None when none exists."""

        if self.context.check() != CheckResult.SAT:
            return None
        model = self.context.model()
        return [[int(model[cell]) for cell in row] for row in self.cells]

    def as_dict(self) -> Dict[str, object]:
        return {
            "grid": [list(row) for row in self.grid],
            "state": self.state.value,
            "conflict": list(self.conflict),
            "moves": [list(move) for move in self.history],
        }

    def close(self) -> None:
        """Pop every scope the board pushed on its context."""

        extra = self.context.depth - self._base_depth
        if extra > 0:
            self.context.pop(extra)
