"""Data models shared by the engine and the puzzle encoders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .constants import DEFAULT_SOFT_GROUP, Sense
from .expr import Expr, Operand, Value, Variable, evaluate


class Model:
    """Concrete values read back from a satisfiable check.

    Keys are variable names. Lookups accept a :class:`Variable` or a name.
    With ``complete`` set, variables the engine left unassigned read as
    ``0``/``False``; otherwise they are missing.
    """

    def __init__(self, values: Mapping[str, Value], complete: bool = True) -> None:
        self._values: Dict[str, Value] = dict(values)
        self.complete = complete

    @staticmethod
    def _key(var: Union[Variable, str]) -> str:
        return var.name if isinstance(var, Variable) else var

    def __getitem__(self, var: Union[Variable, str]) -> Value:
        key = self._key(var)
        if key in self._values:
            return self._values[key]
        if self.complete and isinstance(var, Variable):
            return var.evaluate({}, complete=True)
        raise KeyError(key)

    def get(self, var: Union[Variable, str], default: Optional[Value] = None) -> Optional[Value]:
        try:
            return self[var]
        except KeyError:
            return default

    def __contains__(self, var: object) -> bool:
        if isinstance(var, (Variable, str)):
            return self._key(var) in self._values
        return False

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def eval(self, expr: Operand) -> Value:
        """Evaluate any formula over the model's variables."""

        return evaluate(expr, self._values, complete=self.complete)

    def as_dict(self) -> Dict[str, Value]:
        return dict(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name} = {value}" for name, value in sorted(self._values.items()))
        return f"[{inner}]"


@dataclass(frozen=True, eq=False)
class Assertion:
    """A live formula, optionally tagged for conflict attribution."""

    formula: Expr
    tracker: Optional[str] = None


@dataclass(frozen=True, eq=False)
class SoftConstraint:
    """A condition whose violation costs ``weight`` instead of failing."""

    condition: Expr
    weight: int = 1
    group: str = DEFAULT_SOFT_GROUP


@dataclass(frozen=True, eq=False)
class Objective:
    expression: Expr
    sense: Sense = Sense.MINIMIZE


@dataclass
class Scope:
    """One frame of the context's assertion stack."""

    level: int
    assertions: List[Assertion] = field(default_factory=list)

    @property
    def trackers(self) -> List[str]:
        return [a.tracker for a in self.assertions if a.tracker is not None]


# ----------------------------------------------------------------------
# Decoded puzzle records
# ----------------------------------------------------------------------
@dataclass
class NonogramPuzzle:
    rows: int
    cols: int
    row_clues: List[List[int]]
    col_clues: List[List[int]]


@dataclass
class Restaurant:
    name: str
    cost: int
    vegan: bool


@dataclass
class Person:
    name: str
    is_vegan: bool
    ratings: List[int]

    def happiness_at(self, index: int, restaurant: Restaurant) -> int:
        """Rating for ``restaurant``; vegans score non-vegan places as zero."""

        if self.is_vegan and not restaurant.vegan:
            return 0
        return self.ratings[index]


@dataclass
class RestaurantPuzzle:
    budget: int
    restaurants: List[Restaurant]
    people: List[Person]


@dataclass(frozen=True)
class Nanobot:
    x: int
    y: int
    z: int
    r: int

    def distance_to(self, point: Tuple[int, int, int]) -> int:
        px, py, pz = point
        return abs(self.x - px) + abs(self.y - py) + abs(self.z - pz)
