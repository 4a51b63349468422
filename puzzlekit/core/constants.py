"""Shared constants and enumerations for the solving layer."""

from __future__ import annotations

from enum import Enum
from typing import Tuple


class VarType(str, Enum):
    """Sorts a declared variable can have."""

    INT = "int"
    BOOL = "bool"


class CheckResult(str, Enum):
    """Outcome of a satisfiability or optimizing check."""

    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"


class Sense(str, Enum):
    """Direction of a hard objective."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


class Engine(str, Enum):
    """Supported solving engines."""

    Z3 = "z3"
    CPSAT = "cpsat"


DEFAULT_INT_BOUNDS: Tuple[int, int] = (-1_000_000, 1_000_000)
DEFAULT_SOFT_GROUP = "soft"

# Tracker literals live in their own namespace inside each engine.
TRACKER_PREFIX = "track::"
