"""Orchestration layer for solving discrete puzzles with constraint engines.

This package exposes the public API surface via:

- ``puzzlekit.engine.context.ConstraintContext``: one incremental solving session.
- ``puzzlekit.engine.enumerator.SolutionEnumerator``: distinct solutions via blocking clauses.
- ``puzzlekit.engine.objectives.WeightedObjectiveManager``: soft constraints and objectives.
- ``puzzlekit.engine.search.BacktrackingSearch``: chronological backtracking over scopes.
- ``puzzlekit.engine.line_encoder`` helpers: run-length line and grid constraints.

Formulas are built from ``puzzlekit.core.expr`` and run on z3 or OR-Tools CP-SAT.
"""

from .core.config import SolverConfig
from .core.constants import CheckResult, Engine, Sense, VarType
from .core.expr import Abs, And, Distinct, If, Implies, Not, Or, Sum, Variable
from .core.models import Model
from .engine.context import ConstraintContext
from .engine.enumerator import SolutionEnumerator, iter_solutions
from .engine.line_encoder import encode_grid, encode_line
from .engine.objectives import WeightedObjectiveManager
from .engine.search import BacktrackingSearch, SearchResult

__all__ = [
    "Abs",
    "And",
    "BacktrackingSearch",
    "CheckResult",
    "ConstraintContext",
    "Distinct",
    "Engine",
    "If",
    "Implies",
    "Model",
    "Not",
    "Or",
    "SearchResult",
    "Sense",
    "SolutionEnumerator",
    "SolverConfig",
    "Sum",
    "VarType",
    "Variable",
    "WeightedObjectiveManager",
    "encode_grid",
    "encode_line",
    "iter_solutions",
]

__version__ = "0.1.0"
