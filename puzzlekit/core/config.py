"""Solver configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .constants import DEFAULT_INT_BOUNDS, Engine


@dataclass
class SolverConfig:
    """Configuration values driving one solving session.

    ``timeout_seconds`` bounds every check (``None`` waits indefinitely);
    an expired check reports ``CheckResult.UNKNOWN``. ``default_int_bounds``
    only matters for CP-SAT, which needs a finite domain for integer
    variables declared without bounds.
    """

    engine: Engine = Engine.Z3
    timeout_seconds: Optional[float] = None
    default_int_bounds: Tuple[int, int] = DEFAULT_INT_BOUNDS
    num_workers: int = 4
    random_seed: Optional[int] = None
    model_completion: bool = True

    def __post_init__(self) -> None:
        self.engine = Engine(self.engine)
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        lo, hi = self.default_int_bounds
        if lo > hi:
            raise ValueError(f"Invalid default_int_bounds {self.default_int_bounds}")
        if self.num_workers < 1:
            raise ValueError("num_workers must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "SolverConfig":
        """Build a config from ``PUZZLEKIT_*`` environment variables."""

        env = os.environ if environ is None else environ
        values = {}
        engine = env.get("PUZZLEKIT_ENGINE")
        if engine:
            values["engine"] = Engine(engine.strip().lower())
        timeout = env.get("PUZZLEKIT_TIMEOUT")
        if timeout:
            values["timeout_seconds"] = float(timeout)
        workers = env.get("PUZZLEKIT_WORKERS")
        if workers:
            values["num_workers"] = int(workers)
        values.update(overrides)
        return cls(**values)
