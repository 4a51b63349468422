"""Graph coloring through chronological backtracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.config import SolverConfig
from ..core.constants import CheckResult
from ..engine.context import ConstraintContext
from ..engine.search import BacktrackingSearch, SearchResult
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass
class Graph:
    num_nodes: int
    edges: List[Tuple[int, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.num_nodes < 0:
            raise ValueError("num_nodes must be non-negative")
        for u, v in self.edges:
            if not (0 <= u < self.num_nodes and 0 <= v < self.num_nodes):
                raise ValueError(f"Edge ({u}, {v}) references a node outside 0..{self.num_nodes - 1}")


def petersen_graph() -> Graph:
    """Outer 5-cycle, five spokes, and an inner pentagram."""

    outer = [(i, (i + 1) % 5) for i in range(5)]
    spokes = [(i, i + 5) for i in range(5)]
    inner = [(5, 7), (7, 9), (9, 6), (6, 8), (8, 5)]
    return Graph(num_nodes=10, edges=outer + spokes + inner)


def cycle_graph(n: int) -> Graph:
    return Graph(num_nodes=n, edges=[(i, (i + 1) % n) for i in range(n)] if n > 1 else [])


@dataclass
class ColoringResult:
    status: CheckResult
    colors: Dict[int, int] = field(default_factory=dict)
    search: Optional[SearchResult] = None

    def is_proper(self, graph: Graph) -> bool:
        return bool(self.colors) and all(self.colors[u] != self.colors[v] for u, v in graph.edges)


def color_graph(
    graph: Graph,
    num_colors: int = 3,
    config: Optional[SolverConfig] = None,
    context: Optional[ConstraintContext] = None,
) -> ColoringResult:
    """Assign colors ``1..num_colors`` so that no edge joins equal colors."""

    if num_colors < 1:
        raise ValueError("num_colors must be at least 1")
    context = context or ConstraintContext(config)
    LOGGER.info("coloring %d node(s), %d edge(s) with %d color(s)", graph.num_nodes, len(graph.edges), num_colors)
    with context.scope():
        nodes = [context.int_var(f"node_{i}", 1, num_colors) for i in range(graph.num_nodes)]
        for u, v in graph.edges:
            context.add(nodes[u] != nodes[v])
        search = BacktrackingSearch(context, nodes, range(1, num_colors + 1))
        outcome = search.run()
        search.unwind()

    colors = {}
    if outcome.solved:
        colors = {i: int(outcome.assignment[node.name]) for i, node in enumerate(nodes)}
    return ColoringResult(status=outcome.status, colors=colors, search=outcome)
