"""Decode puzzle input from JSON files or standard input.

Every loader parses and validates the whole document before returning, so
encoders never see a partially valid record.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

from ..core.exceptions import InputError
from ..core.models import Nanobot, NonogramPuzzle, Person, Restaurant, RestaurantPuzzle
from ..puzzles.coloring import Graph
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

Source = Union[str, Path, TextIO, None]


def read_json(source: Source = None) -> Any:
    """Parse JSON from a path, an open stream, or stdin when ``source`` is None."""

    if source is None:
        stream, label = sys.stdin, "<stdin>"
        text = stream.read()
    elif isinstance(source, (str, Path)):
        path = Path(source)
        label = str(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InputError(f"Cannot read {label}: {exc}") from exc
    else:
        label = getattr(source, "name", "<stream>")
        text = source.read()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(f"{label} is not valid JSON: {exc}") from exc
    LOGGER.debug("Loaded JSON document from %s", label)
    return data


# ----------------------------------------------------------------------
# Field helpers
# ----------------------------------------------------------------------
def _require(doc: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(doc, dict):
        raise InputError(f"{where} must be an object")
    if key not in doc:
        raise InputError(f"{where} is missing required field {key!r}")
    return doc[key]


def _int(value: Any, where: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputError(f"{where} must be an integer, got {value!r}")
    if minimum is not None and value < minimum:
        raise InputError(f"{where} must be >= {minimum}, got {value}")
    return value


def _bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise InputError(f"{where} must be true or false, got {value!r}")
    return value


def _str(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise InputError(f"{where} must be a non-empty string, got {value!r}")
    return value


def _int_list(value: Any, where: str, minimum: Optional[int] = None) -> List[int]:
    if not isinstance(value, list):
        raise InputError(f"{where} must be a list, got {value!r}")
    return [_int(item, f"{where}[{i}]", minimum) for i, item in enumerate(value)]


# ----------------------------------------------------------------------
# Record decoders
# ----------------------------------------------------------------------
def parse_nonogram(doc: Any) -> NonogramPuzzle:
    rows = _int(_require(doc, "rows", "puzzle"), "rows", minimum=1)
    cols = _int(_require(doc, "cols", "puzzle"), "cols", minimum=1)
    row_clues_raw = _require(doc, "row_clues", "puzzle")
    col_clues_raw = _require(doc, "col_clues", "puzzle")
    if not isinstance(row_clues_raw, list) or len(row_clues_raw) != rows:
        raise InputError(f"row_clues must list exactly {rows} clue(s)")
    if not isinstance(col_clues_raw, list) or len(col_clues_raw) != cols:
        raise InputError(f"col_clues must list exactly {cols} clue(s)")
    row_clues = [_int_list(clue, f"row_clues[{r}]", minimum=0) for r, clue in enumerate(row_clues_raw)]
    col_clues = [_int_list(clue, f"col_clues[{c}]", minimum=0) for c, clue in enumerate(col_clues_raw)]
    return NonogramPuzzle(rows=rows, cols=cols, row_clues=row_clues, col_clues=col_clues)


def parse_restaurant(doc: Any) -> RestaurantPuzzle:
    budget = _int(_require(doc, "budget", "puzzle"), "budget")
    restaurants_raw = _require(doc, "restaurants", "puzzle")
    people_raw = _require(doc, "people", "puzzle")
    if not isinstance(restaurants_raw, list) or not restaurants_raw:
        raise InputError("restaurants must be a non-empty list")
    if not isinstance(people_raw, list):
        raise InputError("people must be a list")

    restaurants = []
    for i, entry in enumerate(restaurants_raw):
        where = f"restaurants[{i}]"
        restaurants.append(
            Restaurant(
                name=_str(_require(entry, "name", where), f"{where}.name"),
                cost=_int(_require(entry, "cost", where), f"{where}.cost", minimum=0),
                vegan=_bool(_require(entry, "vegan", where), f"{where}.vegan"),
            )
        )

    people = []
    for i, entry in enumerate(people_raw):
        where = f"people[{i}]"
        ratings = _int_list(_require(entry, "ratings", where), f"{where}.ratings")
        if len(ratings) != len(restaurants):
            raise InputError(
                f"{where}.ratings has {len(ratings)} entries for {len(restaurants)} restaurant(s)"
            )
        people.append(
            Person(
                name=_str(_require(entry, "name", where), f"{where}.name"),
                is_vegan=_bool(_require(entry, "is_vegan", where), f"{where}.is_vegan"),
                ratings=ratings,
            )
        )
    return RestaurantPuzzle(budget=budget, restaurants=restaurants, people=people)


def parse_nanobots(doc: Any) -> List[Nanobot]:
    entries = doc.get("bots") if isinstance(doc, dict) else doc
    if not isinstance(entries, list) or not entries:
        raise InputError("nanobot input must be a non-empty list (or an object with a 'bots' list)")
    bots = []
    for i, entry in enumerate(entries):
        where = f"bots[{i}]"
        bots.append(
            Nanobot(
                x=_int(_require(entry, "x", where), f"{where}.x"),
                y=_int(_require(entry, "y", where), f"{where}.y"),
                z=_int(_require(entry, "z", where), f"{where}.z"),
                r=_int(_require(entry, "r", where), f"{where}.r", minimum=0),
            )
        )
    return bots


def parse_graph(doc: Any) -> Graph:
    num_nodes = _int(_require(doc, "num_nodes", "graph"), "num_nodes", minimum=0)
    edges_raw = _require(doc, "edges", "graph")
    if not isinstance(edges_raw, list):
        raise InputError(f"edges must be a list, got {edges_raw!r}")
    edges = []
    for i, entry in enumerate(edges_raw):
        pair = _int_list(entry, f"edges[{i}]", minimum=0)
        if len(pair) != 2:
            raise InputError(f"edges[{i}] must hold exactly two node indices")
        if max(pair) >= num_nodes:
            raise InputError(f"edges[{i}] references a node outside 0..{num_nodes - 1}")
        edges.append((pair[0], pair[1]))
    return Graph(num_nodes=num_nodes, edges=edges)


def load_nonogram(source: Source = None) -> NonogramPuzzle:
    return parse_nonogram(read_json(source))


def load_restaurant(source: Source = None) -> RestaurantPuzzle:
    return parse_restaurant(read_json(source))


def load_nanobots(source: Source = None) -> List[Nanobot]:
    return parse_nanobots(read_json(source))


def load_graph(source: Source = None) -> Graph:
    return parse_graph(read_json(source))
