import io
import json
import tempfile
import unittest
from pathlib import Path

from puzzlekit.core.exceptions import InputError
from puzzlekit.io.loaders import (
    load_graph,
    load_nanobots,
    load_nonogram,
    load_restaurant,
    parse_graph,
    parse_nanobots,
    parse_nonogram,
    parse_restaurant,
    read_json,
)

RESTAURANT_DOC = {
    "budget": 100,
    "restaurants": [
        {"name": "Grill", "cost": 30, "vegan": False},
        {"name": "Greens", "cost": 20, "vegan": True},
    ],
    "people": [
        {"name": "Ann", "is_vegan": True, "ratings": [9, 5]},
        {"name": "Bob", "is_vegan": False, "ratings": [8, 6]},
    ],
}


class LoaderTests(unittest.TestCase):
    def test_load_nonogram_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "cross.json"
            path.write_text(
                json.dumps({"rows": 2, "cols": 1, "row_clues": [[1], [0]], "col_clues": [[1]]}),
                encoding="utf-8",
            )
            puzzle = load_nonogram(path)
            self.assertEqual((puzzle.rows, puzzle.cols), (2, 1))
            self.assertEqual(puzzle.row_clues, [[1], [0]])
            self.assertEqual(load_nonogram(str(path)).col_clues, [[1]])

    def test_missing_file_and_bad_json_raise_input_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(InputError):
                read_json(Path(tmpdir) / "missing.json")
        with self.assertRaises(InputError):
            read_json(io.StringIO("{not json"))

    def test_nonogram_clue_counts_must_match_dimensions(self) -> None:
        with self.assertRaises(InputError):
            parse_nonogram({"rows": 2, "cols": 1, "row_clues": [[1]], "col_clues": [[1]]})
        with self.assertRaises(InputError):
            parse_nonogram({"rows": 1, "cols": 1, "row_clues": [[-1]], "col_clues": [[1]]})
        with self.assertRaises(InputError):
            parse_nonogram({"rows": 1, "cols": 1, "row_clues": [[1]]})

    def test_restaurant_document(self) -> None:
        puzzle = load_restaurant(io.StringIO(json.dumps(RESTAURANT_DOC)))
        self.assertEqual(puzzle.budget, 100)
        self.assertEqual([r.name for r in puzzle.restaurants], ["Grill", "Greens"])
        self.assertTrue(puzzle.people[0].is_vegan)
        self.assertEqual(puzzle.people[0].happiness_at(0, puzzle.restaurants[0]), 0)
        self.assertEqual(puzzle.people[1].happiness_at(0, puzzle.restaurants[0]), 8)

    def test_restaurant_validation(self) -> None:
        broken = json.loads(json.dumps(RESTAURANT_DOC))
        broken["people"][1]["ratings"] = [8]
        with self.assertRaises(InputError):
            parse_restaurant(broken)
        with self.assertRaises(InputError):
            parse_restaurant(dict(RESTAURANT_DOC, restaurants=[]))
        with self.assertRaises(InputError):
            parse_restaurant(dict(RESTAURANT_DOC, budget="lots"))

    def test_nanobots_list_or_object(self) -> None:
        bots = [{"x": 1, "y": 2, "z": 3, "r": 4}]
        self.assertEqual(parse_nanobots(bots)[0].r, 4)
        self.assertEqual(load_nanobots(io.StringIO(json.dumps({"bots": bots})))[0].z, 3)
        with self.assertRaises(InputError):
            parse_nanobots([])
        with self.assertRaises(InputError):
            parse_nanobots([{"x": 1, "y": 2, "z": 3, "r": -1}])

    def test_graph_document(self) -> None:
        graph = load_graph(io.StringIO(json.dumps({"num_nodes": 3, "edges": [[0, 1], [1, 2]]})))
        self.assertEqual(graph.num_nodes, 3)
        self.assertEqual(graph.edges, [(0, 1), (1, 2)])
        self.assertEqual(parse_graph({"num_nodes": 0, "edges": []}).edges, [])
        for doc in (
            {"edges": []},
            {"num_nodes": -1, "edges": []},
            {"num_nodes": 2, "edges": "0-1"},
            {"num_nodes": 2, "edges": [[0]]},
            {"num_nodes": 2, "edges": [[0, 2]]},
            {"num_nodes": 2, "edges": [[0, "1"]]},
        ):
            with self.subTest(doc=doc):
                with self.assertRaises(InputError):
                    parse_graph(doc)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
