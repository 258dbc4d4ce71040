from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest

from joinorder import JoinDescriptor, JoinOperator, JoinOptimizer, UnknownTableError, parse_problem, read_problem
from joinorder.__main__ import main

ExampleProblem = {
    "tables": {
        "emp": {"cardinality": 1000, "scan_cost": 100, "primary_key": "id"},
        "dept": {"cardinality": 20, "num_pages": 3, "io_cost_per_page": 2},
        "proj": {"cardinality": 50, "scan_cost": 5}
    },
    "aliases": {"e": "emp", "d": "dept", "p": "proj"},
    "selectivities": {"e": 0.5},
    "joins": [
        {"left": "e.dept_id", "right": "d.id"},
        {"left": "p.lead", "right": "e.id", "operator": "="},
        {"left": "e.salary", "operator": ">", "subquery": True}
    ]
}


class ParseProblemTests(unittest.TestCase):
    def test_parse_example(self) -> None:
        problem = parse_problem(ExampleProblem)

        self.assertEqual(problem.plan.joins, (JoinDescriptor("e", "d", "dept_id", "id"),
                                              JoinDescriptor("p", "e", "lead", "id"),
                                              JoinDescriptor.for_subquery("e", "salary", JoinOperator.Greater)))
        self.assertEqual(problem.catalog.primary_key(problem.plan.table_id("e")), "id")
        self.assertEqual(problem.stats["dept"].estimate_scan_cost(), 6)
        self.assertEqual(problem.stats["emp"].estimate_table_cardinality(0.5), 500)
        self.assertEqual(problem.filter_selectivities, {"e": 0.5, "d": 1.0, "p": 1.0})

    def test_aliases_default_to_table_names(self) -> None:
        description = {"tables": {"r": {"cardinality": 10, "scan_cost": 10}, "s": {"cardinality": 5, "scan_cost": 5}},
                       "joins": [{"left": "r.x", "right": "s.x", "operator": "<"}]}
        problem = parse_problem(description)
        self.assertEqual(problem.plan.aliases(), {"r": 0, "s": 1})
        self.assertEqual(problem.plan.joins[0].operator, JoinOperator.Less)

    def test_explicit_aliases_replace_table_names(self) -> None:
        description = {**ExampleProblem, "aliases": {"e": "emp", "d": "dept"},
                       "joins": [{"left": "e.dept_id", "right": "d.id"}, {"left": "proj.lead", "right": "e.id"}]}
        problem = parse_problem(description)
        self.assertEqual(set(problem.plan.aliases()), {"e", "d"})
        with self.assertRaises(UnknownTableError):
            JoinOptimizer(problem.plan, problem.catalog).order_joins(problem.stats, problem.filter_selectivities)

    def test_parsed_problem_can_be_optimized(self) -> None:
        problem = parse_problem(ExampleProblem)
        join_order = JoinOptimizer(problem.plan, problem.catalog).order_joins(problem.stats,
                                                                              problem.filter_selectivities)
        self.assertEqual(len(join_order), 3)

    def test_malformed_descriptions(self) -> None:
        malformed = [
            {"joins": []},
            {"tables": {}},
            {"tables": {"r": {"scan_cost": 10}}, "joins": []},
            {"tables": {"r": {"cardinality": 10}}, "joins": []},
            {"tables": {"r": {"cardinality": 10, "scan_cost": 10}}, "joins": [{"left": "rx", "right": "r.y"}]},
            {"tables": {"r": {"cardinality": 10, "scan_cost": 10}}, "joins": [{"left": "r.x"}]},
            {"tables": {"r": {"cardinality": 10, "scan_cost": 10}}, "joins": [{"left": "r.x", "right": "r.y",
                                                                               "operator": "~"}]},
        ]
        for description in malformed:
            with self.subTest(description=description), self.assertRaises(ValueError):
                parse_problem(description)


class CommandLineTests(unittest.TestCase):
    def setUp(self) -> None:
        problem_file = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False)
        with problem_file:
            json.dump(ExampleProblem, problem_file)
        self.problem_path = problem_file.name

    def tearDown(self) -> None:
        os.remove(self.problem_path)

    def test_read_problem(self) -> None:
        problem = read_problem(self.problem_path)
        self.assertEqual(len(problem.plan.joins), 3)

    def test_text_output(self) -> None:
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            exit_code = main([self.problem_path])
        self.assertEqual(exit_code, 0)
        self.assertTrue(output.getvalue().startswith("Join order (dynamic_programming): cost="))

    def test_json_output(self) -> None:
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            exit_code = main([self.problem_path, "--json", "--greedy-threshold", "0"])
        self.assertEqual(exit_code, 0)
        join_order = json.loads(output.getvalue())
        self.assertEqual(join_order["strategy"], "greedy")
        self.assertEqual(len(join_order["joins"]), 3)

    def test_failed_optimization(self) -> None:
        with open(self.problem_path, "w") as problem_file:
            json.dump({**ExampleProblem, "joins": [{"left": "e.dept_id", "right": "d.id"},
                                                   {"left": "p.lead", "right": "p.id"}]}, problem_file)
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            exit_code = main([self.problem_path])
        self.assertEqual(exit_code, 1)
        self.assertEqual(output.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
