"""Tests for the shared cost estimation of partial plans."""
from __future__ import annotations

import unittest
import warnings

from joinorder import CostCard, JoinDescriptor, JoinOrderWarning, LogicalPlan, UnknownTableError

from tests import join_fixtures
from tests.join_fixtures import ABC_A_B, ABC_B_C


class BaseCaseTests(unittest.TestCase):
    def test_scan_inputs(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        scan_a = costing.scan("a", "id")
        self.assertEqual((scan_a.cost, scan_a.cardinality, scan_a.pkey), (100.0, 100, True))
        scan_b = costing.scan("b", "a_id")
        self.assertEqual((scan_b.cost, scan_b.cardinality, scan_b.pkey), (10.0, 10, False))
        empty = costing.scan(None, None)
        self.assertEqual((empty.cost, empty.cardinality, empty.pkey), (0.0, 0, False))

    def test_first_join_picks_cheaper_orientation(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        card = costing.extend(ABC_A_B, None)

        # A as outer relation: 100 + 100 * 10 + 100 * 10 = 2100, B as outer relation: 10 + 10 * 100 + 10 * 100 = 2010
        self.assertEqual(card.plan, (ABC_A_B.swap_inner_outer(),))
        self.assertEqual(card.cost, 2010.0)
        # the primary key flag moves with A to the inner side, hence each B tuple finds at most one partner
        self.assertEqual(card.cardinality, 10)
        self.assertIsNone(card.prefix)

    def test_first_join_keeps_original_orientation(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        card = costing.extend(ABC_B_C, CostCard((), 0.0, 0))
        self.assertEqual(card.plan, (ABC_B_C,))
        self.assertEqual(card.cost, 1010.0)
        self.assertEqual(card.cardinality, 50)

    def test_filter_selectivities(self) -> None:
        problem = join_fixtures.abc_problem()
        problem.selectivities["a"] = 0.25
        card = problem.costing().extend(ABC_A_B, None)
        # A shrinks to 25 tuples: A outer costs 100 + 25 * 10 + 25 * 10 = 600, B outer costs 10 + 10 * 100 + 10 * 25 = 1260
        self.assertEqual(card.plan, (ABC_A_B,))
        self.assertEqual(card.cost, 600.0)
        self.assertEqual(card.cardinality, 10)


class ExtensionTests(unittest.TestCase):
    def test_extend_on_left_side(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        prefix = costing.extend(ABC_A_B, None)
        card = costing.extend(ABC_B_C, prefix)

        self.assertEqual(card.plan, (ABC_A_B.swap_inner_outer(), ABC_B_C))
        self.assertEqual(card.cost, 2010.0 + 10 * 50 + 10 * 50)
        self.assertEqual(card.cardinality, 50)
        self.assertIs(card.prefix, prefix)

    def test_extend_on_right_side(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        prefix = costing.extend(ABC_B_C, None)
        card = costing.extend(ABC_A_B, prefix)

        # A scanned as outer: 100 + 100 * 1010 + 100 * 50, partial plan as outer: 1010 + 50 * 100 + 50 * 100 = 11010
        self.assertEqual(card.plan, (ABC_B_C, ABC_A_B.swap_inner_outer()))
        self.assertEqual(card.cost, 11010.0)
        self.assertEqual(card.cardinality, 50)

    def test_cost_bound(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        prefix = costing.extend(ABC_A_B, None)
        self.assertIsNone(costing.extend(ABC_B_C, prefix, cost_bound=3010.0))
        self.assertIsNotNone(costing.extend(ABC_B_C, prefix, cost_bound=3010.5))

    def test_cross_product_is_rejected(self) -> None:
        problem = join_fixtures.disconnected_problem()
        costing = problem.costing()
        prefix = costing.extend(problem.joins[0], None)
        self.assertIsNone(costing.extend(problem.joins[1], prefix))

    def test_cycle_handling(self) -> None:
        problem = join_fixtures.triangle_problem()
        a_b, b_c, a_c = problem.joins

        costing = problem.costing()
        prefix = costing.extend(b_c, costing.extend(a_b, None))
        self.assertIsNone(costing.extend(a_c, prefix))

        cycle_costing = problem.costing(close_cycles=True)
        prefix = cycle_costing.extend(b_c, cycle_costing.extend(a_b, None))
        closed = cycle_costing.extend(a_c, prefix)
        self.assertIsNotNone(closed)
        self.assertEqual(len(closed.plan), 3)

    def test_primary_keys_of_partial_plans(self) -> None:
        costing = join_fixtures.abc_problem().costing()
        self.assertTrue(costing.has_pkey((ABC_A_B,)))
        self.assertTrue(costing.has_pkey((ABC_A_B.swap_inner_outer(),)))
        self.assertFalse(costing.has_pkey((ABC_B_C,)))
        self.assertFalse(costing.has_pkey(()))


class SubqueryJoinTests(unittest.TestCase):
    def test_subquery_join_is_costed_in_both_orientations(self) -> None:
        subquery = JoinDescriptor.for_subquery("a", "x")
        problem = join_fixtures.make_problem({"a": (100, 100.0, "id")}, [subquery])
        card = problem.costing().extend(subquery, None)

        # original orientation: 100 + 100 + 0 = 200, the swapped orientation only charges the scan: 0 + 0 + 100
        self.assertEqual(card.plan, (subquery,))
        self.assertEqual(card.cost, 100.0)
        self.assertEqual(card.cardinality, 100)

    def test_empty_subquery_input_keeps_original_orientation(self) -> None:
        subquery = JoinDescriptor.for_subquery("a", "x")
        problem = join_fixtures.make_problem({"a": (100, 100.0, "id")}, [subquery], {"a": 0.0})
        card = problem.costing().extend(subquery, None)
        self.assertEqual(card.plan, (subquery,))
        self.assertEqual(card.cost, 100.0)
        self.assertEqual(card.cardinality, 0)

    def test_subquery_join_on_partial_plan(self) -> None:
        a_b = JoinDescriptor("a", "b", "x", "x")
        subquery = JoinDescriptor.for_subquery("b", "y")
        problem = join_fixtures.make_problem({"a": (10, 10.0, None), "b": (20, 20.0, None)}, [a_b, subquery])
        costing = problem.costing()
        prefix = costing.extend(a_b, None)
        card = costing.extend(subquery, prefix)

        # the partial plan as outer input: 20 + 410 + 0 = 430, swapped: 0 + 0 + 410
        self.assertEqual(card.plan, (a_b, subquery))
        self.assertEqual(card.cost, prefix.cost)
        self.assertEqual(card.cardinality, prefix.cardinality)

    def test_subquery_join_respects_cost_bound(self) -> None:
        subquery = JoinDescriptor.for_subquery("a", "x")
        costing = join_fixtures.make_problem({"a": (100, 100.0, "id")}, [subquery]).costing()
        self.assertIsNone(costing.extend(subquery, None, cost_bound=100.0))
        self.assertIsNotNone(costing.extend(subquery, None, cost_bound=100.5))


class InputValidationTests(unittest.TestCase):
    def test_unknown_alias(self) -> None:
        problem = join_fixtures.abc_problem()
        problem.plan = LogicalPlan([*problem.joins, JoinDescriptor("c", "x", "id", "c_id")], problem.plan.aliases())
        with self.assertRaises(UnknownTableError) as context:
            problem.costing()
        self.assertEqual(context.exception.table, "x")

    def test_missing_statistics(self) -> None:
        problem = join_fixtures.abc_problem()
        del problem.stats["c"]
        with self.assertRaises(ValueError):
            problem.costing()

    def test_missing_selectivity(self) -> None:
        problem = join_fixtures.abc_problem()
        del problem.selectivities["b"]
        with self.assertRaises(ValueError):
            problem.costing()

    def test_invalid_selectivity(self) -> None:
        problem = join_fixtures.abc_problem()
        problem.selectivities["b"] = 1.5
        with self.assertRaises(ValueError):
            problem.costing()

    def test_empty_filter_result_warns(self) -> None:
        problem = join_fixtures.abc_problem()
        problem.selectivities["b"] = 0.05
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            problem.costing()
        self.assertTrue(any(issubclass(warning.category, JoinOrderWarning) for warning in caught))


if __name__ == "__main__":
    unittest.main()
