"""Command line interface to compute the join order for a problem description in JSON format."""
from __future__ import annotations

import argparse
import sys

from . import util
from ._core import JoinOrderOptimizationError
from .optimizer import DefaultGreedyThreshold, JoinOptimizer
from .problems import read_problem


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="joinorder",
                                     description="Computes a left-deep join order for the joins of a query.")
    parser.add_argument("problem", help="JSON file with tables, statistics, selectivities and joins")
    parser.add_argument("--greedy-threshold", type=int, default=DefaultGreedyThreshold,
                        help="Use the greedy search if there are more joins than this (default: %(default)s)")
    parser.add_argument("--close-cycles", action="store_true", default=False,
                        help="Allow joins between tables that are already part of the plan")
    parser.add_argument("--json", action="store_true", default=False, help="Print the join order as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", default=False, help="Log the progress of the search")

    args = parser.parse_args(argv)
    try:
        problem = read_problem(args.problem)
        optimizer = JoinOptimizer(problem.plan, problem.catalog, greedy_threshold=args.greedy_threshold,
                                  close_cycles=args.close_cycles, verbose=args.verbose)
        join_order = optimizer.order_joins(problem.stats, problem.filter_selectivities)
    except (JoinOrderOptimizationError, ValueError, OSError) as e:
        util.make_logger()(f"Join ordering failed: {e}")
        return 1

    print(util.to_json(join_order, indent=2) if args.json else join_order.inspect())
    return 0


if __name__ == "__main__":
    sys.exit(main())
