"""Dynamic programming-based join ordering over subsets of the joins.

The enumerator computes the best left-deep plan for each subset of the joins, in increasing order of subset size. The plan
for a subset *S* is obtained by appending one of its joins *j* to the best plan of *S \\ {j}*, which has been computed in the
previous level. All plans are stored in a `PlanCache`.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Optional

from .. import util
from .._core import NoFeasiblePlanError
from .._stages import JoinOrderStrategy
from ..joins import JoinDescriptor
from ..plancache import CostCard, PlanCache
from ..util import collections as collection_utils
from ._subplans import SubplanCosting


class DynamicProgrammingJoinOrder(JoinOrderStrategy):
    """Selects the cheapest left-deep plan that can be built from the best plans of smaller subsets.

    For each subset size *k = 1, ..., n* all subsets of exactly *k* joins are enumerated. For each join *j* of such a subset
    *S*, the cached best plan for *S \\ {j}* is extended by *j*. Extensions that would compute a cross product are skipped, as
    are extensions that are not strictly cheaper than the best plan found for *S* so far. This examines *O(2^n * n)*
    extensions, which is why this strategy should only be used for a small number of joins.

    Parameters
    ----------
    verbose : bool, optional
        Whether to log the progress of the enumeration. Defaults to *False*.
    """

    def __init__(self, *, verbose: bool = False) -> None:
        self._verbose = verbose
        self._log = util.standard_logger(verbose)

    def search(self, joins: Sequence[JoinDescriptor], costing: SubplanCosting) -> Optional[CostCard]:
        joins = tuple(joins)
        if not joins:
            return None

        cache = self.enumerate_plans(joins, costing)
        final_plan = cache.get(cache.full_key())
        if final_plan is None:
            raise NoFeasiblePlanError(joins)
        return final_plan

    def enumerate_plans(self, joins: Sequence[JoinDescriptor], costing: SubplanCosting) -> PlanCache:
        """Computes the best plan for each subset of the joins that can be ordered without a cross product.

        Each invocation fills a fresh cache, which is handed to the caller and not retained by the strategy.
        """
        cache = PlanCache(joins)
        num_joins = len(cache.joins)
        for level in range(1, num_joins + 1):
            examined, solved = 0, 0
            for subset in collection_utils.subsets_of_size(num_joins, level):
                examined += 1
                best = self._best_extension(subset, cache, costing)
                if best is not None:
                    cache.add_plan(subset, best)
                    solved += 1
            self._log(f"DP level {level}: {solved} of {examined} subsets without cross products")
        return cache

    def describe(self) -> util.jsondict:
        return {"name": "dynamic_programming"}

    def _best_extension(self, subset: collection_utils.Bitmask, cache: PlanCache,
                        costing: SubplanCosting) -> Optional[CostCard]:
        """Determines the cheapest plan for a subset by extending the cached plans of its sub-subsets by one join."""
        best: Optional[CostCard] = None
        best_cost = math.inf
        for idx in collection_utils.indexes_of(subset):
            remainder = subset & ~(1 << idx)
            prefix: Optional[CostCard] = None
            if remainder:
                prefix = cache.get(remainder)
                if prefix is None:
                    # the remaining joins cannot be ordered without a cross product
                    continue

            candidate = costing.extend(cache.joins[idx], prefix, cost_bound=best_cost)
            if candidate is not None:
                best, best_cost = candidate, candidate.cost
        return best
