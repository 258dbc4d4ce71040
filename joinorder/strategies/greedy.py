"""Greedy join ordering that always appends the cheapest join next."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from .. import util
from .._core import NoFeasiblePlanError
from .._stages import JoinOrderStrategy
from ..joins import JoinDescriptor
from ..plancache import CostCard
from ._subplans import SubplanCosting


class GreedyJoinOrder(JoinOrderStrategy):
    """Builds a single left-deep plan by repeated local decisions.

    In each round, every join that is not yet part of the plan is costed as the next join of the current plan. The cheapest
    one is appended in its cheaper orientation. If multiple joins are equally cheap, the one that appears first in the input
    wins. This requires *O(n²)* cost estimations for *n* joins, but provides no guarantee regarding the optimality of the plan.

    Parameters
    ----------
    verbose : bool, optional
        Whether to log the decision of each round. Defaults to *False*.
    """

    def __init__(self, *, verbose: bool = False) -> None:
        self._verbose = verbose
        self._log = util.standard_logger(verbose)

    def search(self, joins: Sequence[JoinDescriptor], costing: SubplanCosting) -> Optional[CostCard]:
        remaining = list(joins)
        current: Optional[CostCard] = None

        while remaining:
            best_card: Optional[CostCard] = None
            best_idx = -1
            for idx, join in enumerate(remaining):
                candidate = costing.extend(join, current)
                if candidate is None:
                    continue
                if best_card is None or candidate.cost < best_card.cost:
                    best_card, best_idx = candidate, idx

            if best_card is None:
                # every remaining join would require a cross product with the current plan
                raise NoFeasiblePlanError(remaining)

            selected = remaining.pop(best_idx)
            self._log(f"Greedy round {len(best_card)}: selected {selected} as {best_card.plan[-1]}",
                      f"(cost={best_card.cost}, card={best_card.cardinality})")
            current = best_card

        return current

    def describe(self) -> util.jsondict:
        return {"name": "greedy"}
