from __future__ import annotations

import abc
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from .joins import JoinDescriptor
from .plancache import CostCard
from .util.jsonize import jsondict

if TYPE_CHECKING:
    from .strategies._subplans import SubplanCosting


class JoinOrderStrategy(abc.ABC):
    """A join order strategy arranges all joins of a query in a left-deep plan.

    Strategies obtain all estimates from a `SubplanCosting`, which also decides whether a join may extend a partial plan.
    """

    @abc.abstractmethod
    def search(self, joins: Sequence[JoinDescriptor], costing: SubplanCosting) -> Optional[CostCard]:
        """Performs the actual join ordering.

        Parameters
        ----------
        joins : Sequence[JoinDescriptor]
            The joins to order
        costing : SubplanCosting
            Estimates the cost of adding a join to a partial plan

        Returns
        -------
        Optional[CostCard]
            The card of the selected plan. Each join of the input appears exactly once in the plan, possibly in its swapped
            orientation. If there are no joins to order, *None* is returned.

        Raises
        ------
        NoFeasiblePlanError
            If the joins cannot be ordered without a cross product
        """
        raise NotImplementedError

    @abc.abstractmethod
    def describe(self) -> jsondict:
        """Provides a JSON-serializable representation of the specific strategy, as well as important parameters."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return str(self)

    def __str__(self) -> str:
        return type(self).__name__
