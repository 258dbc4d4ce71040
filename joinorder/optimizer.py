"""The search driver that selects and runs the join order strategy for a query.

Typical usage::

    optimizer = JoinOptimizer(logical_plan, catalog)
    join_order = optimizer.order_joins(table_stats, filter_selectivities)
    for join in join_order:
        ...

Small queries are optimized by dynamic programming. Once the number of joins exceeds the greedy threshold, the exponential
effort of the dynamic programming becomes prohibitive and the greedy strategy is used instead.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Optional, overload

from . import util
from ._core import Cardinality, Cost, NoFeasiblePlanError, Selectivity, TableAlias
from ._stages import JoinOrderStrategy
from .catalog import Catalog, LogicalPlan, TableStatistics
from .joins import JoinDescriptor
from .plancache import CostCard
from .strategies import DynamicProgrammingJoinOrder, GreedyJoinOrder, SubplanCosting
from .validation import CrossProductPreCheck, OptimizationPreCheck

DefaultGreedyThreshold = 10
"""Queries with more joins than this are optimized by the greedy strategy instead of dynamic programming."""


@dataclass(frozen=True)
class JoinOrder(Sequence[JoinDescriptor]):
    """The result of the join ordering: the joins in left-deep execution order.

    Each join is in its selected orientation, i.e. its left table is the outer relation of the join. The first join combines
    two base tables, each subsequent join combines the result of the previous joins with another base table.

    Attributes
    ----------
    joins : tuple[JoinDescriptor, ...]
        The joins in execution order
    costs : tuple[Cost, ...]
        The estimated cost of each prefix of the plan, i.e. ``costs[i]`` is the cost of executing the first *i + 1* joins
    cardinalities : tuple[Cardinality, ...]
        The estimated cardinality of each prefix of the plan
    strategy : str
        The name of the strategy that produced the order
    """

    joins: tuple[JoinDescriptor, ...] = ()
    costs: tuple[Cost, ...] = ()
    cardinalities: tuple[Cardinality, ...] = ()
    strategy: str = ""

    @staticmethod
    def from_card(card: Optional[CostCard], *, strategy: str = "") -> JoinOrder:
        """Builds the join order that corresponds to the plan of a cost card. *None* cards describe an empty join order."""
        if card is None:
            return JoinOrder(strategy=strategy)
        history = card.history()
        return JoinOrder(card.plan, tuple(prefix.cost for prefix in history),
                         tuple(prefix.cardinality for prefix in history), strategy)

    @property
    def cost(self) -> Cost:
        """Get the estimated cost of the entire plan. Empty plans do not cost anything."""
        return self.costs[-1] if self.costs else 0.0

    @property
    def cardinality(self) -> Cardinality:
        """Get the estimated cardinality of the final join result. Empty plans have a cardinality of 0."""
        return self.cardinalities[-1] if self.cardinalities else 0

    def tables(self) -> list[TableAlias]:
        """Provides all tables in the order in which they are joined."""
        tables: list[TableAlias] = []
        for join in self.joins:
            tables.extend(table for table in join.tables() if table not in tables)
        return tables

    def inspect(self) -> str:
        """Provides a human-readable representation of the plan, with the estimates of each join step."""
        if not self.joins:
            return "Empty join order"
        header = f"Join order ({self.strategy})" if self.strategy else "Join order"
        lines = [f"{header}: cost={self.cost:.1f} card={self.cardinality}"]
        step_width = len(str(len(self.joins)))
        for step, (join, step_cost, step_card) in enumerate(zip(self.joins, self.costs, self.cardinalities), start=1):
            lines.append(f"  {step:>{step_width}}. {str(join):<40} cost={step_cost:.1f} card={step_card}")
        return "\n".join(lines)

    @overload
    def __getitem__(self, index: int) -> JoinDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[JoinDescriptor]: ...

    def __getitem__(self, index):
        return self.joins[index]

    def __iter__(self) -> Iterator[JoinDescriptor]:
        return iter(self.joins)

    def __len__(self) -> int:
        return len(self.joins)

    def __json__(self) -> util.jsondict:
        return {"strategy": self.strategy, "cost": self.cost, "cardinality": self.cardinality,
                "joins": [{**join.__json__(), "cost": step_cost, "cardinality": step_card}
                          for join, step_cost, step_card in zip(self.joins, self.costs, self.cardinalities)]}

    def __str__(self) -> str:
        return " -> ".join(str(join) for join in self.joins)


class JoinOptimizer:
    """Computes the left-deep join order of a query.

    Parameters
    ----------
    plan : LogicalPlan
        The joins of the query and its table aliases
    catalog : Catalog
        Provides table names and primary keys of the base tables
    greedy_threshold : int, optional
        Queries with more joins are ordered by the greedy strategy, all others by dynamic programming. Defaults to 10.
    close_cycles : bool, optional
        Whether joins between two tables that are both already part of a partial plan may extend that plan. By default this
        is not allowed, which prevents cyclic join graphs from being ordered.
    verbose : bool, optional
        Whether to log the progress of the optimization to stderr. Defaults to *False*.
    """

    def __init__(self, plan: LogicalPlan, catalog: Catalog, *, greedy_threshold: int = DefaultGreedyThreshold,
                 close_cycles: bool = False, verbose: bool = False) -> None:
        if greedy_threshold < 0:
            raise ValueError(f"Greedy threshold cannot be negative: {greedy_threshold}")
        self.plan = plan
        self.catalog = catalog
        self.greedy_threshold = greedy_threshold
        self.close_cycles = close_cycles
        self._verbose = verbose
        self._log = util.standard_logger(verbose)

    def select_strategy(self) -> JoinOrderStrategy:
        """Provides a fresh instance of the strategy that is used for the joins of the current plan."""
        if len(self.plan.joins) > self.greedy_threshold:
            return GreedyJoinOrder(verbose=self._verbose)
        return DynamicProgrammingJoinOrder(verbose=self._verbose)

    def order_joins(self, stats: Mapping[str, TableStatistics],
                    filter_selectivities: Mapping[TableAlias, Selectivity]) -> JoinOrder:
        """Computes the join order for the current plan.

        Parameters
        ----------
        stats : Mapping[str, TableStatistics]
            The statistics of all base tables, referenced by table name (not alias)
        filter_selectivities : Mapping[TableAlias, Selectivity]
            The selectivities of the filter predicates on each table, referenced by alias (or table name if no alias is
            given). Tables without filters have a selectivity of 1.

        Returns
        -------
        JoinOrder
            The joins in the order in which they should be executed

        Raises
        ------
        UnknownTableError
            If a join references a table that is not part of the logical plan or the catalog
        NoFeasiblePlanError
            If the joins cannot be ordered without a cross product
        ValueError
            If statistics or selectivities are missing or invalid
        """
        costing = SubplanCosting(self.plan, self.catalog, stats, filter_selectivities, close_cycles=self.close_cycles)

        check_result = self.pre_check().check_supported_plan(self.plan)
        if not check_result.passed:
            raise NoFeasiblePlanError(self.plan.joins,
                                      f"Join graph is not supported: {check_result.failure_reason}")

        strategy = self.select_strategy()
        self._log(f"Ordering {len(self.plan.joins)} joins with strategy {strategy}")
        final_card = strategy.search(self.plan.joins, costing)
        join_order = JoinOrder.from_card(final_card, strategy=strategy.describe()["name"])
        self._log(f"Selected join order {join_order} (cost={join_order.cost}, card={join_order.cardinality})")
        return join_order

    def pre_check(self) -> OptimizationPreCheck:
        """Provides the requirements that the logical plan has to satisfy for the join ordering to succeed."""
        return CrossProductPreCheck()

    def describe(self) -> util.jsondict:
        return {"name": "join_optimizer",
                "greedy_threshold": self.greedy_threshold,
                "close_cycles": self.close_cycles,
                "strategy": self.select_strategy().describe(),
                "pre_check": self.pre_check().describe()}

    def __repr__(self) -> str:
        return f"JoinOptimizer(joins={len(self.plan.joins)}, greedy_threshold={self.greedy_threshold})"
