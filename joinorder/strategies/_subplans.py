"""Shared logic to compute the cost of appending a join to a partial left-deep plan.

Both the greedy and the dynamic programming search grow plans one join at a time. For each candidate join, one of its tables
has to be produced by the plan so far, while the other table is scanned from scratch. The `SubplanCosting` determines cost,
cardinality and primary key status of both sides, decides on the cheaper inner/outer orientation and produces the card of the
extended plan.
"""
from __future__ import annotations

import math
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from ..cost import estimate_join_cardinality, estimate_join_cost
from .._core import Cardinality, Cost, JoinOrderWarning, Selectivity, TableAlias
from ..catalog import Catalog, LogicalPlan, TableStatistics
from ..joins import JoinDescriptor
from ..plancache import CostCard
from ..util.jsonize import jsondict


@dataclass(frozen=True)
class JoinInput:
    """Describes one input of a join: either a base table scan or the result of a partial plan."""
    cost: Cost
    cardinality: Cardinality
    pkey: bool

    @staticmethod
    def empty() -> JoinInput:
        """The input on the opaque side of a subquery join."""
        return JoinInput(0.0, 0, False)


@dataclass(frozen=True)
class _Orientation:
    """A join in a specific inner/outer orientation, along with the inputs in that orientation."""
    join: JoinDescriptor
    outer: JoinInput
    inner: JoinInput
    cost: Cost

    def cardinality(self) -> Cardinality:
        return estimate_join_cardinality(self.join, self.outer.cardinality, self.inner.cardinality,
                                         self.outer.pkey, self.inner.pkey)


class SubplanCosting:
    """Estimates the cost of extending partial plans by additional joins.

    All input data is resolved eagerly: if a join references a table alias that is not part of the logical plan, or a table
    that is not known to the catalog, the costing cannot be created.

    Parameters
    ----------
    plan : LogicalPlan
        The joins of the query and the alias mapping
    catalog : Catalog
        Provides table names and primary keys
    stats : Mapping[str, TableStatistics]
        The statistics of all base tables, referenced by base table name
    filter_selectivities : Mapping[TableAlias, Selectivity]
        The selectivity of the filter predicates on each table, referenced by alias
    close_cycles : bool, optional
        How to handle joins whose tables are both part of the plan already. By default, such joins cannot extend the plan.
        If enabled, they are joined against the plan on their left side.

    Raises
    ------
    UnknownTableError
        If a join references an unknown table
    ValueError
        If statistics or selectivities are missing for a table, or a selectivity is not in [0, 1]
    """

    def __init__(self, plan: LogicalPlan, catalog: Catalog, stats: Mapping[str, TableStatistics],
                 filter_selectivities: Mapping[TableAlias, Selectivity], *, close_cycles: bool = False) -> None:
        self._plan = plan
        self._catalog = catalog
        self._stats = stats
        self._selectivities = filter_selectivities
        self._close_cycles = close_cycles

        self._scans: dict[TableAlias, tuple[Cost, Cardinality]] = {}
        self._pkeys: dict[TableAlias, Optional[str]] = {}
        for join in plan.joins:
            for alias in join.tables():
                self._resolve(alias)

    @property
    def close_cycles(self) -> bool:
        return self._close_cycles

    def scan(self, alias: Optional[TableAlias], field: Optional[str]) -> JoinInput:
        """Provides the input for a fresh scan of a base table.

        If the alias is *None* (i.e. the opaque side of a subquery join), an empty input is provided.
        """
        if alias is None:
            return JoinInput.empty()
        scan_cost, cardinality = self._resolve(alias)
        return JoinInput(scan_cost, cardinality, self.is_pkey(alias, field))

    def is_pkey(self, alias: TableAlias, field: Optional[str]) -> bool:
        """Checks, whether a field is the primary key of the table that is referenced by an alias."""
        if field is None:
            return False
        self._resolve(alias)
        pkey = self._pkeys[alias]
        return pkey is not None and pkey == field

    def has_pkey(self, plan: tuple[JoinDescriptor, ...]) -> bool:
        """Checks, whether any join of a plan joins on a primary key."""
        return any(self.is_pkey(join.left_alias, join.left_field)
                   or (not join.is_subquery_join and self.is_pkey(join.right_alias, join.right_field))
                   for join in plan)

    def extend(self, join: JoinDescriptor, prefix: Optional[CostCard], *,
               cost_bound: Cost = math.inf) -> Optional[CostCard]:
        """Computes the card of the plan that appends a join to a partial plan.

        Parameters
        ----------
        join : JoinDescriptor
            The join to append
        prefix : Optional[CostCard]
            The partial plan. *None* or an empty plan if the join should be the first join.
        cost_bound : Cost, optional
            Extensions that are not strictly cheaper than the bound are discarded. Defaults to no bound.

        Returns
        -------
        Optional[CostCard]
            The card of the extended plan, with the join in its cheaper orientation. *None* if the join cannot extend the plan
            without a cross product, or if the extended plan is not cheaper than the bound.
        """
        if prefix is None or not prefix.plan:
            prefix = None
            left = self.scan(join.left_alias, join.left_field)
            right = self.scan(join.right_alias, join.right_field)
        else:
            sides = self._attach(join, prefix)
            if sides is None:
                return None
            left, right = sides

        chosen = self._choose_orientation(join, left, right)
        if chosen.cost >= cost_bound:
            return None

        plan = prefix.plan + (chosen.join,) if prefix is not None else (chosen.join,)
        return CostCard(plan, chosen.cost, chosen.cardinality(), prefix)

    def describe(self) -> jsondict:
        return {"close_cycles": self._close_cycles}

    def _attach(self, join: JoinDescriptor, prefix: CostCard) -> Optional[tuple[JoinInput, JoinInput]]:
        """Determines the inputs of a join that is appended to a non-empty plan, or *None* for cross products."""
        tables = prefix.tables()
        left_joined = join.left_alias in tables
        right_joined = not join.is_subquery_join and join.right_alias in tables

        if left_joined and right_joined and not self._close_cycles:
            return None

        if left_joined:
            left = JoinInput(prefix.cost, prefix.cardinality, self.has_pkey(prefix.plan))
            right = self.scan(join.right_alias, join.right_field)
            return left, right
        if right_joined:
            left = self.scan(join.left_alias, join.left_field)
            right = JoinInput(prefix.cost, prefix.cardinality, self.has_pkey(prefix.plan))
            return left, right

        return None

    def _choose_orientation(self, join: JoinDescriptor, left: JoinInput, right: JoinInput) -> _Orientation:
        original = _Orientation(join, left, right,
                                estimate_join_cost(join, left.cardinality, right.cardinality, left.cost, right.cost))
        swapped_join = join.swap_inner_outer()
        swapped_cost = estimate_join_cost(swapped_join, right.cardinality, left.cardinality, right.cost, left.cost)
        if swapped_cost >= original.cost:
            return original

        if join.is_subquery_join:
            # the descriptor has no right side to exchange, the table side stays the outer input of the cardinality
            return _Orientation(join, left, right, swapped_cost)
        return _Orientation(swapped_join, right, left, swapped_cost)

    def _resolve(self, alias: TableAlias) -> tuple[Cost, Cardinality]:
        if alias in self._scans:
            return self._scans[alias]

        table_id = self._plan.table_id(alias)
        table_name = self._catalog.table_name(table_id)
        if table_name not in self._stats:
            raise ValueError(f"No statistics for table {table_name} (alias {alias})")
        if alias not in self._selectivities:
            raise ValueError(f"No filter selectivity for table {alias}")
        selectivity = self._selectivities[alias]
        if not 0.0 <= selectivity <= 1.0:
            raise ValueError(f"Selectivity of table {alias} must be in [0, 1], not {selectivity}")

        table_stats = self._stats[table_name]
        scan_cost = table_stats.estimate_scan_cost()
        cardinality = table_stats.estimate_table_cardinality(selectivity)
        if cardinality == 0 and selectivity > 0.0:
            warnings.warn(f"Table {alias} is estimated to be empty after filtering", category=JoinOrderWarning)

        self._scans[alias] = (scan_cost, cardinality)
        self._pkeys[alias] = self._catalog.primary_key(table_id)
        return scan_cost, cardinality
