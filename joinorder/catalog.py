"""Provides the interfaces to the collaborators that supply the input of the join ordering.

The join ordering requires three kinds of information about the tables of a query:

- *statistics* estimate the cost of scanning a table and the number of tuples that remain after filtering it. They are
  accessed via the `TableStatistics` protocol and referenced by base table name.
- the *catalog* maps table identifiers to table names and primary keys.
- the *logical plan* contains the join descriptors of the query as well as the mapping from table aliases to table
  identifiers.

All of these are read-only during the optimization. `BasicTableStatistics` is a simple implementation of the statistics
protocol that is sufficient whenever the statistics are computed elsewhere.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional, Protocol

import networkx as nx

from ._core import Cardinality, Cost, Selectivity, TableAlias, UnknownTableError
from .joins import JoinDescriptor
from .util.jsonize import jsondict


class TableStatistics(Protocol):
    """Statistics of a single base table."""

    def estimate_scan_cost(self) -> Cost:
        """Estimates the cost of a full scan of the table."""
        ...

    def estimate_table_cardinality(self, selectivity: Selectivity) -> Cardinality:
        """Estimates the number of tuples of the table that pass a filter with the given selectivity."""
        ...


@dataclass(frozen=True)
class BasicTableStatistics:
    """Statistics that are described by the total number of tuples and the cost of a full scan.

    Attributes
    ----------
    num_tuples : int
        The total number of tuples in the table
    scan_cost : Cost
        The cost of one full scan of the table
    """

    num_tuples: int
    scan_cost: Cost

    @staticmethod
    def from_pages(num_tuples: int, num_pages: int, *, io_cost_per_page: Cost = 1000.0) -> BasicTableStatistics:
        """Derives the scan cost from the number of pages that have to be read, assuming a fixed I/O cost per page."""
        return BasicTableStatistics(num_tuples, num_pages * io_cost_per_page)

    def __post_init__(self) -> None:
        if self.num_tuples < 0:
            raise ValueError(f"Number of tuples cannot be negative: {self.num_tuples}")
        if self.scan_cost < 0:
            raise ValueError(f"Scan cost cannot be negative: {self.scan_cost}")

    def estimate_scan_cost(self) -> Cost:
        return self.scan_cost

    def estimate_table_cardinality(self, selectivity: Selectivity) -> Cardinality:
        return math.floor(self.num_tuples * selectivity)


@dataclass(frozen=True)
class TableInfo:
    """Catalog entry of a single base table."""
    table_id: int
    name: str
    primary_key: Optional[str] = None


class Catalog:
    """The catalog stores the names and primary keys of all base tables.

    Tables are identified by numeric ids. If no id is given when registering a table, the next free id is used.
    """

    def __init__(self, tables: Iterable[TableInfo] = ()) -> None:
        self._tables: dict[int, TableInfo] = {}
        self._ids_by_name: dict[str, int] = {}
        for table in tables:
            self._register(table)

    def add_table(self, name: str, *, primary_key: Optional[str] = None, table_id: Optional[int] = None) -> int:
        """Registers a new base table.

        Parameters
        ----------
        name : str
            The name of the table. Must be unique within the catalog.
        primary_key : Optional[str], optional
            The pure name of the primary key column. Tables without primary key can omit this.
        table_id : Optional[int], optional
            The id of the new table. Defaults to the next free id.

        Returns
        -------
        int
            The id of the table
        """
        table_id = table_id if table_id is not None else max(self._tables, default=-1) + 1
        self._register(TableInfo(table_id, name, primary_key))
        return table_id

    def table_id(self, name: str) -> int:
        if name not in self._ids_by_name:
            raise UnknownTableError(name)
        return self._ids_by_name[name]

    def table_name(self, table_id: int) -> str:
        return self._lookup(table_id).name

    def primary_key(self, table_id: int) -> Optional[str]:
        return self._lookup(table_id).primary_key

    def tables(self) -> list[TableInfo]:
        return list(self._tables.values())

    def _register(self, table: TableInfo) -> None:
        if table.table_id in self._tables:
            raise ValueError(f"Duplicate table id {table.table_id} for table {table.name}")
        if table.name in self._ids_by_name:
            raise ValueError(f"Table {table.name} is already registered")
        self._tables[table.table_id] = table
        self._ids_by_name[table.name] = table.table_id

    def _lookup(self, table_id: int) -> TableInfo:
        if table_id not in self._tables:
            raise UnknownTableError(table_id)
        return self._tables[table_id]

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"Catalog({', '.join(table.name for table in self._tables.values())})"


class LogicalPlan:
    """The logical plan captures the joins of a single query and the tables they reference.

    Parameters
    ----------
    joins : Iterable[JoinDescriptor]
        The join conditions of the query, in the order in which they appear in the query
    aliases : Mapping[TableAlias, int]
        Maps each table alias of the query to the id of its base table. Tables without an alias are referenced by their name.
    query : str, optional
        The text of the query, used for descriptive purposes only
    """

    def __init__(self, joins: Iterable[JoinDescriptor], aliases: Mapping[TableAlias, int], *, query: str = "") -> None:
        self._joins = tuple(joins)
        self._aliases = dict(aliases)
        self.query = query

    @property
    def joins(self) -> tuple[JoinDescriptor, ...]:
        return self._joins

    def aliases(self) -> dict[TableAlias, int]:
        return dict(self._aliases)

    def table_id(self, alias: TableAlias) -> int:
        """Resolves a table alias to the id of its base table.

        Raises
        ------
        UnknownTableError
            If the alias is not part of the query
        """
        if alias not in self._aliases:
            raise UnknownTableError(alias)
        return self._aliases[alias]

    def join_graph(self) -> nx.Graph:
        """Provides the join graph of the query.

        Each alias that appears in a join is a node of the graph. Each ordinary join adds an edge between its tables. Subquery
        joins only contribute their left table.
        """
        graph = nx.Graph()
        for join in self._joins:
            graph.add_nodes_from(join.tables())
            if not join.is_subquery_join:
                graph.add_edge(join.left_alias, join.right_alias)
        return graph

    def __json__(self) -> jsondict:
        return {"query": self.query, "joins": list(self._joins), "aliases": self._aliases}

    def __repr__(self) -> str:
        return f"LogicalPlan(joins={list(self._joins)}, aliases={self._aliases})"
