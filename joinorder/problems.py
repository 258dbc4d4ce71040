"""Loads join ordering problems from JSON descriptions.

A problem description bundles all inputs of the join ordering. It has the following structure::

    {
        "tables": {
            "emp": {"cardinality": 1000, "scan_cost": 100, "primary_key": "id"},
            "dept": {"num_pages": 3, "cardinality": 20}
        },
        "aliases": {"e": "emp", "d": "dept"},
        "selectivities": {"e": 0.5},
        "joins": [
            {"left": "e.dept_id", "right": "d.id", "operator": "="},
            {"left": "e.salary", "subquery": true}
        ]
    }

Tables either specify their ``scan_cost`` directly or their ``num_pages`` (which are charged with ``io_cost_per_page``,
1000 by default). ``aliases`` and ``selectivities`` are optional. Without ``aliases``, each table is referenced by its name.
Once ``aliases`` are given, joins can only reference the listed aliases, just like an SQL query that declares aliases
for its tables. Aliases without a selectivity are not filtered.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ._core import Selectivity, TableAlias
from .catalog import BasicTableStatistics, Catalog, LogicalPlan, TableStatistics
from .joins import JoinDescriptor, JoinOperator


@dataclass
class OptimizationProblem:
    """All inputs that are required to order the joins of a query."""
    plan: LogicalPlan
    catalog: Catalog
    stats: dict[str, TableStatistics] = field(default_factory=dict)
    filter_selectivities: dict[TableAlias, Selectivity] = field(default_factory=dict)


def _parse_column(column: str) -> tuple[str, str]:
    alias, sep, field_name = column.partition(".")
    if not sep or not alias or not field_name:
        raise ValueError(f"Join columns must be qualified as 'table.column', not '{column}'")
    return alias, field_name


def _parse_join(spec: Mapping) -> JoinDescriptor:
    left_alias, left_field = _parse_column(spec["left"])
    operator = JoinOperator.parse(spec.get("operator", "="))
    if spec.get("subquery", False):
        return JoinDescriptor.for_subquery(left_alias, left_field, operator)
    right_alias, right_field = _parse_column(spec["right"])
    return JoinDescriptor(left_alias, right_alias, left_field, right_field, operator)


def _parse_stats(table: str, spec: Mapping) -> BasicTableStatistics:
    if "scan_cost" in spec:
        return BasicTableStatistics(spec["cardinality"], spec["scan_cost"])
    if "num_pages" in spec:
        return BasicTableStatistics.from_pages(spec["cardinality"], spec["num_pages"],
                                               io_cost_per_page=spec.get("io_cost_per_page", 1000.0))
    raise ValueError(f"Table {table} requires either a scan cost or a number of pages")


def parse_problem(description: Mapping) -> OptimizationProblem:
    """Builds an optimization problem from its (already decoded) JSON description.

    Raises
    ------
    ValueError
        If the description is incomplete or malformed
    """
    try:
        tables: Mapping[str, Mapping] = description["tables"]
        join_specs = description["joins"]
    except KeyError as e:
        raise ValueError(f"Problem description requires key {e.args[0]!r}") from e

    catalog = Catalog()
    stats: dict[str, TableStatistics] = {}
    for table_name, table_spec in tables.items():
        catalog.add_table(table_name, primary_key=table_spec.get("primary_key"))
        try:
            stats[table_name] = _parse_stats(table_name, table_spec)
        except KeyError as e:
            raise ValueError(f"Table {table_name} requires key {e.args[0]!r}") from e

    aliases = description.get("aliases") or {table_name: table_name for table_name in tables}
    alias_ids = {alias: catalog.table_id(table_name) for alias, table_name in aliases.items()}

    try:
        joins = [_parse_join(join_spec) for join_spec in join_specs]
    except KeyError as e:
        raise ValueError(f"Join requires key {e.args[0]!r}") from e

    selectivities = {alias: 1.0 for alias in aliases}
    selectivities.update(description.get("selectivities", {}))

    plan = LogicalPlan(joins, alias_ids, query=description.get("query", ""))
    return OptimizationProblem(plan, catalog, stats, selectivities)


def read_problem(path: str | Path) -> OptimizationProblem:
    """Loads an optimization problem from a JSON file. See the module documentation for the expected structure."""
    with open(path, "r") as problem_file:
        description = json.load(problem_file)
    return parse_problem(description)
