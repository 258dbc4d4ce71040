"""joinorder - Cost-based join order selection for left-deep query plans.

Given the joins of a query, statistics of the base tables and the selectivities of the filter predicates, the optimizer
computes the order in which the pairwise joins should be executed, such that the total estimated cost is minimal. Each join
is executed in its cheaper inner/outer orientation.

On a high level, the package is structured as follows:

- the `joins` module models join conditions as immutable `JoinDescriptor` values
- the `catalog` module contains the interfaces to the external collaborators: table statistics, the catalog of base tables
  and the logical plan of the query
- the `cost` module contains the cost model, i.e. formulas for the cost and the result size of a join
- the `plancache` module provides the memoization of partial plans
- the `strategies` package contains the actual search algorithms, namely dynamic programming and a greedy search
- the `optimizer` module contains the `JoinOptimizer`, which selects the appropriate strategy for a query
- the `util` package contains algorithms and types that do not belong to join ordering and are more general in nature

The typical entry point is the `JoinOptimizer`::

    import joinorder as jo

    catalog = jo.Catalog()
    emp = catalog.add_table("emp", primary_key="id")
    dept = catalog.add_table("dept", primary_key="id")
    plan = jo.LogicalPlan([jo.JoinDescriptor("e", "d", "dept_id", "id")], {"e": emp, "d": dept})
    stats = {"emp": jo.BasicTableStatistics(1000, 100), "dept": jo.BasicTableStatistics(20, 3)}

    join_order = jo.JoinOptimizer(plan, catalog).order_joins(stats, {"e": 1.0, "d": 1.0})
    print(join_order.inspect())
"""

from . import cost, strategies, util, validation
from ._core import (
    Cardinality,
    Cost,
    JoinOrderOptimizationError,
    JoinOrderWarning,
    NoFeasiblePlanError,
    Selectivity,
    TableAlias,
    UnknownTableError,
)
from ._stages import JoinOrderStrategy
from .catalog import BasicTableStatistics, Catalog, LogicalPlan, TableInfo, TableStatistics
from .cost import estimate_join_cardinality, estimate_join_cost
from .joins import JoinDescriptor, JoinOperator
from .optimizer import DefaultGreedyThreshold, JoinOptimizer, JoinOrder
from .plancache import CostCard, PlanCache
from .problems import OptimizationProblem, parse_problem, read_problem
from .strategies import DynamicProgrammingJoinOrder, GreedyJoinOrder, SubplanCosting

__version__ = "0.1.0"

__all__ = [
    "cost", "strategies", "util", "validation",
    "Cardinality", "Cost", "Selectivity", "TableAlias",
    "JoinOrderOptimizationError", "JoinOrderWarning", "NoFeasiblePlanError", "UnknownTableError",
    "JoinOrderStrategy",
    "BasicTableStatistics", "Catalog", "LogicalPlan", "TableInfo", "TableStatistics",
    "estimate_join_cardinality", "estimate_join_cost",
    "JoinDescriptor", "JoinOperator",
    "DefaultGreedyThreshold", "JoinOptimizer", "JoinOrder",
    "CostCard", "PlanCache",
    "OptimizationProblem", "parse_problem", "read_problem",
    "DynamicProgrammingJoinOrder", "GreedyJoinOrder", "SubplanCosting",
]
