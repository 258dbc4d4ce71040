"""Pre-checks make sure that the joins of a query can be ordered by the search strategies.

The checks are applied before the actual search starts. This allows to reject unsupported input early and with a meaningful
failure reason, rather than finding out after an exponential search.

The `OptimizationPreCheck` defines the abstract interface that all checks adhere to.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass

import networkx as nx

from . import util
from .catalog import LogicalPlan

CrossProductFailure = "CROSS_PRODUCT"


@dataclass
class PreCheckResult:
    """Wrapper for a validation result.

    Attributes
    ----------
    passed : bool
        Indicates whether problems were detected
    failure_reason : str, optional
        Gives details about the problem that was detected
    """

    passed: bool = True
    failure_reason: str = ""

    @staticmethod
    def with_all_passed() -> PreCheckResult:
        return PreCheckResult()


class OptimizationPreCheck(abc.ABC):
    """The pre-check interface.

    Parameters
    ----------
    name : str
        The name of the check. It should describe what feature the check tests.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @abc.abstractmethod
    def check_supported_plan(self, plan: LogicalPlan) -> PreCheckResult:
        """Validates that the joins of a logical plan can be handled by the join ordering."""
        raise NotImplementedError

    @abc.abstractmethod
    def describe(self) -> util.jsondict:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"OptimizationPreCheck [{self.name}]"

    def __str__(self) -> str:
        return self.name


class CrossProductPreCheck(OptimizationPreCheck):
    """Check to assert that the joins connect all tables of the query, i.e. no cross product is required."""

    def __init__(self) -> None:
        super().__init__("no-cross-products")

    def check_supported_plan(self, plan: LogicalPlan) -> PreCheckResult:
        join_graph = plan.join_graph()
        if not join_graph:
            return PreCheckResult.with_all_passed()
        no_cross_products = nx.is_connected(join_graph)
        failure_reason = "" if no_cross_products else CrossProductFailure
        return PreCheckResult(no_cross_products, failure_reason)

    def describe(self) -> util.jsondict:
        return {"name": "no_cross_products"}
