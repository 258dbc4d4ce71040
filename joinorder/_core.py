"""Fundamental types and errors that are shared by all parts of the join ordering."""
from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .joins import JoinDescriptor


Cost = float
"""Type alias for a cost estimate."""

Cardinality = int
"""Type alias for a cardinality estimate, i.e. the (estimated) number of tuples in a relation."""

Selectivity = float
"""Type alias for the fraction of tuples that survive a filter predicate. Selectivities are always in [0, 1]."""

TableAlias = str
"""Type alias for the name by which a table is referenced in a query. For tables without alias, this is the table name."""


class UnknownTableError(ValueError):
    """Indicates that a table alias or a table identifier cannot be resolved.

    Without the table, no statistics can be obtained for it and hence no cost can be computed. This error is therefore always
    fatal for the current optimization.

    Parameters
    ----------
    table : str | int
        The alias or identifier that could not be resolved
    """

    def __init__(self, table: str | int) -> None:
        super().__init__(f"Unknown table {table!r}")
        self.table = table


class JoinOrderOptimizationError(RuntimeError):
    """Error to indicate that something went wrong while optimizing the join order.

    Parameters
    ----------
    message : str, optional
        A message containing more details about the specific error. Defaults to a generic message.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message if message else "Join order optimization failed")


class NoFeasiblePlanError(JoinOrderOptimizationError):
    """Indicates that the joins cannot be arranged in a left-deep plan without computing cross products.

    Parameters
    ----------
    joins : Iterable[JoinDescriptor]
        The joins that could not be integrated into the plan
    message : str, optional
        A message containing more details about the specific error
    """

    def __init__(self, joins: Iterable[JoinDescriptor], message: str = "") -> None:
        self.joins = tuple(joins)
        if not message:
            stranded = ", ".join(str(join) for join in self.joins)
            message = f"No left-deep plan without cross products for joins {stranded}"
        super().__init__(message)


class JoinOrderWarning(UserWarning):
    """Warning category for irregularities that do not prevent the join ordering, but might distort its result."""
