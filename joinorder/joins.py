"""Models the join conditions of a query.

Each join condition is described by a `JoinDescriptor`: an immutable value that references a column of the left table, a
column of the right table and the comparison operator between them. The search algorithms never modify descriptors, they only
read them or produce their swapped counterparts via `JoinDescriptor.swap_inner_outer`.

Joins with a subquery are opaque to the optimizer: they only reference the column of the outer table, while the right side is
absent. Such descriptors are created via `JoinDescriptor.for_subquery`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ._core import TableAlias
from .util.jsonize import jsondict


class JoinOperator(Enum):
    """The comparison operators that can be used in a join condition."""
    Equal = "="
    NotEqual = "<>"
    Less = "<"
    LessEqual = "<="
    Greater = ">"
    GreaterEqual = ">="
    Like = "LIKE"

    @staticmethod
    def parse(symbol: str) -> JoinOperator:
        """Provides the operator that is denoted by the given symbol, e.g. ``">="``. ``"!="`` is accepted for *<>*."""
        normalized = symbol.strip().upper()
        if normalized in ("!=", "NE"):
            return JoinOperator.NotEqual
        if normalized == "==":
            return JoinOperator.Equal
        return JoinOperator(normalized)

    def mirror(self) -> JoinOperator:
        """Provides the operator that retains the semantics of a predicate if its operands are exchanged.

        For example, *a < b* is equivalent to *b > a*. Symmetric operators such as equality are their own mirror.
        """
        return _MirroredOperators.get(self, self)

    def is_equality(self) -> bool:
        return self == JoinOperator.Equal

    def __str__(self) -> str:
        return self.value


_MirroredOperators = {
    JoinOperator.Less: JoinOperator.Greater,
    JoinOperator.Greater: JoinOperator.Less,
    JoinOperator.LessEqual: JoinOperator.GreaterEqual,
    JoinOperator.GreaterEqual: JoinOperator.LessEqual,
}


@dataclass(frozen=True)
class JoinDescriptor:
    """Describes a single join condition of the form *left_alias.left_field <operator> right_alias.right_field*.

    Descriptors are immutable and compared by value. Two descriptors are equal if they reference the same tables, the same
    fields and use the same operator. A descriptor and its swapped counterpart are generally *not* equal.

    Attributes
    ----------
    left_alias : TableAlias
        The alias of the left (outer) table. Never empty.
    right_alias : Optional[TableAlias]
        The alias of the right (inner) table. This is *None* if and only if the descriptor represents a join with a subquery.
    left_field : str
        The pure name of the join column of the left table, i.e. without the table alias.
    right_field : Optional[str]
        The pure name of the join column of the right table. Is *None* for subquery joins.
    operator : JoinOperator
        The comparison between both columns. Defaults to equality.

    Raises
    ------
    ValueError
        If the left side is incomplete or the right side is only partially specified.
    """

    left_alias: TableAlias
    right_alias: Optional[TableAlias]
    left_field: str
    right_field: Optional[str]
    operator: JoinOperator = JoinOperator.Equal

    def __post_init__(self) -> None:
        if not self.left_alias:
            raise ValueError("Join requires a left table")
        if not self.left_field:
            raise ValueError(f"Join on table {self.left_alias} requires a left field")
        if (self.right_alias is None) != (self.right_field is None):
            raise ValueError("Right table and right field must either both be present or both be absent: "
                             f"{self.right_alias}.{self.right_field}")
        if self.right_alias is not None and not self.right_alias:
            raise ValueError("Right table alias cannot be empty. Use None for subquery joins")
        if not isinstance(self.operator, JoinOperator):
            raise ValueError(f"Not a join operator: {self.operator!r}")

    @staticmethod
    def for_subquery(left_alias: TableAlias, left_field: str,
                     operator: JoinOperator = JoinOperator.Equal) -> JoinDescriptor:
        """Creates a descriptor for a join between a table column and an opaque subquery."""
        return JoinDescriptor(left_alias, None, left_field, None, operator)

    @property
    def is_subquery_join(self) -> bool:
        """Checks, whether this descriptor joins a table with a subquery (i.e. the right side is absent)."""
        return self.right_alias is None

    @property
    def left_column(self) -> str:
        """Get the fully-qualified name of the left join column, e.g. *t.id*."""
        return f"{self.left_alias}.{self.left_field}"

    @property
    def right_column(self) -> Optional[str]:
        """Get the fully-qualified name of the right join column. Is *None* for subquery joins."""
        return None if self.is_subquery_join else f"{self.right_alias}.{self.right_field}"

    def tables(self) -> tuple[TableAlias, ...]:
        """Provides the aliases of all tables that participate in this join. Subquery joins only have a single table."""
        return (self.left_alias,) if self.is_subquery_join else (self.left_alias, self.right_alias)

    def touches(self, alias: TableAlias) -> bool:
        """Checks, whether the given table participates in this join."""
        return alias == self.left_alias or (alias is not None and alias == self.right_alias)

    def swap_inner_outer(self) -> JoinDescriptor:
        """Provides the descriptor with exchanged inner and outer sides.

        The operator is mirrored to retain the semantics of the join condition, e.g. *a.x < b.y* becomes *b.y > a.x*.
        Swapping a swapped descriptor yields a descriptor that is equal to the original one. Subquery joins cannot be swapped
        since their right side is opaque. For them, the descriptor itself is returned.
        """
        if self.is_subquery_join:
            return self
        return JoinDescriptor(self.right_alias, self.left_alias, self.right_field, self.left_field, self.operator.mirror())

    def __json__(self) -> jsondict:
        return {"left": self.left_column, "right": self.right_column, "operator": self.operator.value}

    def __str__(self) -> str:
        right = "<subquery>" if self.is_subquery_join else self.right_column
        return f"{self.left_column} {self.operator.value} {right}"
