"""The cost model estimates cost and result size of joining two relations.

The model assumes a nested-loop join: the outer relation is scanned once and the inner relation is re-scanned for each outer
tuple. Evaluating the join predicate for a pair of tuples costs one unit. Joins with a subquery use a much simpler estimate
since the subquery is opaque to the optimizer.

All functions are pure.
"""
from __future__ import annotations

import math

from ._core import Cardinality, Cost
from .joins import JoinDescriptor

InequalitySelectivity = 0.3
"""Fraction of all tuple pairs that is assumed to satisfy a join predicate that is not an equality."""


def estimate_join_cost(join: JoinDescriptor, card1: Cardinality, card2: Cardinality, cost1: Cost, cost2: Cost) -> Cost:
    """Estimates the cost of a join between an outer relation (*1*) and an inner relation (*2*).

    Parameters
    ----------
    join : JoinDescriptor
        The join being performed
    card1 : Cardinality
        Estimated cardinality of the outer relation
    card2 : Cardinality
        Estimated cardinality of the inner relation
    cost1 : Cost
        Estimated cost of one full scan of the outer relation
    cost2 : Cost
        Estimated cost of one full scan of the inner relation

    Returns
    -------
    Cost
        The estimated cost of the join, including the cost of producing its inputs
    """
    if join.is_subquery_join:
        return card1 + cost1 + cost2
    return cost1 + card1 * cost2 + card1 * card2


def estimate_join_cardinality(join: JoinDescriptor, card1: Cardinality, card2: Cardinality,
                              t1_pkey: bool, t2_pkey: bool) -> Cardinality:
    """Estimates the number of tuples produced by a join.

    For equality joins on a primary key, each tuple of the other side matches at most one key tuple. Without primary keys, the
    larger input is used as the estimate. All other predicates use a fixed selectivity of `InequalitySelectivity`.

    Parameters
    ----------
    join : JoinDescriptor
        The join being performed
    card1 : Cardinality
        Cardinality of the left relation
    card2 : Cardinality
        Cardinality of the right relation
    t1_pkey : bool
        Whether the join column of the left relation is its primary key
    t2_pkey : bool
        Whether the join column of the right relation is its primary key

    Returns
    -------
    Cardinality
        The estimated cardinality of the join result
    """
    if join.is_subquery_join:
        return card1
    if not join.operator.is_equality():
        return math.floor(InequalitySelectivity * card1 * card2)
    if t1_pkey:
        return card2
    if t2_pkey:
        return card1
    return max(card1, card2)
