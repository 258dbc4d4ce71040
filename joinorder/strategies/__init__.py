"""Contains the available join order strategies.

- `GreedyJoinOrder` builds a plan by appending the locally cheapest join in each step
- `DynamicProgrammingJoinOrder` computes the best plans for all subsets of the joins

Both strategies share the same cost estimation logic, which is provided by `SubplanCosting`.
"""

from ._subplans import JoinInput, SubplanCosting
from .dynprog import DynamicProgrammingJoinOrder
from .greedy import GreedyJoinOrder

__all__ = ["JoinInput", "SubplanCosting", "DynamicProgrammingJoinOrder", "GreedyJoinOrder"]
