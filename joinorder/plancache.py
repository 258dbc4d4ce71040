"""Memoization of the best (partial) plans during the join order search.

The central data structure is the `PlanCache`. It maps a subset of the input joins to the best left-deep plan that was found for
exactly those joins. Subsets are encoded as bitmasks over the positions of the joins in an immutable, ordered sequence. This
makes the keys independent of the order in which the joins of a subset are added to a plan.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional

from ._core import Cardinality, Cost, TableAlias
from .joins import JoinDescriptor
from .util import collections as collection_utils
from .util.collections import Bitmask
from .util.jsonize import jsondict


@dataclass(frozen=True)
class CostCard:
    """An ordered partial plan together with its estimated cost and cardinality.

    Cost cards are never modified. Extending a plan produces a new card that references the card it was built upon via
    `prefix`. This chain provides the cost and cardinality of each prefix of the plan.

    Attributes
    ----------
    plan : tuple[JoinDescriptor, ...]
        The joins in the order in which they should be executed, each in its chosen orientation
    cost : Cost
        The estimated cost of executing the entire plan
    cardinality : Cardinality
        The estimated number of tuples produced by the plan
    prefix : Optional[CostCard]
        The card of the plan without its last join. *None* for plans with a single join.
    """

    plan: tuple[JoinDescriptor, ...]
    cost: Cost
    cardinality: Cardinality
    prefix: Optional[CostCard] = field(default=None, repr=False, compare=False)

    def tables(self) -> set[TableAlias]:
        """Provides the aliases of all tables that are joined by the plan."""
        return {table for join in self.plan for table in join.tables()}

    def history(self) -> list[CostCard]:
        """Provides the cards of all prefixes of this plan, starting with the first join and ending with this card."""
        cards: list[CostCard] = []
        current: Optional[CostCard] = self
        while current is not None:
            cards.append(current)
            current = current.prefix
        return list(reversed(cards))

    def __json__(self) -> jsondict:
        return {"plan": list(self.plan), "cost": self.cost, "cardinality": self.cardinality}

    def __len__(self) -> int:
        return len(self.plan)


class PlanCache:
    """Stores the best known plan, cost and cardinality for subsets of the joins of a query.

    The cache is bound to a fixed sequence of joins. Subsets can either be specified as a bitmask over the positions of this
    sequence, or as an iterable of the joins themselves (see `key_of`).

    Parameters
    ----------
    joins : Sequence[JoinDescriptor]
        All joins of the query. Their positions determine the subset encoding.
    """

    def __init__(self, joins: Sequence[JoinDescriptor]) -> None:
        self._joins = tuple(joins)
        self._positions: dict[JoinDescriptor, int] = {}
        for idx, join in enumerate(self._joins):
            self._positions.setdefault(join, idx)
        self._entries: dict[Bitmask, CostCard] = {}

    @property
    def joins(self) -> tuple[JoinDescriptor, ...]:
        return self._joins

    def key_of(self, joins: Bitmask | Iterable[JoinDescriptor]) -> Bitmask:
        """Computes the canonical key of a subset of the joins.

        Parameters
        ----------
        joins : Bitmask | Iterable[JoinDescriptor]
            The subset. Bitmasks are returned as-is. Otherwise, each join has to be part of the join sequence of this cache.

        Raises
        ------
        KeyError
            If a join is not part of the join sequence of the cache
        """
        if isinstance(joins, int):
            return joins
        try:
            return collection_utils.bitmask(self._positions[join] for join in joins)
        except KeyError as e:
            raise KeyError(f"Join is not managed by this cache: {e.args[0]}") from e

    def full_key(self) -> Bitmask:
        """Provides the key of the subset that contains all joins."""
        return collection_utils.full_mask(len(self._joins))

    def members(self, subset: Bitmask | Iterable[JoinDescriptor]) -> list[JoinDescriptor]:
        """Provides the joins that make up a subset, in the order of the join sequence."""
        return collection_utils.select(self._joins, self.key_of(subset))

    def add_plan(self, subset: Bitmask | Iterable[JoinDescriptor], card: CostCard) -> None:
        """Stores the plan for a subset of the joins, replacing any plan that was stored before."""
        key = self.key_of(subset)
        if len(card.plan) != key.bit_count():
            raise ValueError(f"Plan with {len(card.plan)} joins cannot be stored for a subset of {key.bit_count()} joins")
        self._entries[key] = card

    def get(self, subset: Bitmask | Iterable[JoinDescriptor]) -> Optional[CostCard]:
        """Provides the card for a subset of the joins, or *None* if no plan was stored for it."""
        return self._entries.get(self.key_of(subset))

    def get_order(self, subset: Bitmask | Iterable[JoinDescriptor]) -> Optional[tuple[JoinDescriptor, ...]]:
        card = self.get(subset)
        return card.plan if card is not None else None

    def get_cost(self, subset: Bitmask | Iterable[JoinDescriptor]) -> Optional[Cost]:
        card = self.get(subset)
        return card.cost if card is not None else None

    def get_cardinality(self, subset: Bitmask | Iterable[JoinDescriptor]) -> Optional[Cardinality]:
        card = self.get(subset)
        return card.cardinality if card is not None else None

    def __contains__(self, subset: object) -> bool:
        if isinstance(subset, int):
            return subset in self._entries
        if isinstance(subset, Iterable):
            try:
                return self.key_of(subset) in self._entries
            except KeyError:
                return False
        return False

    def __iter__(self) -> Iterator[Bitmask]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PlanCache(joins={len(self._joins)}, entries={len(self._entries)})"
