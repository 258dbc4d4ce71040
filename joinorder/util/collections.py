"""Provides utilities to work with subsets of a fixed, ordered collection.

Subsets are encoded as bitmasks: bit *i* is set if the *i*-th element of the collection is part of the subset. This makes
the encoding independent of the order in which elements are added and allows subsets to be used as dictionary keys.
"""
from __future__ import annotations

import itertools
import typing
from collections.abc import Iterable, Iterator, Sequence

T = typing.TypeVar("T")

Bitmask = int
"""Type alias for a subset encoded as a bitmask."""


def bitmask(indexes: Iterable[int]) -> Bitmask:
    """Encodes the given element indexes as a bitmask.

    Parameters
    ----------
    indexes : Iterable[int]
        The positions of the selected elements. Duplicates are ignored.

    Returns
    -------
    Bitmask
        The subset encoding
    """
    mask = 0
    for idx in indexes:
        if idx < 0:
            raise ValueError(f"Negative index: {idx}")
        mask |= 1 << idx
    return mask


def full_mask(size: int) -> Bitmask:
    """Provides the bitmask that selects all elements of a collection of the given size."""
    return (1 << size) - 1


def indexes_of(mask: Bitmask) -> Iterator[int]:
    """Provides the positions of all elements that are selected by a bitmask, in ascending order."""
    idx = 0
    while mask:
        if mask & 1:
            yield idx
        mask >>= 1
        idx += 1


def subsets_of_size(size: int, k: int) -> Iterator[Bitmask]:
    """Enumerates all subsets of exactly *k* elements of a collection with *size* elements.

    Each subset is produced exactly once, in lexicographic order of the selected positions. There are exactly
    *C(size, k)* subsets.

    Parameters
    ----------
    size : int
        The number of elements in the collection
    k : int
        The number of elements in each subset

    Returns
    -------
    Iterator[Bitmask]
        The subsets
    """
    if k < 0 or size < 0:
        raise ValueError(f"Subset size and collection size must not be negative: size={size}, k={k}")
    for combination in itertools.combinations(range(size), k):
        yield bitmask(combination)


def select(elems: Sequence[T], mask: Bitmask) -> list[T]:
    """Provides the elements of a sequence that are selected by a bitmask, in sequence order."""
    return [elems[idx] for idx in indexes_of(mask)]
