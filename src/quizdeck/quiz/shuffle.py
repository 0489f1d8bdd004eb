"""Uniform in-place shuffling of question sequences."""

from __future__ import annotations

import random
from typing import List, MutableSequence, Optional, Sequence, TypeVar

__all__ = ["shuffle", "shuffled_copy"]

T = TypeVar("T")


def shuffle(
    items: MutableSequence[T], rng: Optional[random.Random] = None
) -> MutableSequence[T]:
    """Fisher-Yates shuffle ``items`` in place and return it.

    Walks ``i`` from the last index down to 1, swapping ``items[i]`` with
    ``items[j]`` for ``j`` drawn uniformly from ``[0, i]``.
    """

    source = rng or random
    for i in range(len(items) - 1, 0, -1):
        j = source.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def shuffled_copy(
    items: Sequence[T], rng: Optional[random.Random] = None
) -> List[T]:
    """Return a shuffled clone of ``items``; the input is left untouched."""

    clone = list(items)
    shuffle(clone, rng)
    return clone
