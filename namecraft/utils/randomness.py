"""Random-source helpers.

Every generator in the pipeline draws from an injected ``random.Random`` so a
seeded instance reproduces a whole generation run.
"""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def resolve_rng(rng: Optional[random.Random] = None, seed: Optional[int] = None) -> random.Random:
    """Return ``rng`` or a fresh generator seeded with ``seed``."""

    if rng is not None:
        return rng
    return random.Random(seed)


def pick(rng: random.Random, pool: Sequence[T], fallback: Optional[T] = None) -> T:
    """Choose one element from ``pool``; ``fallback`` when the pool is empty."""

    if not pool:
        if fallback is None:
            raise IndexError("cannot pick from an empty pool")
        return fallback
    return pool[rng.randrange(len(pool))]


def weighted_choice(rng: random.Random, items: Sequence[T], weights: Sequence[float]) -> T:
    """Draw one of ``items`` proportionally to non-negative ``weights``."""

    if not items:
        raise IndexError("cannot choose from an empty sequence")
    cleaned = [max(0.0, float(weight)) for weight in weights]
    total = sum(cleaned)
    if total <= 0:
        return items[rng.randrange(len(items))]
    threshold = rng.random() * total
    running = 0.0
    for item, weight in zip(items, cleaned):
        running += weight
        if threshold < running:
            return item
    return items[-1]


def sample_distinct(rng: random.Random, pool: Sequence[T], count: int) -> list:
    """Sample up to ``count`` distinct entries without mutating ``pool``."""

    unique = list(dict.fromkeys(pool))
    if count >= len(unique):
        rng.shuffle(unique)
        return unique
    return rng.sample(unique, count)


__all__ = ["resolve_rng", "pick", "weighted_choice", "sample_distinct"]
