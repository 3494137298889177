"""Word-count contract checks for generated names."""

from __future__ import annotations

import random
from typing import Optional, Sequence

from namecraft.core.models import OPEN_RANGE
from namecraft.utils.randomness import pick

from .wording import capitalize

LENIENT_RANGE = (3, 11)


def count_words(name: str) -> int:
    return len(name.split())


def validate_word_count(name: str, requested: int, open_range: bool = False, *, lenient: bool = False) -> bool:
    """Return ``True`` when ``name`` satisfies the requested word count.

    ``open_range`` accepts anything in the 4 to 10 window; ``lenient``
    widens that window to 3 to 11 for salvage paths and has no effect on
    fixed counts.
    """

    words = count_words(name)
    if open_range:
        low, high = LENIENT_RANGE if lenient else OPEN_RANGE
        return low <= words <= high
    return words == int(requested)


def adjust_to_word_count(
    name: str,
    target: int,
    rng: random.Random,
    filler: Optional[Sequence[str]] = None,
) -> str:
    """Pad or truncate ``name`` so it has exactly ``target`` words."""

    words = name.split()
    target = max(1, int(target))
    if len(words) > target:
        return " ".join(words[:target])
    pool = [word for word in (filler or ()) if word and " " not in word.strip()]
    while len(words) < target:
        words.append(capitalize(pick(rng, pool, "Echo")))
    return " ".join(words)


__all__ = ["LENIENT_RANGE", "count_words", "validate_word_count", "adjust_to_word_count"]
