"""Small word-shaping helpers shared by pattern generators."""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence

from namecraft.utils.randomness import pick


def capitalize(word: str) -> str:
    if not word:
        return word
    return word[0].upper() + word[1:].lower()


def title_words(words: Iterable[str]) -> str:
    return " ".join(capitalize(word) for word in words if word)


def singularize(word: str) -> str:
    lowered = word.lower()
    if len(lowered) <= 3 or lowered.endswith("ss"):
        return word
    if lowered.endswith("ies") and len(lowered) > 4:
        return word[:-3] + "y"
    if lowered.endswith(("ches", "shes", "xes", "sses")):
        return word[:-2]
    if lowered.endswith("s") and not lowered.endswith(("us", "is")):
        return word[:-1]
    return word


def gerund(verb: str) -> str:
    lowered = verb.lower()
    if lowered.endswith("ing"):
        return verb
    if lowered.endswith("ie"):
        return verb[:-2] + "ying"
    if lowered.endswith("e") and not lowered.endswith(("ee", "ye", "oe")):
        return verb[:-1] + "ing"
    return verb + "ing"


def choose(rng: random.Random, *pools: Sequence[str], fallback: Optional[str] = None) -> str:
    """Pick one word from the concatenation of ``pools``."""

    merged: List[str] = [word for pool in pools for word in pool if word]
    return pick(rng, merged, fallback)


__all__ = ["capitalize", "title_words", "singularize", "gerund", "choose"]
