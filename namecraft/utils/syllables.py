"""Syllable counts and phonetic keys backed by the CMU pronouncing dictionary."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List

import pronouncing

__all__ = [
    "estimate_syllable_count",
    "count_syllables",
    "phonetic_key",
    "vowel_skeleton",
]


_VOWEL_GROUP_PATTERN = re.compile(r"[aeiouy]+")
_NON_ALPHA = re.compile(r"[^a-z]")
_STRESS_DIGITS = re.compile(r"\d")


def estimate_syllable_count(word: str) -> int:
    """Estimate the number of syllables in ``word`` from vowel groups."""

    normalized = _NON_ALPHA.sub("", word.lower())
    if not normalized:
        return 0
    syllable_count = len(_VOWEL_GROUP_PATTERN.findall(normalized))

    if normalized.endswith("e") and not normalized.endswith("le") and syllable_count > 1:
        syllable_count -= 1

    return max(1, syllable_count)


@lru_cache(maxsize=4096)
def _first_phones(word: str) -> str:
    phones = pronouncing.phones_for_word(word)
    return phones[0] if phones else ""


def count_syllables(word: str) -> int:
    """Return the CMU syllable count for ``word``, estimating unknown words."""

    normalized = _NON_ALPHA.sub("", word.lower())
    if not normalized:
        return 0
    phones = _first_phones(normalized)
    if phones:
        return max(1, pronouncing.syllable_count(phones))
    return estimate_syllable_count(normalized)


def phonetic_key(word: str) -> str:
    """Return a stress-free phoneme key (``"S T AO R M"``) or a consonant skeleton."""

    normalized = _NON_ALPHA.sub("", word.lower())
    if not normalized:
        return ""
    phones = _first_phones(normalized)
    if phones:
        return _STRESS_DIGITS.sub("", phones)
    # Unknown word: collapse doubled letters and drop inner vowels.
    collapsed = re.sub(r"(.)\1+", r"\1", normalized)
    return (collapsed[0] + re.sub(r"[aeiouy]", "", collapsed[1:])).upper()


def vowel_skeleton(word: str) -> List[str]:
    """Return the vowel sounds of ``word`` (CMU vowels or letter groups)."""

    normalized = _NON_ALPHA.sub("", word.lower())
    phones = _first_phones(normalized) if normalized else ""
    if phones:
        return [
            _STRESS_DIGITS.sub("", phone)
            for phone in phones.split()
            if _STRESS_DIGITS.search(phone)
        ]
    return _VOWEL_GROUP_PATTERN.findall(normalized)
