"""Assemble per-request word pools from the stores and fetched vocabulary."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Union

from namecraft.core.models import VocabularyWord
from namecraft.core.word_stores import STOP_WORDS, WordStores

from .dataclasses import WordSources
from .library import GENRE_MODIFIERS

_SINGLE_TOKEN = re.compile(r"^[A-Za-z]{3,15}$")
LONG_WORD_LENGTH = 9

VocabularyEntry = Union[VocabularyWord, str]


def _dedupe(words: Iterable[str]) -> tuple:
    seen = {}
    for word in words:
        key = word.lower()
        if key not in seen:
            seen[key] = word
    return tuple(seen.values())


def usable_word(word: str, stores: WordStores) -> bool:
    return bool(_SINGLE_TOKEN.match(word)) and word.lower() not in STOP_WORDS and not stores.is_famous_name(word)


def build_word_sources(
    stores: WordStores,
    vocabulary: Optional[Iterable[VocabularyEntry]] = None,
    genre: Optional[str] = None,
    mood: Optional[str] = None,
    blend: Sequence[str] = (),
) -> WordSources:
    """Build the ``WordSources`` patterns draw from.

    Genre modifier words lead their pools so genre flavour is common without
    being exclusive. Fetched vocabulary words join ``contextual_words`` and,
    when typed, the matching typed pool. ``blend`` carries words from a
    secondary genre when fusion is on.
    """

    modifiers = GENRE_MODIFIERS.get((genre or "").strip().lower(), {})
    adjectives: List[str] = list(modifiers.get("adjectives", ()))
    nouns: List[str] = list(modifiers.get("nouns", ()))
    verbs: List[str] = list(modifiers.get("verbs", ()))
    contextual: List[str] = list(stores.mood_terms(mood))

    for entry in vocabulary or ():
        word = entry.word if isinstance(entry, VocabularyWord) else str(entry)
        word = word.strip()
        if not usable_word(word, stores):
            continue
        contextual.append(word)
        kind = entry.word_type if isinstance(entry, VocabularyWord) else ""
        if kind == "noun":
            nouns.append(word)
        elif kind == "adjective":
            adjectives.append(word)
        elif kind == "verb":
            verbs.append(word)

    contextual.extend(word for word in blend if usable_word(word, stores))
    adjectives.extend(stores.adjectives)
    nouns.extend(stores.nouns)
    verbs.extend(stores.verbs)

    genre_terms = stores.genre_words(genre)
    pools = {
        "adjectives": _dedupe(adjectives),
        "nouns": _dedupe(nouns),
        "verbs": _dedupe(verbs),
        "contextual_words": _dedupe(contextual),
    }
    everything = pools["adjectives"] + pools["nouns"] + pools["contextual_words"] + genre_terms
    long_words = _dedupe(word for word in everything if len(word) >= LONG_WORD_LENGTH)

    return WordSources(
        adjectives=pools["adjectives"],
        nouns=pools["nouns"],
        verbs=pools["verbs"],
        musical_terms=tuple(stores.musical_terms),
        genre_terms=tuple(genre_terms),
        contextual_words=pools["contextual_words"],
        long_words=long_words,
        genre=genre,
        mood=mood,
    )


__all__ = ["LONG_WORD_LENGTH", "build_word_sources", "usable_word"]
