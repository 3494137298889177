"""Shared dataclasses for the name pattern registry."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from namecraft.core.errors import PatternGenerationError


@dataclass(frozen=True)
class WordSources:
    """Word pools a pattern draws from; built per request, never mutated."""

    adjectives: Tuple[str, ...]
    nouns: Tuple[str, ...]
    verbs: Tuple[str, ...]
    musical_terms: Tuple[str, ...] = ()
    genre_terms: Tuple[str, ...] = ()
    contextual_words: Tuple[str, ...] = ()
    long_words: Tuple[str, ...] = ()
    genre: Optional[str] = None
    mood: Optional[str] = None

    def all_words(self) -> Tuple[str, ...]:
        seen = dict.fromkeys(
            self.adjectives + self.nouns + self.verbs + self.musical_terms + self.genre_terms + self.contextual_words
        )
        return tuple(seen)


Generator = Callable[[WordSources, random.Random, int], str]


@dataclass(frozen=True)
class PatternDefinition:
    """A stateless template that turns word pools into one candidate name."""

    id: str
    category: str
    subcategory: str
    min_word_count: int
    max_word_count: int
    weight: float
    template: str
    generator: Generator = field(compare=False, repr=False)
    description: str = ""
    examples: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    moods: Tuple[str, ...] = ()
    complexity: str = "medium"
    origin: str = "fixed"

    def supports(self, word_count: int) -> bool:
        return self.min_word_count <= word_count <= self.max_word_count

    def generate(self, sources: WordSources, rng: random.Random, word_count: Optional[int] = None) -> str:
        target = self.min_word_count if word_count is None else max(
            self.min_word_count, min(self.max_word_count, int(word_count))
        )
        try:
            name = self.generator(sources, rng, target)
        except (IndexError, KeyError, ValueError) as exc:
            raise PatternGenerationError(self.id, str(exc)) from exc
        name = " ".join(str(name or "").split())
        if not name:
            raise PatternGenerationError(self.id, "empty name")
        return name


@dataclass(frozen=True)
class SelectionCriteria:
    word_count: int
    genre: Optional[str] = None
    mood: Optional[str] = None
    content_type: str = "band"
    creativity_level: str = "balanced"
    intensity: Optional[str] = None
    avoid_categories: Tuple[str, ...] = ()
    prefer_categories: Tuple[str, ...] = ()
    enable_fusion: bool = False
    open_range: bool = False


@dataclass(frozen=True)
class PatternOutcome:
    """A generated name and the pattern that produced it."""

    name: str
    pattern_id: str
    category: str
    word_count: int
    fallback: bool = False


__all__ = [
    "WordSources",
    "Generator",
    "PatternDefinition",
    "SelectionCriteria",
    "PatternOutcome",
]
