"""Pairwise genre compatibility used to decide and flavour genre fusion."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from namecraft.utils.observability import get_logger
from namecraft.utils.randomness import sample_distinct

from .normalizer import canonical_genre
from .word_stores import DEFAULT_WORD_STORES, WordStores

FUSION_STYLES = ("complement", "contrast", "hybrid", "evolution")

# Matrix genres use plain ids; the normalizer's aliases map onto these.
_MATRIX_ALIASES = {
    "indie-rock": "indie",
    "alternative-rock": "indie",
    "hard-rock": "rock",
    "progressive-rock": "rock",
    "pop-rock": "pop",
    "indie-pop": "pop",
    "smooth-jazz": "jazz",
    "jazz-fusion": "jazz",
    "indie-folk": "folk",
    "death-metal": "metal",
    "black-metal": "metal",
    "thrash-metal": "metal",
    "house": "electronic",
    "techno": "electronic",
    "ambient": "electronic",
    "drum-and-bass": "electronic",
    "dubstep": "electronic",
    "trap": "hip-hop",
    "orchestral": "classical",
}


@dataclass(frozen=True)
class GenreProfile:
    genre: str
    energy: float
    complexity: float
    traditionalism: float
    instrumentation: str
    rhythm: str
    improvisation: float
    commerciality: float
    emotional_range: Tuple[str, ...]
    cultural_roots: Tuple[str, ...]
    key_elements: Tuple[str, ...]


@dataclass(frozen=True)
class CompatibilityScore:
    """Read-only compatibility of an unordered genre pair."""

    genres: FrozenSet[str]
    score: float
    fusion_style: str = "hybrid"
    dominant_ratio: Mapping[str, float] = field(default_factory=dict)
    synergies: Tuple[str, ...] = ()
    challenges: Tuple[str, ...] = ()
    best_aspects: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FusionRule:
    name: str
    genres: FrozenSet[str]
    vocabulary_strategy: str
    pattern_strategy: str
    examples: Tuple[str, ...]


def _profile(genre: str, energy: float, complexity: float, traditionalism: float,
             instrumentation: str, rhythm: str, improvisation: float, commerciality: float,
             emotional_range: str, cultural_roots: Tuple[str, ...], key_elements: str) -> GenreProfile:
    return GenreProfile(
        genre=genre,
        energy=energy,
        complexity=complexity,
        traditionalism=traditionalism,
        instrumentation=instrumentation,
        rhythm=rhythm,
        improvisation=improvisation,
        commerciality=commerciality,
        emotional_range=tuple(emotional_range.split()),
        cultural_roots=cultural_roots,
        key_elements=tuple(key_elements.split()),
    )


def build_genre_profiles() -> Dict[str, GenreProfile]:
    profiles = (
        _profile("rock", 0.8, 0.6, 0.7, "electric", "steady", 0.4, 0.7, "dark bright varied",
                 ("blues", "folk", "country"), "guitar drums bass vocals power rebellion"),
        _profile("electronic", 0.7, 0.8, 0.2, "electronic", "complex", 0.6, 0.6, "bright dark neutral",
                 ("experimental", "dance", "ambient"), "synthesizer sampling beats digital futuristic technology"),
        _profile("jazz", 0.6, 0.9, 0.8, "acoustic", "syncopated", 0.9, 0.4, "neutral dark bright",
                 ("blues", "ragtime", "swing"), "improvisation harmony swing sophistication artistic complex"),
        _profile("hip-hop", 0.7, 0.7, 0.3, "electronic", "steady", 0.8, 0.8, "dark bright varied",
                 ("funk", "soul", "disco"), "rhythm lyrics culture beats sampling expression"),
        _profile("folk", 0.4, 0.3, 0.9, "acoustic", "steady", 0.5, 0.3, "neutral dark",
                 ("traditional", "storytelling", "cultural"), "storytelling acoustic tradition simplicity heritage community"),
        _profile("classical", 0.5, 1.0, 1.0, "acoustic", "complex", 0.2, 0.2, "varied neutral",
                 ("european", "formal", "academic"), "orchestration composition technique sophistication formal artistic"),
        _profile("indie", 0.6, 0.6, 0.4, "mixed", "variable", 0.6, 0.4, "dark bright neutral",
                 ("alternative", "underground", "diy"), "creativity independence artistic alternative experimental authentic"),
        _profile("blues", 0.5, 0.4, 0.9, "acoustic", "steady", 0.7, 0.5, "dark neutral",
                 ("african-american", "work songs", "spirituals"), "emotion storytelling guitar vocals expression soul"),
        _profile("country", 0.6, 0.4, 0.8, "acoustic", "steady", 0.5, 0.7, "bright neutral dark",
                 ("folk", "western", "rural"), "storytelling rural guitar vocals tradition americana"),
        _profile("metal", 0.9, 0.7, 0.6, "electric", "complex", 0.4, 0.5, "dark bright",
                 ("rock", "blues", "classical"), "intensity power technical heavy guitar aggression"),
        _profile("pop", 0.7, 0.4, 0.3, "mixed", "steady", 0.2, 1.0, "bright neutral",
                 ("various", "mainstream", "commercial"), "catchy accessible commercial melody mainstream popular"),
    )
    return {profile.genre: profile for profile in profiles}


def build_rhythm_compatibility() -> Dict[str, Dict[str, float]]:
    return {
        "steady": {"steady": 1.0, "syncopated": 0.7, "complex": 0.6, "variable": 0.8},
        "syncopated": {"steady": 0.7, "syncopated": 1.0, "complex": 0.8, "variable": 0.9},
        "complex": {"steady": 0.6, "syncopated": 0.8, "complex": 1.0, "variable": 0.7},
        "variable": {"steady": 0.8, "syncopated": 0.9, "complex": 0.7, "variable": 1.0},
    }


def build_special_bonuses() -> Dict[FrozenSet[str], Tuple[float, str]]:
    return {
        frozenset(("electronic", "jazz")): (0.15, "Digital improvisation meets acoustic sophistication"),
        frozenset(("folk", "electronic")): (0.12, "Traditional storytelling with modern production"),
        frozenset(("hip-hop", "jazz")): (0.10, "Shared improvisational lineage"),
        frozenset(("rock", "classical")): (0.10, "Orchestral grandeur with electric power"),
    }


def build_fusion_rules() -> Tuple[FusionRule, ...]:
    return (
        FusionRule(
            name="ElectroJazz Fusion",
            genres=frozenset(("electronic", "jazz")),
            vocabulary_strategy="synthesize",
            pattern_strategy="interweave",
            examples=("Digital Saxophone", "Quantum Bebop", "Synthesized Improvisation"),
        ),
        FusionRule(
            name="TechnoFolk Fusion",
            genres=frozenset(("folk", "electronic")),
            vocabulary_strategy="alternate",
            pattern_strategy="layer",
            examples=("Digital Folklore", "Electronic Ballad", "Cyber Folk Tales"),
        ),
        FusionRule(
            name="Symphonic Rock Fusion",
            genres=frozenset(("rock", "classical")),
            vocabulary_strategy="merge",
            pattern_strategy="blend",
            examples=("Electric Symphony", "Orchestral Thunder", "Classical Storm"),
        ),
        FusionRule(
            name="Jazz Hop Fusion",
            genres=frozenset(("hip-hop", "jazz")),
            vocabulary_strategy="merge",
            pattern_strategy="interweave",
            examples=("Jazz Flow Collective", "Bebop Beats", "Improvisational Cipher"),
        ),
    )


def matrix_genre(genre: Optional[str]) -> Optional[str]:
    canonical = canonical_genre(genre)
    if canonical is None:
        return None
    return _MATRIX_ALIASES.get(canonical, canonical)


class GenreCompatibilityMatrix:
    """Precomputed compatibility for every pair of profiled genres."""

    def __init__(self, profiles: Optional[Mapping[str, GenreProfile]] = None) -> None:
        self._profiles: Dict[str, GenreProfile] = dict(profiles or build_genre_profiles())
        self._rhythm = build_rhythm_compatibility()
        self._bonuses = build_special_bonuses()
        self._rules = build_fusion_rules()
        self._matrix: Dict[FrozenSet[str], CompatibilityScore] = {}
        for first, second in combinations(self._profiles, 2):
            self._matrix[frozenset((first, second))] = self._score_pair(first, second)
        self._logger = get_logger(__name__).bind(component="genre_compatibility_matrix")
        self._logger.info(
            "Genre compatibility matrix initialised",
            context={"genres": len(self._profiles), "pairs": len(self._matrix), "rules": len(self._rules)},
        )

    @property
    def genres(self) -> Tuple[str, ...]:
        return tuple(self._profiles)

    def profile(self, genre: Optional[str]) -> Optional[GenreProfile]:
        key = matrix_genre(genre)
        return self._profiles.get(key) if key else None

    def _score_pair(self, first: str, second: str) -> CompatibilityScore:
        a, b = self._profiles[first], self._profiles[second]
        score = 0.5
        synergies: List[str] = []
        challenges: List[str] = []
        best_aspects: List[str] = []
        style = "hybrid"
        ratio = {first: 0.5, second: 0.5}

        energy_diff = abs(a.energy - b.energy)
        if energy_diff < 0.3:
            score += 0.2
            synergies.append("Similar energy levels create natural flow")
        elif energy_diff > 0.6:
            score += 0.1
            synergies.append("Contrasting energy levels create dynamic tension")
            style = "contrast"
        else:
            challenges.append("Moderate energy differences may create balance issues")

        if abs(a.complexity - b.complexity) < 0.4:
            score += 0.15
            synergies.append("Compatible complexity levels facilitate fusion")
        else:
            score += 0.05
            challenges.append("Different complexity levels require careful balancing")
            dominant, other = (first, second) if a.complexity > b.complexity else (second, first)
            ratio = {dominant: 0.6, other: 0.4}

        instruments = {a.instrumentation, b.instrumentation}
        if len(instruments) == 1:
            score += 0.15
            synergies.append("Shared instrumentation creates natural cohesion")
        elif "mixed" in instruments or instruments == {"acoustic", "electric"}:
            score += 0.1
            synergies.append("Complementary instrumentation adds textural richness")
            style = "complement"
        else:
            score += 0.05
            challenges.append("Contrasting instrumentation requires creative integration")

        rhythm = self._rhythm.get(a.rhythm, {}).get(b.rhythm, 0.5)
        score += rhythm * 0.1
        if rhythm > 0.7:
            synergies.append("Rhythmic elements blend naturally")

        if abs(a.improvisation - b.improvisation) < 0.3:
            score += 0.1
            best_aspects.append("Balanced improvisational elements")

        shared_roots = [root for root in a.cultural_roots if root in b.cultural_roots]
        if shared_roots:
            score += 0.1
            synergies.append(f"Shared cultural roots: {', '.join(shared_roots)}")
            style = "evolution"

        if set(a.emotional_range) & set(b.emotional_range):
            score += 0.05
            synergies.append("Overlapping emotional territories")

        bonus = self._bonuses.get(frozenset((first, second)))
        if bonus is not None:
            score += bonus[0]
            best_aspects.append(bonus[1])

        return CompatibilityScore(
            genres=frozenset((first, second)),
            score=min(max(score, 0.0), 1.0),
            fusion_style=style,
            dominant_ratio=ratio,
            synergies=tuple(synergies),
            challenges=tuple(challenges),
            best_aspects=tuple(best_aspects),
        )

    def get_compatibility(self, first: Optional[str], second: Optional[str]) -> Optional[CompatibilityScore]:
        """Return the score for an unordered pair, or ``None`` for unknown genres."""

        a, b = matrix_genre(first), matrix_genre(second)
        if not a or not b or a not in self._profiles or b not in self._profiles:
            return None
        if a == b:
            return CompatibilityScore(genres=frozenset((a,)), score=1.0, dominant_ratio={a: 1.0})
        return self._matrix[frozenset((a, b))]

    def most_compatible(self, genre: str, limit: int = 5) -> List[Tuple[str, float]]:
        key = matrix_genre(genre)
        if key not in self._profiles:
            return []
        scored = [
            (other, self._matrix[frozenset((key, other))].score)
            for other in self._profiles
            if other != key
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[: max(0, limit)]

    def get_fusion_rule(self, first: Optional[str], second: Optional[str]) -> Optional[FusionRule]:
        pair = frozenset((matrix_genre(first), matrix_genre(second)))
        for rule in self._rules:
            if rule.genres == pair:
                return rule
        return None

    def fusion_rules(self) -> Tuple[FusionRule, ...]:
        return self._rules

    def fusion_recommendations(
        self,
        genres: List[str],
        preferred_style: Optional[str] = None,
    ) -> List[Dict[str, object]]:
        recommendations: List[Dict[str, object]] = []
        for first, second in combinations(genres, 2):
            compatibility = self.get_compatibility(first, second)
            if compatibility is None:
                continue
            if preferred_style and compatibility.fusion_style != preferred_style:
                continue
            recommendations.append(
                {
                    "combination": (first, second),
                    "score": compatibility.score,
                    "fusion_style": compatibility.fusion_style,
                    "description": "; ".join(compatibility.synergies),
                }
            )
        recommendations.sort(key=lambda item: item["score"], reverse=True)
        return recommendations

    def is_fusion_worthy(self, first: Optional[str], second: Optional[str], threshold: float = 0.6) -> bool:
        compatibility = self.get_compatibility(first, second)
        return compatibility is not None and compatibility.score >= threshold

    def blend_vocabulary(
        self,
        primary: Optional[str],
        secondary: Optional[str],
        rng: random.Random,
        *,
        stores: WordStores = DEFAULT_WORD_STORES,
        size: int = 12,
    ) -> Tuple[str, ...]:
        """Draw a mixed word pool, weighted by the pair's dominant ratio."""

        compatibility = self.get_compatibility(primary, secondary)
        a, b = matrix_genre(primary), matrix_genre(secondary)
        pools = {}
        for genre in (a, b):
            if not genre:
                continue
            profile = self._profiles.get(genre)
            words = list(stores.genre_words(genre))
            if profile is not None:
                words.extend(word for word in profile.key_elements if word not in words)
            pools[genre] = words
        if compatibility is None or len(pools) < 2:
            merged = [word for words in pools.values() for word in words]
            return tuple(sample_distinct(rng, merged, size))

        share = compatibility.dominant_ratio.get(a, 0.5)
        primary_take = max(1, round(size * share))
        blended = sample_distinct(rng, pools[a], primary_take)
        blended += [word for word in sample_distinct(rng, pools[b], size) if word not in blended][: size - len(blended)]
        rng.shuffle(blended)
        return tuple(blended)


__all__ = [
    "FUSION_STYLES",
    "GenreProfile",
    "CompatibilityScore",
    "FusionRule",
    "GenreCompatibilityMatrix",
    "build_genre_profiles",
    "build_rhythm_compatibility",
    "build_special_bonuses",
    "build_fusion_rules",
    "matrix_genre",
]
