"""Contextual themes and runtime-built (dynamic) patterns."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from namecraft.utils.randomness import pick

from .dataclasses import PatternDefinition, WordSources
from .wording import capitalize, choose

DYNAMIC_WEIGHT = 0.15


def _words(text: str) -> Tuple[str, ...]:
    return tuple(text.split())


@dataclass(frozen=True)
class ContextualTheme:
    name: str
    keywords: Tuple[str, ...]
    associations: Tuple[str, ...]
    nouns: Tuple[str, ...]
    adjectives: Tuple[str, ...]
    verbs: Tuple[str, ...]
    pattern_preferences: Tuple[str, ...]

    def bias_for(self, element: str) -> Tuple[str, ...]:
        if "noun" in element or element.endswith(("object", "type", "state", "target", "source")):
            return self.nouns
        if "adjective" in element or "modifier" in element or "quality" in element:
            return self.adjectives
        if "verb" in element or "action" in element or "bridge" in element:
            return self.verbs
        return ()


def build_contextual_themes() -> Tuple[ContextualTheme, ...]:
    return (
        ContextualTheme(
            name="urban_nightlife",
            keywords=_words("city night neon street crowd"),
            associations=_words("energy movement lights sounds"),
            nouns=_words("lights shadows streets crowds beats pulse"),
            adjectives=_words("electric vibrant neon urban nocturnal"),
            verbs=_words("glow pulse move flow shine dance"),
            pattern_preferences=("techno_organic", "sensory_experience", "action_object"),
        ),
        ContextualTheme(
            name="natural_serenity",
            keywords=_words("nature peace calm organic earth"),
            associations=_words("tranquility growth harmony balance"),
            nouns=_words("forest stream mountain meadow breeze dawn"),
            adjectives=_words("gentle peaceful natural serene organic"),
            verbs=_words("flow grow breathe whisper nurture bloom"),
            pattern_preferences=("emotional_landscape", "temporal_concept", "sensory_experience"),
        ),
        ContextualTheme(
            name="cosmic_exploration",
            keywords=_words("space stars infinite cosmic universe"),
            associations=_words("vastness mystery exploration wonder"),
            nouns=_words("stars void cosmos galaxy nebula infinity"),
            adjectives=_words("cosmic infinite stellar ethereal mysterious"),
            verbs=_words("expand explore transcend drift orbit illuminate"),
            pattern_preferences=("abstract_concept", "philosophical_statement", "temporal_journey"),
        ),
        ContextualTheme(
            name="industrial_power",
            keywords=_words("machine steel power engine metal"),
            associations=_words("strength precision force construction"),
            nouns=_words("steel iron machine engine power force"),
            adjectives=_words("industrial metallic powerful mechanical raw"),
            verbs=_words("forge build drive hammer construct power"),
            pattern_preferences=("dynamic_adjective_noun", "contrasting_elements", "action_object"),
        ),
        ContextualTheme(
            name="romantic_intimacy",
            keywords=_words("love heart romantic intimate tender"),
            associations=_words("connection emotion warmth closeness"),
            nouns=_words("heart soul love kiss embrace dream"),
            adjectives=_words("tender warm intimate gentle passionate"),
            verbs=_words("love embrace caress whisper cherish adore"),
            pattern_preferences=("emotional_journey", "sensory_experience", "temporal_concept"),
        ),
    )


def build_genre_keywords() -> Dict[str, Tuple[str, ...]]:
    return {
        "rock": _words("power energy electric raw loud"),
        "jazz": _words("smooth cool improvise soul blue"),
        "electronic": _words("digital synthetic cyber neon tech"),
        "folk": _words("natural story traditional acoustic earth"),
        "pop": _words("catchy bright mainstream fun accessible"),
    }


def build_mood_keywords() -> Dict[str, Tuple[str, ...]]:
    return {
        "energetic": _words("energy movement power dynamic"),
        "melancholic": _words("sadness reflection introspection longing"),
        "peaceful": _words("tranquility harmony calm serenity"),
        "aggressive": _words("force intensity confrontation power"),
        "mysterious": _words("enigma unknown hidden secret"),
        "uplifting": _words("hope inspiration positive bright"),
        "romantic": _words("love intimacy tender passion"),
        "nostalgic": _words("memory past reminiscence vintage"),
    }


CONTEXTUAL_THEMES = build_contextual_themes()
GENRE_KEYWORDS = build_genre_keywords()
MOOD_KEYWORDS = build_mood_keywords()

_MOOD_ALIASES = {"melancholy": "melancholic", "dark": "mysterious", "bright": "uplifting"}
_HIGH_INTENSITY = frozenset({"energetic", "aggressive"})
_LOW_INTENSITY = frozenset({"peaceful", "melancholic", "romantic", "ethereal", "nostalgic"})


def _mood_key(mood: Optional[str]) -> str:
    key = (mood or "").strip().lower()
    return _MOOD_ALIASES.get(key, key)


def infer_intensity(mood: Optional[str]) -> Optional[str]:
    """Map a mood onto the low/medium/high intensity scale."""

    key = _mood_key(mood)
    if not key:
        return None
    if key in _HIGH_INTENSITY:
        return "high"
    if key in _LOW_INTENSITY:
        return "low"
    return "medium"


def _intensity_match(theme: ContextualTheme, intensity: str) -> float:
    if intensity == "low":
        return 1.0 if "serenity" in theme.name or "romantic" in theme.name else 0.5
    if intensity == "medium":
        return 0.7
    if intensity == "high":
        return 1.0 if "industrial" in theme.name or "urban" in theme.name else 0.3
    return 0.5


def _type_match(theme: ContextualTheme, content_type: str) -> float:
    if content_type == "band":
        return 0.8 if "industrial" in theme.name or "cosmic" in theme.name else 0.6
    return 0.7


def score_themes(
    genre: Optional[str],
    mood: Optional[str],
    content_type: Optional[str],
    intensity: Optional[str],
    hint: Optional[str] = None,
    *,
    themes: Tuple[ContextualTheme, ...] = CONTEXTUAL_THEMES,
) -> Dict[str, float]:
    genre_keywords = GENRE_KEYWORDS.get((genre or "").strip().lower(), ())
    mood_keywords = MOOD_KEYWORDS.get(_mood_key(mood), ())
    lowered_hint = (hint or "").lower()
    scores: Dict[str, float] = {}
    for theme in themes:
        score = 0.0
        score += sum(1 for keyword in theme.keywords if keyword in genre_keywords) * 0.3
        score += sum(1 for association in theme.associations if association in mood_keywords) * 0.25
        if intensity:
            score += _intensity_match(theme, intensity) * 0.2
        if content_type:
            score += _type_match(theme, content_type) * 0.15
        if lowered_hint:
            score += sum(1 for keyword in theme.keywords if keyword in lowered_hint) * 0.1
        scores[theme.name] = round(score, 4)
    return scores


def select_theme(
    genre: Optional[str],
    mood: Optional[str],
    content_type: Optional[str],
    intensity: Optional[str],
    hint: Optional[str] = None,
    *,
    themes: Tuple[ContextualTheme, ...] = CONTEXTUAL_THEMES,
) -> Optional[ContextualTheme]:
    """Return the best-scoring theme, or ``None`` when nothing scores above zero.

    Ties keep the earlier theme in declaration order.
    """

    scores = score_themes(genre, mood, content_type, intensity, hint, themes=themes)
    best: Optional[ContextualTheme] = None
    best_score = 0.0
    for theme in themes:
        if scores[theme.name] > best_score:
            best, best_score = theme, scores[theme.name]
    return best


# ---------------------------------------------------------------------------
# Dynamic patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DynamicPatternSpec:
    id: str
    structure: Tuple[str, ...]
    context_requirements: Tuple[str, ...]
    adaptive_elements: Tuple[str, ...]
    fusion_capable: bool
    complexity: str

    @property
    def word_count(self) -> int:
        return len(self.structure)


def build_dynamic_specs() -> Tuple[DynamicPatternSpec, ...]:
    return (
        DynamicPatternSpec(
            "adaptive_metaphor",
            ("metaphor_source", "metaphor_bridge", "metaphor_target"),
            ("theme", "intensity"),
            ("metaphor_source", "metaphor_target"),
            True,
            "complex",
        ),
        DynamicPatternSpec(
            "contextual_journey",
            ("journey_start", "journey_action", "journey_destination"),
            ("mood", "type"),
            ("journey_start", "journey_destination"),
            True,
            "medium",
        ),
        DynamicPatternSpec(
            "emotional_landscape",
            ("emotion_modifier", "landscape_type", "experience_quality"),
            ("mood", "intensity"),
            ("emotion_modifier", "experience_quality"),
            False,
            "medium",
        ),
        DynamicPatternSpec(
            "temporal_shift",
            ("time_reference", "transformation_verb", "outcome_state"),
            ("era", "theme"),
            ("time_reference", "outcome_state"),
            True,
            "simple",
        ),
        DynamicPatternSpec(
            "sensory_fusion",
            ("sense_type", "sensory_quality", "sensory_object"),
            ("intensity", "mood"),
            ("sensory_quality", "sensory_object"),
            False,
            "simple",
        ),
    )


def build_adaptive_pools() -> Dict[str, Tuple[str, ...]]:
    return {
        "metaphor_source": _words("fire water wind earth light shadow storm calm"),
        "metaphor_bridge": _words("becomes transforms evolves flows merges"),
        "metaphor_target": _words("dreams reality truth freedom power peace chaos order"),
        "journey_start": _words("silence darkness edge below within"),
        "journey_action": _words("rising flowing dancing soaring descending spinning"),
        "journey_destination": _words("light freedom glory peace truth beyond"),
        "emotion_modifier": _words("wild gentle fierce tender passionate serene intense"),
        "landscape_type": _words("mountains valleys oceans deserts forests plains skies"),
        "experience_quality": _words("calling singing breathing dreaming awakening dancing"),
        "time_reference": _words("yesterday tomorrow forever never always sometimes now"),
        "transformation_verb": _words("becomes turns evolves transforms changes shifts"),
        "outcome_state": _words("memory legend dream reality truth myth story"),
        "sense_type": _words("taste touch hear see feel sense know breathe"),
        "sensory_quality": _words("sweet bitter warm cool soft sharp smooth rough"),
        "sensory_object": _words("music silence colors textures rhythms harmonies melodies"),
    }


DYNAMIC_SPECS = build_dynamic_specs()
ADAPTIVE_POOLS = build_adaptive_pools()

# Element types whose contextual words come from the request's typed pools.
_CONTEXTUAL_SOURCES = {
    "metaphor_bridge": "verbs",
    "journey_action": None,
    "landscape_type": "nouns",
    "transformation_verb": None,
    "sense_type": None,
}


def eligible_dynamic_specs(
    creativity_level: str,
    word_count: int = 3,
    specs: Tuple[DynamicPatternSpec, ...] = DYNAMIC_SPECS,
) -> List[DynamicPatternSpec]:
    eligible = []
    for spec in specs:
        if spec.word_count != word_count:
            continue
        if creativity_level == "conservative" and spec.complexity == "complex":
            continue
        if creativity_level == "experimental" and spec.complexity == "simple":
            continue
        eligible.append(spec)
    return eligible


def select_dynamic_spec(
    rng: random.Random,
    creativity_level: str,
    theme: Optional[ContextualTheme] = None,
    word_count: int = 3,
) -> Optional[DynamicPatternSpec]:
    eligible = eligible_dynamic_specs(creativity_level, word_count)
    if not eligible:
        return None
    if theme is not None:
        preferred = [
            spec
            for spec in eligible
            if any(preference.split("_")[0] in spec.id for preference in theme.pattern_preferences)
        ]
        if preferred:
            return pick(rng, preferred)
    return pick(rng, eligible)


def _element_word(
    element: str,
    spec: DynamicPatternSpec,
    sources: WordSources,
    rng: random.Random,
    theme: Optional[ContextualTheme],
) -> str:
    pool = ADAPTIVE_POOLS.get(element, ())
    if element in spec.adaptive_elements:
        return choose(rng, pool, theme.bias_for(element) if theme else (), fallback="echo")
    typed = _CONTEXTUAL_SOURCES.get(element)
    source_words = getattr(sources, typed) if typed else ()
    bias = theme.bias_for(element) if theme and typed else ()
    return choose(rng, source_words, bias, pool, fallback="echo")


def build_dynamic_pattern(spec: DynamicPatternSpec, theme: Optional[ContextualTheme] = None) -> PatternDefinition:
    """Wrap ``spec`` as a pattern; adaptive elements lean on ``theme`` word bias."""

    def generate(sources: WordSources, rng: random.Random, target: int) -> str:
        return " ".join(
            capitalize(_element_word(element, spec, sources, rng, theme)) for element in spec.structure
        )

    return PatternDefinition(
        id=f"dynamic_{spec.id}",
        category="dynamic",
        subcategory=spec.id,
        min_word_count=spec.word_count,
        max_word_count=spec.word_count,
        weight=DYNAMIC_WEIGHT,
        template=" ".join("{%s}" % element for element in spec.structure),
        generator=generate,
        description=f"Dynamically constructed {spec.id} pattern"
        + (f" for {theme.name}" if theme else ""),
        complexity=spec.complexity,
        origin="dynamic",
    )


__all__ = [
    "ADAPTIVE_POOLS",
    "CONTEXTUAL_THEMES",
    "DYNAMIC_SPECS",
    "GENRE_KEYWORDS",
    "MOOD_KEYWORDS",
    "ContextualTheme",
    "DynamicPatternSpec",
    "build_adaptive_pools",
    "build_contextual_themes",
    "build_dynamic_pattern",
    "build_dynamic_specs",
    "build_genre_keywords",
    "build_mood_keywords",
    "eligible_dynamic_specs",
    "infer_intensity",
    "score_themes",
    "select_dynamic_spec",
    "select_theme",
]
