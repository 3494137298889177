"""Context-aware pattern selection with freshness decay."""

from __future__ import annotations

import random
import threading
import time
from collections import Counter, deque
from typing import Callable, Deque, Dict, List, Optional, Tuple, Union

from namecraft.core.errors import PatternGenerationError
from namecraft.core.models import OPEN_RANGE, OPEN_WORD_COUNT
from namecraft.core.word_stores import DEFAULT_WORD_STORES, WordStores
from namecraft.utils.observability import create_counter, get_logger
from namecraft.utils.randomness import weighted_choice

from .dataclasses import PatternDefinition, PatternOutcome, SelectionCriteria, WordSources
from .fusion import build_fused_pattern, rules_for
from .library import PatternLibrary
from .themes import build_dynamic_pattern, select_dynamic_spec, select_theme
from .validation import adjust_to_word_count, validate_word_count


def build_context_mappings() -> Dict[str, Dict[str, Tuple[str, ...]]]:
    return {
        "genre": {
            "rock": ("traditional", "narrative", "emotional", "fusion"),
            "jazz": ("sophisticated", "poetic", "temporal", "sensory"),
            "electronic": ("futuristic", "symbolic", "linguistic", "fusion"),
            "folk": ("traditional", "narrative", "temporal", "natural"),
            "pop": ("accessible", "emotional", "descriptive", "mainstream"),
            "indie": ("experimental", "poetic", "conceptual", "artistic"),
            "classical": ("sophisticated", "temporal", "philosophical", "elegant"),
            "punk": ("raw", "rebellious", "direct", "aggressive"),
            "blues": ("emotional", "narrative", "traditional", "soulful"),
            "country": ("storytelling", "traditional", "emotional", "rural"),
        },
        "mood": {
            "energetic": ("dynamic", "action", "powerful", "intense"),
            "melancholic": ("emotional", "temporal", "introspective", "poetic"),
            "peaceful": ("serene", "natural", "gentle", "harmonious"),
            "aggressive": ("strong", "confrontational", "raw", "powerful"),
            "mysterious": ("abstract", "symbolic", "enigmatic", "dark"),
            "uplifting": ("positive", "inspirational", "bright", "hopeful"),
            "romantic": ("emotional", "tender", "intimate", "beautiful"),
            "nostalgic": ("temporal", "reminiscent", "wistful", "vintage"),
        },
        "intensity": {
            "low": ("gentle", "subtle", "understated", "minimalist"),
            "medium": ("balanced", "moderate", "versatile", "accessible"),
            "high": ("intense", "bold", "dramatic", "powerful"),
        },
        "creativity": {
            "conservative": ("traditional", "familiar", "proven", "safe"),
            "balanced": ("creative", "interesting", "fresh", "appealing"),
            "experimental": ("innovative", "unique", "abstract", "artistic", "fused", "dynamic"),
        },
    }


CONTEXT_MAPPINGS = build_context_mappings()

SCORE_WEIGHTS = {"context": 0.4, "weight": 0.25, "freshness": 0.35}
MIN_DRAW_WEIGHT = 0.1


def resolve_word_count(word_count: Union[int, str], rng: random.Random) -> Tuple[int, bool]:
    """Return ``(target, open_range)``; ``"4+"`` draws uniformly from 4 to 10."""

    if isinstance(word_count, str) and word_count.strip() == OPEN_WORD_COUNT:
        return rng.randint(*OPEN_RANGE), True
    return int(word_count), False


class PatternSelector:
    """Pick and run patterns for a request.

    Selection blends how well a pattern's category suits the request with
    its intrinsic weight and a freshness term that penalises recent use.
    History decays after five minutes of inactivity.
    """

    def __init__(
        self,
        library: Optional[PatternLibrary] = None,
        *,
        rng: Optional[random.Random] = None,
        time_fn: Optional[Callable[[], float]] = None,
        stores: WordStores = DEFAULT_WORD_STORES,
        history_size: int = 20,
        decay_seconds: float = 300.0,
    ) -> None:
        self.library = library or PatternLibrary()
        self._rng = rng or random.Random()
        self._time_fn = time_fn or time.time
        self._stores = stores
        self._history_size = history_size
        self._decay_seconds = decay_seconds
        self._recent: Deque[str] = deque(maxlen=history_size)
        self._category_usage: Counter = Counter()
        self._subcategory_usage: Counter = Counter()
        self._last_selection = 0.0
        self._lock = threading.RLock()
        self._logger = get_logger(__name__).bind(component="pattern_selector")
        self._metric_fallbacks = create_counter(
            "namecraft_pattern_fallbacks_total",
            "Pattern generation attempts that fell back to a simpler path.",
            label_names=("stage",),
        )

    @property
    def rng(self) -> random.Random:
        return self._rng

    def resolve_word_count(self, word_count: Union[int, str]) -> Tuple[int, bool]:
        return resolve_word_count(word_count, self._rng)

    # -- eligibility -------------------------------------------------------

    def _extra_patterns(self, criteria: SelectionCriteria) -> List[PatternDefinition]:
        extras: List[PatternDefinition] = []
        theme = select_theme(criteria.genre, criteria.mood, criteria.content_type, criteria.intensity)
        spec = select_dynamic_spec(self._rng, criteria.creativity_level, theme, criteria.word_count)
        if spec is not None:
            extras.append(build_dynamic_pattern(spec, theme))
        if criteria.enable_fusion or criteria.creativity_level == "experimental":
            for rule in rules_for(criteria.word_count):
                first = self.library.get(rule.source_patterns[0])
                second = self.library.get(rule.source_patterns[1])
                if first is not None and second is not None:
                    extras.append(build_fused_pattern(rule, first, second))
        return extras

    def eligible(self, criteria: SelectionCriteria) -> List[PatternDefinition]:
        """Patterns whose range covers the target, narrowed by the request filters.

        A filter that would leave nothing is skipped rather than applied.
        """

        patterns = self.library.patterns_for(criteria.word_count)
        patterns.extend(p for p in self._extra_patterns(criteria) if p.supports(criteria.word_count))

        def narrow(candidates: List[PatternDefinition], keep) -> List[PatternDefinition]:
            narrowed = [pattern for pattern in candidates if keep(pattern)]
            return narrowed or candidates

        genre = (criteria.genre or "").lower()
        mood = (criteria.mood or "").lower()
        if genre:
            patterns = narrow(patterns, lambda p: not p.genres or genre in p.genres)
        if mood:
            patterns = narrow(patterns, lambda p: not p.moods or mood in p.moods)
        if criteria.avoid_categories:
            patterns = narrow(patterns, lambda p: p.category not in criteria.avoid_categories)
        if criteria.prefer_categories:
            patterns = narrow(patterns, lambda p: p.category in criteria.prefer_categories)
        return patterns

    # -- scoring -----------------------------------------------------------

    def context_match(self, pattern: PatternDefinition, criteria: SelectionCriteria) -> float:
        score = 0.5
        if pattern.category in CONTEXT_MAPPINGS["genre"].get((criteria.genre or "").lower(), ()):
            score += 0.3
        if pattern.category in CONTEXT_MAPPINGS["mood"].get((criteria.mood or "").lower(), ()):
            score += 0.2
        if pattern.category in CONTEXT_MAPPINGS["intensity"].get(criteria.intensity or "", ()):
            score += 0.15
        if pattern.category in CONTEXT_MAPPINGS["creativity"].get(criteria.creativity_level, ()):
            score += 0.15
        if criteria.content_type == "band" and pattern.category == "traditional":
            score += 0.1
        elif criteria.content_type == "song" and pattern.category in ("narrative", "poetic", "emotional"):
            score += 0.1
        return min(score, 1.0)

    def _decay_locked(self) -> None:
        if self._last_selection and self._time_fn() - self._last_selection > self._decay_seconds:
            for usage in (self._category_usage, self._subcategory_usage):
                for key in list(usage):
                    usage[key] //= 2
                    if usage[key] <= 0:
                        del usage[key]
            kept = list(self._recent)[-10:]
            self._recent.clear()
            self._recent.extend(kept)
            self._last_selection = self._time_fn()

    def freshness(self, pattern: PatternDefinition) -> float:
        with self._lock:
            self._decay_locked()
            bonus = 0.5
            if pattern.id in self._recent:
                bonus -= 0.3
            if self._category_usage[pattern.category] > 3:
                bonus -= 0.2
            if self._subcategory_usage[pattern.subcategory] > 2:
                bonus -= 0.15
        return max(bonus, 0.0)

    def score(self, pattern: PatternDefinition, criteria: SelectionCriteria) -> float:
        return (
            self.context_match(pattern, criteria) * SCORE_WEIGHTS["context"]
            + pattern.weight * SCORE_WEIGHTS["weight"]
            + self.freshness(pattern) * SCORE_WEIGHTS["freshness"]
        )

    def record_use(self, pattern: PatternDefinition) -> None:
        with self._lock:
            self._recent.append(pattern.id)
            self._category_usage[pattern.category] += 1
            self._subcategory_usage[pattern.subcategory] += 1
            self._last_selection = self._time_fn()

    # -- selection ---------------------------------------------------------

    def select(self, criteria: SelectionCriteria) -> PatternDefinition:
        patterns = self.eligible(criteria)
        if not patterns:
            raise PatternGenerationError("*", f"no pattern covers {criteria.word_count} words")
        weights = [max(self.score(pattern, criteria), MIN_DRAW_WEIGHT) for pattern in patterns]
        chosen = weighted_choice(self._rng, patterns, weights)
        self.record_use(chosen)
        self._logger.debug(
            "Selected pattern",
            context={"pattern": chosen.id, "category": chosen.category, "word_count": criteria.word_count},
        )
        return chosen

    def select_many(self, criteria: SelectionCriteria, count: int) -> List[PatternDefinition]:
        """Select up to ``count`` distinct patterns, favouring unused categories."""

        pool = self.eligible(criteria)
        chosen: List[PatternDefinition] = []
        categories, subcategories = set(), set()
        while pool and len(chosen) < count:
            weights = []
            for pattern in pool:
                weight = self.score(pattern, criteria)
                if pattern.category not in categories:
                    weight += 0.3
                if pattern.subcategory not in subcategories:
                    weight += 0.2
                weights.append(max(weight, MIN_DRAW_WEIGHT))
            pattern = weighted_choice(self._rng, pool, weights)
            pool.remove(pattern)
            chosen.append(pattern)
            categories.add(pattern.category)
            subcategories.add(pattern.subcategory)
            self.record_use(pattern)
        return chosen

    # -- generation --------------------------------------------------------

    def _try(self, pattern: PatternDefinition, criteria: SelectionCriteria, sources: WordSources) -> Optional[str]:
        try:
            name = pattern.generate(sources, self._rng, criteria.word_count)
        except PatternGenerationError as exc:
            self._logger.debug("Pattern failed", context={"pattern": exc.pattern_id, "reason": exc.reason})
            return None
        if validate_word_count(name, criteria.word_count, criteria.open_range):
            return name
        self._logger.debug(
            "Pattern produced wrong length",
            context={"pattern": pattern.id, "name": name, "word_count": criteria.word_count},
        )
        return None

    def generate(self, criteria: SelectionCriteria, sources: WordSources, attempts: int = 5) -> PatternOutcome:
        """Produce one name with a valid word count; never raises for pattern failures."""

        for _ in range(max(1, attempts)):
            try:
                pattern = self.select(criteria)
            except PatternGenerationError:
                break
            name = self._try(pattern, criteria, sources)
            if name is not None:
                return PatternOutcome(name, pattern.id, pattern.category, len(name.split()))

        simplest = self.library.simplest_for(criteria.word_count)
        if simplest is not None:
            self._metric_fallbacks.labels(stage="simplest").inc()
            name = self._try(simplest, criteria, sources)
            if name is not None:
                return PatternOutcome(name, simplest.id, simplest.category, len(name.split()), fallback=True)

        self._metric_fallbacks.labels(stage="structured_phrase").inc()
        phrase = self._stores.structured_phrase(criteria.word_count, self._rng, sources.genre)
        phrase = adjust_to_word_count(phrase, criteria.word_count, self._rng, sources.nouns)
        return PatternOutcome(phrase, "structured_phrase", "fallback", len(phrase.split()), fallback=True)

    # -- introspection -----------------------------------------------------

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "recent_patterns": list(self._recent),
                "category_usage": dict(self._category_usage),
                "subcategory_usage": dict(self._subcategory_usage),
                "library": self.library.stats(),
            }

    def reset(self) -> None:
        with self._lock:
            self._recent.clear()
            self._category_usage.clear()
            self._subcategory_usage.clear()
            self._last_selection = 0.0


__all__ = [
    "CONTEXT_MAPPINGS",
    "SCORE_WEIGHTS",
    "PatternSelector",
    "build_context_mappings",
    "resolve_word_count",
]
