"""Final variety pass: dedupe, score, gate through the word filter, diversify."""

from __future__ import annotations

import math
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from namecraft.core.models import GenerationRequest, GenerationResult
from namecraft.core.word_filter import WordFilter
from namecraft.utils.observability import create_counter, get_logger

METRICS_TTL = 60 * 60.0
INTERESTING_DIGRAPHS = ("th", "ch", "sh", "ph", "qu", "ck", "ng")
SOURCE_BONUS = {"ai": 0.3, "pattern": 0.2}


def build_genre_alignment() -> Dict[str, Tuple[str, ...]]:
    return {
        "rock": ("stone", "fire", "thunder", "storm", "wild", "rebel"),
        "pop": ("bright", "shine", "star", "gold", "crystal", "diamond"),
        "electronic": ("digital", "cyber", "neon", "pulse", "wave", "frequency"),
        "folk": ("earth", "wood", "river", "mountain", "valley", "meadow"),
        "jazz": ("blue", "smooth", "cool", "night", "moon", "swing"),
        "metal": ("steel", "iron", "dark", "shadow", "blade", "forge"),
    }


def build_mood_alignment() -> Dict[str, Tuple[str, ...]]:
    return {
        "dark": ("shadow", "night", "black", "dark", "mystery", "void"),
        "bright": ("light", "sun", "bright", "gold", "shine", "glow"),
        "mysterious": ("shadow", "mystery", "secret", "hidden", "unknown", "enigma"),
        "energetic": ("fire", "storm", "thunder", "wild", "fury", "blast"),
        "melancholy": ("blue", "sad", "tear", "rain", "gray", "mist"),
        "ethereal": ("dream", "cloud", "mist", "spirit", "angel", "ghost"),
    }


GENRE_ALIGNMENT = build_genre_alignment()
MOOD_ALIGNMENT = build_mood_alignment()


def _aligned(name: str, keywords: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def has_unique_pattern(name: str) -> bool:
    """Alliteration across every word, or a distinctive digraph."""

    words = name.split()
    if len(words) > 1 and len({word[0].lower() for word in words}) == 1:
        return True
    lowered = name.lower()
    return any(digraph in lowered for digraph in INTERESTING_DIGRAPHS)


def variety_score(result: GenerationResult, request: GenerationRequest) -> float:
    score = 1.0
    length = len(result.name)
    if 3 <= length <= 8:
        score += 0.5
    elif length > 8:
        score += 0.3
    score += SOURCE_BONUS.get(result.source, 0.0)
    if request.genre and _aligned(result.name, GENRE_ALIGNMENT.get(request.genre, ())):
        score += 0.4
    if request.mood and _aligned(result.name, MOOD_ALIGNMENT.get(request.mood, ())):
        score += 0.3
    if has_unique_pattern(result.name):
        score += 0.2
    return score


def smart_multiplier(requested: int, available: int) -> int:
    """How many candidates to over-generate per missing name (1 when satisfied, at most 5)."""

    if available >= requested:
        return 1
    needed = requested - available
    return min(max(2, math.ceil(needed * 1.5)), 5)


class VarietyOptimizer:
    """Re-rank a candidate batch so the returned names differ from each other."""

    def __init__(
        self,
        word_filter: WordFilter,
        *,
        time_fn: Optional[Callable[[], float]] = None,
        metrics_ttl: float = METRICS_TTL,
    ) -> None:
        self.word_filter = word_filter
        self._time_fn = time_fn or time.time
        self._metrics_ttl = metrics_ttl
        self._usage: "OrderedDict[str, Tuple[int, float]]" = OrderedDict()
        self._logger = get_logger(__name__).bind(component="variety_optimizer")
        self._metric_failures = create_counter(
            "namecraft_variety_optimizer_failures_total",
            "Variety optimisation passes that failed and returned their input unchanged.",
        )

    smart_multiplier = staticmethod(smart_multiplier)

    @staticmethod
    def _dedupe(candidates: Iterable[GenerationResult]) -> List[GenerationResult]:
        seen = set()
        unique: List[GenerationResult] = []
        for candidate in candidates:
            key = candidate.name.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique

    def _gate(self, scored: List[Tuple[GenerationResult, float]], generation_id: str, content_type: str):
        kept: List[Tuple[GenerationResult, float]] = []
        for result, score in scored:
            if self.word_filter.is_accepted(result.name) or self.word_filter.accept_name(
                result.name, generation_id, content_type
            ):
                kept.append((result, score))
            else:
                self._logger.debug("Filtered repetitive name", context={"name": result.name})
        return kept

    @staticmethod
    def _diversify(scored: List[Tuple[GenerationResult, float]]) -> List[Tuple[GenerationResult, float]]:
        groups: Dict[str, List[Tuple[GenerationResult, float]]] = {}
        for item in scored:
            groups.setdefault(item[0].source, []).append(item)
        if not groups:
            return []
        cap = math.ceil(len(scored) / len(groups))
        diverse: List[Tuple[GenerationResult, float]] = []
        for items in groups.values():
            items.sort(key=lambda item: item[1], reverse=True)
            diverse.extend(items[:cap])
        return diverse

    def _record(self, names: Iterable[str]) -> None:
        now = self._time_fn()
        for name in names:
            key = name.lower()
            count = self._usage.pop(key, (0, now))[0]
            self._usage[key] = (count + 1, now)
        while self._usage:
            oldest_key = next(iter(self._usage))
            if now - self._usage[oldest_key][1] < self._metrics_ttl:
                break
            del self._usage[oldest_key]

    def optimize(
        self,
        candidates: Sequence[GenerationResult],
        request: GenerationRequest,
        generation_id: str,
    ) -> List[GenerationResult]:
        """Return at most ``request.count`` candidates, best variety first.

        Any failure returns ``candidates`` unchanged.
        """

        try:
            unique = self._dedupe(candidates)
            scored = [(result, variety_score(result, request)) for result in unique]
            scored.sort(key=lambda item: item[1], reverse=True)
            gated = self._gate(scored, generation_id, request.content_type)
            diverse = self._diversify(gated)
            diverse.sort(key=lambda item: item[1], reverse=True)
            chosen = [result for result, _ in diverse[: request.count]]
            self._record(result.name for result in chosen)
            self._logger.debug(
                "Variety optimised",
                context={"candidates": len(candidates), "unique": len(unique), "kept": len(chosen)},
            )
            return chosen
        except Exception as exc:
            self._metric_failures.inc()
            self._logger.error("Variety optimisation failed", context={"error": str(exc)})
            return list(candidates)

    def stats(self) -> Dict[str, Any]:
        now = self._time_fn()
        live = sum(1 for _, stamp in self._usage.values() if now - stamp < self._metrics_ttl)
        return {
            "variety_metrics_size": live,
            "total_metrics_size": len(self._usage),
            "metrics_ttl": self._metrics_ttl,
        }

    def clear_metrics(self) -> None:
        self._usage.clear()
        self._logger.info("Variety metrics cleared")


__all__ = [
    "GENRE_ALIGNMENT",
    "MOOD_ALIGNMENT",
    "VarietyOptimizer",
    "has_unique_pattern",
    "smart_multiplier",
    "variety_score",
]
