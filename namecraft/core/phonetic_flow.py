"""Pronounceability, flow, memorability and sound-uniqueness scoring."""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pronouncing

from namecraft.utils.observability import get_logger
from namecraft.utils.syllables import count_syllables

WEIGHTS: Dict[str, float] = {
    "pronunciation": 0.30,
    "flow": 0.25,
    "memorability": 0.25,
    "uniqueness": 0.20,
}

DIFFICULT_CLUSTERS: Tuple[str, ...] = (
    "xth", "fth", "sth", "pth", "kth", "tch", "dg",
    "ght", "gth", "ngth", "xts", "pts", "cts", "rsts",
)
AWKWARD_PAIRS: Tuple[str, ...] = ("xc", "qw", "kx", "vb", "zx", "qz")
SIMILAR_CONSONANTS: Tuple[frozenset, ...] = (
    frozenset("bp"),
    frozenset("dt"),
    frozenset("gkc"),
    frozenset("fv"),
    frozenset("szc"),
    frozenset("mn"),
)
GOOD_RHYTHMS = frozenset({"1-2", "2-1", "2-2", "3-3", "1-2-1", "2-1-2", "1-2-3", "3-2-1"})
COMMON_STARTERS = frozenset("tsbdrcm")
UNCOMMON_STARTERS = frozenset("xzqyvj")

_VOWELS = "aeiou"
_CONSONANT_RUN = re.compile(r"[b-df-hj-np-tv-z]{4,}")
_VOWEL_RUN = re.compile(r"[aeiou]{4,}")
_RARE_PAIR = re.compile(r"(?=([jqvxyz])(?!\1)([jqvxyz]))")
_REPEATED_LETTERS = re.compile(r"(.)\1{2,}")
_SYMBOLS = re.compile(r"[!?&]")
_DIGITS = re.compile(r"\d")
_LETTERS_ONLY = re.compile(r"[^a-z]")

QUALITY_LABELS: Tuple[Tuple[int, str, str], ...] = (
    (80, "excellent", "Excellent phonetic quality: flows naturally and memorably"),
    (65, "good", "Good phonetic quality: generally pleasant to say"),
    (50, "fair", "Moderate phonetic quality: some awkward elements"),
    (0, "poor", "Poor phonetic quality: difficult to pronounce or remember"),
)


def canonical_name(name: str) -> str:
    """Case-folded, whitespace-collapsed form used for scoring and caching."""

    return " ".join(name.split()).lower()


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


@lru_cache(maxsize=8192)
def _is_dictionary_word(word: str) -> bool:
    return bool(pronouncing.phones_for_word(word))


def is_compound(word: str, *, min_part: int = 3) -> bool:
    """Whether ``word`` splits into two dictionary words (``stormglass``)."""

    letters = _LETTERS_ONLY.sub("", word.lower())
    if len(letters) < min_part * 2 or _is_dictionary_word(letters):
        return False
    for index in range(min_part, len(letters) - min_part + 1):
        if _is_dictionary_word(letters[:index]) and _is_dictionary_word(letters[index:]):
            return True
    return False


def unusual_letter_pairs(name: str) -> List[str]:
    """Adjacent pairs of distinct rare letters inside words, such as ``yx`` in ``Vyxen``."""

    pairs: List[str] = []
    for word in name.lower().split():
        pairs.extend(first + second for first, second in _RARE_PAIR.findall(word))
    return pairs


def _rhyming_part(word: str) -> str:
    phones = pronouncing.phones_for_word(_LETTERS_ONLY.sub("", word))
    return pronouncing.rhyming_part(phones[0]) if phones else ""


@dataclass(frozen=True)
class PhoneticScore:
    overall: int
    pronunciation: float
    flow: float
    memorability: float
    uniqueness: float
    issues: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return quality_label(self.overall)[0]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "pronunciation": round(self.pronunciation, 2),
            "flow": round(self.flow, 2),
            "memorability": round(self.memorability, 2),
            "uniqueness": round(self.uniqueness, 2),
            "issues": list(self.issues),
            "strengths": list(self.strengths),
            "label": self.label,
        }


def quality_label(overall: float) -> Tuple[str, str]:
    """Return ``(label, assessment)`` for an overall score."""

    for threshold, label, assessment in QUALITY_LABELS:
        if overall >= threshold:
            return label, assessment
    return QUALITY_LABELS[-1][1], QUALITY_LABELS[-1][2]


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------


def score_pronunciation(name: str, words: List[str], issues: List[str]) -> float:
    score = 100.0
    for cluster in DIFFICULT_CLUSTERS:
        if cluster in name:
            score -= 10
            issues.append(f"difficult consonant cluster '{cluster}'")

    consonant_runs = _CONSONANT_RUN.findall(name)
    if consonant_runs:
        score -= 15 * len(consonant_runs)
        issues.append(f"consecutive consonants: {', '.join(consonant_runs)}")

    vowel_runs = _VOWEL_RUN.findall(name)
    if vowel_runs:
        score -= 10 * len(vowel_runs)
        issues.append(f"consecutive vowels: {', '.join(vowel_runs)}")

    for word in words:
        if len(word) > 12:
            score -= 10
            issues.append(f"word too long: '{word}'")

    for pair in AWKWARD_PAIRS:
        if pair in name:
            score -= 8
            issues.append(f"awkward letter pair '{pair}'")
    return _clamp(score)


def _similar_consonant(first: str, second: str) -> bool:
    if first == second:
        return True
    return any(first in group and second in group for group in SIMILAR_CONSONANTS)


def rhythm_score(syllables: List[int]) -> float:
    if len(syllables) <= 1:
        return 70.0
    if "-".join(str(count) for count in syllables) in GOOD_RHYTHMS:
        return 90.0
    if max(syllables) - min(syllables) <= 2:
        return 75.0
    return 60.0


def score_flow(words: List[str], issues: List[str], strengths: List[str]) -> float:
    letter_words = [word for word in (_LETTERS_ONLY.sub("", w) for w in words) if word]
    if len(letter_words) <= 1:
        return 85.0

    score = 100.0
    for current, following in zip(letter_words, letter_words[1:]):
        end, start = current[-1], following[0]
        if _similar_consonant(end, start):
            score -= 10
            issues.append(f"repetitive boundary '{current}' -> '{following}'")
        if (end in _VOWELS) != (start in _VOWELS):
            score += 5

    rhythm = rhythm_score([max(1, count_syllables(word)) for word in letter_words])
    if rhythm >= 90:
        strengths.append("pleasing syllable rhythm")
    score = score * 0.7 + rhythm * 0.3

    initials: Dict[str, int] = {}
    for word in letter_words:
        initials[word[0]] = initials.get(word[0], 0) + 1
    for letter, count in initials.items():
        if count > 2:
            score -= (count - 2) * 15
            issues.append(f"excessive alliteration on '{letter}'")
    return _clamp(score)


def has_rhyme(words: List[str]) -> bool:
    cleaned = [_LETTERS_ONLY.sub("", word) for word in words]
    for i, first in enumerate(cleaned):
        for second in cleaned[i + 1 :]:
            if len(first) >= 2 and len(second) >= 2 and first[-2:] == second[-2:]:
                return True
            if first != second and first and second:
                part = _rhyming_part(first)
                if part and part == _rhyming_part(second):
                    return True
    return False


def has_assonance(words: List[str]) -> bool:
    patterns = [re.sub(r"[^aeiou]", "", word) for word in words]
    return any(
        len(first) >= 2 and first == second for first, second in zip(patterns, patterns[1:])
    )


def has_distinctive_pattern(name: str, words: List[str]) -> bool:
    if _REPEATED_LETTERS.search(name) or _DIGITS.search(name) or _SYMBOLS.search(name):
        return True
    if name and not name[0].isalpha():
        return True
    return any(is_compound(word) for word in words)


def score_memorability(
    name: str, words: List[str], issues: List[str], strengths: List[str]
) -> float:
    score = 50.0
    length = len(name)
    if 8 <= length <= 20:
        score += 20
    elif length < 5:
        score -= 10
        issues.append("too short to be memorable")
    elif length > 30:
        score -= 20
        issues.append("too long to be easily memorable")

    if len(words) in (2, 3):
        score += 15
    elif len(words) == 1:
        score += 10
    elif len(words) > 5:
        score -= 20
        issues.append("too many words")

    if has_rhyme(words):
        score += 15
        strengths.append("internal rhyme")
    if has_assonance(words):
        score += 10
        strengths.append("assonance")
    if has_distinctive_pattern(name, words):
        score += 15
        strengths.append("distinctive pattern")
    return _clamp(score)


def score_uniqueness(name: str, words: List[str]) -> float:
    score = 50.0
    first = next((char for char in name if char.isalpha()), "")
    if first in UNCOMMON_STARTERS:
        score += 20
    elif first and first not in COMMON_STARTERS:
        score += 10

    if unusual_letter_pairs(name):
        score += 15
    compounds = [word for word in words if is_compound(word)]
    if compounds:
        score += 10
    if any(len(word) > 8 for word in compounds):
        score += 10
    return _clamp(score)


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class PhoneticFlowAnalyzer:
    """Pure scoring function with a bounded LRU cache keyed by canonical name."""

    def __init__(self, *, max_cache_entries: int = 512) -> None:
        self._cache_lock = threading.RLock()
        self._max_cache_entries = max(1, int(max_cache_entries))
        self._cache: "OrderedDict[str, PhoneticScore]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._logger = get_logger(__name__).bind(component="phonetic_flow_analyzer")

    def score(self, name: str) -> PhoneticScore:
        key = canonical_name(name)
        with self._cache_lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                self._hits += 1
                return cached
            self._misses += 1

        result = self._compute(key)
        with self._cache_lock:
            self._cache[key] = result
            self._cache.move_to_end(key)
            self._trim_cache()
        return result

    analyze = score

    def _trim_cache(self) -> None:
        while len(self._cache) > self._max_cache_entries:
            self._cache.popitem(last=False)

    def _compute(self, canonical: str) -> PhoneticScore:
        if not canonical:
            return PhoneticScore(0, 0.0, 0.0, 0.0, 0.0, issues=("empty name",))

        words = canonical.split(" ")
        issues: List[str] = []
        strengths: List[str] = []
        pronunciation = score_pronunciation(canonical, words, issues)
        flow = score_flow(words, issues, strengths)
        memorability = score_memorability(canonical, words, issues, strengths)
        uniqueness = score_uniqueness(canonical, words)
        overall = round(
            pronunciation * WEIGHTS["pronunciation"]
            + flow * WEIGHTS["flow"]
            + memorability * WEIGHTS["memorability"]
            + uniqueness * WEIGHTS["uniqueness"]
        )
        return PhoneticScore(
            overall=int(max(0, min(100, overall))),
            pronunciation=pronunciation,
            flow=flow,
            memorability=memorability,
            uniqueness=uniqueness,
            issues=tuple(issues),
            strengths=tuple(strengths),
        )

    def rank(self, names: Iterable[str], *, minimum: Optional[int] = None) -> List[Tuple[str, PhoneticScore]]:
        """Score ``names`` and return them best-first, optionally dropping low scores."""

        scored = [(name, self.score(name)) for name in names]
        if minimum is not None:
            scored = [item for item in scored if item[1].overall >= minimum]
        scored.sort(key=lambda item: item[1].overall, reverse=True)
        return scored

    def quality_assessment(self, name: str) -> str:
        return quality_label(self.score(name).overall)[1]

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def cache_info(self) -> Dict[str, int]:
        with self._cache_lock:
            return {
                "entries": len(self._cache),
                "max_entries": self._max_cache_entries,
                "hits": self._hits,
                "misses": self._misses,
            }


__all__ = [
    "WEIGHTS",
    "PhoneticScore",
    "PhoneticFlowAnalyzer",
    "canonical_name",
    "is_compound",
    "quality_label",
    "rhythm_score",
    "score_pronunciation",
    "score_flow",
    "score_memorability",
    "score_uniqueness",
    "unusual_letter_pairs",
]
