"""Repetition guard tracking words used in the current batch and recent history."""

from __future__ import annotations

import math
import random
import re
import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from namecraft.utils.observability import create_counter, get_logger

# ---------------------------------------------------------------------------
# Word tables
# ---------------------------------------------------------------------------

FUNCTION_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from up about into through
    during before after above below between among under over is are was were
    be been being have has had do does did will would could should may might
    can must shall this that these those i you he she it we they me him her
    us them my your his its our their
    """.split()
)

MINOR_WORDS = frozenset(
    """
    on in at by for with from up down out off all any some each every many
    much few little one two three first last next old new big small
    """.split()
)

VERY_MINOR_WORDS = frozenset(
    """
    the a an and or but in on at to for of with by from up down out off all
    any some old new big one two way day man get own say come good time year
    work back see go want know
    """.split()
)

_SPLIT_PATTERN = re.compile(r"[\s\-_]+")
_NON_LETTERS = re.compile(r"[^a-z]")

_SUFFIXES = (
    "ing", "ed", "er", "est", "ly", "ness", "ment", "tion", "sion", "ous",
    "ful", "less", "able", "ible", "al", "ic", "ive", "ary", "ory",
)


def stem(word: str) -> str:
    """Strip the first matching derivational suffix, then a plural ``s``."""

    lowered = word.lower()
    for suffix in _SUFFIXES:
        if lowered.endswith(suffix) and len(lowered) - len(suffix) >= 2:
            return lowered[: -len(suffix)]
    if len(lowered) > 4 and lowered.endswith("s") and not lowered.endswith("ss"):
        return lowered[:-1]
    return lowered


def all_words(name: str) -> List[str]:
    """Lowercase letter-only tokens of ``name`` with at least two letters."""

    tokens = (_NON_LETTERS.sub("", token) for token in _SPLIT_PATTERN.split(name.lower()))
    return [token for token in tokens if len(token) >= 2]


def tracked_words(name: str) -> List[str]:
    """Words that count for cross-request repetition (length 3+, content words)."""

    return [
        word
        for word in all_words(name)
        if len(word) >= 3 and word not in FUNCTION_WORDS and word not in MINOR_WORDS
    ]


def significant_words(name: str) -> List[str]:
    """Words that count for in-batch overlap (length 4+, not stop-words)."""

    return [word for word in all_words(name) if len(word) >= 4 and word not in VERY_MINOR_WORDS]


def _normalize_name(name: str) -> str:
    return " ".join(name.lower().split())


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordFilterConfig:
    """Windows and probabilities for recent-history rejection."""

    very_recent_window: float = 2 * 60.0
    recent_window: float = 10 * 60.0
    retention: float = 30 * 60.0
    max_recent_entries: int = 150
    cross_type_reject_probability: float = 0.25
    recent_reject_probability: float = 0.5
    overlap_ratio: float = 0.6
    overlap_cap: int = 2


@dataclass(frozen=True)
class WordTrackingEntry:
    word: str
    stem: str
    timestamp: float
    generation_id: str
    content_type: Optional[str] = None


class WordFilter:
    """Stateful guard against repeated words within and across generations.

    One instance is shared by the process and passed to the orchestrator;
    ``start_new_generation`` begins a batch, ``should_reject``/``accept``
    operate within it. Recent-window rejection is probabilistic so sustained
    load never exhausts the usable vocabulary.
    """

    def __init__(
        self,
        config: Optional[WordFilterConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        time_fn: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or WordFilterConfig()
        self._rng = rng or random.Random()
        self._time_fn = time_fn or time.time
        self._lock = threading.RLock()
        self._generation_counter = 0
        self._generation_id = ""
        self._batch: Set[str] = set()
        self._accepted_names: Set[str] = set()
        self._recent: Dict[str, WordTrackingEntry] = {}
        self._logger = get_logger(__name__).bind(component="word_filter")
        self._metric_rejections = create_counter(
            "namecraft_filter_rejections_total",
            "Candidate names rejected by the repetition guard.",
            label_names=("reason",),
        )

    @property
    def generation_id(self) -> str:
        return self._generation_id

    # -- lifecycle ---------------------------------------------------------

    def start_new_generation(self) -> str:
        """Clear the batch, purge expired history and return a new generation id."""

        with self._lock:
            self._generation_counter += 1
            self._batch.clear()
            self._accepted_names.clear()
            self._purge_expired_locked()
            self._generation_id = f"gen_{self._generation_counter}_{int(self._time_fn() * 1000)}"
            return self._generation_id

    def reset(self) -> None:
        with self._lock:
            self._batch.clear()
            self._accepted_names.clear()
            self._recent.clear()
            self._generation_counter = 0
            self._generation_id = ""
        self._logger.info("Word filter reset")

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        cutoff = self._time_fn() - self.config.retention
        expired = [word for word, entry in self._recent.items() if entry.timestamp < cutoff]
        for word in expired:
            del self._recent[word]
        return len(expired)

    def _enforce_bound_locked(self) -> None:
        if len(self._recent) <= self.config.max_recent_entries:
            return
        self._purge_expired_locked()
        overflow = len(self._recent) - self.config.max_recent_entries
        if overflow > 0:
            oldest = sorted(self._recent.items(), key=lambda item: item[1].timestamp)[:overflow]
            for word, _ in oldest:
                del self._recent[word]

    # -- decisions ---------------------------------------------------------

    def _reject(self, name: str, reason: str, **details: Any) -> bool:
        self._metric_rejections.labels(reason=reason).inc()
        self._logger.debug("Rejected candidate", context={"name": name, "reason": reason, **details})
        return True

    def _recent_collision(
        self,
        entry: WordTrackingEntry,
        now: float,
        content_type: Optional[str],
        *,
        allow_recent_window: bool,
    ) -> Optional[str]:
        age = now - entry.timestamp
        if age < self.config.very_recent_window:
            cross_type = bool(content_type and entry.content_type and content_type != entry.content_type)
            if not cross_type:
                return "very_recent"
            if self._rng.random() < self.config.cross_type_reject_probability:
                return "very_recent_cross_type"
            return None
        if (
            allow_recent_window
            and age < self.config.recent_window
            and self._rng.random() < self.config.recent_reject_probability
        ):
            return "recent"
        return None

    def should_reject(
        self,
        name: str,
        generation_id: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> bool:
        """Return whether ``name`` repeats the batch or recently used words."""

        normalized = _normalize_name(name)
        with self._lock:
            if normalized in self._batch:
                return self._reject(name, "exact_name")

            significant = significant_words(name)
            if significant:
                overlap = sum(1 for word in significant if word in self._batch)
                limit = min(
                    self.config.overlap_cap,
                    math.ceil(len(significant) * self.config.overlap_ratio),
                )
                if overlap >= limit:
                    return self._reject(name, "batch_overlap", overlap=overlap, limit=limit)

            now = self._time_fn()
            words = tracked_words(name)
            for word in words:
                entry = self._recent.get(word)
                if entry is None:
                    continue
                reason = self._recent_collision(entry, now, content_type, allow_recent_window=True)
                if reason:
                    return self._reject(name, reason, word=word)

            # Stems identical to a word were already checked above.
            stems = [token for token in dict.fromkeys(stem(word) for word in words) if token not in words]
            for word_stem in stems:
                entry = self._recent.get(word_stem)
                if entry is None:
                    continue
                reason = self._recent_collision(entry, now, content_type, allow_recent_window=False)
                if reason:
                    return self._reject(name, f"{reason}_stem", stem=word_stem)
        return False

    def accept(
        self,
        name: str,
        generation_id: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        """Record ``name`` in the current batch and in recent history."""

        words = tracked_words(name)
        stems = [stem(word) for word in words]
        with self._lock:
            gen_id = generation_id or self._generation_id
            timestamp = self._time_fn()
            self._batch.add(_normalize_name(name))
            self._accepted_names.add(_normalize_name(name))
            self._batch.update(significant_words(name))
            self._batch.update(words)
            self._batch.update(stems)
            for token in words + stems:
                self._recent[token] = WordTrackingEntry(
                    word=token,
                    stem=stem(token),
                    timestamp=timestamp,
                    generation_id=gen_id,
                    content_type=content_type,
                )
            self._enforce_bound_locked()

    def accept_name(
        self,
        name: str,
        generation_id: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> bool:
        """Accept ``name`` unless it should be rejected; return the decision."""

        with self._lock:
            if self.should_reject(name, generation_id, content_type):
                return False
            self.accept(name, generation_id, content_type)
            return True

    def is_accepted(self, name: str) -> bool:
        """Whether ``name`` was already accepted in the current batch."""

        with self._lock:
            return _normalize_name(name) in self._accepted_names

    # -- reporting ---------------------------------------------------------

    def variety_score(self, name: str) -> float:
        """Score 0..100; batch conflicts cost 50, recent uses cost up to 30."""

        words = tracked_words(name)
        score = 100.0
        with self._lock:
            now = self._time_fn()
            for word in words:
                if word in self._batch:
                    score -= 50
            for word in words:
                entry = self._recent.get(word)
                if entry is not None:
                    age_minutes = (now - entry.timestamp) / 60.0
                    score -= max(0.0, 30.0 - age_minutes)
        return max(0.0, score)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            now = self._time_fn()
            oldest = min((entry.timestamp for entry in self._recent.values()), default=now)
            return {
                "recent_words_count": len(self._recent),
                "current_generation_words_count": len(self._batch),
                "generation_id": self._generation_id,
                "generation_counter": self._generation_counter,
                "oldest_word_age_minutes": round((now - oldest) / 60.0),
            }

    def export_session(self) -> Dict[str, Any]:
        """Serialise recent history so a session can be restored later."""

        with self._lock:
            return {
                "generation_counter": self._generation_counter,
                "recent": [asdict(entry) for entry in self._recent.values()],
            }

    def load_session(self, data: Dict[str, Any]) -> int:
        """Merge previously exported history; returns the number of entries loaded."""

        loaded = 0
        with self._lock:
            self._generation_counter = max(
                self._generation_counter, int(data.get("generation_counter", 0) or 0)
            )
            for raw in data.get("recent", ()):
                try:
                    entry = WordTrackingEntry(
                        word=str(raw["word"]),
                        stem=str(raw.get("stem") or stem(raw["word"])),
                        timestamp=float(raw["timestamp"]),
                        generation_id=str(raw.get("generation_id", "")),
                        content_type=raw.get("content_type"),
                    )
                except (KeyError, TypeError, ValueError):
                    continue
                current = self._recent.get(entry.word)
                if current is None or current.timestamp < entry.timestamp:
                    self._recent[entry.word] = entry
                    loaded += 1
            self._purge_expired_locked()
            self._enforce_bound_locked()
        return loaded


__all__ = [
    "FUNCTION_WORDS",
    "MINOR_WORDS",
    "VERY_MINOR_WORDS",
    "WordFilterConfig",
    "WordTrackingEntry",
    "WordFilter",
    "stem",
    "all_words",
    "tracked_words",
    "significant_words",
]
