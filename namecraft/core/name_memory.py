"""Cross-session memory of emitted names with genre-aware expiry."""

from __future__ import annotations

import random
import re
import threading
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from namecraft.utils.observability import get_logger

_SPLIT_PATTERN = re.compile(r"[\s\-_]+")


def build_genre_relationships() -> Dict[str, Tuple[str, ...]]:
    return {
        "rock": ("metal", "punk", "indie", "alternative"),
        "pop": ("electropop", "synthpop", "dance"),
        "electronic": ("house", "techno", "ambient", "industrial"),
        "metal": ("rock", "punk", "industrial"),
        "indie": ("rock", "alternative", "folk"),
        "hip-hop": ("rap", "trap", "grime"),
        "folk": ("indie", "country", "acoustic"),
        "jazz": ("blues", "soul", "funk"),
        "country": ("folk", "bluegrass", "americana"),
        "jam band": ("rock", "funk", "blues", "psychedelic"),
    }


@dataclass(frozen=True)
class NameMemoryConfig:
    same_genre_expiry: float = 1 * 60 * 60.0
    related_genre_expiry: float = 12 * 60 * 60.0
    different_genre_expiry: float = 24 * 60 * 60.0
    related_reject_probability: float = 0.3
    different_reject_probability: float = 0.1
    capacity: int = 500
    trim_ratio: float = 0.8
    default_quality: float = 75.0


@dataclass(frozen=True)
class NameRecord:
    name: str
    timestamp: float
    genre: str
    content_type: str
    quality: float


def _genre_key(genre: Optional[str]) -> str:
    key = (genre or "").strip().lower()
    return "hip-hop" if key in ("hiphop", "hip hop") else key


def name_shape(name: str) -> str:
    words = [word for word in _SPLIT_PATTERN.split(name.lower()) if word]
    if len(words) == 1:
        return "single_word"
    if len(words) == 2:
        return "two_words"
    if len(words) >= 3:
        return "multi_word"
    return ""


class GlobalNameMemory:
    """Remember emitted names across requests and reject recent repeats.

    A name seen in the same genre within the hour is always rejected; within
    a related genre it is rejected 30% of the time for 12 hours, otherwise
    10% of the time for 24 hours.
    """

    def __init__(
        self,
        config: Optional[NameMemoryConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        time_fn: Optional[Callable[[], float]] = None,
        relationships: Optional[Dict[str, Tuple[str, ...]]] = None,
    ) -> None:
        self.config = config or NameMemoryConfig()
        self._rng = rng or random.Random()
        self._time_fn = time_fn or time.time
        self._relationships = relationships or build_genre_relationships()
        self._records: Dict[Tuple[str, str], NameRecord] = {}
        self._lock = threading.RLock()
        self._logger = get_logger(__name__).bind(component="global_name_memory")

    def is_related_genre(self, first: Optional[str], second: Optional[str]) -> bool:
        a, b = _genre_key(first), _genre_key(second)
        return b in self._relationships.get(a, ()) or a in self._relationships.get(b, ())

    def should_reject_globally(self, name: str, genre: Optional[str], content_type: str) -> bool:
        key = (" ".join(name.lower().split()), content_type)
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            age = self._time_fn() - record.timestamp
            current = _genre_key(genre)
            if record.genre == current:
                return age < self.config.same_genre_expiry
            if self.is_related_genre(current, record.genre):
                return (
                    age < self.config.related_genre_expiry
                    and self._rng.random() < self.config.related_reject_probability
                )
            return (
                age < self.config.different_genre_expiry
                and self._rng.random() < self.config.different_reject_probability
            )

    def add_name(
        self,
        name: str,
        genre: Optional[str],
        content_type: str,
        quality: Optional[float] = None,
    ) -> None:
        normalized = " ".join(name.lower().split())
        record = NameRecord(
            name=normalized,
            timestamp=self._time_fn(),
            genre=_genre_key(genre),
            content_type=content_type,
            quality=self.config.default_quality if quality is None else float(quality),
        )
        with self._lock:
            self._records[(normalized, content_type)] = record
            if len(self._records) > self.config.capacity:
                self._trim_locked()

    def _trim_locked(self) -> None:
        keep = int(self.config.capacity * self.config.trim_ratio)
        ordered = sorted(self._records.items(), key=lambda item: item[1].timestamp)
        for key, _ in ordered[: len(ordered) - keep]:
            del self._records[key]
        self._logger.debug("Trimmed name memory", context={"kept": len(self._records)})

    def recent_names(
        self,
        limit: int = 10,
        genre: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> List[str]:
        with self._lock:
            records = [
                record
                for record in self._records.values()
                if (genre is None or record.genre == _genre_key(genre))
                and (content_type is None or record.content_type == content_type)
            ]
        records.sort(key=lambda record: record.timestamp, reverse=True)
        return [record.name for record in records[:limit]]

    def recent_words(self, limit: int = 20) -> List[str]:
        counts: Counter = Counter()
        with self._lock:
            for record in self._records.values():
                counts.update(word for word in _SPLIT_PATTERN.split(record.name) if len(word) >= 3)
        return [word for word, _ in counts.most_common(limit)]

    def common_patterns(self, limit: int = 5) -> List[str]:
        with self._lock:
            counts = Counter(filter(None, (name_shape(record.name) for record in self._records.values())))
        return [pattern for pattern, _ in counts.most_common(limit)]

    def genre_quality_stats(self, genre: Optional[str]) -> Dict[str, float]:
        key = _genre_key(genre)
        with self._lock:
            qualities = [record.quality for record in self._records.values() if record.genre == key]
        average = sum(qualities) / len(qualities) if qualities else self.config.default_quality
        return {
            "average_quality": round(average),
            "high_quality_count": sum(1 for quality in qualities if quality >= 80),
            "recent_count": len(qualities),
        }

    def stats(self) -> Dict[str, float]:
        with self._lock:
            records = list(self._records.values())
        now = self._time_fn()
        oldest = max((now - record.timestamp for record in records), default=0.0)
        total_quality = sum(record.quality for record in records)
        return {
            "total_names": len(records),
            "oldest_age_minutes": round(oldest / 60.0),
            "average_quality": round(total_quality / len(records)) if records else 0,
        }

    def purge_expired(self) -> int:
        cutoff = self._time_fn() - self.config.different_genre_expiry
        with self._lock:
            expired = [key for key, record in self._records.items() if record.timestamp < cutoff]
            for key in expired:
                del self._records[key]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()


__all__ = [
    "GlobalNameMemory",
    "NameMemoryConfig",
    "NameRecord",
    "build_genre_relationships",
    "name_shape",
]
