"""Value types passed between pipeline stages."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from .phonetic_flow import PhoneticScore

CONTENT_TYPES: Tuple[str, ...] = ("band", "song")
CREATIVITY_LEVELS: Tuple[str, ...] = ("conservative", "balanced", "experimental")
OPEN_WORD_COUNT = "4+"
MIN_WORD_COUNT = 1
MAX_WORD_COUNT = 10
OPEN_RANGE: Tuple[int, int] = (4, 10)
MAX_REQUEST_COUNT = 50

WordCount = Union[int, str]


# ---------------------------------------------------------------------------
# Requests and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationRequest:
    """A validated request for ``count`` band names or song titles."""

    content_type: str = "band"
    word_count: WordCount = 2
    count: int = 4
    genre: Optional[str] = None
    mood: Optional[str] = None
    secondary_genre: Optional[str] = None
    creativity_level: str = "balanced"
    enable_fusion: bool = False

    def __post_init__(self) -> None:
        for attr in ("genre", "mood", "secondary_genre"):
            value = getattr(self, attr)
            if value is not None:
                cleaned = str(value).strip().lower()
                object.__setattr__(self, attr, cleaned or None)
        self.validate()

    def validate(self) -> None:
        if self.content_type not in CONTENT_TYPES:
            raise ValidationError("content_type", f"expected one of {CONTENT_TYPES}")
        if self.creativity_level not in CREATIVITY_LEVELS:
            raise ValidationError("creativity_level", f"expected one of {CREATIVITY_LEVELS}")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ValidationError("count", "must be an integer")
        if not 1 <= self.count <= MAX_REQUEST_COUNT:
            raise ValidationError("count", f"must be between 1 and {MAX_REQUEST_COUNT}")
        if self.word_count == OPEN_WORD_COUNT:
            return
        if isinstance(self.word_count, bool) or not isinstance(self.word_count, int):
            raise ValidationError("word_count", f"must be an integer or {OPEN_WORD_COUNT!r}")
        if not MIN_WORD_COUNT <= self.word_count <= MAX_WORD_COUNT:
            raise ValidationError(
                "word_count", f"must be between {MIN_WORD_COUNT} and {MAX_WORD_COUNT}"
            )

    @property
    def open_range(self) -> bool:
        return self.word_count == OPEN_WORD_COUNT

    @property
    def fixed_word_count(self) -> Optional[int]:
        return None if self.open_range else int(self.word_count)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GenerationRequest":
        """Build a request from loosely typed input (CLI flags, JSON bodies)."""

        data = dict(payload)
        content_type = data.get("content_type", data.get("type", "band"))
        raw_words = data.get("word_count", data.get("wordCount", 2))
        if isinstance(raw_words, str) and raw_words.strip() != OPEN_WORD_COUNT:
            try:
                raw_words = int(raw_words.strip())
            except ValueError:
                raise ValidationError("word_count", f"cannot parse {raw_words!r}") from None
        elif isinstance(raw_words, str):
            raw_words = OPEN_WORD_COUNT
        raw_count = data.get("count", 4)
        try:
            count = int(raw_count)
        except (TypeError, ValueError):
            raise ValidationError("count", f"cannot parse {raw_count!r}") from None
        return cls(
            content_type=str(content_type).strip().lower(),
            word_count=raw_words,
            count=count,
            genre=data.get("genre"),
            mood=data.get("mood"),
            secondary_genre=data.get("secondary_genre", data.get("secondaryGenre")),
            creativity_level=str(data.get("creativity_level", "balanced")).strip().lower(),
            enable_fusion=bool(data.get("enable_fusion", data.get("enableFusion", False))),
        )


@dataclass(frozen=True)
class GenerationResult:
    """One emitted name: the externally visible unit of output."""

    name: str
    is_generated: bool = True
    source: str = "pattern"
    phonetic: Optional["PhoneticScore"] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def with_phonetic(self, score: "PhoneticScore") -> "GenerationResult":
        return replace(self, phonetic=score)

    @property
    def word_count(self) -> int:
        return len(self.name.split())

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "isGenerated": self.is_generated,
            "source": self.source,
        }
        if self.phonetic is not None:
            payload["phonetic"] = self.phonetic.as_dict()
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload


@dataclass
class GenerationResponse:
    """Final ordered results plus the metadata the route layer reports."""

    results: List[GenerationResult]
    generation_id: str
    used_fallback: bool = False
    fallback_chain: List[str] = field(default_factory=list)
    quality: Dict[str, Any] = field(default_factory=dict)
    degraded: bool = False
    static_fill_count: int = 0
    telemetry: Dict[str, Any] = field(default_factory=dict)

    @property
    def names(self) -> List[str]:
        return [result.name for result in self.results]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "names": [result.to_dict() for result in self.results],
            "generationId": self.generation_id,
            "usedFallback": self.used_fallback,
            "fallbackChain": list(self.fallback_chain),
            "quality": dict(self.quality),
            "degraded": self.degraded,
            "staticFillCount": self.static_fill_count,
        }


# ---------------------------------------------------------------------------
# Normalized provider data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VocabularyWord:
    word: str
    score: float
    word_type: str
    syllables: int
    phonetic_key: str
    themes: Tuple[str, ...] = ()
    source: str = ""
    confidence: float = 0.0


@dataclass(frozen=True)
class NormalizedEntity:
    """Provider output mapped into the common shape; never mutated."""

    kind: ClassVar[str] = "entity"

    id: str
    name: str
    normalized_name: str
    source: str
    genres: Tuple[str, ...] = ()
    popularity: float = 0.0
    confidence: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    created_at: float = field(default_factory=time.time, compare=False)

    def same_content(self, other: "NormalizedEntity") -> bool:
        """Compare everything except the id and creation timestamp."""

        return (
            type(self) is type(other)
            and self.name == other.name
            and self.normalized_name == other.normalized_name
            and self.genres == other.genres
            and self.popularity == other.popularity
            and self.confidence == other.confidence
        )


@dataclass(frozen=True)
class NormalizedArtist(NormalizedEntity):
    kind: ClassVar[str] = "artist"


@dataclass(frozen=True)
class NormalizedTrack(NormalizedEntity):
    kind: ClassVar[str] = "track"

    artists: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizedGenre(NormalizedEntity):
    kind: ClassVar[str] = "genre"

    related: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizedVocabulary(NormalizedEntity):
    kind: ClassVar[str] = "vocabulary"

    words: Tuple[VocabularyWord, ...] = ()
    concepts: Tuple[str, ...] = ()
    lines: Tuple[str, ...] = ()


@dataclass
class FusedResult:
    """One or more normalized entities combined by a fusion strategy."""

    domain: str
    query: str
    data: List[NormalizedEntity]
    confidence: float
    quality: float
    fallback_chain: List[str] = field(default_factory=list)
    successful_sources: List[str] = field(default_factory=list)
    failed_sources: List[str] = field(default_factory=list)
    fusion_used: str = "best_quality"
    emergency_mode: bool = False
    source_trust_bonus: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def primary(self) -> Optional[NormalizedEntity]:
        return self.data[0] if self.data else None

    def vocabulary_words(self) -> List[VocabularyWord]:
        words: List[VocabularyWord] = []
        for entity in self.data:
            words.extend(getattr(entity, "words", ()))
        return words

    def summary(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "query": self.query,
            "entities": len(self.data),
            "confidence": round(self.confidence, 2),
            "quality": round(self.quality, 2),
            "fallbackChain": list(self.fallback_chain),
            "fusionUsed": self.fusion_used,
            "emergencyMode": self.emergency_mode,
        }


__all__ = [
    "CONTENT_TYPES",
    "CREATIVITY_LEVELS",
    "OPEN_WORD_COUNT",
    "OPEN_RANGE",
    "MIN_WORD_COUNT",
    "MAX_WORD_COUNT",
    "MAX_REQUEST_COUNT",
    "WordCount",
    "GenerationRequest",
    "GenerationResult",
    "GenerationResponse",
    "VocabularyWord",
    "NormalizedEntity",
    "NormalizedArtist",
    "NormalizedTrack",
    "NormalizedGenre",
    "NormalizedVocabulary",
    "FusedResult",
]
