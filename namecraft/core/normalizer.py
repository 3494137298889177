"""Map provider payloads of any shape onto the common normalized entities."""

from __future__ import annotations

import base64
import math
import re
import time
from dataclasses import fields, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from namecraft.utils.observability import get_logger
from namecraft.utils.syllables import count_syllables, phonetic_key

from .errors import ProviderError
from .models import (
    NormalizedArtist,
    NormalizedEntity,
    NormalizedGenre,
    NormalizedTrack,
    NormalizedVocabulary,
    VocabularyWord,
)
from .word_stores import STOP_WORDS

MAX_GENRES = 5
MIN_WORD_LENGTH = 3
MAX_WORD_LENGTH = 15
RICH_METADATA_FIELDS = 3

_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
_ALPHA_ONLY = re.compile(r"^[a-z]+$")
_LINE_TOKENS = re.compile(r"[A-Za-z]+")

_THEME_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    ("dark", re.compile(r"dark|night|shadow|death|black", re.IGNORECASE)),
    ("light", re.compile(r"light|sun|bright|white|shine", re.IGNORECASE)),
    ("romantic", re.compile(r"love|heart|romance|kiss", re.IGNORECASE)),
    ("energetic", re.compile(r"fire|storm|thunder|wild", re.IGNORECASE)),
)

MOOD_INDICATORS = (
    "energetic", "calm", "melancholic", "uplifting", "dark", "romantic", "aggressive", "peaceful",
)

_ENTITY_TRUST = {"spotify": 15, "lastfm": 10, "musicbrainz": 12}
_WORD_TRUST = {"datamuse": 10, "conceptnet": 8, "poetrydb": 5, "llm": 0}
_GENRE_TRUST = {"spotify": 20, "lastfm": 15, "musicbrainz": 10}
_QUALITY_BONUS = {
    "spotify": 15,
    "lastfm": 10,
    "musicbrainz": 12,
    "datamuse": 8,
    "conceptnet": 6,
    "poetrydb": 5,
    "fallback": -10,
}


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def build_genre_aliases() -> Dict[str, str]:
    """Return the many-to-one map from genre spellings to canonical ids."""

    groups: Sequence[Tuple[Sequence[str], str]] = (
        (("rock", "rock music", "rock and roll", "rock n roll", "classic rock"), "rock"),
        (("alternative rock", "alt rock", "alternative"), "alternative-rock"),
        (("indie rock", "indie"), "indie-rock"),
        (("punk rock", "punk"), "punk"),
        (("hard rock",), "hard-rock"),
        (("progressive rock", "prog rock"), "progressive-rock"),
        (("electronic", "electronic music", "edm"), "electronic"),
        (("house", "house music"), "house"),
        (("techno", "techno music"), "techno"),
        (("ambient", "ambient music"), "ambient"),
        (("drum and bass", "dnb", "d&b"), "drum-and-bass"),
        (("dubstep",), "dubstep"),
        (("hip-hop", "hip hop", "hiphop", "rap", "rap music"), "hip-hop"),
        (("trap", "trap music"), "trap"),
        (("pop", "pop music", "popular music"), "pop"),
        (("pop rock",), "pop-rock"),
        (("indie pop",), "indie-pop"),
        (("jazz", "jazz music"), "jazz"),
        (("smooth jazz",), "smooth-jazz"),
        (("jazz fusion", "fusion"), "jazz-fusion"),
        (("folk", "folk music"), "folk"),
        (("indie folk",), "indie-folk"),
        (("country", "country music"), "country"),
        (("metal", "heavy metal"), "metal"),
        (("death metal",), "death-metal"),
        (("black metal",), "black-metal"),
        (("thrash metal",), "thrash-metal"),
        (("blues", "blues music"), "blues"),
        (("rhythm and blues", "r&b", "rnb"), "r-and-b"),
        (("classical", "classical music"), "classical"),
        (("orchestral",), "orchestral"),
        (("reggae",), "reggae"),
        (("latin", "latin music"), "latin"),
        (("world music", "world"), "world"),
    )
    aliases: Dict[str, str] = {}
    for variants, canonical in groups:
        for variant in variants:
            aliases[variant.strip().lower()] = canonical
    return aliases


def build_related_genres() -> Dict[str, Tuple[str, ...]]:
    return {
        "rock": ("alternative-rock", "indie-rock", "classic-rock"),
        "alternative-rock": ("indie-rock", "grunge", "post-rock"),
        "electronic": ("house", "techno", "ambient", "edm"),
        "hip-hop": ("rap", "trap", "r-and-b"),
        "pop": ("pop-rock", "indie-pop", "dance-pop"),
        "jazz": ("smooth-jazz", "jazz-fusion", "blues"),
        "metal": ("heavy-metal", "death-metal", "black-metal"),
        "folk": ("indie-folk", "country", "americana"),
    }


GENRE_ALIASES = build_genre_aliases()
RELATED_GENRES = build_related_genres()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def normalize_string(value: str) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace and collapse hyphens."""

    text = _NON_WORD.sub("", str(value).lower().strip())
    text = _WHITESPACE.sub("-", text)
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


def canonical_genre(genre: Optional[str]) -> Optional[str]:
    if not genre:
        return None
    key = str(genre).strip().lower()
    return GENRE_ALIASES.get(key) or normalize_string(key) or None


def normalize_genres(genres: Iterable[str]) -> List[str]:
    """Alias, dedupe (first occurrence wins) and cap at five genres."""

    normalized: List[str] = []
    for genre in genres:
        canonical = canonical_genre(genre)
        if canonical and canonical not in normalized:
            normalized.append(canonical)
        if len(normalized) >= MAX_GENRES:
            break
    return normalized


def related_genres(genre: Optional[str]) -> Tuple[str, ...]:
    canonical = canonical_genre(genre)
    return RELATED_GENRES.get(canonical or "", ())


def source_trust_bonus(source: str) -> float:
    """Fixed per-provider trust constant added to entity confidence."""

    return float(_ENTITY_TRUST.get(source, _WORD_TRUST.get(source, 0)))


def normalize_score(score: Any) -> float:
    try:
        value = float(score)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    if value <= 1:
        return max(0.0, value * 100.0)
    return min(100.0, max(0.0, value))


def word_type(word: str) -> str:
    lowered = word.lower()
    if lowered.endswith(("tion", "ness", "ment")):
        return "noun"
    if lowered.endswith(("ly", "ful", "ous")):
        return "adjective"
    if lowered.endswith(("ing", "ed", "s")):
        return "verb"
    return "concept"


def word_themes(word: str, context: Optional[str] = None) -> Tuple[str, ...]:
    themes: List[str] = []
    if context:
        themes.append(context)
    themes.extend(theme for theme, pattern in _THEME_PATTERNS if pattern.search(word))
    return tuple(themes)


def _raw_float(value: Any) -> float:
    try:
        return max(0.0, float(value or 0))
    except (TypeError, ValueError):
        return 0.0


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def data_quality(entity: Optional[NormalizedEntity]) -> float:
    """Completeness score: 100 minus empty-field penalty, plus richness and source bonuses."""

    if entity is None:
        return 0.0
    names = [item.name for item in fields(entity) if item.name not in ("id", "created_at")]
    if not names:
        return 0.0
    empty = sum(1 for name in names if _is_empty(getattr(entity, name)))
    score = 100.0 - (empty / len(names)) * 30.0
    if len(entity.metadata) > RICH_METADATA_FIELDS:
        score += 10.0
    score += _QUALITY_BONUS.get(entity.source, 0)
    return max(0.0, min(100.0, score))


def vocabulary_quality(entity: NormalizedVocabulary) -> float:
    words = entity.words
    average = sum(word.confidence for word in words) / len(words) if words else 0.0
    score = 50.0 + min(30.0, len(words) * 2.0) + min(20.0, len(entity.concepts) * 4.0)
    return min(100.0, score + average * 0.3)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def _label(value: Any) -> str:
    if isinstance(value, Mapping):
        return str(value.get("name") or value.get("label") or "").strip()
    return str(value or "").strip()


def _extract_name(data: Mapping[str, Any], source: str, kind: str) -> str:
    if kind == "track" and source == "musicbrainz":
        name = data.get("title") or data.get("name")
    else:
        name = data.get("name") or data.get("title")
    return str(name).strip() if name else ""


def _extract_genres(data: Mapping[str, Any], source: str) -> List[str]:
    if source == "spotify":
        genres = data.get("genres")
        if not genres:
            artists = _as_list(data.get("artists"))
            genres = artists[0].get("genres") if artists and isinstance(artists[0], Mapping) else []
    elif source == "lastfm":
        toptags = data.get("toptags") or data.get("tags") or {}
        tags = toptags.get("tag") if isinstance(toptags, Mapping) else toptags
        genres = [_label(tag) for tag in _as_list(tags)][:5]
    elif source == "musicbrainz":
        genres = [_label(tag) for tag in _as_list(data.get("tags"))]
    else:
        genres = _as_list(data.get("genres"))
    return [str(genre).strip() for genre in _as_list(genres) if genre and str(genre).strip()]


def _extract_popularity(data: Mapping[str, Any], source: str) -> float:
    if source == "lastfm":
        raw = data.get("listeners")
        if raw is None and isinstance(data.get("stats"), Mapping):
            raw = data["stats"].get("listeners")
        try:
            listeners = max(0.0, float(raw or 0))
        except (TypeError, ValueError):
            listeners = 0.0
        return min(100.0, math.log10(listeners + 1) * 10.0)
    if source == "musicbrainz":
        rating = data.get("rating")
        if isinstance(rating, Mapping):
            rating = rating.get("value")
        try:
            # MusicBrainz ratings are 0..5 stars.
            return min(100.0, max(0.0, float(rating or 0) * 20.0))
        except (TypeError, ValueError):
            return 0.0
    try:
        return min(100.0, max(0.0, float(data.get("popularity") or 0)))
    except (TypeError, ValueError):
        return 0.0


def _extract_track_artists(data: Mapping[str, Any], source: str) -> List[str]:
    if source == "lastfm":
        raw = _as_list(data.get("artist"))
    elif source == "musicbrainz":
        raw = [
            credit.get("artist", credit) if isinstance(credit, Mapping) else credit
            for credit in _as_list(data.get("artist-credit"))
        ]
    else:
        raw = _as_list(data.get("artists"))
    return [name for name in (_label(artist) for artist in raw) if name]


def _artist_metadata(data: Mapping[str, Any], source: str) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"source": source}
    for key in ("external_urls", "followers", "images"):
        if data.get(key):
            metadata[key] = data[key]
    if data.get("id"):
        metadata["source_id"] = data["id"]
    return metadata


def _track_metadata(data: Mapping[str, Any], source: str) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"source": source}
    if data.get("album"):
        metadata["album"] = data["album"]
    if data.get("duration_ms"):
        metadata["duration"] = data["duration_ms"]
    if data.get("explicit"):
        metadata["explicit"] = data["explicit"]
    if data.get("external_urls"):
        metadata["external_urls"] = data["external_urls"]
    if data.get("id"):
        metadata["source_id"] = data["id"]
    return metadata


def _era(data: Mapping[str, Any]) -> Optional[str]:
    raw = data.get("year") or data.get("release_date")
    if not raw:
        return None
    try:
        year = int(str(raw)[:4])
    except ValueError:
        return None
    if year < 1960:
        return "classic"
    for limit, label in ((1970, "60s"), (1980, "70s"), (1990, "80s"), (2000, "90s"), (2010, "2000s"), (2020, "2010s")):
        if year < limit:
            return label
    return "2020s"


def _raw_words(data: Any, source: str) -> List[Any]:
    if source == "datamuse":
        return _as_list(data) if isinstance(data, (list, tuple)) else []
    if source == "conceptnet":
        words = []
        for edge in _as_list(data.get("edges") if isinstance(data, Mapping) else None):
            if not isinstance(edge, Mapping):
                continue
            label = _label(edge.get("end")) or _label(edge.get("start"))
            words.append({"word": label, "score": _raw_float(edge.get("weight")) * 100.0})
        return words
    if source == "poetrydb":
        words = []
        for poem in _as_list(data):
            if not isinstance(poem, Mapping):
                continue
            for line in _as_list(poem.get("lines")):
                words.extend({"word": token, "score": 70} for token in _LINE_TOKENS.findall(str(line)))
        return words
    if isinstance(data, Mapping):
        return _as_list(data.get("words"))
    return _as_list(data) if isinstance(data, (list, tuple)) else []


def _raw_concepts(data: Any, source: str) -> List[str]:
    if source == "conceptnet" and isinstance(data, Mapping):
        concepts = []
        for edge in _as_list(data.get("edges")):
            if isinstance(edge, Mapping) and isinstance(edge.get("rel"), Mapping):
                concept = normalize_string(edge["rel"].get("label") or "")
                if concept and concept not in concepts:
                    concepts.append(concept)
        return concepts
    if isinstance(data, Mapping):
        return [normalize_string(_label(item)) for item in _as_list(data.get("concepts")) if _label(item)]
    return []


def _raw_lines(data: Any, source: str) -> List[str]:
    if source != "poetrydb":
        return []
    lines = []
    for poem in _as_list(data):
        if isinstance(poem, Mapping):
            lines.extend(str(line).strip() for line in _as_list(poem.get("lines")) if str(line).strip())
    return lines[:20]


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class DataNormalizer:
    """Turn raw provider payloads into :class:`NormalizedEntity` values.

    ``normalize`` is pure apart from the timestamp baked into the entity id;
    normalizing the same payload twice yields entities that compare equal on
    everything except ``id`` and ``created_at``.
    """

    def __init__(self, *, time_fn: Optional[Callable[[], float]] = None) -> None:
        self._time_fn = time_fn or time.time
        self._logger = get_logger(__name__).bind(component="data_normalizer")

    def _entity_id(self, name: str, kind: str) -> str:
        digest = base64.b64encode(normalize_string(name).encode("utf-8")).decode("ascii")[:8]
        return f"{kind}-{digest}-{int(self._time_fn() * 1000)}"

    def normalize(self, raw_payload: Any, source: str, domain: str, *, context: Optional[str] = None) -> NormalizedEntity:
        """Normalize ``raw_payload`` for ``domain``; raises :class:`ProviderError` on unusable data."""

        data = getattr(raw_payload, "data", raw_payload)
        if domain == "artist":
            return self.normalize_artist(self._mapping(data, source), source)
        if domain == "track":
            return self.normalize_track(self._mapping(data, source), source)
        if domain == "genre":
            return self.normalize_genre(self._mapping(data, source), source)
        if domain in ("vocabulary", "lyrics"):
            return self.normalize_vocabulary(data, source, context=context)
        raise ValueError(f"unknown domain {domain!r}")

    @staticmethod
    def _mapping(data: Any, source: str) -> Mapping[str, Any]:
        if isinstance(data, (list, tuple)) and data and isinstance(data[0], Mapping):
            data = data[0]
        if not isinstance(data, Mapping) or not data:
            raise ProviderError(source, "payload is not an object")
        return data

    def normalize_artist(self, data: Mapping[str, Any], source: str) -> NormalizedArtist:
        name = _extract_name(data, source, "artist") or "Unknown Artist"
        genres = normalize_genres(_extract_genres(data, source))
        popularity = _extract_popularity(data, source)
        confidence = 50.0
        if data.get("name"):
            confidence += 20
        if genres:
            confidence += 15
        if popularity > 0:
            confidence += 10
        confidence += _ENTITY_TRUST.get(source, 0)
        return NormalizedArtist(
            id=self._entity_id(name, "artist"),
            name=name,
            normalized_name=normalize_string(name),
            source=source,
            genres=tuple(genres),
            popularity=popularity,
            confidence=min(100.0, confidence),
            metadata=_artist_metadata(data, source),
        )

    def normalize_track(self, data: Mapping[str, Any], source: str) -> NormalizedTrack:
        name = _extract_name(data, source, "track") or "Unknown Track"
        artists = _extract_track_artists(data, source)
        genres = normalize_genres(_extract_genres(data, source))
        popularity = _extract_popularity(data, source)
        confidence = 50.0
        if data.get("name") or data.get("title"):
            confidence += 20
        if artists:
            confidence += 15
        if popularity > 0:
            confidence += 10
        confidence += _ENTITY_TRUST.get(source, 0)
        return NormalizedTrack(
            id=self._entity_id(name, "track"),
            name=name,
            normalized_name=normalize_string(name),
            source=source,
            genres=tuple(genres),
            popularity=popularity,
            confidence=min(100.0, confidence),
            metadata=_track_metadata(data, source),
            artists=tuple(artists),
        )

    def normalize_genre(self, data: Mapping[str, Any], source: str) -> NormalizedGenre:
        extracted = _extract_genres(data, source)
        genres = normalize_genres(extracted)
        if not genres:
            raise ProviderError(source, "no genres in payload")
        primary = genres[0]
        text = repr(data).lower()
        metadata: Dict[str, Any] = {
            "source": source,
            "subgenres": genres[1:4],
            "mood_tags": [mood for mood in MOOD_INDICATORS if mood in text],
        }
        era = _era(data)
        if era:
            metadata["era"] = era
        confidence = 40.0 + len(extracted) * 10 + _GENRE_TRUST.get(source, 0)
        return NormalizedGenre(
            id=self._entity_id(primary, "genre"),
            name=primary,
            normalized_name=normalize_string(primary),
            source=source,
            genres=tuple(genres),
            popularity=_extract_popularity(data, source),
            confidence=min(100.0, confidence),
            metadata=metadata,
            related=related_genres(primary),
        )

    def normalize_vocabulary(
        self,
        data: Any,
        source: str,
        *,
        context: Optional[str] = None,
    ) -> NormalizedVocabulary:
        words: List[VocabularyWord] = []
        seen = set()
        for item in _raw_words(data, source):
            if isinstance(item, Mapping):
                raw_word, raw_score = str(item.get("word") or ""), item.get("score")
            else:
                raw_word, raw_score = str(item or ""), None
            word = raw_word.lower().strip()
            if (
                not MIN_WORD_LENGTH <= len(word) <= MAX_WORD_LENGTH
                or word in STOP_WORDS
                or not _ALPHA_ONLY.match(word)
                or word in seen
            ):
                continue
            seen.add(word)
            confidence = 60.0 + min(30.0, _raw_float(raw_score) / 3.0)
            confidence += _WORD_TRUST.get(source, 0)
            words.append(
                VocabularyWord(
                    word=word,
                    score=normalize_score(raw_score if raw_score is not None else 50),
                    word_type=word_type(word),
                    syllables=count_syllables(word),
                    phonetic_key=phonetic_key(word),
                    themes=word_themes(word, context),
                    source=source,
                    confidence=min(100.0, confidence),
                )
            )

        concepts = _raw_concepts(data, source)
        lines = _raw_lines(data, source)
        if not words and not concepts:
            raise ProviderError(source, "no usable vocabulary in payload")

        label = context or source
        entity = NormalizedVocabulary(
            id=self._entity_id(label, "vocabulary"),
            name=label,
            normalized_name=normalize_string(label),
            source=source,
            metadata={"source": source, "word_count": len(words)},
            words=tuple(words),
            concepts=tuple(concepts),
            lines=tuple(lines),
        )
        confidence = vocabulary_quality(entity)
        self._logger.debug(
            "Normalized vocabulary",
            context={"source": source, "words": len(words), "concepts": len(concepts)},
        )
        return replace(entity, confidence=confidence, created_at=entity.created_at)


__all__ = [
    "GENRE_ALIASES",
    "RELATED_GENRES",
    "MOOD_INDICATORS",
    "build_genre_aliases",
    "build_related_genres",
    "normalize_string",
    "canonical_genre",
    "normalize_genres",
    "related_genres",
    "source_trust_bonus",
    "normalize_score",
    "word_type",
    "word_themes",
    "data_quality",
    "vocabulary_quality",
    "DataNormalizer",
]
