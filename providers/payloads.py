"""Tagged raw payloads returned by provider adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Type


@dataclass(frozen=True)
class RawPayload:
    """Provider JSON as received, tagged with where it came from."""

    source: ClassVar[str] = "unknown"

    kind: str
    query: str
    data: Any
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SpotifyArtistPayload(RawPayload):
    source: ClassVar[str] = "spotify"


@dataclass(frozen=True)
class LastFmArtistPayload(RawPayload):
    source: ClassVar[str] = "lastfm"


@dataclass(frozen=True)
class MusicBrainzArtistPayload(RawPayload):
    source: ClassVar[str] = "musicbrainz"


@dataclass(frozen=True)
class DatamusePayload(RawPayload):
    source: ClassVar[str] = "datamuse"


@dataclass(frozen=True)
class ConceptNetPayload(RawPayload):
    source: ClassVar[str] = "conceptnet"


@dataclass(frozen=True)
class PoetryDbPayload(RawPayload):
    source: ClassVar[str] = "poetrydb"


@dataclass(frozen=True)
class LLMPayload(RawPayload):
    source: ClassVar[str] = "llm"


PAYLOAD_TYPES: Dict[str, Type[RawPayload]] = {
    payload.source: payload
    for payload in (
        SpotifyArtistPayload,
        LastFmArtistPayload,
        MusicBrainzArtistPayload,
        DatamusePayload,
        ConceptNetPayload,
        PoetryDbPayload,
        LLMPayload,
    )
}


__all__ = [
    "PAYLOAD_TYPES",
    "RawPayload",
    "SpotifyArtistPayload",
    "LastFmArtistPayload",
    "MusicBrainzArtistPayload",
    "DatamusePayload",
    "ConceptNetPayload",
    "PoetryDbPayload",
    "LLMPayload",
]
