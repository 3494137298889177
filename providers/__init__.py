"""External data sources used to enrich name generation."""

from .base import ProviderAdapter
from .catalog import LastFmAdapter, MusicBrainzAdapter, SpotifyAdapter
from .lexical import ConceptNetAdapter, DatamuseAdapter, PoetryDbAdapter
from .llm import LLMCompletionAdapter
from .payloads import RawPayload
from .rate_limiter import RateLimiter
from .registry import build_default_adapters, build_rate_limiters

__all__ = [
    "ConceptNetAdapter",
    "DatamuseAdapter",
    "LLMCompletionAdapter",
    "LastFmAdapter",
    "MusicBrainzAdapter",
    "PoetryDbAdapter",
    "ProviderAdapter",
    "RateLimiter",
    "RawPayload",
    "SpotifyAdapter",
    "build_default_adapters",
    "build_rate_limiters",
]
