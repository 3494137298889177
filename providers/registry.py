"""Default adapter set and rate-limit policies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

import httpx

from namecraft.utils.observability import get_logger

from .base import ProviderAdapter
from .catalog import LastFmAdapter, MusicBrainzAdapter, SpotifyAdapter
from .lexical import ConceptNetAdapter, DatamuseAdapter, PoetryDbAdapter
from .llm import LLMCompletionAdapter
from .rate_limiter import RateLimiter

if TYPE_CHECKING:  # pragma: no cover
    from namecraft.app.settings import Settings


def build_rate_limiters() -> Dict[str, RateLimiter]:
    """One limiter per provider, sized to each service's published limits."""

    return {
        "musicbrainz": RateLimiter("musicbrainz", max_concurrent=1, min_interval=1.0, burst_limit=10),
        "lastfm": RateLimiter("lastfm", max_concurrent=5, min_interval=0.2, burst_limit=50),
        "spotify": RateLimiter("spotify", max_concurrent=10, min_interval=0.1, burst_limit=17),
        "datamuse": RateLimiter("datamuse", max_concurrent=5, min_interval=0.05, burst_limit=50),
        "conceptnet": RateLimiter("conceptnet", max_concurrent=3, min_interval=0.2, burst_limit=30),
        "poetrydb": RateLimiter("poetrydb", max_concurrent=3, min_interval=0.2, burst_limit=30),
        "llm": RateLimiter("llm", max_concurrent=3, min_interval=0.2, burst_limit=10),
    }


def build_default_adapters(
    settings: "Settings",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ProviderAdapter]:
    """Instantiate every adapter the settings allow.

    Adapters that need a missing credential are left out; ``offline``
    returns no adapters at all.
    """

    logger = get_logger(__name__).bind(component="provider_registry")
    if settings.offline:
        logger.info("Offline mode: no provider adapters registered")
        return []

    limiters = build_rate_limiters()
    timeout = settings.provider_timeout

    def common(name: str) -> dict:
        return {"timeout": timeout, "limiter": limiters[name], "transport": transport}

    adapters: List[ProviderAdapter] = [
        DatamuseAdapter(**common("datamuse")),
        ConceptNetAdapter(**common("conceptnet")),
        PoetryDbAdapter(**common("poetrydb")),
        MusicBrainzAdapter(**common("musicbrainz")),
    ]
    skipped: List[str] = []
    if settings.spotify_token:
        adapters.append(SpotifyAdapter(settings.spotify_token, **common("spotify")))
    else:
        skipped.append("spotify")
    if settings.lastfm_api_key:
        adapters.append(LastFmAdapter(settings.lastfm_api_key, **common("lastfm")))
    else:
        skipped.append("lastfm")
    if settings.xai_api_key:
        adapters.append(
            LLMCompletionAdapter(
                settings.xai_api_key,
                model=settings.llm_model,
                base_url=settings.llm_base_url,
                **common("llm"),
            )
        )
    else:
        skipped.append("llm")

    logger.info(
        "Provider adapters registered",
        context={"adapters": [adapter.name for adapter in adapters], "skipped": skipped},
    )
    return adapters


__all__ = ["build_default_adapters", "build_rate_limiters"]
