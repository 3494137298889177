"""Runtime configuration read from ``NAMECRAFT_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from namecraft.core.name_memory import NameMemoryConfig
from namecraft.core.word_filter import WordFilterConfig

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _float(environ: Mapping[str, str], key: str, default: float, minimum: float = 0.0) -> float:
    raw = environ.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


def _int(environ: Mapping[str, str], key: str, default: int, minimum: int = 1) -> int:
    raw = environ.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


def _probability(environ: Mapping[str, str], key: str, default: float) -> float:
    value = _float(environ, key, default)
    return value if value <= 1.0 else default


def _flag(environ: Mapping[str, str], key: str, default: bool = False) -> bool:
    raw = environ.get(key)
    if raw is None or not str(raw).strip():
        return default
    return str(raw).strip().lower() in _TRUE_VALUES


def _text(environ: Mapping[str, str], key: str, default: Optional[str] = None) -> Optional[str]:
    raw = environ.get(key)
    if raw is None:
        return default
    raw = str(raw).strip()
    return raw or default


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    default_count: int = 10
    max_generation_attempts: int = 5
    provider_timeout: float = 10.0
    emergency_cache_ttl: float = 4 * 60 * 60.0
    emergency_cache_size: int = 256
    quality_threshold: float = 50.0
    filter: WordFilterConfig = field(default_factory=WordFilterConfig)
    memory: NameMemoryConfig = field(default_factory=NameMemoryConfig)
    spotify_token: Optional[str] = None
    lastfm_api_key: Optional[str] = None
    xai_api_key: Optional[str] = None
    llm_model: str = "grok-3-mini"
    llm_base_url: str = "https://api.x.ai/v1"
    offline: bool = False
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Malformed or out-of-range values fall back to the defaults.
        """

        env = os.environ if environ is None else environ
        base_filter = WordFilterConfig()
        base_memory = NameMemoryConfig()
        seed_raw = _text(env, "NAMECRAFT_SEED")
        try:
            seed = int(seed_raw) if seed_raw is not None else None
        except ValueError:
            seed = None

        return cls(
            log_level=(_text(env, "NAMECRAFT_LOG_LEVEL", "INFO") or "INFO").upper(),
            default_count=_int(env, "NAMECRAFT_DEFAULT_COUNT", cls.default_count),
            max_generation_attempts=_int(env, "NAMECRAFT_MAX_ATTEMPTS", cls.max_generation_attempts),
            provider_timeout=_float(env, "NAMECRAFT_PROVIDER_TIMEOUT", cls.provider_timeout, minimum=0.1),
            emergency_cache_ttl=_float(env, "NAMECRAFT_EMERGENCY_CACHE_TTL", cls.emergency_cache_ttl, minimum=1.0),
            emergency_cache_size=_int(env, "NAMECRAFT_EMERGENCY_CACHE_SIZE", cls.emergency_cache_size),
            quality_threshold=_float(env, "NAMECRAFT_QUALITY_THRESHOLD", cls.quality_threshold),
            filter=WordFilterConfig(
                very_recent_window=_float(env, "NAMECRAFT_FILTER_VERY_RECENT_SECONDS", base_filter.very_recent_window),
                recent_window=_float(env, "NAMECRAFT_FILTER_RECENT_SECONDS", base_filter.recent_window),
                retention=_float(env, "NAMECRAFT_FILTER_RETENTION_SECONDS", base_filter.retention),
                cross_type_reject_probability=_probability(
                    env, "NAMECRAFT_FILTER_CROSS_TYPE_PROBABILITY", base_filter.cross_type_reject_probability
                ),
                recent_reject_probability=_probability(
                    env, "NAMECRAFT_FILTER_RECENT_PROBABILITY", base_filter.recent_reject_probability
                ),
            ),
            memory=NameMemoryConfig(
                related_reject_probability=_probability(
                    env, "NAMECRAFT_MEMORY_RELATED_PROBABILITY", base_memory.related_reject_probability
                ),
                different_reject_probability=_probability(
                    env, "NAMECRAFT_MEMORY_DIFFERENT_PROBABILITY", base_memory.different_reject_probability
                ),
                capacity=_int(env, "NAMECRAFT_MEMORY_CAPACITY", base_memory.capacity),
            ),
            spotify_token=_text(env, "SPOTIFY_TOKEN"),
            lastfm_api_key=_text(env, "LASTFM_API_KEY"),
            xai_api_key=_text(env, "XAI_API_KEY"),
            llm_model=_text(env, "NAMECRAFT_LLM_MODEL", cls.llm_model) or cls.llm_model,
            llm_base_url=_text(env, "NAMECRAFT_LLM_BASE_URL", cls.llm_base_url) or cls.llm_base_url,
            offline=_flag(env, "NAMECRAFT_OFFLINE"),
            seed=seed,
        )

    def redacted(self) -> Dict[str, object]:
        """Settings summary safe to log."""

        return {
            "log_level": self.log_level,
            "default_count": self.default_count,
            "max_generation_attempts": self.max_generation_attempts,
            "provider_timeout": self.provider_timeout,
            "emergency_cache_ttl": self.emergency_cache_ttl,
            "quality_threshold": self.quality_threshold,
            "offline": self.offline,
            "spotify": bool(self.spotify_token),
            "lastfm": bool(self.lastfm_api_key),
            "llm": bool(self.xai_api_key),
        }


__all__ = ["Settings"]
