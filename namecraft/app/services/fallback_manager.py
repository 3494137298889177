"""Multi-provider resolution with health-ordered fallback and fusion."""

from __future__ import annotations

import asyncio
import time
from collections import Counter, OrderedDict
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from namecraft.core.errors import AllSourcesExhausted, ProviderError, ProviderTimeout
from namecraft.core.models import FusedResult, NormalizedEntity, NormalizedVocabulary, VocabularyWord
from namecraft.core.normalizer import DataNormalizer, data_quality, source_trust_bonus, vocabulary_quality
from namecraft.utils.observability import (
    add_span_attributes,
    create_counter,
    get_logger,
    record_exception,
    start_span,
)
from namecraft.utils.scheduling import PeriodicTask

EMERGENCY_SOURCE = "emergency_cache"
EMERGENCY_PENALTY = 0.8
MAX_FUSION_SOURCES = 3
CONSENSUS_LIMIT = 10
MIN_CALL_TIMEOUT = 5.0
MAX_CALL_TIMEOUT = 15.0


@dataclass(frozen=True)
class FallbackStrategy:
    domain: str
    sources: Tuple[str, ...]
    min_confidence: float
    retries: int
    timeout_ms: int
    allow_emergency: bool = True
    fusion: str = "best_quality"

    @property
    def call_timeout(self) -> float:
        return max(MIN_CALL_TIMEOUT, min(MAX_CALL_TIMEOUT, self.timeout_ms / 1000.0))


def build_default_strategies() -> Dict[str, FallbackStrategy]:
    catalog = ("spotify", "lastfm", "musicbrainz", "llm")
    return {
        "artist": FallbackStrategy("artist", catalog, 70, 3, 15000, True, "best_quality"),
        "track": FallbackStrategy("track", catalog, 65, 3, 12000, True, "weighted_average"),
        "vocabulary": FallbackStrategy(
            "vocabulary", ("datamuse", "conceptnet", "poetrydb", "llm"), 50, 2, 10000, True, "consensus"
        ),
        "genre": FallbackStrategy("genre", catalog, 60, 3, 8000, True, "best_quality"),
        "lyrics": FallbackStrategy("lyrics", ("poetrydb", "conceptnet", "llm"), 40, 2, 15000, True, "first_success"),
    }


@dataclass
class ProviderHealth:
    success_rate: float = 50.0
    avg_latency: float = 1000.0
    last_update: float = 0.0

    @property
    def status(self) -> str:
        if self.success_rate > 70:
            return "healthy"
        if self.success_rate > 30:
            return "degraded"
        return "poor"

    @property
    def score(self) -> float:
        return (self.success_rate / 100.0) * (1000.0 / max(self.avg_latency, 100.0))


@dataclass
class DomainStats:
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    avg_quality: float = 0.0

    def record(self, success: bool, quality: float = 0.0) -> None:
        self.attempts += 1
        if success:
            self.successes += 1
            self.avg_quality += (quality - self.avg_quality) / self.successes
        else:
            self.failures += 1


@dataclass
class _Success:
    source: str
    entity: NormalizedEntity
    quality: float


@dataclass
class _CacheEntry:
    result: FusedResult
    stored_at: float = field(default=0.0)


class EmergencyCache:
    """Bounded LRU of last-good results with a time-to-live."""

    def __init__(self, ttl: float = 4 * 60 * 60.0, max_entries: int = 256, *, time_fn: Callable[[], float] = time.time):
        self.ttl = ttl
        self.max_entries = max(1, int(max_entries))
        self._time_fn = time_fn
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[FusedResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._time_fn() - entry.stored_at > self.ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.result

    def put(self, key: str, result: FusedResult) -> None:
        self._entries[key] = _CacheEntry(result, self._time_fn())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def sweep(self) -> int:
        now = self._time_fn()
        expired = [key for key, entry in self._entries.items() if now - entry.stored_at > self.ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


def cache_key(domain: str, query: str) -> str:
    return f"{domain}:{' '.join(str(query).lower().split())}"


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


# ---------------------------------------------------------------------------
# Fusion
# ---------------------------------------------------------------------------


def _merge_vocabulary(successes: List[_Success]) -> NormalizedVocabulary:
    counts: Counter = Counter()
    best: Dict[str, VocabularyWord] = {}
    concepts: List[str] = []
    lines: List[str] = []
    for success in successes:
        entity = success.entity
        for word in getattr(entity, "words", ()):
            counts[word.word] += 1
            if word.word not in best or word.confidence > best[word.word].confidence:
                best[word.word] = word
        concepts.extend(c for c in getattr(entity, "concepts", ()) if c not in concepts)
        lines.extend(getattr(entity, "lines", ()))
    ordered = sorted(best.values(), key=lambda word: (-counts[word.word], -word.confidence))
    base = successes[0].entity
    merged = NormalizedVocabulary(
        id=base.id,
        name=base.name,
        normalized_name=base.normalized_name,
        source="fused",
        metadata={"sources": [success.source for success in successes], "word_count": len(ordered)},
        words=tuple(ordered),
        concepts=tuple(concepts),
        lines=tuple(lines[:20]),
    )
    return replace(merged, confidence=vocabulary_quality(merged))


def fuse_results(method: str, successes: List[_Success]) -> Tuple[List[NormalizedEntity], float, float]:
    """Combine ``successes`` and return ``(data, confidence, quality)``.

    The fused confidence never exceeds the highest input confidence.
    """

    if not successes:
        raise ValueError("nothing to fuse")
    ceiling = max(success.entity.confidence for success in successes)
    average_quality = sum(success.quality for success in successes) / len(successes)

    if method == "first_success":
        first = successes[0]
        return [first.entity], _clamp(first.entity.confidence), first.quality

    if method == "weighted_average":
        groups: Dict[str, _Success] = {}
        for success in successes:
            key = success.entity.normalized_name
            if key not in groups or success.quality > groups[key].quality:
                groups[key] = success
        kept = sorted(groups.values(), key=lambda success: success.quality, reverse=True)
        total_weight = sum(success.quality for success in successes) or 1.0
        weighted = sum(success.entity.confidence * success.quality for success in successes) / total_weight
        return [success.entity for success in kept], _clamp(min(weighted, ceiling)), average_quality

    if method == "consensus":
        if all(isinstance(success.entity, NormalizedVocabulary) for success in successes):
            merged = _merge_vocabulary(successes)
            confidence = sum(success.entity.confidence for success in successes) / len(successes)
            return [merged], _clamp(min(confidence, ceiling)), average_quality
        appearances: Counter = Counter()
        best: Dict[str, NormalizedEntity] = {}
        for success in successes:
            key = success.entity.normalized_name
            appearances[key] += 1
            if key not in best or success.entity.confidence > best[key].confidence:
                best[key] = success.entity
        ordered = sorted(best.values(), key=lambda entity: (-appearances[entity.normalized_name], -entity.confidence))
        ordered = ordered[:CONSENSUS_LIMIT]
        confidence = sum(entity.confidence for entity in ordered) / len(ordered)
        return ordered, _clamp(min(confidence, ceiling)), average_quality

    winner = max(successes, key=lambda success: success.quality)
    return [winner.entity], _clamp(winner.entity.confidence), winner.quality


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class FallbackManager:
    """Resolve a ``(domain, query)`` pair against an ordered chain of providers.

    Providers are tried one at a time, best observed health first. Transient
    timeouts are retried; other provider errors move on to the next source.
    When every source fails a recent good result from the emergency cache is
    returned at reduced confidence before :class:`AllSourcesExhausted` is
    raised.
    """

    def __init__(
        self,
        adapters: Iterable[Any] = (),
        *,
        normalizer: Optional[DataNormalizer] = None,
        strategies: Optional[Mapping[str, FallbackStrategy]] = None,
        time_fn: Optional[Callable[[], float]] = None,
        cache_ttl: float = 4 * 60 * 60.0,
        cache_size: int = 256,
        sweep_interval: float = 60 * 60.0,
        stats_interval: float = 5 * 60.0,
    ) -> None:
        self._time_fn = time_fn or time.time
        self._adapters: Dict[str, Any] = {}
        for adapter in adapters:
            self.register_adapter(adapter)
        self.normalizer = normalizer or DataNormalizer(time_fn=self._time_fn)
        self._strategies: Dict[str, FallbackStrategy] = dict(strategies or build_default_strategies())
        self._health: Dict[str, ProviderHealth] = {}
        self._stats: Dict[str, DomainStats] = {}
        self.emergency_cache = EmergencyCache(cache_ttl, cache_size, time_fn=self._time_fn)
        self._tasks = (
            PeriodicTask("emergency-cache-sweep", sweep_interval, self.sweep_emergency_cache),
            PeriodicTask("fallback-stats-log", stats_interval, self.log_stats),
        )
        self._logger = get_logger(__name__).bind(component="fallback_manager")
        self._metric_resolutions = create_counter(
            "namecraft_fallback_resolutions_total",
            "Fallback resolutions by domain and outcome.",
            label_names=("domain", "outcome"),
        )
        self._metric_cache_hits = create_counter(
            "namecraft_emergency_cache_hits_total",
            "Emergency cache entries served after every provider failed.",
            label_names=("domain",),
        )
        self._logger.info(
            "Fallback manager initialised",
            context={
                "adapters": sorted(self._adapters),
                "domains": sorted(self._strategies),
                "cache_ttl": cache_ttl,
                "cache_size": cache_size,
            },
        )

    # -- configuration -----------------------------------------------------

    @property
    def adapters(self) -> Dict[str, Any]:
        return dict(self._adapters)

    def register_adapter(self, adapter: Any) -> None:
        self._adapters[adapter.name] = adapter

    def strategy(self, domain: str) -> FallbackStrategy:
        try:
            return self._strategies[domain]
        except KeyError:
            raise ValueError(f"no fallback strategy for domain {domain!r}") from None

    def set_strategy(self, strategy: FallbackStrategy) -> None:
        self._strategies[strategy.domain] = strategy

    def _supports(self, name: str, domain: str) -> bool:
        adapter = self._adapters.get(name)
        if adapter is None:
            return False
        supports = getattr(adapter, "supports", None)
        return supports(domain) if callable(supports) else True

    def order_sources(self, domain: str, primary_provider_hint: Optional[str] = None) -> List[str]:
        """Strategy sources with adapters, hint first, then by health score (stable)."""

        strategy = self.strategy(domain)
        candidates = [name for name in strategy.sources if self._supports(name, domain)]
        ordered = sorted(
            candidates,
            key=lambda name: -self._health.get(name, ProviderHealth()).score,
        )
        if primary_provider_hint and self._supports(primary_provider_hint, domain):
            ordered = [primary_provider_hint] + [name for name in ordered if name != primary_provider_hint]
        return ordered

    # -- health ------------------------------------------------------------

    def _record_health(self, provider: str, success: bool, latency_ms: float) -> None:
        health = self._health.setdefault(provider, ProviderHealth())
        health.avg_latency = 0.8 * health.avg_latency + 0.2 * latency_ms
        health.success_rate = _clamp(0.9 * health.success_rate + (10.0 if success else -5.0))
        health.last_update = self._time_fn()

    # -- resolution --------------------------------------------------------

    async def _call(
        self,
        name: str,
        domain: str,
        query: str,
        options: Dict[str, Any],
        strategy: FallbackStrategy,
    ) -> NormalizedEntity:
        adapter = self._adapters[name]
        attempts = max(1, strategy.retries)
        last_error: Optional[ProviderError] = None
        for attempt in range(1, attempts + 1):
            started = time.perf_counter()
            try:
                raw = await asyncio.wait_for(
                    adapter.fetch(query, {**options, "domain": domain}),
                    timeout=strategy.call_timeout,
                )
                entity = self.normalizer.normalize(raw, name, domain, context=query)
            except asyncio.TimeoutError:
                last_error = ProviderTimeout(name, strategy.call_timeout)
            except ProviderError as exc:
                last_error = exc
            except Exception as exc:
                # Adapter bugs and payloads the normalizer cannot read count as provider failures.
                last_error = ProviderError(name, f"{type(exc).__name__}: {exc}")
                last_error.__cause__ = exc
            else:
                self._record_health(name, True, (time.perf_counter() - started) * 1000.0)
                return entity
            self._record_health(name, False, (time.perf_counter() - started) * 1000.0)
            self._logger.warning(
                "Provider attempt failed",
                context={"provider": name, "domain": domain, "attempt": attempt, "error": str(last_error)},
            )
            if not isinstance(last_error, ProviderTimeout):
                break
        assert last_error is not None
        raise last_error

    @staticmethod
    def _quality(entity: NormalizedEntity) -> float:
        if isinstance(entity, NormalizedVocabulary):
            return vocabulary_quality(entity)
        return data_quality(entity)

    async def resolve(
        self,
        domain: str,
        query: str,
        primary_provider_hint: Optional[str] = None,
        *,
        fusion: bool = False,
        options: Optional[Mapping[str, Any]] = None,
    ) -> FusedResult:
        strategy = self.strategy(domain)
        stats = self._stats.setdefault(domain, DomainStats())
        chain: List[str] = []
        failed: List[str] = []
        successes: List[_Success] = []
        call_options = dict(options or {})

        with start_span("fallback.resolve", {"domain": domain, "query": query, "fusion": fusion}) as span:
            for name in self.order_sources(domain, primary_provider_hint):
                chain.append(name)
                try:
                    entity = await self._call(name, domain, query, call_options, strategy)
                except ProviderError as exc:
                    failed.append(name)
                    record_exception(span, exc)
                    continue
                successes.append(_Success(name, entity, self._quality(entity)))
                if fusion:
                    if len(successes) >= MAX_FUSION_SOURCES:
                        break
                elif entity.confidence >= strategy.min_confidence:
                    break

            key = cache_key(domain, query)
            if not successes:
                stats.record(False)
                cached = self.emergency_cache.get(key) if strategy.allow_emergency else None
                if cached is not None:
                    self._metric_cache_hits.labels(domain=domain).inc()
                    self._metric_resolutions.labels(domain=domain, outcome="emergency").inc()
                    self._logger.warning(
                        "Serving emergency cache",
                        context={"domain": domain, "query": query, "failed": failed},
                    )
                    add_span_attributes(span, {"emergency": True})
                    return replace(
                        cached,
                        confidence=cached.confidence * EMERGENCY_PENALTY,
                        quality=cached.quality * EMERGENCY_PENALTY,
                        fallback_chain=chain + [EMERGENCY_SOURCE],
                        successful_sources=[],
                        failed_sources=list(failed),
                        emergency_mode=True,
                        timestamp=self._time_fn(),
                    )
                self._metric_resolutions.labels(domain=domain, outcome="exhausted").inc()
                self._logger.error(
                    "All sources exhausted",
                    context={"domain": domain, "query": query, "failed": failed},
                )
                raise AllSourcesExhausted(domain, query, failed)

            if fusion and len(successes) > 1:
                method = strategy.fusion
            else:
                method = "best_quality"
            data, confidence, quality = fuse_results(method, successes)
            result = FusedResult(
                domain=domain,
                query=query,
                data=data,
                confidence=confidence,
                quality=quality,
                fallback_chain=chain,
                successful_sources=[success.source for success in successes],
                failed_sources=failed,
                fusion_used=method,
                source_trust_bonus=max(source_trust_bonus(success.source) for success in successes),
                timestamp=self._time_fn(),
            )
            stats.record(True, quality)
            if confidence >= strategy.min_confidence:
                self.emergency_cache.put(key, result)
            self._metric_resolutions.labels(domain=domain, outcome="success").inc()
            add_span_attributes(
                span,
                {"sources": ",".join(result.successful_sources), "confidence": round(confidence, 2)},
            )
            self._logger.info("Resolved", context=result.summary())
            return result

    # -- observability -----------------------------------------------------

    def get_provider_health(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "status": health.status,
                "success_rate": round(health.success_rate, 2),
                "avg_latency": round(health.avg_latency, 2),
                "last_update": health.last_update,
            }
            for name, health in self._health.items()
        }

    def get_fallback_stats(self) -> Dict[str, Dict[str, Any]]:
        return {
            domain: {
                "attempts": stats.attempts,
                "successes": stats.successes,
                "failures": stats.failures,
                "avg_quality": round(stats.avg_quality, 2),
            }
            for domain, stats in self._stats.items()
        }

    def reset_stats(self) -> None:
        self._health.clear()
        self._stats.clear()
        self._logger.info("Fallback statistics reset")

    def sweep_emergency_cache(self) -> int:
        removed = self.emergency_cache.sweep()
        if removed:
            self._logger.info("Emergency cache swept", context={"removed": removed, "remaining": len(self.emergency_cache)})
        return removed

    def log_stats(self) -> None:
        self._logger.info(
            "Fallback statistics",
            context={"health": self.get_provider_health(), "domains": self.get_fallback_stats()},
        )

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        for task in self._tasks:
            task.start()

    @property
    def running(self) -> bool:
        return any(task.running for task in self._tasks)

    async def aclose(self) -> None:
        for task in self._tasks:
            await task.stop()
        for adapter in self._adapters.values():
            closer = getattr(adapter, "aclose", None)
            if closer is not None:
                await closer()

    async def __aenter__(self) -> "FallbackManager":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = [
    "EMERGENCY_SOURCE",
    "EmergencyCache",
    "FallbackManager",
    "FallbackStrategy",
    "ProviderHealth",
    "build_default_strategies",
    "cache_key",
    "fuse_results",
]
