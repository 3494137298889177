"""Top-level coordinator turning a generation request into ranked names."""

from __future__ import annotations

import asyncio
import random
import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from namecraft.core.errors import AllSourcesExhausted, FilterExhaustion, ProviderError
from namecraft.core.genre_matrix import GenreCompatibilityMatrix
from namecraft.core.models import (
    FusedResult,
    GenerationRequest,
    GenerationResponse,
    GenerationResult,
    NormalizedArtist,
    NormalizedGenre,
    NormalizedTrack,
    VocabularyWord,
)
from namecraft.core.name_memory import GlobalNameMemory
from namecraft.core.phonetic_flow import PhoneticFlowAnalyzer
from namecraft.core.word_filter import WordFilter
from namecraft.core.word_stores import DEFAULT_WORD_STORES, WordStores
from namecraft.utils.observability import (
    add_span_attributes,
    create_counter,
    create_histogram,
    get_logger,
    start_span,
)
from namecraft.utils.telemetry import StructuredTelemetry
from patterns import SelectionCriteria, WordSources, build_word_sources, validate_word_count
from patterns.themes import infer_intensity

from .fallback_manager import FallbackManager
from .variety_optimizer import VarietyOptimizer, smart_multiplier

STATIC_CONTEXT = "static_word_stores"
STATIC_FILL = "static_pool"
LLM_TIMEOUT = 15.0
ATTEMPTS_PER_SLOT = 4
POOL_FACTOR = 2
CATALOG_DOMAINS = ("genre", "artist", "track")
MIN_TERM_LENGTH = 3

_TERM_TOKENS = re.compile(r"[A-Za-z]+")


def _name_key(name: str) -> str:
    return " ".join(str(name).lower().split())


@dataclass
class GenerationContext:
    """Words and exclusions gathered for one request before generation starts."""

    vocabulary: List[VocabularyWord] = field(default_factory=list)
    catalog_terms: List[str] = field(default_factory=list)
    catalog_names: Set[str] = field(default_factory=set)
    blend: Tuple[str, ...] = ()
    fallback_chain: List[str] = field(default_factory=list)
    confidence: float = 0.0
    used_fallback: bool = False
    emergency: bool = False

    def is_catalog_name(self, name: str) -> bool:
        return _name_key(name) in self.catalog_names

    def add_catalog_term(self, term: str) -> None:
        for token in _TERM_TOKENS.findall(str(term)):
            token = token.lower()
            if len(token) >= MIN_TERM_LENGTH and token not in self.catalog_terms:
                self.catalog_terms.append(token)

    def absorb_catalog(self, result: FusedResult) -> None:
        """Existing artist and track names become exclusions; tags and titles become words."""

        for entity in result.data:
            if isinstance(entity, (NormalizedArtist, NormalizedTrack)):
                self.catalog_names.add(_name_key(entity.name))
            if isinstance(entity, NormalizedTrack):
                self.catalog_names.update(_name_key(artist) for artist in entity.artists)
                self.add_catalog_term(entity.name)
            for genre in entity.genres:
                self.add_catalog_term(genre)
            if isinstance(entity, NormalizedGenre):
                for genre in entity.related:
                    self.add_catalog_term(genre)


class GenerationOrchestrator:
    """Coordinate context gathering, pattern generation, filtering and ranking.

    Every stage degrades instead of failing: provider outages fall back to the
    static word stores, pattern failures fall back to structured phrases, and
    a shortfall after filtering is padded from the static name pool. Only a
    malformed request raises (:class:`~namecraft.core.errors.ValidationError`).
    """

    def __init__(
        self,
        *,
        fallback_manager: FallbackManager,
        selector: Any,
        word_filter: WordFilter,
        name_memory: GlobalNameMemory,
        analyzer: Optional[PhoneticFlowAnalyzer] = None,
        optimizer: Optional[VarietyOptimizer] = None,
        matrix: Optional[GenreCompatibilityMatrix] = None,
        stores: WordStores = DEFAULT_WORD_STORES,
        rng: Optional[random.Random] = None,
        telemetry: Optional[StructuredTelemetry] = None,
        max_attempts: Optional[int] = None,
        use_llm: bool = True,
    ) -> None:
        self.fallback_manager = fallback_manager
        self.selector = selector
        self.word_filter = word_filter
        self.name_memory = name_memory
        self.analyzer = analyzer or PhoneticFlowAnalyzer()
        self.optimizer = optimizer or VarietyOptimizer(word_filter)
        self.matrix = matrix or GenreCompatibilityMatrix()
        self.stores = stores
        self._rng = rng or getattr(selector, "rng", None) or random.Random()
        self.telemetry = telemetry or StructuredTelemetry()
        self.use_llm = use_llm

        self._max_attempts = 5
        if max_attempts is not None:
            try:
                attempts = int(max_attempts)
            except (TypeError, ValueError):
                attempts = 0
            if attempts > 0:
                self._max_attempts = attempts

        self._logger = get_logger(__name__).bind(component="generation_orchestrator")
        self._metric_requests = create_counter(
            "namecraft_generation_requests_total",
            "Generation requests handled, by content type.",
            label_names=("content_type",),
        )
        self._metric_duration = create_histogram(
            "namecraft_generation_seconds",
            "End-to-end latency of generation requests.",
        )
        self._metric_static = create_counter(
            "namecraft_static_fallback_names_total",
            "Names substituted from the static pool after filtering ran short.",
            label_names=("content_type",),
        )
        self._logger.info(
            "Generation orchestrator initialised",
            context={
                "max_attempts": self._max_attempts,
                "use_llm": use_llm,
                "adapters": sorted(fallback_manager.adapters),
            },
        )

    # -- context -----------------------------------------------------------

    async def _resolve_safely(self, domain: str, query: str, context: GenerationContext) -> Optional[FusedResult]:
        try:
            return await self.fallback_manager.resolve(domain, query)
        except AllSourcesExhausted as exc:
            if domain != "vocabulary":
                self._logger.info(
                    "Catalog context unavailable",
                    context={"domain": domain, "query": query, "failed": list(exc.failed_sources)},
                )
                return None
            self._logger.warning(
                "Context unavailable, using static word stores",
                context={"query": query, "failed": list(exc.failed_sources)},
            )
            context.used_fallback = True
            return None

    async def gather_context(self, request: GenerationRequest) -> GenerationContext:
        """Resolve vocabulary for the genre and mood, and catalog data for the genre.

        Catalog lookups only run for domains some registered adapter serves;
        their failure never switches the request to the static word stores.
        """

        context = GenerationContext()
        queries = [query for query in (request.genre, request.mood) if query]
        if not queries:
            queries = ["song" if request.content_type == "song" else "band"]
        fusing = request.enable_fusion and request.secondary_genre
        if fusing and request.secondary_genre not in queries:
            queries.append(request.secondary_genre)

        lookups = [("vocabulary", query) for query in queries]
        if request.genre:
            lookups.extend(
                (domain, request.genre)
                for domain in CATALOG_DOMAINS
                if self.fallback_manager.order_sources(domain)
            )
        results = await asyncio.gather(
            *(self._resolve_safely(domain, query, context) for domain, query in lookups)
        )
        for (domain, _), result in zip(lookups, results):
            if result is None:
                continue
            for source in result.fallback_chain:
                if source not in context.fallback_chain:
                    context.fallback_chain.append(source)
            if domain != "vocabulary":
                context.absorb_catalog(result)
                continue
            context.vocabulary.extend(result.vocabulary_words())
            context.confidence = max(context.confidence, result.confidence)
            context.emergency = context.emergency or result.emergency_mode
        if context.emergency:
            context.used_fallback = True
        if context.used_fallback and STATIC_CONTEXT not in context.fallback_chain:
            context.fallback_chain.append(STATIC_CONTEXT)

        if fusing:
            context.blend = self.matrix.blend_vocabulary(
                request.genre, request.secondary_genre, self._rng, stores=self.stores
            )
        return context

    # -- candidates --------------------------------------------------------

    def _criteria(self, request: GenerationRequest) -> SelectionCriteria:
        target, open_range = self.selector.resolve_word_count(request.word_count)
        return SelectionCriteria(
            word_count=target,
            genre=request.genre,
            mood=request.mood,
            content_type=request.content_type,
            creativity_level=request.creativity_level,
            intensity=infer_intensity(request.mood),
            enable_fusion=request.enable_fusion,
            open_range=open_range,
        )

    async def _llm_candidates(self, request: GenerationRequest) -> List[GenerationResult]:
        adapter = self.fallback_manager.adapters.get("llm")
        if adapter is None or not self.use_llm:
            return []
        query = " ".join(part for part in (request.mood, request.genre, request.content_type) if part)
        options = {
            "domain": "vocabulary",
            "mode": "names",
            "count": request.count,
            "content_type": request.content_type,
            "word_count": request.fixed_word_count,
        }
        try:
            payload = await asyncio.wait_for(adapter.fetch(query, options), timeout=LLM_TIMEOUT)
        except (ProviderError, asyncio.TimeoutError) as exc:
            self._logger.warning("LLM candidates unavailable", context={"error": str(exc) or type(exc).__name__})
            return []
        except Exception as exc:
            self._logger.exception("LLM adapter failed", context={"error": f"{type(exc).__name__}: {exc}"})
            return []
        data = getattr(payload, "data", payload)
        names = data.get("names", []) if isinstance(data, Mapping) else []
        if not isinstance(names, (list, tuple)):
            names = []
        return [
            GenerationResult(name=" ".join(str(name).split()), source="ai", metadata={"pattern": "llm"})
            for name in names
            if str(name).strip()
        ]

    def _passes(
        self, name: str, request: GenerationRequest, generation_id: str, context: GenerationContext
    ) -> Optional[str]:
        """Return the rejection reason for ``name`` or ``None`` when it may be kept."""

        if self.stores.is_famous_name(name):
            return "famous"
        if context.is_catalog_name(name):
            return "catalog"
        if self.name_memory.should_reject_globally(name, request.genre, request.content_type):
            return "memory"
        if self.word_filter.should_reject(name, generation_id, request.content_type):
            return "filter"
        return None

    def _collect(
        self,
        request: GenerationRequest,
        sources: WordSources,
        generation_id: str,
        seeded: Sequence[GenerationResult],
        context: GenerationContext,
    ) -> List[GenerationResult]:
        wanted = request.count * POOL_FACTOR
        multiplier = smart_multiplier(request.count, len(seeded))
        budget = request.count * multiplier * ATTEMPTS_PER_SLOT
        candidates: List[GenerationResult] = []
        salvage: List[GenerationResult] = []
        seen = set()

        def consider(result: GenerationResult, target: int, open_range: bool) -> None:
            key = result.name.lower()
            if key in seen:
                self.telemetry.increment("rejected.duplicate")
                return
            seen.add(key)
            if not validate_word_count(result.name, target, open_range):
                if open_range and validate_word_count(result.name, target, True, lenient=True):
                    salvage.append(result)
                self.telemetry.increment("rejected.word_count")
                return
            reason = self._passes(result.name, request, generation_id, context)
            if reason is not None:
                self.telemetry.increment(f"rejected.{reason}")
                return
            candidates.append(result)

        with self.telemetry.timer("filter", {"stage": "seeded"}):
            for result in seeded:
                criteria = self._criteria(request)
                consider(result, criteria.word_count, criteria.open_range)

        attempts = 0
        while len(candidates) < wanted and attempts < budget:
            batch_size = min(wanted - len(candidates), budget - attempts)
            outcomes = []
            with self.telemetry.timer("patterns", {"batch": batch_size}):
                for _ in range(batch_size):
                    criteria = self._criteria(request)
                    outcome = self.selector.generate(criteria, sources, attempts=self._max_attempts)
                    outcomes.append((outcome, criteria))
            attempts += batch_size
            with self.telemetry.timer("filter", {"batch": batch_size}):
                for outcome, criteria in outcomes:
                    result = GenerationResult(
                        name=outcome.name,
                        source="pattern",
                        metadata={"pattern": outcome.pattern_id, "category": outcome.category},
                    )
                    consider(result, criteria.word_count, criteria.open_range)

        self.telemetry.increment("pattern_attempts", attempts)
        if len(candidates) < request.count and salvage:
            self._logger.info("Salvaging lenient word counts", context={"salvaged": len(salvage)})
            candidates.extend(salvage[: request.count - len(candidates)])
        return candidates

    # -- padding -----------------------------------------------------------

    def _static_fill(
        self,
        request: GenerationRequest,
        results: List[GenerationResult],
        context: GenerationContext,
        generation_id: str,
    ) -> List[GenerationResult]:
        shortfall = request.count - len(results)
        degradation = FilterExhaustion(request.count, len(results))
        self._metric_static.labels(content_type=request.content_type).inc(shortfall)
        self._logger.warning(
            "Filter exhaustion, padding with static names",
            context={"requested": request.count, "produced": len(results), "shortfall": degradation.shortfall},
        )
        target, _ = self.selector.resolve_word_count(request.word_count)
        pool = self.stores.static_fallback_names(
            request.content_type,
            target,
            shortfall * 3,
            self._rng,
            genre=request.genre,
            exclude=[result.name for result in results],
        )
        # Prefer pool names the filter accepts; take the rest only to reach the count.
        names = [
            name
            for name in pool
            if self.word_filter.accept_name(name, generation_id, request.content_type)
        ][:shortfall]
        names += [name for name in pool if name not in names][: shortfall - len(names)]
        if STATIC_FILL not in context.fallback_chain:
            context.fallback_chain.append(STATIC_FILL)
        return [
            GenerationResult(
                name=name,
                is_generated=False,
                source="static",
                phonetic=self.analyzer.score(name),
                metadata={"fallback": True},
            )
            for name in names
        ]

    # -- pipeline ----------------------------------------------------------

    @staticmethod
    def _coerce(request: Union[GenerationRequest, Mapping[str, Any]]) -> GenerationRequest:
        if isinstance(request, GenerationRequest):
            return request
        return GenerationRequest.from_dict(request)

    async def generate(self, request: Union[GenerationRequest, Mapping[str, Any]]) -> GenerationResponse:
        request = self._coerce(request)
        started = time.perf_counter()
        self._metric_requests.labels(content_type=request.content_type).inc()
        self.telemetry.start_trace("generation")
        generation_id = self.word_filter.start_new_generation()
        self.telemetry.annotate("generation_id", generation_id)
        self.telemetry.annotate("request", {"content_type": request.content_type, "word_count": request.word_count, "count": request.count})

        with start_span(
            "orchestrator.generate",
            {"content_type": request.content_type, "count": request.count, "genre": request.genre},
        ) as span:
            with self.telemetry.timer("context"):
                context = await self.gather_context(request)
                seeded = await self._llm_candidates(request)

            sources = build_word_sources(
                self.stores,
                [*context.vocabulary, *context.catalog_terms],
                genre=request.genre,
                mood=request.mood,
                blend=context.blend,
            )
            candidates = self._collect(request, sources, generation_id, seeded, context)

            with self.telemetry.timer("ranking", {"candidates": len(candidates)}):
                by_name = {candidate.name: candidate for candidate in candidates}
                ranked = [
                    by_name[name].with_phonetic(score)
                    for name, score in self.analyzer.rank(by_name)
                ]

            with self.telemetry.timer("variety"):
                results = self.optimizer.optimize(ranked, request, generation_id)[: request.count]

            if context.used_fallback:
                results = [
                    replace(result, metadata={**result.metadata, "context": STATIC_CONTEXT})
                    for result in results
                ]

            degraded = False
            static_fill: List[GenerationResult] = []
            if len(results) < request.count:
                degraded = True
                static_fill = self._static_fill(request, results, context, generation_id)
                results = results + static_fill

            for result in results:
                self.word_filter.accept(result.name, generation_id, request.content_type)
                quality = result.phonetic.overall if result.phonetic is not None else None
                self.name_memory.add_name(result.name, request.genre, request.content_type, quality)

            scores = [result.phonetic.overall for result in results if result.phonetic is not None]
            quality_report = {
                "average_phonetic": round(sum(scores) / len(scores), 2) if scores else 0.0,
                "context_confidence": round(context.confidence, 2),
                "catalog_terms": len(context.catalog_terms),
                "catalog_names": len(context.catalog_names),
                "emergency_mode": context.emergency,
            }
            self.telemetry.increment("static_fill", len(static_fill))
            self.telemetry.annotate("used_fallback", context.used_fallback)
            add_span_attributes(
                span,
                {"results": len(results), "used_fallback": context.used_fallback, "degraded": degraded},
            )

        elapsed = time.perf_counter() - started
        self._metric_duration.observe(elapsed)
        self._logger.info(
            "Generation complete",
            context={
                "generation_id": generation_id,
                "results": len(results),
                "static_fill": len(static_fill),
                "used_fallback": context.used_fallback,
                "elapsed": round(elapsed, 4),
            },
        )
        return GenerationResponse(
            results=results,
            generation_id=generation_id,
            used_fallback=context.used_fallback,
            fallback_chain=list(context.fallback_chain),
            quality=quality_report,
            degraded=degraded,
            static_fill_count=len(static_fill),
            telemetry=self.telemetry.snapshot(),
        )

    # -- introspection -----------------------------------------------------

    def get_latest_telemetry(self) -> Dict[str, Any]:
        return self.telemetry.latest_snapshot()

    def stats(self) -> Dict[str, Any]:
        return {
            "selector": self.selector.stats(),
            "word_filter": self.word_filter.stats(),
            "name_memory": self.name_memory.stats(),
            "phonetic_cache": self.analyzer.cache_info(),
            "variety": self.optimizer.stats(),
            "providers": self.fallback_manager.get_provider_health(),
            "fallback": self.fallback_manager.get_fallback_stats(),
        }

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        self.fallback_manager.start()

    async def aclose(self) -> None:
        await self.fallback_manager.aclose()

    async def __aenter__(self) -> "GenerationOrchestrator":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["CATALOG_DOMAINS", "GenerationContext", "GenerationOrchestrator", "STATIC_CONTEXT", "STATIC_FILL"]
