"""Application wiring and command line entry point for namecraft."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

if __package__ in {None, ""}:
    from pathlib import Path

    repo_root = Path(__file__).resolve().parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from namecraft.app.services.fallback_manager import FallbackManager
from namecraft.app.services.orchestrator import GenerationOrchestrator
from namecraft.app.services.variety_optimizer import VarietyOptimizer
from namecraft.app.settings import Settings
from namecraft.core.errors import ValidationError
from namecraft.core.genre_matrix import GenreCompatibilityMatrix
from namecraft.core.models import GenerationRequest, GenerationResponse
from namecraft.core.name_memory import GlobalNameMemory
from namecraft.core.normalizer import DataNormalizer
from namecraft.core.phonetic_flow import PhoneticFlowAnalyzer
from namecraft.core.word_filter import WordFilter
from namecraft.core.word_stores import DEFAULT_WORD_STORES, WordStores
from namecraft.utils.logging_config import configure_logging
from namecraft.utils.observability import get_logger
from namecraft.utils.randomness import resolve_rng
from namecraft.utils.telemetry import StructuredTelemetry, TelemetryLogger
from patterns import PatternSelector
from providers import build_default_adapters


class NamecraftApp:
    """High-level application facade bundling the generation pipeline."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        adapters: Optional[Iterable[Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        stores: WordStores = DEFAULT_WORD_STORES,
        word_filter: Optional[WordFilter] = None,
        name_memory: Optional[GlobalNameMemory] = None,
        telemetry: Optional[StructuredTelemetry] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self._logger = get_logger(__name__).bind(component="app_facade")
        self._logger.info("Initialising application facade", context=self.settings.redacted())

        self.rng = resolve_rng(seed=self.settings.seed)
        self.stores = stores
        self.word_filter = word_filter or WordFilter(self.settings.filter, rng=self.rng)
        self.name_memory = name_memory or GlobalNameMemory(self.settings.memory, rng=self.rng)
        self.analyzer = PhoneticFlowAnalyzer()
        self.matrix = GenreCompatibilityMatrix()
        self.selector = PatternSelector(rng=self.rng, stores=stores)
        self.telemetry = telemetry or StructuredTelemetry(listeners=[TelemetryLogger()])

        if adapters is None:
            adapters = build_default_adapters(self.settings, transport=transport)
        self.fallback_manager = FallbackManager(
            adapters,
            normalizer=DataNormalizer(),
            cache_ttl=self.settings.emergency_cache_ttl,
            cache_size=self.settings.emergency_cache_size,
        )
        self.optimizer = VarietyOptimizer(self.word_filter)
        self.orchestrator = GenerationOrchestrator(
            fallback_manager=self.fallback_manager,
            selector=self.selector,
            word_filter=self.word_filter,
            name_memory=self.name_memory,
            analyzer=self.analyzer,
            optimizer=self.optimizer,
            matrix=self.matrix,
            stores=stores,
            rng=self.rng,
            telemetry=self.telemetry,
            max_attempts=self.settings.max_generation_attempts,
        )
        self._logger.info(
            "Application dependencies wired",
            context={"adapters": sorted(self.fallback_manager.adapters)},
        )

    # Public API ------------------------------------------------------------
    def _request(self, request: Dict[str, Any]) -> GenerationRequest:
        payload = dict(request)
        payload.setdefault("count", self.settings.default_count)
        return GenerationRequest.from_dict(payload)

    async def agenerate_names(self, **request: Any) -> GenerationResponse:
        parsed = self._request(request)
        self.start()
        return await self.orchestrator.generate(parsed)

    def generate_names(self, **request: Any) -> GenerationResponse:
        """Synchronous wrapper; background tasks and adapters are closed before returning."""

        parsed = self._request(request)

        async def run() -> GenerationResponse:
            async with self:
                return await self.orchestrator.generate(parsed)

        return asyncio.run(run())

    def health(self) -> Dict[str, Any]:
        providers = self.fallback_manager.get_provider_health()
        poor = [name for name, info in providers.items() if info["status"] == "poor"]
        return {
            "status": "degraded" if poor or not self.fallback_manager.adapters else "ok",
            "adapters": sorted(self.fallback_manager.adapters),
            "providers": providers,
            "emergency_cache_entries": len(self.fallback_manager.emergency_cache),
            "word_filter": self.word_filter.stats(),
        }

    def get_latest_telemetry(self) -> Dict[str, Any]:
        return self.orchestrator.get_latest_telemetry()

    # Lifecycle -------------------------------------------------------------
    def start(self) -> None:
        """Start the emergency-cache sweep and stats tasks; needs a running event loop."""

        if not self.fallback_manager.running:
            self.orchestrator.start()
            self._logger.info("Background tasks started")

    @property
    def running(self) -> bool:
        return self.fallback_manager.running

    async def aclose(self) -> None:
        await self.orchestrator.aclose()

    async def __aenter__(self) -> "NamecraftApp":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="namecraft", description="Generate band names and song titles.")
    parser.add_argument("--type", dest="content_type", choices=("band", "song"), default="band")
    parser.add_argument("--words", dest="word_count", default="2", help="1-10 or 4+")
    parser.add_argument("--count", type=int, default=None)
    parser.add_argument("--genre", default=None)
    parser.add_argument("--mood", default=None)
    parser.add_argument("--offline", action="store_true", help="use only the built-in word stores")
    parser.add_argument("--json", action="store_true", help="print the full response as JSON")
    return parser


def _format(response: GenerationResponse) -> List[str]:
    lines = []
    for result in response.results:
        score = result.phonetic.overall if result.phonetic is not None else "-"
        lines.append(f"{result.name}  [{result.source}, {score}]")
    if response.used_fallback:
        lines.append("(offline word stores used)")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if args.offline and not settings.offline:
        settings = replace(settings, offline=True)

    app = NamecraftApp(settings)
    request: Dict[str, Any] = {"content_type": args.content_type, "word_count": args.word_count}
    for key in ("count", "genre", "mood"):
        value = getattr(args, key)
        if value is not None:
            request[key] = value
    try:
        response = app.generate_names(**request)
    except ValidationError as exc:
        print(f"invalid request: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(response.to_dict(), indent=2, default=str))
    else:
        print("\n".join(_format(response)))
    return 0


__all__ = ["NamecraftApp", "build_parser", "main"]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
