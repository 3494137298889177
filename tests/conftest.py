import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from namecraft.app.services.fallback_manager import FallbackManager
from namecraft.app.services.orchestrator import GenerationOrchestrator
from namecraft.app.services.variety_optimizer import VarietyOptimizer
from namecraft.core.errors import ProviderError
from namecraft.core.name_memory import GlobalNameMemory
from namecraft.core.word_filter import WordFilter
from namecraft.utils.telemetry import StructuredTelemetry
from patterns import PatternSelector
from providers.payloads import RawPayload


class FakeClock:
    """Manually advanced wall clock shared by the stateful components."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubAdapter:
    """Provider adapter stub that records calls and replays scripted outcomes.

    ``outcomes`` is consumed one entry per call; an exception instance is
    raised, anything else is returned as the payload data. Once exhausted
    the stub keeps returning ``data``, or the ``by_domain`` entry for the
    requested domain when there is one.
    """

    def __init__(
        self,
        name: str,
        data: Any = None,
        *,
        domains: Tuple[str, ...] = ("vocabulary", "lyrics"),
        outcomes: Sequence[Any] = (),
        error: Optional[BaseException] = None,
        by_domain: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.name = name
        self.domains = domains
        self.data = data
        self.by_domain = dict(by_domain or {})
        self.error = error
        self._outcomes: List[Any] = list(outcomes)
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.closed = False

    def supports(self, domain: str) -> bool:
        return domain in self.domains

    async def fetch(self, query: str, options: Optional[Dict[str, Any]] = None) -> RawPayload:
        options = dict(options or {})
        self.calls.append((query, options))
        if self._outcomes:
            outcome = self._outcomes.pop(0)
        elif self.error is not None:
            outcome = self.error
        else:
            outcome = self.by_domain.get(options.get("domain", ""), self.data)
        if isinstance(outcome, BaseException):
            raise outcome
        return RawPayload(kind=options.get("domain", ""), query=query, data=outcome)

    async def aclose(self) -> None:
        self.closed = True


DATAMUSE_WORDS = [
    {"word": "thunderous", "score": 91000},
    {"word": "rebellion", "score": 88000},
    {"word": "burning", "score": 85000},
    {"word": "granite", "score": 80000},
    {"word": "voltage", "score": 78000},
    {"word": "wildness", "score": 76000},
    {"word": "furious", "score": 74000},
    {"word": "ember", "score": 70000},
    {"word": "riot", "score": 69000},
    {"word": "howling", "score": 65000},
    {"word": "the", "score": 99000},
    {"word": "hard rock", "score": 60000},
]


def failing_adapter(name: str, domains: Tuple[str, ...] = ("vocabulary", "lyrics")) -> StubAdapter:
    return StubAdapter(name, domains=domains, error=ProviderError(name, "HTTP 503", status=503))


def build_orchestrator(
    adapters: Sequence[Any] = (),
    *,
    clock: Optional[FakeClock] = None,
    seed: int = 7,
    telemetry: Optional[StructuredTelemetry] = None,
) -> GenerationOrchestrator:
    clock = clock or FakeClock()
    rng = random.Random(seed)
    word_filter = WordFilter(rng=rng, time_fn=clock)
    return GenerationOrchestrator(
        fallback_manager=FallbackManager(adapters, time_fn=clock),
        selector=PatternSelector(rng=rng, time_fn=clock),
        word_filter=word_filter,
        name_memory=GlobalNameMemory(rng=rng, time_fn=clock),
        optimizer=VarietyOptimizer(word_filter, time_fn=clock),
        rng=rng,
        telemetry=telemetry or StructuredTelemetry(),
    )


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def datamuse_words():
    return [dict(entry) for entry in DATAMUSE_WORDS]
