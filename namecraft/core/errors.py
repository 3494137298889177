"""Exception taxonomy for the generation and fallback pipeline."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class NamecraftError(Exception):
    """Base class for every error raised by the pipeline."""


class ValidationError(NamecraftError, ValueError):
    """A generation request is malformed; raised before any work starts."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ProviderError(NamecraftError):
    """An external provider call failed (non-2xx, network, bad payload)."""

    def __init__(self, provider: str, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status = status

    @property
    def retryable(self) -> bool:
        return self.status == 429 or (self.status is not None and self.status >= 500)


class ProviderTimeout(ProviderError):
    """A provider call exceeded its hard per-call timeout."""

    def __init__(self, provider: str, timeout: float) -> None:
        super().__init__(provider, f"timed out after {timeout:.1f}s")
        self.timeout = timeout

    @property
    def retryable(self) -> bool:
        return True


class AllSourcesExhausted(NamecraftError):
    """Every provider failed for a domain and no emergency cache entry exists."""

    def __init__(self, domain: str, query: str, failed_sources: Sequence[str] = ()) -> None:
        super().__init__(f"all sources exhausted for {domain} query {query!r}")
        self.domain = domain
        self.query = query
        self.failed_sources: Tuple[str, ...] = tuple(failed_sources)


class PatternGenerationError(NamecraftError):
    """A pattern could not produce a usable name (for example an empty word pool)."""

    def __init__(self, pattern_id: str, reason: str) -> None:
        super().__init__(f"{pattern_id}: {reason}")
        self.pattern_id = pattern_id
        self.reason = reason


class FilterExhaustion(NamecraftError):
    """Not enough sufficiently unique names were produced within the attempt budget."""

    def __init__(self, requested: int, produced: int) -> None:
        super().__init__(f"produced {produced} of {requested} requested names")
        self.requested = requested
        self.produced = produced

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - self.produced)


__all__ = [
    "NamecraftError",
    "ValidationError",
    "ProviderError",
    "ProviderTimeout",
    "AllSourcesExhausted",
    "PatternGenerationError",
    "FilterExhaustion",
]
