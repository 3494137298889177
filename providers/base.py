"""Shared plumbing for HTTP provider adapters."""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional, Tuple, Type

import httpx

from namecraft.core.errors import ProviderError, ProviderTimeout
from namecraft.utils.observability import (
    create_counter,
    create_histogram,
    get_logger,
    record_exception,
    start_span,
)

from .payloads import RawPayload
from .rate_limiter import RateLimiter

USER_AGENT = "namecraft/0.1 (+https://github.com/namecraft/namecraft)"

_CONNECTION_LIMITS = httpx.Limits(max_connections=10, max_keepalive_connections=5, keepalive_expiry=30.0)


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    if isinstance(data, (list, tuple, dict, str)):
        return len(data) == 0
    return False


class ProviderAdapter:
    """Fetch raw JSON from one external source.

    Subclasses set ``name``, ``domains`` and ``payload_type`` and implement
    :meth:`_fetch`. ``fetch`` never returns ``None``: transport failures,
    non-2xx responses, malformed JSON and empty payloads all surface as
    :class:`ProviderError` (timeouts as :class:`ProviderTimeout`).
    """

    name = "provider"
    domains: Tuple[str, ...] = ()
    base_url = ""
    payload_type: Type[RawPayload] = RawPayload
    default_timeout = 10.0

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        limiter: Optional[RateLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.timeout = float(timeout or self.default_timeout)
        self.limiter = limiter
        if base_url:
            self.base_url = base_url
        self._client = client
        self._owns_client = client is None
        self._transport = transport
        self._logger = get_logger(__name__).bind(component="provider_adapter", provider=self.name)
        self._metric_calls = create_counter(
            "namecraft_provider_calls_total",
            "Provider fetches by outcome.",
            label_names=("provider", "outcome"),
        )
        self._metric_latency = create_histogram(
            "namecraft_provider_latency_seconds",
            "Provider fetch latency in seconds.",
            label_names=("provider",),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, domains={self.domains!r})"

    def default_headers(self) -> Dict[str, str]:
        return {"User-Agent": USER_AGENT, "Accept": "application/json"}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                limits=_CONNECTION_LIMITS,
                headers=self.default_headers(),
                transport=self._transport,
            )
        return self._client

    def supports(self, domain: str) -> bool:
        return domain in self.domains

    async def fetch(self, query: str, options: Optional[Mapping[str, Any]] = None) -> RawPayload:
        options = dict(options or {})
        domain = options.get("domain") or (self.domains[0] if self.domains else "")
        if not self.supports(domain):
            raise ProviderError(self.name, f"domain {domain!r} is not supported")

        started = time.perf_counter()
        outcome = "success"
        with start_span("provider.fetch", {"provider": self.name, "domain": domain}) as span:
            try:
                if self.limiter is not None:
                    async with self.limiter:
                        data = await self._fetch(query, domain, options)
                else:
                    data = await self._fetch(query, domain, options)
                if _is_empty(data):
                    raise ProviderError(self.name, "empty payload")
            except ProviderTimeout as exc:
                outcome = "timeout"
                record_exception(span, exc)
                raise
            except ProviderError as exc:
                outcome = "error"
                record_exception(span, exc)
                raise
            finally:
                elapsed = time.perf_counter() - started
                self._metric_calls.labels(provider=self.name, outcome=outcome).inc()
                self._metric_latency.labels(provider=self.name).observe(elapsed)
                self._logger.debug(
                    "Provider fetch finished",
                    context={"domain": domain, "query": query, "outcome": outcome, "elapsed": round(elapsed, 3)},
                )
        return self.payload_type(kind=domain, query=query, data=data, meta={"elapsed": elapsed})

    async def _fetch(self, query: str, domain: str, options: Dict[str, Any]) -> Any:
        raise NotImplementedError

    # -- http helpers ------------------------------------------------------

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(self.name, self.timeout) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"network error: {exc}") from exc
        if not response.is_success:
            raise ProviderError(self.name, f"HTTP {response.status_code}", status=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "malformed JSON response", status=response.status_code) from exc

    async def _get_json(self, url: str, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Any:
        return await self._request_json("GET", url, params=params, **kwargs)

    async def _post_json(self, url: str, payload: Mapping[str, Any], **kwargs: Any) -> Any:
        return await self._request_json("POST", url, json=payload, **kwargs)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = ["ProviderAdapter", "USER_AGENT"]
