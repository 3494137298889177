"""Per-provider async rate limiting."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

from namecraft.utils.observability import get_logger

T = TypeVar("T")


class RateLimiter:
    """Concurrency cap, minimum spacing and burst cap for one provider.

    Callers queue FIFO for a slot. Successive starts are spaced by at least
    ``min_interval`` seconds and at most ``burst_limit`` starts fall inside
    any rolling ``burst_window``.
    """

    def __init__(
        self,
        name: str,
        max_concurrent: int = 1,
        min_interval: float = 0.0,
        burst_limit: Optional[int] = None,
        burst_window: float = 10.0,
        *,
        time_fn: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.name = name
        self.max_concurrent = max_concurrent
        self.min_interval = max(0.0, float(min_interval))
        self.burst_limit = burst_limit
        self.burst_window = burst_window
        self._time_fn = time_fn
        self._sleep = sleep
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._gate: Optional[asyncio.Lock] = None
        self._starts: Deque[float] = deque()
        self._last_start: Optional[float] = None
        self._active = 0
        self._waiting = 0
        self._total = 0
        self._delayed = 0
        self._logger = get_logger(__name__).bind(component="rate_limiter", provider=name)

    def _primitives(self):
        # Created lazily so the limiter binds to the loop that first uses it.
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            self._gate = asyncio.Lock()
        return self._semaphore, self._gate

    async def _pace(self) -> None:
        now = self._time_fn()
        delay = 0.0
        if self._last_start is not None and self.min_interval:
            delay = max(delay, self._last_start + self.min_interval - now)
        if self.burst_limit:
            while self._starts and now - self._starts[0] >= self.burst_window:
                self._starts.popleft()
            if len(self._starts) >= self.burst_limit:
                delay = max(delay, self._starts[0] + self.burst_window - now)
        if delay > 0:
            self._delayed += 1
            self._logger.debug("Rate limit delay", context={"delay": round(delay, 3)})
            await self._sleep(delay)
        start = self._time_fn()
        self._last_start = start
        if self.burst_limit:
            self._starts.append(start)
            while len(self._starts) > self.burst_limit:
                self._starts.popleft()

    async def acquire(self) -> None:
        semaphore, gate = self._primitives()
        self._waiting += 1
        try:
            await semaphore.acquire()
        finally:
            self._waiting -= 1
        try:
            async with gate:
                await self._pace()
        except BaseException:
            semaphore.release()
            raise
        self._active += 1
        self._total += 1

    def release(self) -> None:
        semaphore, _ = self._primitives()
        self._active = max(0, self._active - 1)
        semaphore.release()

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.release()

    async def run(self, coro_fn: Callable[[], Awaitable[T]]) -> T:
        async with self:
            return await coro_fn()

    def stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "active": self._active,
            "waiting": self._waiting,
            "total": self._total,
            "delayed": self._delayed,
            "max_concurrent": self.max_concurrent,
            "min_interval": self.min_interval,
            "burst_limit": self.burst_limit,
        }


__all__ = ["RateLimiter"]
