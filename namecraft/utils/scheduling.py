"""Background housekeeping tasks owned by a service lifecycle."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Union

from .observability import get_logger

Job = Callable[[], Union[None, Awaitable[None]]]


class PeriodicTask:
    """Run ``job`` every ``interval`` seconds on the running event loop.

    The task is created by :meth:`start` and cancelled by :meth:`stop`; a
    failing run is logged and the schedule continues.
    """

    def __init__(self, name: str, interval: float, job: Job) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = float(interval)
        self._job = job
        self._task: Optional[asyncio.Task] = None
        self.runs = 0
        self._logger = get_logger(__name__).bind(component="periodic_task", task=name)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.run_once()

    async def run_once(self) -> None:
        try:
            outcome = self._job()
            if asyncio.iscoroutine(outcome):
                await outcome
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.warning("Periodic task failed", context={"error": str(exc)})
        else:
            self.runs += 1

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


__all__ = ["PeriodicTask"]
