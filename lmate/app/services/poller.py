from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)


class IntervalPoller:
    """Background task that runs ``tick`` on a fixed cadence until stopped.

    A tick that outlasts the interval delays the next one instead of overlapping it.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[None]],
        *,
        interval_seconds: float,
        name: str,
    ) -> None:
        self._tick = tick
        self._interval = max(0.01, interval_seconds)
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        logger.info("Starting %s poller (every %.1fs)", self._name, self._interval)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name=f"{self._name}-poller")

    async def stop(self) -> None:
        if not self._task:
            return
        logger.info("Stopping %s poller", self._name)
        self._stop_event.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() + self._interval
        while not self._stop_event.is_set():
            if not await self._sleep_until(next_run):
                return
            try:
                await self._tick()
            except Exception:  # pragma: no cover - defensive logging
                logger.exception("Unexpected error during %s polling tick", self._name)
            self.ticks += 1
            next_run = max(next_run + self._interval, loop.time())

    async def _sleep_until(self, deadline: float) -> bool:
        delay = deadline - asyncio.get_running_loop().time()
        if delay <= 0:
            return not self._stop_event.is_set()
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False
