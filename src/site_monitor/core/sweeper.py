"""Periodic expiry for in-process caches."""

import asyncio
import contextlib
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class PeriodicSweeper(ABC):
    """Base for caches that purge stale entries on a fixed interval.

    `start()` must be called from a running event loop. `stop()` cancels the
    sweep task; entries are kept.
    """

    def __init__(self, interval: float, clock: Clock = time.monotonic) -> None:
        if interval <= 0:
            raise ValueError("Sweep interval must be positive")
        self.interval = interval
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    @abstractmethod
    def sweep(self) -> int:
        """Remove expired entries and return how many were removed."""
        pass

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                removed = self.sweep()
            except Exception:
                logger.exception("%s sweep failed", type(self).__name__)
                continue
            if removed:
                logger.info("%s swept %d expired entries", type(self).__name__, removed)
