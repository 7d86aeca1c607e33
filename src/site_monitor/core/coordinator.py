"""Scrape coordination: one in-flight render per normalized URL."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from site_monitor.core.entities import RenderResult
from site_monitor.core.errors import ScrapeError, ScrapeRetryRequested
from site_monitor.core.renderer import PageRenderer
from site_monitor.core.sweeper import Clock, PeriodicSweeper
from site_monitor.core.urls import lock_key, normalize_url

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TTL = 5 * 60.0


@dataclass
class ScrapeLock:
    """Registry entry for an in-flight render."""

    started_at: float
    future: asyncio.Future
    error: Optional[BaseException] = None


class ScrapeCoordinator(PeriodicSweeper):
    """Deduplicate concurrent scrapes of the same target.

    The first caller for a key owns the render; callers arriving while it is
    in flight share its result. If the shared render fails they receive
    `ScrapeRetryRequested` and the key is free again. Entries older than the
    TTL are treated as stuck and replaced.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        ttl: float = DEFAULT_LOCK_TTL,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(interval=ttl, clock=clock)
        self.renderer = renderer
        self.ttl = ttl
        self._locks: dict[str, ScrapeLock] = {}

    def __contains__(self, url: str) -> bool:
        return lock_key(url) in self._locks

    def __len__(self) -> int:
        return len(self._locks)

    async def scrape(
        self,
        url: str,
        content_patterns: Iterable[str] = (),
        skip_patterns: Iterable[str] = (),
    ) -> RenderResult:
        key = lock_key(url)
        existing = self._locks.get(key)

        if existing is not None:
            if self._age(existing) > self.ttl:
                logger.warning("Lock expired for %s, removing", key)
                del self._locks[key]
            else:
                logger.info("Scrape already in progress for %s", key)
                return await self._share(key, existing)

        return await self._run(key, normalize_url(url), content_patterns, skip_patterns)

    def sweep(self) -> int:
        expired = [key for key, lock in self._locks.items() if self._age(lock) > self.ttl]
        for key in expired:
            logger.info("Cleaning up expired lock for %s", key)
            del self._locks[key]
        return len(expired)

    def _age(self, lock: ScrapeLock) -> float:
        return self._clock() - lock.started_at

    def _release(self, key: str, lock: ScrapeLock) -> None:
        # A stale entry may already have been replaced by a newer owner
        if self._locks.get(key) is lock:
            del self._locks[key]

    async def _run(
        self,
        key: str,
        url: str,
        content_patterns: Iterable[str],
        skip_patterns: Iterable[str],
    ) -> RenderResult:
        lock = ScrapeLock(started_at=self._clock(), future=asyncio.get_running_loop().create_future())
        self._locks[key] = lock

        try:
            result = await self.renderer.render(url, content_patterns, skip_patterns)
        except BaseException as exc:
            lock.error = exc
            shared = exc if isinstance(exc, Exception) else ScrapeError(url, "scrape cancelled")
            lock.future.set_exception(shared)
            # Waiters are optional; mark the exception as retrieved
            lock.future.exception()
            raise
        else:
            lock.future.set_result(result)
            return result
        finally:
            self._release(key, lock)

    async def _share(self, key: str, lock: ScrapeLock) -> RenderResult:
        try:
            result = await asyncio.shield(lock.future)
        except Exception as exc:
            logger.info("Previous scrape of %s failed, key released for retry", key)
            self._release(key, lock)
            raise ScrapeRetryRequested(key, exc) from exc

        logger.info("Reusing successful scrape results for %s", key)
        return result
