"""Page renderer: drives a browser page and extracts content items."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from site_monitor.core.classifier import ContentClassifier
from site_monitor.core.entities import ContentItem, RenderResult
from site_monitor.core.interfaces import BrowserLauncher, PageSession
from site_monitor.core.page_signals import (
    PROBE_GLOBALS_SCRIPT,
    WINDOW_GLOBALS,
    PageProbe,
    fired_signals,
    is_dynamic_page,
)

logger = logging.getLogger(__name__)

READY_SELECTORS = ("article", '[class*="article"]', '[class*="post"]', "h1", "h2", "h3")
GROWTH_SELECTOR = 'article, [class*="article"], [class*="post"], [role="article"]'


@dataclass
class RenderOptions:
    """Timeouts and scroll heuristics, all in seconds where applicable."""

    navigation_timeout: float = 30.0
    selector_timeout: float = 30.0
    max_scroll_attempts: int = 5
    settle_delay: float = 2.0
    growth_timeout: float = 3.0
    stable_rounds: int = 2


class PageRenderer:
    """Load a page, decide static vs dynamic, and classify its content.

    Launch, navigation and selector-wait failures propagate to the caller;
    the page is always closed before returning.
    """

    def __init__(
        self,
        launcher: BrowserLauncher,
        classifier: Optional[ContentClassifier] = None,
        options: Optional[RenderOptions] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.launcher = launcher
        self.classifier = classifier or ContentClassifier()
        self.options = options or RenderOptions()
        self._sleep = sleep

    async def render(
        self,
        url: str,
        content_patterns: Iterable[str] = (),
        skip_patterns: Iterable[str] = (),
    ) -> RenderResult:
        """Render URL and return its title, content items and final DOM."""
        content_patterns = tuple(content_patterns)
        skip_patterns = tuple(skip_patterns)

        session = await self.launcher.launch()
        try:
            logger.info("Navigating to %s", url)
            await session.navigate(url, self.options.navigation_timeout)
            await session.wait_for_any_selector(READY_SELECTORS, self.options.selector_timeout)

            title = await session.title()
            html = await session.content()
            dynamic = await self._is_dynamic(session, html)

            items = self._classify(html, url, content_patterns, skip_patterns)
            if not dynamic:
                logger.info("Found %d items on static page %s", len(items), url)
                return RenderResult(title=title, items=items, html=html, dynamic=False)

            logger.info("Initially found %d items on dynamic page %s", len(items), url)
            html, items = await self._scroll_extract(session, url, html, items, content_patterns, skip_patterns)
            logger.info("Final item count for %s: %d", url, len(items))
            return RenderResult(title=title, items=items, html=html, dynamic=True)
        finally:
            await self._close(session)

    async def _is_dynamic(self, session: PageSession, html: str) -> bool:
        present = await session.evaluate(PROBE_GLOBALS_SCRIPT, list(WINDOW_GLOBALS))
        probe = PageProbe.from_html(html, present or ())

        if not is_dynamic_page(probe):
            return False

        signals = fired_signals(probe)
        if signals:
            logger.info("Detected client-side rendering signals: %s", ", ".join(signals))
        else:
            logger.info("No meaningful content visible yet, treating page as dynamic")
        return True

    async def _scroll_extract(
        self,
        session: PageSession,
        url: str,
        html: str,
        items: list[ContentItem],
        content_patterns: tuple[str, ...],
        skip_patterns: tuple[str, ...],
    ) -> tuple[str, list[ContentItem]]:
        previous_count = len(items)
        stalled_rounds = 0

        for attempt in range(1, self.options.max_scroll_attempts + 1):
            logger.debug("Scroll attempt %d/%d for %s", attempt, self.options.max_scroll_attempts, url)

            baseline = await session.count(GROWTH_SELECTOR)
            await session.scroll_to_bottom()
            await self._sleep(self.options.settle_delay)
            await session.wait_for_count_above(GROWTH_SELECTOR, baseline, self.options.growth_timeout)

            html = await session.content()
            items = self._classify(html, url, content_patterns, skip_patterns)

            if len(items) > previous_count:
                previous_count = len(items)
                stalled_rounds = 0
                continue

            stalled_rounds += 1
            if stalled_rounds >= self.options.stable_rounds:
                logger.debug("No new content after %d scrolls, stopping", stalled_rounds)
                break

        return html, items

    def _classify(
        self,
        html: str,
        url: str,
        content_patterns: tuple[str, ...],
        skip_patterns: tuple[str, ...],
    ) -> list[ContentItem]:
        return self.classifier.classify(html, url, content_patterns, skip_patterns)

    async def _close(self, session: PageSession) -> None:
        try:
            await session.close()
        except Exception:
            logger.exception("Error closing browser")
