"""Playwright implementation of the browser capability."""

import logging
from typing import Any, Optional, Sequence

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from site_monitor.core.errors import ScrapeError, ScrapeErrorKind, classify_error, kind_for_status
from site_monitor.core.interfaces import BrowserLauncher, PageSession

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

SCROLL_SCRIPT = "() => window.scrollTo(0, document.body.scrollHeight)"
COUNT_ABOVE_SCRIPT = "([selector, count]) => document.querySelectorAll(selector).length > count"


class PlaywrightPageSession(PageSession):
    """A single Chromium page owned by its own Playwright instance."""

    def __init__(self, playwright: Playwright, browser: Browser, page: Page) -> None:
        self._playwright = playwright
        self._browser = browser
        self.page = page
        self.url = ""

    async def navigate(self, url: str, timeout: float) -> None:
        self.url = url
        try:
            response = await self.page.goto(url, wait_until="networkidle", timeout=timeout * 1000)
        except PlaywrightTimeoutError as e:
            raise ScrapeError(url, f"navigation timed out after {timeout:.0f}s", ScrapeErrorKind.TIMEOUT) from e
        except PlaywrightError as e:
            raise ScrapeError(url, f"navigation failed: {e}", classify_error(e)) from e

        if response is None:
            return

        kind = kind_for_status(response.status)
        if kind is not None:
            raise ScrapeError(url, f"HTTP {response.status}", kind)

    async def wait_for_any_selector(self, selectors: Sequence[str], timeout: float) -> None:
        try:
            await self.page.wait_for_selector(", ".join(selectors), timeout=timeout * 1000)
        except PlaywrightTimeoutError as e:
            raise ScrapeError(self.url, f"no content appeared within {timeout:.0f}s", ScrapeErrorKind.TIMEOUT) from e

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.page.evaluate(script, arg)

    async def scroll_to_bottom(self) -> None:
        await self.page.evaluate(SCROLL_SCRIPT)

    async def wait_for_count_above(self, selector: str, count: int, timeout: float) -> bool:
        try:
            await self.page.wait_for_function(COUNT_ABOVE_SCRIPT, arg=[selector, count], timeout=timeout * 1000)
        except PlaywrightTimeoutError:
            return False
        return True

    async def count(self, selector: str) -> int:
        return await self.page.locator(selector).count()

    async def title(self) -> str:
        return await self.page.title()

    async def content(self) -> str:
        return await self.page.content()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightLauncher(BrowserLauncher):
    """Launch headless Chromium for each render."""

    def __init__(
        self,
        headless: bool = True,
        user_agent: Optional[str] = None,
        viewport_width: int = 1920,
        viewport_height: int = 1080,
        executable_path: Optional[str] = None,
    ) -> None:
        self.headless = headless
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.viewport = {"width": viewport_width, "height": viewport_height}
        self.executable_path = executable_path

    async def launch(self) -> PlaywrightPageSession:
        try:
            playwright = await async_playwright().start()
        except Exception as e:
            raise ScrapeError("", f"playwright driver failed to start: {e}", ScrapeErrorKind.LAUNCH) from e

        browser: Optional[Browser] = None
        try:
            browser = await playwright.chromium.launch(
                headless=self.headless,
                executable_path=self.executable_path,
                args=CHROMIUM_ARGS,
            )
            context = await browser.new_context(user_agent=self.user_agent, viewport=self.viewport)
            page = await context.new_page()
        except Exception as e:
            await self._cleanup(playwright, browser)
            if isinstance(e, PlaywrightError):
                raise ScrapeError("", f"browser launch failed: {e}", ScrapeErrorKind.LAUNCH) from e
            raise

        logger.debug("Launched Chromium (headless=%s)", self.headless)
        return PlaywrightPageSession(playwright, browser, page)

    @staticmethod
    async def _cleanup(playwright: Playwright, browser: Optional[Browser]) -> None:
        try:
            if browser is not None:
                await browser.close()
        except Exception:
            logger.exception("Error closing browser after failed launch")
        finally:
            await playwright.stop()
