"""Tests for the page renderer."""

from typing import Any, Optional, Sequence
from unittest.mock import AsyncMock, Mock, patch

import pytest

from site_monitor.core import (
    BrowserLauncher,
    ContentItem,
    PageRenderer,
    PageSession,
    RenderOptions,
    ScrapeError,
    ScrapeErrorKind,
)

STATIC_PAGE = """
<html><body><main>
  <article class="post">
    <a href="/news/first-story">First story headline here</a>
    <p>Plenty of server rendered text so that the block counts as real content.</p>
  </article>
</main></body></html>
"""


class FakeSession(PageSession):
    """In-memory page that records what the renderer did."""

    def __init__(
        self,
        html: str = "<html><body></body></html>",
        present_globals: Sequence[str] = (),
        navigate_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.html = html
        self.present_globals = list(present_globals)
        self.navigate_error = navigate_error
        self.close_error = close_error
        self.navigated: list[str] = []
        self.scrolls = 0
        self.closed = False

    async def navigate(self, url: str, timeout: float) -> None:
        self.navigated.append(url)
        if self.navigate_error:
            raise self.navigate_error

    async def wait_for_any_selector(self, selectors: Sequence[str], timeout: float) -> None:
        pass

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return self.present_globals

    async def scroll_to_bottom(self) -> None:
        self.scrolls += 1

    async def wait_for_count_above(self, selector: str, count: int, timeout: float) -> bool:
        return False

    async def count(self, selector: str) -> int:
        return 0

    async def title(self) -> str:
        return "Example News"

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True
        if self.close_error:
            raise self.close_error


class FakeLauncher(BrowserLauncher):
    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.launches = 0

    async def launch(self) -> FakeSession:
        self.launches += 1
        return self.session


def make_items(count: int) -> list[ContentItem]:
    return [
        ContentItem(
            title=f"Headline number {i}",
            url=f"https://example.com/news/{i}",
            path=f"/news/{i}",
        )
        for i in range(count)
    ]


@pytest.mark.asyncio
async def test_static_page_single_pass() -> None:
    """Test static pages are classified once without scrolling."""
    session = FakeSession(html=STATIC_PAGE)
    renderer = PageRenderer(FakeLauncher(session), sleep=AsyncMock())

    result = await renderer.render("https://example.com/")

    assert result.title == "Example News"
    assert result.dynamic is False
    assert [item.url for item in result.items] == ["https://example.com/news/first-story"]
    assert result.html == STATIC_PAGE
    assert session.scrolls == 0
    assert session.closed


@pytest.mark.asyncio
async def test_dynamic_page_stops_after_two_stable_rounds() -> None:
    """Test scroll loop with counts 4, 7, 7, 7 stops after the third scroll."""
    session = FakeSession(present_globals=["__NEXT_DATA__"])
    classifier = Mock()
    classifier.classify.side_effect = [make_items(n) for n in (4, 7, 7, 7, 7, 7)]
    sleep = AsyncMock()
    renderer = PageRenderer(FakeLauncher(session), classifier=classifier, sleep=sleep)

    result = await renderer.render("https://example.com/")

    assert result.dynamic is True
    assert len(result.items) == 7
    assert classifier.classify.call_count == 4
    assert session.scrolls == 3
    sleep.assert_awaited_with(2.0)
    assert session.closed


@pytest.mark.asyncio
async def test_dynamic_page_respects_max_attempts() -> None:
    """Test a page that keeps growing stops at the attempt limit."""
    session = FakeSession(present_globals=["__NUXT__"])
    classifier = Mock()
    classifier.classify.side_effect = [make_items(n) for n in range(1, 10)]
    renderer = PageRenderer(
        FakeLauncher(session),
        classifier=classifier,
        options=RenderOptions(max_scroll_attempts=3),
        sleep=AsyncMock(),
    )

    result = await renderer.render("https://example.com/")

    assert session.scrolls == 3
    assert len(result.items) == 4


@pytest.mark.asyncio
async def test_dynamic_decision_uses_page_signals() -> None:
    """Test the render mode follows is_dynamic_page for the loaded page."""
    session = FakeSession(html=STATIC_PAGE, present_globals=["__NEXT_DATA__"])
    renderer = PageRenderer(FakeLauncher(session), sleep=AsyncMock())

    with patch("site_monitor.core.renderer.is_dynamic_page", Mock(return_value=False)) as decide:
        result = await renderer.render("https://example.com/")

    seen = decide.call_args.args[0]
    assert seen.globals == frozenset({"__NEXT_DATA__"})
    assert result.dynamic is False
    assert session.scrolls == 0


@pytest.mark.asyncio
async def test_custom_patterns_reach_classifier() -> None:
    """Test target patterns are passed through on every pass."""
    session = FakeSession(html=STATIC_PAGE)
    classifier = Mock()
    classifier.classify.return_value = []
    renderer = PageRenderer(FakeLauncher(session), classifier=classifier, sleep=AsyncMock())

    await renderer.render("https://example.com/", ["/insights/"], ["/sponsored"])

    classifier.classify.assert_called_once_with(STATIC_PAGE, "https://example.com/", ("/insights/",), ("/sponsored",))


@pytest.mark.asyncio
async def test_navigation_error_closes_page() -> None:
    """Test navigation failures propagate and the page is still closed."""
    error = ScrapeError("https://example.com/", "navigation timed out", ScrapeErrorKind.TIMEOUT)
    session = FakeSession(navigate_error=error)
    renderer = PageRenderer(FakeLauncher(session), sleep=AsyncMock())

    with pytest.raises(ScrapeError) as exc_info:
        await renderer.render("https://example.com/")

    assert exc_info.value.kind == ScrapeErrorKind.TIMEOUT
    assert session.closed


@pytest.mark.asyncio
async def test_close_error_is_not_raised() -> None:
    """Test a failing close does not hide a successful render."""
    session = FakeSession(html=STATIC_PAGE, close_error=RuntimeError("browser gone"))
    renderer = PageRenderer(FakeLauncher(session), sleep=AsyncMock())

    result = await renderer.render("https://example.com/")

    assert len(result.items) == 1
