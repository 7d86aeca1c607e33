"""Tests for dynamic page detection signals."""

from site_monitor.core.page_signals import (
    PageProbe,
    fired_signals,
    has_meaningful_content,
    inline_handlers,
    is_dynamic_page,
)

STATIC_PAGE = """
<html><body>
  <main>
    <article class="post">
      <h2><a href="/news/first-story">First story headline here</a></h2>
      <p>Plenty of server rendered text so that the block counts as real content.</p>
    </article>
  </main>
</body></html>
"""


def test_static_page_is_not_dynamic() -> None:
    """Test server-rendered content fires no signal."""
    probe = PageProbe.from_html(STATIC_PAGE)

    assert fired_signals(probe) == []
    assert has_meaningful_content(probe)
    assert not is_dynamic_page(probe)


def test_framework_mount_point() -> None:
    """Test SPA mount points mark the page dynamic."""
    probe = PageProbe.from_html('<html><body><div id="__next"></div></body></html>')

    assert "framework_mount" in fired_signals(probe)
    assert is_dynamic_page(probe)


def test_window_globals() -> None:
    """Test framework and store globals reported by the page."""
    probe = PageProbe.from_html(STATIC_PAGE, ["__NUXT__", "__REDUX_STORE__"])

    assert fired_signals(probe) == ["framework_mount", "state_management"]


def test_bundler_and_hydration_markers() -> None:
    """Test bundle scripts and hydration attributes."""
    probe = PageProbe.from_html(
        STATIC_PAGE.replace("<main>", '<main data-reactroot=""><script src="/static/main.chunk.js"></script>')
    )

    signals = fired_signals(probe)
    assert "hydration_markers" in signals
    assert "bundler_artifacts" in signals


def test_inline_handler_limit() -> None:
    """Test inline handlers only count above the limit."""
    ten = "".join('<button onclick="go()">x</button>' for _ in range(10))
    eleven = ten + '<button onclick="go()">x</button>'

    assert not inline_handlers(PageProbe.from_html(ten))
    assert inline_handlers(PageProbe.from_html(eleven))


def test_content_inside_chrome_is_ignored() -> None:
    """Test navigation blocks are not meaningful content."""
    html = """
    <nav><div class="content"><a href="/news/x">A link inside the navigation menu that is long enough</a></div></nav>
    """

    assert not has_meaningful_content(PageProbe.from_html(html))


def test_empty_page_falls_back_to_dynamic() -> None:
    """Test a page with no visible content is treated as dynamic."""
    probe = PageProbe.from_html("<html><body><p>Loading</p></body></html>")

    assert fired_signals(probe) == []
    assert is_dynamic_page(probe)
