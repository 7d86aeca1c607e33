"""Signals used to decide whether a rendered page needs incremental loading.

Each signal is an independent predicate over a `PageProbe`. A page is dynamic
if any signal fires; otherwise it is dynamic only when no meaningful content
block is visible yet (content fallback).
"""

from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Sequence

from bs4 import BeautifulSoup

# Container selectors probed by the content fallback, most specific first
CONTENT_SELECTORS = (
    "article",
    ".article",
    ".post",
    ".entry",
    ".blog-post",
    ".news-item",
    ".content-item",
    '[class*="article"]',
    '[class*="post"]',
    '[class*="blog"]',
    '[class*="news"]',
    '[class*="content"]',
    '[class*="entry"]',
    ".main-content",
    ".page-content",
    ".container",
    ".wrapper",
    "main",
    "section",
    ".card",
    ".item",
)

WINDOW_GLOBALS = (
    "__NEXT_DATA__",
    "__NUXT__",
    "__REDUX_STORE__",
    "__VUEX__",
    "__MOBX__",
)

# Playwright evaluates this with WINDOW_GLOBALS as the argument
PROBE_GLOBALS_SCRIPT = (
    "(names) => names.filter((name) => Object.prototype.hasOwnProperty.call(window, name))"
)

INLINE_HANDLER_ATTRS = ("onclick", "onchange", "oninput")
INLINE_HANDLER_LIMIT = 10
MIN_CONTENT_TEXT = 50


@dataclass
class PageProbe:
    """What the signals can see of a loaded page."""

    soup: BeautifulSoup
    globals: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_html(cls, html: str, present_globals: Sequence[str] = ()) -> "PageProbe":
        return cls(soup=BeautifulSoup(html, "html.parser"), globals=frozenset(present_globals))

    def has(self, *selectors: str) -> bool:
        return self.soup.select_one(", ".join(selectors)) is not None


def framework_mount(probe: PageProbe) -> bool:
    return probe.has(
        "#__next",
        "#root",
        "#app",
        "[ng-version]",
        'script[type="module"]',
        'script[src*="react"]',
        'script[src*="vue"]',
        'script[src*="angular"]',
        'meta[name*="react"]',
        'meta[name*="vue"]',
        "script#__NEXT_DATA__",
    ) or bool(probe.globals & {"__NEXT_DATA__", "__NUXT__"})


def client_router(probe: PageProbe) -> bool:
    return probe.has(
        'script[src*="router"]',
        'a[href^="/"][href*=":"]',
        "div[data-route]",
        "[ui-view]",
        "[ng-view]",
    )


def loading_markers(probe: PageProbe) -> bool:
    return probe.has(
        "[data-loading]",
        "[data-fetch]",
        "[data-hydrate]",
        ".loading-indicator",
        '[aria-busy="true"]',
    )


def state_management(probe: PageProbe) -> bool:
    return probe.has(
        'script[src*="redux"]',
        'script[src*="vuex"]',
        'script[src*="mobx"]',
    ) or bool(probe.globals & {"__REDUX_STORE__", "__VUEX__", "__MOBX__"})


def hydration_markers(probe: PageProbe) -> bool:
    return probe.has(
        'script[type="application/json"]',
        "[data-component]",
        "[data-reactroot]",
        "[data-v-app]",
        "[ng-app]",
        "[data-client]",
    )


def bundler_artifacts(probe: PageProbe) -> bool:
    return probe.has(
        'script[src*="chunk"]',
        'script[src*="bundle"]',
        'script[src*="vendor"]',
        'link[href*="chunk"]',
        'link[href*="bundle"]',
    )


def inline_handlers(probe: PageProbe) -> bool:
    count = len(probe.soup.find_all(lambda tag: any(tag.has_attr(a) for a in INLINE_HANDLER_ATTRS)))
    return count > INLINE_HANDLER_LIMIT


class PageSignal(NamedTuple):
    name: str
    fires: Callable[[PageProbe], bool]


PAGE_SIGNALS: tuple[PageSignal, ...] = (
    PageSignal("framework_mount", framework_mount),
    PageSignal("client_router", client_router),
    PageSignal("loading_markers", loading_markers),
    PageSignal("state_management", state_management),
    PageSignal("hydration_markers", hydration_markers),
    PageSignal("bundler_artifacts", bundler_artifacts),
    PageSignal("inline_handlers", inline_handlers),
)


def fired_signals(probe: PageProbe, signals: Sequence[PageSignal] = PAGE_SIGNALS) -> list[str]:
    """Names of the signals that fire, in table order."""
    return [signal.name for signal in signals if signal.fires(probe)]


def has_meaningful_content(probe: PageProbe) -> bool:
    """At least one content block with links and real text outside page chrome."""
    for element in probe.soup.select(", ".join(CONTENT_SELECTORS)):
        if element.find_parent(["nav", "header", "footer"]) is not None:
            continue
        if element.name in ("nav", "header", "footer"):
            continue

        has_links = element.select_one('a[href*="/"]') is not None
        has_text = len(element.get_text(strip=True)) > MIN_CONTENT_TEXT
        if has_links and has_text:
            return True

    return False


def is_dynamic_page(probe: PageProbe, signals: Sequence[PageSignal] = PAGE_SIGNALS) -> bool:
    """OR over the signal table, falling back to the content check."""
    if any(signal.fires(probe) for signal in signals):
        return True
    return not has_meaningful_content(probe)
