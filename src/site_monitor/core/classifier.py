"""Content classification: page markup -> deduplicated content items."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union
from urllib.parse import unquote, urljoin, urlsplit

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

from site_monitor.core.entities import ContentItem, utc_now
from site_monitor.core.urls import normalize_url

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 10
MIN_PUBLISHED_AT = datetime(2000, 1, 1, tzinfo=timezone.utc)
MAX_FUTURE = timedelta(days=365)

USER_PATTERNS = (
    # English
    "/user/",
    "/users/",
    "/profile/",
    "/u/",
    "/member/",
    "/members/",
    "/author/",
    "@",
    "/account/",
    "/accounts/",
    # Norwegian
    "/bruker/",
    "/brukere/",
    "/profil/",
    "/medlem/",
    "/medlemmer/",
    "/forfatter/",
    "/konto/",
)

CONTENT_PATTERNS = (
    "/article/",
    "/post/",
    "/posts/",
    "/p/",
    "/story/",
    "/stories/",
    "/news/",
    "/news-",
    "news/",
    "/updates/",
    "/press/",
    "/press-releases/",
    "/media/",
    "/blog/",
    "/read/",
    "/watch/",
    "/video/",
    "/comments/",
    "/discussion/",
    "/thread/",
    "/t/",
    "/r/",
    "/topic/",
    "/artikkel/",
    "/innlegg/",
    "/nyhet/",
    "/nyheter/",
    "/sak/",
    "/saker/",
    "/blogg/",
    "/les/",
    "/se/",
    "/kommentarer/",
    "/diskusjon/",
    "/trad/",
    "/tema/",
    "/aktuelt/",
    "/products/",
    "/product/",
    "/solutions/",
    "/solution/",
    "/technologies/",
    "/technology/",
    "/services/",
    "/service/",
)

SKIP_PATTERNS = (
    "/tag/",
    "/category/",
    "/page/",
    "/search",
    "/login",
    "/register",
    "/about",
    "/contact",
    "/emneord/",
    "/kategori/",
    "/side/",
    "/sok/",
    "/logg-inn/",
    "/registrer/",
    "/om/",
    "/kontakt/",
    "/personvern/",
    "/vilkar/",
)

SKIP_TITLES = (
    "login",
    "sign in",
    "register",
    "subscribe",
    "cookie",
    "privacy policy",
    "terms of service",
    "logg inn",
    "registrer",
    "abonner",
    "informasjonskapsler",
    "personvern",
    "vilkår",
    "betingelser",
)

ADMIN_NOISE = re.compile(r"/(wp-|feed|rss|cdn-cgi)")
DOWNLOAD_SUFFIX = re.compile(r"\.(pdf|zip|rar|exe|dmg|apk|jpe?g|png|gif|css|js|xml|txt)$")
CONTENT_PATH = re.compile(r"^[\w\-/]+$")
ARCHIVE_PATH = re.compile(r"\d{4}/\d{2}/?$")
PAGINATION_QUERY = re.compile(r"(^|&)(page|sort)=")

CONTAINER_CLASSES = ("article", "post", "entry", "item")
CONTAINER_DIV_MARKERS = ("article", "post", "entry", "news", "blog", "content")
DATE_LABEL_SELECTOR = '.date, [class*="date"], .time, [class*="time"]'
SUMMARY_SELECTOR = 'p, .description, .summary, [class*="excerpt"], [class*="desc"]'

Page = Union[str, BeautifulSoup]


def parse_published_date(raw: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Parse a free-form publish date.

    Returns None when there is nothing to parse. Unparseable values and values
    before 2000 or more than a year ahead fall back to `now`.
    """
    if not raw or not raw.strip():
        return None

    now = now or utc_now()
    text = re.sub(r"\s+", " ", raw).strip()

    try:
        parsed = date_parser.parse(
            text,
            fuzzy=True,
            default=now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None),
        )
    except (ValueError, OverflowError):
        return now

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    if parsed < MIN_PUBLISHED_AT or parsed > now + MAX_FUTURE:
        return now

    return parsed


def _is_container(tag: Tag) -> bool:
    if tag.name == "article":
        return True

    classes = [c.lower() for c in (tag.get("class") or [])]
    if any(c in CONTAINER_CLASSES for c in classes):
        return True

    if tag.name == "div":
        joined = " ".join(classes)
        return any(marker in joined for marker in CONTAINER_DIV_MARKERS)

    return False


def find_container(anchor: Tag) -> Optional[Tag]:
    """Nearest element (the anchor included) that looks like an article wrapper."""
    if _is_container(anchor):
        return anchor
    return anchor.find_parent(_is_container)


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class ContentClassifier:
    """Turn a page into an ordered list of content items.

    Pure and deterministic apart from timestamps: identical markup yields the
    same items in the same order.
    """

    def __init__(
        self,
        content_patterns: Iterable[str] = CONTENT_PATTERNS,
        skip_patterns: Iterable[str] = SKIP_PATTERNS,
        user_patterns: Iterable[str] = USER_PATTERNS,
        skip_titles: Iterable[str] = SKIP_TITLES,
        min_title_length: int = MIN_TITLE_LENGTH,
    ) -> None:
        self.content_patterns = tuple(p.lower() for p in content_patterns)
        self.skip_patterns = tuple(p.lower() for p in skip_patterns)
        self.user_patterns = tuple(p.lower() for p in user_patterns)
        self.skip_titles = tuple(t.lower() for t in skip_titles)
        self.min_title_length = min_title_length

    def classify(
        self,
        page: Page,
        base_url: str,
        extra_content_patterns: Iterable[str] = (),
        extra_skip_patterns: Iterable[str] = (),
        now: Optional[datetime] = None,
    ) -> list[ContentItem]:
        """Extract content items from static HTML or a serialized rendered DOM."""
        soup = page if isinstance(page, BeautifulSoup) else BeautifulSoup(page, "html.parser")
        now = now or utc_now()

        content_patterns = self.content_patterns + tuple(p.lower() for p in extra_content_patterns if p)
        skip_patterns = self.skip_patterns + tuple(p.lower() for p in extra_skip_patterns if p)

        items: list[ContentItem] = []
        seen_urls: set[str] = set()

        for anchor in soup.find_all("a", href=True):
            try:
                item = self._classify_anchor(
                    anchor, base_url, content_patterns, skip_patterns, seen_urls, now
                )
            except ValueError as e:
                logger.debug("Skipping link %r: %s", anchor.get("href"), e)
                continue

            if item:
                seen_urls.add(item.url)
                items.append(item)

        return items

    def _classify_anchor(
        self,
        anchor: Tag,
        base_url: str,
        content_patterns: tuple[str, ...],
        skip_patterns: tuple[str, ...],
        seen_urls: set[str],
        now: datetime,
    ) -> Optional[ContentItem]:
        href = (anchor.get("href") or "").strip()
        if not href or href.startswith("#") or href.lower().startswith("javascript:"):
            return None

        url = normalize_url(urljoin(base_url, href))
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            return None

        path = unquote(parts.path).lower()
        if self.should_skip_url(path, skip_patterns) or url in seen_urls:
            return None

        title = _clean_text(anchor.get_text(" ", strip=True))
        if self.should_skip_title(title):
            return None

        if not self.is_content_url(path, parts.query, content_patterns):
            return None

        return self._build_item(anchor, title, url, parts.path, now)

    def should_skip_url(self, path: str, skip_patterns: Iterable[str] = ()) -> bool:
        return (
            path in ("", "/")
            or any(pattern in path for pattern in self.user_patterns)
            or any(pattern in path for pattern in skip_patterns)
            or bool(ADMIN_NOISE.search(path))
            or bool(DOWNLOAD_SUFFIX.search(path))
        )

    def should_skip_title(self, title: str) -> bool:
        lowered = title.lower()
        return (
            not title
            or len(title) < self.min_title_length
            or any(text in lowered for text in self.skip_titles)
        )

    def is_content_url(self, path: str, query: str = "", content_patterns: Iterable[str] = ()) -> bool:
        """Content by explicit pattern, or by looking like an article slug."""
        patterns = tuple(content_patterns) or self.content_patterns
        if any(pattern in path for pattern in patterns):
            return True

        segments = [s for s in path.strip("/").split("/") if s]
        return (
            len(segments) >= 2
            and len(segments[-1]) > 3
            and bool(CONTENT_PATH.match(path))
            and "page=" not in path
            and "sort=" not in path
            and not PAGINATION_QUERY.search(query)
            and not ARCHIVE_PATH.search(path)
        )

    def _build_item(self, anchor: Tag, title: str, url: str, path: str, now: datetime) -> ContentItem:
        container = find_container(anchor)
        published_at = None
        summary = None

        if container is not None:
            published_at = parse_published_date(self._date_text(container), now)
            summary_el = container.select_one(SUMMARY_SELECTOR)
            if summary_el is not None:
                summary = _clean_text(summary_el.get_text(" ", strip=True)) or None

        return ContentItem(
            title=title,
            url=url,
            path=path,
            published_at=published_at,
            summary=summary,
            first_seen=now,
        )

    @staticmethod
    def _date_text(container: Tag) -> Optional[str]:
        time_el = container.find("time")
        if time_el is not None:
            value = time_el.get("datetime") or time_el.get_text(" ", strip=True)
            if value:
                return value

        dated = container.find(attrs={"datetime": True})
        if dated is not None and dated.get("datetime"):
            return dated["datetime"]

        label = container.select_one(DATE_LABEL_SELECTOR)
        if label is not None:
            return label.get_text(" ", strip=True) or None

        return None


_default_classifier = ContentClassifier()


def classify(
    page: Page,
    base_url: str,
    extra_content_patterns: Iterable[str] = (),
    extra_skip_patterns: Iterable[str] = (),
) -> list[ContentItem]:
    """Classify with the built-in pattern tables."""
    return _default_classifier.classify(page, base_url, extra_content_patterns, extra_skip_patterns)
