"""Snapshot metrics extracted from a rendered page."""

import re
from typing import Union
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from site_monitor.core.entities import SnapshotMetrics
from site_monitor.core.urls import normalize_url

POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "best", "success", "growth", "launch",
    "improved", "win", "award", "positive", "new", "innovative", "record",
})

NEGATIVE_WORDS = frozenset({
    "bad", "poor", "worst", "failure", "decline", "loss", "risk", "problem",
    "crisis", "negative", "layoff", "lawsuit", "breach", "recall",
})

WORD = re.compile(r"\w+", re.UNICODE)


def extract_links(soup: BeautifulSoup, base_url: str) -> list[str]:
    """Absolute, normalized hyperlink targets in document order, without repeats."""
    links: list[str] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href == "#" or href.lower().startswith("javascript:"):
            continue
        try:
            url = normalize_url(urljoin(base_url, href))
        except ValueError:
            continue
        if urlsplit(url).scheme not in ("http", "https") or url in seen:
            continue
        seen.add(url)
        links.append(url)

    return links


def extract_metrics(page: Union[str, BeautifulSoup], base_url: str) -> SnapshotMetrics:
    """Build snapshot metrics for one page. The input is never mutated."""
    soup = BeautifulSoup(str(page), "html.parser")

    links = extract_links(soup, base_url)
    headings = [
        text for text in (h.get_text(" ", strip=True) for h in soup.find_all(["h1", "h2", "h3"]))
        if text
    ]
    image_count = len(soup.find_all("img"))

    body = soup.body or soup
    for tag in body.find_all(["script", "style", "noscript"]):
        tag.decompose()
    words = [w.lower() for w in WORD.findall(body.get_text(" "))]

    return SnapshotMetrics(
        links=links,
        word_count=len(words),
        headings=headings,
        image_count=image_count,
        positive_hits=sum(1 for w in words if w in POSITIVE_WORDS),
        negative_hits=sum(1 for w in words if w in NEGATIVE_WORDS),
    )
