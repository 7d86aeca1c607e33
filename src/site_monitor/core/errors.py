"""Scrape error taxonomy."""

from enum import Enum
from typing import Optional


class ScrapeErrorKind(str, Enum):
    """Category of a fatal scrape failure."""

    LAUNCH = "launch"
    TIMEOUT = "timeout"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    RETRY = "retry"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self not in (ScrapeErrorKind.FORBIDDEN, ScrapeErrorKind.NOT_FOUND, ScrapeErrorKind.LAUNCH)


class ScrapeError(Exception):
    """Fatal error while rendering or extracting a page."""

    def __init__(
        self,
        url: str,
        message: str,
        kind: ScrapeErrorKind = ScrapeErrorKind.UNKNOWN,
    ) -> None:
        self.url = url
        self.kind = kind
        self.message = message
        super().__init__(f"[{kind.value}] {url}: {message}")


class ScrapeRetryRequested(ScrapeError):
    """A shared in-flight scrape failed; the key is free and the caller may retry."""

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(url, f"in-flight scrape failed: {cause}", ScrapeErrorKind.RETRY)
        self.cause = cause


_STATUS_KINDS = {
    401: ScrapeErrorKind.FORBIDDEN,
    403: ScrapeErrorKind.FORBIDDEN,
    404: ScrapeErrorKind.NOT_FOUND,
    410: ScrapeErrorKind.NOT_FOUND,
    429: ScrapeErrorKind.RATE_LIMITED,
}


def kind_for_status(status: int) -> Optional[ScrapeErrorKind]:
    """Map an HTTP status from a navigation to an error kind, None if not fatal."""
    if status in _STATUS_KINDS:
        return _STATUS_KINDS[status]
    if status >= 500:
        return ScrapeErrorKind.UNKNOWN
    return None


def classify_error(exc: BaseException) -> ScrapeErrorKind:
    """Best-effort kind for any exception raised by a scrape."""
    if isinstance(exc, ScrapeError):
        return exc.kind

    text = f"{type(exc).__name__} {exc}".lower()

    if "timeout" in text or "timed out" in text:
        return ScrapeErrorKind.TIMEOUT
    if "403" in text or "forbidden" in text or "blocked" in text:
        return ScrapeErrorKind.FORBIDDEN
    if "404" in text or "not found" in text:
        return ScrapeErrorKind.NOT_FOUND
    if "429" in text or "too many requests" in text or "rate limit" in text:
        return ScrapeErrorKind.RATE_LIMITED
    return ScrapeErrorKind.UNKNOWN
