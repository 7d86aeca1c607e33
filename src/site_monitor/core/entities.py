"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RuleKind(str, Enum):
    """Kind of monitoring rule."""

    ITEM_COUNT = "item_count"
    KEYWORD = "keyword"
    ANY_CHANGE = "any_change"


class NotificationOutcome(str, Enum):
    """Result of evaluating a rule against new items."""

    SENT = "sent"
    SUPPRESSED = "suppressed"
    NOT_TRIGGERED = "not_triggered"
    FAILED = "failed"
    DISABLED = "disabled"


@dataclass
class ContentItem:
    """A discovered article/post-like piece of content."""

    title: str
    url: str
    path: str
    published_at: Optional[datetime] = None
    summary: Optional[str] = None
    first_seen: datetime = field(default_factory=utc_now)
    hidden: bool = False

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("Title cannot be empty")
        if not self.url:
            raise ValueError("URL cannot be empty")


@dataclass
class Target:
    """A monitored website."""

    id: str
    url: str
    name: str = ""
    feed_url: Optional[str] = None
    feed_enabled: bool = False
    content_patterns: list[str] = field(default_factory=list)
    skip_patterns: list[str] = field(default_factory=list)
    last_checked: Optional[datetime] = None
    item_count: int = 0

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("URL cannot be empty")


@dataclass
class SnapshotMetrics:
    """Auxiliary metrics stored with a snapshot."""

    links: list[str] = field(default_factory=list)
    word_count: int = 0
    headings: list[str] = field(default_factory=list)
    image_count: int = 0
    positive_hits: int = 0
    negative_hits: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time observation of a target's link set."""

    target_id: str
    created_at: datetime
    metrics: SnapshotMetrics

    @property
    def links(self) -> list[str]:
        return self.metrics.links


@dataclass
class MonitoringRule:
    """A subscriber's alert condition for one target."""

    id: str
    target_id: str
    kind: RuleKind
    recipient: str
    threshold: int = 1
    keyword: Optional[str] = None
    enabled: bool = True
    last_triggered: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.recipient:
            raise ValueError("Recipient cannot be empty")
        if self.kind == RuleKind.KEYWORD and not self.keyword:
            raise ValueError("Keyword rule requires a keyword")
        if self.kind == RuleKind.ITEM_COUNT and self.threshold < 1:
            raise ValueError("Threshold must be at least 1")


@dataclass
class RenderResult:
    """Outcome of rendering one page."""

    title: str
    items: list[ContentItem]
    html: str = ""
    dynamic: bool = False
