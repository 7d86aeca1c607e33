"""Core domain layer."""

from site_monitor.core.change_detector import compute_new_links, diff_links
from site_monitor.core.classifier import ContentClassifier, classify
from site_monitor.core.coordinator import ScrapeCoordinator
from site_monitor.core.cooldown import NotificationCooldownCache, cooldown_key
from site_monitor.core.dispatcher import NotificationDispatcher, matching_items
from site_monitor.core.entities import (
    ContentItem,
    MonitoringRule,
    NotificationOutcome,
    RenderResult,
    RuleKind,
    Snapshot,
    SnapshotMetrics,
    Target,
)
from site_monitor.core.errors import (
    ScrapeError,
    ScrapeErrorKind,
    ScrapeRetryRequested,
    classify_error,
)
from site_monitor.core.interfaces import (
    AlertFormatter,
    BrowserLauncher,
    EmailSender,
    MonitoringStore,
    PageSession,
)
from site_monitor.core.metrics import extract_metrics
from site_monitor.core.renderer import PageRenderer, RenderOptions
from site_monitor.core.urls import lock_key, normalize_url

__all__ = [
    "Target",
    "ContentItem",
    "Snapshot",
    "SnapshotMetrics",
    "MonitoringRule",
    "RuleKind",
    "RenderResult",
    "NotificationOutcome",
    "ScrapeError",
    "ScrapeErrorKind",
    "ScrapeRetryRequested",
    "classify_error",
    "PageSession",
    "BrowserLauncher",
    "EmailSender",
    "AlertFormatter",
    "MonitoringStore",
    "ContentClassifier",
    "classify",
    "PageRenderer",
    "RenderOptions",
    "ScrapeCoordinator",
    "NotificationCooldownCache",
    "cooldown_key",
    "NotificationDispatcher",
    "matching_items",
    "diff_links",
    "compute_new_links",
    "extract_metrics",
    "normalize_url",
    "lock_key",
]
