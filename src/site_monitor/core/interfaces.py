"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional, Sequence

from site_monitor.core.entities import ContentItem, MonitoringRule, Snapshot, SnapshotMetrics, Target


class PageSession(ABC):
    """One open browser page. Every method may suspend."""

    @abstractmethod
    async def navigate(self, url: str, timeout: float) -> None:
        """Load URL, raising ScrapeError on timeout or a blocking status."""
        pass

    @abstractmethod
    async def wait_for_any_selector(self, selectors: Sequence[str], timeout: float) -> None:
        """Wait until any selector matches, raising ScrapeError on timeout."""
        pass

    @abstractmethod
    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Evaluate a JavaScript function in the page and return its value."""
        pass

    @abstractmethod
    async def scroll_to_bottom(self) -> None:
        pass

    @abstractmethod
    async def wait_for_count_above(self, selector: str, count: int, timeout: float) -> bool:
        """Wait until more than `count` elements match; False on timeout."""
        pass

    @abstractmethod
    async def count(self, selector: str) -> int:
        pass

    @abstractmethod
    async def title(self) -> str:
        pass

    @abstractmethod
    async def content(self) -> str:
        """Current serialized DOM."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the page and its browser."""
        pass


class BrowserLauncher(ABC):
    """Interface for starting a browser page."""

    @abstractmethod
    async def launch(self) -> PageSession:
        """Launch a browser and open a page, raising ScrapeError on failure."""
        pass


class EmailSender(ABC):
    """Interface for delivering alert emails."""

    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether sending is possible at all."""
        pass

    @abstractmethod
    async def send(self, to: str, subject: str, html_body: str) -> str:
        """Send an email and return the provider's delivery id."""
        pass


class AlertFormatter(ABC):
    """Interface for rendering alert emails."""

    @abstractmethod
    def format(self, rule: MonitoringRule, target: Target, items: Sequence[ContentItem]) -> tuple[str, str]:
        """Return (subject, html_body)."""
        pass


class MonitoringStore(ABC):
    """Interface for persisting targets, items, snapshots and rules."""

    @abstractmethod
    async def get_target(self, target_id: str) -> Optional[Target]:
        pass

    @abstractmethod
    async def list_targets(self) -> list[Target]:
        pass

    @abstractmethod
    async def save_target(self, target: Target) -> None:
        pass

    @abstractmethod
    async def list_items(self, target_id: str) -> list[ContentItem]:
        pass

    @abstractmethod
    async def insert_items(self, target_id: str, items: Sequence[ContentItem]) -> list[ContentItem]:
        """Insert items whose URL is new for the target; return the inserted ones."""
        pass

    @abstractmethod
    async def add_snapshot(self, target_id: str, metrics: SnapshotMetrics, created_at: datetime) -> Snapshot:
        pass

    @abstractmethod
    async def latest_snapshots(self, target_id: str, limit: int = 2) -> list[Snapshot]:
        """Most recent snapshots first."""
        pass

    @abstractmethod
    async def list_rules(self, target_id: Optional[str] = None, enabled_only: bool = True) -> list[MonitoringRule]:
        pass

    @abstractmethod
    async def save_rule(self, rule: MonitoringRule) -> None:
        pass
