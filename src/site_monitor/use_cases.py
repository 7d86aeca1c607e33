"""Business logic use cases."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from site_monitor.core import (
    ContentItem,
    MonitoringRule,
    MonitoringStore,
    NotificationDispatcher,
    NotificationOutcome,
    RenderResult,
    ScrapeCoordinator,
    ScrapeErrorKind,
    Snapshot,
    Target,
    classify_error,
    compute_new_links,
    extract_metrics,
)
from site_monitor.core.entities import utc_now

logger = logging.getLogger(__name__)


class TargetNotFound(LookupError):
    def __init__(self, target_id: str) -> None:
        self.target_id = target_id
        super().__init__(f"Target {target_id} not found")


@dataclass
class TargetUpdate:
    """Outcome of one successful target update."""

    target: Target
    title: str
    new_items: list[ContentItem]
    snapshot: Snapshot
    items: list[ContentItem] = field(default_factory=list)


@dataclass
class TargetReport:
    """What a batch check did for one target."""

    target_id: str
    update: Optional[TargetUpdate] = None
    new_links: list[str] = field(default_factory=list)
    outcomes: dict[str, NotificationOutcome] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ScrapeErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MonitoringService:
    """Scrape targets, detect new content and alert subscribers."""

    def __init__(
        self,
        store: MonitoringStore,
        coordinator: ScrapeCoordinator,
        dispatcher: NotificationDispatcher,
        retry_count: int = 3,
        initial_retry_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.dispatcher = dispatcher
        self.retry_count = retry_count
        self.initial_retry_delay = initial_retry_delay
        self._sleep = sleep

    async def scrape_target(
        self,
        url: str,
        content_patterns: Iterable[str] = (),
        skip_patterns: Iterable[str] = (),
    ) -> RenderResult:
        """Scrape one page through the coordinator."""
        return await self.coordinator.scrape(url, content_patterns, skip_patterns)

    async def compute_new_links(self, target_id: str) -> list[str]:
        """Links added between the target's two latest snapshots."""
        return await compute_new_links(self.store, target_id)

    async def notify_if_triggered(
        self,
        rule: MonitoringRule,
        new_items: Sequence[ContentItem],
        target: Optional[Target] = None,
    ) -> NotificationOutcome:
        return await self.dispatcher.evaluate(rule, new_items, target)

    async def update_target(self, target_id: str) -> TargetUpdate:
        """Scrape a target, store unseen items and record a snapshot."""
        target = await self.store.get_target(target_id)
        if target is None:
            raise TargetNotFound(target_id)

        logger.info("Starting update for target %s (%s)", target.id, target.url)
        target.last_checked = utc_now()
        await self.store.save_target(target)

        result = await self.scrape_target(target.url, target.content_patterns, target.skip_patterns)

        known_urls = {item.url for item in await self.store.list_items(target.id)}
        unseen = [item for item in result.items if item.url not in known_urls]
        inserted = await self.store.insert_items(target.id, unseen)
        logger.info("Target %s: %d new items", target.id, len(inserted))

        if inserted:
            target.item_count += len(inserted)
            await self.store.save_target(target)

        snapshot = await self.store.add_snapshot(
            target.id, extract_metrics(result.html, target.url), utc_now()
        )

        return TargetUpdate(
            target=target,
            title=result.title,
            new_items=inserted,
            snapshot=snapshot,
            items=list(result.items),
        )

    async def update_target_with_retry(self, target_id: str) -> TargetUpdate:
        """Update a target, retrying retryable failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await self.update_target(target_id)
            except Exception as e:
                kind = classify_error(e)
                if not kind.retryable or attempt >= self.retry_count:
                    raise

                retry_delay = self.initial_retry_delay * (2 ** attempt)
                logger.warning(
                    "Update of %s failed (%s), retrying after %.1fs (attempt %d/%d)",
                    target_id, kind.value, retry_delay, attempt + 1, self.retry_count,
                )
                await self._sleep(retry_delay)
                attempt += 1

    async def check_target(self, target: Target) -> TargetReport:
        """Update one target and evaluate its enabled rules."""
        report = TargetReport(target_id=target.id)

        try:
            update = await self.update_target_with_retry(target.id)
        except Exception as e:
            report.error = str(e)
            report.error_kind = classify_error(e)
            logger.error("Error checking target %s: %s", target.id, e)
            return report

        report.update = update
        report.new_links = await self.compute_new_links(target.id)

        rules = await self.store.list_rules(target_id=target.id)
        if rules:
            new_items = self._changed_items(update, report.new_links)
            report.outcomes = await self.dispatcher.evaluate_rules(rules, new_items, update.target)

        return report

    async def check_all_targets(self) -> list[TargetReport]:
        """Check every target in turn; one failure never blocks the rest."""
        reports = []

        for target in await self.store.list_targets():
            try:
                reports.append(await self.check_target(target))
            except Exception as e:
                logger.exception("Unexpected error checking target %s", target.id)
                reports.append(TargetReport(target_id=target.id, error=str(e), error_kind=classify_error(e)))

        return reports

    async def run_all_enabled_rules(self) -> dict[str, NotificationOutcome]:
        """Evaluate every enabled rule against items seen since it last fired."""
        outcomes: dict[str, NotificationOutcome] = {}

        for rule in await self.store.list_rules(enabled_only=True):
            try:
                target = await self.store.get_target(rule.target_id)
                if target is None:
                    logger.warning("Rule %s points to unknown target %s", rule.id, rule.target_id)
                    outcomes[rule.id] = NotificationOutcome.FAILED
                    continue

                items = [
                    item for item in await self.store.list_items(target.id)
                    if not item.hidden
                    and (rule.last_triggered is None or item.first_seen > rule.last_triggered)
                ]
                outcomes[rule.id] = await self.dispatcher.evaluate(rule, items, target)
            except Exception:
                logger.exception("Error evaluating rule %s", rule.id)
                outcomes[rule.id] = NotificationOutcome.FAILED

        return outcomes

    @staticmethod
    def _changed_items(update: TargetUpdate, new_links: Sequence[str]) -> list[ContentItem]:
        """Newly stored items plus any item whose link reappeared in the latest snapshot."""
        changed = list(update.new_items)
        seen = {item.url for item in changed}
        link_set = set(new_links)

        for item in update.items:
            if item.url in link_set and item.url not in seen:
                seen.add(item.url)
                changed.append(item)

        return changed
