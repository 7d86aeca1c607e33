"""Notification dispatch: rule evaluation, cooldown and sending."""

import logging
from typing import Callable, Optional, Sequence

from site_monitor.core.cooldown import NotificationCooldownCache, cooldown_key
from site_monitor.core.entities import (
    ContentItem,
    MonitoringRule,
    NotificationOutcome,
    RuleKind,
    Target,
    utc_now,
)
from site_monitor.core.interfaces import AlertFormatter, EmailSender, MonitoringStore

logger = logging.getLogger(__name__)


def _match_item_count(rule: MonitoringRule, items: Sequence[ContentItem]) -> list[ContentItem]:
    return list(items) if len(items) >= rule.threshold else []


def _match_keyword(rule: MonitoringRule, items: Sequence[ContentItem]) -> list[ContentItem]:
    keyword = (rule.keyword or "").lower()
    if not keyword:
        return []
    return [
        item for item in items
        if keyword in item.title.lower() or keyword in (item.summary or "").lower()
    ]


def _match_any_change(rule: MonitoringRule, items: Sequence[ContentItem]) -> list[ContentItem]:
    return list(items)


def matching_items(rule: MonitoringRule, items: Sequence[ContentItem]) -> list[ContentItem]:
    """Items that make the rule fire (empty means not triggered)."""
    if rule.kind is RuleKind.ITEM_COUNT:
        return _match_item_count(rule, items)
    if rule.kind is RuleKind.KEYWORD:
        return _match_keyword(rule, items)
    if rule.kind is RuleKind.ANY_CHANGE:
        return _match_any_change(rule, items)
    raise ValueError(f"Unsupported rule kind: {rule.kind!r}")


class NotificationDispatcher:
    """Evaluate rules against new items and send at most one alert per cooldown."""

    def __init__(
        self,
        sender: EmailSender,
        formatter: AlertFormatter,
        store: MonitoringStore,
        cooldown: Optional[NotificationCooldownCache] = None,
        now: Callable = utc_now,
    ) -> None:
        self.sender = sender
        self.formatter = formatter
        self.store = store
        self.cooldown = cooldown if cooldown is not None else NotificationCooldownCache()
        self._now = now

    async def evaluate(
        self,
        rule: MonitoringRule,
        new_items: Sequence[ContentItem],
        target: Optional[Target] = None,
    ) -> NotificationOutcome:
        """Evaluate one rule; send failures are logged, never raised."""
        matched = matching_items(rule, new_items)
        if not matched:
            return NotificationOutcome.NOT_TRIGGERED

        if not self.sender.configured:
            logger.warning("Email sending is not configured, skipping alert for rule %s", rule.id)
            return NotificationOutcome.DISABLED

        if target is None:
            target = await self.store.get_target(rule.target_id)
            if target is None:
                logger.warning("Rule %s points to unknown target %s", rule.id, rule.target_id)
                return NotificationOutcome.FAILED

        key = cooldown_key(rule.recipient, target.url, [item.url for item in matched])
        if self.cooldown.is_cooling_down(key):
            logger.info("Suppressing duplicate alert to %s for %s", rule.recipient, target.url)
            return NotificationOutcome.SUPPRESSED

        subject, body = self.formatter.format(rule, target, matched)

        # The key is held while the send is in flight
        self.cooldown.record(key)
        try:
            delivery_id = await self.sender.send(rule.recipient, subject, body)
        except Exception:
            self.cooldown.forget(key)
            logger.exception("Failed to send alert for rule %s to %s", rule.id, rule.recipient)
            return NotificationOutcome.FAILED
        except BaseException:
            self.cooldown.forget(key)
            raise

        logger.info("Alert sent to %s for rule %s (delivery %s)", rule.recipient, rule.id, delivery_id)

        rule.last_triggered = self._now()
        try:
            await self.store.save_rule(rule)
        except Exception:
            logger.exception("Failed to record trigger time for rule %s", rule.id)

        return NotificationOutcome.SENT

    async def evaluate_rules(
        self,
        rules: Sequence[MonitoringRule],
        new_items: Sequence[ContentItem],
        target: Optional[Target] = None,
    ) -> dict[str, NotificationOutcome]:
        """Evaluate sibling rules; one rule's failure never stops the others."""
        outcomes: dict[str, NotificationOutcome] = {}

        for rule in rules:
            try:
                outcomes[rule.id] = await self.evaluate(rule, new_items, target)
            except Exception:
                logger.exception("Error evaluating rule %s", rule.id)
                outcomes[rule.id] = NotificationOutcome.FAILED

        return outcomes
