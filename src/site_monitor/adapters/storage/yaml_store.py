"""File-backed monitoring store: one YAML document per record."""

import hashlib
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from site_monitor.core import (
    ContentItem,
    MonitoringRule,
    MonitoringStore,
    RuleKind,
    Snapshot,
    SnapshotMetrics,
    Target,
)
from site_monitor.core.entities import utc_now

logger = logging.getLogger(__name__)


def url_hash(url: str) -> str:
    return hashlib.md5(url.encode()).hexdigest()[:8]


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class YamlMonitoringStore(MonitoringStore):
    """Store targets, items, snapshots and rules as YAML artifacts.

    Layout::

        <storage_dir>/targets/<target_id>.yaml
        <storage_dir>/items/<target_id>/<slug>_<url_hash>[-<n>].yaml
        <storage_dir>/snapshots/<target_id>/<timestamp>.yaml
        <storage_dir>/rules/<rule_id>.yaml
    """

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        """Create directory structure for artifacts."""
        for sub in ("targets", "items", "snapshots", "rules"):
            (self.storage_dir / sub).mkdir(parents=True, exist_ok=True)

    def _write(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)

    def _read(self, path: Path) -> Optional[dict]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            return None

    def _read_all(self, directory: Path) -> list[dict]:
        records = []
        if not directory.exists():
            return records

        for path in sorted(directory.glob("*.yaml")):
            try:
                data = self._read(path)
            except yaml.YAMLError as e:
                logger.warning("Skipping unreadable artifact %s: %s", path, e)
                continue
            if data:
                records.append(data)
        return records

    def _item_path(self, target_id: str, item: ContentItem) -> Path:
        """Get path for item artifact: readable slug plus URL hash for uniqueness."""
        safe_title = re.sub(r'[^\w\s-]', '', item.title)
        safe_title = re.sub(r'[-\s]+', '-', safe_title)[:50]
        directory = self.storage_dir / "items" / target_id
        stem = f"{safe_title}_{url_hash(item.url)}"

        path = directory / f"{stem}.yaml"
        suffix = 1
        while path.exists():
            path = directory / f"{stem}-{suffix}.yaml"
            suffix += 1
        return path

    def _item_exists(self, target_id: str, url: str) -> bool:
        # Short hashes can collide, so the stored URL decides
        directory = self.storage_dir / "items" / target_id
        for path in directory.glob(f"*_{url_hash(url)}*.yaml"):
            data = self._read(path)
            if data and data.get("url") == url:
                return True
        return False

    async def get_target(self, target_id: str) -> Optional[Target]:
        data = self._read(self.storage_dir / "targets" / f"{target_id}.yaml")
        return self._target_from_dict(data) if data else None

    async def list_targets(self) -> list[Target]:
        return [self._target_from_dict(d) for d in self._read_all(self.storage_dir / "targets")]

    async def save_target(self, target: Target) -> None:
        self._write(self.storage_dir / "targets" / f"{target.id}.yaml", {
            "id": target.id,
            "name": target.name,
            "url": target.url,
            "feed_url": target.feed_url,
            "feed_enabled": target.feed_enabled,
            "content_patterns": list(target.content_patterns),
            "skip_patterns": list(target.skip_patterns),
            "last_checked": _dt(target.last_checked),
            "item_count": target.item_count,
        })

    @staticmethod
    def _target_from_dict(data: dict) -> Target:
        return Target(
            id=data["id"],
            url=data["url"],
            name=data.get("name") or "",
            feed_url=data.get("feed_url"),
            feed_enabled=bool(data.get("feed_enabled", False)),
            content_patterns=list(data.get("content_patterns") or []),
            skip_patterns=list(data.get("skip_patterns") or []),
            last_checked=_parse_dt(data.get("last_checked")),
            item_count=int(data.get("item_count", 0)),
        )

    async def list_items(self, target_id: str) -> list[ContentItem]:
        items = [self._item_from_dict(d) for d in self._read_all(self.storage_dir / "items" / target_id)]
        items.sort(key=lambda item: item.first_seen)
        return items

    async def insert_items(self, target_id: str, items: Sequence[ContentItem]) -> list[ContentItem]:
        inserted = []
        for item in items:
            if self._item_exists(target_id, item.url):
                continue
            self._write(self._item_path(target_id, item), {
                "title": item.title,
                "url": item.url,
                "path": item.path,
                "published_at": _dt(item.published_at),
                "summary": item.summary,
                "first_seen": _dt(item.first_seen),
                "hidden": item.hidden,
            })
            inserted.append(item)
        return inserted

    @staticmethod
    def _item_from_dict(data: dict) -> ContentItem:
        return ContentItem(
            title=data["title"],
            url=data["url"],
            path=data.get("path") or "",
            published_at=_parse_dt(data.get("published_at")),
            summary=data.get("summary"),
            first_seen=_parse_dt(data.get("first_seen")) or utc_now(),
            hidden=bool(data.get("hidden", False)),
        )

    async def add_snapshot(self, target_id: str, metrics: SnapshotMetrics, created_at: datetime) -> Snapshot:
        snapshot = Snapshot(target_id=target_id, created_at=created_at, metrics=metrics)
        filename = f"{created_at.strftime('%Y%m%dT%H%M%S%f')}.yaml"
        self._write(self.storage_dir / "snapshots" / target_id / filename, {
            "target_id": target_id,
            "created_at": _dt(created_at),
            "metrics": {
                "links": list(metrics.links),
                "word_count": metrics.word_count,
                "headings": list(metrics.headings),
                "image_count": metrics.image_count,
                "sentiment": {
                    "positive": metrics.positive_hits,
                    "negative": metrics.negative_hits,
                },
            },
        })
        return snapshot

    async def latest_snapshots(self, target_id: str, limit: int = 2) -> list[Snapshot]:
        snapshots = [
            self._snapshot_from_dict(d)
            for d in self._read_all(self.storage_dir / "snapshots" / target_id)
        ]
        snapshots.sort(key=lambda s: s.created_at, reverse=True)
        return snapshots[:limit]

    @staticmethod
    def _snapshot_from_dict(data: dict) -> Snapshot:
        metrics: dict[str, Any] = data.get("metrics") or {}
        sentiment = metrics.get("sentiment") or {}
        return Snapshot(
            target_id=data["target_id"],
            created_at=_parse_dt(data["created_at"]),
            metrics=SnapshotMetrics(
                links=list(metrics.get("links") or []),
                word_count=int(metrics.get("word_count", 0)),
                headings=list(metrics.get("headings") or []),
                image_count=int(metrics.get("image_count", 0)),
                positive_hits=int(sentiment.get("positive", 0)),
                negative_hits=int(sentiment.get("negative", 0)),
            ),
        )

    def prune_snapshots(self, target_id: str, keep: int = 10) -> int:
        """Remove all but the `keep` newest snapshots of a target.

        Returns:
            Number of snapshots removed
        """
        directory = self.storage_dir / "snapshots" / target_id
        if not directory.exists():
            return 0

        paths = sorted(directory.glob("*.yaml"), reverse=True)
        removed = 0
        for path in paths[keep:]:
            path.unlink()
            removed += 1
        return removed

    async def list_rules(self, target_id: Optional[str] = None, enabled_only: bool = True) -> list[MonitoringRule]:
        rules = [self._rule_from_dict(d) for d in self._read_all(self.storage_dir / "rules")]
        return [
            rule for rule in rules
            if (target_id is None or rule.target_id == target_id)
            and (rule.enabled or not enabled_only)
        ]

    async def save_rule(self, rule: MonitoringRule) -> None:
        self._write(self.storage_dir / "rules" / f"{rule.id}.yaml", {
            "id": rule.id,
            "target_id": rule.target_id,
            "kind": rule.kind.value,
            "recipient": rule.recipient,
            "threshold": rule.threshold,
            "keyword": rule.keyword,
            "enabled": rule.enabled,
            "last_triggered": _dt(rule.last_triggered),
        })

    @staticmethod
    def _rule_from_dict(data: dict) -> MonitoringRule:
        return MonitoringRule(
            id=data["id"],
            target_id=data["target_id"],
            kind=RuleKind(data["kind"]),
            recipient=data["recipient"],
            threshold=int(data.get("threshold", 1)),
            keyword=data.get("keyword"),
            enabled=bool(data.get("enabled", True)),
            last_triggered=_parse_dt(data.get("last_triggered")),
        )

    def get_stats(self) -> dict:
        """Get counts of stored items per target."""
        by_target = {}
        total = 0

        items_dir = self.storage_dir / "items"
        for target_dir in items_dir.iterdir():
            if target_dir.is_dir():
                count = len(list(target_dir.glob("*.yaml")))
                by_target[target_dir.name] = count
                total += count

        return {
            "total_items": total,
            "by_target": by_target,
            "targets": len(list((self.storage_dir / "targets").glob("*.yaml"))),
            "rules": len(list((self.storage_dir / "rules").glob("*.yaml"))),
        }
