"""Tests for core entities."""

from datetime import datetime, timezone

import pytest

from site_monitor.core import ContentItem, MonitoringRule, RuleKind, Snapshot, SnapshotMetrics, Target


def test_content_item_creation() -> None:
    """Test creating a valid content item."""
    item = ContentItem(
        title="Quarterly results are out",
        url="https://example.com/news/results",
        path="/news/results",
    )

    assert item.title == "Quarterly results are out"
    assert item.published_at is None
    assert item.hidden is False
    assert item.first_seen.tzinfo is not None


def test_content_item_validation() -> None:
    """Test content item validation."""
    with pytest.raises(ValueError, match="Title cannot be empty"):
        ContentItem(title="", url="https://example.com/news/a", path="/news/a")

    with pytest.raises(ValueError, match="URL cannot be empty"):
        ContentItem(title="Some headline", url="", path="/news/a")


def test_target_requires_url() -> None:
    """Test target validation."""
    with pytest.raises(ValueError, match="URL cannot be empty"):
        Target(id="t1", url="")

    target = Target(id="t1", url="https://example.com")
    assert target.content_patterns == []
    assert target.item_count == 0


def test_rule_validation() -> None:
    """Test rule validation per kind."""
    with pytest.raises(ValueError, match="Recipient cannot be empty"):
        MonitoringRule(id="r1", target_id="t1", kind=RuleKind.ANY_CHANGE, recipient="")

    with pytest.raises(ValueError, match="requires a keyword"):
        MonitoringRule(id="r1", target_id="t1", kind=RuleKind.KEYWORD, recipient="r@example.com")

    with pytest.raises(ValueError, match="Threshold"):
        MonitoringRule(id="r1", target_id="t1", kind=RuleKind.ITEM_COUNT, recipient="r@example.com", threshold=0)


def test_rule_kind_values() -> None:
    """Test rule kinds round-trip through their string values."""
    assert RuleKind("item_count") is RuleKind.ITEM_COUNT
    assert RuleKind("keyword") is RuleKind.KEYWORD
    assert RuleKind("any_change") is RuleKind.ANY_CHANGE


def test_snapshot_links() -> None:
    """Test snapshot exposes metric links."""
    snapshot = Snapshot(
        target_id="t1",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        metrics=SnapshotMetrics(links=["https://example.com/a"]),
    )

    assert snapshot.links == ["https://example.com/a"]
