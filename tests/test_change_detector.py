"""Tests for snapshot change detection."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from site_monitor.core import Snapshot, SnapshotMetrics, compute_new_links, diff_links


def make_snapshot(links: list[str], hour: int) -> Snapshot:
    return Snapshot(
        target_id="t1",
        created_at=datetime(2024, 1, 1, hour, tzinfo=timezone.utc),
        metrics=SnapshotMetrics(links=links),
    )


def test_diff_links() -> None:
    """Test set difference keeps current order."""
    assert diff_links(["a", "b", "c"], ["a", "b"]) == ["c"]
    assert diff_links([], ["x"]) == []
    assert diff_links(["c", "a", "b"], []) == ["c", "a", "b"]


def test_diff_links_removed_only() -> None:
    """Test links that disappeared are not reported."""
    assert diff_links(["a"], ["a", "b"]) == []


@pytest.mark.asyncio
async def test_compute_new_links_uses_two_latest() -> None:
    """Test the newest snapshot is compared with the one before it."""
    store = AsyncMock()
    store.latest_snapshots.return_value = [
        make_snapshot(["https://example.com/a", "https://example.com/c"], hour=2),
        make_snapshot(["https://example.com/a", "https://example.com/b"], hour=1),
    ]

    new_links = await compute_new_links(store, "t1")

    assert new_links == ["https://example.com/c"]
    store.latest_snapshots.assert_awaited_once_with("t1", limit=2)


@pytest.mark.asyncio
async def test_compute_new_links_needs_two_snapshots() -> None:
    """Test a single snapshot yields no changes."""
    store = AsyncMock()
    store.latest_snapshots.return_value = [make_snapshot(["https://example.com/a"], hour=1)]

    assert await compute_new_links(store, "t1") == []
