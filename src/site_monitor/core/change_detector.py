"""Change detection between successive snapshots of a target."""

import logging
from typing import Sequence

from site_monitor.core.interfaces import MonitoringStore

logger = logging.getLogger(__name__)


def diff_links(current: Sequence[str], previous: Sequence[str]) -> list[str]:
    """Links in `current` that are absent from `previous`, in `current` order.

    Comparison is exact; links must already be normalized when stored.
    """
    known = set(previous)
    return [link for link in current if link not in known]


async def compute_new_links(store: MonitoringStore, target_id: str) -> list[str]:
    """New links between the two most recent snapshots of a target."""
    snapshots = await store.latest_snapshots(target_id, limit=2)

    if len(snapshots) < 2:
        logger.info("Not enough snapshots for comparison on target %s", target_id)
        return []

    current, previous = snapshots[0], snapshots[1]
    new_links = diff_links(current.links, previous.links)
    logger.info("Target %s: %d new links since last snapshot", target_id, len(new_links))
    return new_links
