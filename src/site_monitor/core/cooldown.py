"""Send-cooldown cache for alert notifications."""

import time
from typing import Iterable

from site_monitor.core.sweeper import Clock, PeriodicSweeper
from site_monitor.core.urls import normalize_url

DEFAULT_COOLDOWN = 5 * 60.0

CooldownKey = tuple[str, str, tuple[str, ...]]


def cooldown_key(recipient: str, target_url: str, item_urls: Iterable[str]) -> CooldownKey:
    """(recipient, normalized target URL, sorted normalized item URLs)."""
    return (
        recipient.strip().lower(),
        normalize_url(target_url),
        tuple(sorted({normalize_url(url) for url in item_urls})),
    )


class NotificationCooldownCache(PeriodicSweeper):
    """Remembers when each (recipient, target, link-set) alert was last sent."""

    def __init__(self, cooldown: float = DEFAULT_COOLDOWN, clock: Clock = time.monotonic) -> None:
        super().__init__(interval=cooldown, clock=clock)
        self.cooldown = cooldown
        self._sent: dict[CooldownKey, float] = {}

    def __len__(self) -> int:
        return len(self._sent)

    def is_cooling_down(self, key: CooldownKey) -> bool:
        sent_at = self._sent.get(key)
        return sent_at is not None and self._clock() - sent_at < self.cooldown

    def record(self, key: CooldownKey) -> None:
        self._sent[key] = self._clock()

    def forget(self, key: CooldownKey) -> None:
        self._sent.pop(key, None)

    def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, sent_at in self._sent.items() if now - sent_at >= self.cooldown]
        for key in expired:
            del self._sent[key]
        return len(expired)
