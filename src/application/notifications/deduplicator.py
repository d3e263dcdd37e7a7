from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 5 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60


class NotificationDeduplicator:
    """Tracks notification ids whose push has already produced visible effects.

    One instance is created by the client at start-up and shared by every
    consumer of live notifications for the session. Besides the processed-id
    map it holds the guard that allows a single live listener attachment.

    Entries older than ``window_seconds`` are evicted by :meth:`sweep`; a
    redelivery after eviction is treated as a new event.
    """

    def __init__(
        self,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._processed: dict[str, float] = {}
        self._listener_attached = False

    def __len__(self) -> int:
        return len(self._processed)

    def has_processed(self, notification_id: str) -> bool:
        return notification_id in self._processed

    def mark_processed(self, notification_id: str) -> None:
        # First-seen time wins; re-marking does not extend the window
        self._processed.setdefault(notification_id, self._clock())

    def claim(self, notification_id: str) -> bool:
        """Check and mark in one step. Returns False when already processed."""
        if notification_id in self._processed:
            return False
        self._processed[notification_id] = self._clock()
        return True

    def sweep(self) -> int:
        cutoff = self._clock() - self.window_seconds
        expired = [nid for nid, seen in self._processed.items() if seen < cutoff]
        for nid in expired:
            del self._processed[nid]
        if expired:
            logger.debug("Evicted %s processed notification ids", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._processed.clear()

    @property
    def listener_attached(self) -> bool:
        return self._listener_attached

    def try_attach_listener(self) -> bool:
        if self._listener_attached:
            return False
        self._listener_attached = True
        return True

    def release_listener(self) -> None:
        self._listener_attached = False

    async def run_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()
