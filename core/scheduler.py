from __future__ import annotations

import asyncio
import logging

from core.cache import SnapshotCache

log = logging.getLogger(__name__)


class Scheduler:
    """Periodic timer that keeps the snapshot warm.

    Every ``interval_seconds`` it asks the cache for a refresh. The cache's
    single-flight gate collapses a timer tick that lands during a
    read-triggered refresh into that same cycle.
    """

    def __init__(self, cache: SnapshotCache, interval_seconds: float | None = None) -> None:
        self._cache = cache
        self._interval = interval_seconds if interval_seconds is not None else cache.ttl_seconds

    async def tick(self) -> None:
        try:
            await self._cache.refresh()
        except Exception:
            log.exception("Scheduled refresh failed")

    async def run(self) -> None:
        """Refresh immediately, then once per interval, until cancelled."""
        log.info("Scheduler started (interval=%ds)", self._interval)
        while True:
            await self.tick()
            await asyncio.sleep(self._interval)
