from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable

from models.snapshot import Snapshot

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

Refresher = Callable[[Snapshot], Awaitable[Snapshot]]


class SnapshotCache:
    """Holds the last published snapshot and gates refreshes.

    The cache is FRESH while the current snapshot is younger than
    ``ttl_seconds`` and STALE otherwise (including before the first
    successful refresh). Reads on a stale cache wait for a refresh.

    At most one refresh runs at a time: the first caller starts a task and
    every concurrent caller (stale reads and the periodic scheduler alike)
    awaits that same task. The handle is cleared when the task finishes, so
    the next refresh always starts a new cycle.

    ``refresher`` receives the previous snapshot and returns the candidate;
    the cache publishes it by swapping a single reference.
    """

    def __init__(
        self,
        refresher: Refresher,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresher = refresher
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot = Snapshot.empty()
        self._refreshed_at: float | None = None
        self._in_flight: asyncio.Task[Snapshot] | None = None

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    @property
    def updated_at(self) -> datetime | None:
        return self._snapshot.updated_at

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at > self._ttl

    @property
    def refreshing(self) -> bool:
        return self._in_flight is not None

    async def get(self) -> Snapshot:
        """Return the current snapshot, refreshing first if it is stale."""
        if self.is_stale:
            try:
                return await self.refresh()
            except Exception:
                log.exception("Refresh failed; serving previous snapshot")
        return self._snapshot

    async def refresh(self) -> Snapshot:
        """Run a refresh cycle, or join the one already in progress."""
        if self._in_flight is None:
            self._in_flight = asyncio.create_task(self._run(), name="snapshot-refresh")
        # shield: a cancelled waiter must not abort the shared cycle
        return await asyncio.shield(self._in_flight)

    async def _run(self) -> Snapshot:
        try:
            candidate = await self._refresher(self._snapshot)
            self._snapshot = candidate
            self._refreshed_at = self._clock()
            log.info(
                "Published snapshot: %d provider(s), %d error(s)",
                len(candidate.providers),
                len(candidate.errors),
            )
            return candidate
        finally:
            self._in_flight = None
