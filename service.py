from __future__ import annotations

from typing import Any

from core.cache import SnapshotCache
from core.subscribers import SubscriberStore
from models.snapshot import Snapshot


class StatusService:
    """Operations exposed to the HTTP layer.

    Wraps the snapshot cache and the subscriber store; holds no state of its
    own.
    """

    def __init__(self, cache: SnapshotCache, subscribers: SubscriberStore) -> None:
        self._cache = cache
        self._subscribers = subscribers

    async def get_snapshot(self) -> Snapshot:
        return await self._cache.get()

    async def subscribe(self, email: str | None) -> str:
        """Raises ``InvalidEmailError`` for malformed addresses."""
        return await self._subscribers.add(email)

    async def unsubscribe(self, email: str | None) -> str:
        """Raises ``InvalidEmailError`` for malformed addresses."""
        return await self._subscribers.remove(email)

    def subscriber_count(self) -> int:
        return self._subscribers.count()

    def health(self) -> dict[str, Any]:
        updated_at = self._cache.updated_at
        return {
            "status": "ok",
            "updatedAt": updated_at.isoformat() if updated_at else None,
        }
