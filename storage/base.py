from __future__ import annotations

from typing import Protocol, Sequence

from models.incident import Incident


class PersistenceSink(Protocol):
    """Durable mirror for incidents and subscribers.

    Every call is best-effort from the caller's point of view: in-memory
    state stays authoritative and failures are logged, never propagated.
    """

    async def upsert_incidents(self, incidents: Sequence[Incident]) -> None: ...

    async def upsert_subscriber(self, email: str) -> None: ...

    async def delete_subscriber(self, email: str) -> None: ...

    async def load_subscribers(self) -> set[str]: ...
