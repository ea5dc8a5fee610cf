from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator

from models.incident import Incident


@dataclass(frozen=True)
class SourceError:
    """A feed that could not be fetched or parsed during a refresh."""

    provider: str
    source: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "provider": self.provider,
            "source": self.source,
            "message": self.message,
        }


@dataclass(frozen=True)
class ProviderIncidents:
    provider: str
    incidents: tuple[Incident, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "incidents": [i.to_dict() for i in self.incidents],
        }


@dataclass(frozen=True)
class Snapshot:
    """The complete merged view published by one refresh cycle.

    Snapshots are immutable and replaced wholesale, so a reader holding a
    reference never sees a partially merged state.
    """

    updated_at: datetime | None
    providers: tuple[ProviderIncidents, ...] = ()
    errors: tuple[SourceError, ...] = ()

    @classmethod
    def empty(cls) -> Snapshot:
        return cls(updated_at=None)

    def flatten(self) -> Iterator[Incident]:
        """Yield every incident in provider order, then merge order."""
        for group in self.providers:
            yield from group.incidents

    def by_id(self) -> dict[str, Incident]:
        return {incident.id: incident for incident in self.flatten()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "providers": [p.to_dict() for p in self.providers],
            "errors": [e.to_dict() for e in self.errors],
        }
