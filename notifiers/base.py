from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from models.incident import Incident
from models.snapshot import Snapshot

MAX_LISTED = 5


@dataclass(frozen=True)
class StatusChange:
    incident: Incident
    previous_status: str


@dataclass(frozen=True)
class Notification:
    """The diff a notifier computed for one refresh cycle."""

    new: tuple[Incident, ...] = ()
    changed: tuple[StatusChange, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.new or self.changed)


class Notifier(ABC):
    """Change notifier driven by the refresh orchestrator.

    Each cycle is two-phase. ``collect`` diffs the previous snapshot against
    the candidate and must not mutate shared state, so every notifier sees
    the same pre-cycle view. ``deliver`` then sends what was collected.
    """

    @abstractmethod
    def collect(self, previous: Snapshot, current: Snapshot) -> Notification | None:
        """Return the changes worth announcing, or None if there are none."""

    @abstractmethod
    async def deliver(self, notification: Notification) -> None:
        """Send a collected notification."""


def format_incident_line(incident: Incident) -> str:
    return f"• {incident.provider}: {incident.title} ({incident.status.value}) {incident.link or ''}".rstrip()

