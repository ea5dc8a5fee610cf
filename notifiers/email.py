from __future__ import annotations

import logging
from typing import Protocol

from core.dedup import DedupLedger
from core.subscribers import SubscriberStore
from models.snapshot import Snapshot
from notifiers.base import (
    MAX_LISTED,
    Notification,
    Notifier,
    StatusChange,
    format_incident_line,
)

log = logging.getLogger(__name__)

SUBJECT = "Cloud incident updates"


class DigestTransport(Protocol):
    async def send_digest(self, recipients: list[str], subject: str, body: str) -> None: ...


def format_change_line(change: StatusChange) -> str:
    incident = change.incident
    return (
        f"• {incident.provider}: {incident.title} "
        f"({change.previous_status} → {incident.status.value}) {incident.link or ''}"
    ).rstrip()


class EmailNotifier(Notifier):
    """Sends one digest per refresh to every subscriber as Bcc.

    Two kinds of change are reported: incidents not seen before (absent from
    the previous snapshot and from the webhook ledger) and incidents whose
    status moved since the previous snapshot.
    """

    def __init__(
        self,
        subscribers: SubscriberStore,
        ledger: DedupLedger,
        transport: DigestTransport | None,
    ) -> None:
        self._subscribers = subscribers
        self._ledger = ledger
        self._transport = transport

    def collect(self, previous: Snapshot, current: Snapshot) -> Notification | None:
        if self._transport is None or self._subscribers.count() == 0:
            return None

        before = previous.by_id()
        new = []
        changed = []
        for incident in current.flatten():
            prior = before.get(incident.id)
            if prior is None:
                if incident.id and incident.id not in self._ledger:
                    new.append(incident)
            elif prior.status != incident.status:
                changed.append(StatusChange(incident, prior.status.value))

        if not new and not changed:
            return None
        return Notification(new=tuple(new), changed=tuple(changed))

    @staticmethod
    def render(notification: Notification) -> str:
        sections: list[str] = []
        if notification.new:
            lines = [format_incident_line(i) for i in notification.new[:MAX_LISTED]]
            sections.append("\n".join(["New incidents:", *lines]))
        if notification.changed:
            lines = [format_change_line(c) for c in notification.changed[:MAX_LISTED]]
            sections.append("\n".join(["Status changes:", *lines]))
        return "\n\n".join(sections)

    async def deliver(self, notification: Notification) -> None:
        recipients = sorted(self._subscribers.snapshot())
        if self._transport is None or not recipients:
            return
        await self._transport.send_digest(recipients, SUBJECT, self.render(notification))
        log.info(
            "Emailed digest (%d new, %d changed) to %d subscriber(s)",
            len(notification.new),
            len(notification.changed),
            len(recipients),
        )
