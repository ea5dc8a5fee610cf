from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from core.best_effort import attempt
from core.dedup import DedupLedger
from models.snapshot import Snapshot
from notifiers.base import MAX_LISTED, Notification, Notifier, format_incident_line

log = logging.getLogger(__name__)

HEADER = "New incident updates:"


class WebhookTransport(Protocol):
    name: str

    async def deliver(self, message: str) -> None: ...


class WebhookNotifier(Notifier):
    """Posts newly observed incidents to chat webhooks.

    An incident is new when its id is absent from both the previous snapshot
    and the dedup ledger. Ids are written to the ledger before any delivery
    is attempted, so a flapping feed (present, absent, present) is announced
    once only.
    """

    def __init__(self, targets: Sequence[WebhookTransport], ledger: DedupLedger) -> None:
        self._targets = list(targets)
        self._ledger = ledger

    @property
    def enabled(self) -> bool:
        return bool(self._targets)

    def collect(self, previous: Snapshot, current: Snapshot) -> Notification | None:
        previous_ids = {i.id for i in previous.flatten()}
        new = tuple(
            i for i in current.flatten()
            if i.id and i.id not in previous_ids and i.id not in self._ledger
        )
        return Notification(new=new) if new else None

    @staticmethod
    def render(notification: Notification) -> str:
        lines = [format_incident_line(i) for i in notification.new[:MAX_LISTED]]
        return "\n".join([HEADER, *lines])

    async def deliver(self, notification: Notification) -> None:
        self._ledger.add_all(i.id for i in notification.new)
        if not self._targets:
            return

        message = self.render(notification)
        await asyncio.gather(*(
            attempt(f"Webhook {target.name}", target.deliver(message))
            for target in self._targets
        ))
        log.info(
            "Announced %d new incident(s) to %d webhook target(s)",
            len(notification.new),
            len(self._targets),
        )
