from __future__ import annotations

import logging
import re

from core.best_effort import attempt
from storage.base import PersistenceSink

log = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class InvalidEmailError(ValueError):
    """Raised for syntactically malformed subscriber addresses."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Invalid email address: {email!r}")
        self.email = email


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


class SubscriberStore:
    """Set of digest subscribers, keyed by normalised email address.

    The in-memory set is authoritative for this process. A sink, when
    configured, mirrors each mutation; its failures are logged and do not
    undo the in-memory change. ``add`` and ``remove`` are idempotent.
    """

    def __init__(self, sink: PersistenceSink | None = None) -> None:
        self._sink = sink
        self._emails: set[str] = set()

    def _validated(self, email: str | None) -> str:
        normalized = normalize_email(email)
        if not is_valid_email(normalized):
            raise InvalidEmailError(normalized)
        return normalized

    async def load(self) -> int:
        """Seed the set from the sink; returns the number loaded."""
        if self._sink is None:
            return 0
        stored = await attempt("Subscriber load", self._sink.load_subscribers())
        loaded = {normalize_email(e) for e in stored or ()}
        valid = {e for e in loaded if is_valid_email(e)}
        if len(valid) != len(loaded):
            log.warning("Skipped %d invalid stored subscriber(s)", len(loaded) - len(valid))
        self._emails |= valid
        return len(valid)

    async def add(self, email: str | None) -> str:
        normalized = self._validated(email)
        self._emails.add(normalized)
        if self._sink is not None:
            await attempt("Subscriber upsert", self._sink.upsert_subscriber(normalized))
        return normalized

    async def remove(self, email: str | None) -> str:
        normalized = self._validated(email)
        self._emails.discard(normalized)
        if self._sink is not None:
            await attempt("Subscriber delete", self._sink.delete_subscriber(normalized))
        return normalized

    def count(self) -> int:
        return len(self._emails)

    def snapshot(self) -> frozenset[str]:
        """Point-in-time copy, safe to iterate while subscriptions change."""
        return frozenset(self._emails)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and normalize_email(email) in self._emails
