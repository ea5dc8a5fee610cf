from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime, timezone

import httpx
import pytest

from models.incident import Incident, Severity, Status
from models.snapshot import ProviderIncidents, Snapshot
from providers.base import FeedFetchError, FeedFetcher, RawItem
from providers.sources import FeedSource

SOURCE_A = FeedSource(id="a-status", provider="A", name="A Status", url="https://a.example/rss")
SOURCE_B = FeedSource(id="b-status", provider="B", name="B Status", url="https://b.example/rss")
SOURCE_A2 = FeedSource(id="a-devops", provider="A", name="A DevOps", url="https://a.example/devops")

HANG = object()


class FakeFetcher(FeedFetcher):
    """Returns canned items per source id and counts calls.

    A value may be a list of ``RawItem``, an exception to raise, or ``HANG``
    to block until cancelled.
    """

    def __init__(self, results: dict[str, object], delay: float = 0.0) -> None:
        self.results = results
        self.delay = delay
        self.calls: Counter[str] = Counter()

    async def fetch(self, source: FeedSource) -> list[RawItem]:
        self.calls[source.id] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.get(source.id, [])
        if result is HANG:
            await asyncio.Event().wait()
        if isinstance(result, Exception):
            raise result
        return list(result)


def make_incident(
    id: str,
    provider: str = "A",
    status: Status = Status.INCIDENT,
    severity: Severity = Severity.HIGH,
    title: str | None = None,
    published_at: str | None = None,
    link: str | None = None,
) -> Incident:
    return Incident(
        id=id,
        provider=provider,
        source=f"{provider} Status",
        title=title or f"Incident {id}",
        summary="",
        status=status,
        severity=severity,
        link=link,
        published_at=published_at,
    )


def make_snapshot(*incidents: Incident) -> Snapshot:
    grouped: dict[str, list[Incident]] = {}
    for incident in incidents:
        grouped.setdefault(incident.provider, []).append(incident)
    return Snapshot(
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        providers=tuple(ProviderIncidents(p, tuple(i)) for p, i in grouped.items()),
    )


@pytest.fixture
def fetch_error():
    def _make(source: FeedSource, message: str = "boom") -> FeedFetchError:
        return FeedFetchError(source, message)
    return _make


class RecordingTarget:
    """Chat webhook double that records messages, or fails on demand."""

    def __init__(self, name: str, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.messages: list[str] = []

    async def deliver(self, message: str) -> None:
        if self.fail:
            raise httpx.ConnectError("unreachable")
        self.messages.append(message)


class RecordingDigest:
    def __init__(self) -> None:
        self.sent: list[tuple[list[str], str, str]] = []

    async def send_digest(self, recipients, subject, body) -> None:
        self.sent.append((recipients, subject, body))
