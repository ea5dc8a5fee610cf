from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from dateutil.parser import parse as parse_date

from core.best_effort import attempt
from core.classifier import classify
from core.registry import SourceRegistry
from models.incident import Incident
from models.snapshot import ProviderIncidents, Snapshot, SourceError
from notifiers.base import Notification, Notifier
from providers.base import DEFAULT_TIMEOUT_SECONDS, FeedFetchError, FeedFetcher, RawItem
from providers.sources import FeedSource
from storage.base import PersistenceSink

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 20
UNTITLED = "Untitled incident"

# Common timezone abbreviations seen in RSS pubDate values
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def incident_id(item: RawItem, source: FeedSource) -> str:
    """Identity for an entry: guid, then link, then a source composite.

    The composite can collide for distinct entries sharing a source and
    publish time (or title when undated).
    """
    return item.guid or item.link or f"{source.id}-{item.published or item.title}"


def to_incident(item: RawItem, source: FeedSource) -> Incident:
    status, severity = classify(item.title, item.content)
    return Incident(
        id=incident_id(item, source),
        provider=source.provider,
        source=source.name,
        title=item.title or UNTITLED,
        summary=item.content,
        status=status,
        severity=severity,
        link=item.link,
        published_at=item.published,
    )


def parse_published(raw: str | None) -> datetime:
    """Parse a publish time; missing or unparseable values sort as oldest."""
    if not raw:
        return _OLDEST
    try:
        dt = parse_date(raw, tzinfos=TZINFOS)
    except (ValueError, OverflowError):
        return _OLDEST
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def sort_incidents(incidents: Sequence[Incident]) -> list[Incident]:
    """Most severe first, newest first within a severity."""
    by_recency = sorted(incidents, key=lambda i: parse_published(i.published_at), reverse=True)
    return sorted(by_recency, key=lambda i: i.severity_rank)


class RefreshOrchestrator:
    """Runs one refresh cycle and returns the candidate snapshot.

    Each cycle:
    1. fetch + classify every source concurrently (settle-all)
    2. group incidents by provider, collecting per-source errors
    3. sort each provider's incidents
    4. build the candidate snapshot
    5. let every notifier diff it against the previous snapshot and deliver
    6. upsert incidents into the persistence sink
    The caller (``SnapshotCache``) publishes the result and guarantees only
    one cycle runs at a time.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        fetcher: FeedFetcher,
        notifiers: Sequence[Notifier] = (),
        sink: PersistenceSink | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._notifiers = list(notifiers)
        self._sink = sink
        self._timeout = timeout_seconds
        self._semaphore = asyncio.Semaphore(concurrency_limit)
        self._now = now

    async def _fetch_source(self, source: FeedSource) -> list[Incident]:
        async with self._semaphore:
            try:
                items = await asyncio.wait_for(self._fetcher.fetch(source), self._timeout)
            except asyncio.TimeoutError as exc:
                raise FeedFetchError(source, f"Timed out after {self._timeout:g}s") from exc
        return [to_incident(item, source) for item in items]

    async def build_snapshot(self) -> Snapshot:
        sources = self._registry.sources
        results = await asyncio.gather(
            *(self._fetch_source(s) for s in sources),
            return_exceptions=True,
        )

        grouped: dict[str, list[Incident]] = {}
        errors: list[SourceError] = []
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                message = getattr(result, "message", None) or str(result) or "Failed to load feed"
                log.warning("[%s] Feed failed: %s", source.name, message)
                errors.append(SourceError(source.provider, source.name, message))
                continue
            grouped.setdefault(source.provider, []).extend(result)

        providers = tuple(
            ProviderIncidents(provider, tuple(sort_incidents(incidents)))
            for provider, incidents in grouped.items()
        )
        return Snapshot(updated_at=self._now(), providers=providers, errors=tuple(errors))

    async def _notify(self, previous: Snapshot, candidate: Snapshot) -> None:
        pending: list[tuple[Notifier, Notification]] = []
        for notifier in self._notifiers:
            try:
                notification = notifier.collect(previous, candidate)
            except Exception:
                log.exception("%s diff failed", type(notifier).__name__)
                continue
            if notification:
                pending.append((notifier, notification))

        if pending:
            await asyncio.gather(*(
                attempt(f"{type(n).__name__} delivery", n.deliver(notification))
                for n, notification in pending
            ))

    async def __call__(self, previous: Snapshot) -> Snapshot:
        candidate = await self.build_snapshot()
        await self._notify(previous, candidate)
        if self._sink is not None:
            await attempt("Incident upsert", self._sink.upsert_incidents(list(candidate.flatten())))
        return candidate
