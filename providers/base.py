from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from providers.sources import FeedSource

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class RawItem:
    """One unclassified feed entry as returned by a fetcher."""

    title: str
    content: str
    guid: str | None = None
    link: str | None = None
    published: str | None = None


class FeedFetchError(Exception):
    """Raised when a source cannot be retrieved or parsed."""

    def __init__(self, source: FeedSource, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class FeedFetcher(ABC):
    """Abstract base for feed retrieval adapters.

    A fetcher turns one ``FeedSource`` into a list of ``RawItem`` objects.
    Implementations must raise ``FeedFetchError`` for any transport,
    status-code or parse failure rather than returning partial data; the
    orchestrator records the failure against that source only.

    Timeouts are enforced by the caller, so ``fetch`` may simply be awaited
    inside ``asyncio.wait_for``.
    """

    @abstractmethod
    async def fetch(self, source: FeedSource) -> list[RawItem]:
        """Fetch and parse the feed behind ``source``."""
