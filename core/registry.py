from __future__ import annotations

from typing import Iterable

from providers.sources import FeedSource


class SourceRegistry:
    """Central registry of feed sources.

    Adding a feed requires only calling ``register()``; the orchestrator
    iterates sources in registration order, which is also the order incidents
    are appended within a provider.
    """

    def __init__(self, sources: Iterable[FeedSource] = ()) -> None:
        self._sources: list[FeedSource] = []
        for source in sources:
            self.register(source)

    def register(self, source: FeedSource) -> None:
        if any(s.id == source.id for s in self._sources):
            raise ValueError(f"Duplicate feed source id: {source.id}")
        self._sources.append(source)

    @property
    def sources(self) -> list[FeedSource]:
        return list(self._sources)

    @property
    def providers(self) -> list[str]:
        """Distinct provider names, in first-registration order."""
        return list(dict.fromkeys(s.provider for s in self._sources))

    def __len__(self) -> int:
        return len(self._sources)
