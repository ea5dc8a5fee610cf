from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FeedSource:
    """A single named feed endpoint belonging to a cloud provider.

    ``id`` seeds the fallback incident identity, so it must stay stable
    across releases.
    """

    id: str
    provider: str
    name: str
    url: str


DEFAULT_SOURCES: tuple[FeedSource, ...] = (
    FeedSource(
        id="azure-status",
        provider="Azure",
        name="Azure Status",
        url="https://rssfeed.azure.status.microsoft/en-gb/status/feed/",
    ),
    FeedSource(
        id="azure-devops",
        provider="Azure",
        name="Azure DevOps Status",
        url="https://status.dev.azure.com/_rss",
    ),
    FeedSource(
        id="aws-status",
        provider="AWS",
        name="AWS Service Health Dashboard",
        url="https://status.aws.amazon.com/rss/all.rss",
    ),
)
