from providers.base import FeedFetchError, FeedFetcher, RawItem
from providers.rss_provider import RSSFeedFetcher
from providers.sources import DEFAULT_SOURCES, FeedSource

__all__ = [
    "DEFAULT_SOURCES",
    "FeedFetchError",
    "FeedFetcher",
    "FeedSource",
    "RawItem",
    "RSSFeedFetcher",
]
