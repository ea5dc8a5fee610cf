from __future__ import annotations

import calendar
import logging
import re
from datetime import datetime, timezone
from html.parser import HTMLParser
from time import struct_time
from typing import Any

import feedparser
import httpx

from providers.base import FeedFetchError, FeedFetcher, RawItem
from providers.sources import FeedSource

DEFAULT_USER_AGENT = "watch-sys-status-bot/1.0"
_WHITESPACE_RE = re.compile(r"\s+")

log = logging.getLogger(__name__)


class _TextExtractor(HTMLParser):
    """Tiny HTML parser that keeps only the text nodes."""

    def __init__(self) -> None:
        super().__init__()
        self._buf: list[str] = []

    def handle_data(self, data: str) -> None:
        self._buf.append(data)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in ("br", "p", "li", "div"):
            self._buf.append(" ")

    @property
    def text(self) -> str:
        return _WHITESPACE_RE.sub(" ", "".join(self._buf)).strip()


def _strip_html(html: str) -> str:
    """Reduce an HTML fragment to whitespace-normalised plain text."""
    if "<" not in html:
        return _WHITESPACE_RE.sub(" ", html).strip()
    parser = _TextExtractor()
    parser.feed(html)
    parser.close()
    return parser.text


def _entry_content(entry: Any) -> str:
    summary = entry.get("summary")
    if summary:
        return summary
    content = entry.get("content") or []
    if content:
        return content[0].get("value", "")
    return ""


def _published(entry: Any) -> str | None:
    """ISO-8601 UTC when feedparser understood the date, raw text otherwise."""
    parsed: struct_time | None = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        ts = datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
        return ts.isoformat()
    return entry.get("published") or entry.get("updated") or None


def parse_feed(source: FeedSource, body: bytes | str) -> list[RawItem]:
    """Parse an RSS/Atom document into raw items.

    Raises ``FeedFetchError`` when feedparser could not make sense of the
    document at all.
    """
    feed = feedparser.parse(body)
    if feed.bozo and not feed.entries:
        reason = feed.get("bozo_exception") or "unparseable feed"
        raise FeedFetchError(source, f"Failed to parse feed: {reason}")

    items: list[RawItem] = []
    for entry in feed.entries:
        items.append(RawItem(
            title=(entry.get("title") or "").strip(),
            content=_strip_html(_entry_content(entry)),
            guid=entry.get("id") or None,
            link=entry.get("link") or None,
            published=_published(entry),
        ))
    return items


class RSSFeedFetcher(FeedFetcher):
    """Fetcher for RSS/Atom status feeds.

    Uses HTTP conditional requests (ETag / If-None-Match) per feed URL and
    re-serves the previously parsed items on ``304 Not Modified``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client = client
        self._user_agent = user_agent
        self._etags: dict[str, str] = {}
        self._last_items: dict[str, list[RawItem]] = {}

    async def fetch(self, source: FeedSource) -> list[RawItem]:
        headers = {"User-Agent": self._user_agent}
        etag = self._etags.get(source.url)
        if etag and source.url in self._last_items:
            headers["If-None-Match"] = etag

        try:
            resp = await self._client.get(source.url, headers=headers)
        except httpx.HTTPError as exc:
            log.warning("[%s] HTTP error: %s", source.name, exc)
            raise FeedFetchError(source, str(exc) or type(exc).__name__) from exc

        if resp.status_code == 304 and source.url in self._last_items:
            log.debug("[%s] Not modified", source.name)
            return list(self._last_items[source.url])

        if resp.status_code != 200:
            log.warning("[%s] Unexpected status %d", source.name, resp.status_code)
            raise FeedFetchError(source, f"Status code {resp.status_code}")

        items = parse_feed(source, resp.content)

        new_etag = resp.headers.get("etag")
        if new_etag:
            self._etags[source.url] = new_etag
            self._last_items[source.url] = items
        else:
            self._etags.pop(source.url, None)
            self._last_items.pop(source.url, None)

        return list(items)
