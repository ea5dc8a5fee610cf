"""Subscriber persistence in a local JSON file.

Incidents are not stored by this backend; only the subscriber list is
written, as a sorted JSON array.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Sequence

from models.incident import Incident

log = logging.getLogger(__name__)


class JsonFileSink:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._emails: set[str] | None = None
        self._lock = asyncio.Lock()

    def _read(self) -> set[str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return set()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            # Next successful write replaces the corrupt file
            log.warning("Ignoring %s: invalid JSON (%s)", self._path, exc)
            return set()
        if not isinstance(data, list):
            log.warning("Ignoring %s: expected a JSON array", self._path)
            return set()
        return {e for e in data if isinstance(e, str)}

    def _write(self, emails: set[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(sorted(emails), indent=2), encoding="utf-8")
        tmp.replace(self._path)

    async def _current(self) -> set[str]:
        if self._emails is None:
            self._emails = await asyncio.to_thread(self._read)
        return self._emails

    async def _commit(self, emails: set[str]) -> None:
        # Cached set only changes once the file holds it
        await asyncio.to_thread(self._write, emails)
        self._emails = emails

    async def load_subscribers(self) -> set[str]:
        async with self._lock:
            return set(await self._current())

    async def upsert_subscriber(self, email: str) -> None:
        async with self._lock:
            emails = await self._current()
            if email in emails:
                return
            await self._commit(emails | {email})

    async def delete_subscriber(self, email: str) -> None:
        async with self._lock:
            emails = await self._current()
            if email not in emails:
                return
            await self._commit(emails - {email})

    async def upsert_incidents(self, incidents: Sequence[Incident]) -> None:
        return None
