"""PostgreSQL persistence for incidents and subscribers."""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values

from models.incident import Incident

log = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS subscribers (
        email VARCHAR(255) PRIMARY KEY,
        created_at TIMESTAMP DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS incidents (
        id VARCHAR(500) PRIMARY KEY,
        provider VARCHAR(50) NOT NULL,
        source VARCHAR(100) NOT NULL,
        title TEXT NOT NULL,
        summary TEXT,
        status VARCHAR(50) NOT NULL,
        severity VARCHAR(20) NOT NULL,
        link TEXT,
        published_at TEXT,
        first_seen_at TIMESTAMP DEFAULT NOW(),
        last_updated_at TIMESTAMP DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_incidents_provider ON incidents(provider)",
    "CREATE INDEX IF NOT EXISTS idx_incidents_published_at ON incidents(published_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_incidents_severity ON incidents(severity)",
)

_UPSERT_INCIDENTS = """
    INSERT INTO incidents
        (id, provider, source, title, summary, status, severity, link, published_at)
    VALUES %s
    ON CONFLICT (id) DO UPDATE SET
        title = EXCLUDED.title,
        summary = EXCLUDED.summary,
        status = EXCLUDED.status,
        severity = EXCLUDED.severity,
        link = EXCLUDED.link,
        published_at = EXCLUDED.published_at,
        last_updated_at = NOW()
"""


def _row(incident: Incident) -> tuple:
    return (
        incident.id,
        incident.provider,
        incident.source,
        incident.title,
        incident.summary,
        incident.status.value,
        incident.severity.value,
        incident.link,
        incident.published_at,
    )


class PostgresSink:
    """Upserts incidents and subscribers into PostgreSQL.

    psycopg2 is blocking, so every operation runs in a worker thread with
    its own short-lived connection.
    """

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn

    @contextmanager
    def _cursor(self) -> Iterator[RealDictCursor]:
        """Cursor with commit on success and rollback on error."""
        conn = psycopg2.connect(self._dsn)
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._cursor() as cur:
            for statement in SCHEMA:
                cur.execute(statement)

    async def ensure_schema(self) -> None:
        await asyncio.to_thread(self._ensure_schema)
        log.info("Database schema ready")

    def _upsert_incidents(self, incidents: Sequence[Incident]) -> None:
        # ON CONFLICT cannot touch the same row twice in one statement
        unique = {i.id: i for i in incidents}
        if not unique:
            return
        with self._cursor() as cur:
            execute_values(cur, _UPSERT_INCIDENTS, [_row(i) for i in unique.values()])

    async def upsert_incidents(self, incidents: Sequence[Incident]) -> None:
        await asyncio.to_thread(self._upsert_incidents, list(incidents))

    def _execute(self, sql: str, params: tuple) -> None:
        with self._cursor() as cur:
            cur.execute(sql, params)

    async def upsert_subscriber(self, email: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO subscribers (email) VALUES (%s) ON CONFLICT (email) DO NOTHING",
            (email,),
        )

    async def delete_subscriber(self, email: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "DELETE FROM subscribers WHERE email = %s",
            (email,),
        )

    def _load_subscribers(self) -> set[str]:
        with self._cursor() as cur:
            cur.execute("SELECT email FROM subscribers")
            return {row["email"] for row in cur.fetchall()}

    async def load_subscribers(self) -> set[str]:
        return await asyncio.to_thread(self._load_subscribers)
