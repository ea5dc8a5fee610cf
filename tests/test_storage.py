"""Tests for storage backends."""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest

from core.subscribers import SubscriberStore
from models.incident import Severity, Status
from storage.json_file import JsonFileSink
from storage.postgres import PostgresSink
from tests.conftest import make_incident


class TestJsonFileSink:
    def test_missing_file_loads_empty(self, tmp_path) -> None:
        sink = JsonFileSink(tmp_path / "subscribers.json")
        assert asyncio.run(sink.load_subscribers()) == set()

    def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "subscribers.json"

        async def scenario():
            sink = JsonFileSink(path)
            await sink.upsert_subscriber("b@x.com")
            await sink.upsert_subscriber("a@x.com")
            await sink.delete_subscriber("b@x.com")
            await sink.delete_subscriber("never@x.com")

        asyncio.run(scenario())
        assert json.loads(path.read_text()) == ["a@x.com"]
        assert asyncio.run(JsonFileSink(path).load_subscribers()) == {"a@x.com"}

    def test_ignores_non_list(self, tmp_path) -> None:
        path = tmp_path / "subscribers.json"
        path.write_text('{"email": "a@x.com"}')
        assert asyncio.run(JsonFileSink(path).load_subscribers()) == set()

    def test_ignores_corrupt_file_and_overwrites_it(self, tmp_path) -> None:
        path = tmp_path / "subscribers.json"
        path.write_text("{not json")

        async def scenario():
            store = SubscriberStore(sink=JsonFileSink(path))
            loaded = await store.load()
            await store.add("a@b.com")
            return loaded

        assert asyncio.run(scenario()) == 0
        assert json.loads(path.read_text()) == ["a@b.com"]

    def test_retry_after_failed_write_persists(self, tmp_path) -> None:
        path = tmp_path / "subscribers.json"
        sink = JsonFileSink(path)
        store = SubscriberStore(sink=sink)

        async def scenario():
            with patch.object(sink, "_write", side_effect=OSError("disk full")):
                await store.add("a@b.com")
            await store.add("a@b.com")

        asyncio.run(scenario())
        assert json.loads(path.read_text()) == ["a@b.com"]

    def test_failed_delete_can_be_retried(self, tmp_path) -> None:
        path = tmp_path / "subscribers.json"
        sink = JsonFileSink(path)

        async def scenario():
            await sink.upsert_subscriber("a@b.com")
            with patch.object(sink, "_write", side_effect=OSError("disk full")):
                with pytest.raises(OSError):
                    await sink.delete_subscriber("a@b.com")
            assert await sink.load_subscribers() == {"a@b.com"}
            await sink.delete_subscriber("a@b.com")

        asyncio.run(scenario())
        assert json.loads(path.read_text()) == []


class TestPostgresSink:
    @patch("storage.postgres.execute_values")
    @patch("storage.postgres.psycopg2.connect")
    def test_upserts_unique_incidents(self, mock_connect, mock_execute_values) -> None:
        conn = MagicMock()
        mock_connect.return_value = conn
        incident = make_incident("x", status=Status.RESOLVED, severity=Severity.LOW)

        asyncio.run(PostgresSink("postgres://db").upsert_incidents([incident, incident]))

        [_, sql, rows] = mock_execute_values.call_args.args
        assert "ON CONFLICT (id) DO UPDATE" in sql
        assert rows == [("x", "A", "A Status", "Incident x", "", "resolved", "low", None, None)]
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    @patch("storage.postgres.psycopg2.connect")
    def test_skips_empty_upsert(self, mock_connect) -> None:
        asyncio.run(PostgresSink("postgres://db").upsert_incidents([]))
        mock_connect.assert_not_called()

    @patch("storage.postgres.psycopg2.connect")
    def test_rolls_back_on_error(self, mock_connect) -> None:
        conn = MagicMock()
        mock_connect.return_value = conn
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = RuntimeError("syntax")

        with pytest.raises(RuntimeError):
            asyncio.run(PostgresSink("postgres://db").upsert_subscriber("a@b.com"))

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()

    @patch("storage.postgres.psycopg2.connect")
    def test_loads_subscribers(self, mock_connect) -> None:
        conn = MagicMock()
        mock_connect.return_value = conn
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [{"email": "a@b.com"}]

        assert asyncio.run(PostgresSink("postgres://db").load_subscribers()) == {"a@b.com"}

    @patch("storage.postgres.psycopg2.connect")
    def test_ensure_schema_creates_tables_and_indexes(self, mock_connect) -> None:
        conn = MagicMock()
        mock_connect.return_value = conn
        cursor = conn.cursor.return_value.__enter__.return_value

        asyncio.run(PostgresSink("postgres://db").ensure_schema())

        executed = " ".join(c.args[0] for c in cursor.execute.call_args_list)
        assert "CREATE TABLE IF NOT EXISTS subscribers" in executed
        assert "CREATE TABLE IF NOT EXISTS incidents" in executed
        assert "idx_incidents_published_at ON incidents(published_at DESC)" in executed
        conn.commit.assert_called_once()
