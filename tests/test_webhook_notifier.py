"""Tests for notifiers.webhook and the HTTP webhook transport."""

import asyncio
import json

import httpx
import pytest

from core.dedup import DedupLedger
from models.snapshot import Snapshot
from notifiers.transports import DISCORD, TEAMS, HttpWebhookTransport, WebhookTarget
from notifiers.webhook import WebhookNotifier
from tests.conftest import RecordingTarget, make_incident, make_snapshot


def _cycle(notifier: WebhookNotifier, previous: Snapshot, current: Snapshot) -> bool:
    notification = notifier.collect(previous, current)
    if notification is None:
        return False
    asyncio.run(notifier.deliver(notification))
    return True


class TestWebhookNotifier:
    def test_announces_new_incidents(self) -> None:
        target = RecordingTarget("chat")
        notifier = WebhookNotifier([target], DedupLedger())
        incident = make_incident("x", title="Outage", link="https://a.example/x")

        assert _cycle(notifier, Snapshot.empty(), make_snapshot(incident))
        assert target.messages == ["New incident updates:\n• A: Outage (incident) https://a.example/x"]

    def test_ignores_incidents_in_previous_snapshot(self) -> None:
        notifier = WebhookNotifier([RecordingTarget("chat")], DedupLedger())
        snapshot = make_snapshot(make_incident("x"))
        assert notifier.collect(snapshot, snapshot) is None

    def test_flapping_incident_notified_once(self) -> None:
        target = RecordingTarget("chat")
        notifier = WebhookNotifier([target], DedupLedger())
        present = make_snapshot(make_incident("x"))
        absent = make_snapshot(make_incident("y"))

        assert _cycle(notifier, Snapshot.empty(), present)
        _cycle(notifier, present, absent)
        assert not _cycle(notifier, absent, present)
        assert sum("Incident x" in m for m in target.messages) == 1

    def test_collect_does_not_mark_ledger(self) -> None:
        ledger = DedupLedger()
        notifier = WebhookNotifier([RecordingTarget("chat")], ledger)
        notifier.collect(Snapshot.empty(), make_snapshot(make_incident("x")))
        assert "x" not in ledger

    def test_marks_ledger_even_when_delivery_fails(self) -> None:
        ledger = DedupLedger()
        notifier = WebhookNotifier([RecordingTarget("chat", fail=True)], ledger)
        assert _cycle(notifier, Snapshot.empty(), make_snapshot(make_incident("x")))
        assert "x" in ledger

    def test_caps_summary_at_five_in_merge_order(self) -> None:
        target = RecordingTarget("chat")
        notifier = WebhookNotifier([target], DedupLedger())
        incidents = [make_incident(str(n)) for n in range(8)]

        _cycle(notifier, Snapshot.empty(), make_snapshot(*incidents))

        lines = target.messages[0].splitlines()
        assert lines[0] == "New incident updates:"
        assert [line.split(": ")[1].split(" (")[0] for line in lines[1:]] == [f"Incident {n}" for n in range(5)]

    def test_partial_delivery_failure(self) -> None:
        broken = RecordingTarget("broken", fail=True)
        healthy = RecordingTarget("healthy")
        notifier = WebhookNotifier([broken, healthy], DedupLedger())

        _cycle(notifier, Snapshot.empty(), make_snapshot(make_incident("x")))

        assert len(healthy.messages) == 1


class TestHttpWebhookTransport:
    def _post(self, target: WebhookTarget, status: int = 204):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(status)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                await HttpWebhookTransport(client, target).deliver("hello")

        asyncio.run(scenario())
        return captured

    def test_discord_payload(self) -> None:
        captured = self._post(WebhookTarget("Discord", "https://discord.example/hook", DISCORD))
        assert captured["body"] == {"content": "hello"}

    def test_teams_payload(self) -> None:
        captured = self._post(WebhookTarget("Teams", "https://teams.example/hook", TEAMS))
        assert captured["body"] == {"text": "hello"}

    def test_error_status_raises(self) -> None:
        target = WebhookTarget("Discord", "https://discord.example/hook", DISCORD)
        with pytest.raises(httpx.HTTPStatusError):
            self._post(target, status=500)
