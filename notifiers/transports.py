from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

import httpx

log = logging.getLogger(__name__)

DISCORD = "discord"
TEAMS = "teams"

# Discord expects the text under "content", Teams under "text".
_PAYLOAD_KEYS = {DISCORD: "content", TEAMS: "text"}


@dataclass(frozen=True)
class WebhookTarget:
    name: str
    url: str
    kind: str = DISCORD

    @property
    def payload_key(self) -> str:
        return _PAYLOAD_KEYS.get(self.kind, "text")


class HttpWebhookTransport:
    """Posts a plain-text message to one chat webhook over the shared client."""

    def __init__(self, client: httpx.AsyncClient, target: WebhookTarget) -> None:
        self._client = client
        self._target = target

    @property
    def name(self) -> str:
        return self._target.name

    async def deliver(self, message: str) -> None:
        resp = await self._client.post(
            self._target.url,
            json={self._target.payload_key: message},
        )
        resp.raise_for_status()
        log.debug("[%s] Webhook accepted (%d)", self.name, resp.status_code)


class SmtpDigestTransport:
    """Sends digests through an SMTP relay using STARTTLS.

    ``smtplib`` is blocking, so each send runs in a worker thread. The
    message is addressed to the sender with every recipient as Bcc.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._timeout = timeout

    def _build_message(self, recipients: list[str], subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = self._sender
        msg["Bcc"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            smtp.starttls()
            smtp.login(self._username, self._password)
            smtp.send_message(msg)

    async def send_digest(self, recipients: list[str], subject: str, body: str) -> None:
        msg = self._build_message(recipients, subject, body)
        await asyncio.to_thread(self._send, msg)
