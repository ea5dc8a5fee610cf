"""Cloud status aggregator -- entry point.

Assembles the refresh pipeline:

    Scheduler (timer) / stale reads
        -> SnapshotCache (single-flight gate)
        -> RefreshOrchestrator
            -> RSSFeedFetcher (one task per feed, settle-all)
            -> classifier, merge, sort
            -> WebhookNotifier / EmailNotifier
            -> persistence sink
        -> publish

A shared httpx.AsyncClient is injected into the fetcher and the webhook
transports. The FastAPI app serves the snapshot and subscription endpoints.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import Settings
from core.cache import SnapshotCache
from core.dedup import DedupLedger
from core.orchestrator import RefreshOrchestrator
from core.registry import SourceRegistry
from core.scheduler import Scheduler
from core.subscribers import SubscriberStore
from notifiers.base import Notifier
from notifiers.email import EmailNotifier
from notifiers.transports import (
    DISCORD,
    TEAMS,
    HttpWebhookTransport,
    SmtpDigestTransport,
    WebhookTarget,
)
from notifiers.webhook import WebhookNotifier
from providers.rss_provider import RSSFeedFetcher
from providers.sources import DEFAULT_SOURCES
from service import StatusService
from storage.base import PersistenceSink
from storage.json_file import JsonFileSink
from storage.postgres import PostgresSink

log = logging.getLogger(__name__)


@dataclass
class Components:
    service: StatusService
    cache: SnapshotCache
    subscribers: SubscriberStore
    scheduler: Scheduler
    sink: PersistenceSink | None


def build_sink(settings: Settings) -> PersistenceSink | None:
    if settings.database_url:
        return PostgresSink(settings.database_url)
    if settings.subscribers_file:
        return JsonFileSink(settings.subscribers_file)
    return None


def build_webhook_targets(settings: Settings) -> list[WebhookTarget]:
    targets = []
    if settings.discord_webhook_url:
        targets.append(WebhookTarget("Discord", settings.discord_webhook_url, DISCORD))
    if settings.teams_webhook_url:
        targets.append(WebhookTarget("Teams", settings.teams_webhook_url, TEAMS))
    return targets


def build_components(settings: Settings, client: httpx.AsyncClient) -> Components:
    sink = build_sink(settings)
    subscribers = SubscriberStore(sink=sink)
    ledger = DedupLedger(capacity=settings.dedup_capacity)

    notifiers: list[Notifier] = []
    if settings.enable_notifications:
        transports = [
            HttpWebhookTransport(client, target)
            for target in build_webhook_targets(settings)
        ]
        notifiers.append(WebhookNotifier(transports, ledger))

    if settings.email_configured:
        digest = SmtpDigestTransport(
            host=settings.email_smtp_host,
            port=settings.email_smtp_port,
            username=settings.email_smtp_user,
            password=settings.email_smtp_pass,
            sender=settings.email_sender,
        )
        notifiers.append(EmailNotifier(subscribers, ledger, digest))

    orchestrator = RefreshOrchestrator(
        registry=SourceRegistry(DEFAULT_SOURCES),
        fetcher=RSSFeedFetcher(client, user_agent=settings.user_agent),
        notifiers=notifiers,
        sink=sink,
        timeout_seconds=settings.fetch_timeout_seconds,
        concurrency_limit=settings.fetch_concurrency,
    )
    cache = SnapshotCache(orchestrator, ttl_seconds=settings.cache_ttl_seconds)

    return Components(
        service=StatusService(cache, subscribers),
        cache=cache,
        subscribers=subscribers,
        scheduler=Scheduler(cache),
        sink=sink,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(timeout=settings.fetch_timeout_seconds) as client:
            components = build_components(settings, client)
            app.state.service = components.service

            if isinstance(components.sink, PostgresSink):
                try:
                    await components.sink.ensure_schema()
                except Exception:
                    log.exception("Schema setup failed; continuing without durable writes")

            loaded = await components.subscribers.load()
            log.info("Loaded %d subscriber(s)", loaded)

            timer = asyncio.create_task(components.scheduler.run(), name="scheduler")
            try:
                yield
            finally:
                timer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await timer
                log.info("Shut down")

    app = FastAPI(title="Cloud Status Aggregator", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
