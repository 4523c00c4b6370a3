"""
FastAPI application factory for the charging-point fleet dashboard.

The application lifespan builds the engine components -- fetch client,
snapshot store, health writer, refresh scheduler -- stores them on
``app.state`` for the route handlers, and runs the refresh loop as a
background task until shutdown.

CHANGELOG:
- 2026-10-17: Register snapshot and control routers (STORY-109)
- 2026-10-17: Initial creation (STORY-109)
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashboard.src.api.control import router as control_router
from dashboard.src.api.health import router as health_router
from dashboard.src.api.snapshot import router as snapshot_router
from dashboard.src.config import DashboardSettings
from dashboard.src.fetcher import FetchClient
from dashboard.src.health import HealthWriter
from dashboard.src.scheduler import RefreshScheduler
from dashboard.src.store import SnapshotStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build components and run the refresh loop.

    Startup:
        - Builds FetchClient, SnapshotStore, HealthWriter, RefreshScheduler.
        - Starts the refresh loop (first cycle immediately) unless
          ``app.state.autostart`` is false.

    Shutdown:
        - Signals the refresh loop, waits for the in-flight cycle, and
          closes the HTTP client.
    """
    settings: DashboardSettings = app.state.settings

    fetcher = FetchClient(
        settings.central_base_url,
        timeout_s=settings.request_timeout_s,
        transport=app.state.transport,
    )
    store = SnapshotStore()
    health = HealthWriter(settings.health_path) if settings.health_path else None
    scheduler = RefreshScheduler(
        fetcher=fetcher,
        publisher=store,
        interval_s=settings.refresh_interval_s,
        health=health,
    )

    app.state.fetcher = fetcher
    app.state.store = store
    app.state.scheduler = scheduler

    shutdown_event = asyncio.Event()
    loop_task: asyncio.Task[None] | None = None
    if app.state.autostart:
        loop_task = asyncio.create_task(scheduler.run(shutdown_event))

    logger.info("Dashboard API ready")
    try:
        yield
    finally:
        shutdown_event.set()
        if loop_task is not None:
            await loop_task
        await scheduler.drain()
        await fetcher.aclose()
        logger.info("Dashboard API shutting down")


def create_app(
    settings: DashboardSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    autostart: bool = True,
) -> FastAPI:
    """Build the dashboard FastAPI application.

    Args:
        settings: Configuration; loaded from the environment when omitted.
        transport: Optional httpx transport for upstream calls (tests).
        autostart: Start the periodic refresh loop in the lifespan.

    Returns:
        FastAPI: The configured application.
    """
    if settings is None:
        settings = DashboardSettings()

    app = FastAPI(
        title="CP Fleet Dashboard API",
        description="Canonical charging-point status, alerts and weather.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.transport = transport
    app.state.autostart = autostart

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type"],
    )

    app.include_router(health_router)
    app.include_router(snapshot_router)
    app.include_router(control_router)

    @app.get("/")
    async def root() -> dict:
        """Root health check endpoint.

        Returns:
            dict: JSON object with application status.
        """
        return {"status": "ok"}

    return app
