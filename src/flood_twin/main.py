"""Flood Twin API - Sentinel Hub imagery and flood indicators over HTTP.

``flood_twin.startup`` is imported first so ``.env`` is loaded and logging
is configured before settings are read.
"""

import flood_twin.startup  # noqa: F401  # isort: skip

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flood_twin.config import Settings
from flood_twin.routers import root, satellite
from flood_twin.satellite.auth import TOKEN_PATH, TokenManager
from flood_twin.satellite.cache import ResultCache
from flood_twin.satellite.client import PROCESS_PATH, SentinelHubClient
from flood_twin.satellite.events import EventHooks
from flood_twin.satellite.scheduler import BackgroundTasks
from flood_twin.satellite.service import SatelliteDataService

logger = logging.getLogger(__name__)


def build_service(settings: Settings, http_client: httpx.Client, events: EventHooks | None = None) -> SatelliteDataService:
    """Wire token manager, Process API client and cache into one service."""
    events = events or EventHooks()
    token_manager = TokenManager(
        http_client,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        token_url=f"{settings.base_url}{TOKEN_PATH}",
        timeout=settings.auth_timeout_seconds,
        events=events,
    )
    client = SentinelHubClient(
        http_client,
        process_url=f"{settings.base_url}{PROCESS_PATH}",
        timeout=settings.process_timeout_seconds,
    )
    cache = ResultCache(settings.cache_max_age_seconds, events=events)
    return SatelliteDataService(token_manager, client, cache, events=events)


def _log_startup_configuration(settings: Settings) -> None:
    logger.info(
        "Startup config: sentinelHub configured=%s baseUrl=%s",
        settings.sentinel_configured,
        settings.base_url,
    )
    logger.info(
        "Startup config: cacheMaxAge=%ss tokenRenew=%ss cacheSweep=%ss backgroundTasks=%s",
        settings.cache_max_age_seconds,
        settings.token_renew_seconds,
        settings.cache_sweep_seconds,
        settings.background_tasks_enabled,
    )
    logger.info(
        "Startup config: cors=%s apiKeyRequired=%s",
        "*" if settings.cors_origins == ("*",) else f"{len(settings.cors_origins)} origins",
        settings.api_key is not None,
    )


def create_app(settings: Settings | None = None, service: SatelliteDataService | None = None) -> FastAPI:
    """Build the FastAPI application.

    When ``service`` is omitted a shared ``httpx.Client`` is created and closed
    with the application lifespan.
    """
    settings = settings or Settings.from_env()
    http_client: httpx.Client | None = None
    if service is None:
        http_client = httpx.Client()
        service = build_service(settings, http_client)

    background = BackgroundTasks(
        service.token_manager,
        service.cache,
        token_renew_seconds=settings.token_renew_seconds,
        cache_sweep_seconds=settings.cache_sweep_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Start the renewal and sweep timers; stop them and close HTTP on shutdown."""
        _log_startup_configuration(settings)
        if settings.background_tasks_enabled:
            background.start()
        try:
            yield
        finally:
            background.stop()
            if http_client is not None:
                http_client.close()

    app = FastAPI(title="Flood Twin API", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service
    app.state.background = background

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def _optional_api_key_guard(request: Request, call_next):
        expected = settings.api_key
        if expected is None:
            return await call_next(request)

        if request.method in {"POST", "PATCH", "DELETE", "PUT"}:
            provided = request.headers.get("X-API-Key", "")
            if provided != expected:
                return JSONResponse(
                    status_code=403,
                    content={
                        "detail": {
                            "code": "Forbidden",
                            "description": "Invalid or missing API key",
                        }
                    },
                )

        return await call_next(request)

    app.include_router(root.router)
    app.include_router(satellite.router)
    return app


app = create_app()
