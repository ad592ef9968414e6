"""Root API endpoints."""

import sys
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Request

from flood_twin.schemas import AppInfo, HealthStatus, Link, RootResponse, ServiceStatus, Status

router = APIRouter(tags=["System"])


def _version(distribution: str) -> str:
    try:
        return version(distribution)
    except PackageNotFoundError:
        return "unknown"


@router.get("/")
def read_index(request: Request) -> RootResponse:
    """Return a welcome message with navigation links."""
    base = str(request.base_url).rstrip("/")
    return RootResponse(
        message="Welcome to Flood Twin API",
        links=[
            Link(href=f"{base}/api/health", rel="health", title="Health"),
            Link(href=f"{base}/api/cache/stats", rel="cache", title="Cache statistics"),
            Link(href=f"{base}/docs", rel="docs", title="API Docs"),
        ],
    )


@router.get("/api/health")
def health(request: Request) -> HealthStatus:
    """Return health status and whether Sentinel Hub credentials are configured."""
    settings = request.app.state.settings
    service = request.app.state.service
    return HealthStatus(
        status=Status.HEALTHY if settings.sentinel_configured else Status.DEGRADED,
        timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        services=ServiceStatus(
            sentinel_hub=settings.sentinel_configured,
            cache_size=len(service.cache),
        ),
    )


@router.get("/info")
def info() -> AppInfo:
    """Return application version and environment info."""
    return AppInfo(
        app_version=_version("flood-twin"),
        python_version=sys.version,
        fastapi_version=_version("fastapi"),
        httpx_version=_version("httpx"),
        rasterio_version=_version("rasterio"),
    )
