"""Pydantic response models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Status(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


class ServiceStatus(CamelModel):
    sentinel_hub: bool
    cache_size: int


class HealthStatus(CamelModel):
    """Health check response."""

    status: Status
    timestamp: str
    services: ServiceStatus


class Link(BaseModel):
    """Hypermedia link."""

    href: str
    rel: str
    title: str


class RootResponse(BaseModel):
    """Root endpoint response with navigation links."""

    message: str
    links: list[Link]


class AppInfo(BaseModel):
    """Application version and environment info."""

    app_version: str
    python_version: str
    fastapi_version: str
    httpx_version: str
    rasterio_version: str
