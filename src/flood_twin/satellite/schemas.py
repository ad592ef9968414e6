"""Pydantic models for assembled fetch results."""

import datetime

from pydantic import Field

from flood_twin.schemas import CamelModel


class Indicators(CamelModel):
    """Environmental metrics derived from the decoded raster bands."""

    ndvi: float | None = Field(default=None, description="Mean NDVI over valid pixels")
    ndwi: float | None = Field(default=None, description="Mean NDWI over valid pixels")
    flood_risk: float | None = Field(default=None, ge=0, le=1)
    water_percentage: int | None = None
    vegetation_percentage: int | None = None
    urban_percentage: int | None = Field(
        default=None, description="Dark-area and unclassified surface share, percent; a built-up proxy"
    )
    bare_percentage: int | None = None
    cloud_coverage: float | None = Field(default=None, description="Cloudy share of the scene, percent")
    surface_temperature: float | None = Field(default=None, description="Estimated surface temperature, °C")
    flood_depth: float | None = Field(default=None, description="Estimated flood depth, metres")


class ResultMetadata(CamelModel):
    timestamp: str
    bbox: list[float]
    cloud_coverage: float = Field(description="Maximum accepted cloud coverage used as the scene filter")
    source: str


class SatelliteResult(CamelModel):
    """Data URIs for each output band plus derived indicators and metadata."""

    truecolor: str | None = None
    ndvi: str | None = None
    ndwi: str | None = None
    scl: str | None = None
    metadata: ResultMetadata
    analysis: Indicators


class HistoricalSample(CamelModel):
    date: datetime.date
    flood_risk: float
    ndvi: float
    water_extent: float
