"""Satellite data, flood analysis, history and cache endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from pydantic import Field

from flood_twin.flood import FloodPrediction, TerrainData, calculate_flood_risk, predict_flood_spread
from flood_twin.routers.errors import upstream_error
from flood_twin.satellite.errors import SatelliteDataError
from flood_twin.satellite.schemas import HistoricalSample, Indicators, SatelliteResult
from flood_twin.satellite.service import SatelliteDataService
from flood_twin.satellite.validation import FetchOptions
from flood_twin.schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Satellite"])

# Placeholder terrain for areas without survey data
DEFAULT_TERRAIN = TerrainData(elevation=5.0, distance_to_river=200.0, soil_type="clay")
EVACUATION_RISK_THRESHOLD = 0.7


class SatelliteDataRequest(CamelModel):
    bbox: list[float] = Field(..., min_length=4, max_length=4, description="Bounding box [minLon, minLat, maxLon, maxLat]")
    options: FetchOptions | None = None


class SatelliteDataResponse(CamelModel):
    success: bool = True
    data: SatelliteResult
    timestamp: str


class FloodAnalysisRequest(CamelModel):
    bbox: list[float] = Field(..., min_length=4, max_length=4, description="Bounding box [minLon, minLat, maxLon, maxLat]")
    water_level: float = Field(default=1.0, description="Water level above datum, metres")
    terrain: TerrainData | None = None


class FloodAnalysis(CamelModel):
    current_risk: float
    prediction: FloodPrediction
    satellite_analysis: Indicators
    recommended_evacuation: bool


class FloodAnalysisResponse(CamelModel):
    success: bool = True
    data: FloodAnalysis


class Location(CamelModel):
    lon: float
    lat: float


class HistoricalResponse(CamelModel):
    success: bool = True
    data: list[HistoricalSample]
    location: Location
    source: Literal["simulated"] = "simulated"


class CacheClearResponse(CamelModel):
    success: bool = True
    message: str
    size: int


class CacheStatsResponse(CamelModel):
    size: int
    keys: list[str]
    oldest_entry_age_seconds: float | None


def get_service(request: Request) -> SatelliteDataService:
    return request.app.state.service


ServiceDep = Annotated[SatelliteDataService, Depends(get_service)]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@router.post("/satellite-data", response_model=SatelliteDataResponse)
def satellite_data(payload: SatelliteDataRequest, service: ServiceDep) -> SatelliteDataResponse:
    """Fetch imagery, indicators and metadata for a bounding box."""
    logger.info("Processing request for bbox %s", payload.bbox)
    try:
        result = service.fetch_data(payload.bbox, payload.options)
    except SatelliteDataError as exc:
        logger.error("Failed to fetch satellite data: %s", exc)
        raise upstream_error(exc) from exc
    return SatelliteDataResponse(data=result, timestamp=_now_iso())


@router.post("/flood-analysis", response_model=FloodAnalysisResponse)
def flood_analysis(payload: FloodAnalysisRequest, service: ServiceDep) -> FloodAnalysisResponse:
    """Combine satellite indicators with the rule-based flood model."""
    try:
        result = service.fetch_data(payload.bbox)
    except SatelliteDataError as exc:
        logger.error("Flood analysis failed: %s", exc)
        raise upstream_error(exc) from exc

    risk = calculate_flood_risk(payload.terrain or DEFAULT_TERRAIN, payload.water_level)
    return FloodAnalysisResponse(
        data=FloodAnalysis(
            current_risk=risk,
            prediction=predict_flood_spread(hours=24),
            satellite_analysis=result.analysis,
            recommended_evacuation=risk > EVACUATION_RISK_THRESHOLD,
        )
    )


@router.get("/historical/{lon}/{lat}", response_model=HistoricalResponse)
def historical(lon: float, lat: float, service: ServiceDep, days: int = Query(default=30)) -> HistoricalResponse:
    """Return a daily series of flood risk, NDVI and water extent around a point."""
    try:
        samples = service.historical_series(lon, lat, days)
    except SatelliteDataError as exc:
        raise upstream_error(exc) from exc
    return HistoricalResponse(data=samples, location=Location(lon=lon, lat=lat))


@router.post("/cache/clear", response_model=CacheClearResponse)
def clear_cache(service: ServiceDep) -> CacheClearResponse:
    """Empty the result cache."""
    service.clear_cache()
    return CacheClearResponse(message="Cache cleared", size=len(service.cache))


@router.get("/cache/stats", response_model=CacheStatsResponse)
def cache_stats(service: ServiceDep) -> CacheStatsResponse:
    """Return cache size, keys and the age of the oldest entry."""
    stats = service.cache_stats()
    return CacheStatsResponse(
        size=stats.size,
        keys=stats.keys,
        oldest_entry_age_seconds=stats.oldest_entry_age_seconds,
    )
