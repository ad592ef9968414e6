"""Environmental indicators computed from the decoded raster bands."""

import math
from collections.abc import Mapping

import numpy as np
from rasterio.errors import RasterioError
from rasterio.io import MemoryFile

from .errors import MalformedResponseError
from .schemas import Indicators
from .validation import BoundingBox

# Sentinel-2 scene classification (SCL) classes
SCL_NO_DATA = 0
SCL_VEGETATION = 4
SCL_NOT_VEGETATED = 5
SCL_WATER = 6
SCL_CLOUD_CLASSES = (3, 8, 9, 10)
# dark area and unclassified pixels stand in for built-up surfaces
SCL_URBAN_PROXY_CLASSES = (2, 7)
# saturated (1) and snow (11) pixels say nothing about land cover
SCL_LAND_COVER_CLASSES = (SCL_VEGETATION, SCL_NOT_VEGETATED, SCL_WATER, *SCL_URBAN_PROXY_CLASSES)

VEGETATION_NDVI_THRESHOLD = 0.3
WATER_NDWI_THRESHOLD = 0.0


def read_band(data: bytes | None, name: str) -> np.ndarray | None:
    """Read the first band of an in-memory raster as float64 with NaN for masked pixels.

    Returns None for an absent part and raises MalformedResponseError for a
    part that is present but cannot be decoded.
    """
    if data is None:
        return None
    try:
        with MemoryFile(data) as memfile, memfile.open() as dataset:
            band = dataset.read(1, masked=True)
    except RasterioError as exc:
        raise MalformedResponseError(f"Sentinel Hub returned an undecodable {name} raster") from exc
    return np.ma.filled(band.astype("float64"), np.nan)


def _finite_mean(values: np.ndarray | None) -> float | None:
    if values is None:
        return None
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return None
    return float(finite.mean())


def _percentages(fractions: dict[str, float]) -> dict[str, int]:
    """Round fractions (summing to 1) to integer percentages summing to 100."""
    raw = {key: value * 100 for key, value in fractions.items()}
    floors = {key: math.floor(value) for key, value in raw.items()}
    shortfall = max(0, 100 - sum(floors.values()))
    by_remainder = sorted(raw, key=lambda key: raw[key] - floors[key], reverse=True)
    for key in by_remainder[:shortfall]:
        floors[key] += 1
    return floors


def _land_cover_from_scl(scl: np.ndarray) -> tuple[dict[str, float] | None, float | None]:
    classes = scl[np.isfinite(scl)].astype(np.int64)
    observed = classes[classes != SCL_NO_DATA]
    if observed.size == 0:
        return None, None

    cloudy = np.isin(observed, SCL_CLOUD_CLASSES)
    cloud_coverage = round(float(cloudy.mean()) * 100, 1)

    valid = observed[np.isin(observed, SCL_LAND_COVER_CLASSES)]
    if valid.size == 0:
        return None, cloud_coverage

    water = float((valid == SCL_WATER).mean())
    vegetation = float((valid == SCL_VEGETATION).mean())
    bare = float((valid == SCL_NOT_VEGETATED).mean())
    urban = float(np.isin(valid, SCL_URBAN_PROXY_CLASSES).mean())
    return {"water": water, "vegetation": vegetation, "urban": urban, "bare": bare}, cloud_coverage


def _land_cover_from_indices(ndvi: np.ndarray, ndwi: np.ndarray) -> dict[str, float] | None:
    if ndvi.shape != ndwi.shape:
        return None
    valid = np.isfinite(ndvi) & np.isfinite(ndwi)
    if not valid.any():
        return None

    ndvi_valid = ndvi[valid]
    ndwi_valid = ndwi[valid]
    is_water = ndwi_valid > WATER_NDWI_THRESHOLD
    water = float(is_water.mean())
    vegetation = float(((ndvi_valid > VEGETATION_NDVI_THRESHOLD) & ~is_water).mean())
    remainder = max(0.0, 1.0 - water - vegetation)
    return {"water": water, "vegetation": vegetation, "urban": remainder * 0.7, "bare": remainder * 0.3}


def estimate_flood_risk(water_fraction: float | None, ndwi: float | None) -> float | None:
    if water_fraction is None and ndwi is None:
        return None
    risk = (water_fraction or 0.0) + 0.5 * max(ndwi or 0.0, 0.0)
    return round(min(1.0, max(0.0, risk)), 2)


def estimate_surface_temperature(latitude: float, ndvi: float | None) -> float | None:
    """Latitude baseline cooled by vegetation cover, in °C."""
    if ndvi is None:
        return None
    return round(35 - abs(latitude) * 0.5 - ndvi * 5, 1)


def estimate_flood_depth(flood_risk: float | None) -> float | None:
    """Map flood risk onto depth bands of 0-0.5 m, 0.5-1.5 m and 1.5-3.5 m."""
    if flood_risk is None:
        return None
    if flood_risk > 0.7:
        depth = 1.5 + 2.0 * (flood_risk - 0.7) / 0.3
    elif flood_risk > 0.4:
        depth = 0.5 + 1.0 * (flood_risk - 0.4) / 0.3
    else:
        depth = 0.5 * flood_risk / 0.4
    return round(depth, 2)


def derive_indicators(parts: Mapping[str, bytes], bbox: BoundingBox) -> Indicators:
    """Compute indicators from the ndvi, ndwi and scl parts of a fetch.

    Missing bands leave the dependent indicators unset; a band that is
    present but undecodable raises MalformedResponseError.
    """
    ndvi_band = read_band(parts.get("ndvi"), "ndvi")
    ndwi_band = read_band(parts.get("ndwi"), "ndwi")
    scl_band = read_band(parts.get("scl"), "scl")

    ndvi = _finite_mean(ndvi_band)
    ndwi = _finite_mean(ndwi_band)

    land_cover: dict[str, float] | None = None
    cloud_coverage: float | None = None
    if scl_band is not None:
        land_cover, cloud_coverage = _land_cover_from_scl(scl_band)
    if land_cover is None and ndvi_band is not None and ndwi_band is not None:
        land_cover = _land_cover_from_indices(ndvi_band, ndwi_band)

    percentages = _percentages(land_cover) if land_cover is not None else {}
    water_fraction = land_cover["water"] if land_cover is not None else None
    flood_risk = estimate_flood_risk(water_fraction, ndwi)
    _, center_lat = bbox.center

    return Indicators(
        ndvi=None if ndvi is None else round(ndvi, 3),
        ndwi=None if ndwi is None else round(ndwi, 3),
        flood_risk=flood_risk,
        water_percentage=percentages.get("water"),
        vegetation_percentage=percentages.get("vegetation"),
        urban_percentage=percentages.get("urban"),
        bare_percentage=percentages.get("bare"),
        cloud_coverage=cloud_coverage,
        surface_temperature=estimate_surface_temperature(center_lat, ndvi),
        flood_depth=estimate_flood_depth(flood_risk),
    )
