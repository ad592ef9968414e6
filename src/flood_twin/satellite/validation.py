"""Bounding-box and request-option validation, plus cache key derivation."""

import math
from collections.abc import Mapping, Sequence
from numbers import Real
from typing import Any, NamedTuple

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import ValidationError

DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512
DEFAULT_MAX_CLOUD_COVERAGE = 30.0
MAX_OUTPUT_PIXELS = 2500


class BoundingBox(NamedTuple):
    """Geographic extent in EPSG:4326 as (min_lon, min_lat, max_lon, max_lat)."""

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @property
    def center(self) -> tuple[float, float]:
        """Return the (lon, lat) center point."""
        return ((self.min_lon + self.max_lon) / 2, (self.min_lat + self.max_lat) / 2)


class FetchOptions(BaseModel):
    """Output dimensions and cloud filter for a satellite fetch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    width: int = Field(default=DEFAULT_WIDTH, ge=1, le=MAX_OUTPUT_PIXELS)
    height: int = Field(default=DEFAULT_HEIGHT, ge=1, le=MAX_OUTPUT_PIXELS)
    max_cloud_coverage: float = Field(default=DEFAULT_MAX_CLOUD_COVERAGE, ge=0, le=100)


def _coordinate(value: Any, name: str) -> float:
    # bool is a Real subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"bbox {name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"bbox {name} must be finite, got {value!r}")
    return number


def validate_bbox(value: Any) -> BoundingBox:
    """Validate a raw [minLon, minLat, maxLon, maxLat] sequence."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValidationError("Invalid bbox. Expected [minLon, minLat, maxLon, maxLat]")
    if len(value) != 4:
        raise ValidationError(f"Invalid bbox. Expected 4 components, got {len(value)}")

    names = ("minLon", "minLat", "maxLon", "maxLat")
    min_lon, min_lat, max_lon, max_lat = (_coordinate(item, name) for item, name in zip(value, names))

    for name, lon in (("minLon", min_lon), ("maxLon", max_lon)):
        if not -180.0 <= lon <= 180.0:
            raise ValidationError(f"bbox {name} must be within [-180, 180], got {lon}")
    for name, lat in (("minLat", min_lat), ("maxLat", max_lat)):
        if not -90.0 <= lat <= 90.0:
            raise ValidationError(f"bbox {name} must be within [-90, 90], got {lat}")

    if min_lon >= max_lon:
        raise ValidationError("bbox minLon must be less than maxLon")
    if min_lat >= max_lat:
        raise ValidationError("bbox minLat must be less than maxLat")

    return BoundingBox(min_lon, min_lat, max_lon, max_lat)


def validate_options(value: FetchOptions | Mapping[str, Any] | None) -> FetchOptions:
    """Coerce request options into a FetchOptions, applying defaults."""
    if value is None:
        return FetchOptions()
    if isinstance(value, FetchOptions):
        return value
    if not isinstance(value, Mapping):
        raise ValidationError(f"options must be an object, got {type(value).__name__}")
    try:
        return FetchOptions.model_validate(dict(value))
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid options: {exc.errors()[0]['msg']}") from exc


def request_key(bbox: BoundingBox, width: int, height: int) -> str:
    """Return the stable cache key for a bbox and output size."""
    coords = ",".join(repr(float(coord)) for coord in bbox)
    return f"{coords}-{int(width)}-{int(height)}"
