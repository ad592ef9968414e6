"""Rule-based flood risk scoring and spread prediction."""

import math
from typing import Literal

from pydantic import Field

from flood_twin.schemas import CamelModel

RISK_ZONE_COLORS = ("#ff5252", "#ffeb3b", "#4caf50")
DEFAULT_SPREAD_RATE_KM_PER_HOUR = 0.1


class TerrainData(CamelModel):
    elevation: float = Field(default=0.0, description="Terrain elevation, metres")
    distance_to_river: float = Field(default=1000.0, ge=0, description="Distance to nearest river, metres")
    soil_type: Literal["clay", "sand", "loam", "rock"] = "clay"


class RiskZone(CamelModel):
    radius: float
    risk: float
    color: str


class FloodPrediction(CamelModel):
    affected_area: float = Field(description="Flooded area, square kilometres")
    max_distance: float = Field(description="Spread radius, kilometres")
    time_to_reach: float = Field(description="Prediction horizon, hours")
    risk_zones: list[RiskZone]


def calculate_flood_risk(terrain: TerrainData, water_level: float) -> float:
    """Score flood risk in [0, 1] from elevation, river proximity and soil."""
    risk = 0.0

    if terrain.elevation < water_level:
        risk += 0.5
    elif terrain.elevation < water_level + 2:
        risk += 0.3

    if terrain.distance_to_river < 100:
        risk += 0.4
    elif terrain.distance_to_river < 500:
        risk += 0.2

    # clay drains poorly, sand absorbs
    if terrain.soil_type == "clay":
        risk += 0.2
    elif terrain.soil_type == "sand":
        risk -= 0.1

    return min(1.0, max(0.0, round(risk, 3)))


def generate_risk_zones(max_distance: float) -> list[RiskZone]:
    return [
        RiskZone(radius=(index + 1) * (max_distance / 3), risk=round(1 - index * 0.3, 1), color=color)
        for index, color in enumerate(RISK_ZONE_COLORS)
    ]


def predict_flood_spread(hours: float = 24, spread_rate: float = DEFAULT_SPREAD_RATE_KM_PER_HOUR) -> FloodPrediction:
    """Predict a circular spread from the water source at a constant rate."""
    max_distance = spread_rate * hours
    return FloodPrediction(
        affected_area=math.pi * max_distance**2,
        max_distance=max_distance,
        time_to_reach=hours,
        risk_zones=generate_risk_zones(max_distance),
    )
