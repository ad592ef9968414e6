import math

import pytest

from flood_twin.flood import TerrainData, calculate_flood_risk, generate_risk_zones, predict_flood_spread


@pytest.mark.parametrize(
    ("terrain", "water_level", "expected"),
    [
        (TerrainData(elevation=0.5, distance_to_river=50, soil_type="clay"), 1.0, 1.0),
        (TerrainData(elevation=2.0, distance_to_river=300, soil_type="loam"), 1.0, 0.5),
        (TerrainData(elevation=10.0, distance_to_river=2000, soil_type="rock"), 1.0, 0.0),
        (TerrainData(elevation=10.0, distance_to_river=2000, soil_type="sand"), 1.0, 0.0),
        (TerrainData(elevation=5.0, distance_to_river=200, soil_type="clay"), 1.0, 0.4),
        (TerrainData(elevation=0.0, distance_to_river=50, soil_type="sand"), 1.0, 0.8),
    ],
)
def test_calculate_flood_risk(terrain: TerrainData, water_level: float, expected: float) -> None:
    assert calculate_flood_risk(terrain, water_level) == pytest.approx(expected)


def test_terrain_defaults_and_camel_case_input() -> None:
    terrain = TerrainData.model_validate({"elevation": 3, "distanceToRiver": 80, "soilType": "sand"})

    assert terrain.distance_to_river == 80
    assert TerrainData() == TerrainData(elevation=0, distance_to_river=1000, soil_type="clay")


def test_predict_flood_spread_defaults_to_one_day() -> None:
    prediction = predict_flood_spread()

    assert prediction.time_to_reach == 24
    assert prediction.max_distance == pytest.approx(2.4)
    assert prediction.affected_area == pytest.approx(math.pi * 2.4**2)
    assert len(prediction.risk_zones) == 3


def test_risk_zones_are_concentric_and_decreasing() -> None:
    zones = generate_risk_zones(3.0)

    assert [zone.radius for zone in zones] == pytest.approx([1.0, 2.0, 3.0])
    assert [zone.risk for zone in zones] == [1.0, 0.7, 0.4]
    assert [zone.color for zone in zones] == ["#ff5252", "#ffeb3b", "#4caf50"]


def test_prediction_serialises_with_camel_case_keys() -> None:
    payload = predict_flood_spread(hours=10, spread_rate=0.3).model_dump(by_alias=True)

    assert set(payload) == {"affectedArea", "maxDistance", "timeToReach", "riskZones"}
    assert payload["maxDistance"] == pytest.approx(3.0)
