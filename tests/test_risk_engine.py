"""
Offline tests for the flood risk scorer.

Run from repo root:  pytest tests/test_risk_engine.py
"""

import pytest

from data.basins import BasinStatus, DamStatus, RiverStatus
from data.hazard_zones import FloodHazardMembership, FloodHazardZone, get_zone_details
from data.weather import Location, WeatherSeries
from risk.engine import (
    FLOOD_ZONE_RECOMMENDATIONS,
    RECOMMENDATIONS,
    TerrainOverrides,
    classify_score,
    highest_risk_zone,
    score,
)
from risk.levels import RiskLevel
from risk.regions import Region

ANKARA = Location(lat=39.956, lon=32.894, name="Ankara")
NO_TERRAIN = TerrainOverrides(soil_saturation=0.0, slope_factor=0.0, river_proximity=0.0, urbanization=0.0)


def rain(total_mm: float, temperatures=None) -> WeatherSeries:
    values = [float(total_mm)] + [0.0] * 23
    return WeatherSeries(location=ANKARA, forecast_step=24, values=values,
                         temperatures=list(temperatures or []))


def quiet_basin(**kwargs) -> BasinStatus:
    values = dict(name="Test Basin", water_level_percent=0, flood_risk=RiskLevel.LOW,
                  rainfall_24h_mm=0.0, soil_moisture=0.0)
    values.update(kwargs)
    return BasinStatus(**values)


# ---------------------------------------------------------------------------
# Score arithmetic
# ---------------------------------------------------------------------------

def test_ankara_heavy_rain_regional_defaults():
    # 60 rain + 0.3*15 soil + 0.2*10 slope + 0.3*10 river + 0.5*5 urban
    result = score(rain(120), hazard_lookup=None)
    assert result.region == Region.IC_ANADOLU
    assert result.risk_score == pytest.approx(72.0)
    assert result.risk_level == RiskLevel.EXTREME
    assert result.recommendations == RECOMMENDATIONS[RiskLevel.EXTREME]
    assert result.is_in_flood_zone is None
    assert result.flood_hazard_zones is None


def test_rainfall_bands():
    expected = {0: 0, 4.9: 0, 5: 5, 20: 20, 49: 20, 50: 40, 100: 60, 250: 60}
    for total, points in expected.items():
        result = score(rain(total), overrides=NO_TERRAIN, hazard_lookup=None)
        assert result.risk_score == pytest.approx(points), total


def test_level_boundaries():
    assert classify_score(70) == RiskLevel.EXTREME
    assert classify_score(69.9) == RiskLevel.HIGH
    assert classify_score(40) == RiskLevel.HIGH
    assert classify_score(39.9) == RiskLevel.MEDIUM
    assert classify_score(20) == RiskLevel.MEDIUM
    assert classify_score(19.9) == RiskLevel.LOW
    assert classify_score(0) == RiskLevel.LOW


def test_score_monotonic_in_rainfall():
    scores = [score(rain(t), hazard_lookup=None).risk_score for t in (0, 5, 20, 50, 100, 200)]
    assert scores == sorted(scores)


def test_score_is_not_capped():
    basin = BasinStatus(
        name="Flooded Basin", water_level_percent=90, flood_risk=RiskLevel.EXTREME,
        rainfall_24h_mm=30.0, soil_moisture=0.9, snow_depth_cm=30,
        rivers=[RiverStatus(name="Test River", current_level=9.0, normal_level=4.0, flood_level=10.0)],
        dams=[DamStatus(name="Test Dam", fill_rate_percent=95)],
    )
    hazard = FloodHazardMembership(
        is_in_flood_zone=True,
        zones=[get_zone_details("krd-50-1")],
        nearest_zone_distance_m=0,
        elevation_m=5,
        river_distance_m=100,
    )
    result = score(rain(150, temperatures=[10.0]), basin=basin, hazard=hazard)
    assert result.risk_score > 100
    assert result.risk_level == RiskLevel.EXTREME
    assert any("snow" in f for f in result.risk_factors)
    assert result.recommendations[-2:] == FLOOD_ZONE_RECOMMENDATIONS


# ---------------------------------------------------------------------------
# Basin + terrain
# ---------------------------------------------------------------------------

def test_basin_soil_moisture_wins_over_override():
    result = score(rain(0), basin=quiet_basin(soil_moisture=1.0),
                   overrides=NO_TERRAIN, hazard_lookup=None)
    assert result.risk_score == pytest.approx(15.0)
    assert "Soil is highly saturated" in result.risk_factors


def test_basin_without_soil_moisture_falls_through():
    remote = BasinStatus.from_dict({"name": "Remote", "waterLevel": 10})
    assert remote.soil_moisture is None

    # IC_ANADOLU soil default 0.3 * 15 plus slope, river and urban defaults
    expected = score(rain(0), hazard_lookup=None).risk_score
    assert score(rain(0), basin=remote, hazard_lookup=None).risk_score == pytest.approx(expected)
    assert expected == pytest.approx(12.0)

    wet = TerrainOverrides(soil_saturation=1.0, slope_factor=0.0, river_proximity=0.0, urbanization=0.0)
    assert score(rain(0), basin=remote, overrides=wet, hazard_lookup=None).risk_score == pytest.approx(15.0)


def test_basin_points():
    basin = quiet_basin(water_level_percent=65, rainfall_24h_mm=16.0)
    result = score(rain(0), basin=basin, overrides=NO_TERRAIN, hazard_lookup=None)
    assert result.risk_score == pytest.approx(15 + 10)


def test_snow_melt_needs_warm_temperatures():
    basin = quiet_basin(snow_depth_cm=40)
    cold = score(rain(0, temperatures=[-2.0, 3.0]), basin=basin, overrides=NO_TERRAIN, hazard_lookup=None)
    none = score(rain(0), basin=basin, overrides=NO_TERRAIN, hazard_lookup=None)
    warm = score(rain(0, temperatures=[-2.0, 8.0]), basin=basin, overrides=NO_TERRAIN, hazard_lookup=None)
    assert cold.risk_score == 0
    assert none.risk_score == 0
    assert warm.risk_score == pytest.approx(15.0)


# ---------------------------------------------------------------------------
# Hazard zones
# ---------------------------------------------------------------------------

def test_measured_river_distance_replaces_proximity_default():
    overrides = TerrainOverrides(soil_saturation=0.0, slope_factor=0.0, river_proximity=1.0, urbanization=0.0)
    far = FloodHazardMembership(is_in_flood_zone=False, nearest_zone_distance_m=5000,
                                elevation_m=100, river_distance_m=1500)
    assert score(rain(0), hazard=far, overrides=overrides).risk_score == 0
    assert score(rain(0), overrides=overrides, hazard_lookup=None).risk_score == pytest.approx(10.0)


def test_nearby_zone_and_low_ground():
    near = FloodHazardMembership(is_in_flood_zone=False, nearest_zone_distance_m=800,
                                 elevation_m=4, river_distance_m=300)
    result = score(rain(0), hazard=near, overrides=NO_TERRAIN)
    assert result.risk_score == pytest.approx(5 + 10 + 10)
    assert result.is_in_flood_zone is False
    assert result.flood_hazard_zones == []


def test_hazard_lookup_is_used():
    def lookup(lat, lon):
        assert (lat, lon) == (ANKARA.lat, ANKARA.lon)
        return FloodHazardMembership(is_in_flood_zone=True, zones=[get_zone_details("da-500-1")])

    result = score(rain(0), overrides=NO_TERRAIN, hazard_lookup=lookup)
    assert result.risk_score == pytest.approx(20.0)
    assert result.is_in_flood_zone is True
    assert result.recommendations == RECOMMENDATIONS[RiskLevel.MEDIUM] + FLOOD_ZONE_RECOMMENDATIONS


def test_hazard_lookup_failure_is_ignored():
    def lookup(lat, lon):
        raise TimeoutError("hazard service timed out")

    result = score(rain(120), hazard_lookup=lookup)
    assert result.risk_score == pytest.approx(72.0)
    assert result.is_in_flood_zone is None


def test_highest_risk_zone():
    low = get_zone_details("ica-500-1")
    high = get_zone_details("krd-500-1")
    extreme_a = get_zone_details("krd-100-1")
    extreme_b = get_zone_details("krd-50-1")
    assert highest_risk_zone([]) is None
    assert highest_risk_zone([low, high]) == high
    assert highest_risk_zone([low, extreme_a, extreme_b]) == extreme_a


def test_basin_level_bands_at_boundaries():
    expected = {39.9: 0, 40: 5, 59.9: 5, 60: 15, 79.9: 15, 80: 25, 100: 25}
    for level, points in expected.items():
        basin = quiet_basin(water_level_percent=level)
        result = score(rain(0), basin=basin, overrides=NO_TERRAIN, hazard_lookup=None)
        assert result.risk_score == pytest.approx(points), level


def test_critical_rivers_count_once():
    critical = RiverStatus(name="Çoruh", current_level=9.0, normal_level=4.0, flood_level=10.0)
    calm = RiverStatus(name="Calm", current_level=1.0, normal_level=1.0, flood_level=5.0)

    def points(rivers):
        return score(rain(0), basin=quiet_basin(rivers=rivers),
                     overrides=NO_TERRAIN, hazard_lookup=None).risk_score

    assert points([calm]) == 0
    assert points([critical]) == pytest.approx(15.0)
    assert points([critical, critical, critical]) == pytest.approx(15.0)


def test_full_dams_count_once_above_ninety():
    def points(*fill_rates):
        dams = [DamStatus(name=f"Dam {n}", fill_rate_percent=f) for n, f in enumerate(fill_rates)]
        return score(rain(0), basin=quiet_basin(dams=dams),
                     overrides=NO_TERRAIN, hazard_lookup=None).risk_score

    assert points(90) == 0
    assert points(90.5) == pytest.approx(10.0)
    assert points(95, 99, 100) == pytest.approx(10.0)


def test_hazard_zone_points_by_severity():
    expected = {RiskLevel.LOW: 5, RiskLevel.MEDIUM: 10, RiskLevel.HIGH: 20, RiskLevel.EXTREME: 30}
    scores = []
    for level, points in expected.items():
        zone = FloodHazardZone(id=f"z-{level.value}", name="Zone", recurrence_period=100, risk_level=level)
        hazard = FloodHazardMembership(is_in_flood_zone=True, zones=[zone])
        result = score(rain(0), hazard=hazard, overrides=NO_TERRAIN)
        assert result.risk_score == pytest.approx(points), level
        scores.append(result.risk_score)
    assert scores == sorted(scores)
