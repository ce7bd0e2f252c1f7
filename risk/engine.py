"""
Flood risk engine.

Blends forecast rainfall, basin status, hazard-zone membership and terrain
defaults into an additive 0-100+ score, a risk level, the list of factors
that contributed, and recommendations.

Model (every factor adds points and, when it fires, a factor line):

  rainfall total   ≥5 / ≥20 / ≥50 / ≥100 mm        +5 / +20 / +40 / +60
  basin level      ≥40 / ≥60 / ≥80 %                +5 / +15 / +25
  critical rivers  any                              +15
  full dams        any dam > 90 %                   +10
  basin rain 24h   >8 / >15 / >25 mm                +5 / +10 / +15
  snow melt        snow > 20 cm and temp > 5 °C     +15
  hazard zone      LOW / MEDIUM / HIGH / EXTREME    +5 / +10 / +20 / +30
                   (else zone within 1 km           +5)
  river distance   < 500 m                          +10
  elevation        < 10 m                           +10
  soil saturation  × 15
  slope factor     × 10
  river proximity  × 10   (only without a measured river distance)
  urbanization     × 5

  score ≥ 70 → EXTREME,  ≥ 40 → HIGH,  ≥ 20 → MEDIUM,  else LOW

The score is not capped at 100.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from data.basins import BasinStatus
from data.hazard_zones import (
    FloodHazardMembership,
    FloodHazardZone,
    check_flood_hazard_zones,
    hazard_risk_description,
)
from data.weather import WeatherSeries
from risk.levels import RiskLevel
from risk.regions import Region, default_slope_factor, default_soil_saturation, estimate_region

logger = logging.getLogger(__name__)

HazardLookup = Callable[[float, float], FloodHazardMembership]


@dataclass(frozen=True)
class TerrainOverrides:
    soil_saturation: float | None = None   # 0-1, 1 = fully saturated
    slope_factor: float | None = None      # 0-1, 1 = very steep
    river_proximity: float | None = None   # 0-1, 1 = right next to a river
    urbanization: float | None = None      # 0-1, 1 = fully built up


DEFAULT_RIVER_PROXIMITY = 0.3
DEFAULT_URBANIZATION = 0.5


@dataclass
class FloodRiskAssessment:
    risk_level: RiskLevel
    risk_score: float
    risk_factors: list[str]
    recommendations: list[str]
    region: Region = Region.DEFAULT
    flood_hazard_zones: list[FloodHazardZone] | None = None
    is_in_flood_zone: bool | None = None

    def to_dict(self) -> dict:
        return {
            "riskLevel": self.risk_level.value,
            "riskScore": self.risk_score,
            "riskFactors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "region": self.region.value,
            "floodHazardZones": (
                [z.to_dict() for z in self.flood_hazard_zones]
                if self.flood_hazard_zones is not None else None
            ),
            "isInFloodZone": self.is_in_flood_zone,
        }


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

# (min total mm, points, label), most severe first
RAINFALL_THRESHOLDS = [
    (100, 60, "very high"),
    (50, 40, "high"),
    (20, 20, "moderate"),
    (5, 5, "low"),
]

# (min water level %, points, label)
BASIN_LEVEL_THRESHOLDS = [
    (80, 25, "very high"),
    (60, 15, "high"),
    (40, 5, "moderate"),
]

# (rainfall must exceed mm, points, label)
BASIN_RAINFALL_THRESHOLDS = [
    (25, 15, "very high"),
    (15, 10, "high"),
    (8, 5, "moderate"),
]

HAZARD_ZONE_POINTS = {
    RiskLevel.EXTREME: 30,
    RiskLevel.HIGH: 20,
    RiskLevel.MEDIUM: 10,
    RiskLevel.LOW: 5,
}

LEVEL_THRESHOLDS = [
    (70, RiskLevel.EXTREME),
    (40, RiskLevel.HIGH),
    (20, RiskLevel.MEDIUM),
]

DAM_FULL_PERCENT = 90
SNOW_DEPTH_CM = 20
SNOW_MELT_TEMP_C = 5
NEAR_ZONE_M = 1000
NEAR_RIVER_M = 500
LOW_ELEVATION_M = 10


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

RECOMMENDATIONS = {
    RiskLevel.EXTREME: [
        "Prepare your emergency kit and follow official warnings",
        "Follow evacuation instructions and move to higher ground",
        "Stay away from floodwater: even 15 cm of moving water can knock a person down",
        "Avoid driving: 30 cm of water can sweep a car away",
    ],
    RiskLevel.HIGH: [
        "Review your emergency plan and be ready to act",
        "Move valuables to higher places",
        "Follow official warnings regularly",
        "Stay away from stream beds and water channels",
    ],
    RiskLevel.MEDIUM: [
        "Check weather forecasts regularly",
        "Remember that basements may flood",
        "Make sure drainage channels are not blocked",
    ],
    RiskLevel.LOW: [
        "Take normal precautions and keep an eye on the weather",
    ],
}

FLOOD_ZONE_RECOMMENDATIONS = [
    "If you live in a flood hazard zone, consider flood insurance",
    "Learn the flood hazard maps and evacuation routes for your area",
]


def recommendations_for(level: RiskLevel, in_flood_zone: bool = False) -> list[str]:
    items = list(RECOMMENDATIONS[level])
    if in_flood_zone:
        items.extend(FLOOD_ZONE_RECOMMENDATIONS)
    return items


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def classify_score(score: float) -> RiskLevel:
    for min_score, level in LEVEL_THRESHOLDS:
        if score >= min_score:
            return level
    return RiskLevel.LOW


def highest_risk_zone(zones: list[FloodHazardZone]) -> FloodHazardZone | None:
    """Most severe zone; the first one listed wins a tie."""
    highest = None
    for zone in zones:
        if highest is None or zone.risk_level.rank > highest.risk_level.rank:
            highest = zone
    return highest


def _rainfall_points(series: WeatherSeries, factors: list[str]) -> float:
    total = series.total_precipitation
    for min_mm, points, label in RAINFALL_THRESHOLDS:
        if total >= min_mm:
            factors.append(
                f"{total:.1f}mm of rain expected over the next {series.forecast_step} hours ({label})"
            )
            return points
    return 0


def _basin_points(basin: BasinStatus, series: WeatherSeries, factors: list[str]) -> float:
    points = 0

    for min_level, level_points, label in BASIN_LEVEL_THRESHOLDS:
        if basin.water_level_percent >= min_level:
            points += level_points
            factors.append(f"{basin.name} water level {label} ({basin.water_level_percent:.1f}%)")
            break

    critical_rivers = [r for r in basin.rivers if r.is_critical]
    if critical_rivers:
        points += 15
        names = ", ".join(r.name for r in critical_rivers)
        factors.append(f"{len(critical_rivers)} river(s) close to critical level ({names})")

    full_dams = [d for d in basin.dams if d.fill_rate_percent > DAM_FULL_PERCENT]
    if full_dams:
        points += 10
        names = ", ".join(d.name for d in full_dams)
        factors.append(f"{len(full_dams)} dam(s) with a high fill rate ({names})")

    for min_mm, rain_points, label in BASIN_RAINFALL_THRESHOLDS:
        if basin.rainfall_24h_mm > min_mm:
            points += rain_points
            factors.append(f"{basin.rainfall_24h_mm:.1f}mm of rain recorded in the last 24 hours ({label})")
            break

    if (basin.snow_depth_cm and basin.snow_depth_cm > SNOW_DEPTH_CM
            and any(t > SNOW_MELT_TEMP_C for t in series.temperatures)):
        points += 15
        factors.append(
            f"{basin.snow_depth_cm:g}cm of snow in the area with rising temperatures; "
            f"snowmelt may increase flood risk"
        )

    return points


def _hazard_points(hazard: FloodHazardMembership, factors: list[str]) -> float:
    points = 0

    if hazard.is_in_flood_zone:
        zone = highest_risk_zone(hazard.zones)
        level = zone.risk_level if zone else RiskLevel.LOW
        points += HAZARD_ZONE_POINTS[level]
        if zone:
            factors.append(
                f"Location is in the {zone.recurrence_period}-year recurrence flood hazard zone "
                f"({zone.name}): {hazard_risk_description(level)}"
            )
        else:
            factors.append(f"Location is in a mapped flood hazard zone: {hazard_risk_description(level)}")
    elif hazard.nearest_zone_distance_m is not None and hazard.nearest_zone_distance_m < NEAR_ZONE_M:
        points += 5
        factors.append(f"Location is {hazard.nearest_zone_distance_m:.0f} metres from a flood hazard zone")

    if hazard.river_distance_m is not None and hazard.river_distance_m < NEAR_RIVER_M:
        points += 10
        factors.append(f"Location is {hazard.river_distance_m:.0f} metres from a river or stream")

    if hazard.elevation_m is not None and hazard.elevation_m < LOW_ELEVATION_M:
        points += 10
        factors.append(f"Location is at low elevation ({hazard.elevation_m:.0f} metres)")

    return points


def _lookup_hazard(series: WeatherSeries, hazard_lookup: HazardLookup | None) -> FloodHazardMembership | None:
    if hazard_lookup is None:
        return None
    lat, lon = series.location.lat, series.location.lon
    try:
        return hazard_lookup(lat, lon)
    except Exception as e:
        logger.warning(f"[RISK] Hazard-zone lookup failed for ({lat}, {lon}), scoring without it: {e}")
        return None


def score(
    series: WeatherSeries,
    basin: BasinStatus | None = None,
    hazard: FloodHazardMembership | None = None,
    overrides: TerrainOverrides | None = None,
    hazard_lookup: HazardLookup | None = check_flood_hazard_zones,
) -> FloodRiskAssessment:
    """
    Core flood risk computation.

    When *hazard* is not given, *hazard_lookup* is tried once; a failed
    lookup simply leaves the hazard-zone factors out.
    """
    overrides = overrides or TerrainOverrides()
    region = estimate_region(series.location.lat, series.location.lon)

    soil_saturation = next(
        v for v in (
            basin.soil_moisture if basin else None,
            overrides.soil_saturation,
            default_soil_saturation(region),
        ) if v is not None
    )
    slope_factor = (overrides.slope_factor if overrides.slope_factor is not None
                    else default_slope_factor(region))
    river_proximity = (overrides.river_proximity if overrides.river_proximity is not None
                       else DEFAULT_RIVER_PROXIMITY)
    urbanization = (overrides.urbanization if overrides.urbanization is not None
                    else DEFAULT_URBANIZATION)

    factors: list[str] = []
    risk_score = 0.0

    risk_score += _rainfall_points(series, factors)

    if basin is not None:
        risk_score += _basin_points(basin, series, factors)

    if hazard is None:
        hazard = _lookup_hazard(series, hazard_lookup)
    if hazard is not None:
        risk_score += _hazard_points(hazard, factors)

    risk_score += soil_saturation * 15
    if soil_saturation > 0.7:
        factors.append("Soil is highly saturated")
    elif soil_saturation > 0.4:
        factors.append("Soil is moderately saturated")

    risk_score += slope_factor * 10
    if slope_factor > 0.6:
        factors.append("Steep slopes in the area")

    if hazard is None or hazard.river_distance_m is None:
        risk_score += river_proximity * 10
        if river_proximity > 0.6:
            factors.append("Location is close to rivers or stream beds")

    risk_score += urbanization * 5
    if urbanization > 0.7:
        factors.append("Dense urbanisation may cause drainage problems")

    level = classify_score(risk_score)
    in_zone = hazard.is_in_flood_zone if hazard is not None else None

    logger.info(
        f"[RISK] ({series.location.lat}, {series.location.lon}) [{region.value}] → "
        f"{level.value} (score={risk_score:.1f}, factors={len(factors)})"
    )

    return FloodRiskAssessment(
        risk_level=level,
        risk_score=risk_score,
        risk_factors=factors,
        recommendations=recommendations_for(level, bool(in_zone)),
        region=region,
        flood_hazard_zones=list(hazard.zones) if hazard is not None else None,
        is_in_flood_zone=in_zone,
    )


calculate_flood_risk = score
