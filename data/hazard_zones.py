"""
Flood hazard zone lookup.

Given (lat, lon), reports whether the point lies in a mapped flood hazard
zone (graded by recurrence period), plus distance to the nearest zone,
ground elevation and distance to the nearest river.

Two sources:
  1. Remote hazard-map service, when FLOOD_HAZARD_API_URL is set
  2. Regional zone table with simulated membership (no real polygon test)

Recurrence period → severity:
  500 yr  LOW / MEDIUM
  100 yr  HIGH / EXTREME
   50 yr  EXTREME
"""

import logging
import os
import random
from dataclasses import dataclass, field

import requests

from risk.levels import RiskLevel
from risk.regions import Region, estimate_region

logger = logging.getLogger(__name__)

FLOOD_HAZARD_API_URL = os.getenv("FLOOD_HAZARD_API_URL", "")
TIMEOUT_SECONDS = 10

# Simulated membership
IN_ZONE_PROBABILITY = 0.4
NEAREST_ZONE_RANGE_M = (500, 5499)
ELEVATION_RANGE_M = (50, 149)
RIVER_DISTANCE_RANGE_M = (100, 2099)


class HazardDataUnavailable(Exception):
    """The hazard-map service could not be reached or returned garbage."""


@dataclass(frozen=True)
class FloodHazardZone:
    id: str
    name: str
    recurrence_period: int      # years
    risk_level: RiskLevel
    description: str = ""
    source: str = ""
    last_updated: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "recurrencePeriod": self.recurrence_period,
            "riskLevel": self.risk_level.value,
            "description": self.description,
            "source": self.source,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "FloodHazardZone":
        return cls(
            id=str(raw["id"]),
            name=raw["name"],
            recurrence_period=int(raw["recurrencePeriod"]),
            risk_level=RiskLevel(raw["riskLevel"]),
            description=raw.get("description", ""),
            source=raw.get("source", ""),
            last_updated=raw.get("lastUpdated", ""),
        )


@dataclass(frozen=True)
class FloodHazardMembership:
    is_in_flood_zone: bool
    zones: list[FloodHazardZone] = field(default_factory=list)
    nearest_zone_distance_m: float | None = None
    elevation_m: float | None = None
    river_distance_m: float | None = None

    def to_dict(self) -> dict:
        return {
            "isInFloodZone": self.is_in_flood_zone,
            "zones": [z.to_dict() for z in self.zones],
            "nearestZoneDistance": self.nearest_zone_distance_m,
            "elevation": self.elevation_m,
            "riverDistance": self.river_distance_m,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "FloodHazardMembership":
        return cls(
            is_in_flood_zone=bool(raw["isInFloodZone"]),
            zones=[FloodHazardZone.from_dict(z) for z in raw.get("zones", [])],
            nearest_zone_distance_m=raw.get("nearestZoneDistance"),
            elevation_m=raw.get("elevation"),
            river_distance_m=raw.get("riverDistance"),
        )


# ---------------------------------------------------------------------------
# Regional zone table
# ---------------------------------------------------------------------------

def _zone(zone_id, river, region_label, period, level, source, updated):
    return FloodHazardZone(
        id=zone_id,
        name=f"{region_label} {period}-Year Flood Zone - {river}",
        recurrence_period=period,
        risk_level=level,
        description=f"{period}-year recurrence flood hazard zone covering {river} and its surroundings",
        source=source,
        last_updated=updated,
    )


FLOOD_HAZARD_ZONES = {
    Region.MARMARA: [
        _zone("mar-500-1", "Nilüfer Çayı", "Marmara", 500, RiskLevel.MEDIUM,
              "DSİ Bursa Regional Directorate", "2023-05-15T00:00:00Z"),
        _zone("mar-100-1", "Nilüfer Çayı", "Marmara", 100, RiskLevel.HIGH,
              "DSİ Bursa Regional Directorate", "2023-05-15T00:00:00Z"),
    ],
    Region.EGE: [
        _zone("ege-500-1", "Gediz Nehri", "Aegean", 500, RiskLevel.MEDIUM,
              "DSİ İzmir Regional Directorate", "2023-06-20T00:00:00Z"),
    ],
    Region.AKDENIZ: [
        _zone("akd-500-1", "Köprüçay", "Mediterranean", 500, RiskLevel.MEDIUM,
              "DSİ Antalya Regional Directorate", "2023-04-10T00:00:00Z"),
    ],
    Region.IC_ANADOLU: [
        _zone("ica-500-1", "Kızılırmak", "Central Anatolia", 500, RiskLevel.LOW,
              "DSİ Ankara Regional Directorate", "2023-03-05T00:00:00Z"),
    ],
    Region.DOGU_ANADOLU: [
        _zone("da-500-1", "Murat Nehri", "Eastern Anatolia", 500, RiskLevel.HIGH,
              "DSİ Elazığ Regional Directorate", "2023-07-12T00:00:00Z"),
        _zone("da-100-1", "Murat Nehri", "Eastern Anatolia", 100, RiskLevel.EXTREME,
              "DSİ Elazığ Regional Directorate", "2023-07-12T00:00:00Z"),
    ],
    Region.GUNEYDOGU_ANADOLU: [
        _zone("gda-500-1", "Dicle Nehri", "Southeastern Anatolia", 500, RiskLevel.MEDIUM,
              "DSİ Diyarbakır Regional Directorate", "2023-08-18T00:00:00Z"),
    ],
    Region.KARADENIZ: [
        _zone("krd-500-1", "Çoruh Nehri", "Black Sea", 500, RiskLevel.HIGH,
              "DSİ Trabzon Regional Directorate", "2023-09-25T00:00:00Z"),
        _zone("krd-100-1", "Çoruh Nehri", "Black Sea", 100, RiskLevel.EXTREME,
              "DSİ Trabzon Regional Directorate", "2023-09-25T00:00:00Z"),
        _zone("krd-50-1", "Çoruh Nehri", "Black Sea", 50, RiskLevel.EXTREME,
              "DSİ Trabzon Regional Directorate", "2023-09-25T00:00:00Z"),
    ],
    Region.DEFAULT: [],
}

ZONES_BY_ID = {zone.id: zone for zones in FLOOD_HAZARD_ZONES.values() for zone in zones}


RISK_DESCRIPTIONS = {
    RiskLevel.LOW: "Low-risk flood zone. May be affected by 500-year recurrence floods.",
    RiskLevel.MEDIUM: "Medium-risk flood zone. May be affected by 100-500 year recurrence floods.",
    RiskLevel.HIGH: "High-risk flood zone. May be affected by 50-100 year recurrence floods.",
    RiskLevel.EXTREME: "Very high-risk flood zone. May be affected by floods recurring more often than every 50 years.",
}

ZONE_RECOMMENDATIONS = {
    RiskLevel.EXTREME: [
        "Avoid new construction in this zone",
        "Apply flood-resilience measures to existing buildings",
        "Prepare emergency evacuation plans",
        "Flood insurance is strongly recommended",
    ],
    RiskLevel.HIGH: [
        "Construction requires special permits and precautions",
        "Protect ground floors against flooding",
        "Move valuables and installations to higher levels",
        "Flood insurance is recommended",
    ],
    RiskLevel.MEDIUM: [
        "Carry out a flood risk assessment before building",
        "Strengthen drainage systems",
        "Install flood early-warning systems",
    ],
    RiskLevel.LOW: [
        "Standard flood precautions are sufficient",
        "Maintain drainage systems regularly",
    ],
}


def hazard_risk_description(level: RiskLevel) -> str:
    return RISK_DESCRIPTIONS[level]


def hazard_recommendations(level: RiskLevel) -> list[str]:
    return list(ZONE_RECOMMENDATIONS[level])


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def _fetch_remote(lat: float, lon: float) -> FloodHazardMembership:
    try:
        resp = requests.get(
            FLOOD_HAZARD_API_URL,
            params={"lat": lat, "lon": lon},
            timeout=TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        return FloodHazardMembership.from_dict(resp.json())
    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        raise HazardDataUnavailable(f"hazard-map service failed: {e}") from e


def simulate_membership(lat: float, lon: float, rng: random.Random | None = None) -> FloodHazardMembership:
    """Regional zones with randomly simulated membership and distances."""
    rng = rng or random.Random()
    zones = FLOOD_HAZARD_ZONES.get(estimate_region(lat, lon), [])

    in_zone = rng.random() < IN_ZONE_PROBABILITY
    nearest = 0 if in_zone else rng.randint(*NEAREST_ZONE_RANGE_M)
    elevation = rng.randint(*ELEVATION_RANGE_M)
    river_distance = rng.randint(*RIVER_DISTANCE_RANGE_M)

    return FloodHazardMembership(
        is_in_flood_zone=in_zone,
        zones=list(zones) if in_zone else [],
        nearest_zone_distance_m=nearest,
        elevation_m=elevation,
        river_distance_m=river_distance,
    )


def check_flood_hazard_zones(lat: float, lon: float, rng: random.Random | None = None) -> FloodHazardMembership:
    """
    Hazard-zone membership for (lat, lon).

    Raises HazardDataUnavailable when the remote service is configured but
    fails; callers decide whether that is fatal.
    """
    if FLOOD_HAZARD_API_URL:
        membership = _fetch_remote(lat, lon)
        source = "remote"
    else:
        membership = simulate_membership(lat, lon, rng)
        source = "regional"

    logger.info(
        f"[HAZARD] ({lat}, {lon}) → in_zone={membership.is_in_flood_zone}, "
        f"zones={len(membership.zones)} [source: {source}]"
    )
    return membership


def get_zone_details(zone_id: str) -> FloodHazardZone | None:
    return ZONES_BY_ID.get(zone_id)
