"""
Basin (havza) status provider.

Given (lat, lon), returns the hydrological status of the catchment the
point falls in: reservoir level, 24h rainfall, soil moisture, snow cover,
and the rivers and dams being monitored.

Sources:
  1. National water information service (USBS), when USBS_API_URL is set
  2. Regional basin table, optionally jittered ±10% to mimic live readings

Dams and rivers in the regional table can also be looked up by id
(get_dam, get_river).

Derived basin flood risk:
  water level ≥ 80  or rainfall > 25  → EXTREME
  water level ≥ 60  or rainfall > 15  → HIGH
  water level ≥ 40  or rainfall >  8  → MEDIUM
  otherwise                           → LOW
"""

import dataclasses
import logging
import math
import os
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests

from data.hazard_zones import FloodHazardMembership, HazardDataUnavailable, check_flood_hazard_zones
from risk.levels import RiskLevel, max_level
from risk.regions import Region, estimate_region

logger = logging.getLogger(__name__)

USBS_API_URL = os.getenv("USBS_API_URL", "")
TIMEOUT_SECONDS = 10
JITTER = 0.1


@dataclass(frozen=True)
class RiverStatus:
    name: str
    current_level: float   # m
    normal_level: float    # m
    flood_level: float     # m
    id: str = ""
    flow_rate: float = 0.0  # m³/s

    @property
    def is_critical(self) -> bool:
        return (self.current_level > self.normal_level * 1.5
                or self.current_level > self.flood_level * 0.8)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "currentLevel": self.current_level,
                "normalLevel": self.normal_level, "floodLevel": self.flood_level,
                "flowRate": self.flow_rate}


@dataclass(frozen=True)
class DamStatus:
    name: str
    fill_rate_percent: float
    id: str = ""
    capacity: float = 0.0         # million m³
    current_volume: float = 0.0   # million m³
    discharge_rate: float = 0.0   # m³/s

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "capacity": self.capacity,
                "currentVolume": self.current_volume, "fillRate": self.fill_rate_percent,
                "dischargeRate": self.discharge_rate}


def _optional_float(value) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class BasinStatus:
    name: str
    water_level_percent: float
    flood_risk: RiskLevel
    rainfall_24h_mm: float
    soil_moisture: float | None    # 0-1, None when the source does not report it
    snow_depth_cm: float | None = None
    rivers: list[RiverStatus] = field(default_factory=list)
    dams: list[DamStatus] = field(default_factory=list)
    id: str = ""
    code: str = ""
    last_updated: str = ""

    def __post_init__(self):
        if not math.isfinite(self.water_level_percent) or not 0 <= self.water_level_percent <= 100:
            raise ValueError(f"water_level_percent must be within [0, 100], got {self.water_level_percent}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "waterLevel": self.water_level_percent,
            "floodRisk": self.flood_risk.value,
            "lastUpdated": self.last_updated,
            "rainfall": self.rainfall_24h_mm,
            "soilMoisture": self.soil_moisture,
            "snowDepth": self.snow_depth_cm,
            "rivers": [r.to_dict() for r in self.rivers],
            "dams": [d.to_dict() for d in self.dams],
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "BasinStatus":
        return cls(
            id=str(raw.get("id", "")),
            name=raw["name"],
            code=raw.get("code", ""),
            water_level_percent=float(raw["waterLevel"]),
            flood_risk=RiskLevel(raw.get("floodRisk", "LOW")),
            last_updated=raw.get("lastUpdated", ""),
            rainfall_24h_mm=float(raw.get("rainfall", 0.0)),
            soil_moisture=_optional_float(raw.get("soilMoisture")),
            snow_depth_cm=raw.get("snowDepth"),
            rivers=[
                RiverStatus(
                    id=str(r.get("id", "")),
                    name=r["name"],
                    current_level=float(r["currentLevel"]),
                    normal_level=float(r["normalLevel"]),
                    flood_level=float(r["floodLevel"]),
                    flow_rate=float(r.get("flowRate", 0.0)),
                )
                for r in raw.get("rivers", [])
            ],
            dams=[
                DamStatus(
                    id=str(d.get("id", "")),
                    name=d["name"],
                    fill_rate_percent=float(d["fillRate"]),
                    capacity=float(d.get("capacity", 0.0)),
                    current_volume=float(d.get("currentVolume", 0.0)),
                    discharge_rate=float(d.get("dischargeRate", 0.0)),
                )
                for d in raw.get("dams", [])
            ],
        )


# ---------------------------------------------------------------------------
# Regional basin table
# ---------------------------------------------------------------------------

BASIN_DATA = {
    Region.MARMARA: BasinStatus(
        id="1", name="Marmara Basin", code="MAR",
        water_level_percent=45, flood_risk=RiskLevel.MEDIUM,
        rainfall_24h_mm=12.5, soil_moisture=0.45,
        dams=[
            DamStatus(id="1", name="Ömerli Dam", capacity=386.5, current_volume=220.3,
                      fill_rate_percent=57, discharge_rate=12.5),
            DamStatus(id="2", name="Darlık Dam", capacity=107.5, current_volume=68.8,
                      fill_rate_percent=64, discharge_rate=5.2),
        ],
        rivers=[
            RiverStatus(id="1", name="Nilüfer Çayı", current_level=2.3, normal_level=1.8,
                        flood_level=4.5, flow_rate=35.2),
        ],
    ),
    Region.EGE: BasinStatus(
        id="2", name="North Aegean Basin", code="KEG",
        water_level_percent=38, flood_risk=RiskLevel.LOW,
        rainfall_24h_mm=5.2, soil_moisture=0.32,
        dams=[
            DamStatus(id="3", name="Çaygören Dam", capacity=144.0, current_volume=52.0,
                      fill_rate_percent=36, discharge_rate=8.3),
        ],
        rivers=[
            RiverStatus(id="2", name="Bakırçay", current_level=1.8, normal_level=1.5,
                        flood_level=3.8, flow_rate=28.6),
        ],
    ),
    Region.AKDENIZ: BasinStatus(
        id="3", name="Antalya Basin", code="ANT",
        water_level_percent=32, flood_risk=RiskLevel.LOW,
        rainfall_24h_mm=3.8, soil_moisture=0.25,
        dams=[
            DamStatus(id="4", name="Oymapınar Dam", capacity=300.0, current_volume=180.0,
                      fill_rate_percent=60, discharge_rate=42.5),
        ],
        rivers=[
            RiverStatus(id="3", name="Köprüçay", current_level=1.2, normal_level=1.0,
                        flood_level=3.2, flow_rate=45.8),
        ],
    ),
    Region.IC_ANADOLU: BasinStatus(
        id="4", name="Konya Closed Basin", code="KON",
        water_level_percent=25, flood_risk=RiskLevel.LOW,
        rainfall_24h_mm=2.1, soil_moisture=0.18,
        dams=[
            DamStatus(id="5", name="Apa Dam", capacity=450.0, current_volume=112.5,
                      fill_rate_percent=25, discharge_rate=6.8),
        ],
        rivers=[
            RiverStatus(id="4", name="Çarşamba Çayı", current_level=0.8, normal_level=1.2,
                        flood_level=2.8, flow_rate=12.4),
        ],
    ),
    Region.DOGU_ANADOLU: BasinStatus(
        id="5", name="Upper Euphrates Basin", code="YFR",
        water_level_percent=58, flood_risk=RiskLevel.MEDIUM,
        rainfall_24h_mm=15.3, soil_moisture=0.42, snow_depth_cm=25,
        dams=[
            DamStatus(id="6", name="Keban Dam", capacity=31000.0, current_volume=18600.0,
                      fill_rate_percent=60, discharge_rate=650.0),
        ],
        rivers=[
            RiverStatus(id="5", name="Murat Nehri", current_level=3.2, normal_level=2.5,
                        flood_level=5.5, flow_rate=320.0),
        ],
    ),
    Region.GUNEYDOGU_ANADOLU: BasinStatus(
        id="6", name="Tigris Basin", code="DIC",
        water_level_percent=42, flood_risk=RiskLevel.MEDIUM,
        rainfall_24h_mm=8.7, soil_moisture=0.28,
        dams=[
            DamStatus(id="7", name="Ilısu Dam", capacity=10400.0, current_volume=5200.0,
                      fill_rate_percent=50, discharge_rate=450.0),
        ],
        rivers=[
            RiverStatus(id="6", name="Dicle Nehri", current_level=4.5, normal_level=3.8,
                        flood_level=7.2, flow_rate=520.0),
        ],
    ),
    Region.KARADENIZ: BasinStatus(
        id="7", name="Eastern Black Sea Basin", code="DKD",
        water_level_percent=72, flood_risk=RiskLevel.HIGH,
        rainfall_24h_mm=28.5, soil_moisture=0.68,
        dams=[
            DamStatus(id="8", name="Borçka Dam", capacity=418.0, current_volume=334.4,
                      fill_rate_percent=80, discharge_rate=120.0),
        ],
        rivers=[
            RiverStatus(id="7", name="Çoruh Nehri", current_level=5.8, normal_level=4.2,
                        flood_level=8.0, flow_rate=450.0),
        ],
    ),
    Region.DEFAULT: BasinStatus(
        id="0", name="Unknown Basin", code="UNK",
        water_level_percent=40, flood_risk=RiskLevel.MEDIUM,
        rainfall_24h_mm=10.0, soil_moisture=0.4,
    ),
}


def basin_flood_risk(water_level_percent: float, rainfall_24h_mm: float) -> RiskLevel:
    if water_level_percent >= 80 or rainfall_24h_mm > 25:
        return RiskLevel.EXTREME
    elif water_level_percent >= 60 or rainfall_24h_mm > 15:
        return RiskLevel.HIGH
    elif water_level_percent >= 40 or rainfall_24h_mm > 8:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW


def basin_for_region(region: Region, rng: random.Random | None = None, jitter: float = JITTER) -> BasinStatus:
    """
    Regional basin status. With an *rng*, level, rainfall and soil moisture
    are scaled by the same random factor in [-jitter, +jitter].
    """
    base = BASIN_DATA.get(region, BASIN_DATA[Region.DEFAULT])
    factor = rng.uniform(-jitter, jitter) if rng is not None else 0.0

    water_level = min(100.0, max(0.0, base.water_level_percent * (1 + factor)))
    rainfall = max(0.0, base.rainfall_24h_mm * (1 + factor))
    soil_moisture = (min(1.0, max(0.0, base.soil_moisture * (1 + factor)))
                     if base.soil_moisture is not None else None)

    return dataclasses.replace(
        base,
        water_level_percent=water_level,
        rainfall_24h_mm=rainfall,
        soil_moisture=soil_moisture,
        flood_risk=basin_flood_risk(water_level, rainfall),
        last_updated=datetime.now(timezone.utc).isoformat(),
    )


# ---------------------------------------------------------------------------
# Dam and river lookups
# ---------------------------------------------------------------------------

DAMS = {dam.id: dam for basin in BASIN_DATA.values() for dam in basin.dams}
RIVERS = {river.id: river for basin in BASIN_DATA.values() for river in basin.rivers}


def get_dam(dam_id: str) -> DamStatus | None:
    """Monitored dam by id, or None when the id is unknown."""
    dam = DAMS.get(str(dam_id))
    if dam is None:
        logger.info(f"[BASIN] Unknown dam id '{dam_id}'")
    return dam


def get_river(river_id: str) -> RiverStatus | None:
    """Monitored river by id, or None when the id is unknown."""
    river = RIVERS.get(str(river_id))
    if river is None:
        logger.info(f"[BASIN] Unknown river id '{river_id}'")
    return river


def _fetch_remote(lat: float, lon: float) -> BasinStatus | None:
    try:
        resp = requests.get(
            USBS_API_URL,
            params={"lat": lat, "lon": lon},
            timeout=TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        return BasinStatus.from_dict(resp.json())
    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        logger.warning(f"[BASIN] USBS query failed: {e}")
        return None


def fetch_basin_status(lat: float, lon: float, rng: random.Random | None = None) -> BasinStatus | None:
    """
    Basin status for (lat, lon), or None when the configured USBS service
    is unavailable.
    """
    if USBS_API_URL:
        basin = _fetch_remote(lat, lon)
        if basin is None:
            return None
        source = "usbs"
    else:
        basin = basin_for_region(estimate_region(lat, lon), rng=rng)
        source = "regional"

    logger.info(
        f"[BASIN] ({lat}, {lon}) → {basin.name}: level {basin.water_level_percent:.1f}%, "
        f"risk {basin.flood_risk.value} [source: {source}]"
    )
    return basin


@dataclass(frozen=True)
class BasinCheck:
    basin_name: str
    water_level_percent: float
    flood_risk: RiskLevel
    last_updated: str
    basin: BasinStatus | None = None
    hazard: FloodHazardMembership | None = None


def check_basin_status(lat: float, lon: float, rng: random.Random | None = None) -> BasinCheck:
    """
    Basin summary for a location, raised to the hazard-zone level when the
    point sits in a more severe mapped flood zone.

    Falls back to the regional table (with jitter) if the basin source fails.
    """
    basin = fetch_basin_status(lat, lon, rng=rng)
    if basin is None:
        fallback = basin_for_region(estimate_region(lat, lon), rng=rng or random.Random())
        summary = BasinCheck(
            basin_name=fallback.name,
            water_level_percent=fallback.water_level_percent,
            flood_risk=fallback.flood_risk,
            last_updated=fallback.last_updated,
        )
    else:
        summary = BasinCheck(
            basin_name=basin.name,
            water_level_percent=basin.water_level_percent,
            flood_risk=basin.flood_risk,
            last_updated=basin.last_updated,
            basin=basin,
        )

    try:
        hazard = check_flood_hazard_zones(lat, lon, rng=rng)
    except HazardDataUnavailable as e:
        logger.warning(f"[BASIN] Hazard zones unavailable: {e}")
        return summary

    flood_risk = summary.flood_risk
    if hazard.is_in_flood_zone and hazard.zones:
        flood_risk = max_level(flood_risk, *(z.risk_level for z in hazard.zones))

    return dataclasses.replace(summary, flood_risk=flood_risk, hazard=hazard)
