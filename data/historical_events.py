"""
Historical flash flood events.

A catalogue of past flood events in Turkey, searched by great-circle
distance from a point and optionally by date range. Results come back
newest first, each paired with its distance from the query point (km).
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
DEFAULT_RADIUS_KM = 50
DEFAULT_LIMIT = 100


class ImpactLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


@dataclass(frozen=True)
class HistoricalFloodEvent:
    id: str
    date: str                    # ISO 8601, UTC
    name: str
    lat: float
    lon: float
    radius_km: float             # affected radius
    impact_level: ImpactLevel
    max_water_level_cm: float
    affected_area_km2: float
    affected_people: int
    economic_loss_try: float
    description: str
    source: str
    duration_hours: float
    rainfall_mm: float
    response_time_minutes: float
    casualties: int | None = None

    @property
    def occurred_at(self) -> datetime:
        return parse_date(self.date)

    def to_dict(self, distance_km: float | None = None) -> dict:
        data = {
            "id": self.id,
            "date": self.date,
            "location": {"name": self.name, "lat": self.lat, "lon": self.lon, "radius": self.radius_km},
            "impactLevel": self.impact_level.value,
            "maxWaterLevel": self.max_water_level_cm,
            "affectedArea": self.affected_area_km2,
            "affectedPeople": self.affected_people,
            "economicLoss": self.economic_loss_try,
            "description": self.description,
            "source": self.source,
            "casualties": self.casualties,
            "duration": self.duration_hours,
            "rainfall": self.rainfall_mm,
            "responseTime": self.response_time_minutes,
        }
        if distance_km is not None:
            data["distance"] = round(distance_km, 1)
        return data


HISTORICAL_EVENTS = [
    HistoricalFloodEvent(
        id="flood-2023-06-15", date="2023-06-15T14:30:00Z",
        name="Ankara, Mamak", lat=39.925, lon=32.902, radius_km=5,
        impact_level=ImpactLevel.HIGH, max_water_level_cm=120, affected_area_km2=8.5,
        affected_people=1200, economic_loss_try=5_000_000, casualties=0,
        description="Hatip Stream overflowed after heavy rain. Many homes and shops in Mamak "
                    "were flooded and some vehicles were swept away.",
        source="AFAD, Turkish State Meteorological Service",
        duration_hours=6, rainfall_mm=85, response_time_minutes=45,
    ),
    HistoricalFloodEvent(
        id="flood-2022-08-27", date="2022-08-27T18:15:00Z",
        name="İstanbul, Esenyurt", lat=41.032, lon=28.672, radius_km=7,
        impact_level=ImpactLevel.EXTREME, max_water_level_cm=180, affected_area_km2=12.3,
        affected_people=3500, economic_loss_try=15_000_000, casualties=2,
        description="Haramidere overflowed after extreme rainfall. Homes and shops in Esenyurt "
                    "were flooded and vehicles were trapped in underpasses. 2 people died.",
        source="AFAD, Istanbul Metropolitan Municipality Disaster Coordination Centre",
        duration_hours=9, rainfall_mm=130, response_time_minutes=30,
    ),
    HistoricalFloodEvent(
        id="flood-2021-11-29", date="2021-11-29T08:45:00Z",
        name="İzmir, Bayraklı", lat=38.462, lon=27.173, radius_km=4,
        impact_level=ImpactLevel.MODERATE, max_water_level_cm=75, affected_area_km2=5.2,
        affected_people=800, economic_loss_try=2_500_000,
        description="Stream beds overflowed after winter rain. Several neighbourhoods in "
                    "Bayraklı were flooded and property was damaged.",
        source="İzmir Metropolitan Municipality, Regional Meteorology Directorate",
        duration_hours=4, rainfall_mm=65, response_time_minutes=60,
    ),
    HistoricalFloodEvent(
        id="flood-2020-06-23", date="2020-06-23T16:20:00Z",
        name="Bursa, Nilüfer", lat=40.215, lon=28.985, radius_km=6,
        impact_level=ImpactLevel.HIGH, max_water_level_cm=110, affected_area_km2=7.8,
        affected_people=1500, economic_loss_try=4_800_000, casualties=0,
        description="Nilüfer Stream overflowed after a sudden downpour. Many homes and shops "
                    "were flooded and parts of the district lost power.",
        source="AFAD, Bursa Metropolitan Municipality",
        duration_hours=5, rainfall_mm=95, response_time_minutes=40,
    ),
    HistoricalFloodEvent(
        id="flood-2019-08-17", date="2019-08-17T13:10:00Z",
        name="Trabzon, Araklı", lat=40.742, lon=39.952, radius_km=8,
        impact_level=ImpactLevel.EXTREME, max_water_level_cm=200, affected_area_km2=15.6,
        affected_people=2200, economic_loss_try=12_000_000, casualties=7,
        description="Karadere overflowed after heavy rain. Homes were destroyed and bridges "
                    "collapsed in Araklı. 7 people died and 3 went missing.",
        source="AFAD, Trabzon Governorship",
        duration_hours=12, rainfall_mm=150, response_time_minutes=55,
    ),
    HistoricalFloodEvent(
        id="flood-2023-02-05", date="2023-02-05T09:30:00Z",
        name="Antalya, Manavgat", lat=36.786, lon=31.443, radius_km=5,
        impact_level=ImpactLevel.MODERATE, max_water_level_cm=80, affected_area_km2=6.3,
        affected_people=950, economic_loss_try=3_200_000,
        description="Manavgat River overflowed after winter rain. Farmland and some tourist "
                    "facilities were flooded.",
        source="Antalya Metropolitan Municipality, Turkish State Meteorological Service",
        duration_hours=7, rainfall_mm=75, response_time_minutes=50,
    ),
    HistoricalFloodEvent(
        id="flood-2022-04-12", date="2022-04-12T11:45:00Z",
        name="Rize, Merkez", lat=41.025, lon=40.517, radius_km=7,
        impact_level=ImpactLevel.HIGH, max_water_level_cm=130, affected_area_km2=9.2,
        affected_people=1800, economic_loss_try=7_500_000, casualties=0,
        description="İyidere and its surroundings overflowed after spring rain. Many homes and "
                    "shops in central Rize were flooded and some roads were closed.",
        source="AFAD, Rize Governorship",
        duration_hours=8, rainfall_mm=110, response_time_minutes=35,
    ),
    HistoricalFloodEvent(
        id="flood-2021-07-14", date="2021-07-14T15:50:00Z",
        name="Kastamonu, Bozkurt", lat=41.959, lon=34.029, radius_km=10,
        impact_level=ImpactLevel.EXTREME, max_water_level_cm=220, affected_area_km2=18.7,
        affected_people=4200, economic_loss_try=25_000_000, casualties=82,
        description="Ezine Stream overflowed after extreme rainfall. Buildings were destroyed "
                    "and bridges collapsed in Bozkurt. 82 people died.",
        source="AFAD, Ministry of Interior",
        duration_hours=24, rainfall_mm=240, response_time_minutes=120,
    ),
    HistoricalFloodEvent(
        id="flood-2020-09-02", date="2020-09-02T17:25:00Z",
        name="Giresun, Dereli", lat=40.612, lon=38.715, radius_km=9,
        impact_level=ImpactLevel.EXTREME, max_water_level_cm=190, affected_area_km2=16.4,
        affected_people=3100, economic_loss_try=18_000_000, casualties=11,
        description="Aksu Stream overflowed after heavy rain. Many homes and shops in Dereli "
                    "were destroyed. 11 people died.",
        source="AFAD, Giresun Governorship",
        duration_hours=14, rainfall_mm=170, response_time_minutes=90,
    ),
    HistoricalFloodEvent(
        id="flood-2019-12-22", date="2019-12-22T10:15:00Z",
        name="Mersin, Silifke", lat=36.377, lon=33.936, radius_km=6,
        impact_level=ImpactLevel.MODERATE, max_water_level_cm=85, affected_area_km2=7.1,
        affected_people=1100, economic_loss_try=3_800_000,
        description="Göksu River overflowed after winter rain. Farmland and some settlements "
                    "around Silifke were flooded.",
        source="Mersin Metropolitan Municipality, DSİ 6th Regional Directorate",
        duration_hours=6, rainfall_mm=80, response_time_minutes=65,
    ),
]


def parse_date(value: str) -> datetime:
    """ISO 8601 date or datetime → aware datetime (naive values are UTC)."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in km."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_historical_events(
    lat: float,
    lon: float,
    radius_km: float = DEFAULT_RADIUS_KM,
    limit: int = DEFAULT_LIMIT,
    start: datetime | None = None,
    end: datetime | None = None,
    events: list[HistoricalFloodEvent] | None = None,
) -> list[tuple[HistoricalFloodEvent, float]]:
    """
    Events within *radius_km* of (lat, lon), inside [start, end] when given,
    newest first and at most *limit* of them. Each comes with its distance.
    """
    catalogue = HISTORICAL_EVENTS if events is None else events

    matches = []
    for event in catalogue:
        distance = haversine_km(lat, lon, event.lat, event.lon)
        if distance > radius_km:
            continue
        if start is not None and event.occurred_at < start:
            continue
        if end is not None and event.occurred_at > end:
            continue
        matches.append((event, distance))

    matches.sort(key=lambda match: match[0].occurred_at, reverse=True)
    matches = matches[:max(0, limit)]

    logger.info(f"[HISTORY] ({lat}, {lon}) within {radius_km}km → {len(matches)} event(s)")
    return matches
