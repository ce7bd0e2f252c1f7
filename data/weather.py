"""
Open-Meteo forecast client.

Given (lat, lon), returns an hourly precipitation + temperature series for
the forecast horizon. Free API, no key required.

On any failure the client returns an empty series flagged as unavailable,
so the scorers can still run on their defaults.
"""

import logging
import os
from dataclasses import dataclass, field

import requests

logger = logging.getLogger(__name__)

OPEN_METEO_URL = os.getenv("OPEN_METEO_URL", "https://api.open-meteo.com/v1/forecast")
TIMEOUT_SECONDS = 10
DEFAULT_FORECAST_HOURS = 24
MAX_FORECAST_HOURS = 384


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    name: str = ""


@dataclass
class WeatherSeries:
    """Forecast summary for a single coordinate."""
    location: Location
    forecast_step: int                 # forecast horizon in hours
    values: list[float]                # hourly precipitation (mm)
    temperatures: list[float] = field(default_factory=list)  # hourly 2m temp (°C)
    time_points: list[str] = field(default_factory=list)
    model: str = "open-meteo"
    available: bool = True

    @property
    def total_precipitation(self) -> float:
        return float(sum(self.values))


def _clean(values) -> list[float]:
    # Open-Meteo reports missing hours as null
    return [float(v) if v is not None else 0.0 for v in values]


def fetch_weather(
    lat: float,
    lon: float,
    name: str = "",
    forecast_hours: int = DEFAULT_FORECAST_HOURS,
) -> WeatherSeries:
    """
    Call Open-Meteo and return a WeatherSeries for the given coordinate.

    Returns an empty, unavailable series when the call fails.
    """
    forecast_hours = max(1, min(int(forecast_hours), MAX_FORECAST_HOURS))
    location = Location(lat=lat, lon=lon, name=name)

    try:
        resp = requests.get(
            OPEN_METEO_URL,
            params={
                "latitude": lat,
                "longitude": lon,
                "hourly": "precipitation,temperature_2m",
                "forecast_hours": forecast_hours,
                "timezone": "Europe/Istanbul",
            },
            timeout=TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        hourly = resp.json()["hourly"]

        precipitation = _clean(hourly["precipitation"])[:forecast_hours]
        temperatures = _clean(hourly.get("temperature_2m", []))[:forecast_hours]
        time_points = list(hourly.get("time", []))[:forecast_hours]

        logger.info(
            f"[WEATHER] ({lat}, {lon}) → {sum(precipitation):.1f}mm over "
            f"{len(precipitation)}h"
        )
        return WeatherSeries(
            location=location,
            forecast_step=forecast_hours,
            values=precipitation,
            temperatures=temperatures,
            time_points=time_points,
        )

    except (requests.RequestException, KeyError, TypeError, ValueError) as e:
        logger.warning(f"[WEATHER] Open-Meteo call failed: {e}")
        return WeatherSeries(
            location=location,
            forecast_step=forecast_hours,
            values=[],
            available=False,
        )
