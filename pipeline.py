"""
Core pipeline — the entry points the app and the CLI share:

  1. assess(lat, lon, location_name)
     → Full location assessment. Call when the user names a place.
     → Returns a LocationReport (scores, prediction, alert, text)

  2. handle_menu(command, report, location_name)
     → Menu follow-up. Call when the user replies 1-4 or WHY.
     → Returns the reply text

Data sources:
  - Open-Meteo hourly forecast (api.open-meteo.com)
  - Basin status (USBS when configured, else the regional basin table)
  - Flood hazard zones (hazard-map service when configured, else simulated)
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable

from alerts.dispatch import notify_if_needed
from alerts.settings import AlertRecord, JsonFileStore, KeyValueStore, load_settings
from data.basins import BasinStatus, basin_for_region, fetch_basin_status
from data.hazard_zones import FloodHazardMembership, HazardDataUnavailable, check_flood_hazard_zones
from data.weather import Location, WeatherSeries, fetch_weather
from hydro.flash_flood import FlashFloodPrediction, predict_flash_floods
from risk.engine import FloodRiskAssessment, TerrainOverrides, score
from risk.regions import estimate_region
from risk.response import (
    format_alert_check,
    format_assessment,
    format_flash_flood,
    format_no_session,
    format_recommendations,
    format_why,
)

logger = logging.getLogger(__name__)

WeatherFetcher = Callable[..., WeatherSeries]


@dataclass
class LocationReport:
    name: str
    lat: float
    lon: float
    series: WeatherSeries
    basin: BasinStatus | None
    hazard: FloodHazardMembership | None
    assessment: FloodRiskAssessment
    prediction: FlashFloodPrediction
    alert: AlertRecord | None
    text: str


# ---------------------------------------------------------------------------
# Known menu commands: if input matches one of these, it's not a location
# ---------------------------------------------------------------------------
MENU_COMMANDS = {
    "1", "2", "3", "4",
    "risk", "flash", "todo", "alert",   # word aliases for 1-4
    "why",
}


def is_menu_command(text: str) -> bool:
    """Check if the raw input is a menu command (not a location)."""
    return text.strip().lower() in MENU_COMMANDS


# ---------------------------------------------------------------------------
# 1) Assessment: user names a location
# ---------------------------------------------------------------------------

def _hazard_membership(lat: float, lon: float, rng: random.Random | None) -> FloodHazardMembership | None:
    try:
        return check_flood_hazard_zones(lat, lon, rng=rng)
    except HazardDataUnavailable as e:
        logger.warning(f"[PIPELINE] Hazard zones unavailable: {e}")
        return None


def assess(
    lat: float,
    lon: float,
    location_name: str,
    store: KeyValueStore | None = None,
    overrides: TerrainOverrides | None = None,
    rng: random.Random | None = None,
    weather_fetcher: WeatherFetcher = fetch_weather,
) -> LocationReport:
    """
    Run flood risk scoring, flash flood prediction and the alert policy for
    a coordinate.
    """
    logger.info(f"[PIPELINE] Assessing flood risk for: {location_name} ({lat}, {lon})")

    # 1) Forecast
    series = weather_fetcher(lat, lon, name=location_name)
    if series.available:
        logger.info(f"[PIPELINE] Open-Meteo: {series.total_precipitation:.1f}mm/{series.forecast_step}h")
    else:
        logger.warning("[PIPELINE] Open-Meteo: unavailable, scoring on defaults")

    # 2) Basin status, regional table when the basin service is down
    basin = fetch_basin_status(lat, lon, rng=rng)
    if basin is None:
        basin = basin_for_region(estimate_region(lat, lon), rng=rng)

    # 3) Hazard zones
    hazard = _hazard_membership(lat, lon, rng)

    # 4) Flood risk score
    assessment = score(series, basin=basin, hazard=hazard, overrides=overrides, hazard_lookup=None)

    # 5) Flash flood prediction
    location = Location(lat=lat, lon=lon, name=location_name)
    prediction = predict_flash_floods(location, series if series.available else None)

    # 6) Alert policy
    store = store if store is not None else JsonFileStore()
    alert = notify_if_needed(prediction, location_name, load_settings(store), store)

    text = format_assessment(
        assessment,
        prediction,
        location_name,
        rain_mm=series.total_precipitation if series.available else None,
        forecast_hours=series.forecast_step,
    )
    logger.info(
        f"[PIPELINE] Risk: {assessment.risk_level.value} (score={assessment.risk_score:.1f}), "
        f"flash flood: {prediction.risk_level.value}, alert: {alert.status.value if alert else 'none'}"
    )

    return LocationReport(
        name=location_name,
        lat=lat,
        lon=lon,
        series=series,
        basin=basin,
        hazard=hazard,
        assessment=assessment,
        prediction=prediction,
        alert=alert,
        text=text,
    )


# ---------------------------------------------------------------------------
# 2) Menu command handler: user replies with 1-4 or WHY
# ---------------------------------------------------------------------------

def handle_menu(
    command: str,
    report: LocationReport | None,
    location_name: str | None,
) -> str:
    """
    Handle a menu reply. Requires the report from a prior location query.

    Args:
        command: The raw user input ("1".."4", a word alias, or "why")
        report: The LocationReport from their last location query (or None)
        location_name: The location name from their last query (or None)
    """
    cmd = command.strip().lower()

    if report is None or location_name is None:
        return format_no_session()

    if cmd in ("1", "risk"):
        # Cached report; callers run assess() again for a live refresh
        text = report.text

    elif cmd in ("2", "flash"):
        text = format_flash_flood(report.prediction, location_name)

    elif cmd in ("3", "todo"):
        text = format_recommendations(report.assessment, location_name)

    elif cmd in ("4", "alert"):
        text = format_alert_check(report.alert, report.prediction)

    elif cmd == "why":
        text = format_why(report.assessment, location_name, report.basin)

    else:
        text = format_no_session()

    logger.debug(f"[PIPELINE] Menu '{cmd}' for {location_name}")
    return text
