"""
app.py — Flask entry point for the flood risk service.

Exposes (JSON unless noted):
    GET  /assess?location=Rize                    — geocode + full pipeline (text reply)
    GET  /flood-risk?lat=&lon=                    — aggregate flood risk score
    GET  /flash-flood?lat=&lon=                   — flash flood prediction
    GET  /basin?lat=&lon=                         — basin status merged with hazard zones
    GET  /basin/dam/<dam_id>                      — monitored dam details
    GET  /basin/river/<river_id>                  — monitored river details
    GET  /historical-flood-events?lat=&lon=       — past floods nearby (radius, limit,
                                                    startDate, endDate optional)
    GET  /flood-hazard-maps?lat=&lon=             — hazard-zone membership
    GET  /flood-hazard-maps/zone/<zone_id>        — zone details
    GET  /alerts/settings   POST /alerts/settings — alert settings
    GET  /alerts/history                          — recorded alerts, newest first
    POST /alerts/test                             — send a test alert
    GET  /health                                  — simple health check

Bad query parameters → 400, unknown zone, dam or river → 404, hazard service down → 503.
"""

import math
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from alerts.dispatch import send_test_alert
from alerts.settings import AlertSettings, JsonFileStore, get_alert_history, load_settings, save_settings
from data.basins import check_basin_status, fetch_basin_status, get_dam, get_river
from data.hazard_zones import (
    HazardDataUnavailable,
    check_flood_hazard_zones,
    get_zone_details,
    hazard_recommendations,
    hazard_risk_description,
)
from data.historical_events import DEFAULT_LIMIT, DEFAULT_RADIUS_KM, find_historical_events, parse_date
from data.weather import Location, fetch_weather
from geocoder import resolve_location
from hydro.flash_flood import predict_flash_floods
from logging_setup import setup_logging
from pipeline import assess
from risk.engine import TerrainOverrides, highest_risk_zone, score

load_dotenv()
setup_logging()

app = Flask(__name__)
app.config["STORE"] = JsonFileStore()


class InvalidQuery(Exception):
    """A request parameter is missing or malformed."""


@app.errorhandler(InvalidQuery)
def invalid_query(e):
    return {"error": str(e)}, 400


def _float_arg(name: str, required: bool = True) -> float | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        if required:
            raise InvalidQuery(f"missing query parameter '{name}'")
        return None
    try:
        value = float(raw)
    except ValueError:
        raise InvalidQuery(f"'{name}' must be a number, got {raw!r}")
    if not math.isfinite(value):
        raise InvalidQuery(f"'{name}' must be finite")
    return value


def _coords() -> tuple[float, float]:
    lat = _float_arg("lat")
    lon = _float_arg("lon")
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        raise InvalidQuery("lat/lon out of range")
    return lat, lon


# ---------------------------------------------------------------------------
# Assessment endpoints
# ---------------------------------------------------------------------------

@app.route("/assess", methods=["GET"])
def assess_location():
    text = request.args.get("location", "").strip()
    if not text:
        raise InvalidQuery("missing query parameter 'location'")

    location = resolve_location(text)
    report = assess(location["lat"], location["lon"], location["name"], store=app.config["STORE"])
    return {
        "location": location,
        "floodRisk": report.assessment.to_dict(),
        "flashFlood": report.prediction.to_dict(),
        "alert": report.alert.to_dict() if report.alert else None,
        "text": report.text,
    }


@app.route("/flood-risk", methods=["GET"])
def flood_risk():
    lat, lon = _coords()
    overrides = TerrainOverrides(
        soil_saturation=_float_arg("soilSaturation", required=False),
        slope_factor=_float_arg("slopeFactor", required=False),
        river_proximity=_float_arg("riverProximity", required=False),
        urbanization=_float_arg("urbanization", required=False),
    )
    series = fetch_weather(lat, lon, name=request.args.get("name", ""))
    basin = fetch_basin_status(lat, lon)
    return score(series, basin=basin, overrides=overrides).to_dict()


@app.route("/flash-flood", methods=["GET"])
def flash_flood():
    lat, lon = _coords()
    name = request.args.get("name", "")
    series = fetch_weather(lat, lon, name=name)
    prediction = predict_flash_floods(Location(lat=lat, lon=lon, name=name),
                                      series if series.available else None)
    return prediction.to_dict()


@app.route("/basin", methods=["GET"])
def basin():
    lat, lon = _coords()
    check = check_basin_status(lat, lon)
    return {
        "basinName": check.basin_name,
        "waterLevel": check.water_level_percent,
        "floodRisk": check.flood_risk.value,
        "lastUpdated": check.last_updated,
        "basin": check.basin.to_dict() if check.basin else None,
        "floodHazard": check.hazard.to_dict() if check.hazard else None,
    }


@app.route("/basin/dam/<dam_id>", methods=["GET"])
def basin_dam(dam_id):
    dam = get_dam(dam_id)
    if dam is None:
        return {"error": f"unknown dam '{dam_id}'"}, 404
    return {**dam.to_dict(), "lastUpdated": datetime.now(timezone.utc).isoformat()}


@app.route("/basin/river/<river_id>", methods=["GET"])
def basin_river(river_id):
    river = get_river(river_id)
    if river is None:
        return {"error": f"unknown river '{river_id}'"}, 404
    return {**river.to_dict(), "lastUpdated": datetime.now(timezone.utc).isoformat()}


# ---------------------------------------------------------------------------
# Historical events
# ---------------------------------------------------------------------------

def _date_arg(name: str) -> datetime | None:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_date(raw)
    except ValueError:
        raise InvalidQuery(f"'{name}' must be an ISO 8601 date, got {raw!r}")


@app.route("/historical-flood-events", methods=["GET"])
def historical_flood_events():
    lat, lon = _coords()
    radius = _float_arg("radius", required=False)
    radius = DEFAULT_RADIUS_KM if radius is None else radius
    if radius < 0:
        raise InvalidQuery("'radius' must not be negative")

    raw_limit = request.args.get("limit")
    try:
        limit = int(raw_limit) if raw_limit else DEFAULT_LIMIT
    except ValueError:
        raise InvalidQuery(f"'limit' must be an integer, got {raw_limit!r}")
    if limit < 0:
        raise InvalidQuery("'limit' must not be negative")

    matches = find_historical_events(
        lat, lon, radius_km=radius, limit=limit,
        start=_date_arg("startDate"), end=_date_arg("endDate"),
    )
    events = [event.to_dict(distance_km=distance) for event, distance in matches]
    return {
        "events": events,
        "total": len(events),
        "location": {"lat": lat, "lon": lon},
        "radius": radius,
    }


# ---------------------------------------------------------------------------
# Hazard maps
# ---------------------------------------------------------------------------

@app.route("/flood-hazard-maps", methods=["GET"])
def flood_hazard_maps():
    lat, lon = _coords()
    try:
        membership = check_flood_hazard_zones(lat, lon)
    except HazardDataUnavailable as e:
        return {"error": str(e)}, 503

    data = membership.to_dict()
    zone = highest_risk_zone(membership.zones) if membership.is_in_flood_zone else None
    if zone is not None:
        data["riskDescription"] = hazard_risk_description(zone.risk_level)
        data["recommendations"] = hazard_recommendations(zone.risk_level)
    return data


@app.route("/flood-hazard-maps/zone/<zone_id>", methods=["GET"])
def flood_hazard_zone(zone_id):
    zone = get_zone_details(zone_id)
    if zone is None:
        return {"error": f"unknown flood hazard zone '{zone_id}'"}, 404
    data = zone.to_dict()
    data["riskDescription"] = hazard_risk_description(zone.risk_level)
    data["recommendations"] = hazard_recommendations(zone.risk_level)
    return data


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@app.route("/alerts/settings", methods=["GET", "POST"])
def alert_settings():
    store = app.config["STORE"]
    if request.method == "GET":
        return load_settings(store).to_dict()

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InvalidQuery("expected a JSON object")
    try:
        settings = AlertSettings.from_dict(payload)
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidQuery(f"invalid alert settings: {e}")
    save_settings(store, settings)
    return settings.to_dict()


@app.route("/alerts/history", methods=["GET"])
def alert_history():
    return jsonify([record.to_dict() for record in get_alert_history(app.config["STORE"])])


@app.route("/alerts/test", methods=["POST"])
def alert_test():
    store = app.config["STORE"]
    record = send_test_alert(load_settings(store), store)
    if record is None:
        return {"error": "alerts are disabled or no channel is active"}, 409
    return record.to_dict()


@app.route("/health", methods=["GET"])
def health():
    """Simple health check."""
    return {"status": "ok"}, 200


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "0") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
