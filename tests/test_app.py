"""
Flask endpoint tests (offline). Run from repo root:  pytest tests/test_app.py
"""

import pytest

import app as app_module
from alerts.settings import JsonFileStore, MemoryStore
from data.weather import Location, WeatherSeries


def storm(lat, lon, name=""):
    return WeatherSeries(location=Location(lat, lon, name), forecast_step=24,
                         values=[20.0] * 6 + [0.0] * 18)


@pytest.fixture
def client(monkeypatch):
    for var in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_FROM_NUMBER"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(app_module, "fetch_weather", storm)
    app_module.app.config["STORE"] = MemoryStore()
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_flood_risk(client):
    resp = client.get("/flood-risk?lat=41.005&lon=39.723")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["riskLevel"] == "EXTREME"
    assert body["region"] == "KARADENIZ"
    assert body["riskScore"] > 100


def test_flood_risk_bad_params(client):
    assert client.get("/flood-risk?lat=abc&lon=32").status_code == 400
    assert client.get("/flood-risk?lon=32").status_code == 400
    assert client.get("/flood-risk?lat=95&lon=32").status_code == 400
    assert client.get("/flood-risk?lat=39&lon=32&soilSaturation=nan").status_code == 400


def test_flash_flood(client):
    body = client.get("/flash-flood?lat=41.025&lon=40.517&name=Rize").get_json()
    assert body["riskLevel"] == "EXTREME"
    assert body["affectedArea"]["center"] == {"lat": 41.025, "lon": 40.517}


def test_basin(client):
    body = client.get("/basin?lat=41.005&lon=39.723").get_json()
    assert body["basinName"] == "Eastern Black Sea Basin"
    assert body["floodRisk"] in ("LOW", "MEDIUM", "HIGH", "EXTREME")
    assert body["floodHazard"] is not None


def test_hazard_zone_details(client):
    resp = client.get("/flood-hazard-maps/zone/krd-50-1")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["recurrencePeriod"] == 50
    assert body["riskLevel"] == "EXTREME"
    assert body["recommendations"]

    assert client.get("/flood-hazard-maps/zone/unknown").status_code == 404


def test_hazard_maps(client):
    body = client.get("/flood-hazard-maps?lat=39.956&lon=32.894").get_json()
    assert "isInFloodZone" in body
    assert body["riverDistance"] is not None


def test_alert_settings_roundtrip(client):
    assert client.get("/alerts/settings").get_json()["minRiskLevel"] == "MODERATE"

    resp = client.post("/alerts/settings", json={"minRiskLevel": "HIGH", "cooldownPeriod": 30})
    assert resp.status_code == 200
    assert client.get("/alerts/settings").get_json()["minRiskLevel"] == "HIGH"

    assert client.post("/alerts/settings", json={"minRiskLevel": "NOPE"}).status_code == 400
    assert client.post("/alerts/settings", data="not json").status_code == 400


def test_test_alert_and_history(client):
    resp = client.post("/alerts/test")
    assert resp.status_code == 200
    sent = resp.get_json()
    assert sent["riskLevel"] == "MODERATE"

    history = client.get("/alerts/history").get_json()
    assert [h["id"] for h in history] == [sent["id"]]

    client.post("/alerts/settings", json={"enabled": False})
    assert client.post("/alerts/test").status_code == 409


def test_test_alert_with_corrupt_store_file(client, tmp_path):
    path = tmp_path / "floodwatch_store.json"
    path.write_text('{"alertHistory": [', encoding="utf-8")
    app_module.app.config["STORE"] = JsonFileStore(str(path))

    resp = client.post("/alerts/test")
    assert resp.status_code == 200
    history = client.get("/alerts/history").get_json()
    assert [h["id"] for h in history] == [resp.get_json()["id"]]


def test_dam_and_river_details(client):
    dam = client.get("/basin/dam/1").get_json()
    assert dam["name"] == "Ömerli Dam"
    assert dam["lastUpdated"]
    assert client.get("/basin/dam/42").status_code == 404

    river = client.get("/basin/river/5").get_json()
    assert river["name"] == "Murat Nehri"
    assert client.get("/basin/river/42").status_code == 404


def test_historical_flood_events(client):
    body = client.get("/historical-flood-events?lat=41.025&lon=40.517&radius=100").get_json()
    assert body["total"] == 2
    assert [e["id"] for e in body["events"]] == ["flood-2022-04-12", "flood-2019-08-17"]
    assert body["events"][0]["distance"] == 0
    assert body["radius"] == 100

    body = client.get("/historical-flood-events?lat=41.025&lon=40.517&radius=100"
                      "&startDate=2020-01-01&limit=5").get_json()
    assert [e["id"] for e in body["events"]] == ["flood-2022-04-12"]


def test_historical_flood_events_bad_params(client):
    base = "/historical-flood-events?lat=41.025&lon=40.517"
    assert client.get("/historical-flood-events?lat=41").status_code == 400
    assert client.get(base + "&limit=many").status_code == 400
    assert client.get(base + "&radius=-1").status_code == 400
    assert client.get(base + "&startDate=yesterday").status_code == 400
