#!/usr/bin/env python3
"""
Test harness for the flood risk pipeline.

Exercises the formatter and menu handling, then the full pipeline end-to-end
with a canned forecast (no network). Run from repo root:

    pytest tests/test_pipeline.py
    python -m tests.test_pipeline                          # run all tests
    python -m tests.test_pipeline --coord 41.025 40.517 "Rize"   # live APIs
"""

import random
import sys

# ---------------------------------------------------------------------------
# Test coordinates
# ---------------------------------------------------------------------------
TEST_CASES = [
    # (lat, lon, name)
    (41.025, 40.517, "Rize"),
    (39.956, 32.894, "Ankara"),
    (36.897, 30.713, "Antalya"),
    (41.015, 28.979, "İstanbul"),
]


def section(title: str):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def canned_weather(total_mm: float):
    """Weather fetcher stub: *total_mm* spread over the first 6 hours."""
    from data.weather import Location, WeatherSeries

    def fetch(lat, lon, name=""):
        values = [total_mm / 6] * 6 + [0.0] * 18
        return WeatherSeries(location=Location(lat, lon, name), forecast_step=24,
                             values=values, temperatures=[12.0] * 24)

    return fetch


def run_assess(total_mm: float, lat=41.025, lon=40.517, name="Rize", store=None):
    from alerts.settings import MemoryStore
    from pipeline import assess

    return assess(lat, lon, name, store=store or MemoryStore(),
                  rng=random.Random(3), weather_fetcher=canned_weather(total_mm))


# ---------------------------------------------------------------------------
# 1. Response formatting: danger vs calm + menu footer
# ---------------------------------------------------------------------------
def test_response_format():
    section("TEST: Response Formatting (offline)")
    from data.weather import Location
    from hydro.flash_flood import classify
    from risk.engine import FloodRiskAssessment, recommendations_for
    from risk.levels import RiskLevel
    from risk.regions import Region
    from risk.response import format_assessment

    rize = Location(41.025, 40.517, "Rize")

    extreme = FloodRiskAssessment(
        risk_level=RiskLevel.EXTREME, risk_score=85.0, risk_factors=["120.0mm of rain"],
        recommendations=recommendations_for(RiskLevel.EXTREME, True),
        region=Region.DOGU_ANADOLU, is_in_flood_zone=True,
    )
    text = format_assessment(extreme, classify(40.0, 0.0, 2.0, rize), "Rize", rain_mm=120.0)
    assert "FLOOD RISK EXTREME | RIZE" in text
    assert "DO NOW:" in text
    assert "flood hazard zone" in text
    assert "Reply" in text
    print(f"  EXTREME response: {len(text)} chars — has DO NOW + menu ✓")

    low = FloodRiskAssessment(
        risk_level=RiskLevel.LOW, risk_score=8.0, risk_factors=[],
        recommendations=recommendations_for(RiskLevel.LOW), region=Region.IC_ANADOLU,
    )
    text = format_assessment(low, classify(0.0, 0.0, 2.0, rize), "Ankara")
    assert "LOW" in text
    assert "DO NOW:" not in text
    assert "1 Risk check" in text
    assert "Rain forecast: Unavailable" in text
    print(f"  LOW response: {len(text)} chars — has full menu, no actions ✓")

    print("  PASS")


# ---------------------------------------------------------------------------
# 2. Command detection
# ---------------------------------------------------------------------------
def test_command_detection():
    section("TEST: Command Detection (offline)")
    from pipeline import is_menu_command

    menu_inputs = ["1", "2", "3", "4", "WHY", "why", " 2 ", " WHY ", "flash", "TODO", "alert", "risk"]
    location_inputs = ["Rize", "İstanbul", "Trabzon ili", "123", "hello", ""]

    for inp in menu_inputs:
        assert is_menu_command(inp), f"Should be menu: '{inp}'"
        print(f"  '{inp:10s}' → menu command ✓")

    for inp in location_inputs:
        assert not is_menu_command(inp), f"Should NOT be menu: '{inp}'"
        print(f"  '{inp:10s}' → location ✓")

    print("  PASS")


# ---------------------------------------------------------------------------
# 3. Full pipeline with a canned storm
# ---------------------------------------------------------------------------
def test_full_pipeline_storm():
    section("TEST: Full Pipeline (canned 120mm storm over Rize)")
    from alerts.settings import MemoryStore, get_alert_history
    from hydro.flash_flood import FlashFloodRiskLevel
    from risk.levels import RiskLevel

    store = MemoryStore()
    report = run_assess(120.0, store=store)

    print(f"  Risk: {report.assessment.risk_level.value} (score={report.assessment.risk_score:.1f})")
    print(f"  Flash flood: {report.prediction.risk_level.value}")

    assert report.assessment.risk_level == RiskLevel.EXTREME
    assert report.prediction.risk_level == FlashFloodRiskLevel.EXTREME
    assert report.basin is not None
    assert report.hazard is not None
    assert report.alert is not None
    assert get_alert_history(store)[0].id == report.alert.id
    assert "RIZE" in report.text
    print("  PASS")


def test_full_pipeline_dry():
    section("TEST: Full Pipeline (dry forecast over Ankara)")
    from hydro.flash_flood import FlashFloodRiskLevel

    report = run_assess(0.0, lat=39.956, lon=32.894, name="Ankara")
    assert report.prediction.risk_level == FlashFloodRiskLevel.LOW
    assert report.alert is None
    assert report.assessment.risk_score < 70
    print("  PASS")


def test_unavailable_forecast_uses_defaults():
    section("TEST: Full Pipeline (forecast unavailable)")
    from alerts.settings import MemoryStore
    from data.weather import Location, WeatherSeries
    from hydro.flash_flood import FALLBACK_SOURCE
    from pipeline import assess

    def down(lat, lon, name=""):
        return WeatherSeries(location=Location(lat, lon, name), forecast_step=24, values=[], available=False)

    report = assess(39.956, 32.894, "Ankara", store=MemoryStore(), rng=random.Random(1), weather_fetcher=down)
    assert "Rain forecast: Unavailable" in report.text
    assert report.prediction.source != FALLBACK_SOURCE
    print("  PASS")


# ---------------------------------------------------------------------------
# 4. Menu commands (offline)
# ---------------------------------------------------------------------------
def test_menu_commands():
    section("TEST: Menu Commands (offline)")
    from pipeline import handle_menu

    report = run_assess(120.0)
    name = "Rize"

    commands = {
        "1": "FLOOD RISK",
        "risk": "FLOOD RISK",
        "2": "FLASH FLOOD",
        "flash": "FLASH FLOOD",
        "3": "WHAT TO DO",
        "todo": "WHAT TO DO",
        "4": "ALERT SENT",
        "alert": "ALERT SENT",
        "why": "WHY",
        "WHY": "WHY",
    }

    for cmd, expected_text in commands.items():
        reply = handle_menu(cmd, report, name)
        found = expected_text.lower() in reply.lower()
        status = "PASS" if found else f"FAIL (missing '{expected_text}')"
        print(f"  Menu '{cmd:5s}' → {status}")
        assert found, f"Expected '{expected_text}' in response to '{cmd}'"

    reply = handle_menu("2", None, None)
    assert "No location" in reply
    print("  Menu no-session → asks for location ✓")

    print("  PASS")


# ---------------------------------------------------------------------------
# 5. Live pipeline (network): only from the command line
# ---------------------------------------------------------------------------
def live_pipeline():
    section("LIVE: Full Pipeline (Open-Meteo)")
    from alerts.settings import MemoryStore
    from pipeline import assess

    for lat, lon, name in TEST_CASES:
        report = assess(lat, lon, name, store=MemoryStore())
        print(f"  {name:12s} → {report.assessment.risk_level.value:8s} "
              f"(score={report.assessment.risk_score:5.1f}, "
              f"rain={report.series.total_precipitation:.1f}mm, "
              f"flash={report.prediction.risk_level.value})")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main():
    args = sys.argv[1:]

    if "--coord" in args:
        from alerts.settings import MemoryStore
        from pipeline import assess

        idx = args.index("--coord")
        lat, lon, name = float(args[idx+1]), float(args[idx+2]), args[idx+3]
        section(f"Single coordinate: {name} ({lat}, {lon})")
        print(assess(lat, lon, name, store=MemoryStore()).text)
        return

    tests = [
        ("Response Format", test_response_format),
        ("Command Detection", test_command_detection),
        ("Pipeline Storm", test_full_pipeline_storm),
        ("Pipeline Dry", test_full_pipeline_dry),
        ("Pipeline Forecast Down", test_unavailable_forecast_uses_defaults),
        ("Menu Commands", test_menu_commands),
    ]
    if "--live" in args:
        tests.append(("Live Pipeline", live_pipeline))

    passed = failed = 0
    for name, fn in tests:
        try:
            fn()
            passed += 1
        except Exception as e:
            print(f"  FAIL: {e}")
            failed += 1

    section("SUMMARY")
    print(f"  Passed: {passed}")
    print(f"  Failed: {failed}")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
