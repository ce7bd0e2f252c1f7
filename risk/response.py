"""
Text response formatter.

Produces terminal/SMS-ready text for:
  - Location assessment (flood risk + flash flood summary)
  - Menu commands (flash flood detail, recommendations, WHY, alert status)
  - Error / help messages

Every response ends with a menu footer so the user knows their options.
"""

from alerts.policy import format_lead_time
from alerts.settings import AlertRecord
from data.basins import BasinStatus
from hydro.flash_flood import FlashFloodPrediction, FlashFloodRiskLevel
from risk.engine import FloodRiskAssessment
from risk.levels import RiskLevel


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LEVEL_EMOJI = {
    RiskLevel.EXTREME: "\U0001f534",  # 🔴
    RiskLevel.HIGH:    "\U0001f7e0",  # 🟠
    RiskLevel.MEDIUM:  "\U0001f7e1",  # 🟡
    RiskLevel.LOW:     "✅",      # ✅
}

FLASH_EMOJI = {
    FlashFloodRiskLevel.EXTREME:  "\U0001f534",
    FlashFloodRiskLevel.HIGH:     "\U0001f7e0",
    FlashFloodRiskLevel.MODERATE: "\U0001f7e1",
    FlashFloodRiskLevel.LOW:      "✅",
}

MENU_FOOTER = (
    "Reply:\n"
    "1 Risk check\n"
    "2 Flash flood\n"
    "3 What to do\n"
    "4 Alert status\n"
    "WHY details\n"
    "Or type a new location."
)

MENU_FOOTER_SHORT = "Reply 1-4, WHY, or a new location."


def _rain_line(assessment_rain_mm: float | None, hours: int) -> str:
    if assessment_rain_mm is None:
        return "Rain forecast: Unavailable"
    return f"Rain: {assessment_rain_mm:.1f}mm over the next {hours}h"


# ---------------------------------------------------------------------------
# 1) Location assessment
# ---------------------------------------------------------------------------

def format_assessment(
    assessment: FloodRiskAssessment,
    prediction: FlashFloodPrediction,
    location_name: str,
    rain_mm: float | None = None,
    forecast_hours: int = 24,
) -> str:
    """
    First reply for a location.

    HIGH/EXTREME get the top recommendations inline; LOW/MEDIUM get a short
    status and the full menu.
    """
    emoji = LEVEL_EMOJI.get(assessment.risk_level, "")
    loc = location_name.upper()

    lines = [
        f"{emoji} FLOOD RISK {assessment.risk_level.value} | {loc}",
        f"Score: {assessment.risk_score:.0f} [{assessment.region.value}]",
        _rain_line(rain_mm, forecast_hours),
        f"Flash flood: {prediction.risk_level.value} "
        f"(lead time {format_lead_time(prediction.lead_time_minutes)})",
    ]
    if assessment.is_in_flood_zone:
        lines.append("Inside a mapped flood hazard zone.")
    lines.append("")

    if assessment.risk_level in (RiskLevel.HIGH, RiskLevel.EXTREME):
        lines.append("DO NOW:")
        for i, item in enumerate(assessment.recommendations[:3], 1):
            lines.append(f"{i}. {item}")
        lines.append("")
        lines.append(MENU_FOOTER_SHORT)
    else:
        if assessment.risk_level == RiskLevel.MEDIUM:
            lines.append("Stay alert. No immediate action needed.")
            lines.append("")
        lines.append(MENU_FOOTER)

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# 2) Menu command responses
# ---------------------------------------------------------------------------

def format_flash_flood(prediction: FlashFloodPrediction, location_name: str) -> str:
    """Menu 2 — flash flood prediction detail."""
    emoji = FLASH_EMOJI.get(prediction.risk_level, "")
    lines = [
        f"{emoji} FLASH FLOOD {prediction.risk_level.value} | {location_name.upper()}",
        prediction.warning_message,
        "",
        f"Estimated runoff: {prediction.estimated_runoff_mm:.1f}mm",
        f"Peak flow: {prediction.peak_flow_m3s:.1f} m³/s",
        f"Lead time: {format_lead_time(prediction.lead_time_minutes)}",
        f"Affected radius: {prediction.radius_km:g} km",
        f"Confidence: {prediction.confidence:.0%}",
        "",
        MENU_FOOTER_SHORT,
    ]
    return "\n".join(lines)


def format_recommendations(assessment: FloodRiskAssessment, location_name: str) -> str:
    """Menu 3 — full recommendation list for the current level."""
    emoji = LEVEL_EMOJI.get(assessment.risk_level, "")
    lines = [
        f"{emoji} WHAT TO DO | {location_name.upper()} ({assessment.risk_level.value})",
        "",
    ]
    for i, item in enumerate(assessment.recommendations, 1):
        lines.append(f"{i}. {item}")
    lines.append("")
    lines.append(MENU_FOOTER_SHORT)
    return "\n".join(lines)


def format_why(
    assessment: FloodRiskAssessment,
    location_name: str,
    basin: BasinStatus | None = None,
) -> str:
    """WHY — the factors that made up the score."""
    emoji = LEVEL_EMOJI.get(assessment.risk_level, "")
    lines = [
        f"{emoji} WHY {assessment.risk_level.value} | {location_name.upper()}",
        "",
    ]
    if assessment.risk_factors:
        for factor in assessment.risk_factors:
            lines.append(f"- {factor}")
    else:
        lines.append("- No significant risk factors")

    if basin is not None:
        lines.append("")
        lines.append(f"Basin: {basin.name} ({basin.water_level_percent:.0f}% full, {basin.flood_risk.value})")

    lines.extend([
        "",
        f"Risk score: {assessment.risk_score:.1f}",
        "Thresholds: <20 LOW, 20-39 MEDIUM, 40-69 HIGH, 70+ EXTREME",
        "",
        MENU_FOOTER_SHORT,
    ])
    return "\n".join(lines)


def format_alert_check(alert: AlertRecord | None, prediction: FlashFloodPrediction) -> str:
    """Menu 4 — whether this assessment triggered an alert."""
    if alert is None:
        lines = [
            f"No alert sent for flash flood level {prediction.risk_level.value}.",
            "(Below your minimum level, quiet hours, cooldown, or alerts off.)",
        ]
    else:
        lines = [
            f"ALERT {alert.status.value} ({alert.priority.value})",
            alert.message,
            "",
            "Sent to:",
        ]
        lines.extend(f"- {target}" for target in alert.sent_to)
    lines.append("")
    lines.append(MENU_FOOTER_SHORT)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# 3) Error / help messages
# ---------------------------------------------------------------------------

def format_unknown_location(raw_input: str) -> str:
    return (
        f"Could not find \"{raw_input}\".\n"
        "Try a city name like: Ankara, Rize, Antalya, Trabzon"
    )


def format_no_session() -> str:
    return (
        "No location on file.\n"
        "Type a city name to get started.\n"
        "Example: Rize"
    )
