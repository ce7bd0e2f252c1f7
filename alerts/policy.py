"""
Alert policy.

Decides whether a flash flood risk level warrants a notification and over
which channels. An alert goes out only when all of these hold:

  1. alerts are enabled
  2. risk level ≥ the configured minimum (LOW < MODERATE < HIGH < EXTREME)
  3. we are outside quiet hours, unless the level is EXTREME and quiet
     hours allow critical overrides
  4. the cooldown since the last alert has elapsed

Channel gating: EMERGENCY_SERVICES only for EXTREME, PHONE_CALL only for
HIGH or EXTREME; every other enabled channel always.
"""

from datetime import datetime, timezone

from alerts.settings import AlertChannel, AlertPriority, AlertSettings, QuietHours, parse_hhmm
from hydro.flash_flood import FlashFloodRiskLevel

PRIORITY_BY_LEVEL = {
    FlashFloodRiskLevel.EXTREME: AlertPriority.CRITICAL,
    FlashFloodRiskLevel.HIGH: AlertPriority.HIGH,
    FlashFloodRiskLevel.MODERATE: AlertPriority.MEDIUM,
    FlashFloodRiskLevel.LOW: AlertPriority.LOW,
}


def is_quiet_hours(quiet_hours: QuietHours | None, now: datetime) -> bool:
    """
    True when *now* (local wall-clock) falls in the quiet window.

    Both ends are inclusive. A window whose end is before its start wraps
    past midnight.
    """
    if quiet_hours is None or not quiet_hours.enabled:
        return False

    current = now.hour * 60 + now.minute
    start = parse_hhmm(quiet_hours.start)
    end = parse_hhmm(quiet_hours.end)

    if end > start:
        return start <= current <= end
    return current >= start or current <= end


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def should_alert(
    risk_level: FlashFloodRiskLevel,
    settings: AlertSettings,
    last_alert_timestamp: str | datetime | None = None,
    now: datetime | None = None,
) -> bool:
    now = now or datetime.now().astimezone()

    if not settings.enabled:
        return False

    if risk_level.rank < settings.min_risk_level.rank:
        return False

    if is_quiet_hours(settings.quiet_hours, now):
        critical_override = (settings.quiet_hours.override_for_critical
                             and risk_level == FlashFloodRiskLevel.EXTREME)
        if not critical_override:
            return False

    if last_alert_timestamp and settings.cooldown_period_minutes > 0:
        last = _parse_timestamp(last_alert_timestamp)
        current = now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)
        elapsed_minutes = (current - last).total_seconds() / 60
        if elapsed_minutes < settings.cooldown_period_minutes:
            return False

    return True


def get_active_channels(settings: AlertSettings, risk_level: FlashFloodRiskLevel) -> list[AlertChannel]:
    active = []
    for channel, config in settings.channels.items():
        if not config.enabled:
            continue
        if channel == AlertChannel.EMERGENCY_SERVICES and risk_level != FlashFloodRiskLevel.EXTREME:
            continue
        if channel == AlertChannel.PHONE_CALL and risk_level not in (
            FlashFloodRiskLevel.HIGH, FlashFloodRiskLevel.EXTREME
        ):
            continue
        active.append(channel)
    return active


def alert_priority(risk_level: FlashFloodRiskLevel) -> AlertPriority:
    return PRIORITY_BY_LEVEL.get(risk_level, AlertPriority.LOW)


def format_lead_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes"
    return f"{minutes // 60} hours {minutes % 60} minutes"


def generate_alert_message(risk_level: FlashFloodRiskLevel, location_name: str, lead_time_minutes: int) -> str:
    lead = format_lead_time(lead_time_minutes)

    if risk_level == FlashFloodRiskLevel.EXTREME:
        return (
            f"EMERGENCY ALERT: Very severe flash flooding expected in {location_name} "
            f"within about {lead}. Move to a safe area IMMEDIATELY!"
        )
    elif risk_level == FlashFloodRiskLevel.HIGH:
        return (
            f"URGENT ALERT: High flash flood risk in {location_name} within about {lead}. "
            f"Move away from stream beds and go to a safe area."
        )
    elif risk_level == FlashFloodRiskLevel.MODERATE:
        return (
            f"WARNING: Flash flooding possible in {location_name} within about {lead}. "
            f"Keep away from stream beds and follow updates."
        )
    else:
        return (
            f"INFO: Flash flood risk in {location_name} is low. "
            f"Take normal precautions and keep an eye on the weather."
        )
