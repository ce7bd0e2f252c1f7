"""
Alert delivery.

SMS goes out through Twilio when TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and
TWILIO_FROM_NUMBER are set. Every other channel (and SMS without
credentials) is simulated: the delivery is logged and counted as sent.

Each send is recorded in the alert history of the given store.
"""

import logging
import os
import uuid
from datetime import datetime, timezone

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from alerts.policy import alert_priority, generate_alert_message, get_active_channels, should_alert
from alerts.settings import (
    AlertChannel,
    AlertRecord,
    AlertSettings,
    AlertStatus,
    KeyValueStore,
    last_alert_timestamp,
    save_alert_to_history,
)
from hydro.flash_flood import FlashFloodPrediction, FlashFloodRiskLevel

logger = logging.getLogger(__name__)

TEST_LOCATION = {"name": "Test Location", "lat": 39.925533, "lon": 32.866287}
TEST_RISK_LEVEL = FlashFloodRiskLevel.MODERATE
TEST_LEAD_TIME_MINUTES = 120


def _twilio_client() -> Client | None:
    sid = os.getenv("TWILIO_ACCOUNT_SID")
    token = os.getenv("TWILIO_AUTH_TOKEN")
    if not (sid and token and os.getenv("TWILIO_FROM_NUMBER")):
        return None
    return Client(sid, token)


def _send_sms(message: str, to_number: str) -> bool:
    client = _twilio_client()
    if client is None or not to_number:
        logger.info(f"[ALERTS] SMS (simulated) → {to_number or 'unknown'}: {message}")
        return True
    try:
        client.messages.create(body=message, from_=os.getenv("TWILIO_FROM_NUMBER"), to=to_number)
        logger.info(f"[ALERTS] SMS sent via Twilio → {to_number}")
        return True
    except TwilioRestException as e:
        logger.error(f"[ALERTS] Twilio SMS to {to_number} failed: {e}")
        return False


def _deliver(channel: AlertChannel, message: str, contact: str) -> bool:
    if channel == AlertChannel.SMS:
        return _send_sms(message, contact)
    logger.info(f"[ALERTS] {channel.value} (simulated) → {contact or 'unknown'}: {message}")
    return True


def send_alert(
    risk_level: FlashFloodRiskLevel,
    location: dict,
    lead_time_minutes: int,
    channels: list[AlertChannel],
    contact_info: dict,
    store: KeyValueStore,
) -> AlertRecord:
    """
    Send one alert over *channels* and record it.

    The record is SENT when every channel delivered, FAILED otherwise.
    """
    priority = alert_priority(risk_level)
    message = generate_alert_message(risk_level, location["name"], lead_time_minutes)
    sent_to = [f"{c.value}: {contact_info.get(c) or 'unknown'}" for c in channels]

    logger.info(f"[ALERTS] {priority.value} priority alert: {message}")
    logger.info(f"[ALERTS] Channels: {', '.join(c.value for c in channels)}")

    delivered = [_deliver(c, message, contact_info.get(c, "")) for c in channels]

    record = AlertRecord(
        id=f"alert-{uuid.uuid4().hex[:12]}",
        timestamp=datetime.now(timezone.utc).isoformat(),
        risk_level=risk_level,
        message=message,
        location=dict(location),
        channels=list(channels),
        status=AlertStatus.SENT if all(delivered) else AlertStatus.FAILED,
        priority=priority,
        sent_to=sent_to,
    )

    try:
        save_alert_to_history(store, record)
    except (OSError, ValueError) as e:
        logger.error(f"[ALERTS] Could not save alert history: {e}")

    return record


def send_test_alert(settings: AlertSettings, store: KeyValueStore) -> AlertRecord | None:
    """MODERATE test alert for a fixed location. None when nothing can be sent."""
    if not settings.enabled:
        logger.warning("[ALERTS] Alerts are disabled; test alert not sent.")
        return None

    channels = get_active_channels(settings, TEST_RISK_LEVEL)
    if not channels:
        logger.warning("[ALERTS] No active alert channel; test alert not sent.")
        return None

    contact_info = {c: settings.channels[c].contact_info for c in channels}
    return send_alert(TEST_RISK_LEVEL, TEST_LOCATION, TEST_LEAD_TIME_MINUTES, channels, contact_info, store)


def notify_if_needed(
    prediction: FlashFloodPrediction,
    location_name: str,
    settings: AlertSettings,
    store: KeyValueStore,
    now: datetime | None = None,
) -> AlertRecord | None:
    """Apply the alert policy to *prediction* and send when it passes."""
    if not should_alert(prediction.risk_level, settings, last_alert_timestamp(store), now=now):
        return None

    channels = get_active_channels(settings, prediction.risk_level)
    if not channels:
        return None

    contact_info = {c: settings.channels[c].contact_info for c in channels}
    location = {"name": location_name, "lat": prediction.center.lat, "lon": prediction.center.lon}
    return send_alert(
        prediction.risk_level, location, prediction.lead_time_minutes, channels, contact_info, store
    )
