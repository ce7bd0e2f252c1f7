"""
Alert settings, alert records, and the key-value store they live in.

The store is anything with get(key) / set(key, value) holding JSON-ready
values. Two are provided:
  MemoryStore    — process-local dict (tests, single request)
  JsonFileStore  — one JSON document on disk (CLI, Flask app)

Keys:
  alertSettings  — the AlertSettings dict
  alertHistory   — list of AlertRecord dicts, newest first, max 100
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from hydro.flash_flood import FlashFloodRiskLevel

logger = logging.getLogger(__name__)

SETTINGS_KEY = "alertSettings"
HISTORY_KEY = "alertHistory"
HISTORY_LIMIT = 100

DEFAULT_STORE_PATH = os.getenv(
    "FLOODWATCH_STORE_PATH",
    os.path.join(os.path.dirname(os.path.dirname(__file__)), "floodwatch_store.json"),
)

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


class AlertChannel(str, Enum):
    SMS = "SMS"
    EMAIL = "EMAIL"
    PUSH = "PUSH"
    PHONE_CALL = "PHONE_CALL"
    EMERGENCY_SERVICES = "EMERGENCY_SERVICES"


class AlertStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    ACKNOWLEDGED = "ACKNOWLEDGED"


class AlertPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def parse_hhmm(value: str) -> int:
    """'HH:MM' → minutes since midnight."""
    match = _HHMM.match(value.strip())
    if not match:
        raise ValueError(f"expected a time as HH:MM, got {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


@dataclass(frozen=True)
class ChannelConfig:
    enabled: bool
    contact_info: str = ""


@dataclass(frozen=True)
class QuietHours:
    enabled: bool
    start: str                       # "HH:MM"
    end: str                         # "HH:MM"
    override_for_critical: bool = False

    def __post_init__(self):
        parse_hhmm(self.start)
        parse_hhmm(self.end)


def _default_channels() -> dict:
    return {
        AlertChannel.SMS: ChannelConfig(enabled=True),
        AlertChannel.EMAIL: ChannelConfig(enabled=True),
        AlertChannel.PUSH: ChannelConfig(enabled=True, contact_info="browser"),
        AlertChannel.PHONE_CALL: ChannelConfig(enabled=False),
        AlertChannel.EMERGENCY_SERVICES: ChannelConfig(enabled=False, contact_info="112"),
    }


@dataclass(frozen=True)
class AlertSettings:
    enabled: bool = True
    min_risk_level: FlashFloodRiskLevel = FlashFloodRiskLevel.MODERATE
    channels: dict = field(default_factory=_default_channels)   # AlertChannel → ChannelConfig
    quiet_hours: QuietHours | None = None
    notification_radius_km: float = 25
    cooldown_period_minutes: float = 60

    def to_dict(self) -> dict:
        data = {
            "enabled": self.enabled,
            "minRiskLevel": self.min_risk_level.value,
            "channels": {
                channel.value: {"enabled": cfg.enabled, "contactInfo": cfg.contact_info}
                for channel, cfg in self.channels.items()
            },
            "notificationRadius": self.notification_radius_km,
            "cooldownPeriod": self.cooldown_period_minutes,
        }
        if self.quiet_hours is not None:
            data["quietHours"] = {
                "enabled": self.quiet_hours.enabled,
                "start": self.quiet_hours.start,
                "end": self.quiet_hours.end,
                "overrideForCritical": self.quiet_hours.override_for_critical,
            }
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> "AlertSettings":
        """Build settings from a stored/posted dict. Missing keys take defaults."""
        defaults = cls()
        channels = dict(defaults.channels)
        for name, cfg in raw.get("channels", {}).items():
            channels[AlertChannel(name)] = ChannelConfig(
                enabled=bool(cfg.get("enabled", False)),
                contact_info=str(cfg.get("contactInfo", "")),
            )

        quiet = raw.get("quietHours")
        quiet_hours = None
        if quiet:
            quiet_hours = QuietHours(
                enabled=bool(quiet.get("enabled", False)),
                start=quiet.get("start", "22:00"),
                end=quiet.get("end", "07:00"),
                override_for_critical=bool(quiet.get("overrideForCritical", False)),
            )

        return cls(
            enabled=bool(raw.get("enabled", defaults.enabled)),
            min_risk_level=FlashFloodRiskLevel(raw.get("minRiskLevel", defaults.min_risk_level.value)),
            channels=channels,
            quiet_hours=quiet_hours,
            notification_radius_km=float(raw.get("notificationRadius", defaults.notification_radius_km)),
            cooldown_period_minutes=float(raw.get("cooldownPeriod", defaults.cooldown_period_minutes)),
        )


@dataclass(frozen=True)
class AlertRecord:
    id: str
    timestamp: str                    # ISO 8601
    risk_level: FlashFloodRiskLevel
    message: str
    location: dict                    # {"name", "lat", "lon"}
    channels: list[AlertChannel]
    status: AlertStatus
    priority: AlertPriority
    sent_to: list[str] = field(default_factory=list)
    acknowledged_at: str | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "timestamp": self.timestamp,
            "riskLevel": self.risk_level.value,
            "message": self.message,
            "location": dict(self.location),
            "channels": [c.value for c in self.channels],
            "status": self.status.value,
            "priority": self.priority.value,
            "sentTo": list(self.sent_to),
        }
        if self.acknowledged_at:
            data["acknowledgedAt"] = self.acknowledged_at
        return data

    @classmethod
    def from_dict(cls, raw: dict) -> "AlertRecord":
        return cls(
            id=raw["id"],
            timestamp=raw["timestamp"],
            risk_level=FlashFloodRiskLevel(raw["riskLevel"]),
            message=raw["message"],
            location=dict(raw["location"]),
            channels=[AlertChannel(c) for c in raw.get("channels", [])],
            status=AlertStatus(raw["status"]),
            priority=AlertPriority(raw["priority"]),
            sent_to=list(raw.get("sentTo", [])),
            acknowledged_at=raw.get("acknowledgedAt"),
        )


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict | None = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """Whole-document JSON store. Every set() atomically replaces the file."""

    def __init__(self, path: str = DEFAULT_STORE_PATH):
        self.path = path

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object in {self.path}, got {type(data).__name__}")
        return data

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._load()
        except ValueError as e:
            logger.error(f"[ALERTS] Store {self.path} is unreadable, starting a new document: {e}")
            data = {}
        data[key] = value

        # Readers only ever see a complete document
        fd, tmp_path = tempfile.mkstemp(prefix=".floodwatch-", suffix=".json",
                                        dir=os.path.dirname(os.path.abspath(self.path)))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


# ---------------------------------------------------------------------------
# Settings + history
# ---------------------------------------------------------------------------

def load_settings(store: KeyValueStore) -> AlertSettings:
    """Stored settings, or the defaults when nothing usable is stored."""
    try:
        raw = store.get(SETTINGS_KEY)
        return AlertSettings.from_dict(raw) if raw else AlertSettings()
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.error(f"[ALERTS] Could not load alert settings, using defaults: {e}")
        return AlertSettings()


def save_settings(store: KeyValueStore, settings: AlertSettings) -> None:
    store.set(SETTINGS_KEY, settings.to_dict())


def get_alert_history(store: KeyValueStore) -> list[AlertRecord]:
    """Alert history, newest first."""
    try:
        raw = store.get(HISTORY_KEY) or []
        return [AlertRecord.from_dict(r) for r in raw]
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.error(f"[ALERTS] Could not read alert history: {e}")
        return []


def save_alert_to_history(store: KeyValueStore, record: AlertRecord) -> None:
    """Prepend *record*, keeping the HISTORY_LIMIT most recent entries."""
    history = [r.to_dict() for r in get_alert_history(store)]
    history.insert(0, record.to_dict())
    store.set(HISTORY_KEY, history[:HISTORY_LIMIT])


def last_alert_timestamp(store: KeyValueStore) -> str | None:
    history = get_alert_history(store)
    return history[0].timestamp if history else None
