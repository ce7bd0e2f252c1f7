"""
Flash flood classifier + end-to-end prediction pipeline.

Pipeline (predict_flash_floods):
  1. extract_rainfall(series)      → intensity, duration, antecedent, base flow
  2. estimate_runoff(sample)       → runoff depth (mm)
  3. route(geometry, inflow)       → routed peak flow (m³/s), informational
  4. classify(runoff, intensity)   → FlashFloodPrediction

Classification compares two ratios against the warning thresholds:
  ffg_ratio       = runoff / flash_flood_guidance (30 mm)
  intensity_ratio = intensity / rainfall_threshold (20 mm/hr)

  EXTREME   ffg_ratio > 1.2  or intensity_ratio > 2.0
  HIGH      ffg_ratio > 0.9  or intensity_ratio > 1.5
  MODERATE  ffg_ratio > 0.7  or intensity_ratio > 1.0
  LOW       otherwise
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from data.weather import Location, WeatherSeries
from hydro.routing import ChannelGeometry, route
from hydro.runoff import LandCover, RainfallSample, estimate_runoff

logger = logging.getLogger(__name__)

SOURCE = "Integrated rainfall-runoff / routing / flash flood guidance model"
FALLBACK_SOURCE = SOURCE + " (fallback)"

# Divisor that turns a runoff depth (mm) into a channel inflow (m³/s)
RUNOFF_TO_FLOW = 3.6

# Summary window over the start of the forecast series (hours)
RAINFALL_WINDOW_HOURS = 6


class FlashFloodRiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @property
    def rank(self) -> int:
        return FLASH_FLOOD_LEVEL_ORDER.index(self)


FLASH_FLOOD_LEVEL_ORDER = [
    FlashFloodRiskLevel.LOW,
    FlashFloodRiskLevel.MODERATE,
    FlashFloodRiskLevel.HIGH,
    FlashFloodRiskLevel.EXTREME,
]


@dataclass(frozen=True)
class WarningThresholds:
    moderate: float = 0.7
    high: float = 0.9
    extreme: float = 1.2


@dataclass(frozen=True)
class FlashFloodParams:
    rainfall_threshold: float = 20.0     # mm/hr
    flash_flood_guidance: float = 30.0   # mm
    warning_thresholds: WarningThresholds = field(default_factory=WarningThresholds)


@dataclass(frozen=True)
class TerrainProfile:
    """Terrain around a location. Defaults describe a generic urban catchment."""
    land_cover: str = LandCover.URBAN.value
    slope_percent: float = 5.0
    impervious_area_percent: float = 60.0
    soil_moisture: float = 0.5
    channel_length_km: float = 10.0
    channel_slope_m_per_km: float = 2.0
    channel_roughness: float = 0.035
    cross_section_area_m2: float = 20.0
    basin_response_time_hours: float = 2.0


@dataclass(frozen=True)
class RainfallSummary:
    intensity: float     # mm/hr
    duration: float      # hours
    antecedent: float    # mm
    initial_flow: float  # m³/s


DEFAULT_RAINFALL = RainfallSummary(intensity=10.0, duration=2.0, antecedent=20.0, initial_flow=2.0)


@dataclass(frozen=True)
class FlashFloodPrediction:
    risk_level: FlashFloodRiskLevel
    confidence: float
    lead_time_minutes: int
    estimated_runoff_mm: float
    warning_message: str
    center: Location
    radius_km: float
    timestamp: datetime
    valid_until: datetime
    source: str
    peak_flow_m3s: float = 0.0

    def to_dict(self) -> dict:
        return {
            "riskLevel": self.risk_level.value,
            "confidence": self.confidence,
            "leadTime": self.lead_time_minutes,
            "estimatedRunoff": self.estimated_runoff_mm,
            "peakFlow": self.peak_flow_m3s,
            "warningMessage": self.warning_message,
            "affectedArea": {
                "center": {"lat": self.center.lat, "lon": self.center.lon},
                "radiusKm": self.radius_km,
            },
            "timestamp": self.timestamp.isoformat(),
            "validUntil": self.valid_until.isoformat(),
            "source": self.source,
        }


# level → (confidence, radius_km, warning message), most severe first
LEVEL_PROFILES = {
    FlashFloodRiskLevel.EXTREME: (
        0.9, 15,
        "EMERGENCY! Sudden and severe flash flooding expected. Move to high ground immediately!",
    ),
    FlashFloodRiskLevel.HIGH: (
        0.8, 12,
        "URGENT! High flash flood risk. Move away from stream beds and go to a safe area.",
    ),
    FlashFloodRiskLevel.MODERATE: (
        0.7, 8,
        "CAUTION! Flash flood risk present. Stay away from stream beds and follow updates.",
    ),
    FlashFloodRiskLevel.LOW: (
        0.5, 5,
        "Flash flood risk is low.",
    ),
}


def _risk_level(ffg_ratio: float, intensity_ratio: float, thresholds: WarningThresholds) -> FlashFloodRiskLevel:
    if ffg_ratio > thresholds.extreme or intensity_ratio > 2.0:
        return FlashFloodRiskLevel.EXTREME
    elif ffg_ratio > thresholds.high or intensity_ratio > 1.5:
        return FlashFloodRiskLevel.HIGH
    elif ffg_ratio > thresholds.moderate or intensity_ratio > 1.0:
        return FlashFloodRiskLevel.MODERATE
    else:
        return FlashFloodRiskLevel.LOW


def classify(
    runoff_mm: float,
    rainfall_intensity: float,
    basin_response_time_hours: float,
    location: Location,
    params: FlashFloodParams | None = None,
    now: datetime | None = None,
) -> FlashFloodPrediction:
    """
    Classify flash flood risk from a runoff depth and rainfall intensity.

    Lead time = response_time * 60 * (1 - ffg_ratio / 2), floored at 0.
    """
    params = params or FlashFloodParams()
    now = now or datetime.now(timezone.utc)

    ffg_ratio = runoff_mm / params.flash_flood_guidance
    intensity_ratio = rainfall_intensity / params.rainfall_threshold

    level = _risk_level(ffg_ratio, intensity_ratio, params.warning_thresholds)
    confidence, radius_km, message = LEVEL_PROFILES[level]

    lead_time = max(0.0, basin_response_time_hours * 60 * (1 - ffg_ratio / 2))

    return FlashFloodPrediction(
        risk_level=level,
        confidence=confidence,
        lead_time_minutes=int(round(lead_time)),
        estimated_runoff_mm=runoff_mm,
        warning_message=message,
        center=location,
        radius_km=radius_km,
        timestamp=now,
        valid_until=now + timedelta(minutes=lead_time),
        source=SOURCE,
    )


def extract_rainfall(series: WeatherSeries | None) -> RainfallSummary:
    """
    Summarise the first hours of a precipitation series.

    intensity  = window total / 6
    duration   = number of wet hours in the window (at least 1)
    antecedent = 2 × window total
    base flow  = 0.1 × window total
    """
    values = getattr(series, "values", None)
    if values is None:
        return DEFAULT_RAINFALL

    recent = [float(v) for v in values[:RAINFALL_WINDOW_HOURS]]
    total = sum(recent)
    wet_hours = len([v for v in recent if v > 0])

    return RainfallSummary(
        intensity=total / RAINFALL_WINDOW_HOURS,
        duration=wet_hours or 1,
        antecedent=total * 2,
        initial_flow=total * 0.1,
    )


def fallback_prediction(location: Location, now: datetime | None = None) -> FlashFloodPrediction:
    """Conservative LOW prediction used whenever the pipeline cannot run."""
    now = now or datetime.now(timezone.utc)
    return FlashFloodPrediction(
        risk_level=FlashFloodRiskLevel.LOW,
        confidence=0.3,
        lead_time_minutes=120,
        estimated_runoff_mm=0.0,
        warning_message="Flash flood prediction unavailable. Low risk assumed by default.",
        center=location,
        radius_km=5,
        timestamp=now,
        valid_until=now + timedelta(minutes=120),
        source=FALLBACK_SOURCE,
    )


def predict_flash_floods(
    location: Location,
    series: WeatherSeries | None,
    terrain: TerrainProfile | None = None,
    params: FlashFloodParams | None = None,
    now: datetime | None = None,
) -> FlashFloodPrediction:
    """
    Run runoff → routing → classification for *location*.

    Never raises: any failure yields fallback_prediction().
    """
    terrain = terrain or TerrainProfile()
    try:
        rainfall = extract_rainfall(series)

        runoff = estimate_runoff(RainfallSample(
            intensity=rainfall.intensity,
            duration_hours=rainfall.duration,
            antecedent_rainfall_mm=rainfall.antecedent,
            soil_moisture=terrain.soil_moisture,
            land_cover=terrain.land_cover,
            slope_percent=terrain.slope_percent,
            impervious_area_percent=terrain.impervious_area_percent,
        ))

        inflow = runoff / RUNOFF_TO_FLOW
        peak_flow = route(ChannelGeometry(
            length_km=terrain.channel_length_km,
            slope_m_per_km=terrain.channel_slope_m_per_km,
            roughness=terrain.channel_roughness,
            cross_section_area_m2=terrain.cross_section_area_m2,
            initial_flow_m3s=rainfall.initial_flow,
            lateral_inflow_m3s_per_km=inflow / terrain.channel_length_km,
        ), inflow)

        prediction = classify(
            runoff,
            rainfall.intensity,
            terrain.basin_response_time_hours,
            location,
            params=params,
            now=now,
        )
        logger.info(
            f"[FLASH] ({location.lat}, {location.lon}) → {prediction.risk_level.value} "
            f"(runoff={runoff:.1f}mm, intensity={rainfall.intensity:.1f}mm/h, "
            f"peak={peak_flow:.1f}m³/s)"
        )
        return dataclasses.replace(prediction, peak_flow_m3s=peak_flow)

    except Exception as e:
        logger.error(f"[FLASH] Prediction failed, using fallback: {e}")
        return fallback_prediction(location, now=now)
