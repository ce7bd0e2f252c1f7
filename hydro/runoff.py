"""
Rainfall-runoff estimator.

Turns a rainfall snapshot plus land/soil parameters into a surface-runoff
depth (mm), using a simplified Curve Number approach:

  CN   = base(land cover) + antecedent adjustment + soil moisture * 15
  S    = 25400 / CN - 254        (potential maximum retention, mm)
  P    = intensity * duration    (total rainfall, mm)
  Ia   = 0.2 * S                 (initial abstraction, mm)
  Q    = (P - Ia)^2 / (P - Ia + S)   when P > Ia, else 0

This is a derivative of the SCS method, not the published tables.
"""

import math
from dataclasses import dataclass
from enum import Enum


class LandCover(str, Enum):
    URBAN = "urban"
    FOREST = "forest"
    AGRICULTURAL = "agricultural"
    BARREN = "barren"


# CN bounds. The lower bound keeps S finite and positive.
CN_MIN = 30.0
CN_MAX = 99.5
DEFAULT_CN = 75.0


@dataclass(frozen=True)
class RainfallSample:
    """One rainfall + terrain snapshot for a single evaluation."""
    intensity: float                # mm/hr
    duration_hours: float
    antecedent_rainfall_mm: float   # rainfall over the previous days
    soil_moisture: float            # 0-1
    land_cover: str                 # LandCover value; anything else uses DEFAULT_CN
    slope_percent: float
    impervious_area_percent: float  # 0-100

    def __post_init__(self):
        for name in ("intensity", "duration_hours", "antecedent_rainfall_mm",
                     "soil_moisture", "slope_percent", "impervious_area_percent"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")


def _base_curve_number(sample: RainfallSample) -> float:
    cover = sample.land_cover
    if cover == LandCover.URBAN:
        return 90 + sample.impervious_area_percent / 10
    elif cover == LandCover.FOREST:
        return 55 + sample.slope_percent / 5
    elif cover == LandCover.AGRICULTURAL:
        return 70 + sample.slope_percent / 4
    elif cover == LandCover.BARREN:
        return 80 + sample.slope_percent / 3
    else:
        return DEFAULT_CN


def curve_number(sample: RainfallSample) -> float:
    """Adjusted curve number for *sample*, clamped to [CN_MIN, CN_MAX]."""
    cn = _base_curve_number(sample)
    cn = cn + (sample.antecedent_rainfall_mm / 10) * (1 - cn / 100)
    cn = cn + sample.soil_moisture * 15
    return max(CN_MIN, min(cn, CN_MAX))


def estimate_runoff(sample: RainfallSample) -> float:
    """Surface runoff depth in mm. Never raises for a valid sample."""
    cn = curve_number(sample)

    retention = 25400 / cn - 254
    rainfall = sample.intensity * sample.duration_hours
    initial_abstraction = 0.2 * retention

    if rainfall <= initial_abstraction:
        return 0.0
    excess = rainfall - initial_abstraction
    return excess ** 2 / (excess + retention)
