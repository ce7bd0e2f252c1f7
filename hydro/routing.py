"""
Flood routing step.

Single-step Muskingum-style routing of an inflow through one channel reach:

  k  = length / (0.5 * sqrt(slope))       travel time (hours)
  x  = 0.3                                 weighting factor
  c0 = (-k*x + 0.5) / (k - k*x + 0.5)
  c1 = ( k*x + 0.5) / (k - k*x + 0.5)
  c2 = ( k - k*x - 0.5) / (k - k*x + 0.5)

  outflow = c0*inflow + (c1 + c2)*initial_flow + lateral_inflow*length

c1 and c2 both weight the same initial flow: there is no previous time
step, so this is not the multi-step textbook recursion.
"""

import math
from dataclasses import dataclass

MUSKINGUM_X = 0.3


@dataclass(frozen=True)
class ChannelGeometry:
    """Static descriptor of the channel reach downstream of a location."""
    length_km: float
    slope_m_per_km: float
    roughness: float                  # Manning n (informational)
    cross_section_area_m2: float      # informational
    initial_flow_m3s: float
    lateral_inflow_m3s_per_km: float

    def __post_init__(self):
        for name in ("length_km", "slope_m_per_km", "roughness", "cross_section_area_m2",
                     "initial_flow_m3s", "lateral_inflow_m3s_per_km"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")
        if self.length_km <= 0:
            raise ValueError(f"length_km must be positive, got {self.length_km}")
        if self.slope_m_per_km <= 0:
            raise ValueError(f"slope_m_per_km must be positive, got {self.slope_m_per_km}")


def travel_time_hours(geometry: ChannelGeometry) -> float:
    return geometry.length_km / (0.5 * math.sqrt(geometry.slope_m_per_km))


def muskingum_coefficients(k: float, x: float = MUSKINGUM_X) -> tuple[float, float, float]:
    """Return (c0, c1, c2) for travel time *k* and weighting factor *x*."""
    denominator = k - k * x + 0.5
    c0 = (-k * x + 0.5) / denominator
    c1 = (k * x + 0.5) / denominator
    c2 = (k - k * x - 0.5) / denominator
    return c0, c1, c2


def route(geometry: ChannelGeometry, inflow_m3s: float) -> float:
    """Route *inflow_m3s* through the reach. Result is clamped at 0."""
    c0, c1, c2 = muskingum_coefficients(travel_time_hours(geometry))
    lateral_effect = geometry.lateral_inflow_m3s_per_km * geometry.length_km

    outflow = (
        c0 * inflow_m3s
        + c1 * geometry.initial_flow_m3s
        + c2 * geometry.initial_flow_m3s
        + lateral_effect
    )
    if math.isnan(outflow):
        return 0.0
    return max(0.0, outflow)
