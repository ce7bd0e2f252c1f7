"""Flood risk levels shared by the scorer, basin status and hazard zones."""

from enum import Enum


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @property
    def rank(self) -> int:
        return RISK_ORDER.index(self)


RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.EXTREME]


def max_level(*levels: RiskLevel) -> RiskLevel:
    """Most severe of *levels* (LOW when none given)."""
    return max(levels, key=lambda level: level.rank, default=RiskLevel.LOW)
