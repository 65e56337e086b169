"""
Risk Classifier

Maps a 10-year risk percentage to a category. Thresholds are inclusive on
the upper tier: exactly 10.0 is moderate, exactly 20.0 is high.
"""
from typing import Optional

from cvdrisk.core.patient.base import PreventionCategory, PreventionContext, SecondaryDetail

from .base import RiskCategory

MODERATE_THRESHOLD = 10.0
HIGH_THRESHOLD     = 20.0


def classify(risk_percent: float, prevention: Optional[PreventionContext] = None) -> RiskCategory:
    """
    Category for ``risk_percent``.

    Secondary prevention overrides the numeric tiers: recent ACS or
    multivessel disease is EXTREME, any other established ASCVD is
    VERY_HIGH.
    """
    if prevention is not None and prevention.category is PreventionCategory.SECONDARY:
        if prevention.secondary_detail in (SecondaryDetail.RECENT_ACS, SecondaryDetail.MULTIVESSEL):
            return RiskCategory.EXTREME
        return RiskCategory.VERY_HIGH

    if risk_percent < MODERATE_THRESHOLD:
        return RiskCategory.LOW
    if risk_percent < HIGH_THRESHOLD:
        return RiskCategory.MODERATE
    return RiskCategory.HIGH
