"""
Risk Layer

Ten-year cardiovascular risk models, the Lp(a) modifier, category
classification and contributing-factor rules.
"""
from .base import (
    ContributingFactor,
    ImpactLevel,
    RiskCategory,
    RiskContext,
    RiskModel,
    RiskResult,
)
from .classifier import classify
from .factors import identify_contributing_factors
from .lpa import apply_lpa_modifier, lpa_modifier

__all__ = [
    "ContributingFactor",
    "ImpactLevel",
    "RiskCategory",
    "RiskContext",
    "RiskModel",
    "RiskResult",
    "apply_lpa_modifier",
    "classify",
    "identify_contributing_factors",
    "lpa_modifier",
]
