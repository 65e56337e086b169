"""
Risk Layer: Base Types

Data contracts produced by the risk models and consumed by the therapy
layer and by callers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RiskModel(str, Enum):
    FRAMINGHAM = "framingham"
    QRISK3     = "qrisk3"


class RiskCategory(str, Enum):
    """
    Ten-year risk tier.

    LOW / MODERATE / HIGH come from the numeric thresholds (10 %, 20 %).
    VERY_HIGH / EXTREME are secondary-prevention overrides.
    """
    LOW       = "low"
    MODERATE  = "moderate"
    HIGH      = "high"
    VERY_HIGH = "very_high"
    EXTREME   = "extreme"


class ImpactLevel(str, Enum):
    LOW      = "low"
    MODERATE = "moderate"
    HIGH     = "high"


@dataclass(frozen=True)
class ContributingFactor:
    """One patient characteristic that raises risk. Informational only."""
    name: str
    impact: ImpactLevel
    description: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "impact": self.impact.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class RiskResult:
    """
    Output of one risk model.

    ``base_risk`` and ``modified_risk`` are 10-year percentages in
    [0, 100]. ``modified_risk`` equals ``base_risk`` when no Lp(a) value
    was supplied.
    """
    model: RiskModel
    base_risk: float
    lpa_modifier: float
    modified_risk: float
    category: RiskCategory
    contributing_factors: List[ContributingFactor] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    # Model-specific extras
    heart_age: Optional[int] = None
    healthy_person_risk: Optional[float] = None
    relative_risk: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "model": self.model.value,
            "base_risk": self.base_risk,
            "lpa_modifier": self.lpa_modifier,
            "modified_risk": self.modified_risk,
            "category": self.category.value,
            "contributing_factors": [f.to_dict() for f in self.contributing_factors],
            "warnings": list(self.warnings),
            "heart_age": self.heart_age,
            "healthy_person_risk": self.healthy_person_risk,
            "relative_risk": self.relative_risk,
        }


@dataclass(frozen=True)
class RiskContext:
    """
    Highest known 10-year risk for a patient, passed explicitly to the
    therapy layer.
    """
    highest_risk: Optional[float] = None

    @classmethod
    def from_results(cls, *results: RiskResult) -> "RiskContext":
        if not results:
            return cls()
        return cls(highest_risk=max(r.modified_risk for r in results))
