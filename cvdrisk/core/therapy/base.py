"""
Therapy Layer: Base Types

Data contracts for lipid targets, the current-therapy assessment,
recommendations and PCSK9 inhibitor coverage.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TargetRiskTier(str, Enum):
    """Risk tier that selects the lipid targets."""
    LOW          = "Low Risk"
    INTERMEDIATE = "Intermediate Risk"
    HIGH         = "High Risk"
    VERY_HIGH    = "Very High Risk"
    EXTREME      = "Extreme Risk"

    @property
    def is_high(self) -> bool:
        return self in (TargetRiskTier.HIGH, TargetRiskTier.VERY_HIGH, TargetRiskTier.EXTREME)


class Severity(str, Enum):
    INFO    = "info"
    WARNING = "warning"


class DrugClass(str, Enum):
    STATIN    = "statin"
    EZETIMIBE = "ezetimibe"
    PCSK9     = "pcsk9_inhibitor"


class RecommendationAction(str, Enum):
    INITIATE         = "initiate"
    INTENSIFY        = "intensify"
    CONSIDER         = "consider"
    CONTINUE         = "continue"
    CONTINUE_MAXIMUM = "continue_maximum"
    NOT_RECOMMENDED  = "not_recommended"
    NOT_FEASIBLE     = "not_feasible"
    ADD              = "add"


@dataclass(frozen=True)
class TherapyTargets:
    """
    Lipid goals for one patient. LDL and non-HDL in mmol/L, ApoB in g/L.

    ``lpa_adjusted_ldl`` is set only when Lp(a) ≥ 50 mg/dL.
    """
    ldl: float
    non_hdl: float
    apob: float
    percent_reduction: int
    risk_tier: TargetRiskTier
    has_elevated_lpa: bool = False
    lpa_adjusted_ldl: Optional[float] = None

    @property
    def is_treatment_threshold(self) -> bool:
        """Low tier goals are thresholds for considering medication."""
        return self.risk_tier is TargetRiskTier.LOW

    def to_dict(self) -> dict:
        return {
            "ldl": self.ldl,
            "non_hdl": self.non_hdl,
            "apob": self.apob,
            "percent_reduction": self.percent_reduction,
            "risk_tier": self.risk_tier.value,
            "has_elevated_lpa": self.has_elevated_lpa,
            "lpa_adjusted_ldl": self.lpa_adjusted_ldl,
            "is_treatment_threshold": self.is_treatment_threshold,
        }


@dataclass(frozen=True)
class TherapyAssessment:
    """Where the patient stands relative to the targets on current therapy."""
    intensity: str
    at_ldl_target: bool
    at_non_hdl_target: bool
    at_apob_target: bool
    ldl_gap: Optional[float]
    non_hdl_gap: Optional[float]
    apob_gap: Optional[float]
    can_intensify: bool
    max_statin_reached: bool
    statin_intolerance: bool
    on_maximum_therapy: bool
    has_hypertriglyceridemia: bool
    has_severe_hypertriglyceridemia: bool
    has_mixed_dyslipidemia: bool
    additional_ldl_reduction: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "intensity": self.intensity,
            "at_ldl_target": self.at_ldl_target,
            "at_non_hdl_target": self.at_non_hdl_target,
            "at_apob_target": self.at_apob_target,
            "ldl_gap": self.ldl_gap,
            "non_hdl_gap": self.non_hdl_gap,
            "apob_gap": self.apob_gap,
            "can_intensify": self.can_intensify,
            "max_statin_reached": self.max_statin_reached,
            "statin_intolerance": self.statin_intolerance,
            "on_maximum_therapy": self.on_maximum_therapy,
            "has_hypertriglyceridemia": self.has_hypertriglyceridemia,
            "has_severe_hypertriglyceridemia": self.has_severe_hypertriglyceridemia,
            "has_mixed_dyslipidemia": self.has_mixed_dyslipidemia,
            "additional_ldl_reduction": self.additional_ldl_reduction,
        }


@dataclass(frozen=True)
class DrugRecommendation:
    """One (drug class, recommendation, rationale) triple."""
    drug_class: DrugClass
    action: RecommendationAction
    recommendation: str
    rationale: str

    def to_dict(self) -> dict:
        return {
            "drug_class": self.drug_class.value,
            "action": self.action.value,
            "recommendation": self.recommendation,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class OtherTherapyNote:
    therapy: str
    rationale: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> dict:
        return {
            "therapy": self.therapy,
            "rationale": self.rationale,
            "severity": self.severity.value,
        }


@dataclass
class RecommendationSet:
    drugs: List[DrugRecommendation] = field(default_factory=list)
    other_therapies: List[OtherTherapyNote] = field(default_factory=list)
    non_pharmacological: List[str] = field(default_factory=list)
    summary: List[str] = field(default_factory=list)

    def for_drug(self, drug_class: DrugClass) -> Optional[DrugRecommendation]:
        return next((d for d in self.drugs if d.drug_class is drug_class), None)

    def to_dict(self) -> dict:
        return {
            "drugs": [d.to_dict() for d in self.drugs],
            "other_therapies": [o.to_dict() for o in self.other_therapies],
            "non_pharmacological": list(self.non_pharmacological),
            "summary": list(self.summary),
        }


@dataclass
class CoverageAssessment:
    """PCSK9 inhibitor reimbursement criteria."""
    eligible: bool = False
    criteria_met: List[str] = field(default_factory=list)
    criteria_not_met: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "eligible": self.eligible,
            "criteria_met": list(self.criteria_met),
            "criteria_not_met": list(self.criteria_not_met),
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class TherapyEvaluation:
    targets: TherapyTargets
    assessment: TherapyAssessment
    recommendations: RecommendationSet
    coverage: CoverageAssessment
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "targets": self.targets.to_dict(),
            "assessment": self.assessment.to_dict(),
            "recommendations": self.recommendations.to_dict(),
            "coverage": self.coverage.to_dict(),
            "warnings": list(self.warnings),
        }
