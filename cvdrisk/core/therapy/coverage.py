"""
PCSK9 Inhibitor Coverage Assessor

Evaluates reimbursement criteria and records each one as met or not met.
Eligibility needs both an empty not-met list and the final
prevention/LDL/maximum-therapy gate; neither alone is sufficient.
"""
from __future__ import annotations

from cvdrisk.core.patient.base import (
    NormalizedRecord,
    PreventionCategory,
    SecondaryDetail,
    TherapyDuration,
)
from cvdrisk.utils import get_logger

from .base import CoverageAssessment, TherapyAssessment

logger = get_logger(__name__)

SECONDARY_LDL_MIN = 2.0   # mmol/L
PRIMARY_LDL_MIN   = 3.5

QUALIFYING_DURATIONS = (TherapyDuration.THREE_TO_SIX, TherapyDuration.OVER_6_MONTHS)


def final_gate(record: NormalizedRecord, assessment: TherapyAssessment) -> bool:
    """Prevention category, LDL threshold and maximum therapy together."""
    ldl = record.ldl
    if ldl is None or not assessment.on_maximum_therapy:
        return False
    if record.prevention.category is PreventionCategory.SECONDARY:
        return ldl >= SECONDARY_LDL_MIN
    return ldl >= PRIMARY_LDL_MIN


def assess_pcsk9_coverage(record: NormalizedRecord, assessment: TherapyAssessment) -> CoverageAssessment:
    therapy = record.therapy
    prevention = record.prevention
    ldl = record.ldl
    coverage = CoverageAssessment()

    if therapy.pcsk9_inhibitor:
        coverage.notes.append("Patient is currently on PCSK9 inhibitor therapy")

    if prevention.category is PreventionCategory.SECONDARY:
        coverage.criteria_met.append("Secondary prevention")
        if ldl is not None and ldl >= SECONDARY_LDL_MIN:
            coverage.criteria_met.append("LDL-C ≥2.0 mmol/L")
        else:
            coverage.criteria_not_met.append("LDL-C must be ≥2.0 mmol/L for secondary prevention coverage")
        if prevention.secondary_detail is SecondaryDetail.RECENT_ACS:
            coverage.criteria_met.append("Recent MI/ACS (higher priority for coverage)")
        elif prevention.secondary_detail is SecondaryDetail.MULTIVESSEL:
            coverage.criteria_met.append("Multi-vessel disease (higher priority for coverage)")
    elif ldl is not None and ldl >= PRIMARY_LDL_MIN:
        coverage.criteria_met.append("Primary prevention with very high LDL-C")
        coverage.notes.append("Documentation of familial hypercholesterolemia with DLCN score ≥6 would be required")
    else:
        coverage.criteria_not_met.append(
            "Does not meet primary coverage criteria (secondary prevention or primary prevention "
            "with LDL-C ≥3.5 mmol/L and documented FH)"
        )

    if assessment.on_maximum_therapy:
        coverage.criteria_met.append("On maximum tolerated lipid-lowering therapy")
    else:
        if not assessment.statin_intolerance:
            coverage.criteria_not_met.append("Must be on maximum tolerated statin therapy")
        if not therapy.ezetimibe:
            coverage.criteria_not_met.append("Must be on ezetimibe in addition to maximum tolerated statin")

    if therapy.max_therapy_duration in QUALIFYING_DURATIONS:
        coverage.criteria_met.append("≥3 months on maximum tolerated therapy")
    else:
        coverage.criteria_not_met.append("Must be on maximum tolerated therapy for at least 3 months")

    if assessment.statin_intolerance:
        if therapy.intolerance_type and therapy.intolerance_type.strip():
            coverage.criteria_met.append("Documented statin intolerance")
        else:
            coverage.criteria_not_met.append("Statin intolerance must be properly documented")

    coverage.eligible = not coverage.criteria_not_met and final_gate(record, assessment)
    logger.debug(
        f"assess_pcsk9_coverage: eligible={coverage.eligible} "
        f"met={len(coverage.criteria_met)} not_met={len(coverage.criteria_not_met)}"
    )
    return coverage
