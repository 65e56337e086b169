"""
Treatment Recommendation Engine

Deterministic decision tree over (risk tier, current therapy, gap to
target). One rule per drug class; each returns at most one
recommendation and appends its line to the clinician summary.

Branch order (first match wins):
    statin     none & tolerant → initiate by tier / consider for LDL ≥ 5.0
               → intensify → not feasible (complete intolerance)
               → max tolerated (partial) → continue (at target)
               → continue maximum
    ezetimibe  add when not at target on a statin or statin-intolerant
    PCSK9      consider when not at target on statin/intolerance + ezetimibe
               in a high tier
"""
from __future__ import annotations

from typing import List, Optional

from cvdrisk.core.patient.base import NormalizedRecord, PreventionCategory, Statin, StatinIntolerance

from .base import (
    DrugClass,
    DrugRecommendation,
    OtherTherapyNote,
    RecommendationAction,
    RecommendationSet,
    Severity,
    TargetRiskTier,
    TherapyAssessment,
    TherapyTargets,
)

LDL_VERY_HIGH             = 5.0   # mmol/L, possible familial hypercholesterolemia
PCSK9_SECONDARY_LDL_MIN   = 2.5
PCSK9_PRIMARY_LDL_MIN     = 3.5

NON_PHARMACOLOGICAL = (
    "Therapeutic lifestyle changes (Mediterranean or DASH diet)",
    "Regular physical activity (150+ minutes/week of moderate activity)",
    "Smoking cessation for all smokers",
    "Weight management targeting BMI <25 kg/m²",
)


def _at_least(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


def _statin(action: RecommendationAction, recommendation: str, rationale: str) -> DrugRecommendation:
    return DrugRecommendation(DrugClass.STATIN, action, recommendation, rationale)


# ── Statin ────────────────────────────────────────────────────────────────────

def recommend_statin(
    record: NormalizedRecord,
    assessment: TherapyAssessment,
    targets: TherapyTargets,
    summary: List[str],
) -> DrugRecommendation:
    therapy = record.therapy
    on_statin = therapy.statin is not Statin.NONE

    if not on_statin and not assessment.statin_intolerance:
        if targets.risk_tier.is_high:
            summary.append("Start high-intensity statin (atorvastatin 40-80 mg or rosuvastatin 20-40 mg)")
            return _statin(
                RecommendationAction.INITIATE,
                "Initiate high-intensity statin therapy",
                "High-intensity statin therapy is recommended for high-risk patients to achieve "
                "≥50% LDL-C reduction",
            )
        if targets.risk_tier is TargetRiskTier.INTERMEDIATE:
            summary.append(
                "Start moderate-intensity statin (atorvastatin 10-20 mg, rosuvastatin 5-10 mg, or equivalent)"
            )
            return _statin(
                RecommendationAction.INITIATE,
                "Initiate moderate-intensity statin therapy",
                "Moderate-intensity statin therapy is recommended for intermediate-risk patients to "
                "achieve 30-50% LDL-C reduction",
            )
        if _at_least(record.ldl, LDL_VERY_HIGH):
            summary.append("Consider statin therapy due to very high LDL-C")
            return _statin(
                RecommendationAction.CONSIDER,
                "Consider statin therapy despite low risk due to very high LDL-C",
                "LDL-C ≥5.0 mmol/L may indicate familial hypercholesterolemia and warrants "
                "consideration of statin therapy regardless of risk category",
            )
        summary.append("Focus on lifestyle modifications")
        return _statin(
            RecommendationAction.NOT_RECOMMENDED,
            "Statin therapy not routinely recommended for low-risk patients",
            "For low-risk patients, lifestyle modification is the primary intervention",
        )

    if (
        on_statin and assessment.can_intensify
        and not assessment.at_ldl_target and not assessment.statin_intolerance
    ):
        summary.append(f"Increase {therapy.statin.value} dose to achieve greater LDL-C reduction")
        return _statin(
            RecommendationAction.INTENSIFY,
            "Intensify current statin therapy",
            "Intensifying statin therapy can provide additional LDL-C reduction to help reach target",
        )

    if therapy.intolerance is StatinIntolerance.COMPLETE:
        summary.append("Statin-independent therapy required due to documented statin intolerance")
        return _statin(
            RecommendationAction.NOT_FEASIBLE,
            "Statin therapy not feasible due to documented intolerance",
            "Alternative lipid-lowering strategies are required for patients with complete statin intolerance",
        )

    if therapy.intolerance is StatinIntolerance.PARTIAL:
        summary.append("Maintain current tolerated statin dose")
        return _statin(
            RecommendationAction.CONTINUE_MAXIMUM,
            "Continue maximum tolerated statin dose",
            "Maintain the highest tolerated statin dose to achieve as much LDL-C reduction as possible",
        )

    if assessment.at_ldl_target:
        summary.append("Continue current statin therapy")
        return _statin(
            RecommendationAction.CONTINUE,
            "Continue current statin therapy",
            "Current therapy is effectively reaching the target LDL-C level",
        )

    summary.append("Continue maximum statin therapy")
    return _statin(
        RecommendationAction.CONTINUE_MAXIMUM,
        "Continue maximum statin therapy",
        "Maximum statin therapy should be maintained while considering add-on therapies",
    )


# ── Ezetimibe ─────────────────────────────────────────────────────────────────

def recommend_ezetimibe(
    record: NormalizedRecord,
    assessment: TherapyAssessment,
    summary: List[str],
) -> Optional[DrugRecommendation]:
    therapy = record.therapy
    on_statin = therapy.statin is not Statin.NONE

    if not therapy.ezetimibe:
        if not assessment.at_ldl_target and (on_statin or assessment.statin_intolerance):
            summary.append("Add ezetimibe 10 mg daily")
            return DrugRecommendation(
                DrugClass.EZETIMIBE,
                RecommendationAction.ADD,
                "Add ezetimibe therapy",
                "Ezetimibe can provide an additional 15-25% LDL-C reduction",
            )
        return None

    if assessment.at_ldl_target:
        rationale = "Current combination therapy is effectively reaching the target LDL-C level"
    else:
        rationale = "Ezetimibe should be continued while considering additional lipid-lowering options"
    return DrugRecommendation(
        DrugClass.EZETIMIBE, RecommendationAction.CONTINUE, "Continue ezetimibe therapy", rationale
    )


# ── PCSK9 inhibitor ───────────────────────────────────────────────────────────

def recommend_pcsk9(
    record: NormalizedRecord,
    assessment: TherapyAssessment,
    targets: TherapyTargets,
    summary: List[str],
) -> Optional[DrugRecommendation]:
    therapy = record.therapy

    if therapy.pcsk9_inhibitor:
        return DrugRecommendation(
            DrugClass.PCSK9,
            RecommendationAction.CONTINUE,
            "Continue PCSK9 inhibitor therapy",
            "Continue current therapy and reassess lipid levels at next follow-up",
        )

    on_statin = therapy.statin is not Statin.NONE
    eligible_path = (
        not assessment.at_ldl_target
        and therapy.ezetimibe
        and (on_statin or assessment.statin_intolerance)
        and targets.risk_tier.is_high
    )
    if not eligible_path:
        return None

    category = record.prevention.category
    if category is PreventionCategory.SECONDARY and _at_least(record.ldl, PCSK9_SECONDARY_LDL_MIN):
        summary.append("Consider PCSK9 inhibitor for secondary prevention")
        return DrugRecommendation(
            DrugClass.PCSK9,
            RecommendationAction.CONSIDER,
            "Consider PCSK9 inhibitor therapy",
            "PCSK9 inhibitors can provide an additional 50-60% LDL-C reduction in patients with "
            "established ASCVD not at target despite maximum tolerated statin plus ezetimibe",
        )
    if category is PreventionCategory.PRIMARY and _at_least(record.ldl, PCSK9_PRIMARY_LDL_MIN):
        summary.append("Consider PCSK9 inhibitor if FH is confirmed")
        return DrugRecommendation(
            DrugClass.PCSK9,
            RecommendationAction.CONSIDER,
            "Consider PCSK9 inhibitor therapy if familial hypercholesterolemia is confirmed",
            "PCSK9 inhibitors may be considered for primary prevention in patients with confirmed FH "
            "and LDL-C ≥3.5 mmol/L despite maximum tolerated statin plus ezetimibe",
        )
    return None


# ── Other therapies ───────────────────────────────────────────────────────────

def recommend_other_therapies(
    assessment: TherapyAssessment,
    targets: TherapyTargets,
    summary: List[str],
) -> List[OtherTherapyNote]:
    notes: List[OtherTherapyNote] = []

    if assessment.has_severe_hypertriglyceridemia:
        notes.append(OtherTherapyNote(
            "Consider fibrate therapy",
            "Severe hypertriglyceridemia (>5.0 mmol/L) increases risk of pancreatitis and may "
            "benefit from fibrate therapy",
            Severity.WARNING,
        ))
        summary.append("Fibrate therapy for severe hypertriglyceridemia")
    elif assessment.has_hypertriglyceridemia and assessment.has_mixed_dyslipidemia:
        notes.append(OtherTherapyNote(
            "Consider fenofibrate as add-on therapy",
            "Mixed dyslipidemia with elevated triglycerides and low HDL-C may benefit from add-on "
            "fenofibrate therapy after statin optimization",
            Severity.INFO,
        ))

    if targets.has_elevated_lpa:
        notes.append(OtherTherapyNote(
            "More aggressive LDL-C targets recommended",
            "Elevated Lp(a) is an independent risk factor that warrants more aggressive LDL-C reduction",
            Severity.WARNING,
        ))
        summary.append("More aggressive LDL-C targets due to elevated Lp(a)")
        notes.append(OtherTherapyNote(
            "Consider family screening for Lp(a)",
            "Elevated Lp(a) is largely genetically determined and first-degree relatives should be screened",
            Severity.INFO,
        ))

    return notes


def generate_recommendations(
    record: NormalizedRecord,
    assessment: TherapyAssessment,
    targets: TherapyTargets,
) -> RecommendationSet:
    summary: List[str] = []
    drugs = [recommend_statin(record, assessment, targets, summary)]
    for rec in (
        recommend_ezetimibe(record, assessment, summary),
        recommend_pcsk9(record, assessment, targets, summary),
    ):
        if rec is not None:
            drugs.append(rec)

    return RecommendationSet(
        drugs=drugs,
        other_therapies=recommend_other_therapies(assessment, targets, summary),
        non_pharmacological=list(NON_PHARMACOLOGICAL),
        summary=summary,
    )
