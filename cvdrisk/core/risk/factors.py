"""
Contributing Factor Rules

Lists the patient characteristics that push 10-year risk up, with a
coarse impact level. Shown alongside a RiskResult; never feeds back into
any score.

Rule ordering follows the order factors are shown to the clinician:
demographics, lifestyle, measurements, conditions, medications, Lp(a).
"""
from __future__ import annotations

from typing import Callable, List, Optional

from cvdrisk.core.patient.base import DiabetesStatus, NormalizedRecord, Sex, SmokingStatus

from .base import ContributingFactor, ImpactLevel

# ── Thresholds ────────────────────────────────────────────────────────────────

AGE_ADVANCED      = 65
AGE_ELEVATED      = 55
BMI_OBESE         = 30
BMI_OVERWEIGHT    = 25
SBP_SEVERE        = 160
SBP_HYPERTENSIVE  = 140
RATIO_HIGH        = 6.0
RATIO_ELEVATED    = 4.5
LPA_VERY_HIGH     = 180
LPA_HIGH          = 50
LPA_BORDERLINE    = 30

Rule = Callable[[NormalizedRecord], Optional[ContributingFactor]]


def _factor(name: str, impact: ImpactLevel, description: str) -> ContributingFactor:
    return ContributingFactor(name=name, impact=impact, description=description)


def rule_age(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.age is None:
        return None
    if r.age >= AGE_ADVANCED:
        return _factor("Advanced age", ImpactLevel.HIGH, f"Age {r.age:g} years")
    if r.age >= AGE_ELEVATED:
        return _factor("Age", ImpactLevel.MODERATE, f"Age {r.age:g} years")
    return None


def rule_smoking(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.smoking is SmokingStatus.NONE:
        return None
    impact = {
        SmokingStatus.HEAVY: ImpactLevel.HIGH,
        SmokingStatus.MODERATE: ImpactLevel.MODERATE,
    }.get(r.smoking, ImpactLevel.LOW)
    label = "Ex-smoker" if r.smoking is SmokingStatus.EX else f"{r.smoking.value.capitalize()} smoker"
    return _factor("Smoking", impact, label)


def rule_bmi(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.bmi is None:
        return None
    if r.bmi >= BMI_OBESE:
        return _factor("Obesity", ImpactLevel.MODERATE, f"BMI {r.bmi:.1f} kg/m²")
    if r.bmi >= BMI_OVERWEIGHT:
        return _factor("Overweight", ImpactLevel.LOW, f"BMI {r.bmi:.1f} kg/m²")
    return None


def rule_blood_pressure(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.systolic_bp is None:
        return None
    if r.systolic_bp >= SBP_SEVERE:
        return _factor("Severe hypertension", ImpactLevel.HIGH, f"Systolic BP {r.systolic_bp:g} mmHg")
    if r.systolic_bp >= SBP_HYPERTENSIVE:
        return _factor("Hypertension", ImpactLevel.MODERATE, f"Systolic BP {r.systolic_bp:g} mmHg")
    return None


def rule_cholesterol_ratio(r: NormalizedRecord) -> Optional[ContributingFactor]:
    ratio = r.cholesterol_ratio
    if ratio is None:
        return None
    if ratio >= RATIO_HIGH:
        return _factor("High cholesterol ratio", ImpactLevel.HIGH, f"Total/HDL ratio {ratio:.1f}")
    if ratio >= RATIO_ELEVATED:
        return _factor("Elevated cholesterol ratio", ImpactLevel.MODERATE, f"Total/HDL ratio {ratio:.1f}")
    return None


def rule_diabetes(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.diabetes is DiabetesStatus.TYPE_1:
        return _factor("Type 1 diabetes", ImpactLevel.HIGH, "Diagnosed type 1 diabetes")
    if r.diabetes is DiabetesStatus.TYPE_2:
        return _factor("Type 2 diabetes", ImpactLevel.HIGH, "Diagnosed type 2 diabetes")
    return None


def _flag_rule(attr: str, name: str, impact: ImpactLevel, description: str) -> Rule:
    def rule(r: NormalizedRecord) -> Optional[ContributingFactor]:
        return _factor(name, impact, description) if getattr(r, attr) else None
    rule.__name__ = f"rule_{attr}"
    return rule


def rule_erectile_dysfunction(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.sex is Sex.MALE and r.erectile_dysfunction:
        return _factor("Erectile dysfunction", ImpactLevel.MODERATE, "Diagnosed erectile dysfunction")
    return None


def rule_lpa(r: NormalizedRecord) -> Optional[ContributingFactor]:
    if r.lpa is None:
        return None
    if r.lpa >= LPA_VERY_HIGH:
        impact = ImpactLevel.HIGH
    elif r.lpa >= LPA_HIGH:
        impact = ImpactLevel.MODERATE
    elif r.lpa >= LPA_BORDERLINE:
        impact = ImpactLevel.LOW
    else:
        return None
    return _factor("Elevated Lp(a)", impact, f"Lp(a) {r.lpa:g} mg/dL")


FACTOR_RULES: List[Rule] = [
    rule_age,
    rule_smoking,
    rule_bmi,
    rule_blood_pressure,
    rule_cholesterol_ratio,
    rule_diabetes,
    _flag_rule("family_history_cvd", "Family history", ImpactLevel.MODERATE,
               "Angina or heart attack in a first-degree relative under 60"),
    _flag_rule("atrial_fibrillation", "Atrial fibrillation", ImpactLevel.HIGH, "Diagnosed atrial fibrillation"),
    _flag_rule("chronic_kidney_disease", "Chronic kidney disease", ImpactLevel.HIGH,
               "Chronic kidney disease stage 3, 4 or 5"),
    _flag_rule("rheumatoid_arthritis", "Rheumatoid arthritis", ImpactLevel.MODERATE,
               "Diagnosed rheumatoid arthritis"),
    _flag_rule("systemic_lupus", "Systemic lupus erythematosus", ImpactLevel.MODERATE, "Diagnosed SLE"),
    _flag_rule("migraine", "Migraine", ImpactLevel.LOW, "History of migraine"),
    _flag_rule("severe_mental_illness", "Severe mental illness", ImpactLevel.LOW,
               "Schizophrenia, bipolar disorder or moderate/severe depression"),
    rule_erectile_dysfunction,
    _flag_rule("atypical_antipsychotics", "Atypical antipsychotic medication", ImpactLevel.LOW,
               "Current atypical antipsychotic use"),
    _flag_rule("corticosteroids", "Corticosteroid use", ImpactLevel.MODERATE,
               "Regular oral corticosteroid use"),
    rule_lpa,
]


def identify_contributing_factors(record: NormalizedRecord) -> List[ContributingFactor]:
    """Run every rule and return the factors that apply, in rule order."""
    factors = []
    for rule in FACTOR_RULES:
        factor = rule(record)
        if factor is not None:
            factors.append(factor)
    return factors
