"""
Therapy Gap Assessor

Compares the patient's current lipids and lipid-lowering therapy with the
resolved targets.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from cvdrisk.core.patient.base import (
    CurrentTherapy,
    NormalizedRecord,
    Statin,
    StatinIntensity,
    StatinIntolerance,
)
from cvdrisk.utils import get_logger

from .base import TherapyAssessment, TherapyTargets

logger = get_logger(__name__)

# Doses (mg/day) at which each intensity starts. Doses below the first
# entry are low intensity.
STATIN_DOSE_TIERS: Dict[Statin, Tuple[Tuple[float, StatinIntensity], ...]] = {
    Statin.ATORVASTATIN: ((10, StatinIntensity.MODERATE), (40, StatinIntensity.HIGH)),
    Statin.ROSUVASTATIN: ((5, StatinIntensity.MODERATE), (20, StatinIntensity.HIGH)),
    Statin.SIMVASTATIN:  ((10, StatinIntensity.LOW), (20, StatinIntensity.MODERATE)),
    Statin.PRAVASTATIN:  ((10, StatinIntensity.LOW), (40, StatinIntensity.MODERATE)),
    Statin.LOVASTATIN:   ((20, StatinIntensity.LOW), (40, StatinIntensity.MODERATE)),
    Statin.FLUVASTATIN:  ((20, StatinIntensity.LOW), (80, StatinIntensity.MODERATE)),
    Statin.PITAVASTATIN: ((1, StatinIntensity.LOW), (2, StatinIntensity.MODERATE)),
}

MAX_STATIN_DOSE_MG: Dict[Statin, float] = {
    Statin.ATORVASTATIN: 80,
    Statin.ROSUVASTATIN: 40,
    Statin.SIMVASTATIN:  40,
    Statin.PRAVASTATIN:  80,
    Statin.LOVASTATIN:   40,
    Statin.FLUVASTATIN:  80,
    Statin.PITAVASTATIN: 4,
}

TRIGLYCERIDES_HIGH   = 2.0   # mmol/L
TRIGLYCERIDES_SEVERE = 5.0
HDL_LOW              = 1.0

INTENSITY_NONE    = "none"
INTENSITY_UNKNOWN = "unknown"


def statin_intensity(therapy: CurrentTherapy) -> str:
    """
    Intensity label of the current statin regimen.

    An explicit label wins; otherwise it is derived from the dose table.
    """
    if therapy.statin is Statin.NONE:
        return INTENSITY_NONE
    if therapy.statin_intensity is not None:
        return therapy.statin_intensity.value
    if therapy.statin_dose_mg is None:
        return INTENSITY_UNKNOWN

    intensity = StatinIntensity.LOW
    for threshold, tier in STATIN_DOSE_TIERS[therapy.statin]:
        if therapy.statin_dose_mg >= threshold:
            intensity = tier
    return intensity.value


def max_statin_reached(therapy: CurrentTherapy) -> bool:
    if therapy.statin is Statin.NONE or therapy.statin_dose_mg is None:
        return False
    return therapy.statin_dose_mg >= MAX_STATIN_DOSE_MG[therapy.statin]


def _gap(current: Optional[float], target: float) -> Tuple[bool, Optional[float]]:
    if current is None:
        return False, None
    return current <= target, round(current - target, 3)


def assess_current_therapy(record: NormalizedRecord, targets: TherapyTargets) -> TherapyAssessment:
    therapy = record.therapy
    intensity = statin_intensity(therapy)

    at_ldl, ldl_gap = _gap(record.ldl, targets.ldl)
    at_non_hdl, non_hdl_gap = _gap(record.non_hdl, targets.non_hdl)
    at_apob, apob_gap = _gap(record.apob, targets.apob)

    max_reached = max_statin_reached(therapy)
    intolerant = therapy.intolerance is not StatinIntolerance.NO
    complete_intolerance = therapy.intolerance is StatinIntolerance.COMPLETE
    on_max = (max_reached or complete_intolerance) and therapy.ezetimibe

    trig = record.triglycerides
    hyper_tg = trig is not None and trig > TRIGLYCERIDES_HIGH
    severe_tg = trig is not None and trig > TRIGLYCERIDES_SEVERE
    mixed = (
        hyper_tg
        and record.ldl is not None and record.ldl > targets.ldl
        and record.hdl is not None and record.hdl < HDL_LOW
    )

    additional = None if record.ldl is None else 0.0
    if ldl_gap is not None and ldl_gap > 0:
        additional = round(ldl_gap / record.ldl * 100, 1)

    assessment = TherapyAssessment(
        intensity=intensity,
        at_ldl_target=at_ldl,
        at_non_hdl_target=at_non_hdl,
        at_apob_target=at_apob,
        ldl_gap=ldl_gap,
        non_hdl_gap=non_hdl_gap,
        apob_gap=apob_gap,
        can_intensify=(
            intensity in (StatinIntensity.LOW.value, StatinIntensity.MODERATE.value)
            and not max_reached
        ),
        max_statin_reached=max_reached,
        statin_intolerance=intolerant,
        on_maximum_therapy=on_max,
        has_hypertriglyceridemia=hyper_tg,
        has_severe_hypertriglyceridemia=severe_tg,
        has_mixed_dyslipidemia=mixed,
        additional_ldl_reduction=additional,
    )
    logger.debug(
        f"assess_current_therapy: intensity={intensity} at_ldl={at_ldl} "
        f"ldl_gap={ldl_gap} on_max={on_max}"
    )
    return assessment
