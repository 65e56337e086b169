"""
Framingham General Cardiovascular Risk (D'Agostino et al., 2008)

Sex-specific Cox model over log-transformed age, total cholesterol, HDL
and systolic blood pressure, plus smoking and diabetes indicators:

    L    = Σ βᵢ·xᵢ
    risk = 1 − S₀ ^ exp(L − L̄)

The published coefficients are calibrated on lipids in mg/dL, so
canonical mmol/L values are converted with the 38.67 factor before the
log transform. Validated for ages 30-74; outside that window the score is
still computed and a warning is attached.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from cvdrisk.core.patient.base import NormalizedRecord, Sex
from cvdrisk.core.patient.units import CHOLESTEROL_MGDL_PER_MMOL
from cvdrisk.utils import get_logger
from cvdrisk.utils.exceptions import MissingRequiredFieldError, OutOfPhysiologicalRangeError

logger = get_logger(__name__)

MODEL_NAME = "Framingham"

REQUIRED_FIELDS = ("age", "sex", "total_cholesterol", "hdl", "systolic_bp")

AGE_MIN = 30
AGE_MAX = 74


@dataclass(frozen=True)
class FraminghamCoefficients:
    ln_age: float
    ln_total_cholesterol: float
    ln_hdl: float
    ln_sbp_untreated: float
    ln_sbp_treated: float
    smoker: float
    diabetes: float
    mean_sum: float
    baseline_survival: float


COEFFICIENTS: Dict[Sex, FraminghamCoefficients] = {
    Sex.MALE: FraminghamCoefficients(
        ln_age=3.06117,
        ln_total_cholesterol=1.12370,
        ln_hdl=-0.93263,
        ln_sbp_untreated=1.93303,
        ln_sbp_treated=1.99881,
        smoker=0.65451,
        diabetes=0.57367,
        mean_sum=23.9802,
        baseline_survival=0.88936,
    ),
    Sex.FEMALE: FraminghamCoefficients(
        ln_age=2.32888,
        ln_total_cholesterol=1.20904,
        ln_hdl=-0.70833,
        ln_sbp_untreated=2.76157,
        ln_sbp_treated=2.82263,
        smoker=0.52873,
        diabetes=0.69154,
        mean_sum=26.1931,
        baseline_survival=0.95012,
    ),
}

# Reference profile for heart age
IDEAL_TOTAL_CHOLESTEROL = 4.0   # mmol/L
IDEAL_HDL               = 1.5   # mmol/L
IDEAL_SBP               = 110.0
HEART_AGE_SEARCH        = (20.0, 90.0)
HEART_AGE_BOUNDS        = (20, 95)
HEART_AGE_ITERATIONS    = 25
HEART_AGE_TOLERANCE     = 0.05  # percentage points


def linear_predictor(
    sex: Sex,
    age: float,
    total_cholesterol: float,
    hdl: float,
    systolic_bp: float,
    bp_treated: bool,
    smoker: bool,
    diabetic: bool,
) -> float:
    """Σ βᵢ·xᵢ with lipids in mmol/L."""
    c = COEFFICIENTS[sex]
    tc_mgdl = total_cholesterol * CHOLESTEROL_MGDL_PER_MMOL
    hdl_mgdl = hdl * CHOLESTEROL_MGDL_PER_MMOL
    sbp_beta = c.ln_sbp_treated if bp_treated else c.ln_sbp_untreated

    return (
        c.ln_age * math.log(age)
        + c.ln_total_cholesterol * math.log(tc_mgdl)
        + c.ln_hdl * math.log(hdl_mgdl)
        + sbp_beta * math.log(systolic_bp)
        + (c.smoker if smoker else 0.0)
        + (c.diabetes if diabetic else 0.0)
    )


def ten_year_risk(sex: Sex, **factors) -> float:
    """10-year CVD risk as a percentage in [0, 100]."""
    c = COEFFICIENTS[sex]
    lp = linear_predictor(sex, **factors)
    risk = 1.0 - c.baseline_survival ** math.exp(lp - c.mean_sum)
    return float(np.clip(risk * 100.0, 0.0, 100.0))


def _require(record: NormalizedRecord) -> None:
    for name in REQUIRED_FIELDS:
        if getattr(record, name) is None:
            raise MissingRequiredFieldError(name, model=MODEL_NAME)
    # log-transformed inputs
    for name in ("age", "total_cholesterol", "hdl", "systolic_bp"):
        value = getattr(record, name)
        if value <= 0:
            raise OutOfPhysiologicalRangeError(
                f"{MODEL_NAME} needs a positive {name}, got {value:g}", field=name
            )


def calculate_risk(record: NormalizedRecord) -> float:
    """
    Base 10-year risk for a validated canonical record.

    Raises:
        MissingRequiredFieldError: a model input is None.
        OutOfPhysiologicalRangeError: a log-transformed input is not positive.
    """
    _require(record)
    risk = ten_year_risk(
        record.sex,
        age=record.age,
        total_cholesterol=record.total_cholesterol,
        hdl=record.hdl,
        systolic_bp=record.systolic_bp,
        bp_treated=record.on_bp_treatment,
        smoker=record.smoking.is_current,
        diabetic=record.diabetes.is_diabetic,
    )
    logger.debug(f"Framingham: sex={record.sex.value} age={record.age:g} base_risk={risk:.3f}%")
    return risk


def age_window_warning(age: Optional[float]) -> Optional[str]:
    if age is None or AGE_MIN <= age <= AGE_MAX:
        return None
    return (
        f"Framingham is validated for ages {AGE_MIN}-{AGE_MAX}; "
        f"risk for age {age:g} is an extrapolation"
    )


def heart_age(sex: Sex, target_risk: float) -> Optional[int]:
    """
    Age at which a person with an ideal risk profile reaches ``target_risk``.

    Bisection over the search window; the answer is rounded and bounded.
    Returns None when ``target_risk`` is effectively zero.
    """
    if target_risk <= 0.01:
        return None

    low, high = HEART_AGE_SEARCH
    mid = (low + high) / 2
    for _ in range(HEART_AGE_ITERATIONS):
        mid = (low + high) / 2
        ideal = ten_year_risk(
            sex,
            age=mid,
            total_cholesterol=IDEAL_TOTAL_CHOLESTEROL,
            hdl=IDEAL_HDL,
            systolic_bp=IDEAL_SBP,
            bp_treated=False,
            smoker=False,
            diabetic=False,
        )
        if abs(ideal - target_risk) < HEART_AGE_TOLERANCE:
            break
        if ideal < target_risk:
            low = mid
        else:
            high = mid

    lower, upper = HEART_AGE_BOUNDS
    return int(min(max(round(mid), lower), upper))
