"""
Clinical Plausibility Validation Module

Enforces physiological constraints on patient inputs:
    * hard limits: values outside them are physiologically impossible
      and block evaluation
    * critical limits: values outside them are possible but unusual and
      produce an advisory warning
    * internal contradictions between related fields (e.g. HDL above
      total cholesterol), always advisory

Purely rule based. Never mutates the value it checks.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from cvdrisk.core.patient.base import FieldIssue, IssueKind, NormalizedRecord
from cvdrisk.utils import get_logger

logger = get_logger(__name__)


class ParameterType(str, Enum):
    AGE                    = "age"
    SYSTOLIC_BP            = "sbp"
    DIASTOLIC_BP           = "dbp"
    TOTAL_CHOLESTEROL_MMOL = "total_cholesterol_mmol"
    TOTAL_CHOLESTEROL_MG   = "total_cholesterol_mg"
    HDL_MMOL               = "hdl_mmol"
    HDL_MG                 = "hdl_mg"
    LDL_MMOL               = "ldl_mmol"
    LDL_MG                 = "ldl_mg"
    NON_HDL_MMOL           = "non_hdl_mmol"
    TRIGLYCERIDES_MMOL     = "triglycerides_mmol"
    TRIGLYCERIDES_MG       = "triglycerides_mg"
    LPA_MG                 = "lpa_mg"
    LPA_NMOL               = "lpa_nmol"
    APOB_G                 = "apob_g"
    APOB_MG                = "apob_mg"
    BMI                    = "bmi"
    HEIGHT_CM              = "height_cm"
    HEIGHT_IN              = "height_in"
    WEIGHT_KG              = "weight_kg"
    WEIGHT_LB              = "weight_lb"
    SBP_SD                 = "sbp_sd"
    DEPRIVATION_INDEX      = "deprivation_index"


# ── Limits ────────────────────────────────────────────────────────────────────
# "hard":     physiologically possible range (outside → invalid)
# "critical": usual clinical range (outside → warning)

PLAUSIBILITY_LIMITS: Dict[ParameterType, Dict[str, Any]] = {
    ParameterType.AGE:                    {"hard": (18, 100),  "critical": (25, 85),   "unit": "years",  "description": "Age"},
    ParameterType.SYSTOLIC_BP:            {"hard": (70, 240),  "critical": (90, 220),  "unit": "mmHg",   "description": "Systolic blood pressure"},
    ParameterType.DIASTOLIC_BP:           {"hard": (40, 140),  "critical": (60, 130),  "unit": "mmHg",   "description": "Diastolic blood pressure"},
    ParameterType.TOTAL_CHOLESTEROL_MMOL: {"hard": (1.0, 15.0), "critical": (2.5, 12.0), "unit": "mmol/L", "description": "Total cholesterol"},
    ParameterType.TOTAL_CHOLESTEROL_MG:   {"hard": (40, 580),  "critical": (100, 465), "unit": "mg/dL",  "description": "Total cholesterol"},
    ParameterType.HDL_MMOL:               {"hard": (0.5, 4.0), "critical": (0.7, 3.0), "unit": "mmol/L", "description": "HDL cholesterol"},
    ParameterType.HDL_MG:                 {"hard": (20, 155),  "critical": (27, 116),  "unit": "mg/dL",  "description": "HDL cholesterol"},
    ParameterType.LDL_MMOL:               {"hard": (0.5, 10.0), "critical": (1.0, 8.0), "unit": "mmol/L", "description": "LDL cholesterol"},
    ParameterType.LDL_MG:                 {"hard": (20, 400),  "critical": (40, 300),  "unit": "mg/dL",  "description": "LDL cholesterol"},
    ParameterType.NON_HDL_MMOL:           {"hard": (0.1, 14.0), "critical": (0.8, 10.0), "unit": "mmol/L", "description": "Non-HDL cholesterol"},
    ParameterType.TRIGLYCERIDES_MMOL:     {"hard": (0.5, 15.0), "critical": (0.8, 10.0), "unit": "mmol/L", "description": "Triglycerides"},
    ParameterType.TRIGLYCERIDES_MG:       {"hard": (40, 1300), "critical": (70, 900),  "unit": "mg/dL",  "description": "Triglycerides"},
    ParameterType.LPA_MG:                 {"hard": (0, 500),   "critical": (0, 300),   "unit": "mg/dL",  "description": "Lipoprotein(a)"},
    ParameterType.LPA_NMOL:               {"hard": (0, 1000),  "critical": (0, 750),   "unit": "nmol/L", "description": "Lipoprotein(a)"},
    ParameterType.APOB_G:                 {"hard": (0.2, 2.5), "critical": (0.4, 2.0), "unit": "g/L",    "description": "Apolipoprotein B"},
    ParameterType.APOB_MG:                {"hard": (20, 250),  "critical": (40, 200),  "unit": "mg/dL",  "description": "Apolipoprotein B"},
    ParameterType.BMI:                    {"hard": (10, 100),  "critical": (15, 60),   "unit": "kg/m²",  "description": "BMI"},
    ParameterType.HEIGHT_CM:              {"hard": (100, 250), "critical": (140, 220), "unit": "cm",     "description": "Height"},
    ParameterType.HEIGHT_IN:              {"hard": (39, 98),   "critical": (55, 87),   "unit": "inches", "description": "Height"},
    ParameterType.WEIGHT_KG:              {"hard": (30, 250),  "critical": (40, 200),  "unit": "kg",     "description": "Weight"},
    ParameterType.WEIGHT_LB:              {"hard": (66, 550),  "critical": (88, 440),  "unit": "lb",     "description": "Weight"},
    ParameterType.SBP_SD:                 {"hard": (0, 60),    "critical": (0, 40),    "unit": "mmHg",   "description": "Systolic blood pressure standard deviation"},
    ParameterType.DEPRIVATION_INDEX:      {"hard": (-10, 20),  "critical": (-7, 13),   "unit": "points", "description": "Townsend deprivation score"},
}

# Canonical record field → parameter type in canonical units
RECORD_FIELD_PARAMETERS: Dict[str, ParameterType] = {
    "age":               ParameterType.AGE,
    "systolic_bp":       ParameterType.SYSTOLIC_BP,
    "diastolic_bp":      ParameterType.DIASTOLIC_BP,
    "systolic_bp_sd":    ParameterType.SBP_SD,
    "deprivation_index": ParameterType.DEPRIVATION_INDEX,
    "total_cholesterol": ParameterType.TOTAL_CHOLESTEROL_MMOL,
    "hdl":               ParameterType.HDL_MMOL,
    "ldl":               ParameterType.LDL_MMOL,
    "non_hdl":           ParameterType.NON_HDL_MMOL,
    "triglycerides":     ParameterType.TRIGLYCERIDES_MMOL,
    "lpa":               ParameterType.LPA_MG,
    "apob":              ParameterType.APOB_G,
    "bmi":               ParameterType.BMI,
    "height_cm":         ParameterType.HEIGHT_CM,
    "weight_kg":         ParameterType.WEIGHT_KG,
}


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class PlausibilityResult:
    """Outcome of checking one value against its limits."""
    is_valid: bool
    is_warning: bool = False
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "is_warning": self.is_warning,
            "message": self.message,
        }


def check(parameter_type: Union[ParameterType, str], value: Any) -> PlausibilityResult:
    """
    Check one value against the hard and critical limits of its type.

    Unknown parameter types are accepted without comment.
    """
    try:
        ptype = ParameterType(parameter_type)
    except ValueError:
        logger.warning(f"check: no plausibility limits for parameter type '{parameter_type}'")
        return PlausibilityResult(is_valid=True)

    limits = PLAUSIBILITY_LIMITS[ptype]
    description = limits["description"]
    unit = limits["unit"]

    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return PlausibilityResult(
            is_valid=False,
            message=f"{description} must be a valid number",
        )

    hard_min, hard_max = limits["hard"]
    if value < hard_min or value > hard_max:
        return PlausibilityResult(
            is_valid=False,
            message=(
                f"{description} value of {_fmt(value)} {unit} is outside the physiologically "
                f"possible range ({_fmt(hard_min)}-{_fmt(hard_max)} {unit})"
            ),
        )

    crit_min, crit_max = limits["critical"]
    if value < crit_min or value > crit_max:
        return PlausibilityResult(
            is_valid=True,
            is_warning=True,
            message=f"{description} value of {_fmt(value)} {unit} is unusual. Please verify this value.",
        )

    return PlausibilityResult(is_valid=True)


# ── Internal contradictions ───────────────────────────────────────────────────

def check_cross_field(record: NormalizedRecord) -> List[FieldIssue]:
    """
    Flag physiologically implausible combinations in a canonical record.

    Every finding is advisory; none blocks evaluation.
    """
    issues: List[FieldIssue] = []

    def flag(fields: str, message: str) -> None:
        issues.append(FieldIssue(field=fields, kind=IssueKind.IMPLAUSIBLE_COMBINATION, message=message))

    tc, hdl, ldl = record.total_cholesterol, record.hdl, record.ldl
    sbp, dbp = record.systolic_bp, record.diastolic_bp

    if tc is not None and hdl is not None:
        if tc < hdl:
            flag("total_cholesterol,hdl", "Total cholesterol cannot be less than HDL cholesterol")
        elif hdl > 0.8 * tc:
            flag("total_cholesterol,hdl", "HDL cholesterol is unusually high relative to total cholesterol")

    if tc is not None and ldl is not None and tc < ldl:
        flag("total_cholesterol,ldl", "Total cholesterol cannot be less than LDL cholesterol")

    if sbp is not None and dbp is not None:
        if sbp < dbp:
            flag("systolic_bp,diastolic_bp", "Systolic blood pressure cannot be less than diastolic blood pressure")
        elif sbp > 180 and dbp < 90:
            flag(
                "systolic_bp,diastolic_bp",
                "Very wide pulse pressure. Please verify blood pressure readings",
            )

    if record.bmi is not None and tc is not None and record.bmi > 40 and tc < 3.0:
        flag("bmi,total_cholesterol", "Unusually low total cholesterol for BMI above 40. Please verify")

    if (
        record.age is not None and tc is not None and record.triglycerides is not None
        and record.age < 40 and tc > 8.0 and record.triglycerides < 1.0
    ):
        flag(
            "age,total_cholesterol,triglycerides",
            "Very high total cholesterol with low triglycerides at a young age suggests "
            "familial hypercholesterolemia",
        )

    return issues


# ── Record-level validation ───────────────────────────────────────────────────

@dataclass
class ValidationReport:
    """All issues found for one record, split by whether they block."""
    errors: List[FieldIssue] = field(default_factory=list)
    warnings: List[FieldIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add(self, issue: FieldIssue) -> None:
        (self.errors if issue.kind.is_blocking else self.warnings).append(issue)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
        }


class RecordValidator:
    """
    Collects every input problem of a canonical record in one pass.

    Stateless: a single instance can be shared.
    """

    def validate(
        self,
        record: NormalizedRecord,
        required: Sequence[str] = (),
        model: str = "evaluation",
    ) -> ValidationReport:
        report = ValidationReport()

        for issue in record.issues:
            report.add(issue)

        for name in record.missing(list(required)):
            report.add(FieldIssue(
                field=name,
                kind=IssueKind.MISSING_REQUIRED_FIELD,
                message=f"Required field '{name}' is missing for {model}",
            ))

        for name, ptype in RECORD_FIELD_PARAMETERS.items():
            value = getattr(record, name)
            if value is None:
                continue
            result = check(ptype, value)
            if not result.is_valid:
                report.add(FieldIssue(name, IssueKind.OUT_OF_PHYSIOLOGICAL_RANGE, result.message, value))
            elif result.is_warning:
                report.add(FieldIssue(name, IssueKind.UNUSUAL_VALUE, result.message, value))

        for issue in check_cross_field(record):
            report.add(issue)

        if report.has_errors:
            logger.warning(
                f"RecordValidator [{model}]: {len(report.errors)} blocking issue(s): "
                + ", ".join(f"{i.field}:{i.kind.value}" for i in report.errors)
            )
        return report
