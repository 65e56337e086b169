"""
Cardiovascular Risk Engine

Entry point that ties the layers together:

    PatientRecord ─ normalize ─ validate ─┬─ Framingham ─┐
                                          ├─ QRISK3 ─────┴─ Lp(a) modifier ─ classify → RiskResult
                                          └─ targets ─ assessment ─ recommendations ─ coverage
                                                                               → TherapyEvaluation

Every input problem is collected before any model runs; a record with a
blocking problem raises InputValidationError carrying the whole batch.

Usage:
    from cvdrisk import evaluate_framingham, assess_therapy, RiskContext

    result = evaluate_framingham(record)
    therapy = assess_therapy(record, RiskContext.from_results(result))
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from cvdrisk.core.patient import FieldIssue, IssueKind, NormalizedRecord, PatientRecord, normalize
from cvdrisk.core.risk import (
    RiskContext,
    RiskModel,
    RiskResult,
    apply_lpa_modifier,
    classify,
    framingham,
    identify_contributing_factors,
    lpa_modifier,
    qrisk3,
)
from cvdrisk.core.therapy import (
    TherapyEvaluation,
    assess_current_therapy,
    assess_pcsk9_coverage,
    determine_targets,
    generate_recommendations,
)
from cvdrisk.core.validation import ParameterType, PlausibilityResult, RecordValidator, ValidationReport, check
from cvdrisk.utils import InputValidationError, get_logger

logger = get_logger(__name__)

RecordLike = Union[PatientRecord, Mapping[str, Any]]


class CardiovascularRiskEngine:
    """
    Scores 10-year cardiovascular risk and evaluates lipid-lowering therapy.

    Stateless: safe to share between threads and concurrent requests.
    """

    def __init__(self):
        self._validator = RecordValidator()

    # ------------------------------------------------------------------
    # Input preparation
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(record: RecordLike) -> PatientRecord:
        if isinstance(record, PatientRecord):
            return record
        return PatientRecord.model_validate(record)

    def prepare(
        self,
        record: RecordLike,
        required: Sequence[str] = (),
        model: str = "evaluation",
    ) -> Tuple[NormalizedRecord, ValidationReport]:
        """
        Normalise and validate ``record``.

        Raises:
            InputValidationError: at least one blocking issue was found.
        """
        normalized = normalize(self._coerce(record))
        report = self._validator.validate(normalized, required=required, model=model)
        if report.has_errors:
            raise InputValidationError(report.errors, details={"model": model})
        return normalized, report

    # ------------------------------------------------------------------
    # Risk models
    # ------------------------------------------------------------------

    @staticmethod
    def _warnings(
        report: ValidationReport,
        record: NormalizedRecord,
        age_warning: Optional[str],
    ) -> List[str]:
        """Warning messages of ``report`` plus the model age-window warning."""
        if age_warning:
            report.add(FieldIssue("age", IssueKind.OUTSIDE_MODEL_RANGE, age_warning, record.age))
        return [i.message for i in report.warnings]

    @staticmethod
    def _result(
        model: RiskModel,
        record: NormalizedRecord,
        base_risk: float,
        warnings: List[str],
        **extras,
    ) -> RiskResult:
        modified = apply_lpa_modifier(base_risk, record.lpa)
        return RiskResult(
            model=model,
            base_risk=base_risk,
            lpa_modifier=lpa_modifier(record.lpa),
            modified_risk=modified,
            category=classify(modified, record.prevention),
            contributing_factors=identify_contributing_factors(record),
            warnings=warnings,
            **extras,
        )

    def evaluate_framingham(self, record: RecordLike) -> RiskResult:
        """10-year general CVD risk with the Framingham (2008) model."""
        normalized, report = self.prepare(record, framingham.REQUIRED_FIELDS, framingham.MODEL_NAME)
        warnings = self._warnings(report, normalized, framingham.age_window_warning(normalized.age))

        base_risk = framingham.calculate_risk(normalized)
        result = self._result(RiskModel.FRAMINGHAM, normalized, base_risk, warnings)
        result = replace(result, heart_age=framingham.heart_age(normalized.sex, result.modified_risk))
        logger.info(
            f"CardiovascularRiskEngine [framingham]: risk={result.modified_risk:.1f}% "
            f"category={result.category.value} warnings={len(warnings)}"
        )
        return result

    def evaluate_qrisk3(self, record: RecordLike) -> RiskResult:
        """10-year CVD risk with the QRISK3-2017 model."""
        normalized, report = self.prepare(record, qrisk3.REQUIRED_FIELDS, qrisk3.MODEL_NAME)
        warnings = self._warnings(report, normalized, qrisk3.age_window_warning(normalized.age))

        base_risk = qrisk3.calculate_risk(normalized)
        healthy = qrisk3.healthy_person_risk(normalized)
        relative = round(base_risk / healthy, 1) if healthy > 0 else None
        result = self._result(
            RiskModel.QRISK3,
            normalized,
            base_risk,
            warnings,
            healthy_person_risk=healthy,
            relative_risk=relative,
        )
        logger.info(
            f"CardiovascularRiskEngine [qrisk3]: risk={result.modified_risk:.1f}% "
            f"category={result.category.value} warnings={len(warnings)}"
        )
        return result

    evaluate_model_b = evaluate_qrisk3

    # ------------------------------------------------------------------
    # Therapy
    # ------------------------------------------------------------------

    def assess_therapy(
        self,
        record: RecordLike,
        risk_context: Optional[RiskContext] = None,
    ) -> TherapyEvaluation:
        """
        Targets, gap assessment, recommendations and PCSK9 coverage.

        ``risk_context`` carries the highest known 10-year risk for
        primary prevention; without it the low tier applies.
        """
        normalized, report = self.prepare(record, model="therapy")

        targets = determine_targets(normalized, risk_context)
        assessment = assess_current_therapy(normalized, targets)
        recommendations = generate_recommendations(normalized, assessment, targets)
        coverage = assess_pcsk9_coverage(normalized, assessment)

        logger.info(
            f"CardiovascularRiskEngine [therapy]: tier={targets.risk_tier.value} "
            f"at_ldl_target={assessment.at_ldl_target} pcsk9_eligible={coverage.eligible}"
        )
        return TherapyEvaluation(
            targets=targets,
            assessment=assessment,
            recommendations=recommendations,
            coverage=coverage,
            warnings=[i.message for i in report.warnings],
        )

    @staticmethod
    def check_plausibility(parameter_type: Union[ParameterType, str], value: Any) -> PlausibilityResult:
        return check(parameter_type, value)
