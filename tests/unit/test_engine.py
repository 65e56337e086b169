"""
Unit Tests for CardiovascularRiskEngine

End-to-end checks through the public entry points.
"""
import pytest
from pydantic import ValidationError

import cvdrisk
from cvdrisk import (
    CardiovascularRiskEngine,
    Measurement,
    PatientRecord,
    RiskCategory,
    RiskContext,
)
from cvdrisk.core.patient import IssueKind, PreventionContext, Sex
from cvdrisk.core.risk import RiskModel, classify, framingham
from cvdrisk.core.therapy import DrugClass, RecommendationAction, TargetRiskTier
from cvdrisk.utils.exceptions import InputValidationError, RiskEngineError


@pytest.fixture
def engine() -> CardiovascularRiskEngine:
    return CardiovascularRiskEngine()


class TestFraminghamEvaluation:
    """Tests for evaluate_framingham()."""

    def test_reference_patient(self, engine, framingham_male):
        result = engine.evaluate_framingham(framingham_male)

        assert result.model == RiskModel.FRAMINGHAM
        assert 28.0 < result.base_risk < 33.0
        assert result.lpa_modifier == 1.0
        assert result.modified_risk == result.base_risk
        assert result.category == RiskCategory.HIGH
        assert result.heart_age >= 85
        assert result.warnings == []

    def test_contributing_factors(self, engine, framingham_male):
        names = [f.name for f in engine.evaluate_framingham(framingham_male).contributing_factors]
        assert names == ["Age", "Smoking", "Hypertension"]

    def test_age_outside_window_warns(self, engine, framingham_male):
        result = engine.evaluate_framingham(framingham_male.model_copy(update={"age": 80}))
        assert any("30-74" in w for w in result.warnings)
        assert result.base_risk > 0

    def test_secondary_prevention_overrides_category(self, engine, framingham_male):
        prevention = PreventionContext(category="secondary", secondary_detail="mi")
        record = framingham_male.model_copy(update={"prevention": prevention})
        assert engine.evaluate_framingham(record).category == RiskCategory.EXTREME

    def test_heart_age_follows_lpa_adjusted_risk(self, engine):
        record = PatientRecord(
            age=50,
            sex="male",
            total_cholesterol=Measurement(value=5.0, unit="mmol/L"),
            hdl=Measurement(value=1.3, unit="mmol/L"),
            systolic_bp=Measurement(value=125, unit="mmHg"),
            lpa=Measurement(value=300, unit="mg/dL"),
        )
        result = engine.evaluate_framingham(record)

        assert result.modified_risk == pytest.approx(result.base_risk * 3.0)
        assert result.heart_age == framingham.heart_age(Sex.MALE, result.modified_risk)
        assert result.heart_age > framingham.heart_age(Sex.MALE, result.base_risk)


class TestQRisk3Evaluation:
    """Tests for evaluate_qrisk3()."""

    def test_reference_patient(self, engine, qrisk_female):
        result = engine.evaluate_qrisk3(qrisk_female)

        assert result.model == RiskModel.QRISK3
        assert result.base_risk == pytest.approx(1.98, abs=0.05)
        assert result.category == RiskCategory.LOW
        assert result.healthy_person_risk > 0
        assert result.relative_risk == round(result.base_risk / result.healthy_person_risk, 1)
        assert result.heart_age is None

    def test_model_b_alias(self, engine, qrisk_male):
        assert engine.evaluate_model_b(qrisk_male).to_dict() == engine.evaluate_qrisk3(qrisk_male).to_dict()

    def test_lpa_moves_category(self, engine, qrisk_male):
        base = engine.evaluate_qrisk3(qrisk_male)
        boosted = engine.evaluate_qrisk3(
            qrisk_male.model_copy(update={"lpa": Measurement(value=300, unit="mg/dL")})
        )

        assert base.category == RiskCategory.LOW
        assert boosted.lpa_modifier == 3.0
        assert boosted.base_risk == base.base_risk
        assert boosted.modified_risk == pytest.approx(base.base_risk * 3.0)
        assert boosted.category == RiskCategory.MODERATE

    def test_lpa_modifier_applied(self, engine, framingham_male):
        result = engine.evaluate_framingham(
            framingham_male.model_copy(update={"lpa": Measurement(value=75, unit="mg/dL")})
        )

        assert result.lpa_modifier == pytest.approx(1.45)
        assert result.modified_risk == pytest.approx(result.base_risk * 1.45)
        assert result.category == classify(result.modified_risk)


class TestInputHandling:
    """Tests for input coercion and batched validation."""

    def test_all_blocking_issues_reported_together(self, engine):
        record = PatientRecord(age=55, sex="male", systolic_bp=Measurement(value=300, unit="mmHg"))

        with pytest.raises(InputValidationError) as exc_info:
            engine.evaluate_framingham(record)

        err = exc_info.value
        assert {(i.field, i.kind) for i in err.issues} == {
            ("total_cholesterol", IssueKind.MISSING_REQUIRED_FIELD),
            ("hdl", IssueKind.MISSING_REQUIRED_FIELD),
            ("systolic_bp", IssueKind.OUT_OF_PHYSIOLOGICAL_RANGE),
        }
        assert err.code == "INPUT_VALIDATION_ERROR"
        assert err.details["model"] == "Framingham"
        assert len(err.details["issues"]) == 3

    def test_error_serialises(self, engine):
        with pytest.raises(RiskEngineError) as exc_info:
            engine.evaluate_qrisk3(PatientRecord())

        data = exc_info.value.to_dict()
        assert data["error"] == "INPUT_VALIDATION_ERROR"
        assert {i["field"] for i in data["details"]["issues"]} == {
            "age", "sex", "systolic_bp", "bmi", "cholesterol_ratio",
        }

    def test_unsupported_unit_is_reported(self, engine, framingham_male):
        record = framingham_male.model_copy(update={"hdl": Measurement(value=1.3, unit="mmol/dL")})

        with pytest.raises(InputValidationError) as exc_info:
            engine.evaluate_framingham(record)

        kinds = {i.kind for i in exc_info.value.issues if i.field == "hdl"}
        assert IssueKind.UNSUPPORTED_UNIT in kinds

    def test_non_finite_value_is_rejected(self, engine):
        data = {
            "age": 50,
            "sex": "female",
            "systolic_bp": {"value": 120, "unit": "mmHg"},
            "systolic_bp_sd": {"value": float("nan"), "unit": "mmHg"},
            "cholesterol_ratio": 4.0,
            "bmi": 25.0,
        }
        with pytest.raises(ValidationError):
            engine.evaluate_qrisk3(data)

    def test_negative_sbp_sd_blocks_qrisk3(self, engine, qrisk_female):
        record = qrisk_female.model_copy(update={"systolic_bp_sd": Measurement(value=-5, unit="mmHg")})

        with pytest.raises(InputValidationError) as exc_info:
            engine.evaluate_qrisk3(record)

        assert {(i.field, i.kind) for i in exc_info.value.issues} == {
            ("systolic_bp_sd", IssueKind.OUT_OF_PHYSIOLOGICAL_RANGE),
        }

    def test_mapping_input(self, engine, qrisk_female):
        data = {
            "age": 50,
            "sex": "female",
            "systolic_bp": {"value": 120, "unit": "mmHg"},
            "cholesterol_ratio": 4.0,
            "bmi": 25.0,
        }
        assert engine.evaluate_qrisk3(data).to_dict() == engine.evaluate_qrisk3(qrisk_female).to_dict()

    def test_deterministic(self, engine, framingham_male):
        first = engine.evaluate_framingham(framingham_male).to_dict()
        second = engine.evaluate_framingham(framingham_male).to_dict()
        assert first == second

    def test_input_is_not_mutated(self, engine, secondary_mi_patient):
        before = secondary_mi_patient.model_dump()
        engine.assess_therapy(secondary_mi_patient)
        assert secondary_mi_patient.model_dump() == before


class TestTherapyEvaluation:
    """Tests for assess_therapy()."""

    def test_secondary_on_maximum_therapy(self, engine, secondary_mi_patient):
        evaluation = engine.assess_therapy(secondary_mi_patient)

        assert evaluation.targets.risk_tier == TargetRiskTier.EXTREME
        assert evaluation.assessment.on_maximum_therapy
        assert evaluation.coverage.eligible
        assert evaluation.recommendations.for_drug(DrugClass.PCSK9).action == RecommendationAction.CONSIDER

    def test_risk_context_from_model_results(self, engine, framingham_male):
        risk = engine.evaluate_framingham(framingham_male)
        record = framingham_male.model_copy(update={"ldl": Measurement(value=3.0, unit="mmol/L")})

        evaluation = engine.assess_therapy(record, RiskContext.from_results(risk))

        assert evaluation.targets.risk_tier == TargetRiskTier.HIGH
        statin = evaluation.recommendations.for_drug(DrugClass.STATIN)
        assert statin.recommendation == "Initiate high-intensity statin therapy"

    def test_blocking_issue_stops_therapy(self, engine, secondary_mi_patient):
        record = secondary_mi_patient.model_copy(update={"systolic_bp": Measurement(value=300, unit="mmHg")})
        with pytest.raises(InputValidationError):
            engine.assess_therapy(record)

    def test_to_dict(self, engine, untreated_high_ldl_patient):
        data = engine.assess_therapy(untreated_high_ldl_patient).to_dict()

        assert data["targets"]["risk_tier"] == "Low Risk"
        assert data["coverage"]["eligible"] is False
        assert data["recommendations"]["drugs"][0]["action"] == "consider"


class TestModuleFunctions:
    """Tests for the package-level convenience functions."""

    def test_evaluate_framingham(self, framingham_male):
        assert cvdrisk.evaluate_framingham(framingham_male).category == RiskCategory.HIGH

    def test_check_plausibility(self):
        assert not cvdrisk.check_plausibility("sbp", 250).is_valid
        assert cvdrisk.check_plausibility("sbp", 230).is_warning
