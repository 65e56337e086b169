"""
Unit Tests for the Therapy Layer

Tests for target resolution, gap assessment, recommendations and PCSK9
inhibitor coverage.
"""
import pytest

from cvdrisk.core.patient import Measurement, PatientRecord, normalize
from cvdrisk.core.patient.base import CurrentTherapy
from cvdrisk.core.risk import RiskContext
from cvdrisk.core.therapy import (
    DrugClass,
    RecommendationAction,
    Severity,
    TargetRiskTier,
    assess_current_therapy,
    assess_pcsk9_coverage,
    determine_targets,
    generate_recommendations,
    max_statin_reached,
    statin_intensity,
)
from cvdrisk.core.therapy.coverage import final_gate


def _mmol(v):
    return Measurement(value=v, unit="mmol/L")


def _secondary(**overrides) -> PatientRecord:
    fields = dict(
        age=60,
        sex="male",
        ldl=_mmol(2.5),
        prevention={"category": "secondary"},
    )
    fields.update(overrides)
    return PatientRecord(**fields)


def _evaluate(record: PatientRecord, risk_context=None):
    n = normalize(record)
    targets = determine_targets(n, risk_context)
    assessment = assess_current_therapy(n, targets)
    return n, targets, assessment


class TestTargets:
    """Tests for determine_targets()."""

    def test_extreme_tier_for_recent_acs(self, secondary_mi_patient):
        targets = determine_targets(normalize(secondary_mi_patient))

        assert targets.risk_tier == TargetRiskTier.EXTREME
        assert (targets.ldl, targets.non_hdl, targets.apob) == (1.4, 2.2, 0.65)
        assert targets.percent_reduction == 50

    def test_very_high_tier_for_other_secondary(self):
        targets = determine_targets(normalize(_secondary()))
        assert targets.risk_tier == TargetRiskTier.VERY_HIGH
        assert targets.ldl == 1.8

    @pytest.mark.parametrize("highest, tier, ldl, reduction", [
        (25.0, TargetRiskTier.HIGH, 2.0, 50),
        (20.0, TargetRiskTier.HIGH, 2.0, 50),
        (12.0, TargetRiskTier.INTERMEDIATE, 2.0, 30),
        (9.9, TargetRiskTier.LOW, 3.5, 30),
    ])
    def test_primary_tiers_follow_highest_risk(self, untreated_high_ldl_patient, highest, tier, ldl, reduction):
        targets = determine_targets(normalize(untreated_high_ldl_patient), RiskContext(highest_risk=highest))

        assert targets.risk_tier == tier
        assert targets.ldl == ldl
        assert targets.percent_reduction == reduction

    def test_missing_risk_context_is_low_tier(self, untreated_high_ldl_patient):
        targets = determine_targets(normalize(untreated_high_ldl_patient))

        assert targets.risk_tier == TargetRiskTier.LOW
        assert targets.is_treatment_threshold

    def test_elevated_lpa_tightens_ldl_goal(self):
        targets = determine_targets(normalize(_secondary(lpa=Measurement(value=120, unit="mg/dL"))))

        assert targets.has_elevated_lpa
        assert targets.lpa_adjusted_ldl == pytest.approx(1.5)

    def test_lpa_adjustment_never_below_floor(self, secondary_mi_patient):
        record = secondary_mi_patient.model_copy(update={"lpa": Measurement(value=60, unit="mg/dL")})
        assert determine_targets(normalize(record)).lpa_adjusted_ldl == pytest.approx(1.4)

    def test_lpa_below_threshold_has_no_adjustment(self):
        targets = determine_targets(normalize(_secondary(lpa=Measurement(value=49, unit="mg/dL"))))

        assert not targets.has_elevated_lpa
        assert targets.lpa_adjusted_ldl is None


class TestStatinIntensity:
    """Tests for statin intensity and maximum-dose lookups."""

    @pytest.mark.parametrize("statin, dose, expected", [
        ("atorvastatin", 5, "low"),
        ("atorvastatin", 20, "moderate"),
        ("atorvastatin", 80, "high"),
        ("rosuvastatin", 10, "moderate"),
        ("rosuvastatin", 20, "high"),
        ("simvastatin", 40, "moderate"),
        ("pravastatin", 10, "low"),
    ])
    def test_derived_from_dose(self, statin, dose, expected):
        assert statin_intensity(CurrentTherapy(statin=statin, statin_dose_mg=dose)) == expected

    def test_explicit_label_wins(self):
        therapy = CurrentTherapy(statin="rosuvastatin", statin_dose_mg=5, statin_intensity="high")
        assert statin_intensity(therapy) == "high"

    def test_no_statin(self):
        assert statin_intensity(CurrentTherapy()) == "none"

    def test_unknown_without_dose(self):
        assert statin_intensity(CurrentTherapy(statin="simvastatin")) == "unknown"

    def test_max_dose(self):
        assert max_statin_reached(CurrentTherapy(statin="atorvastatin", statin_dose_mg=80))
        assert max_statin_reached(CurrentTherapy(statin="rosuvastatin", statin_dose_mg=40))
        assert not max_statin_reached(CurrentTherapy(statin="rosuvastatin", statin_dose_mg=20))
        assert not max_statin_reached(CurrentTherapy(statin="atorvastatin"))


class TestAssessment:
    """Tests for assess_current_therapy()."""

    def test_secondary_on_maximum_therapy(self, secondary_mi_patient):
        _, _, a = _evaluate(secondary_mi_patient)

        assert a.intensity == "high"
        assert a.max_statin_reached
        assert a.on_maximum_therapy
        assert not a.can_intensify
        assert not a.at_ldl_target
        assert a.ldl_gap == pytest.approx(1.2)
        assert a.additional_ldl_reduction == pytest.approx(46.2)

    def test_absent_lipids_are_not_at_target(self, secondary_mi_patient):
        _, _, a = _evaluate(secondary_mi_patient)

        assert not a.at_non_hdl_target
        assert a.non_hdl_gap is None
        assert a.apob_gap is None

    def test_at_target(self):
        _, _, a = _evaluate(_secondary(ldl=_mmol(1.6)))

        assert a.at_ldl_target
        assert a.ldl_gap == pytest.approx(-0.2)
        assert a.additional_ldl_reduction == 0.0

    def test_absent_ldl_has_no_additional_reduction(self):
        _, _, a = _evaluate(_secondary(ldl=None))

        assert a.ldl_gap is None
        assert a.additional_ldl_reduction is None

    def test_complete_intolerance_with_ezetimibe_is_maximum_therapy(self):
        record = _secondary(therapy={"intolerance": "complete", "ezetimibe": True})
        _, _, a = _evaluate(record)

        assert a.statin_intolerance
        assert a.on_maximum_therapy
        assert a.intensity == "none"

    def test_max_dose_moderate_statin_cannot_intensify(self):
        record = _secondary(
            ldl=_mmol(3.0),
            therapy={"statin": "simvastatin", "statin_dose_mg": 40, "ezetimibe": True},
        )
        _, _, a = _evaluate(record)

        assert a.intensity == "moderate"
        assert a.max_statin_reached
        assert a.on_maximum_therapy
        assert not a.can_intensify

    def test_max_statin_without_ezetimibe_is_not_maximum_therapy(self):
        _, _, a = _evaluate(_secondary(therapy={"statin": "atorvastatin", "statin_dose_mg": 80}))

        assert a.max_statin_reached
        assert not a.on_maximum_therapy

    def test_triglyceride_flags(self):
        _, _, severe = _evaluate(_secondary(triglycerides=_mmol(6.0)))
        assert severe.has_hypertriglyceridemia and severe.has_severe_hypertriglyceridemia

        _, _, mixed = _evaluate(_secondary(triglycerides=_mmol(2.5), hdl=_mmol(0.9)))
        assert mixed.has_mixed_dyslipidemia
        assert not mixed.has_severe_hypertriglyceridemia


class TestRecommendations:
    """Tests for the recommendation decision tree."""

    def _recommend(self, record, risk_context=None):
        n, targets, a = _evaluate(record, risk_context)
        return generate_recommendations(n, a, targets)

    def test_secondary_on_maximum_therapy(self, secondary_mi_patient):
        recs = self._recommend(secondary_mi_patient)

        statin = recs.for_drug(DrugClass.STATIN)
        assert statin.action == RecommendationAction.CONTINUE_MAXIMUM
        assert statin.recommendation == "Continue maximum statin therapy"

        ezetimibe = recs.for_drug(DrugClass.EZETIMIBE)
        assert ezetimibe.action == RecommendationAction.CONTINUE
        assert ezetimibe.rationale == (
            "Ezetimibe should be continued while considering additional lipid-lowering options"
        )

        pcsk9 = recs.for_drug(DrugClass.PCSK9)
        assert pcsk9.action == RecommendationAction.CONSIDER
        assert recs.summary == [
            "Continue maximum statin therapy",
            "Consider PCSK9 inhibitor for secondary prevention",
        ]

    def test_untreated_low_tier_with_very_high_ldl(self, untreated_high_ldl_patient):
        recs = self._recommend(untreated_high_ldl_patient)

        assert [d.drug_class for d in recs.drugs] == [DrugClass.STATIN]
        statin = recs.drugs[0]
        assert statin.action == RecommendationAction.CONSIDER
        assert statin.recommendation == "Consider statin therapy despite low risk due to very high LDL-C"
        assert recs.summary == ["Consider statin therapy due to very high LDL-C"]

    def test_initiate_by_tier(self, untreated_high_ldl_patient):
        high = self._recommend(untreated_high_ldl_patient, RiskContext(highest_risk=25.0))
        assert high.drugs[0].recommendation == "Initiate high-intensity statin therapy"

        intermediate = self._recommend(untreated_high_ldl_patient, RiskContext(highest_risk=12.0))
        assert intermediate.drugs[0].recommendation == "Initiate moderate-intensity statin therapy"

    def test_low_risk_not_recommended(self):
        recs = self._recommend(PatientRecord(age=40, sex="female", ldl=_mmol(3.0)))

        assert recs.drugs[0].action == RecommendationAction.NOT_RECOMMENDED
        assert recs.summary == ["Focus on lifestyle modifications"]

    def test_max_dose_moderate_statin_is_not_intensified(self):
        recs = self._recommend(_secondary(
            ldl=_mmol(3.0),
            therapy={"statin": "simvastatin", "statin_dose_mg": 40, "ezetimibe": True},
        ))

        assert recs.for_drug(DrugClass.STATIN).action == RecommendationAction.CONTINUE_MAXIMUM
        assert not any("Increase" in line for line in recs.summary)
        assert recs.for_drug(DrugClass.PCSK9).action == RecommendationAction.CONSIDER

    def test_intensify_and_add_ezetimibe(self):
        recs = self._recommend(_secondary(therapy={"statin": "atorvastatin", "statin_dose_mg": 20}))

        assert recs.for_drug(DrugClass.STATIN).action == RecommendationAction.INTENSIFY
        assert recs.for_drug(DrugClass.EZETIMIBE).action == RecommendationAction.ADD
        assert recs.for_drug(DrugClass.PCSK9) is None
        assert recs.summary == [
            "Increase atorvastatin dose to achieve greater LDL-C reduction",
            "Add ezetimibe 10 mg daily",
        ]

    def test_complete_intolerance(self):
        recs = self._recommend(_secondary(ldl=_mmol(3.0), therapy={"intolerance": "complete", "ezetimibe": True}))

        assert recs.for_drug(DrugClass.STATIN).action == RecommendationAction.NOT_FEASIBLE
        assert recs.for_drug(DrugClass.PCSK9).action == RecommendationAction.CONSIDER

    def test_partial_intolerance_keeps_tolerated_dose(self):
        record = _secondary(therapy={"statin": "atorvastatin", "statin_dose_mg": 10, "intolerance": "partial"})
        recs = self._recommend(record)

        assert recs.for_drug(DrugClass.STATIN).recommendation == "Continue maximum tolerated statin dose"

    def test_existing_pcsk9_is_continued(self, secondary_mi_patient):
        therapy = secondary_mi_patient.therapy.model_copy(update={"pcsk9_inhibitor": True})
        recs = self._recommend(secondary_mi_patient.model_copy(update={"therapy": therapy}))

        assert recs.for_drug(DrugClass.PCSK9).recommendation == "Continue PCSK9 inhibitor therapy"

    def test_severe_triglycerides_and_lpa_notes(self):
        recs = self._recommend(_secondary(triglycerides=_mmol(6.0), lpa=Measurement(value=120, unit="mg/dL")))

        assert [n.therapy for n in recs.other_therapies] == [
            "Consider fibrate therapy",
            "More aggressive LDL-C targets recommended",
            "Consider family screening for Lp(a)",
        ]
        assert recs.other_therapies[0].severity == Severity.WARNING
        assert "More aggressive LDL-C targets due to elevated Lp(a)" in recs.summary

    def test_non_pharmacological_always_present(self, untreated_high_ldl_patient):
        assert len(self._recommend(untreated_high_ldl_patient).non_pharmacological) == 4


class TestCoverage:
    """Tests for PCSK9 inhibitor coverage."""

    def _coverage(self, record):
        n, _, a = _evaluate(record)
        return n, a, assess_pcsk9_coverage(n, a)

    def test_secondary_on_maximum_therapy_is_eligible(self, secondary_mi_patient):
        _, _, coverage = self._coverage(secondary_mi_patient)

        assert coverage.eligible
        assert coverage.criteria_not_met == []
        assert "Recent MI/ACS (higher priority for coverage)" in coverage.criteria_met

    def test_untreated_primary_is_not_eligible(self, untreated_high_ldl_patient):
        _, _, coverage = self._coverage(untreated_high_ldl_patient)

        assert not coverage.eligible
        assert "Primary prevention with very high LDL-C" in coverage.criteria_met
        assert "Must be on maximum tolerated statin therapy" in coverage.criteria_not_met
        assert coverage.notes == [
            "Documentation of familial hypercholesterolemia with DLCN score ≥6 would be required"
        ]

    def test_gate_blocks_when_no_criterion_fails(self):
        record = _secondary(therapy={
            "statin": "atorvastatin",
            "statin_dose_mg": 20,
            "ezetimibe": True,
            "intolerance": "partial",
            "intolerance_type": "myalgia",
            "max_therapy_duration": ">6",
        })
        n, a, coverage = self._coverage(record)

        assert coverage.criteria_not_met == []
        assert not final_gate(n, a)
        assert not coverage.eligible

    def test_failed_criterion_blocks_when_gate_passes(self):
        record = _secondary(therapy={
            "statin": "atorvastatin",
            "statin_dose_mg": 80,
            "ezetimibe": True,
            "max_therapy_duration": "<3",
        })
        n, a, coverage = self._coverage(record)

        assert final_gate(n, a)
        assert coverage.criteria_not_met == ["Must be on maximum tolerated therapy for at least 3 months"]
        assert not coverage.eligible

    def test_undocumented_intolerance(self):
        record = _secondary(therapy={"intolerance": "complete", "ezetimibe": True, "max_therapy_duration": "3-6"})
        _, _, coverage = self._coverage(record)

        assert "Statin intolerance must be properly documented" in coverage.criteria_not_met
        assert not coverage.eligible

    def test_documented_complete_intolerance_is_eligible(self):
        record = _secondary(ldl=_mmol(3.0), therapy={
            "intolerance": "complete",
            "intolerance_type": "rhabdomyolysis",
            "ezetimibe": True,
            "max_therapy_duration": "3-6",
        })
        _, _, coverage = self._coverage(record)

        assert coverage.eligible
        assert "Documented statin intolerance" in coverage.criteria_met

    def test_secondary_low_ldl(self):
        record = _secondary(ldl=_mmol(1.8), therapy={
            "statin": "atorvastatin", "statin_dose_mg": 80, "ezetimibe": True, "max_therapy_duration": ">6",
        })
        _, _, coverage = self._coverage(record)

        assert "LDL-C must be ≥2.0 mmol/L for secondary prevention coverage" in coverage.criteria_not_met
        assert not coverage.eligible

    def test_current_pcsk9_is_noted(self, secondary_mi_patient):
        therapy = secondary_mi_patient.therapy.model_copy(update={"pcsk9_inhibitor": True})
        _, _, coverage = self._coverage(secondary_mi_patient.model_copy(update={"therapy": therapy}))

        assert coverage.notes == ["Patient is currently on PCSK9 inhibitor therapy"]
