"""
cvdrisk: cardiovascular risk scoring and lipid therapy decision support.

Usage:
    from cvdrisk import PatientRecord, Measurement, evaluate_qrisk3, assess_therapy, RiskContext

    record = PatientRecord(
        age=55, sex="male",
        total_cholesterol=Measurement(value=5.2, unit="mmol/L"),
        hdl=Measurement(value=1.3, unit="mmol/L"),
        systolic_bp=Measurement(value=140, unit="mmHg"),
        bmi=27.0,
    )
    risk = evaluate_qrisk3(record)
    therapy = assess_therapy(record, RiskContext.from_results(risk))
"""
from .core.patient import Measurement, PatientRecord
from .core.risk import RiskCategory, RiskContext, RiskResult
from .core.therapy import TherapyEvaluation
from .core.validation import ParameterType, PlausibilityResult
from .engine import CardiovascularRiskEngine

__version__ = "0.1.0"

_engine = CardiovascularRiskEngine()

evaluate_framingham = _engine.evaluate_framingham
evaluate_qrisk3 = _engine.evaluate_qrisk3
evaluate_model_b = _engine.evaluate_model_b
assess_therapy = _engine.assess_therapy
check_plausibility = _engine.check_plausibility

__all__ = [
    "CardiovascularRiskEngine",
    "Measurement",
    "ParameterType",
    "PatientRecord",
    "PlausibilityResult",
    "RiskCategory",
    "RiskContext",
    "RiskResult",
    "TherapyEvaluation",
    "assess_therapy",
    "check_plausibility",
    "evaluate_framingham",
    "evaluate_model_b",
    "evaluate_qrisk3",
]
