"""
Patient Layer

Input record, canonical record and unit normalisation.

Usage:
    from cvdrisk.core.patient import PatientRecord, Measurement, normalize

    record = PatientRecord(age=55, sex="male",
                           total_cholesterol=Measurement(value=201, unit="mg/dL"))
    canonical = normalize(record)   # total_cholesterol in mmol/L
"""
from .base import (
    CurrentTherapy,
    DiabetesStatus,
    Ethnicity,
    FieldIssue,
    IssueKind,
    Measurement,
    NormalizedRecord,
    PatientRecord,
    PreventionCategory,
    PreventionContext,
    SecondaryDetail,
    Sex,
    SmokingStatus,
    Statin,
    StatinIntensity,
    StatinIntolerance,
    TherapyDuration,
)
from .normalizer import normalize

__all__ = [
    "CurrentTherapy",
    "DiabetesStatus",
    "Ethnicity",
    "FieldIssue",
    "IssueKind",
    "Measurement",
    "NormalizedRecord",
    "PatientRecord",
    "PreventionCategory",
    "PreventionContext",
    "SecondaryDetail",
    "Sex",
    "SmokingStatus",
    "Statin",
    "StatinIntensity",
    "StatinIntolerance",
    "TherapyDuration",
    "normalize",
]
