"""
Pytest Configuration and Fixtures

Shared patient records for risk engine tests.
"""
import pytest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cvdrisk.core.patient import Measurement, PatientRecord


def mmol(value: float) -> Measurement:
    return Measurement(value=value, unit="mmol/L")


def mmhg(value: float) -> Measurement:
    return Measurement(value=value, unit="mmHg")


@pytest.fixture
def framingham_male() -> PatientRecord:
    """55-year-old treated hypertensive male smoker."""
    return PatientRecord(
        age=55,
        sex="male",
        total_cholesterol=mmol(5.2),
        hdl=mmol(1.3),
        systolic_bp=mmhg(140),
        on_bp_treatment=True,
        smoking="light",
    )


@pytest.fixture
def qrisk_female() -> PatientRecord:
    """50-year-old white female, BMI 25, TC/HDL 4.0, SBP 120."""
    return PatientRecord(
        age=50,
        sex="female",
        systolic_bp=mmhg(120),
        cholesterol_ratio=4.0,
        bmi=25.0,
    )


@pytest.fixture
def qrisk_male() -> PatientRecord:
    """50-year-old white male, BMI 25, TC/HDL 4.0, SBP 120."""
    return PatientRecord(
        age=50,
        sex="male",
        systolic_bp=mmhg(120),
        cholesterol_ratio=4.0,
        bmi=25.0,
    )


@pytest.fixture
def secondary_mi_patient() -> PatientRecord:
    """Recent ACS, LDL 2.6 on atorvastatin 80 mg plus ezetimibe for over 6 months."""
    return PatientRecord(
        age=62,
        sex="male",
        ldl=mmol(2.6),
        therapy={
            "statin": "atorvastatin",
            "statin_dose_mg": 80,
            "ezetimibe": True,
            "max_therapy_duration": ">6",
        },
        prevention={"category": "secondary", "secondary_detail": "mi"},
    )


@pytest.fixture
def untreated_high_ldl_patient() -> PatientRecord:
    """Primary prevention, no stored risk score, LDL 5.2, no therapy."""
    return PatientRecord(age=45, sex="female", ldl=mmol(5.2))
