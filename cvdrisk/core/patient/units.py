"""
Unit Conversions

Pure conversion helpers between clinical units plus a dispatcher that maps
a unit-tagged ``Measurement`` onto the canonical unit of its quantity.

Canonical units:
    cholesterol fractions   mmol/L
    triglycerides           mmol/L
    apolipoprotein B        g/L
    lipoprotein(a)          mg/dL
    height                  cm
    weight                  kg
    blood pressure          mmHg
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict

from cvdrisk.utils.exceptions import UnsupportedUnitError

from .base import Measurement

# ── Factors ───────────────────────────────────────────────────────────────────

CHOLESTEROL_MGDL_PER_MMOL   = 38.67
TRIGLYCERIDE_MGDL_PER_MMOL  = 88.5
APOB_MGDL_PER_GL            = 100.0
LPA_NMOL_PER_MGDL           = 2.5
LPA_MGDL_PER_NMOL           = 0.4
CM_PER_INCH                 = 2.54
KG_PER_POUND                = 0.45359237

LIPID_PRECISION          = 3
ANTHROPOMETRIC_PRECISION = 2


# ── Lipids ────────────────────────────────────────────────────────────────────

def cholesterol_mgdl_to_mmol(value: float) -> float:
    return round(value / CHOLESTEROL_MGDL_PER_MMOL, LIPID_PRECISION)


def cholesterol_mmol_to_mgdl(value: float) -> float:
    return round(value * CHOLESTEROL_MGDL_PER_MMOL, LIPID_PRECISION)


def triglycerides_mgdl_to_mmol(value: float) -> float:
    return round(value / TRIGLYCERIDE_MGDL_PER_MMOL, LIPID_PRECISION)


def triglycerides_mmol_to_mgdl(value: float) -> float:
    return round(value * TRIGLYCERIDE_MGDL_PER_MMOL, LIPID_PRECISION)


def apob_mgdl_to_gl(value: float) -> float:
    return round(value / APOB_MGDL_PER_GL, LIPID_PRECISION)


def apob_gl_to_mgdl(value: float) -> float:
    return round(value * APOB_MGDL_PER_GL, LIPID_PRECISION)


def lpa_mgdl_to_nmol(value: float) -> float:
    return round(value * LPA_NMOL_PER_MGDL, LIPID_PRECISION)


def lpa_nmol_to_mgdl(value: float) -> float:
    return round(value * LPA_MGDL_PER_NMOL, LIPID_PRECISION)


# ── Anthropometrics ───────────────────────────────────────────────────────────

def feet_inches_to_cm(feet: float, inches: float = 0.0) -> float:
    return round((feet * 12 + inches) * CM_PER_INCH, ANTHROPOMETRIC_PRECISION)


def inches_to_cm(value: float) -> float:
    return round(value * CM_PER_INCH, ANTHROPOMETRIC_PRECISION)


def cm_to_inches(value: float) -> float:
    return round(value / CM_PER_INCH, ANTHROPOMETRIC_PRECISION)


def pounds_to_kg(value: float) -> float:
    return round(value * KG_PER_POUND, ANTHROPOMETRIC_PRECISION)


def kg_to_pounds(value: float) -> float:
    return round(value / KG_PER_POUND, ANTHROPOMETRIC_PRECISION)


def calculate_bmi(height_cm: float, weight_kg: float) -> float:
    """BMI in kg/m² from height in cm and weight in kg."""
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), ANTHROPOMETRIC_PRECISION)


# ── Dispatcher ────────────────────────────────────────────────────────────────

class Quantity(str, Enum):
    CHOLESTEROL    = "cholesterol"
    TRIGLYCERIDES  = "triglycerides"
    APOB           = "apolipoprotein B"
    LPA            = "lipoprotein(a)"
    HEIGHT         = "height"
    WEIGHT         = "weight"
    BLOOD_PRESSURE = "blood pressure"


def _identity(precision: int) -> Callable[[float], float]:
    return lambda v: round(v, precision)


# Keys are lower-cased unit tags
_TO_CANONICAL: Dict[Quantity, Dict[str, Callable[[float], float]]] = {
    Quantity.CHOLESTEROL: {
        "mmol/l": _identity(LIPID_PRECISION),
        "mg/dl":  cholesterol_mgdl_to_mmol,
    },
    Quantity.TRIGLYCERIDES: {
        "mmol/l": _identity(LIPID_PRECISION),
        "mg/dl":  triglycerides_mgdl_to_mmol,
    },
    Quantity.APOB: {
        "g/l":   _identity(LIPID_PRECISION),
        "mg/dl": apob_mgdl_to_gl,
    },
    Quantity.LPA: {
        "mg/dl":  _identity(LIPID_PRECISION),
        "nmol/l": lpa_nmol_to_mgdl,
    },
    Quantity.HEIGHT: {
        "cm": _identity(ANTHROPOMETRIC_PRECISION),
        "m":  lambda v: round(v * 100, ANTHROPOMETRIC_PRECISION),
        "in": inches_to_cm,
    },
    Quantity.WEIGHT: {
        "kg":  _identity(ANTHROPOMETRIC_PRECISION),
        "lb":  pounds_to_kg,
        "lbs": pounds_to_kg,
    },
    Quantity.BLOOD_PRESSURE: {
        "mmhg": lambda v: float(v),
    },
}


def to_canonical(measurement: Measurement, quantity: Quantity) -> float:
    """
    Convert ``measurement`` to the canonical unit of ``quantity``.

    Raises:
        UnsupportedUnitError: no conversion path exists for the unit tag.
    """
    unit_key = measurement.unit.strip().lower()
    converter = _TO_CANONICAL[quantity].get(unit_key)
    if converter is None:
        raise UnsupportedUnitError(measurement.unit, quantity=quantity.value)
    return converter(measurement.value)


def supported_units(quantity: Quantity) -> list:
    return sorted(_TO_CANONICAL[quantity].keys())
