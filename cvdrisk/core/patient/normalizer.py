"""
Unit Normalizer

Converts a ``PatientRecord`` with mixed units into a ``NormalizedRecord``
in canonical units. The input is never mutated. Unit tags with no
conversion path do not raise here: the field becomes ``None`` and an
``UNSUPPORTED_UNIT`` issue is attached, so every input problem can be
reported in one batch by the validator.
"""
from __future__ import annotations

from typing import List, Optional

from cvdrisk.utils import get_logger
from cvdrisk.utils.exceptions import UnsupportedUnitError

from .base import FieldIssue, IssueKind, Measurement, NormalizedRecord, PatientRecord
from .units import (
    ANTHROPOMETRIC_PRECISION,
    LIPID_PRECISION,
    Quantity,
    calculate_bmi,
    supported_units,
    to_canonical,
)

logger = get_logger(__name__)

# field name → quantity of its Measurement
_MEASUREMENT_FIELDS = {
    "systolic_bp":       Quantity.BLOOD_PRESSURE,
    "diastolic_bp":      Quantity.BLOOD_PRESSURE,
    "systolic_bp_sd":    Quantity.BLOOD_PRESSURE,
    "total_cholesterol": Quantity.CHOLESTEROL,
    "hdl":               Quantity.CHOLESTEROL,
    "ldl":               Quantity.CHOLESTEROL,
    "non_hdl":           Quantity.CHOLESTEROL,
    "triglycerides":     Quantity.TRIGLYCERIDES,
    "apob":              Quantity.APOB,
    "lpa":               Quantity.LPA,
    "height":            Quantity.HEIGHT,
    "weight":            Quantity.WEIGHT,
}


def _convert(
    name: str,
    measurement: Optional[Measurement],
    issues: List[FieldIssue],
) -> Optional[float]:
    if measurement is None:
        return None
    quantity = _MEASUREMENT_FIELDS[name]
    try:
        return to_canonical(measurement, quantity)
    except UnsupportedUnitError as exc:
        logger.warning(f"normalize: {name} rejected, {exc.message}")
        issues.append(FieldIssue(
            field=name,
            kind=IssueKind.UNSUPPORTED_UNIT,
            message=(
                f"{exc.message} (supported: {', '.join(supported_units(quantity))})"
            ),
            value=measurement.unit,
        ))
        return None


def normalize(record: PatientRecord) -> NormalizedRecord:
    """
    Map every unit-tagged field of ``record`` to canonical units.

    Derived values:
        non_hdl             TC − HDL when not supplied and TC > HDL
        cholesterol_ratio   TC / HDL when not supplied
        bmi                 weight / height² when not supplied
    """
    issues: List[FieldIssue] = []
    values = {
        name: _convert(name, getattr(record, name), issues)
        for name in _MEASUREMENT_FIELDS
    }

    tc = values["total_cholesterol"]
    hdl = values["hdl"]

    non_hdl = values["non_hdl"]
    if non_hdl is None and tc is not None and hdl is not None and tc > hdl:
        non_hdl = round(tc - hdl, LIPID_PRECISION)

    ratio = record.cholesterol_ratio
    if ratio is None and tc is not None and hdl is not None and hdl > 0:
        ratio = round(tc / hdl, LIPID_PRECISION)

    bmi = record.bmi
    if bmi is None and values["height"] and values["weight"] is not None:
        bmi = calculate_bmi(values["height"], values["weight"])
    elif bmi is not None:
        bmi = round(bmi, ANTHROPOMETRIC_PRECISION)

    normalized = NormalizedRecord(
        age=record.age,
        sex=record.sex,
        ethnicity=record.ethnicity,
        deprivation_index=record.deprivation_index,
        systolic_bp=values["systolic_bp"],
        diastolic_bp=values["diastolic_bp"],
        systolic_bp_sd=values["systolic_bp_sd"],
        on_bp_treatment=record.on_bp_treatment,
        total_cholesterol=tc,
        hdl=hdl,
        ldl=values["ldl"],
        non_hdl=non_hdl,
        triglycerides=values["triglycerides"],
        apob=values["apob"],
        lpa=values["lpa"],
        cholesterol_ratio=ratio,
        height_cm=values["height"],
        weight_kg=values["weight"],
        bmi=bmi,
        smoking=record.smoking,
        diabetes=record.diabetes,
        family_history_cvd=record.family_history_cvd,
        atrial_fibrillation=record.atrial_fibrillation,
        chronic_kidney_disease=record.chronic_kidney_disease,
        rheumatoid_arthritis=record.rheumatoid_arthritis,
        systemic_lupus=record.systemic_lupus,
        migraine=record.migraine,
        severe_mental_illness=record.severe_mental_illness,
        erectile_dysfunction=record.erectile_dysfunction,
        atypical_antipsychotics=record.atypical_antipsychotics,
        corticosteroids=record.corticosteroids,
        therapy=record.therapy,
        prevention=record.prevention,
        issues=tuple(issues),
    )
    logger.debug(
        f"normalize: {sum(v is not None for v in values.values())} measurement(s) "
        f"converted, {len(issues)} unit issue(s)"
    )
    return normalized
