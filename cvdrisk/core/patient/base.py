"""
Patient Layer: Base Types

Defines the input contract (``PatientRecord``, a frozen pydantic model in
which every lipid, anthropometric and blood-pressure value carries its
own unit tag) and the canonical contract (``NormalizedRecord``) that the
validation, risk and therapy layers consume.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Sex(str, Enum):
    MALE   = "male"
    FEMALE = "female"


class SmokingStatus(str, Enum):
    """Five-level smoking status used by QRISK3."""
    NONE     = "none"
    EX       = "ex"
    LIGHT    = "light"       # < 10 / day
    MODERATE = "moderate"    # 10-19 / day
    HEAVY    = "heavy"       # >= 20 / day

    @property
    def is_current(self) -> bool:
        return self in (SmokingStatus.LIGHT, SmokingStatus.MODERATE, SmokingStatus.HEAVY)


class DiabetesStatus(str, Enum):
    NONE   = "none"
    TYPE_1 = "type1"
    TYPE_2 = "type2"

    @property
    def is_diabetic(self) -> bool:
        return self is not DiabetesStatus.NONE


class Ethnicity(str, Enum):
    """QRISK3 self-assigned ethnicity categories."""
    WHITE           = "white"
    INDIAN          = "indian"
    PAKISTANI       = "pakistani"
    BANGLADESHI     = "bangladeshi"
    OTHER_ASIAN     = "other_asian"
    BLACK_CARIBBEAN = "black_caribbean"
    BLACK_AFRICAN   = "black_african"
    CHINESE         = "chinese"
    OTHER           = "other"


class PreventionCategory(str, Enum):
    PRIMARY   = "primary"
    SECONDARY = "secondary"


class SecondaryDetail(str, Enum):
    """Sub-type of established ASCVD for secondary prevention."""
    NONE        = "none"
    RECENT_ACS  = "mi"
    MULTIVESSEL = "multi"


class Statin(str, Enum):
    NONE         = "none"
    ATORVASTATIN = "atorvastatin"
    ROSUVASTATIN = "rosuvastatin"
    SIMVASTATIN  = "simvastatin"
    PRAVASTATIN  = "pravastatin"
    LOVASTATIN   = "lovastatin"
    FLUVASTATIN  = "fluvastatin"
    PITAVASTATIN = "pitavastatin"


class StatinIntensity(str, Enum):
    LOW      = "low"
    MODERATE = "moderate"
    HIGH     = "high"


class StatinIntolerance(str, Enum):
    NO       = "no"
    PARTIAL  = "partial"
    COMPLETE = "complete"


class TherapyDuration(str, Enum):
    """Time spent on maximally tolerated lipid-lowering therapy."""
    UNDER_3_MONTHS = "<3"
    THREE_TO_SIX   = "3-6"
    OVER_6_MONTHS  = ">6"


# ── Input contract ────────────────────────────────────────────────────────────

class Measurement(BaseModel):
    """A numeric value with its explicit unit tag, e.g. ``(5.2, "mmol/L")``."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    value: float
    unit: str

    @classmethod
    def from_feet_inches(cls, feet: float, inches: float = 0.0) -> "Measurement":
        """Height given in feet and inches, expressed as total inches."""
        return cls(value=feet * 12 + inches, unit="in")


class CurrentTherapy(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    statin: Statin = Statin.NONE
    statin_dose_mg: Optional[float] = Field(default=None, ge=0)
    statin_intensity: Optional[StatinIntensity] = Field(
        default=None, description="Explicit label; derived from the dose table when absent"
    )
    ezetimibe: bool = False
    pcsk9_inhibitor: bool = False
    intolerance: StatinIntolerance = StatinIntolerance.NO
    intolerance_type: Optional[str] = Field(
        default=None, description="Documented nature of the statin intolerance"
    )
    max_therapy_duration: Optional[TherapyDuration] = None


class PreventionContext(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    category: PreventionCategory = PreventionCategory.PRIMARY
    secondary_detail: SecondaryDetail = SecondaryDetail.NONE


class PatientRecord(BaseModel):
    """
    Raw patient record as supplied by the caller.

    Units may be mixed; ``normalize()`` converts everything to canonical
    units without mutating this object.
    """
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    # Demographics
    age: Optional[float] = Field(default=None, description="Years")
    sex: Optional[Sex] = None
    ethnicity: Ethnicity = Ethnicity.WHITE
    deprivation_index: float = Field(default=0.0, description="Townsend score")

    # Vitals
    systolic_bp: Optional[Measurement] = None
    diastolic_bp: Optional[Measurement] = None
    systolic_bp_sd: Optional[Measurement] = Field(
        default=None, description="Standard deviation of repeated SBP readings"
    )
    on_bp_treatment: bool = False

    # Lipids
    total_cholesterol: Optional[Measurement] = None
    hdl: Optional[Measurement] = None
    ldl: Optional[Measurement] = None
    non_hdl: Optional[Measurement] = None
    triglycerides: Optional[Measurement] = None
    apob: Optional[Measurement] = None
    lpa: Optional[Measurement] = None
    cholesterol_ratio: Optional[float] = Field(default=None, gt=0)

    # Anthropometrics
    height: Optional[Measurement] = None
    weight: Optional[Measurement] = None
    bmi: Optional[float] = Field(default=None, gt=0)

    # Lifestyle and conditions
    smoking: SmokingStatus = SmokingStatus.NONE
    diabetes: DiabetesStatus = DiabetesStatus.NONE
    family_history_cvd: bool = False
    atrial_fibrillation: bool = False
    chronic_kidney_disease: bool = False
    rheumatoid_arthritis: bool = False
    systemic_lupus: bool = False
    migraine: bool = False
    severe_mental_illness: bool = False
    erectile_dysfunction: bool = False
    atypical_antipsychotics: bool = False
    corticosteroids: bool = False

    therapy: CurrentTherapy = Field(default_factory=CurrentTherapy)
    prevention: PreventionContext = Field(default_factory=PreventionContext)


# ── Canonical contract ────────────────────────────────────────────────────────

class IssueKind(str, Enum):
    """Input problem categories. The first three block evaluation."""
    MISSING_REQUIRED_FIELD     = "MISSING_REQUIRED_FIELD"
    OUT_OF_PHYSIOLOGICAL_RANGE = "OUT_OF_PHYSIOLOGICAL_RANGE"
    UNSUPPORTED_UNIT           = "UNSUPPORTED_UNIT"
    UNUSUAL_VALUE              = "UNUSUAL_VALUE"
    IMPLAUSIBLE_COMBINATION    = "IMPLAUSIBLE_COMBINATION"
    OUTSIDE_MODEL_RANGE        = "OUTSIDE_MODEL_RANGE"

    @property
    def is_blocking(self) -> bool:
        return self in (
            IssueKind.MISSING_REQUIRED_FIELD,
            IssueKind.OUT_OF_PHYSIOLOGICAL_RANGE,
            IssueKind.UNSUPPORTED_UNIT,
        )


@dataclass(frozen=True)
class FieldIssue:
    """One problem found with one field (or a pair of fields)."""
    field: str
    kind: IssueKind
    message: str
    value: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "kind": self.kind.value,
            "message": self.message,
            "value": self.value,
        }


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Patient record in canonical units.

    Cholesterol fractions and triglycerides in mmol/L, ApoB in g/L,
    Lp(a) in mg/dL, height in cm, weight in kg, pressures in mmHg.
    Fields that were absent or could not be converted are ``None``;
    unit problems are listed in ``issues``.
    """
    age: Optional[float]
    sex: Optional[Sex]
    ethnicity: Ethnicity
    deprivation_index: float

    systolic_bp: Optional[float]
    diastolic_bp: Optional[float]
    systolic_bp_sd: Optional[float]
    on_bp_treatment: bool

    total_cholesterol: Optional[float]
    hdl: Optional[float]
    ldl: Optional[float]
    non_hdl: Optional[float]
    triglycerides: Optional[float]
    apob: Optional[float]
    lpa: Optional[float]
    cholesterol_ratio: Optional[float]

    height_cm: Optional[float]
    weight_kg: Optional[float]
    bmi: Optional[float]

    smoking: SmokingStatus
    diabetes: DiabetesStatus
    family_history_cvd: bool
    atrial_fibrillation: bool
    chronic_kidney_disease: bool
    rheumatoid_arthritis: bool
    systemic_lupus: bool
    migraine: bool
    severe_mental_illness: bool
    erectile_dysfunction: bool
    atypical_antipsychotics: bool
    corticosteroids: bool

    therapy: CurrentTherapy
    prevention: PreventionContext

    issues: Tuple[FieldIssue, ...] = field(default_factory=tuple)

    def missing(self, names: List[str]) -> List[str]:
        """Return the subset of ``names`` whose canonical value is None."""
        return [n for n in names if getattr(self, n) is None]
