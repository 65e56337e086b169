"""
QRISK3-2017 Cardiovascular Risk

Fractional-polynomial Cox model (Hippisley-Cox et al., BMJ 2017). Each
continuous input is transformed, then centred on the derivation-cohort
mean, and the linear predictor is the sum of five groups:

    a = ethnicity offset + smoking offset
      + Σ continuous terms
      + Σ boolean terms
      + Σ age_1 × term  +  Σ age_2 × term
    risk = 100 · (1 − S₀ ^ exp(a))

Transforms (age and BMI divided by 10 first):
    female  age_1 = age⁻²,  age_2 = age
    male    age_1 = age⁻¹,  age_2 = age³
    both    bmi_1 = bmi⁻²,  bmi_2 = bmi⁻² · ln(bmi)

Every categorical value maps to its coefficient through an explicit enum
table, so a missing category cannot shift another's weight.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np

from cvdrisk.core.patient.base import (
    DiabetesStatus,
    Ethnicity,
    NormalizedRecord,
    Sex,
    SmokingStatus,
)
from cvdrisk.utils import get_logger
from cvdrisk.utils.exceptions import MissingRequiredFieldError

logger = get_logger(__name__)

MODEL_NAME = "QRISK3"

REQUIRED_FIELDS = ("age", "sex", "systolic_bp", "bmi", "cholesterol_ratio")

AGE_MIN = 25
AGE_MAX = 84

# Healthy comparator: same age, sex and ethnicity
HEALTHY_BMI          = 22.0
HEALTHY_SBP          = 110.0
HEALTHY_SBP_SD       = 0.0
HEALTHY_RATIO        = 3.5
HEALTHY_DEPRIVATION  = -2.0


@dataclass(frozen=True)
class QRiskCoefficients:
    baseline_survival: float
    ethnicity: Mapping[Ethnicity, float]
    smoking: Mapping[SmokingStatus, float]
    centering: Mapping[str, float]
    continuous: Mapping[str, float]
    boolean: Mapping[str, float]
    age_1_interactions: Mapping[str, float]
    age_2_interactions: Mapping[str, float]


FEMALE = QRiskCoefficients(
    baseline_survival=0.988876402378082,
    ethnicity={
        Ethnicity.WHITE:           0.0,
        Ethnicity.INDIAN:          0.2804031433299542500000000,
        Ethnicity.PAKISTANI:       0.5629899414207539800000000,
        Ethnicity.BANGLADESHI:     0.2959000085111651600000000,
        Ethnicity.OTHER_ASIAN:     0.0727853798779825450000000,
        Ethnicity.BLACK_CARIBBEAN: -0.1707213550885731700000000,
        Ethnicity.BLACK_AFRICAN:   -0.3937104331487497100000000,
        Ethnicity.CHINESE:         -0.3263249528353027200000000,
        Ethnicity.OTHER:           -0.1712705688324178400000000,
    },
    smoking={
        SmokingStatus.NONE:     0.0,
        SmokingStatus.EX:       0.1338683378654626200000000,
        SmokingStatus.LIGHT:    0.5620085801243853700000000,
        SmokingStatus.MODERATE: 0.6674959337750254700000000,
        SmokingStatus.HEAVY:    0.8494817764483084700000000,
    },
    centering={
        "age_1": 0.053274843841791,
        "age_2": 4.332503318786621,
        "bmi_1": 0.154946178197861,
        "bmi_2": 0.144462317228317,
        "rati":  3.476326465606690,
        "sbp":   123.130012512207030,
        "sbps5": 9.002537727355957,
        "town":  0.392308831214905,
    },
    continuous={
        "age_1": -8.1388109247726188000000000,
        "age_2": 0.7973337668969909800000000,
        "bmi_1": 0.2923609227546005200000000,
        "bmi_2": -4.1513300213837665000000000,
        "rati":  0.1533803582080255400000000,
        "sbp":   0.0131314884071034240000000,
        "sbps5": 0.0078894541014586095000000,
        "town":  0.0772237905885901080000000,
    },
    boolean={
        "af":                      1.5923354969269663000000000,
        "atypical_antipsychotics": 0.2523764207011555700000000,
        "corticosteroids":         0.5952072530460185100000000,
        "migraine":                0.3012672608703450000000000,
        "rheumatoid_arthritis":    0.2136480343518194200000000,
        "renal":                   0.6519456949384583300000000,
        "severe_mental_illness":   0.1255530805882017800000000,
        "sle":                     0.7588093865426769300000000,
        "treated_hypertension":    0.5093159368342300400000000,
        "type1":                   1.7267977510537347000000000,
        "type2":                   1.0688773244615468000000000,
        "family_history":          0.4544531902089621300000000,
    },
    age_1_interactions={
        "smoke_ex":             -4.7057161785851891000000000,
        "smoke_light":          -2.7430383403573337000000000,
        "smoke_moderate":       -0.8660808882939218200000000,
        "smoke_heavy":          0.9024156236971064800000000,
        "af":                   19.9380348895465610000000000,
        "corticosteroids":      -0.9840804523593628100000000,
        "migraine":             1.7634979587872999000000000,
        "renal":                -3.5874047731694114000000000,
        "sle":                  19.6903037386382920000000000,
        "treated_hypertension": 11.8728097339218120000000000,
        "type1":                -1.2444332714320747000000000,
        "type2":                6.8652342000009599000000000,
        "bmi_1":                23.8026234121417420000000000,
        "bmi_2":                -71.1849476920870070000000000,
        "family_history":       0.9946780794043512700000000,
        "sbp":                  0.0341318423386154850000000,
        "town":                 -1.0301180802035639000000000,
    },
    age_2_interactions={
        "smoke_ex":             -0.0755892446431930260000000,
        "smoke_light":          -0.1195119287486707400000000,
        "smoke_moderate":       -0.1036630639757192300000000,
        "smoke_heavy":          -0.1399185359171838900000000,
        "af":                   -0.0761826510111625050000000,
        "corticosteroids":      -0.1200536494674247200000000,
        "migraine":             -0.0655869178986998590000000,
        "renal":                -0.2268887308644250700000000,
        "sle":                  0.0773479496790162730000000,
        "treated_hypertension": 0.0009685782358817443600000,
        "type1":                -0.2872406462448894900000000,
        "type2":                -0.0971122525906954890000000,
        "bmi_1":                0.5236995893366442900000000,
        "bmi_2":                0.0457441901223237590000000,
        "family_history":       -0.0768850516984230380000000,
        "sbp":                  -0.0015082501423272358000000,
        "town":                 -0.0315934146749623290000000,
    },
)

MALE = QRiskCoefficients(
    baseline_survival=0.977268040180206,
    ethnicity={
        Ethnicity.WHITE:           0.0,
        Ethnicity.INDIAN:          0.2771924876030827900000000,
        Ethnicity.PAKISTANI:       0.4744636071493126800000000,
        Ethnicity.BANGLADESHI:     0.5296172991968937100000000,
        Ethnicity.OTHER_ASIAN:     0.0351001591862990170000000,
        Ethnicity.BLACK_CARIBBEAN: -0.3580789966932791900000000,
        Ethnicity.BLACK_AFRICAN:   -0.4005648523216514000000000,
        Ethnicity.CHINESE:         -0.4152279288983017300000000,
        Ethnicity.OTHER:           -0.2632134813474996700000000,
    },
    smoking={
        SmokingStatus.NONE:     0.0,
        SmokingStatus.EX:       0.1912822286338898300000000,
        SmokingStatus.LIGHT:    0.5524158819264555200000000,
        SmokingStatus.MODERATE: 0.6383505302750607200000000,
        SmokingStatus.HEAVY:    0.7898381988185801900000000,
    },
    centering={
        "age_1": 0.234766781330109,
        "age_2": 77.284080505371094,
        "bmi_1": 0.149176135659218,
        "bmi_2": 0.141913309693336,
        "rati":  4.300998687744141,
        "sbp":   128.571578979492190,
        "sbps5": 8.756621360778809,
        "town":  0.526304900646210,
    },
    continuous={
        "age_1": -17.8397816660055750000000000,
        "age_2": 0.0022964880605765492000000,
        "bmi_1": 2.4562776660536358000000000,
        "bmi_2": -8.3011122314711354000000000,
        "rati":  0.1734019685632711100000000,
        "sbp":   0.0129101265425533050000000,
        "sbps5": 0.0102519142912904560000000,
        "town":  0.0332682012772872950000000,
    },
    boolean={
        "af":                      0.8820923692805465700000000,
        "atypical_antipsychotics": 0.1304687985517351300000000,
        "corticosteroids":         0.4548539975044554300000000,
        "impotence":               0.2225185908670538300000000,
        "migraine":                0.2558417807415991300000000,
        "rheumatoid_arthritis":    0.2097065801395656700000000,
        "renal":                   0.7185326128827438400000000,
        "severe_mental_illness":   0.1213303988204716400000000,
        "sle":                     0.4401572174457522000000000,
        "treated_hypertension":    0.5165987108269547400000000,
        "type1":                   1.2343425521675175000000000,
        "type2":                   0.8594207143093222100000000,
        "family_history":          0.5405546900939015600000000,
    },
    age_1_interactions={
        "smoke_ex":             -0.2101113393351634600000000,
        "smoke_light":          0.7526867644750319100000000,
        "smoke_moderate":       0.9931588755640579100000000,
        "smoke_heavy":          2.1331163414389076000000000,
        "af":                   3.4896675530623207000000000,
        "corticosteroids":      1.1708133653489108000000000,
        "impotence":            -1.5064009857454310000000000,
        "migraine":             2.3491159871402441000000000,
        "renal":                -0.5065671632722369400000000,
        "treated_hypertension": 6.5114581098532671000000000,
        "type1":                5.3379864878006531000000000,
        "type2":                3.6461817406221311000000000,
        "bmi_1":                31.0049529560338860000000000,
        "bmi_2":                -111.2915718439164300000000000,
        "family_history":       2.7808628508531887000000000,
        "sbp":                  0.0188585244698658530000000,
        "town":                 -0.1007554870063731000000000,
    },
    age_2_interactions={
        "smoke_ex":             -0.0004985487027532612100000,
        "smoke_light":          -0.0007987563331738541400000,
        "smoke_moderate":       -0.0008370618426625129600000,
        "smoke_heavy":          -0.0007840031915563728900000,
        "af":                   -0.0003499560834063604900000,
        "corticosteroids":      -0.0002496045095297166000000,
        "impotence":            -0.0011058218441227373000000,
        "migraine":             0.0001989644604147863100000,
        "renal":                -0.0018325930166498813000000,
        "treated_hypertension": 0.0006383805310416501300000,
        "type1":                0.0006409780808752897000000,
        "type2":                -0.0002469569558886831500000,
        "bmi_1":                0.0050380102356322029000000,
        "bmi_2":                -0.0130744830025243190000000,
        "family_history":       -0.0002479180990739603700000,
        "sbp":                  -0.0000127187419158845700000,
        "town":                 -0.0000932996423232728880000,
    },
)

COEFFICIENTS: Dict[Sex, QRiskCoefficients] = {Sex.FEMALE: FEMALE, Sex.MALE: MALE}

_SMOKING_TERMS = {
    SmokingStatus.EX:       "smoke_ex",
    SmokingStatus.LIGHT:    "smoke_light",
    SmokingStatus.MODERATE: "smoke_moderate",
    SmokingStatus.HEAVY:    "smoke_heavy",
}


@dataclass(frozen=True)
class QRiskInputs:
    """Model inputs in natural units, before transformation."""
    sex: Sex
    age: float
    bmi: float
    cholesterol_ratio: float
    systolic_bp: float
    systolic_bp_sd: float = 0.0
    deprivation_index: float = 0.0
    ethnicity: Ethnicity = Ethnicity.WHITE
    smoking: SmokingStatus = SmokingStatus.NONE
    diabetes: DiabetesStatus = DiabetesStatus.NONE
    atrial_fibrillation: bool = False
    atypical_antipsychotics: bool = False
    corticosteroids: bool = False
    erectile_dysfunction: bool = False
    migraine: bool = False
    rheumatoid_arthritis: bool = False
    chronic_kidney_disease: bool = False
    severe_mental_illness: bool = False
    systemic_lupus: bool = False
    treated_hypertension: bool = False
    family_history_cvd: bool = False

    @classmethod
    def from_record(cls, record: NormalizedRecord) -> "QRiskInputs":
        for name in REQUIRED_FIELDS:
            if getattr(record, name) is None:
                raise MissingRequiredFieldError(name, model=MODEL_NAME)
        return cls(
            sex=record.sex,
            age=record.age,
            bmi=record.bmi,
            cholesterol_ratio=record.cholesterol_ratio,
            systolic_bp=record.systolic_bp,
            systolic_bp_sd=record.systolic_bp_sd or 0.0,
            deprivation_index=record.deprivation_index,
            ethnicity=record.ethnicity,
            smoking=record.smoking,
            diabetes=record.diabetes,
            atrial_fibrillation=record.atrial_fibrillation,
            atypical_antipsychotics=record.atypical_antipsychotics,
            corticosteroids=record.corticosteroids,
            erectile_dysfunction=record.erectile_dysfunction,
            migraine=record.migraine,
            rheumatoid_arthritis=record.rheumatoid_arthritis,
            chronic_kidney_disease=record.chronic_kidney_disease,
            severe_mental_illness=record.severe_mental_illness,
            systemic_lupus=record.systemic_lupus,
            treated_hypertension=record.on_bp_treatment,
            family_history_cvd=record.family_history_cvd,
        )

    def boolean_flags(self) -> Dict[str, int]:
        return {
            "af":                      int(self.atrial_fibrillation),
            "atypical_antipsychotics": int(self.atypical_antipsychotics),
            "corticosteroids":         int(self.corticosteroids),
            "impotence":               int(self.erectile_dysfunction and self.sex is Sex.MALE),
            "migraine":                int(self.migraine),
            "rheumatoid_arthritis":    int(self.rheumatoid_arthritis),
            "renal":                   int(self.chronic_kidney_disease),
            "severe_mental_illness":   int(self.severe_mental_illness),
            "sle":                     int(self.systemic_lupus),
            "treated_hypertension":    int(self.treated_hypertension),
            "type1":                   int(self.diabetes is DiabetesStatus.TYPE_1),
            "type2":                   int(self.diabetes is DiabetesStatus.TYPE_2),
            "family_history":          int(self.family_history_cvd),
        }


@dataclass(frozen=True)
class QRiskTerms:
    """Transformed and centred continuous terms plus indicator flags."""
    ethnicity: Ethnicity
    smoking: SmokingStatus
    age_1: float
    age_2: float
    bmi_1: float
    bmi_2: float
    rati: float
    sbp: float
    sbps5: float
    town: float
    flags: Mapping[str, int]

    def continuous(self) -> Dict[str, float]:
        return {
            "age_1": self.age_1, "age_2": self.age_2,
            "bmi_1": self.bmi_1, "bmi_2": self.bmi_2,
            "rati": self.rati, "sbp": self.sbp,
            "sbps5": self.sbps5, "town": self.town,
        }

    def interaction_values(self) -> Dict[str, float]:
        """Values multiplied by age_1 / age_2 in the interaction group."""
        values: Dict[str, float] = {name: 0.0 for name in _SMOKING_TERMS.values()}
        if self.smoking in _SMOKING_TERMS:
            values[_SMOKING_TERMS[self.smoking]] = 1.0
        values.update({k: float(v) for k, v in self.flags.items()})
        values.update({"bmi_1": self.bmi_1, "bmi_2": self.bmi_2, "sbp": self.sbp, "town": self.town})
        return values


def transform(inputs: QRiskInputs) -> QRiskTerms:
    """Apply the fractional-polynomial transforms and centre each term."""
    c = COEFFICIENTS[inputs.sex]
    dage = inputs.age / 10.0
    dbmi = inputs.bmi / 10.0

    if inputs.sex is Sex.FEMALE:
        age_1 = dage ** -2
        age_2 = dage
    else:
        age_1 = dage ** -1
        age_2 = dage ** 3
    bmi_1 = dbmi ** -2
    bmi_2 = dbmi ** -2 * math.log(dbmi)

    m = c.centering
    return QRiskTerms(
        ethnicity=inputs.ethnicity,
        smoking=inputs.smoking,
        age_1=age_1 - m["age_1"],
        age_2=age_2 - m["age_2"],
        bmi_1=bmi_1 - m["bmi_1"],
        bmi_2=bmi_2 - m["bmi_2"],
        rati=inputs.cholesterol_ratio - m["rati"],
        sbp=inputs.systolic_bp - m["sbp"],
        sbps5=inputs.systolic_bp_sd - m["sbps5"],
        town=inputs.deprivation_index - m["town"],
        flags=inputs.boolean_flags(),
    )


# ── Linear predictor groups ───────────────────────────────────────────────────

def categorical_sum(terms: QRiskTerms, c: QRiskCoefficients) -> float:
    return c.ethnicity[terms.ethnicity] + c.smoking[terms.smoking]


def continuous_sum(terms: QRiskTerms, c: QRiskCoefficients) -> float:
    values = terms.continuous()
    return sum(beta * values[name] for name, beta in c.continuous.items())


def boolean_sum(terms: QRiskTerms, c: QRiskCoefficients) -> float:
    return sum(beta * terms.flags.get(name, 0) for name, beta in c.boolean.items())


def interaction_sum(terms: QRiskTerms, c: QRiskCoefficients) -> float:
    values = terms.interaction_values()
    total = 0.0
    for name, beta in c.age_1_interactions.items():
        total += terms.age_1 * beta * values.get(name, 0.0)
    for name, beta in c.age_2_interactions.items():
        total += terms.age_2 * beta * values.get(name, 0.0)
    return total


def linear_predictor(terms: QRiskTerms, c: QRiskCoefficients) -> float:
    return (
        categorical_sum(terms, c)
        + continuous_sum(terms, c)
        + boolean_sum(terms, c)
        + interaction_sum(terms, c)
    )


def score(inputs: QRiskInputs) -> float:
    """10-year CVD risk as a percentage in [0, 100]."""
    c = COEFFICIENTS[inputs.sex]
    a = linear_predictor(transform(inputs), c)
    risk = 100.0 * (1.0 - c.baseline_survival ** math.exp(a))
    return float(np.clip(risk, 0.0, 100.0))


def calculate_risk(record: NormalizedRecord) -> float:
    """
    Base 10-year risk for a validated canonical record.

    Raises:
        MissingRequiredFieldError: a model input is None.
    """
    inputs = QRiskInputs.from_record(record)
    risk = score(inputs)
    logger.debug(f"QRISK3: sex={inputs.sex.value} age={inputs.age:g} base_risk={risk:.3f}%")
    return risk


def healthy_person_risk(record: NormalizedRecord) -> float:
    """Risk of a healthy person of the same age, sex and ethnicity."""
    inputs = QRiskInputs.from_record(record)
    healthy = QRiskInputs(
        sex=inputs.sex,
        age=inputs.age,
        bmi=HEALTHY_BMI,
        cholesterol_ratio=HEALTHY_RATIO,
        systolic_bp=HEALTHY_SBP,
        systolic_bp_sd=HEALTHY_SBP_SD,
        deprivation_index=HEALTHY_DEPRIVATION,
        ethnicity=inputs.ethnicity,
    )
    return score(healthy)


def age_window_warning(age: Optional[float]) -> Optional[str]:
    if age is None or AGE_MIN <= age <= AGE_MAX:
        return None
    return (
        f"QRISK3 is validated for ages {AGE_MIN}-{AGE_MAX}; "
        f"risk for age {age:g} is an extrapolation"
    )
