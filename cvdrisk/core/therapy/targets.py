"""
Lipid Target Resolver

Selects LDL-C, non-HDL-C and ApoB goals from the prevention context and,
for primary prevention, the highest known 10-year risk.

    Tier                 LDL   non-HDL  ApoB   reduction
    Extreme (2°, ACS/MV) 1.4   2.2      0.65   ≥50 %
    Very high (2°)       1.8   2.6      0.80   ≥50 %
    High (1°, ≥20 %)     2.0   2.6      0.80   ≥50 %
    Intermediate (≥10 %) 2.0   2.6      0.80   ≥30 %
    Low (<10 %)          3.5   4.2      1.00   ≥30 %   (treatment threshold)

Lp(a) ≥ 50 mg/dL tightens the LDL goal by 0.3 mmol/L, never below 1.4.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from cvdrisk.core.patient.base import NormalizedRecord, PreventionCategory, SecondaryDetail
from cvdrisk.core.risk.base import RiskContext
from cvdrisk.core.risk.classifier import HIGH_THRESHOLD, MODERATE_THRESHOLD
from cvdrisk.core.risk.lpa import LPA_ELEVATED_MGDL

from .base import TargetRiskTier, TherapyTargets

# tier → (ldl, non_hdl, apob, percent reduction)
TARGET_TABLE: Dict[TargetRiskTier, Tuple[float, float, float, int]] = {
    TargetRiskTier.EXTREME:      (1.4, 2.2, 0.65, 50),
    TargetRiskTier.VERY_HIGH:    (1.8, 2.6, 0.80, 50),
    TargetRiskTier.HIGH:         (2.0, 2.6, 0.80, 50),
    TargetRiskTier.INTERMEDIATE: (2.0, 2.6, 0.80, 30),
    TargetRiskTier.LOW:          (3.5, 4.2, 1.00, 30),
}

LPA_LDL_ADJUSTMENT = 0.3
LDL_FLOOR          = 1.4


def resolve_tier(record: NormalizedRecord, risk_context: Optional[RiskContext] = None) -> TargetRiskTier:
    prevention = record.prevention
    if prevention.category is PreventionCategory.SECONDARY:
        if prevention.secondary_detail in (SecondaryDetail.RECENT_ACS, SecondaryDetail.MULTIVESSEL):
            return TargetRiskTier.EXTREME
        return TargetRiskTier.VERY_HIGH

    highest = 0.0
    if risk_context is not None and risk_context.highest_risk is not None:
        highest = risk_context.highest_risk
    if highest >= HIGH_THRESHOLD:
        return TargetRiskTier.HIGH
    if highest >= MODERATE_THRESHOLD:
        return TargetRiskTier.INTERMEDIATE
    return TargetRiskTier.LOW


def determine_targets(
    record: NormalizedRecord,
    risk_context: Optional[RiskContext] = None,
) -> TherapyTargets:
    """Lipid targets for ``record``; no stored risk means the low tier."""
    tier = resolve_tier(record, risk_context)
    ldl, non_hdl, apob, reduction = TARGET_TABLE[tier]

    elevated_lpa = record.lpa is not None and record.lpa >= LPA_ELEVATED_MGDL
    lpa_adjusted = round(max(ldl - LPA_LDL_ADJUSTMENT, LDL_FLOOR), 2) if elevated_lpa else None

    return TherapyTargets(
        ldl=ldl,
        non_hdl=non_hdl,
        apob=apob,
        percent_reduction=reduction,
        risk_tier=tier,
        has_elevated_lpa=elevated_lpa,
        lpa_adjusted_ldl=lpa_adjusted,
    )
