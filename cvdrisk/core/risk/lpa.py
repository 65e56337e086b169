"""
Lipoprotein(a) Risk Modifier

Piecewise-linear multiplier applied to a model's base risk. Lp(a) is in
mg/dL. Below 30 the multiplier is exactly 1.0, at or above 300 it is
exactly 3.0, and it never decreases in between.

    Lp(a) mg/dL     multiplier
    < 30            1.0
    30 → 50         1.0 → 1.3
    50 → 100        1.3 → 1.6
    100 → 200       1.6 → 2.0
    200 → 300       2.0 → 3.0
    ≥ 300           3.0
"""
from typing import Optional

import numpy as np

LPA_BREAKPOINTS  = (30.0, 50.0, 100.0, 200.0, 300.0)
LPA_MULTIPLIERS  = (1.0, 1.3, 1.6, 2.0, 3.0)

LPA_ELEVATED_MGDL = 50.0


def lpa_modifier(lpa_mgdl: Optional[float]) -> float:
    """Risk multiplier for an Lp(a) value; 1.0 when the value is absent."""
    if lpa_mgdl is None:
        return 1.0
    return float(np.interp(lpa_mgdl, LPA_BREAKPOINTS, LPA_MULTIPLIERS))


def apply_lpa_modifier(base_risk: float, lpa_mgdl: Optional[float]) -> float:
    """
    Modified risk as a percentage clamped to [0, 100].

    Returns ``base_risk`` unchanged when Lp(a) is absent.
    """
    if lpa_mgdl is None:
        return base_risk
    return float(np.clip(base_risk * lpa_modifier(lpa_mgdl), 0.0, 100.0))
