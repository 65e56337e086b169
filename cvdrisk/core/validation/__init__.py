"""
Validation Layer

Plausibility limits for single values, cross-field contradiction rules
and batched record validation.
"""
from .plausibility import (
    PLAUSIBILITY_LIMITS,
    ParameterType,
    PlausibilityResult,
    RecordValidator,
    ValidationReport,
    check,
    check_cross_field,
)

__all__ = [
    "PLAUSIBILITY_LIMITS",
    "ParameterType",
    "PlausibilityResult",
    "RecordValidator",
    "ValidationReport",
    "check",
    "check_cross_field",
]
