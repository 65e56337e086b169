"""
Custom Exception Hierarchy

Provides specific exception types for the input error categories of the
risk engine, each with structured error information.
"""
from typing import Optional, Dict, Any, Sequence


class RiskEngineError(Exception):
    """Base exception for all risk engine errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serialisable dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class MissingRequiredFieldError(RiskEngineError):
    """A field a risk model needs is absent from the record."""

    def __init__(
        self,
        field: str,
        model: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Required field '{field}' is missing for {model}",
            code="MISSING_REQUIRED_FIELD",
            details={"field": field, "model": model, **(details or {})}
        )
        self.field = field
        self.model = model


class OutOfPhysiologicalRangeError(RiskEngineError):
    """A value lies outside the physiologically possible range."""

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="OUT_OF_PHYSIOLOGICAL_RANGE",
            details={"field": field, **(details or {})}
        )
        self.field = field


class UnsupportedUnitError(RiskEngineError):
    """A unit tag has no conversion path for the quantity it labels."""

    def __init__(
        self,
        unit: str,
        quantity: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Unit '{unit}' is not supported for {quantity}",
            code="UNSUPPORTED_UNIT",
            details={"unit": unit, "quantity": quantity, **(details or {})}
        )
        self.unit = unit
        self.quantity = quantity


class InputValidationError(RiskEngineError):
    """
    Batch of blocking input problems found before any model ran.

    ``issues`` holds every error-level issue so callers can report all
    of them at once.
    """

    def __init__(
        self,
        issues: Sequence[Any],
        details: Optional[Dict[str, Any]] = None
    ):
        issues = list(issues)
        super().__init__(
            message=f"Patient record failed validation with {len(issues)} error(s)",
            code="INPUT_VALIDATION_ERROR",
            details={"issues": [i.to_dict() for i in issues], **(details or {})}
        )
        self.issues = issues
