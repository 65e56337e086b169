"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    RiskEngineError,
    MissingRequiredFieldError,
    OutOfPhysiologicalRangeError,
    UnsupportedUnitError,
    InputValidationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "RiskEngineError",
    "MissingRequiredFieldError",
    "OutOfPhysiologicalRangeError",
    "UnsupportedUnitError",
    "InputValidationError",
]
