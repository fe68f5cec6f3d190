"""Quantity Engine error handling.

Error codes and exceptions for the quantity resolution engine. Resolution
operations report failures as data (``error`` + ``error_code`` on the
output); exceptions are only raised by explicit caller actions such as
building a manual override from invalid values.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_OVERRIDE = "INVALID_OVERRIDE"

    # Resolution Errors (2xxx)
    UNRESOLVABLE_CATEGORY = "UNRESOLVABLE_CATEGORY"
    MISSING_COVERAGE_RATE = "MISSING_COVERAGE_RATE"

    # Engine Errors (9xxx)
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Human-readable messages surfaced on failed outputs
ERROR_MESSAGES: Dict[str, str] = {
    ErrorCode.INVALID_INPUT: "invalid input value",
    ErrorCode.UNRESOLVABLE_CATEGORY: "unresolvable material category",
    ErrorCode.MISSING_COVERAGE_RATE: "coverage rate not available",
    ErrorCode.INTERNAL_ERROR: "internal resolution error",
}


class QuantityEngineError(Exception):
    """Base exception for Quantity Engine errors.

    Provides structured error information for callers.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize QuantityEngineError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"QuantityEngineError(code={self.code!r}, message={self.message!r})"


class ValidationError(QuantityEngineError):
    """Validation-specific error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field
