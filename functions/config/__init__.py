"""Quantity Engine configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import ErrorCode, QuantityEngineError, ValidationError

__all__ = [
    "settings",
    "ErrorCode",
    "QuantityEngineError",
    "ValidationError",
]
