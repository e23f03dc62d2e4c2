"""
Shared error handling for the Percentage Calculator.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import get_request_id


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class CalculatorException(Exception):
    """Base exception for calculator services."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=get_request_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(CalculatorException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class PercentageUnavailableError(CalculatorException):
    """Raised when no percentage can be obtained from the cache or the provider."""

    status_code = 503

    def __init__(self, message: str = "Percentage unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERCENTAGE_UNAVAILABLE", message, details)


class StorageUnavailableError(CalculatorException):
    """Audit storage errors."""

    status_code = 503

    def __init__(self, message: str = "Storage unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_UNAVAILABLE", message, details)


class UnexpectedError(CalculatorException):
    """Any failure not covered by a more specific error."""

    status_code = 500

    def __init__(self, message: str = "Unexpected error", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNEXPECTED_ERROR", message, details)
