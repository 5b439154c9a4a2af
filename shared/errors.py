"""
Shared error handling for the CRPT document client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class CrptException(Exception):
    """Base exception for the CRPT client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(CrptException):
    """Invalid gate or client configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ValidationError(CrptException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ExternalServiceError(CrptException):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class UnexpectedStatusError(CrptException):
    """The API answered with a status other than the expected one."""

    def __init__(self, status_code: int, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(
            "UNEXPECTED_STATUS",
            f"Unexpected response status: {status_code}",
            {"status_code": status_code, **(details or {})}
        )


class DocumentDecodeError(CrptException):
    """Response body could not be decoded into a document."""

    def __init__(self, message: str = "Response is not a valid document", details: Optional[Dict[str, Any]] = None):
        super().__init__("DOCUMENT_DECODE_ERROR", message, details)


class OperationFailedError(CrptException):
    """A gated operation failed; the original exception is the cause."""

    def __init__(self, cause: BaseException, details: Optional[Dict[str, Any]] = None):
        cause_details: Dict[str, Any] = {"cause_type": type(cause).__name__}
        if isinstance(cause, CrptException):
            cause_details["cause_code"] = cause.code
            cause_details.update(cause.details)
        cause_details.update(details or {})
        super().__init__("OPERATION_FAILED", f"Unexpected exception: {cause}", cause_details)
