"""
Error Codes and Exceptions.

Every error the job core raises carries a machine-readable code and can be
rendered as the standard API error body:

    {
        "success": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>",
        "details": {...}            # only when present
    }

Taxonomy:
    - ValidationError: bad text / voice, rejected before a job exists
    - NotFoundError: unknown job id
    - InvalidStateError: operation not legal for the job's current status
    - RetryLimitError: retry chain exhausted
    - SynthesisError: the external provider failed; recorded on the job,
      never raised out of submit()
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Standardized error codes for API responses."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    RETRY_LIMIT = "RETRY_LIMIT"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class JobError(Exception):
    """
    Base exception for the tts-jobs service.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the standard error response body."""
        result: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(JobError):
    """Raised when submitted text, voice or filename is rejected."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class NotFoundError(JobError):
    """Raised when a job id (or output file) is unknown."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.NOT_FOUND, details)


class InvalidStateError(JobError):
    """Raised when an operation is not legal for the job's status."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.INVALID_STATE, details)


class RetryLimitError(JobError):
    """Raised when a retry chain has reached the configured bound."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.RETRY_LIMIT, details)


class SynthesisError(JobError):
    """Raised by a SynthesisClient when audio could not be produced."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.SYNTHESIS_FAILED, details)


# HTTP status for each code, used by the API layer
HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.RETRY_LIMIT: 429,
    ErrorCode.SYNTHESIS_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}
