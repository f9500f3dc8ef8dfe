"""Error taxonomy and classification for API client failures."""

from enum import Enum
from typing import Any

from pydantic import BaseModel

from ecopoints.core.config import constants


class ErrorCategory(Enum):
    """Categories of errors that can occur while talking to the backend."""

    NETWORK_ERROR = "network_error"
    AUTHENTICATION_FAILED = "authentication_failed"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    VALIDATION_FAILED = "validation_failed"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"
    ERR_AUTHENTICATION_FAILED = "ERR_AUTHENTICATION_FAILED"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_SERVER_ERROR = "ERR_SERVER_ERROR"
    ERR_VALIDATION_FAILED = "ERR_VALIDATION_FAILED"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ApiError(Exception):
    """Base class for every classified backend failure."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str = constants.GENERIC_ERROR_MESSAGE, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(ApiError):
    """No response was received (connection refused, DNS failure, timeout)."""

    category = ErrorCategory.NETWORK_ERROR

    def __init__(self, message: str = constants.NETWORK_ERROR_MESSAGE) -> None:
        super().__init__(message, status_code=None)


class UnauthorizedError(ApiError):
    """The server rejected the credentials (HTTP 401)."""

    category = ErrorCategory.AUTHENTICATION_FAILED


class EndpointUnavailableError(ApiError):
    """The endpoint is missing or broken (HTTP 404 or 500).

    Only this class of error triggers client-side synthesis.
    """

    category = ErrorCategory.SERVER_ERROR


class NotFoundError(EndpointUnavailableError):
    """HTTP 404."""

    category = ErrorCategory.NOT_FOUND


class InternalServerError(EndpointUnavailableError):
    """HTTP 500."""


class ServiceError(ApiError):
    """Any other 5xx response."""

    category = ErrorCategory.SERVER_ERROR


class ClientRequestError(ApiError):
    """Any other 4xx response, usually a validation failure."""

    category = ErrorCategory.VALIDATION_FAILED


def extract_error_message(body: Any) -> str:
    """Return the server-provided message of an error body, or the generic fallback."""
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return constants.GENERIC_ERROR_MESSAGE


def classify_status(status_code: int, message: str = constants.GENERIC_ERROR_MESSAGE) -> ApiError:
    """Build the exception matching an HTTP error status."""
    if status_code == constants.HTTP_UNAUTHORIZED:
        return UnauthorizedError(message, status_code=status_code)
    if status_code == constants.HTTP_NOT_FOUND:
        return NotFoundError(message, status_code=status_code)
    if status_code == constants.HTTP_SERVER_ERROR:
        return InternalServerError(message, status_code=status_code)
    if status_code > constants.HTTP_SERVER_ERROR:
        return ServiceError(message, status_code=status_code)
    if status_code >= constants.HTTP_CLIENT_ERROR_START:
        return ClientRequestError(message, status_code=status_code)
    return ApiError(message, status_code=status_code)


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_api_error(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a client call

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, NetworkError):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message=exception.message,
            suggestion="Check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, UnauthorizedError):
        return ErrorResponse(
            code=ErrorCode.ERR_AUTHENTICATION_FAILED,
            message="Your session has expired.",
            suggestion="Please sign in again.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=exception.message,
            suggestion="This feature may not be available yet.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, InternalServerError | ServiceError):
        return ErrorResponse(
            code=ErrorCode.ERR_SERVER_ERROR,
            message=exception.message,
            suggestion="The server is having trouble. Please try again later.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, ClientRequestError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION_FAILED,
            message=exception.message,
            suggestion="Check the submitted values and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ApiError):
        return ErrorResponse(
            code=ErrorCode.ERR_UNKNOWN,
            message=exception.message,
            suggestion="Please try again later. If the problem persists, contact support.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
