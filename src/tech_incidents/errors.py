"""
Uniform error envelope for proxy and catalog failures.

Every failure surfaced to a client is normalized into::

    {"error": <message>, "type": <tag>, "status": <http status>,
     "timestamp": <ISO-8601 UTC>, "details": <optional>}

Backend responses are classified by HTTP status first, then refined from
the detail text the backend returned (bad credentials, expired tokens,
duplicate accounts).
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .exceptions import TechIncidentsError

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Error type tags shared by the proxy routes and the CLI."""
    AUTH_REQUIRED = "auth_required"
    INVALID_CREDENTIALS = "invalid_credentials"
    SESSION_NOT_FOUND = "session_not_found"
    TOKEN_EXPIRED = "token_expired"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_FILE_TYPE = "invalid_file_type"
    BAD_REQUEST = "bad_request"
    VALIDATION_ERROR = "validation_error"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNKNOWN_ERROR = "unknown_error"


ERROR_MESSAGES: Dict[ErrorType, str] = {
    ErrorType.BAD_REQUEST: "Missing or invalid request data.",
    ErrorType.VALIDATION_ERROR: "Please check the highlighted fields and try again.",
    ErrorType.AUTH_REQUIRED: "Please sign in to continue.",
    ErrorType.INVALID_CREDENTIALS: "Invalid email or password. Please try again.",
    ErrorType.SESSION_NOT_FOUND: "User session not found. Signing in is optional.",
    ErrorType.TOKEN_EXPIRED: "Password reset token has expired. Please request a new one.",
    ErrorType.PERMISSION_DENIED: "You don't have permission to perform this action.",
    ErrorType.NOT_FOUND: "The requested resource was not found.",
    ErrorType.ALREADY_EXISTS: "This resource already exists.",
    ErrorType.FILE_TOO_LARGE: "The file is too large. Maximum size is 5MB.",
    ErrorType.INVALID_FILE_TYPE: "This file type is not supported.",
    ErrorType.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorType.SERVICE_UNAVAILABLE: "Service is temporarily unavailable. Please try again later.",
    ErrorType.NETWORK_ERROR: "Network error. Please check your connection and try again.",
    ErrorType.TIMEOUT: "Request timed out. Please try again.",
    ErrorType.UNKNOWN_ERROR: "An error occurred. Please try again.",
}

STATUS_CODE_MAP: Dict[int, ErrorType] = {
    400: ErrorType.VALIDATION_ERROR,
    401: ErrorType.AUTH_REQUIRED,
    403: ErrorType.PERMISSION_DENIED,
    404: ErrorType.NOT_FOUND,
    408: ErrorType.TIMEOUT,
    409: ErrorType.ALREADY_EXISTS,
    413: ErrorType.FILE_TOO_LARGE,
    415: ErrorType.INVALID_FILE_TYPE,
    429: ErrorType.RATE_LIMITED,
    500: ErrorType.SERVICE_UNAVAILABLE,
    502: ErrorType.SERVICE_UNAVAILABLE,
    503: ErrorType.SERVICE_UNAVAILABLE,
    504: ErrorType.TIMEOUT,
}


class ErrorEnvelope(BaseModel):
    """
    Error payload returned by every failing endpoint.

    Attributes:
        error: User-visible message
        type: Error type tag
        status: HTTP status code
        timestamp: When the error was produced (ISO-8601, UTC)
        details: Backend-provided or field-level detail, if any
    """
    error: str
    type: ErrorType = ErrorType.UNKNOWN_ERROR
    status: int = 500
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    details: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        if data["details"] is None:
            del data["details"]
        return data


def get_error_message(error_type: ErrorType | str) -> str:
    """Return the user-facing message for an error type tag."""
    try:
        return ERROR_MESSAGES[ErrorType(error_type)]
    except ValueError:
        return ERROR_MESSAGES[ErrorType.UNKNOWN_ERROR]


def _detail_text(details: Any) -> str:
    if isinstance(details, dict):
        return str(details.get("error") or details.get("message") or "")
    if details is None:
        return ""
    return str(details)


def classify_status(status: int, details: Any = None) -> ErrorType:
    """
    Map an HTTP status (plus the backend's detail text) to an error type.

    Args:
        status: HTTP status returned by the backend
        details: Parsed error body or message from the backend

    Returns:
        The most specific error type that applies
    """
    error_type = STATUS_CODE_MAP.get(status, ErrorType.UNKNOWN_ERROR)
    text = _detail_text(details).lower()

    if status == 401 and "credentials" in text:
        return ErrorType.INVALID_CREDENTIALS
    if status == 401 and "expired" in text:
        return ErrorType.TOKEN_EXPIRED
    if status == 400 and "already exists" in text:
        return ErrorType.ALREADY_EXISTS

    return error_type


def build_envelope(error: Exception) -> ErrorEnvelope:
    """
    Normalize any exception into an error envelope.

    Catalog exceptions keep their own message, tag and status; anything
    else becomes an opaque 500.
    """
    if isinstance(error, TechIncidentsError):
        try:
            error_type = ErrorType(error.error_type)
        except ValueError:
            error_type = ErrorType.UNKNOWN_ERROR
        return ErrorEnvelope(
            error=error.message or get_error_message(error_type),
            type=error_type,
            status=error.status,
            details=error.details,
        )

    logger.debug(f"Normalizing unexpected error type {type(error).__name__}")
    return ErrorEnvelope(
        error=ERROR_MESSAGES[ErrorType.UNKNOWN_ERROR],
        type=ErrorType.UNKNOWN_ERROR,
        status=500,
    )
