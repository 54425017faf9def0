"""
Custom exception types for the Tech Incidents catalog.

Every exception carries the error type tag and HTTP status used when it is
rendered into the error envelope by the web layer.
"""
from typing import Any, Optional


class TechIncidentsError(Exception):
    """Base exception for all catalog errors."""

    error_type = "unknown_error"
    status = 500

    def __init__(
        self,
        message: str = "",
        *,
        status: Optional[int] = None,
        error_type: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        if error_type is not None:
            self.error_type = error_type
        self.details = details


# Validation errors
class ValidationError(TechIncidentsError):
    """Request or form data failed validation."""
    error_type = "validation_error"
    status = 400


class MissingFieldError(ValidationError):
    """A required field is absent or blank."""
    pass


class FileTooLargeError(ValidationError):
    """Embedded upload exceeds the size limit."""
    error_type = "file_too_large"
    status = 413


class InvalidFileTypeError(ValidationError):
    """Embedded upload has an unsupported content type."""
    error_type = "invalid_file_type"
    status = 415


# Catalog errors
class CatalogError(TechIncidentsError):
    """Base exception for catalog and navigation errors."""
    pass


class IncidentNotFoundError(CatalogError):
    """Incident not found in the current collection."""
    error_type = "not_found"
    status = 404


class FolderNotFoundError(CatalogError):
    """Decade or year folder not present in the grouping."""
    error_type = "not_found"
    status = 404


# Authentication errors
class AuthenticationError(TechIncidentsError):
    """No usable session."""
    error_type = "auth_required"
    status = 401


# Backend errors
class BackendError(TechIncidentsError):
    """The hosted backend answered with an error status."""
    error_type = "service_unavailable"
    status = 502


class BackendConnectionError(BackendError):
    """Connection to the hosted backend failed."""
    error_type = "network_error"
    status = 502


class BackendTimeoutError(BackendError):
    """Request to the hosted backend timed out."""
    error_type = "timeout"
    status = 504


# Configuration errors
class ConfigurationError(TechIncidentsError):
    """Base exception for configuration errors."""
    pass


class MissingConfigError(ConfigurationError):
    """Required configuration missing."""
    error_type = "service_unavailable"
    status = 503


__all__ = [
    "TechIncidentsError",
    "ValidationError",
    "MissingFieldError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "CatalogError",
    "IncidentNotFoundError",
    "FolderNotFoundError",
    "AuthenticationError",
    "BackendError",
    "BackendConnectionError",
    "BackendTimeoutError",
    "ConfigurationError",
    "MissingConfigError",
]
