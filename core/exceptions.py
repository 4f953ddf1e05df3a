"""
Custom exception hierarchy for the Wisdom Compass application.
Provides structured error handling with proper context.
"""

from typing import Optional, Dict, Any


class InspireException(Exception):
    """Base exception for all Wisdom Compass errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ==================== Database Exceptions ====================


class DatabaseException(InspireException):
    """Base exception for database-related errors."""

    pass


class RecordNotFoundError(DatabaseException):
    """Raised when a database record is not found."""

    status_code = 404

    def __init__(self, model: str, identifier: Any):
        super().__init__(
            message=f"{model} not found",
            error_code="RECORD_NOT_FOUND",
            context={"model": model, "identifier": identifier},
        )


class DuplicateRecordError(DatabaseException):
    """Raised when attempting to create a duplicate record."""

    status_code = 409

    def __init__(self, model: str, field: str, value: Any, message: Optional[str] = None):
        super().__init__(
            message=message or f"{model} with {field}={value} already exists",
            error_code="DUPLICATE_RECORD",
            context={"model": model, "field": field, "value": value},
        )


class DatabaseConnectionError(DatabaseException):
    """Raised when database connection fails."""

    status_code = 503

    def __init__(self, details: Optional[str] = None):
        super().__init__(
            message="Failed to connect to database",
            error_code="DATABASE_CONNECTION_ERROR",
            context={"details": details} if details else {},
        )


class UserNotFoundError(DatabaseException):
    """Raised when user is not found."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User {user_id} not found",
            error_code="USER_NOT_FOUND",
            context={"user_id": user_id},
        )


# ==================== API/External Service Exceptions ====================


class ExternalServiceException(InspireException):
    """Base exception for external service errors."""

    status_code = 502


class IdentityProviderError(ExternalServiceException):
    """Raised when a call to the OpenID Connect provider fails."""

    def __init__(self, operation: str, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(
            message=f"Identity provider request failed: {operation}",
            error_code="IDENTITY_PROVIDER_ERROR",
            context={"operation": operation, "status_code": status_code, "details": details},
        )


# ==================== Validation Exceptions ====================


class ValidationException(InspireException):
    """Base exception for validation errors."""

    status_code = 400


class InvalidInputError(ValidationException):
    """Raised when input validation fails."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid input: {field} - {reason}",
            error_code="INVALID_INPUT",
            context={"field": field, "reason": reason},
        )


class ConfigurationError(ValidationException):
    """Raised when configuration is invalid."""

    status_code = 500

    def __init__(self, setting: str, reason: str):
        super().__init__(
            message=f"Invalid configuration: {setting} - {reason}",
            error_code="CONFIGURATION_ERROR",
            context={"setting": setting, "reason": reason},
        )
