"""
Core utilities and infrastructure for the Wisdom Compass application.
"""

from core.exceptions import (
    InspireException,
    DatabaseException,
    RecordNotFoundError,
    DuplicateRecordError,
    DatabaseConnectionError,
    UserNotFoundError,
    ExternalServiceException,
    IdentityProviderError,
    ValidationException,
    InvalidInputError,
    ConfigurationError,
)
from core.logging_config import configure_logging, get_logger

__all__ = [
    "InspireException",
    "DatabaseException",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "DatabaseConnectionError",
    "UserNotFoundError",
    "ExternalServiceException",
    "IdentityProviderError",
    "ValidationException",
    "InvalidInputError",
    "ConfigurationError",
    "configure_logging",
    "get_logger",
]
