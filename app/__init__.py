"""
Contest Hub Application Package

This package contains the modularized FastAPI application components.
"""

from .error_handlers import register_exception_handlers
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ContentNotFoundError,
    ContentValidationError,
    ContestHubException,
    DatabaseError,
    ErrorCode,
    InvalidIdentifierError,
    InvalidPageError,
    PermissionDeniedError,
    PersistenceError,
    ResourceNotFoundError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Exception classes
    "ContestHubException",
    "ValidationError",
    "ContentValidationError",
    "InvalidIdentifierError",
    "InvalidPageError",
    "AuthenticationError",
    "AuthorizationError",
    "PermissionDeniedError",
    "ResourceNotFoundError",
    "ContentNotFoundError",
    "DatabaseError",
    "PersistenceError",
    "ErrorCode",
    # Error handlers
    "register_exception_handlers",
]
