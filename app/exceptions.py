"""
Exceptions raised by the Contest Hub content API.

Each class fixes the HTTP status and machine-readable code of one failure
seen by clients. ``app.error_handlers`` turns them into the shared error body.

    ContestHubException
    ├── ValidationError (400)
    │   ├── ContentValidationError
    │   ├── InvalidIdentifierError
    │   └── InvalidPageError
    ├── AuthenticationError (401)
    ├── AuthorizationError (403)
    │   └── PermissionDeniedError
    ├── ResourceNotFoundError (404)
    │   └── ContentNotFoundError
    └── DatabaseError (500)
        └── PersistenceError
"""

from enum import Enum
from typing import Any, Dict, List, Optional

MAX_ECHOED_VALUE = 100


class ErrorCode(str, Enum):
    """Machine-readable codes sent as ``error_code``."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_PAGE = "INVALID_PAGE"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INVALID_API_KEY = "INVALID_API_KEY"

    PERMISSION_DENIED = "PERMISSION_DENIED"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"

    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"


class ContestHubException(Exception):
    """
    Base class for every error the API reports deliberately.

    Attributes:
        message: Client-facing message.
        error_code: Value sent as ``error_code``.
        details: Client-facing context, filtered again before sending.
        internal_message: Extra context for the logs only.
    """

    status_code: int = 500
    default_error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        self.internal_message = internal_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, error_code={self.error_code.value!r})"
        )


class ValidationError(ContestHubException):
    """The request itself is malformed."""

    status_code = 400
    default_error_code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid request data"


class ContentValidationError(ValidationError):
    """
    A payload does not match its declared shape.

    ``errors`` holds one ``{"field", "message"}`` entry per offending field
    and is sent as ``details["errors"]``.
    """

    default_message = "Content payload failed validation"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            if len(errors) == 1:
                message = errors[0]["message"]
            else:
                message = f"Validation failed with {len(errors)} error(s)"
        super().__init__(message=message, details={"errors": errors})


def _echo(value: Any) -> str:
    text = str(value)
    if len(text) > MAX_ECHOED_VALUE:
        return text[:MAX_ECHOED_VALUE] + "..."
    return text


class InvalidIdentifierError(ValidationError):
    """A content id is not well-formed for the store."""

    default_error_code = ErrorCode.INVALID_IDENTIFIER
    default_message = "Malformed content identifier"

    def __init__(self, content_id: str):
        super().__init__(details={"field": "id", "value": _echo(content_id)})


class InvalidPageError(ValidationError):
    """A list request named a page that is not an integer of at least 1."""

    default_error_code = ErrorCode.INVALID_PAGE
    default_message = "Page must be an integer greater than or equal to 1"

    def __init__(self, page: Any):
        super().__init__(details={"field": "page", "value": _echo(page)})


class AuthenticationError(ContestHubException):
    """No usable API key and dev mode is off."""

    status_code = 401
    default_error_code = ErrorCode.AUTHENTICATION_REQUIRED
    default_message = "Authentication required"


class AuthorizationError(ContestHubException):
    """The caller is known but not allowed to do this."""

    status_code = 403
    default_error_code = ErrorCode.PERMISSION_DENIED
    default_message = "Permission denied"


class PermissionDeniedError(AuthorizationError):
    """The caller is neither the content owner nor an admin."""

    default_message = "You can only modify your own content"

    def __init__(self, content_id: str, user_id: str):
        super().__init__(
            internal_message=f"User {user_id} denied mutation of content {content_id}",
        )


class ResourceNotFoundError(ContestHubException):
    status_code = 404
    default_error_code = ErrorCode.RESOURCE_NOT_FOUND
    default_message = "Resource not found"


class ContentNotFoundError(ResourceNotFoundError):
    """A well-formed content id has no stored record."""

    default_error_code = ErrorCode.CONTENT_NOT_FOUND
    default_message = "Content not found"

    def __init__(self, content_id: str):
        super().__init__(details={"resource_id": _echo(content_id)})


class DatabaseError(ContestHubException):
    status_code = 500
    default_error_code = ErrorCode.DATABASE_ERROR
    default_message = "A database error occurred"


class PersistenceError(DatabaseError):
    """
    A content store call failed, or returned a document that no longer parses.

    Never retried. Connection and timeout failures carry ``CONNECTION_ERROR``;
    everything else ``DATABASE_ERROR``. The cause is sent in
    ``details["cause"]``.
    """

    default_message = "Content storage operation failed"

    def __init__(self, operation: str, original_error: Exception):
        self.operation = operation
        self.original_error = original_error
        error_code = (
            ErrorCode.CONNECTION_ERROR
            if isinstance(original_error, (ConnectionError, TimeoutError))
            else ErrorCode.DATABASE_ERROR
        )
        super().__init__(
            error_code=error_code,
            details={
                "operation": operation,
                "cause": f"{type(original_error).__name__}: {original_error}",
            },
            internal_message=f"Store operation '{operation}' failed: {original_error!r}",
        )
