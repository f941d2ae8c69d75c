"""
Exception handlers for the Contest Hub content API.

Every error leaves the process in one shape:

    {"success": false, "error": "...", "error_code": "...", "details": {...}}

Messages and details are scrubbed before sending. Server faults are logged
with their traceback and reported to Sentry.
"""

import logging
import os
import re
import uuid
from typing import Any, Dict, List, Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import ContentValidationError, ContestHubException, ErrorCode

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 500
MAX_LISTED_ERRORS = 20

# Messages mentioning any of these are replaced wholesale.
SENSITIVE_REGEX = re.compile(
    r"api[_-]?key|secret|password|token|credential|bearer|rediss?://|/home/|/Users/|/etc/",
    re.IGNORECASE,
)
_PATH_REGEX = re.compile(r"[/\\][\w./\\-]+\.\w+")
_IP_REGEX = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")

# Only keys produced by app.exceptions and the handlers below are sent.
SAFE_DETAIL_KEYS = frozenset({
    "field", "value", "resource_id", "operation", "cause", "errors",
    "error_reference", "sentry_event_id",
})

_TYPE_MESSAGES = {
    "string_type": "must be a string",
    "string_too_short": "must not be empty",
    "int_type": "must be an integer",
    "int_parsing": "must be an integer",
    "int_from_float": "must be an integer",
    "greater_than_equal": "must not be negative",
    "list_type": "must be a list",
}

_HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: ErrorCode.RESOURCE_NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
}


def is_production() -> bool:
    """Read at call time so tests can switch environments."""
    return os.environ.get("ENVIRONMENT", "development").lower() == "production"


def sanitize_error_message(message: str) -> str:
    """Drop messages that mention secrets; mask file paths and IPs; cap length."""
    if not message:
        return message

    if SENSITIVE_REGEX.search(message):
        return "An error occurred while processing your request"

    message = _PATH_REGEX.sub("[path]", message)
    message = _IP_REGEX.sub("[ip]", message)

    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[:MAX_MESSAGE_LENGTH] + "..."
    return message


def _sanitize_value(value: Any) -> Optional[Any]:
    if isinstance(value, str):
        return sanitize_error_message(value)
    if isinstance(value, (int, float, bool)):
        return value
    if isinstance(value, dict):
        return {
            str(k): sanitize_error_message(v) if isinstance(v, str) else v
            for k, v in value.items()
            if isinstance(v, (str, int, float, bool))
        }
    return None


def sanitize_details(details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Keep whitelisted keys only.

    Lists (the per-field ``errors``) keep primitives and flat dicts, capped
    at ``MAX_LISTED_ERRORS`` entries.
    """
    if not details:
        return {}

    sanitized: Dict[str, Any] = {}
    for key, value in details.items():
        if key not in SAFE_DETAIL_KEYS:
            continue
        if isinstance(value, list):
            items = [_sanitize_value(v) for v in value]
            sanitized[key] = [v for v in items if v is not None][:MAX_LISTED_ERRORS]
        else:
            cleaned = _sanitize_value(value)
            if cleaned is not None:
                sanitized[key] = cleaned
    return sanitized


def format_pydantic_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Turn pydantic error dicts into ``{"field", "message"}`` entries.

    ``body``/``query``/``path`` location prefixes are dropped; an empty
    location means the body as a whole was not an object.
    """
    formatted = []
    for error in errors[:MAX_LISTED_ERRORS]:
        parts = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(parts) if parts else "request"
        error_type = error.get("type", "")

        if error_type in ("model_type", "dict_type") or not parts:
            message = "Request body must be a JSON object"
        elif error_type == "missing":
            message = f"Field '{field}' is required"
        elif error_type in _TYPE_MESSAGES:
            message = f"Field '{field}' {_TYPE_MESSAGES[error_type]}"
        else:
            message = sanitize_error_message(error.get("msg", "Invalid value"))

        formatted.append({"field": field, "message": message})
    return formatted


def create_error_response(
    status_code: int,
    error: str,
    error_code: ErrorCode,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "success": False,
        "error": sanitize_error_message(error),
        "error_code": error_code.value,
    }
    sanitized = sanitize_details(details)
    if sanitized:
        content["details"] = sanitized
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def report_to_sentry(
    exc: Exception,
    request: Request,
    extra_context: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Capture ``exc`` with the request's method, path, caller and request id.

    Returns:
        The Sentry event id, or None when Sentry is inactive or fails.
    """
    try:
        if not sentry_sdk.get_client().is_active():
            return None

        with sentry_sdk.new_scope() as scope:
            scope.set_context("request", {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
            })
            user_id = getattr(request.state, "user_id", None)
            if user_id:
                scope.set_user({"id": user_id})
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                scope.set_tag("request_id", request_id)
            if extra_context:
                scope.set_context("extra", extra_context)
            return sentry_sdk.capture_exception(exc)

    except Exception as e:
        logger.warning(f"Failed to report exception to Sentry: {e}")
        return None


# =============================================================================
# Exception Handlers
# =============================================================================

async def contest_hub_exception_handler(
    request: Request,
    exc: ContestHubException,
) -> JSONResponse:
    log_message = f"{request.method} {request.url.path} -> {exc.__class__.__name__}: {exc.message}"
    if exc.internal_message:
        log_message += f" | {exc.internal_message}"

    if exc.status_code >= 500:
        logger.error(log_message, exc_info=exc)
        report_to_sentry(exc, request)
    else:
        logger.warning(log_message)

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "ApiKey"}

    return create_error_response(
        status_code=exc.status_code,
        error=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        headers=headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Query and path validation failures are 400s like any other bad input."""
    return await contest_hub_exception_handler(
        request, ContentValidationError(format_pydantic_errors(exc.errors()))
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Routing errors (unknown path, wrong method) in the shared shape."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    logger.warning(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {detail}")

    headers = None
    if exc.headers and "Allow" in exc.headers:
        headers = {"Allow": exc.headers["Allow"]}

    return create_error_response(
        status_code=exc.status_code,
        error=detail,
        error_code=_HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN_ERROR),
        headers=headers,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Anything else is a server fault.

    The client gets a short reference to quote; the traceback goes to the
    logs and Sentry.
    """
    error_reference = uuid.uuid4().hex[:8]
    logger.error(
        f"Unhandled exception [ref:{error_reference}] on "
        f"{request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )

    details: Dict[str, Any] = {"error_reference": error_reference}
    event_id = report_to_sentry(exc, request, extra_context=details)
    if event_id:
        details["sentry_event_id"] = event_id

    if is_production():
        message = "An unexpected error occurred. Please try again later."
    else:
        message = f"Internal server error: {type(exc).__name__}"

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=message,
        error_code=ErrorCode.INTERNAL_ERROR,
        details=details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ContestHubException, contest_hub_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
