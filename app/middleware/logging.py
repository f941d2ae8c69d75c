"""
Request logging middleware.

One log line per request with method, path, status, duration and caller.
``X-Request-ID`` is reused when the client sends one and generated otherwise;
it is echoed back together with ``X-Response-Time``.
"""

import logging
import time
import uuid
from typing import Callable, FrozenSet, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import clear_request_context, set_request_context

logger = logging.getLogger(__name__)

QUIET_PATHS: FrozenSet[str] = frozenset({"/", "/docs", "/openapi.json", "/redoc", "/favicon.ico"})

# Polled by load balancers; logged only when they fail.
HEALTH_PATHS: FrozenSet[str] = frozenset({"/health", "/health/storage"})


def _status_level(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs its outcome."""

    def __init__(
        self,
        app,
        quiet_paths: Optional[FrozenSet[str]] = None,
        health_paths: Optional[FrozenSet[str]] = None,
    ):
        super().__init__(app)
        self.quiet_paths = quiet_paths or QUIET_PATHS
        self.health_paths = health_paths or HEALTH_PATHS

    def _should_log(self, path: str, status_code: int) -> bool:
        if path in self.quiet_paths:
            return False
        if path in self.health_paths:
            return status_code >= 400
        return True

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        correlation_id = request.headers.get("X-Correlation-ID")
        set_request_context(request_id=request_id, correlation_id=correlation_id)
        request.state.request_id = request_id

        method, path = request.method, request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"{method} {path} FAILED ({duration_ms:.2f}ms): {type(exc).__name__}",
                extra={"event": "http_request_error", "duration_ms": round(duration_ms, 2)},
                exc_info=True,
            )
            clear_request_context()
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        if correlation_id:
            response.headers["X-Correlation-ID"] = correlation_id

        # Set by get_current_identity; absent on public reads.
        user_id = getattr(request.state, "user_id", None)
        set_request_context(user_id=user_id)

        if self._should_log(path, response.status_code):
            logger.log(
                _status_level(response.status_code),
                f"{method} {path} {response.status_code} ({duration_ms:.2f}ms)",
                extra={
                    "event": "http_request",
                    "http_method": method,
                    "http_path": path,
                    "http_query": str(request.query_params),
                    "http_status": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )

        clear_request_context()
        return response
