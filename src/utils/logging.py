"""
Logging setup for the Contest Hub content API.

``setup_logging`` installs one stdout handler on the root logger: single-line
JSON in production (or when ``LOG_FORMAT_JSON`` is set), a coloured line
format otherwise. Every record is stamped with the request id, caller id and
correlation id of the request being served, and API keys and Redis URLs are
masked before anything is written.
"""

import json
import logging
import re
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.config import LoggingSettings

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_CONTEXT_ATTRS = ("request_id", "user_id", "correlation_id")

# X-API-Key values and credentials embedded in REDIS_URL.
_SECRET_REGEX = re.compile(
    r"(x-api-key|api[_-]?key)([\"']?\s*[:=]\s*[\"']?)[\w-]+|rediss?://\S+",
    re.IGNORECASE,
)

# Standard LogRecord attributes; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName", *_CONTEXT_ATTRS}


def redact(text: str) -> str:
    return _SECRET_REGEX.sub(
        lambda m: f"{m.group(1)}{m.group(2)}[REDACTED]" if m.group(1) else "[REDACTED]",
        text,
    )


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v for k, v in record.__dict__.items()
        if k not in _RECORD_ATTRS and not k.startswith("_")
    }


class RequestContextFilter(logging.Filter):
    """Stamps the current request's ids on every record and masks secrets."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        record.correlation_id = correlation_id_var.get() or "-"
        record.msg = redact(str(record.msg))
        if record.args:
            record.args = tuple(redact(a) if isinstance(a, str) else a for a in record.args)
        return True


class JSONFormatter(logging.Formatter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        log_data.update({attr: getattr(record, attr, "-") for attr in _CONTEXT_ATTRS})

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        extra = _extra_fields(record)
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str, ensure_ascii=False)


class DevelopmentFormatter(logging.Formatter):
    """``[time] LEVEL [request] [user] logger - message {extra}``"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        request_id = getattr(record, "request_id", "-")[:8]
        user_id = getattr(record, "user_id", "-")

        line = (
            f"{self.DIM}[{timestamp}]{self.RESET} {color}{record.levelname:8}{self.RESET} "
            f"{self.DIM}[{request_id:>8}] [{user_id}]{self.RESET} "
            f"{record.name} - {record.getMessage()}"
        )
        extra = _extra_fields(record)
        if extra:
            line += f" {self.DIM}{extra}{self.RESET}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    settings: LoggingSettings,
    production: bool = False,
    service_name: str = "contest-hub-api",
) -> logging.Logger:
    """
    Configure the root logger once, at startup.

    Args:
        settings: Level and format switches.
        production: Use JSON output regardless of ``log_format_json``.
        service_name: Stamped on JSON records.
    """
    level = getattr(logging, settings.log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    use_json = production or settings.log_format_json
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter(service_name) if use_json else DevelopmentFormatter())
    root_logger.addHandler(handler)

    # uvicorn's access log duplicates RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    root_logger.info(
        "Logging configured",
        extra={"log_level": settings.log_level, "format": "json" if use_json else "development"},
    )
    return root_logger


def set_request_context(
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """Set the ids stamped on records logged while serving this request."""
    if request_id is not None:
        request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)
    if correlation_id is not None:
        correlation_id_var.set(correlation_id)


def clear_request_context() -> None:
    request_id_var.set(None)
    user_id_var.set(None)
    correlation_id_var.set(None)


class Timer:
    """
    Logs how long a block took, and whether it raised.

    Usage:
        with Timer("store.find", logger):
            documents = await store.find(query)
    """

    def __init__(self, name: str, logger: logging.Logger, log_level: int = logging.DEBUG):
        self.name = name
        self.logger = logger
        self.log_level = log_level
        self.elapsed_ms: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
        self.logger.log(
            self.log_level,
            f"{self.name} completed in {self.elapsed_ms:.2f}ms",
            extra={
                "operation": self.name,
                "duration_ms": round(self.elapsed_ms, 2),
                "success": exc_type is None,
            },
        )
