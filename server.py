"""
Contest Hub content API server.

Loads settings, configures logging and Sentry, then assembles the FastAPI app
from the ``app`` package. Run with ``python server.py`` or ``uvicorn server:app``.
"""

import os
import re
from contextlib import asynccontextmanager

import sentry_sdk
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from src.config import Settings, get_settings
from src.utils.logging import setup_logging

settings: Settings = get_settings()
logger = setup_logging(settings.logging, production=settings.is_production)
logger.info(f"Configuration loaded: {settings.get_config_summary()}")

from app.error_handlers import register_exception_handlers  # noqa: E402
from app.middleware import RequestLoggingMiddleware  # noqa: E402
from app.routes import contents_router, health_router  # noqa: E402
from app.storage import build_content_repository  # noqa: E402

# X-API-Key header and api_key query values
_BREADCRUMB_SECRET_REGEX = re.compile(r"(api[_-]?key=)[^&]*", re.IGNORECASE)


def filter_sensitive_breadcrumbs(crumb, hint):
    """Mask API keys in HTTP breadcrumbs before they reach Sentry."""
    data = crumb.get("data")
    if crumb.get("category") == "http" and isinstance(data, dict):
        headers = data.get("headers")
        if isinstance(headers, dict):
            for key in headers:
                if key.lower() in ("x-api-key", "authorization", "cookie"):
                    headers[key] = "[FILTERED]"
        if "url" in data:
            data["url"] = _BREADCRUMB_SECRET_REGEX.sub(r"\1[FILTERED]", data["url"])
    return crumb


if settings.sentry.is_configured:
    sentry_settings = settings.sentry
    sentry_sdk.init(
        dsn=sentry_settings.sentry_dsn,
        environment=sentry_settings.sentry_environment,
        sample_rate=1.0,
        traces_sample_rate=sentry_settings.sentry_traces_sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        before_breadcrumb=filter_sensitive_breadcrumbs,
        send_default_pii=False,
        attach_stacktrace=True,
        server_name=sentry_settings.server_name,
        release=sentry_settings.sentry_release,
    )
    logger.info(f"Sentry initialized for environment: {sentry_settings.sentry_environment}")
else:
    logger.info("Sentry DSN not configured, error tracking disabled")


# =============================================================================
# Initialize FastAPI App
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup/shutdown for shared resources."""
    yield
    try:
        await app.state.content_repository.close()
    except Exception as e:
        logger.warning("Failed to close content store: %s", e)


app = FastAPI(
    title="Contest Hub API",
    description="""
## Contest Hub Content API

Submit, browse and curate contest entries.

### Authentication

Endpoints require an API key via `X-API-Key: <key>`. Content can only be
changed or deleted by its owner or an admin.

### Pagination

`GET /api/contents` returns pages of 12 entries. The total page count is sent
in the `Last-Page` response header.
""",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Health checks and system status"},
        {"name": "contents", "description": "Contest entries"},
    ],
)

app.state.content_repository = build_content_repository(settings)

# =============================================================================
# Exception Handlers
# =============================================================================

register_exception_handlers(app)
logger.info("Centralized exception handlers registered")

# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "X-API-Key",
        "X-Request-ID",
        "Accept",
        "Origin",
    ],
    expose_headers=[
        "Last-Page",
        "X-Request-ID",
        "X-Correlation-ID",
        "X-Response-Time",
    ],
    max_age=600,
)

# Added last so it wraps everything else
if settings.logging.request_logging_enabled:
    app.add_middleware(RequestLoggingMiddleware)
    logger.info("Request logging middleware enabled")

# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(contents_router)


@app.get("/config-status", tags=["health"])
async def get_config_status():
    """
    Get current configuration status (without secrets).
    """
    if settings.is_production and not settings.is_dev_mode:
        return {
            "error": "Config status endpoint disabled in production",
            "environment": settings.security.environment,
        }

    return {
        "success": True,
        "config": settings.get_config_summary(),
    }


if __name__ == "__main__":
    reload_enabled = os.environ.get("UVICORN_RELOAD", "false").lower() == "true"
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run("server:app", host="0.0.0.0", port=port, reload=reload_enabled)
