"""
Health check and root endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import sentry_sdk
from fastapi import APIRouter, Depends

from app.dependencies.content import get_content_repository
from app.storage.repository import ContentRepository
from src.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def get_sentry_status() -> Dict[str, Any]:
    """
    Get the current Sentry configuration status.
    """
    sentry = get_settings().sentry
    try:
        client = sentry_sdk.get_client()
        return {
            "configured": sentry.is_configured,
            "active": client.is_active() if sentry.is_configured else False,
            "environment": sentry.sentry_environment if sentry.is_configured else None,
        }
    except Exception as e:
        return {
            "configured": False,
            "active": False,
            "environment": None,
            "error": str(e),
        }


async def get_storage_status(repository: ContentRepository) -> Dict[str, Any]:
    """
    Check the content store.

    Any failure is reported as a status, never raised, so load balancers get
    a response either way.
    """
    try:
        start_time = datetime.now()
        status = await repository.health_check()
        latency_ms = (datetime.now() - start_time).total_seconds() * 1000
        status["latency_ms"] = round(latency_ms, 2)
        return status
    except Exception as e:
        logger.warning(f"Storage health check failed: {e}")
        return {
            "status": "unhealthy",
            "backend": repository.store.name,
            "error": str(e)[:100],
        }


@router.get(
    "/health",
    summary="System health check",
    description="""
Health check endpoint for monitoring and load balancers.

Returns overall system health including content storage and Sentry status.

**Authentication**: Not required.
    """,
)
async def health_check(
    repository: ContentRepository = Depends(get_content_repository),
) -> Dict[str, Any]:
    storage_status = await get_storage_status(repository)
    sentry_status = get_sentry_status()
    settings = get_settings()

    is_healthy = storage_status.get("status") == "healthy"

    return {
        "status": "healthy" if is_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.sentry.sentry_release,
        "environment": settings.security.environment,
        "services": {
            "storage": {
                "status": "up" if is_healthy else "down",
                "backend": storage_status.get("backend"),
                "latency_ms": storage_status.get("latency_ms"),
            },
            "sentry": {
                "status": "up" if sentry_status.get("active") else ("unconfigured" if not sentry_status.get("configured") else "down"),
            },
        },
    }


@router.get("/health/storage")
async def storage_health(
    repository: ContentRepository = Depends(get_content_repository),
) -> Dict[str, Any]:
    """
    Detailed content store health check.
    """
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": await get_storage_status(repository),
    }


@router.get("/", summary="API information")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Welcome to the Contest Hub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "api_base": "/api/contents",
    }
