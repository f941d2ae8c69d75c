"""API routes for the Contest Hub content API."""

from .contents import router as contents_router
from .health import router as health_router

__all__ = [
    "contents_router",
    "health_router",
]
