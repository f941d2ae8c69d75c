"""
FastAPI dependencies for the Contest Hub content API.

Usage:
    from app.dependencies import check_own_content, get_content_by_id
"""

from app.dependencies.content import (
    ContentContext,
    check_own_content,
    get_content_by_id,
    get_content_repository,
    load_content,
)

__all__ = [
    "ContentContext",
    "get_content_repository",
    "load_content",
    "get_content_by_id",
    "check_own_content",
]
