"""
Content loading and ownership dependencies.

``load_content`` loads the addressed record for public reads.
``get_content_by_id`` resolves the caller first, then loads the record into one
``ContentContext``. Mutation endpoints depend on ``check_own_content``, which
takes that context, runs the ownership gate and hands the same context on.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Path, Request

from app.auth import Identity, get_current_identity
from app.authorization import ensure_can_mutate
from app.models.content import Content
from app.storage.repository import ContentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentContext:
    """Request-scoped caller and loaded content."""

    identity: Identity
    content: Content


def get_content_repository(request: Request) -> ContentRepository:
    """Return the repository created at application startup."""
    return request.app.state.content_repository


async def load_content(
    content_id: str = Path(..., description="Content identifier"),
    repository: ContentRepository = Depends(get_content_repository),
) -> Content:
    """
    Load the content addressed by the path.

    Raises:
        InvalidIdentifierError: Malformed id (400).
        ContentNotFoundError: No such content (404).
    """
    return await repository.get_by_id(content_id)


async def get_content_by_id(
    identity: Identity = Depends(get_current_identity),
    content: Content = Depends(load_content),
) -> ContentContext:
    """Caller and addressed content, with the caller resolved first."""
    return ContentContext(identity=identity, content=content)


async def check_own_content(
    context: ContentContext = Depends(get_content_by_id),
) -> ContentContext:
    """
    Require the caller to own the loaded content or be an admin.

    Raises:
        PermissionDeniedError: Neither owner nor admin (403).
    """
    ensure_can_mutate(context.identity, context.content)
    return context
