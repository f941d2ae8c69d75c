"""
Ownership-based access control for content mutation.

A caller may change or delete a content record only if they created it or
hold the admin role.
"""

import logging

from app.auth.identity import Identity
from app.exceptions import PermissionDeniedError
from app.models.content import Content

logger = logging.getLogger(__name__)


def can_mutate(identity: Identity, content: Content) -> bool:
    """Return True if ``identity`` may update or delete ``content``."""
    return identity.is_admin or identity.id == content.owner.id


def ensure_can_mutate(identity: Identity, content: Content) -> None:
    """
    Raise PermissionDeniedError unless ``identity`` may mutate ``content``.

    Raises:
        PermissionDeniedError: The caller is neither the owner nor an admin.
    """
    if can_mutate(identity, content):
        return

    logger.warning(
        f"Denied mutation of content {content.id} by user {identity.id} "
        f"(owner={content.owner.id}, role={identity.role})"
    )
    raise PermissionDeniedError(content_id=content.id, user_id=identity.id)
