"""
Tests for the ownership gate and the content dependencies.

Verifies that:
- Owners and admins may mutate content, anyone else may not
- Denials raise PermissionDeniedError (403), not a 404
- The loader resolves malformed and missing ids to 400 and 404
"""

from datetime import datetime, timezone

import pytest

from app.auth import Identity
from app.authorization import can_mutate, ensure_can_mutate
from app.dependencies.content import ContentContext, check_own_content, get_content_by_id
from app.exceptions import (
    ContentNotFoundError,
    InvalidIdentifierError,
    PermissionDeniedError,
)
from app.models.content import Content, Owner


def make_content(owner_id="user-owner"):
    return Content(
        id="a" * 32,
        title="Entry",
        body="Body",
        team="Team",
        status="draft",
        owner=Owner(id=owner_id, username="owner"),
        created_at=datetime.now(timezone.utc),
    )


class TestCanMutate:
    """Tests for can_mutate."""

    def test_owner_can_mutate(self, owner):
        assert can_mutate(owner, make_content(owner.id))

    def test_admin_can_mutate_any_content(self, admin):
        assert can_mutate(admin, make_content("someone-else"))

    def test_other_user_cannot_mutate(self, other_user):
        assert not can_mutate(other_user, make_content("user-owner"))

    def test_role_other_than_admin_grants_nothing(self):
        moderator = Identity(id="mod", role="moderator")
        assert not can_mutate(moderator, make_content("user-owner"))


class TestEnsureCanMutate:
    """Tests for ensure_can_mutate."""

    def test_allowed_returns_none(self, owner):
        assert ensure_can_mutate(owner, make_content(owner.id)) is None

    def test_denied_raises_permission_error(self, other_user):
        with pytest.raises(PermissionDeniedError) as exc_info:
            ensure_can_mutate(other_user, make_content("user-owner"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code.value == "PERMISSION_DENIED"

    def test_denial_is_logged(self, other_user, caplog):
        with pytest.raises(PermissionDeniedError):
            ensure_can_mutate(other_user, make_content("user-owner"))

        assert any("Denied mutation" in r.message for r in caplog.records)


class TestContentDependencies:
    """Tests for the loader and ownership dependencies."""

    @pytest.mark.asyncio
    async def test_loader_returns_context(self, repository, owner):
        created = await repository.create(
            {"title": "T", "body": "B", "team": "X", "status": "s"}, owner=owner
        )

        context = await get_content_by_id(created.id, identity=owner, repository=repository)

        assert context.identity == owner
        assert context.content.id == created.id

    @pytest.mark.asyncio
    async def test_loader_malformed_id(self, repository, owner):
        with pytest.raises(InvalidIdentifierError):
            await get_content_by_id("not-an-id", identity=owner, repository=repository)

    @pytest.mark.asyncio
    async def test_loader_missing_record(self, repository, owner):
        with pytest.raises(ContentNotFoundError):
            await get_content_by_id("0" * 32, identity=owner, repository=repository)

    @pytest.mark.asyncio
    async def test_check_own_content_passes_context_through(self, owner):
        context = ContentContext(identity=owner, content=make_content(owner.id))
        assert await check_own_content(context) is context

    @pytest.mark.asyncio
    async def test_check_own_content_denies(self, other_user):
        context = ContentContext(identity=other_user, content=make_content("user-owner"))
        with pytest.raises(PermissionDeniedError):
            await check_own_content(context)
