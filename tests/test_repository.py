"""
Tests for the content repository and the in-memory store.

Tests creation defaults, id checks, pagination arithmetic, filtering,
partial updates, removal and wrapping of store failures.
"""

from unittest.mock import AsyncMock

import pytest

from app.exceptions import (
    ContentNotFoundError,
    ErrorCode,
    InvalidIdentifierError,
    InvalidPageError,
    PersistenceError,
)
from app.storage import ContentRepository, InMemoryContentStore, build_filter
from conftest import make_content_fields


async def create_many(repository, owner, count, **overrides):
    created = []
    for i in range(count):
        created.append(
            await repository.create(make_content_fields(title=f"Entry {i}", **overrides), owner=owner)
        )
    return created


class TestCreate:
    """Tests for ContentRepository.create."""

    @pytest.mark.asyncio
    async def test_server_assigned_fields(self, repository, owner):
        content = await repository.create(make_content_fields(), owner=owner)

        assert len(content.id) == 32
        assert content.stars == 0
        assert content.starred_by == []
        assert content.owner.id == owner.id
        assert content.owner.username == owner.username
        assert content.created_at is not None

    @pytest.mark.asyncio
    async def test_owner_and_counters_cannot_be_injected(self, repository, owner):
        fields = make_content_fields(
            owner={"id": "mallory"}, stars=500, starredBy=["mallory"], id="f" * 32
        )
        content = await repository.create(fields, owner=owner)

        assert content.owner.id == owner.id
        assert content.stars == 0
        assert content.starred_by == []
        assert content.id != "f" * 32

    @pytest.mark.asyncio
    async def test_round_trip(self, repository, owner):
        created = await repository.create(make_content_fields(), owner=owner)
        loaded = await repository.get_by_id(created.id)

        assert loaded == created
        assert loaded.body == "<p>A rover that maps <b>craters</b>.</p>"


class TestGetById:
    """Tests for ContentRepository.get_by_id."""

    @pytest.mark.asyncio
    async def test_malformed_id_checked_before_query(self, store):
        store.find_by_id = AsyncMock()
        repository = ContentRepository(store)

        with pytest.raises(InvalidIdentifierError):
            await repository.get_by_id("xyz")
        store.find_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_record(self, repository):
        with pytest.raises(ContentNotFoundError):
            await repository.get_by_id("0" * 32)


class TestList:
    """Tests for paginated listing."""

    @pytest.mark.asyncio
    async def test_twenty_five_records_make_three_pages(self, repository, owner):
        await create_many(repository, owner, 25)

        first = await repository.list(page=1)
        last = await repository.list(page=3)

        assert first.total_pages == 3
        assert len(first.items) == 12
        assert len(last.items) == 1
        assert last.total == 25

    @pytest.mark.asyncio
    async def test_newest_first(self, repository, owner):
        created = await create_many(repository, owner, 3)
        page = await repository.list(page=1)

        assert [c.id for c in page.items] == [c.id for c in reversed(created)]

    @pytest.mark.asyncio
    async def test_past_last_page_is_empty(self, repository, owner):
        await create_many(repository, owner, 2)
        page = await repository.list(page=5)

        assert page.items == []
        assert page.total_pages == 1

    @pytest.mark.asyncio
    async def test_empty_collection(self, repository):
        page = await repository.list(page=1)
        assert page.items == []
        assert page.total_pages == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page", [0, -1])
    async def test_page_below_one_never_queries(self, store, page):
        store.find = AsyncMock()
        store.count_documents = AsyncMock()
        repository = ContentRepository(store)

        with pytest.raises(InvalidPageError):
            await repository.list(page=page)

        store.find.assert_not_called()
        store.count_documents.assert_not_called()

    @pytest.mark.asyncio
    async def test_filter_by_tagged_contest(self, repository, owner):
        await create_many(repository, owner, 3, taggedContestID="contest-1")
        await create_many(repository, owner, 2, taggedContestID="contest-2")

        page = await repository.list(build_filter("contest-2"), page=1)

        assert page.total == 2
        assert all(c.tagged_contest_id == "contest-2" for c in page.items)

    @pytest.mark.asyncio
    async def test_list_all_unpaginated(self, repository, owner):
        await create_many(repository, owner, 15)
        contents = await repository.list_all()
        assert len(contents) == 15

    def test_build_filter(self):
        assert build_filter(None) == {}
        assert build_filter("") == {}
        assert build_filter("c1") == {"taggedContestID": "c1"}


class TestUpdate:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, repository, owner):
        created = await repository.create(make_content_fields(), owner=owner)
        updated = await repository.update(created.id, {"status": "judged"})

        assert updated.status == "judged"
        assert updated.title == created.title
        assert updated.body == created.body
        assert updated.owner == created.owner

    @pytest.mark.asyncio
    async def test_protected_fields_not_overwritten(self, repository, owner):
        created = await repository.create(make_content_fields(), owner=owner)
        updated = await repository.update(
            created.id, {"owner": {"id": "mallory"}, "id": "f" * 32}
        )

        assert updated.id == created.id
        assert updated.owner.id == owner.id

    @pytest.mark.asyncio
    async def test_extra_fields_stored(self, repository, owner):
        created = await repository.create(make_content_fields(), owner=owner)
        updated = await repository.update(created.id, {"theme": "dark"})

        assert updated.model_extra["theme"] == "dark"
        assert (await repository.get_by_id(created.id)).model_extra["theme"] == "dark"

    @pytest.mark.asyncio
    async def test_update_missing_record(self, repository):
        with pytest.raises(ContentNotFoundError):
            await repository.update("0" * 32, {"status": "x"})


class TestRemove:
    """Tests for deletion."""

    @pytest.mark.asyncio
    async def test_remove_deletes_physically(self, repository, store, owner):
        created = await repository.create(make_content_fields(), owner=owner)
        await repository.remove(created.id)

        assert await store.find_by_id(created.id) is None
        with pytest.raises(ContentNotFoundError):
            await repository.get_by_id(created.id)

    @pytest.mark.asyncio
    async def test_remove_missing_record(self, repository):
        with pytest.raises(ContentNotFoundError):
            await repository.remove("0" * 32)


class TestPersistenceErrors:
    """Store failures surface as PersistenceError."""

    @pytest.mark.asyncio
    async def test_find_failure_wrapped(self, store):
        store.find = AsyncMock(side_effect=RuntimeError("disk on fire"))
        repository = ContentRepository(store)

        with pytest.raises(PersistenceError) as exc_info:
            await repository.list(page=1)

        error = exc_info.value
        assert error.status_code == 500
        assert error.error_code == ErrorCode.DATABASE_ERROR
        assert error.details["operation"] == "find"
        assert error.details["cause"] == "RuntimeError: disk on fire"
        assert isinstance(error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_connection_failure_code(self, store, owner):
        store.insert = AsyncMock(side_effect=ConnectionError("refused"))
        repository = ContentRepository(store)

        with pytest.raises(PersistenceError) as exc_info:
            await repository.create(make_content_fields(), owner=owner)

        assert exc_info.value.error_code == ErrorCode.CONNECTION_ERROR


class TestInMemoryStore:
    """Direct tests of the in-memory backend."""

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self):
        store = InMemoryContentStore()
        stored = await store.insert({"starredBy": ["a"]})
        stored["starredBy"].append("b")

        again = await store.find_by_id(stored["id"])
        assert again["starredBy"] == ["a"]

    @pytest.mark.asyncio
    async def test_skip_and_limit(self):
        store = InMemoryContentStore()
        for i in range(5):
            await store.insert({"n": i})

        found = await store.find({}, skip=1, limit=2)
        assert [d["n"] for d in found] == [3, 2]

    def test_id_validity(self):
        store = InMemoryContentStore()
        assert store.is_valid_id(store.generate_id())
        assert not store.is_valid_id("")
        assert not store.is_valid_id("ABCDEF" * 6)
        assert not store.is_valid_id("0" * 31)

    @pytest.mark.asyncio
    async def test_health_check(self):
        store = InMemoryContentStore()
        await store.insert({})
        health = await store.health_check()
        assert health == {"status": "healthy", "backend": "memory", "documents": 1}
