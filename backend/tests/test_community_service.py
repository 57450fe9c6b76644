"""Tests for community CRUD and search."""

import pytest

from forumkit.core.exceptions import NotFoundError
from forumkit.schemas.community import DEFAULT_COLOR, CommunityCreate, CommunityUpdate
from forumkit.services.community_service import CommunityService
from forumkit.store.sql_store import SqlRecordStore


class TestCommunityService:
    """Tests for CommunityService."""

    async def test_create_defaults(self, store: SqlRecordStore):
        community = await CommunityService(store).create(CommunityCreate(name="gardening"))

        assert community.member_count == 1
        assert community.color == DEFAULT_COLOR
        assert community.category == "General"
        assert community.key == f"community_{community.id}"

    async def test_get_by_name(self, store: SqlRecordStore, community):
        service = CommunityService(store)

        found = await service.get_by_name("python")

        assert found.id == community["Id"]
        assert found.member_count == 42
        assert await service.get_by_name("cobol") is None
        assert await service.get_by_name("") is None

    async def test_get_by_id(self, store: SqlRecordStore, community):
        service = CommunityService(store)

        assert (await service.get_by_id(f"community_{community['Id']}")).name == "python"
        assert await service.get_by_id(9999) is None

    async def test_get_all(self, store: SqlRecordStore, community):
        await CommunityService(store).create(CommunityCreate(name="rust"))

        names = [c.name for c in await CommunityService(store).get_all()]

        assert names == ["python", "rust"]

    async def test_update(self, store: SqlRecordStore, community):
        service = CommunityService(store)

        updated = await service.update(community["Id"], CommunityUpdate(member_count=43, color="#000000"))

        assert updated.member_count == 43
        assert updated.color == "#000000"
        assert updated.name == "python"

    async def test_update_missing(self, store: SqlRecordStore):
        with pytest.raises(NotFoundError):
            await CommunityService(store).update(1234, CommunityUpdate(name="x"))

    async def test_delete(self, store: SqlRecordStore, community):
        service = CommunityService(store)

        assert await service.delete(community["Id"]) is True
        assert await service.delete(community["Id"]) is False

    async def test_search_description_snippet(self, store: SqlRecordStore, community):
        hits = await CommunityService(store).search("asyncio")

        assert len(hits) == 1
        assert "asyncio" in hits[0].snippet

    async def test_search_category_snippet(self, store: SqlRecordStore, community):
        hits = await CommunityService(store).search("techno")

        assert hits[0].snippet == "Category: Technology"

    async def test_search_name_only_has_empty_snippet(self, store: SqlRecordStore):
        service = CommunityService(store)
        await service.create(CommunityCreate(name="rustaceans", description="Systems programming"))

        hits = await service.search("rustac")

        assert hits[0].community.name == "rustaceans"
        assert hits[0].snippet == ""

    async def test_search_blank(self, store: SqlRecordStore):
        assert await CommunityService(store).search("") == []
