"""Community CRUD service."""

from typing import List, Optional

import structlog

from forumkit.config import settings
from forumkit.schemas.common import RecordId, parse_record_id
from forumkit.schemas.community import (
    Community,
    CommunityCreate,
    CommunitySearchHit,
    CommunityUpdate,
)
from forumkit.services.snippets import text_window
from forumkit.store.base import EntityKind, RecordStore
from forumkit.store.query import Operator, RecordQuery, where

logger = structlog.get_logger(__name__)


class CommunityService:
    """Handles CRUD operations for communities."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.logger = logger.bind(service="community_service")

    async def search(self, query: str) -> List[CommunitySearchHit]:
        """Find communities whose name, description or category contain ``query``."""
        if not query or not query.strip():
            return []

        term = query.strip().lower()
        records = await self.store.fetch_all(
            EntityKind.COMMUNITY,
            RecordQuery(any_of=[
                where("name_c", Operator.CONTAINS, term),
                where("description_c", Operator.CONTAINS, term),
                where("category_c", Operator.CONTAINS, term),
            ]),
        )

        hits = []
        for record in records:
            community = Community.from_record(record)
            snippet = text_window(community.description, term, 40)
            if not snippet and community.category and term in community.category.lower():
                snippet = f"Category: {community.category}"
            hits.append(CommunitySearchHit(community=community, snippet=snippet))

        self.logger.info("communities_searched", query=term, count=len(hits))
        return hits

    async def get_all(self) -> List[Community]:
        records = await self.store.fetch_all(
            EntityKind.COMMUNITY,
            RecordQuery(limit=settings.COMMUNITY_PAGE_LIMIT),
        )
        return [Community.from_record(r) for r in records]

    async def get_by_id(self, community_id: RecordId) -> Optional[Community]:
        record = await self.store.fetch_one(
            EntityKind.COMMUNITY, parse_record_id(community_id, "community")
        )
        return Community.from_record(record) if record else None

    async def get_by_name(self, name: str) -> Optional[Community]:
        if not name:
            return None
        records = await self.store.fetch_all(
            EntityKind.COMMUNITY,
            RecordQuery(where=[where("name_c", Operator.EQUAL_TO, name)], limit=1),
        )
        return Community.from_record(records[0]) if records else None

    async def create(self, data: CommunityCreate) -> Community:
        record = await self.store.create(EntityKind.COMMUNITY, data.to_record())
        community = Community.from_record(record)
        self.logger.info("community_created", community_id=community.id, name=community.name)
        return community

    async def update(self, community_id: RecordId, data: CommunityUpdate) -> Community:
        """Write the provided fields.

        Raises:
            NotFoundError: If the community does not exist
        """
        record = await self.store.update(
            EntityKind.COMMUNITY,
            parse_record_id(community_id, "community"),
            data.to_record(),
        )
        return Community.from_record(record)

    async def delete(self, community_id: RecordId) -> bool:
        record_id = parse_record_id(community_id, "community")
        outcome = await self.store.delete(EntityKind.COMMUNITY, [record_id])
        deleted = outcome.get(record_id, False)
        self.logger.info("community_deleted", community_id=record_id, deleted=deleted)
        return deleted
