"""Per-user session wiring: one store, one saved-post registry, all services."""

from typing import Optional

import structlog

from forumkit.config import Settings, settings as default_settings
from forumkit.services.comment_service import CommentService
from forumkit.services.community_service import CommunityService
from forumkit.services.post_service import PostService
from forumkit.services.saved_posts import SavedPostRegistry
from forumkit.store.base import RecordStore
from forumkit.store.factory import create_record_store
from forumkit.store.sql_store import SqlRecordStore

logger = structlog.get_logger(__name__)


class ForumSession:
    """Owns the resources of one client session.

    Usage:
        async with ForumSession() as forum:
            result = await forum.posts.vote("post_7", 1)
            if not result.ok:
                ...

    On exit the saved-post registry is cleared and the store closed. A store
    passed in by the caller is not closed.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        settings: Settings = default_settings,
    ):
        self._owns_store = store is None
        self.store = store or create_record_store(settings)
        self.saved = SavedPostRegistry()
        self.communities = CommunityService(self.store)
        self.posts = PostService(self.store, communities=self.communities, saved=self.saved)
        self.comments = CommentService(self.store)

    async def close(self) -> None:
        self.saved.clear()
        if self._owns_store:
            await self.store.close()
        logger.debug("forum_session_closed")

    async def __aenter__(self) -> "ForumSession":
        if self._owns_store and isinstance(self.store, SqlRecordStore):
            await self.store.init_schema()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
