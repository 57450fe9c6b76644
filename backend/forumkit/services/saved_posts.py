"""In-memory registry of posts the current user has saved.

The registry lives exactly as long as the session that created it: it starts
empty, is never persisted, and ``clear`` drops everything when the session
ends. Each ForumSession owns its own instance.
"""

from typing import Dict, FrozenSet, Set

import structlog

from forumkit.schemas.common import RecordId, parse_record_id

logger = structlog.get_logger(__name__)


class SavedPostRegistry:
    """Set of saved post ids with toggle semantics."""

    def __init__(self):
        self._ids: Set[int] = set()
        self.logger = logger.bind(service="saved_posts")

    def toggle(self, post_id: RecordId) -> Dict[str, bool]:
        """Save the post if it is not saved, otherwise unsave it.

        Accepts numeric ids and "post_<id>" keys interchangeably.

        Returns:
            {"saved": True} after saving, {"saved": False} after unsaving
        """
        key = parse_record_id(post_id, "post")
        if key in self._ids:
            self._ids.discard(key)
            saved = False
        else:
            self._ids.add(key)
            saved = True

        self.logger.debug("saved_post_toggled", post_id=key, saved=saved)
        return {"saved": saved}

    def is_saved(self, post_id: RecordId) -> bool:
        return parse_record_id(post_id, "post") in self._ids

    def saved_ids(self) -> FrozenSet[int]:
        return frozenset(self._ids)

    def clear(self) -> None:
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._ids)
