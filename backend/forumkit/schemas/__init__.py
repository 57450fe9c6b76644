"""Pydantic schemas for forumkit records.

All client-facing models are defined here for easy import.
"""

from forumkit.schemas.comment import Comment, CommentCreate, CommentDeleted, CommentNode
from forumkit.schemas.common import parse_record_id
from forumkit.schemas.community import (
    Community,
    CommunityCreate,
    CommunitySearchHit,
    CommunityUpdate,
)
from forumkit.schemas.post import (
    PollOption,
    Post,
    PostCreate,
    PostSearchHit,
    PostUpdate,
)

__all__ = [
    "Comment",
    "CommentCreate",
    "CommentDeleted",
    "CommentNode",
    "Community",
    "CommunityCreate",
    "CommunitySearchHit",
    "CommunityUpdate",
    "PollOption",
    "Post",
    "PostCreate",
    "PostSearchHit",
    "PostUpdate",
    "parse_record_id",
]
