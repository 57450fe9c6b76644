"""Comment schemas plus record mapping."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from forumkit.schemas.common import RecordId, reference_id


class Comment(BaseModel):
    """A comment on a post. ``parent_id`` is None for top-level comments."""

    id: int
    post_id: Optional[int] = None
    parent_id: Optional[int] = None
    author: Optional[str] = None
    content: str = ""
    timestamp: Optional[str] = None
    score: int = 0

    @classmethod
    def from_record(cls, record: Dict[str, Any], post_id_fallback: Optional[int] = None) -> "Comment":
        return cls(
            id=record["Id"],
            post_id=reference_id(record.get("post_id_c")) or post_id_fallback,
            parent_id=reference_id(record.get("parent_id_c")),
            author=record.get("author_c"),
            content=record.get("content_c") or "",
            timestamp=record.get("timestamp_c"),
            score=record.get("score_c") or 0,
        )


class CommentNode(Comment):
    """Comment with its replies nested beneath it."""

    replies: List["CommentNode"] = []


class CommentCreate(BaseModel):
    """Input for creating a comment. Content is validated by the service."""

    post_id: RecordId
    content: str = ""
    author: Optional[str] = None
    parent_id: Optional[RecordId] = None


class CommentDeleted(BaseModel):
    """Summary of a cascade delete, in the order records were removed."""

    id: int
    deleted_ids: List[int] = Field(default_factory=list)


CommentNode.model_rebuild()
