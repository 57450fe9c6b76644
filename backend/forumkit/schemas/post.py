"""Post and poll-option schemas plus record mapping."""

import json
from typing import Any, Dict, List, Literal, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from forumkit.schemas.common import reference_label, utc_now_iso

logger = structlog.get_logger(__name__)

PostType = Literal["text", "image", "link", "poll"]
POST_TYPES = ("text", "image", "link", "poll")

OptionId = Union[int, str]


class PollOption(BaseModel):
    """One choice of a poll post. Stored inside the post as JSON."""

    model_config = ConfigDict(populate_by_name=True)

    id: OptionId = Field(alias="Id")
    text: str = ""
    vote_count: int = Field(default=0, alias="voteCount")

    @field_validator("vote_count", mode="before")
    @classmethod
    def non_negative(cls, v: Any) -> int:
        return max(0, int(v or 0))

    def matches(self, option_id: Optional[OptionId]) -> bool:
        return option_id is not None and str(self.id) == str(option_id)


class Post(BaseModel):
    """A forum post as seen by the client."""

    id: int
    title: str = ""
    content: Optional[str] = None
    author: Optional[str] = None
    community: str = "Unknown"
    score: int = 0
    user_vote: int = 0
    timestamp: Optional[str] = None
    comment_count: int = 0
    tags: List[str] = []
    post_type: PostType = "text"
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    poll_options: Optional[List[PollOption]] = None
    user_poll_vote: Optional[OptionId] = None

    @field_validator("user_vote")
    @classmethod
    def single_voter_state(cls, v: int) -> int:
        if v not in (-1, 0, 1):
            raise ValueError("user_vote must be -1, 0 or 1")
        return v

    @property
    def key(self) -> str:
        return f"post_{self.id}"

    def find_option(self, option_id: Optional[OptionId]) -> Optional[PollOption]:
        for option in self.poll_options or []:
            if option.matches(option_id):
                return option
        return None

    @classmethod
    def from_record(cls, record: Dict[str, Any], community_fallback: str = "Unknown") -> "Post":
        tags_raw = record.get("tags_c")
        post_type = record.get("post_type_c") or "text"
        if post_type not in POST_TYPES:
            post_type = "text"

        return cls(
            id=record["Id"],
            title=record.get("title_c") or "",
            content=record.get("content_c"),
            author=record.get("author_c"),
            community=reference_label(record.get("community_c"), "name_c") or community_fallback,
            score=record.get("score_c") or 0,
            user_vote=_stored_vote(record),
            timestamp=record.get("timestamp_c"),
            comment_count=record.get("comment_count_c") or 0,
            tags=[t for t in tags_raw.split(",") if t] if tags_raw else [],
            post_type=post_type,
            image_url=record.get("image_url_c"),
            link_url=record.get("link_url_c"),
            poll_options=parse_poll_options(record.get("poll_options_c"), record["Id"]),
            user_poll_vote=record.get("user_poll_vote_c"),
        )


class PostCreate(BaseModel):
    """Input for creating a post. ``community`` is the community name."""

    title: str = Field(min_length=1)
    community: str = Field(min_length=1)
    author: str = "Anonymous"
    content: str = ""
    score: int = 1
    user_vote: int = 1
    timestamp: Optional[str] = None
    tags: List[str] = []
    post_type: PostType = "text"
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    poll_options: Optional[List[PollOption]] = None

    def to_record(self, community_id: int) -> Dict[str, Any]:
        return {
            "title_c": self.title,
            "content_c": self.content,
            "author_c": self.author,
            "community_c": community_id,
            "score_c": self.score,
            "user_vote_c": self.user_vote,
            "timestamp_c": self.timestamp or utc_now_iso(),
            "comment_count_c": 0,
            "tags_c": ",".join(self.tags),
            "post_type_c": self.post_type,
            "image_url_c": self.image_url,
            "link_url_c": self.link_url,
            "poll_options_c": dump_poll_options(self.poll_options),
            "user_poll_vote_c": None,
        }


class PostUpdate(BaseModel):
    """Partial post update; only fields that were set are written."""

    title: Optional[str] = None
    content: Optional[str] = None
    score: Optional[int] = None
    user_vote: Optional[int] = None
    comment_count: Optional[int] = None
    tags: Optional[List[str]] = None
    poll_options: Optional[List[PollOption]] = None
    user_poll_vote: Optional[OptionId] = None

    def to_record(self) -> Dict[str, Any]:
        fields = self.model_fields_set
        record: Dict[str, Any] = {}
        if self.title:
            record["title_c"] = self.title
        if "content" in fields:
            record["content_c"] = self.content
        if "score" in fields and self.score is not None:
            record["score_c"] = self.score
        if "user_vote" in fields and self.user_vote is not None:
            record["user_vote_c"] = self.user_vote
        if "comment_count" in fields and self.comment_count is not None:
            record["comment_count_c"] = self.comment_count
        if self.tags is not None:
            record["tags_c"] = ",".join(self.tags)
        if self.poll_options is not None:
            record["poll_options_c"] = dump_poll_options(self.poll_options)
        # None is meaningful here: it clears the voter's selection
        if "user_poll_vote" in fields:
            record["user_poll_vote_c"] = self.user_poll_vote
        return record


class PostSearchHit(BaseModel):
    post: Post
    snippet: str = ""


def parse_poll_options(raw: Any, post_id: Any = None) -> Optional[List[PollOption]]:
    """Decode the stored poll options; unreadable values are logged and dropped."""
    if not raw:
        return None
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        return [PollOption.model_validate(item) for item in data]
    except (ValueError, TypeError) as e:
        logger.error("poll_options_parse_failed", post_id=post_id, error=str(e))
        return None


def _stored_vote(record: Dict[str, Any]) -> int:
    """Stored user vote; anything outside -1/0/1 counts as no vote."""
    raw = record.get("user_vote_c")
    if raw is None:
        return 0
    if isinstance(raw, str):
        raw = raw.strip()
    vote = next((v for v in (-1, 0, 1) if raw == v or raw == str(v)), None)
    if isinstance(raw, bool) or vote is None:
        logger.warning("user_vote_out_of_range", post_id=record.get("Id"), user_vote=raw)
        return 0
    return vote


def dump_poll_options(options: Optional[List[PollOption]]) -> Optional[str]:
    if options is None:
        return None
    return json.dumps([o.model_dump(by_alias=True) for o in options])
