"""Post service: CRUD, search, voting and saved posts.

Voting follows toggle semantics for a single local voter. The score always
moves by the difference between the new and the old vote, never by a blind
increment, so repeating a vote retracts it and switching direction moves
the score by two.
"""

from typing import List, Optional, Sequence, Tuple

import structlog
from pydantic import ValidationError as SchemaError

from forumkit.config import settings
from forumkit.core.exceptions import ForumKitException, NotFoundError, ValidationError
from forumkit.core.locks import KeyedLock
from forumkit.core.result import FailureKind, Result
from forumkit.schemas.common import RecordId, parse_record_id
from forumkit.schemas.post import OptionId, PollOption, Post, PostCreate, PostSearchHit, PostUpdate
from forumkit.services.community_service import CommunityService
from forumkit.services.saved_posts import SavedPostRegistry
from forumkit.services.snippets import text_window
from forumkit.store.base import EntityKind, RecordStore
from forumkit.store.query import Operator, OrderBy, RecordQuery, where

logger = structlog.get_logger(__name__)

POST_FIELDS = [
    "Name",
    "title_c",
    "content_c",
    "author_c",
    "community_c",
    "score_c",
    "user_vote_c",
    "timestamp_c",
    "comment_count_c",
    "tags_c",
    "post_type_c",
    "image_url_c",
    "link_url_c",
    "poll_options_c",
    "user_poll_vote_c",
]

VOTE_VALUES = (-1, 1)


def next_vote(old_vote: int, vote_value: int) -> Tuple[int, int]:
    """Return (new_vote, score_delta) for casting ``vote_value`` over ``old_vote``."""
    new_vote = 0 if vote_value == old_vote else vote_value
    return new_vote, new_vote - old_vote


def tally_poll_vote(
    options: Sequence[PollOption],
    previous: Optional[OptionId],
    option_id: OptionId,
) -> Tuple[List[PollOption], Optional[OptionId]]:
    """Apply one poll vote to a copy of ``options``.

    The previously selected option (if it still exists) loses one vote,
    floored at zero. Selecting the same option again retracts the vote;
    otherwise the target gains one vote and becomes the selection.

    Returns:
        Tuple of (new options, new selection or None)

    Raises:
        ValidationError: If ``option_id`` is not one of the options
    """
    tallied = [option.model_copy() for option in options]
    target = next((o for o in tallied if o.matches(option_id)), None)
    if target is None:
        raise ValidationError(f"Poll option '{option_id}' does not exist")

    if previous is not None:
        prior = next((o for o in tallied if o.matches(previous)), None)
        if prior is not None:
            prior.vote_count = max(0, prior.vote_count - 1)

    if target.matches(previous):
        return tallied, None

    target.vote_count += 1
    return tallied, target.id


class PostService:
    """Service for posts.

    Handles post CRUD, text search, toggle voting, poll voting and the
    saved-post registry. Read-modify-write operations on one post are
    serialised inside this process by a per-post lock.
    """

    def __init__(
        self,
        store: RecordStore,
        communities: Optional[CommunityService] = None,
        saved: Optional[SavedPostRegistry] = None,
        locks: Optional[KeyedLock] = None,
    ):
        """Initialize post service.

        Args:
            store: Record store all reads and writes go through
            communities: Used to resolve community names (built if omitted)
            saved: Saved-post registry for this session (fresh if omitted)
            locks: Per-post locks shared with other services if needed
        """
        self.store = store
        self.communities = communities or CommunityService(store)
        self.saved = saved if saved is not None else SavedPostRegistry()
        self._locks = locks or KeyedLock()
        self.logger = logger.bind(service="post_service")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search(self, query: str) -> List[PostSearchHit]:
        """Find posts whose title, content, author or tags contain ``query``.

        Each hit carries a snippet: the title around the match, else the
        content around the match, else the matching tag, else the author.
        """
        if not query or not query.strip():
            return []

        term = query.strip().lower()
        records = await self.store.fetch_all(
            EntityKind.POST,
            RecordQuery(
                fields=POST_FIELDS,
                any_of=[
                    where("title_c", Operator.CONTAINS, term),
                    where("content_c", Operator.CONTAINS, term),
                    where("author_c", Operator.CONTAINS, term),
                    where("tags_c", Operator.CONTAINS, term),
                ],
                limit=settings.POST_PAGE_LIMIT,
            ),
        )

        hits = []
        for record in records:
            post = Post.from_record(record)
            hits.append(PostSearchHit(post=post, snippet=_search_snippet(post, term)))

        self.logger.info("posts_searched", query=term, count=len(hits))
        return hits

    async def get_all(self) -> List[Post]:
        """Newest posts first."""
        records = await self.store.fetch_all(
            EntityKind.POST,
            RecordQuery(
                fields=POST_FIELDS,
                order_by=[OrderBy("timestamp_c", descending=True)],
                limit=settings.POST_PAGE_LIMIT,
            ),
        )
        return [Post.from_record(r) for r in records]

    async def get_by_id(self, post_id: RecordId) -> Optional[Post]:
        record = await self.store.fetch_one(EntityKind.POST, parse_record_id(post_id, "post"))
        return Post.from_record(record) if record else None

    async def get_popular(self) -> List[Post]:
        """Posts at or above the popularity threshold, highest score first."""
        records = await self.store.fetch_all(
            EntityKind.POST,
            RecordQuery(
                fields=POST_FIELDS,
                where=[where("score_c", Operator.GREATER_THAN_OR_EQUAL_TO, settings.POPULAR_SCORE_THRESHOLD)],
                order_by=[OrderBy("score_c", descending=True)],
                limit=settings.POST_PAGE_LIMIT,
            ),
        )
        return [Post.from_record(r) for r in records]

    async def get_by_community(self, community_name: str) -> List[Post]:
        """Newest posts of a community; empty if the community is unknown."""
        community = await self.communities.get_by_name(community_name)
        if community is None:
            self.logger.info("community_not_found", community=community_name)
            return []

        records = await self.store.fetch_all(
            EntityKind.POST,
            RecordQuery(
                fields=POST_FIELDS,
                where=[where("community_c", Operator.EQUAL_TO, community.id)],
                order_by=[OrderBy("timestamp_c", descending=True)],
                limit=settings.POST_PAGE_LIMIT,
            ),
        )
        return [Post.from_record(r, community_fallback=community_name) for r in records]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: PostCreate) -> Post:
        """Create a post in the named community.

        Raises:
            ValidationError: If the community does not exist
        """
        community = await self.communities.get_by_name(data.community)
        if community is None:
            raise ValidationError(f"Community '{data.community}' not found")

        record = await self.store.create(EntityKind.POST, data.to_record(community.id))
        post = Post.from_record(record, community_fallback=data.community)
        self.logger.info(
            "post_created",
            post_id=post.id,
            community=data.community,
            post_type=post.post_type,
        )
        return post

    async def update(self, post_id: RecordId, data: PostUpdate) -> Post:
        """Write the provided fields and return the re-read post.

        Raises:
            NotFoundError: If the post does not exist
        """
        record_id = parse_record_id(post_id, "post")
        await self.store.update(EntityKind.POST, record_id, data.to_record())

        post = await self.get_by_id(record_id)
        if post is None:
            raise NotFoundError("Post", record_id)
        return post

    async def delete(self, post_id: RecordId) -> bool:
        record_id = parse_record_id(post_id, "post")
        outcome = await self.store.delete(EntityKind.POST, [record_id])
        deleted = outcome.get(record_id, False)
        self.logger.info("post_deleted", post_id=record_id, deleted=deleted)
        return deleted

    async def add_comment(self, post_id: RecordId) -> bool:
        """Bump a post's comment count. Returns False if the post is gone."""
        record_id = parse_record_id(post_id, "post")
        async with self._locks.hold(record_id):
            post = await self.get_by_id(record_id)
            if post is None:
                return False
            try:
                await self.store.update(
                    EntityKind.POST,
                    record_id,
                    PostUpdate(comment_count=post.comment_count + 1).to_record(),
                )
            except NotFoundError:
                return False
        return True

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    async def vote(self, post_id: RecordId, vote_value: int) -> Result[Post]:
        """Cast an up (1) or down (-1) vote with toggle semantics.

        Returns:
            Result holding the updated post, or the failure kind
            (not_found / validation / store) with its message
        """
        try:
            if isinstance(vote_value, bool) or vote_value not in VOTE_VALUES:
                raise ValidationError(f"vote_value must be -1 or 1, got {vote_value!r}")
            record_id = parse_record_id(post_id, "post")

            async with self._locks.hold(record_id):
                post = await self.get_by_id(record_id)
                if post is None:
                    raise NotFoundError("Post", record_id)

                old_vote = post.user_vote or 0
                new_vote, delta = next_vote(old_vote, vote_value)
                updated = await self.update(
                    record_id,
                    PostUpdate(score=post.score + delta, user_vote=new_vote),
                )
        except ForumKitException as e:
            self.logger.warning("vote_failed", post_id=post_id, vote=vote_value, error=e.message)
            return Result.from_exception(e)
        except SchemaError as e:
            self.logger.error("vote_record_invalid", post_id=post_id, error=str(e))
            return Result.fail(FailureKind.VALIDATION, f"Stored post is malformed: {e.error_count()} invalid field(s)")

        self.logger.info(
            "post_voted",
            post_id=record_id,
            old_vote=old_vote,
            new_vote=new_vote,
            score=updated.score,
        )
        return Result.success(updated)

    async def poll_vote(self, post_id: RecordId, option_id: OptionId) -> Result[Post]:
        """Select a poll option, switching or retracting an earlier choice.

        Both count adjustments are computed before the single write of
        options and selection.
        """
        try:
            record_id = parse_record_id(post_id, "post")

            async with self._locks.hold(record_id):
                post = await self.get_by_id(record_id)
                if post is None:
                    raise NotFoundError("Post", record_id)
                if post.post_type != "poll" or not post.poll_options:
                    raise ValidationError(f"Post {record_id} is not a poll")

                options, selection = tally_poll_vote(
                    post.poll_options, post.user_poll_vote, option_id
                )
                updated = await self.update(
                    record_id,
                    PostUpdate(poll_options=options, user_poll_vote=selection),
                )
        except ForumKitException as e:
            self.logger.warning("poll_vote_failed", post_id=post_id, option_id=option_id, error=e.message)
            return Result.from_exception(e)
        except SchemaError as e:
            self.logger.error("poll_vote_record_invalid", post_id=post_id, error=str(e))
            return Result.fail(FailureKind.VALIDATION, f"Stored post is malformed: {e.error_count()} invalid field(s)")

        self.logger.info("poll_voted", post_id=record_id, option_id=option_id, selection=selection)
        return Result.success(updated)

    # ------------------------------------------------------------------
    # Saved posts
    # ------------------------------------------------------------------

    async def toggle_save(self, post_id: RecordId) -> dict:
        return self.saved.toggle(post_id)

    async def is_saved(self, post_id: RecordId) -> bool:
        return self.saved.is_saved(post_id)

    async def get_saved(self) -> List[Post]:
        """Saved posts in the order ``get_all`` returns them."""
        saved_ids = self.saved.saved_ids()
        if not saved_ids:
            return []
        return [post for post in await self.get_all() if post.id in saved_ids]


def _search_snippet(post: Post, term: str) -> str:
    snippet = text_window(post.title, term, 30)
    if snippet:
        return snippet

    snippet = text_window(post.content, term, 40)
    if snippet:
        return snippet

    tag = next((t for t in post.tags if term in t.lower()), None)
    if tag is not None:
        return f"Tagged with: {tag}"

    if post.author and term in post.author.lower():
        return f"Posted by u/{post.author}"
    return ""
