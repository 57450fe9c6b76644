"""Comment service for post discussions.

Deleting a comment deletes its whole reply tree. The collection is read
page by page to build a parent -> children index, then the subtree is
removed in post-order: every reply is gone before the comment it answers,
so the store never holds a reply whose parent has already been deleted.

Cascades are not transactional. If the store fails part-way, replies that
were already removed stay removed.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import structlog

from forumkit.config import settings
from forumkit.core.exceptions import NotFoundError, ValidationError
from forumkit.schemas.comment import Comment, CommentCreate, CommentDeleted, CommentNode
from forumkit.schemas.common import RecordId, parse_record_id, utc_now_iso
from forumkit.store.base import EntityKind, RecordStore
from forumkit.store.query import Operator, OrderBy, RecordQuery, where

logger = structlog.get_logger(__name__)

COMMENT_FIELDS = [
    "Name",
    "author_c",
    "content_c",
    "timestamp_c",
    "score_c",
    "post_id_c",
    "parent_id_c",
]


def index_children(comments: Iterable[Comment]) -> Dict[int, List[int]]:
    """Map each parent id to the ids of its direct replies, in input order."""
    children: Dict[int, List[int]] = defaultdict(list)
    for comment in comments:
        if comment.parent_id is not None:
            children[comment.parent_id].append(comment.id)
    return children


def post_order(root_id: int, children: Dict[int, List[int]]) -> List[int]:
    """Ids of ``root_id``'s subtree, each descendant before its ancestors.

    ``root_id`` is always last. Ids reachable more than once (a corrupted,
    cyclic parent relation) are emitted only on first visit.
    """
    order: List[int] = []
    visited = {root_id}
    stack = [(root_id, iter(children.get(root_id, ())))]

    while stack:
        node, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            order.append(node)
        elif child not in visited:
            visited.add(child)
            stack.append((child, iter(children.get(child, ()))))

    return order


def build_tree(comments: Iterable[Comment]) -> List[CommentNode]:
    """Nest replies under their parents.

    Comments whose parent is missing from ``comments`` are treated as roots.
    Sibling order follows the input order.
    """
    nodes = {c.id: CommentNode(**c.model_dump()) for c in comments}
    roots: List[CommentNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


class CommentService:
    """Handles CRUD operations for post comments."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.logger = logger.bind(service="comment_service")

    async def get_all(self) -> List[Comment]:
        records = await self.store.fetch_all(
            EntityKind.COMMENT,
            RecordQuery(fields=COMMENT_FIELDS, limit=settings.COMMENT_PAGE_LIMIT),
        )
        return [Comment.from_record(r) for r in records]

    async def get_by_post_id(self, post_id: RecordId) -> List[Comment]:
        record_id = parse_record_id(post_id, "post")
        records = await self.store.fetch_all(
            EntityKind.COMMENT,
            RecordQuery(
                fields=COMMENT_FIELDS,
                where=[where("post_id_c", Operator.EQUAL_TO, record_id)],
                limit=settings.COMMENT_PAGE_LIMIT,
            ),
        )
        return [Comment.from_record(r, post_id_fallback=record_id) for r in records]

    async def get_tree_for_post(self, post_id: RecordId) -> List[CommentNode]:
        """Top-level comments of a post with their replies nested."""
        return build_tree(await self.get_by_post_id(post_id))

    async def get_by_id(self, comment_id: RecordId) -> Optional[Comment]:
        record = await self.store.fetch_one(
            EntityKind.COMMENT, parse_record_id(comment_id, "comment")
        )
        return Comment.from_record(record) if record else None

    async def create(self, data: CommentCreate) -> Comment:
        """Create a comment or reply.

        Raises:
            ValidationError: If the content is blank
        """
        content = (data.content or "").strip()
        if not content:
            raise ValidationError("Comment content is required")

        post_id = parse_record_id(data.post_id, "post")
        parent_id = (
            parse_record_id(data.parent_id, "comment") if data.parent_id else None
        )

        record = await self.store.create(
            EntityKind.COMMENT,
            {
                "author_c": data.author or "Anonymous",
                "content_c": content,
                "timestamp_c": utc_now_iso(),
                "score_c": 0,
                "post_id_c": post_id,
                "parent_id_c": parent_id,
            },
        )
        comment = Comment.from_record(record, post_id_fallback=post_id)
        self.logger.info(
            "comment_created",
            comment_id=comment.id,
            post_id=post_id,
            parent_id=parent_id,
        )
        return comment

    async def update_score(self, comment_id: RecordId, score: int) -> Comment:
        """Set a comment's score.

        Raises:
            NotFoundError: If the comment does not exist
        """
        record_id = parse_record_id(comment_id, "comment")
        record = await self.store.update(EntityKind.COMMENT, record_id, {"score_c": score})
        return Comment.from_record(record)

    async def _fetch_every_comment(self) -> List[Comment]:
        """Read the whole collection, not just the first page."""
        page_size = settings.COMMENT_PAGE_LIMIT
        comments: List[Comment] = []
        offset = 0

        while True:
            records = await self.store.fetch_all(
                EntityKind.COMMENT,
                RecordQuery(
                    fields=COMMENT_FIELDS,
                    order_by=[OrderBy("Id")],
                    limit=page_size,
                    offset=offset,
                ),
            )
            comments.extend(Comment.from_record(r) for r in records)
            if len(records) < page_size:
                return comments
            offset += page_size

    async def delete(self, comment_id: RecordId) -> CommentDeleted:
        """Delete a comment and every reply beneath it, replies first.

        A reply the store reports as already gone is skipped. The comment
        itself must be deleted for the call to succeed.

        Returns:
            The deleted comment id and the ids removed, in deletion order

        Raises:
            NotFoundError: If the comment itself could not be deleted
            StoreError: If the store fails; earlier deletions are kept
        """
        root_id = parse_record_id(comment_id, "comment")

        children = index_children(await self._fetch_every_comment())
        order = post_order(root_id, children)
        self.logger.info("comment_cascade_started", comment_id=root_id, size=len(order))

        deleted: List[int] = []
        for node_id in order:
            outcome = await self.store.delete(EntityKind.COMMENT, [node_id])
            if outcome.get(node_id, False):
                deleted.append(node_id)
            elif node_id == root_id:
                self.logger.error(
                    "comment_delete_failed",
                    comment_id=root_id,
                    replies_deleted=len(deleted),
                )
                raise NotFoundError("Comment", root_id)
            else:
                self.logger.warning("comment_reply_already_gone", comment_id=node_id, root_id=root_id)

        self.logger.info("comment_cascade_finished", comment_id=root_id, deleted=len(deleted))
        return CommentDeleted(id=root_id, deleted_ids=deleted)
