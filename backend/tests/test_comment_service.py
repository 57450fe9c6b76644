"""Tests for comments: CRUD, reply trees and cascading deletion."""

import pytest

from forumkit.config import settings
from forumkit.core.exceptions import NotFoundError, StoreError, ValidationError
from forumkit.schemas.comment import Comment, CommentCreate
from forumkit.services.comment_service import (
    CommentService,
    build_tree,
    index_children,
    post_order,
)
from forumkit.store.base import EntityKind
from forumkit.store.sql_store import SqlRecordStore

from conftest import RecordingStore, make_comment, make_post


async def remaining_ids(store) -> set:
    return {r["Id"] for r in await store.fetch_all(EntityKind.COMMENT)}


# ============================================================================
# TESTS: TRAVERSAL HELPERS
# ============================================================================

class TestTraversal:
    """Tests for index_children / post_order / build_tree."""

    def comments(self, *pairs):
        return [Comment(id=i, post_id=1, parent_id=p) for i, p in pairs]

    def test_post_order_children_before_parent(self):
        children = index_children(self.comments((1, None), (2, 1), (3, 1), (4, 2)))

        order = post_order(1, children)

        assert order[-1] == 1
        assert order.index(4) < order.index(2)
        assert set(order) == {1, 2, 3, 4}

    def test_post_order_leaf(self):
        assert post_order(5, {}) == [5]

    def test_post_order_ignores_unrelated_branches(self):
        children = index_children(self.comments((1, None), (2, 1), (10, None), (11, 10)))

        assert post_order(1, children) == [2, 1]

    def test_post_order_survives_cycles(self):
        """A corrupted parent relation must not loop forever."""
        children = {1: [2], 2: [3], 3: [1]}

        order = post_order(1, children)

        assert order == [3, 2, 1]

    def test_post_order_deep_chain(self):
        """Deep reply chains do not hit the recursion limit."""
        depth = 5000
        children = {i: [i + 1] for i in range(1, depth)}

        order = post_order(1, children)

        assert order[0] == depth
        assert order[-1] == 1
        assert len(order) == depth

    def test_build_tree_nests_replies(self):
        roots = build_tree(self.comments((1, None), (2, 1), (3, 2), (4, None)))

        assert [r.id for r in roots] == [1, 4]
        assert [r.id for r in roots[0].replies] == [2]
        assert [r.id for r in roots[0].replies[0].replies] == [3]
        assert roots[1].replies == []

    def test_build_tree_orphans_become_roots(self):
        roots = build_tree(self.comments((2, 99), (3, 2)))

        assert [r.id for r in roots] == [2]
        assert [r.id for r in roots[0].replies] == [3]


# ============================================================================
# TESTS: CASCADE DELETE
# ============================================================================

class TestCascadeDelete:
    """Tests for CommentService.delete."""

    async def test_scenario_post_order(self, store: SqlRecordStore, recording_store: RecordingStore):
        """A->{B,C}, B->{D}: D before B, B and C before A, nothing left."""
        post = await make_post(store)
        a = await make_comment(store, post["Id"], content="A")
        b = await make_comment(store, post["Id"], parent_id=a, content="B")
        c = await make_comment(store, post["Id"], parent_id=a, content="C")
        d = await make_comment(store, post["Id"], parent_id=b, content="D")
        service = CommentService(recording_store)

        result = await service.delete(a)

        log = recording_store.delete_log
        assert log.index(d) < log.index(b)
        assert log.index(b) < log.index(a)
        assert log.index(c) < log.index(a)
        assert log[-1] == a
        assert result.id == a
        assert result.deleted_ids == log
        assert await remaining_ids(store) & {a, b, c, d} == set()

    async def test_cascade_is_complete_and_scoped(self, store: SqlRecordStore, recording_store: RecordingStore):
        """Every descendant goes; siblings and other threads stay."""
        post = await make_post(store)
        root = await make_comment(store, post["Id"])
        sibling = await make_comment(store, post["Id"])
        level1 = [await make_comment(store, post["Id"], parent_id=root) for _ in range(3)]
        level2 = [await make_comment(store, post["Id"], parent_id=p) for p in level1]
        level3 = await make_comment(store, post["Id"], parent_id=level2[0])
        sibling_reply = await make_comment(store, post["Id"], parent_id=sibling)

        await CommentService(recording_store).delete(root)

        assert await remaining_ids(store) == {sibling, sibling_reply}
        log = recording_store.delete_log
        assert log.index(level3) < log.index(level2[0]) < log.index(level1[0])

    async def test_collection_is_scanned_once(self, store: SqlRecordStore, recording_store: RecordingStore):
        post = await make_post(store)
        root = await make_comment(store, post["Id"])
        child = await make_comment(store, post["Id"], parent_id=root)
        await make_comment(store, post["Id"], parent_id=child)

        await CommentService(recording_store).delete(root)

        assert recording_store.fetch_all_calls == [EntityKind.COMMENT]

    async def test_cascade_reaches_replies_beyond_first_page(
        self, store: SqlRecordStore, recording_store: RecordingStore, monkeypatch
    ):
        """Replies past the page limit are still found and removed."""
        monkeypatch.setattr(settings, "COMMENT_PAGE_LIMIT", 3)
        post = await make_post(store)
        others = {await make_comment(store, post["Id"]) for _ in range(3)}
        root = await make_comment(store, post["Id"])
        child = await make_comment(store, post["Id"], parent_id=root)
        grandchild = await make_comment(store, post["Id"], parent_id=child)

        result = await CommentService(recording_store).delete(root)

        assert result.deleted_ids == [grandchild, child, root]
        assert await remaining_ids(store) == others
        assert recording_store.fetch_all_calls == [EntityKind.COMMENT] * 3

    async def test_leaf_delete(self, store: SqlRecordStore):
        post = await make_post(store)
        leaf = await make_comment(store, post["Id"])

        result = await CommentService(store).delete(f"comment_{leaf}")

        assert result.deleted_ids == [leaf]
        assert await remaining_ids(store) == set()

    async def test_missing_root_raises_after_processing_children(
        self, store: SqlRecordStore, recording_store: RecordingStore
    ):
        """Replies of a vanished comment are still removed, then NotFoundError."""
        post = await make_post(store)
        ghost = await make_comment(store, post["Id"])
        orphan = await make_comment(store, post["Id"], parent_id=ghost)
        recording_store.missing_delete_ids.add(ghost)

        with pytest.raises(NotFoundError):
            await CommentService(recording_store).delete(ghost)

        assert recording_store.delete_log == [orphan]

    async def test_nonexistent_comment_raises(self, store: SqlRecordStore):
        with pytest.raises(NotFoundError):
            await CommentService(store).delete(4242)

    async def test_reply_already_gone_is_skipped(self, store: SqlRecordStore, recording_store: RecordingStore):
        post = await make_post(store)
        root = await make_comment(store, post["Id"])
        gone = await make_comment(store, post["Id"], parent_id=root)
        recording_store.missing_delete_ids.add(gone)

        result = await CommentService(recording_store).delete(root)

        assert result.deleted_ids == [root]

    async def test_store_failure_keeps_earlier_deletions(
        self, store: SqlRecordStore, recording_store: RecordingStore
    ):
        """No rollback: replies removed before the failure stay removed."""
        post = await make_post(store)
        root = await make_comment(store, post["Id"])
        child = await make_comment(store, post["Id"], parent_id=root)
        grandchild = await make_comment(store, post["Id"], parent_id=child)
        recording_store.fail_delete_ids.add(child)

        with pytest.raises(StoreError):
            await CommentService(recording_store).delete(root)

        assert recording_store.delete_log == [grandchild]
        assert await remaining_ids(store) == {root, child}


# ============================================================================
# TESTS: COMMENT CRUD
# ============================================================================

class TestCommentCrud:
    """Tests for create / read / score updates."""

    async def test_create_trims_and_defaults_author(self, store: SqlRecordStore):
        post = await make_post(store)
        service = CommentService(store)

        comment = await service.create(CommentCreate(post_id=post["Id"], content="  hello  "))

        assert comment.content == "hello"
        assert comment.author == "Anonymous"
        assert comment.post_id == post["Id"]
        assert comment.parent_id is None
        assert comment.score == 0
        assert comment.timestamp

    async def test_create_reply(self, store: SqlRecordStore):
        post = await make_post(store)
        parent = await make_comment(store, post["Id"])
        service = CommentService(store)

        reply = await service.create(
            CommentCreate(post_id=f"post_{post['Id']}", parent_id=parent, content="re", author="bob")
        )

        assert reply.parent_id == parent
        assert reply.author == "bob"

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_create_rejects_blank_content(self, store: SqlRecordStore, content):
        post = await make_post(store)

        with pytest.raises(ValidationError, match="content is required"):
            await CommentService(store).create(CommentCreate(post_id=post["Id"], content=content))

    async def test_get_by_post_id(self, store: SqlRecordStore):
        first = await make_post(store)
        second = await make_post(store)
        mine = await make_comment(store, first["Id"])
        await make_comment(store, second["Id"])

        comments = await CommentService(store).get_by_post_id(first["Id"])

        assert [c.id for c in comments] == [mine]
        assert comments[0].post_id == first["Id"]

    async def test_get_tree_for_post(self, store: SqlRecordStore):
        post = await make_post(store)
        root = await make_comment(store, post["Id"])
        reply = await make_comment(store, post["Id"], parent_id=root)

        tree = await CommentService(store).get_tree_for_post(post["Id"])

        assert [n.id for n in tree] == [root]
        assert [n.id for n in tree[0].replies] == [reply]

    async def test_get_by_id_missing(self, store: SqlRecordStore):
        assert await CommentService(store).get_by_id(77) is None

    async def test_update_score(self, store: SqlRecordStore):
        post = await make_post(store)
        comment_id = await make_comment(store, post["Id"])

        comment = await CommentService(store).update_score(comment_id, 12)

        assert comment.score == 12
        assert comment.post_id == post["Id"]

    async def test_update_score_missing_comment(self, store: SqlRecordStore):
        with pytest.raises(NotFoundError):
            await CommentService(store).update_score(404, 1)
