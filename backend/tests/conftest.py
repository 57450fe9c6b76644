"""Pytest configuration and shared fixtures."""

from typing import Dict, List, Optional, Sequence, Set

import pytest_asyncio

from forumkit.core.exceptions import StoreError
from forumkit.store.base import EntityKind, Record, RecordStore
from forumkit.store.query import RecordQuery
from forumkit.store.sql_store import SqlRecordStore


class RecordingStore(RecordStore):
    """Test double wrapping a real store.

    Logs every delete in call order and can be told to fail on demand:
    ``fail_delete_ids`` raise StoreError, ``missing_delete_ids`` report
    "not deleted" without touching the inner store, ``fail_reads`` makes
    every fetch raise StoreError.
    """

    def __init__(self, inner: RecordStore):
        self.inner = inner
        self.delete_log: List[int] = []
        self.fetch_all_calls: List[EntityKind] = []
        self.fail_delete_ids: Set[int] = set()
        self.missing_delete_ids: Set[int] = set()
        self.fail_reads = False

    async def fetch_all(self, kind: EntityKind, query: Optional[RecordQuery] = None) -> List[Record]:
        self.fetch_all_calls.append(kind)
        if self.fail_reads:
            raise StoreError(kind.value, "read failed")
        return await self.inner.fetch_all(kind, query)

    async def fetch_one(self, kind: EntityKind, record_id: int) -> Optional[Record]:
        if self.fail_reads:
            raise StoreError(kind.value, "read failed")
        return await self.inner.fetch_one(kind, record_id)

    async def create(self, kind: EntityKind, record: Record) -> Record:
        return await self.inner.create(kind, record)

    async def update(self, kind: EntityKind, record_id: int, partial: Record) -> Record:
        return await self.inner.update(kind, record_id, partial)

    async def delete(self, kind: EntityKind, record_ids: Sequence[int]) -> Dict[int, bool]:
        outcome: Dict[int, bool] = {}
        for record_id in record_ids:
            if record_id in self.fail_delete_ids:
                raise StoreError(kind.value, f"delete of {record_id} failed")
            if record_id in self.missing_delete_ids:
                outcome[record_id] = False
                continue
            result = await self.inner.delete(kind, [record_id])
            if result.get(record_id):
                self.delete_log.append(record_id)
            outcome.update(result)
        return outcome

    async def close(self) -> None:
        await self.inner.close()


@pytest_asyncio.fixture
async def store():
    """In-memory SQLite record store."""
    sql_store = SqlRecordStore.from_url("sqlite+aiosqlite:///:memory:")
    await sql_store.init_schema()
    yield sql_store
    await sql_store.close()


@pytest_asyncio.fixture
async def recording_store(store: SqlRecordStore) -> RecordingStore:
    return RecordingStore(store)


@pytest_asyncio.fixture
async def community(store: SqlRecordStore) -> Record:
    """A community named 'python'."""
    return await store.create(
        EntityKind.COMMUNITY,
        {
            "name_c": "python",
            "description_c": "All things Python, from asyncio to zipimport.",
            "category_c": "Technology",
            "member_count_c": 42,
            "color_c": "#3776AB",
        },
    )


async def make_post(store: RecordStore, community_id: Optional[int] = None, **fields) -> Record:
    """Insert a raw post record with sensible defaults."""
    record = {
        "title_c": "Untitled",
        "content_c": "",
        "author_c": "tester",
        "community_c": community_id,
        "score_c": 0,
        "user_vote_c": 0,
        "timestamp_c": "2024-01-01T00:00:00+00:00",
        "comment_count_c": 0,
        "tags_c": "",
        "post_type_c": "text",
    }
    record.update(fields)
    return await store.create(EntityKind.POST, record)


async def make_comment(
    store: RecordStore,
    post_id: int,
    parent_id: Optional[int] = None,
    content: str = "comment",
) -> int:
    record = await store.create(
        EntityKind.COMMENT,
        {
            "author_c": "tester",
            "content_c": content,
            "timestamp_c": "2024-01-01T00:00:00+00:00",
            "score_c": 0,
            "post_id_c": post_id,
            "parent_id_c": parent_id,
        },
    )
    return record["Id"]
