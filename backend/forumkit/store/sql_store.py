"""RecordStore backed by a SQL database through async SQLAlchemy.

Used for local development and tests. Reference fields are expanded on read
the same way the hosted API expands them, so services see identical record
shapes from either store.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from forumkit.core.exceptions import NotFoundError, StoreError
from forumkit.db.session import build_engine, build_session_factory
from forumkit.models.base import Base
from forumkit.models.record import StoredRecord
from forumkit.store.base import EntityKind, Record, RecordStore
from forumkit.store.query import RecordQuery

logger = structlog.get_logger(__name__)

# field -> (referenced kind, display field copied into the expanded value)
REFERENCE_FIELDS: Dict[EntityKind, Dict[str, Tuple[EntityKind, str]]] = {
    EntityKind.POST: {
        "community_c": (EntityKind.COMMUNITY, "name_c"),
    },
    EntityKind.COMMENT: {
        "post_id_c": (EntityKind.POST, "title_c"),
        "parent_id_c": (EntityKind.COMMENT, "content_c"),
    },
}


class SqlRecordStore(RecordStore):
    """Stores every entity kind in one ``records`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        """Initialize the store.

        Args:
            session_factory: Factory producing async sessions
            engine: Engine to dispose on close (only when the store owns it)
        """
        self.session_factory = session_factory
        self._engine = engine
        self.logger = logger.bind(store="sql")

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "SqlRecordStore":
        engine = build_engine(database_url, echo=echo)
        return cls(build_session_factory(engine), engine=engine)

    async def init_schema(self) -> None:
        """Create the records table if it does not exist."""
        if self._engine is None:
            raise StoreError("records", "init_schema requires an engine-owning store")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.logger.info("record_schema_ready")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    async def fetch_all(
        self,
        kind: EntityKind,
        query: Optional[RecordQuery] = None,
    ) -> List[Record]:
        try:
            async with self.session_factory() as session:
                stmt = (
                    select(StoredRecord)
                    .where(StoredRecord.kind == kind.value)
                    .order_by(StoredRecord.id.asc())
                )
                result = await session.execute(stmt)
                records = [row.to_record() for row in result.scalars().all()]

                if query is not None:
                    records = query.apply(records)

                return await self._expand_references(session, kind, records)
        except SQLAlchemyError as e:
            self.logger.error("record_fetch_failed", kind=kind.value, error=str(e), exc_info=True)
            raise StoreError(kind.value, str(e)) from e

    async def fetch_one(self, kind: EntityKind, record_id: int) -> Optional[Record]:
        try:
            async with self.session_factory() as session:
                row = await self._get_row(session, kind, record_id)
                if row is None:
                    return None
                expanded = await self._expand_references(session, kind, [row.to_record()])
                return expanded[0]
        except SQLAlchemyError as e:
            self.logger.error("record_fetch_failed", kind=kind.value, error=str(e), exc_info=True)
            raise StoreError(kind.value, str(e)) from e

    async def create(self, kind: EntityKind, record: Record) -> Record:
        data = _strip_id(record)
        try:
            async with self.session_factory() as session:
                row = StoredRecord(kind=kind.value, data=data)
                session.add(row)
                await session.commit()
                self.logger.debug("record_created", kind=kind.value, record_id=row.id)
                expanded = await self._expand_references(session, kind, [row.to_record()])
                return expanded[0]
        except SQLAlchemyError as e:
            self.logger.error("record_create_failed", kind=kind.value, error=str(e), exc_info=True)
            raise StoreError(kind.value, str(e)) from e

    async def update(self, kind: EntityKind, record_id: int, partial: Record) -> Record:
        try:
            async with self.session_factory() as session:
                row = await self._get_row(session, kind, record_id)
                if row is None:
                    raise NotFoundError(kind.value, record_id)

                # Reassign so the JSON column is flagged dirty
                row.data = {**row.data, **_strip_id(partial)}
                await session.commit()
                expanded = await self._expand_references(session, kind, [row.to_record()])
                return expanded[0]
        except SQLAlchemyError as e:
            self.logger.error("record_update_failed", kind=kind.value, error=str(e), exc_info=True)
            raise StoreError(kind.value, str(e)) from e

    async def delete(self, kind: EntityKind, record_ids: Sequence[int]) -> Dict[int, bool]:
        outcome: Dict[int, bool] = {}
        try:
            async with self.session_factory() as session:
                for record_id in record_ids:
                    row = await self._get_row(session, kind, record_id)
                    if row is None:
                        outcome[int(record_id)] = False
                        continue
                    await session.delete(row)
                    outcome[int(record_id)] = True
                await session.commit()
        except SQLAlchemyError as e:
            self.logger.error("record_delete_failed", kind=kind.value, error=str(e), exc_info=True)
            raise StoreError(kind.value, str(e)) from e

        self.logger.debug("records_deleted", kind=kind.value, outcome=outcome)
        return outcome

    async def _get_row(
        self, session: AsyncSession, kind: EntityKind, record_id: int
    ) -> Optional[StoredRecord]:
        stmt = select(StoredRecord).where(
            StoredRecord.id == int(record_id),
            StoredRecord.kind == kind.value,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def _expand_references(
        self,
        session: AsyncSession,
        kind: EntityKind,
        records: List[Record],
    ) -> List[Record]:
        """Replace scalar reference ids with ``{"Id": ..., <display>: ...}``."""
        references = REFERENCE_FIELDS.get(kind)
        if not references or not records:
            return records

        expanded = [dict(r) for r in records]
        for field_name, (target_kind, display_field) in references.items():
            ids = {
                r[field_name] for r in expanded
                if isinstance(r.get(field_name), int)
            }
            if not ids:
                continue

            stmt = select(StoredRecord).where(
                StoredRecord.kind == target_kind.value,
                StoredRecord.id.in_(ids),
            )
            result = await session.execute(stmt)
            display: Dict[int, Any] = {
                row.id: row.data.get(display_field) for row in result.scalars().all()
            }

            for r in expanded:
                ref_id = r.get(field_name)
                if isinstance(ref_id, int):
                    r[field_name] = {"Id": ref_id, display_field: display.get(ref_id)}

        return expanded


def _strip_id(record: Record) -> Dict[str, Any]:
    data = {k: v for k, v in record.items() if k != "Id"}
    # Expanded references are stored back as plain ids
    for key, value in data.items():
        if isinstance(value, dict) and "Id" in value:
            data[key] = value["Id"]
    return data
