"""Generic record row used by SqlRecordStore."""

from typing import Any, Dict

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from forumkit.models.base import Base, TimestampMixin


class StoredRecord(TimestampMixin, Base):
    """One record of any entity kind, with its fields kept as a JSON document.

    Ids come from a single sequence shared by all kinds, so an id is unique
    across the whole table.
    """

    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(
        String(64), nullable=False,
        comment="Entity kind, e.g. 'post_c'"
    )
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_records_kind_id", "kind", "id"),
    )

    def to_record(self) -> Dict[str, Any]:
        return {**self.data, "Id": self.id}

    def __repr__(self) -> str:
        return f"<StoredRecord(id={self.id}, kind='{self.kind}')>"
