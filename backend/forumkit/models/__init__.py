"""SQLAlchemy models backing the local record store."""

from forumkit.models.base import Base, TimestampMixin
from forumkit.models.record import StoredRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "StoredRecord",
]
