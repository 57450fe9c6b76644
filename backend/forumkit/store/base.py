"""Record store interface.

Every service in forumkit reads and writes through a RecordStore. Concrete
stores (hosted HTTP API, local SQL database) must implement all abstract
methods and raise forumkit exceptions instead of backend-specific ones.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from forumkit.store.query import RecordQuery

Record = Dict[str, Any]


class EntityKind(str, Enum):
    """Named record categories (table names on the hosted API)."""

    POST = "post_c"
    COMMENT = "comment_c"
    COMMUNITY = "community_c"


class RecordStore(ABC):
    """Async persistence collaborator.

    Record ids are integers assigned by the store. Records are plain dicts
    keyed by the store's field names, with the id under ``"Id"``.
    """

    @abstractmethod
    async def fetch_all(
        self,
        kind: EntityKind,
        query: Optional[RecordQuery] = None,
    ) -> List[Record]:
        """Return records of a kind, filtered/sorted/paged by ``query``.

        Raises:
            StoreError: If the backend reports a failure
        """
        pass

    @abstractmethod
    async def fetch_one(self, kind: EntityKind, record_id: int) -> Optional[Record]:
        """Return one record, or None if it does not exist."""
        pass

    @abstractmethod
    async def create(self, kind: EntityKind, record: Record) -> Record:
        """Create a record and return it with its assigned ``Id``."""
        pass

    @abstractmethod
    async def update(self, kind: EntityKind, record_id: int, partial: Record) -> Record:
        """Merge ``partial`` into an existing record and return the result.

        Raises:
            NotFoundError: If no record has ``record_id``
            StoreError: If the backend reports a failure
        """
        pass

    @abstractmethod
    async def delete(self, kind: EntityKind, record_ids: Sequence[int]) -> Dict[int, bool]:
        """Delete records, reporting per id whether it was removed."""
        pass

    async def close(self) -> None:
        """Release connections held by the store."""
        return None

    async def __aenter__(self) -> "RecordStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
