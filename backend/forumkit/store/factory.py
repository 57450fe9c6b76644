"""Builds the configured RecordStore."""

import structlog

from forumkit.config import Settings, settings as default_settings
from forumkit.store.base import RecordStore
from forumkit.store.http_store import HttpRecordStore
from forumkit.store.sql_store import SqlRecordStore

logger = structlog.get_logger(__name__)


def create_record_store(settings: Settings = default_settings) -> RecordStore:
    """Return a new store for ``settings.STORE_BACKEND``.

    The caller owns the store and must close it.
    """
    if settings.STORE_BACKEND == "sql":
        logger.info("record_store_selected", backend="sql", url=settings.DATABASE_URL)
        return SqlRecordStore.from_url(settings.DATABASE_URL, echo=settings.DEBUG and not settings.is_sqlite)

    logger.info("record_store_selected", backend="http", url=settings.RECORD_STORE_URL)
    return HttpRecordStore.from_settings(settings)
