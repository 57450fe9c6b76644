"""Record stores: the persistence collaborator behind every service."""

from forumkit.store.base import EntityKind, Record, RecordStore
from forumkit.store.factory import create_record_store
from forumkit.store.http_store import HttpRecordStore
from forumkit.store.query import Condition, Operator, OrderBy, RecordQuery, where
from forumkit.store.sql_store import SqlRecordStore

__all__ = [
    "EntityKind",
    "Record",
    "RecordStore",
    "create_record_store",
    "HttpRecordStore",
    "SqlRecordStore",
    "Condition",
    "Operator",
    "OrderBy",
    "RecordQuery",
    "where",
]
