"""
Document store adapter package.

Public API:
- DocumentStore contract, Subscription handle, write sentinels
- InMemoryDocumentStore (reference backend with change feed)
- Query model
- SnapshotDiffer / ChangeSet diffing layer
- Error taxonomy
"""
from .base import SERVER_TIMESTAMP, DocumentStore, Increment, Subscription
from .diffing import ChangeSet, SnapshotDiffer, diffing_callback
from .errors import ConditionFailed, NotFound, StoreError, StoreUnavailable, WriteDenied
from .memory import InMemoryDocumentStore
from .query import Query, document_id_query, get_path

USERS = "users"
DELIVERIES = "deliveries"
MESSAGES = "messages"
SETTINGS = "settings"

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "Increment",
    "Subscription",
    "ChangeSet",
    "SnapshotDiffer",
    "diffing_callback",
    "ConditionFailed",
    "NotFound",
    "StoreError",
    "StoreUnavailable",
    "WriteDenied",
    "InMemoryDocumentStore",
    "Query",
    "document_id_query",
    "get_path",
    "USERS",
    "DELIVERIES",
    "MESSAGES",
    "SETTINGS",
]
