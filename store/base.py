"""
Purpose: The document store adapter contract.
What it does:
Defines the thin interface every backing store must honour:

- create(collection, fields) -> id
- update(collection, id, partial_fields)      (field-level last-write-wins merge)
- update_if(collection, id, expected, fields) (compare-and-swap guard)
- set(collection, id, fields)                 (full overwrite, e.g. settings/global)
- get(collection, id) / delete(collection, id)
- subscribe(query, on_change, on_error) -> Subscription

on_change always receives the FULL current result set for the query, never a
diff. Consumers that need deltas wrap the callback with store.diffing.SnapshotDiffer.

Rule: No business rules here. Contract + write sentinels only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .query import Query

Document = Dict[str, Any]
ChangeCallback = Callable[[List[Document]], None]
ErrorCallback = Callable[[Exception], None]


class _ServerTimestamp:
    """Sentinel resolved to the store's clock at write time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    """Atomic numeric increment applied by the store, not by the client."""
    amount: float


class Subscription:
    """
    Handle returned by subscribe(). unsubscribe() releases the listener
    synchronously; after it returns, no further callbacks are delivered.
    """

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._release()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class DocumentStore:
    """
    Abstract adapter. Every mutating call stamps a server-assigned `updatedAt`,
    and create() also stamps `createdAt`.
    """

    def create(self, collection: str, fields: Document) -> str:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Document) -> None:
        raise NotImplementedError

    def update_if(self, collection: str, doc_id: str, expected: Document, fields: Document) -> None:
        raise NotImplementedError

    def set(self, collection: str, doc_id: str, fields: Document) -> None:
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        raise NotImplementedError

    def subscribe(
        self,
        query: Query,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        raise NotImplementedError

    def fetch(self, query: Query) -> List[Document]:
        """
        One-shot read: subscribe, take the first snapshot, release.
        Raises whatever the subscription reports instead of a snapshot.
        """
        received: List[List[Document]] = []
        failures: List[Exception] = []
        subscription = self.subscribe(query, received.append, failures.append)
        subscription.unsubscribe()
        if failures:
            raise failures[0]
        return received[0] if received else []
