"""
Purpose: In-process document store with a push-based change feed.
What it does:
- Owns every collection in memory (dict of id -> document)
- Applies writes with field-level last-write-wins merges
- Resolves SERVER_TIMESTAMP and Increment sentinels at write time
- Fans out the full current result set to every subscription whose
  collection was touched and whose result set changed
- Simulates the two failure modes callers must tell apart:
  disconnect() -> StoreUnavailable, deny_writes() -> WriteDenied

Delivery is single-threaded and run-to-completion: a write issued from inside a
callback is applied immediately, but its notifications are queued and only
delivered once the current callback returns.
"""

from __future__ import annotations

import copy
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Set

from .base import (
    SERVER_TIMESTAMP,
    ChangeCallback,
    Document,
    DocumentStore,
    ErrorCallback,
    Increment,
    Subscription,
)
from .errors import ConditionFailed, NotFound, StoreUnavailable, WriteDenied
from .query import Query, filter_documents

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Listener:
    query: Query
    on_change: ChangeCallback
    on_error: Optional[ErrorCallback]
    subscription: Optional[Subscription] = None
    last_delivered: Optional[List[Document]] = None


@dataclass
class InMemoryDocumentStore(DocumentStore):
    """
    Reference backend for the adapter contract, used by the simulation
    scripts and the test-suite in place of a remote store.
    """
    clock: Callable[[], datetime] = _utcnow

    _collections: Dict[str, Dict[str, Document]] = field(default_factory=dict)
    _listeners: Dict[int, _Listener] = field(default_factory=dict)
    _next_listener_key: int = 0

    _online: bool = True
    _denied_collections: Set[str] = field(default_factory=set)

    # coalescing / run-to-completion bookkeeping
    _batch_depth: int = 0
    _delivering: bool = False
    _pending_collections: Set[str] = field(default_factory=set)
    _pending_snapshots: List[_Listener] = field(default_factory=list)

    # --- Public API: writes ---

    def create(self, collection: str, fields: Document) -> str:
        self._check_writable(collection)
        doc_id = uuid.uuid4().hex[:20]
        now = self.clock()
        document = self._resolve_fields(fields, current={}, now=now)
        document.setdefault("createdAt", now)
        document["updatedAt"] = now
        self._collection(collection)[doc_id] = document
        self._notify(collection)
        return doc_id

    def update(self, collection: str, doc_id: str, fields: Document) -> None:
        self._check_writable(collection)
        current = self._existing(collection, doc_id)
        self._merge(collection, doc_id, current, fields)

    def update_if(self, collection: str, doc_id: str, expected: Document, fields: Document) -> None:
        """
        Compare-and-swap: apply `fields` only if every key in `expected`
        currently holds exactly that value (a missing key compares as None).
        """
        self._check_writable(collection)
        current = self._existing(collection, doc_id)

        actual = {key: current.get(key) for key in expected}
        if actual != dict(expected):
            raise ConditionFailed(
                f"Precondition failed on {collection}/{doc_id}: expected {expected}, found {actual}",
                collection,
                doc_id,
                actual=actual,
            )
        self._merge(collection, doc_id, current, fields)

    def set(self, collection: str, doc_id: str, fields: Document) -> None:
        self._check_writable(collection)
        now = self.clock()
        previous = self._collection(collection).get(doc_id, {})
        document = self._resolve_fields(fields, current={}, now=now)
        document.setdefault("createdAt", previous.get("createdAt", now))
        document["updatedAt"] = now
        self._collection(collection)[doc_id] = document
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        self._check_writable(collection)
        if self._collection(collection).pop(doc_id, None) is None:
            raise NotFound(f"{collection}/{doc_id} does not exist", collection, doc_id)
        self._notify(collection)

    # --- Public API: reads ---

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        document = self._collection(collection).get(doc_id)
        if document is None:
            return None
        return self._materialise(doc_id, document)

    def fetch(self, query: Query) -> List[Document]:
        if not self._online:
            raise StoreUnavailable(f"Store offline, cannot read {query.collection}", query.collection)
        return copy.deepcopy(self._snapshot(query))

    def subscribe(
        self,
        query: Query,
        on_change: ChangeCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        key = self._next_listener_key
        self._next_listener_key += 1

        listener = _Listener(query=query, on_change=on_change, on_error=on_error)
        listener.subscription = Subscription(lambda: self._listeners.pop(key, None))
        self._listeners[key] = listener

        # the initial snapshot (or the outage) is delivered straight away,
        # unless another callback is still running
        if self._online:
            self._pending_snapshots.append(listener)
            self._drain()
        else:
            self._fail(listener, StoreUnavailable(f"Store offline, cannot sync {query.collection}", query.collection))
        return listener.subscription

    # --- Simulation controls ---

    @contextmanager
    def batch(self) -> Iterator[None]:
        """
        Coalesce notifications: writes inside the block produce at most one
        callback per affected subscription, delivered when the block exits.
        """
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._drain()

    def disconnect(self) -> None:
        self._online = False
        for listener in list(self._listeners.values()):
            self._fail(listener, StoreUnavailable("Connection to the store was lost", listener.query.collection))

    def reconnect(self) -> None:
        self._online = True
        self._pending_snapshots.extend(self._listeners.values())
        self._drain()

    def deny_writes(self, collection: str) -> None:
        self._denied_collections.add(collection)

    def allow_writes(self, collection: str) -> None:
        self._denied_collections.discard(collection)

    @property
    def online(self) -> bool:
        return self._online

    def listener_count(self) -> int:
        return len(self._listeners)

    # --- Internal helpers ---

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def _existing(self, collection: str, doc_id: str) -> Document:
        current = self._collection(collection).get(doc_id)
        if current is None:
            raise NotFound(f"{collection}/{doc_id} does not exist", collection, doc_id)
        return current

    def _check_writable(self, collection: str) -> None:
        if not self._online:
            raise StoreUnavailable(f"Store offline, write to {collection} not applied", collection)
        if collection in self._denied_collections:
            raise WriteDenied(f"Missing or insufficient permissions for {collection}", collection)

    def _merge(self, collection: str, doc_id: str, current: Document, fields: Document) -> None:
        now = self.clock()
        resolved = self._resolve_fields(fields, current=current, now=now)
        current.update(resolved)
        current["updatedAt"] = now
        self._notify(collection)

    def _resolve_fields(self, fields: Document, *, current: Document, now: datetime) -> Document:
        resolved: Document = {}
        for key, value in fields.items():
            if key == "id":
                # the id lives in the document key, never in the body
                continue
            if value is SERVER_TIMESTAMP:
                resolved[key] = now
            elif isinstance(value, Increment):
                resolved[key] = (current.get(key) or 0) + value.amount
            else:
                resolved[key] = copy.deepcopy(value)
        return resolved

    def _materialise(self, doc_id: str, document: Document) -> Document:
        materialised = copy.deepcopy(document)
        materialised["id"] = doc_id
        return materialised

    def _snapshot(self, query: Query) -> List[Document]:
        documents = [
            self._materialise(doc_id, document)
            for doc_id, document in self._collection(query.collection).items()
        ]
        return filter_documents(query, documents)

    def _notify(self, collection: str) -> None:
        self._pending_collections.add(collection)
        if self._batch_depth == 0:
            self._drain()

    def _drain(self) -> None:
        """
        Deliver queued work until nothing is left. Initial snapshots and
        resyncs go first; collection changes wait for the outermost batch.
        """
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending_snapshots or (self._pending_collections and self._batch_depth == 0):
                if self._pending_snapshots:
                    self._deliver(self._pending_snapshots.pop(0), force=True)
                    continue
                collection = self._pending_collections.pop()
                for listener in list(self._listeners.values()):
                    if listener.query.collection == collection:
                        self._deliver(listener)
        finally:
            self._delivering = False

    def _deliver(self, listener: _Listener, force: bool = False) -> None:
        if not listener.subscription.active:
            return
        snapshot = self._snapshot(listener.query)
        if not force and snapshot == listener.last_delivered:
            return
        listener.last_delivered = snapshot
        try:
            listener.on_change(copy.deepcopy(snapshot))
        except Exception as exc:
            # the write stands; report to this listener and keep delivering
            logger.exception(f"Listener on {listener.query.collection} raised while handling a snapshot")
            self._fail(listener, exc)

    def _fail(self, listener: _Listener, error: Exception) -> None:
        if not listener.subscription.active:
            return
        logger.warning(f"Subscription on {listener.query.collection} failed: {error}")
        if listener.on_error is None:
            return
        try:
            listener.on_error(error)
        except Exception:
            logger.exception(f"Error handler on {listener.query.collection} raised")
