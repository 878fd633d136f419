"""
Purpose: Diffing layer between full-set subscriptions and delta consumers.
What it does:
The store pushes the complete result set on every change. SnapshotDiffer keeps
the previous set (keyed by document id) and turns each new delivery into a
ChangeSet of added / modified / removed documents, so downstream components
can be written and tested against deltas without a live store.

The latest delivered set is always treated as ground truth: after apply(),
the differ's key set equals exactly the ids in that delivery.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List

from .base import Document


@dataclass(frozen=True)
class ChangeSet:
    added: List[Document] = field(default_factory=list)
    modified: List[Document] = field(default_factory=list)
    removed: List[Document] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


@dataclass
class SnapshotDiffer:
    """
    Stateful full-set -> delta converter. Re-delivery of an unchanged set
    produces an empty ChangeSet.
    """
    key: Callable[[Document], str] = lambda document: document["id"]
    _current: Dict[str, Document] = field(default_factory=dict)

    def apply(self, documents: Iterable[Document]) -> ChangeSet:
        incoming: Dict[str, Document] = {}
        for document in documents:
            incoming[self.key(document)] = document

        added: List[Document] = []
        modified: List[Document] = []
        for doc_id, document in incoming.items():
            previous = self._current.get(doc_id)
            if previous is None:
                added.append(document)
            elif previous != document:
                modified.append(document)

        removed = [document for doc_id, document in self._current.items() if doc_id not in incoming]

        self._current = incoming
        return ChangeSet(added=added, modified=modified, removed=removed)

    def current(self) -> List[Document]:
        return list(self._current.values())

    def keys(self) -> set:
        return set(self._current)

    def reset(self) -> None:
        self._current = {}


def diffing_callback(differ: SnapshotDiffer, on_delta: Callable[[ChangeSet], None]) -> Callable[[List[Document]], None]:
    """Adapt a delta handler into a subscribe() on_change callback."""

    def _on_change(documents: List[Document]) -> None:
        on_delta(differ.apply(documents))

    return _on_change
