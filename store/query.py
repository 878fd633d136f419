"""
Purpose: Query model for subscriptions.
What it does:
A query is a collection name plus a list of field filters. Field paths may be
dotted ("rider.id") to reach into embedded maps. Results are unordered; the
consumers sort what they need.

Rule: No store access here. Matching only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

SUPPORTED_OPERATORS = ("==", "!=", "in", "not-in")

Filter = Tuple[str, str, Any]


def get_path(document: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Resolve a dotted field path against a (possibly nested) document."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


@dataclass(frozen=True)
class Query:
    """
    A collection-wide or filtered query.

    Missing fields compare as None, so ("location", "!=", None) keeps only
    documents that carry a location.
    """
    collection: str
    filters: Tuple[Filter, ...] = field(default_factory=tuple)

    @classmethod
    def all(cls, collection: str) -> Query:
        return cls(collection=collection)

    def where(self, path: str, op: str, value: Any) -> Query:
        if op not in SUPPORTED_OPERATORS:
            raise ValueError(f"Unsupported query operator {op!r}")
        return Query(self.collection, self.filters + ((path, op, value),))

    def matches(self, document: Dict[str, Any]) -> bool:
        for path, op, value in self.filters:
            actual = get_path(document, path, None)
            if op == "==" and actual != value:
                return False
            if op == "!=" and actual == value:
                return False
            if op == "in" and actual not in value:
                return False
            if op == "not-in" and actual in value:
                return False
        return True


def document_id_query(collection: str, doc_id: str) -> Query:
    """Single-document query (used for live tracking of one delivery)."""
    return Query.all(collection).where("id", "==", doc_id)


def filter_documents(query: Query, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [doc for doc in documents if query.matches(doc)]
