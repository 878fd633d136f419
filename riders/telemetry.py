"""
Purpose: Live fleet map state from the rider location change feed.
What it does:
Keeps one marker per rider id. Each batch from the location subscription
(role == Rider, location present) is the complete truth for that moment:

- rider in batch, no marker yet      -> add marker
- rider in batch, marker elsewhere   -> move marker in place
- marker whose rider left the batch  -> remove marker

No per-rider timestamps are compared: the latest batch always wins, so
re-running on any batch converges to exactly that batch's rider set.
Rendering is delegated to an optional marker sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from accounts.models import Location, Role
from store import USERS, ChangeSet, DocumentStore, Query, SnapshotDiffer, Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Marker:
    rider_id: str
    name: str
    lat: float
    lng: float

    @property
    def position(self):
        return (self.lat, self.lng)


@dataclass(frozen=True)
class FleetDelta:
    added: List[str] = field(default_factory=list)
    moved: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)


def rider_location_query() -> Query:
    return Query.all(USERS).where("role", "==", Role.RIDER.value).where("location", "!=", None)


def _marker_from_document(document: Dict) -> Optional[Marker]:
    if document.get("role") != Role.RIDER.value:
        return None
    location = Location.from_document(document.get("location"))
    if location is None:
        return None
    return Marker(rider_id=document["id"], name=document.get("name", ""), lat=location.lat, lng=location.lng)


class FleetTelemetrySynchronizer:
    """
    Owns the marker set for one map view. attach() subscribes, detach()
    releases the listener synchronously (call it when the view goes away).
    """

    def __init__(self, sink=None):
        self.sink = sink  # anything with add_marker / move_marker / remove_marker
        self._differ = SnapshotDiffer()
        self._markers: Dict[str, Marker] = {}
        self._subscription: Optional[Subscription] = None

    # --- Public API ---

    def reconcile(self, batch: Iterable[Dict]) -> FleetDelta:
        """
        Full-set reconciliation. Documents without a rider role or a
        location are ignored even if the query let them through.
        """
        riders = []
        for document in batch:
            marker = _marker_from_document(document)
            if marker is not None:
                riders.append({"id": marker.rider_id, "name": marker.name, "lat": marker.lat, "lng": marker.lng})
        return self.apply_changes(self._differ.apply(riders))

    def apply_changes(self, changes: ChangeSet) -> FleetDelta:
        delta = FleetDelta()

        for row in changes.added:
            marker = Marker(rider_id=row["id"], name=row["name"], lat=row["lat"], lng=row["lng"])
            self._markers[marker.rider_id] = marker
            delta.added.append(marker.rider_id)
            if self.sink:
                self.sink.add_marker(marker)

        for row in changes.modified:
            self._move(Marker(rider_id=row["id"], name=row["name"], lat=row["lat"], lng=row["lng"]), delta)

        for row in changes.removed:
            if self._markers.pop(row["id"], None) is not None:
                delta.removed.append(row["id"])
                if self.sink:
                    self.sink.remove_marker(row["id"])

        if delta.added or delta.moved or delta.removed:
            logger.debug(f"Fleet markers +{len(delta.added)} ~{len(delta.moved)} -{len(delta.removed)}")
        return delta

    def attach(self, store: DocumentStore, on_error: Optional[Callable[[Exception], None]] = None) -> Subscription:
        if self._subscription is not None and self._subscription.active:
            return self._subscription
        self._subscription = store.subscribe(rider_location_query(), self.reconcile, on_error)
        return self._subscription

    def detach(self) -> None:
        """Release the store listener and drop every marker."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for rider_id in list(self._markers):
            del self._markers[rider_id]
            if self.sink:
                self.sink.remove_marker(rider_id)
        self._differ.reset()

    def markers(self) -> Dict[str, Marker]:
        return dict(self._markers)

    def marker_ids(self) -> set:
        return set(self._markers)

    @property
    def attached(self) -> bool:
        return self._subscription is not None and self._subscription.active

    # --- Internal helpers ---

    def _move(self, marker: Marker, delta: FleetDelta) -> None:
        self._markers[marker.rider_id] = marker
        delta.moved.append(marker.rider_id)
        if self.sink:
            self.sink.move_marker(marker)
