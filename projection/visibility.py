"""
Purpose: Role-scoped projection of shared collections.
What it does:
Given the full delivery / user set and the viewer's identity, returns the
subset that viewer may see:

- Super Admin / Admin: everything
- Rider:    deliveries where rider.id == viewer.id
- Vendor:   deliveries where vendorId == viewer.id
- Customer: deliveries where customer.phone == viewer.phone
- Guest (no identity): no persisted deliveries

The visible set is split into the Live Queue (non-terminal) and the Archive
(Delivered / Failed, aliases included). Each delivery lands in exactly one.

Rule: Pure functions over snapshots. No store calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from accounts.models import Identity, Role
from deliveries.models import Delivery, DeliveryStatus
from store import MESSAGES, Query


@dataclass(frozen=True)
class DashboardCounters:
    total: int
    active: int
    delivered: int
    failed: int


def can_see(delivery: Delivery, viewer: Optional[Identity]) -> bool:
    if viewer is None:
        return False
    if viewer.is_staff:
        return True
    if viewer.role == Role.RIDER:
        return delivery.rider is not None and delivery.rider.id == viewer.id
    if viewer.role == Role.VENDOR:
        return delivery.vendor_id == viewer.id
    if viewer.role == Role.CUSTOMER:
        return bool(viewer.phone) and delivery.customer.phone == viewer.phone
    return False


def visible_deliveries(deliveries: Iterable[Delivery], viewer: Optional[Identity]) -> List[Delivery]:
    return [d for d in deliveries if can_see(d, viewer)]


def partition(deliveries: Iterable[Delivery]) -> Tuple[List[Delivery], List[Delivery]]:
    """Split into (live_queue, archive)."""
    live: List[Delivery] = []
    archive: List[Delivery] = []
    for delivery in deliveries:
        (archive if delivery.is_archived else live).append(delivery)
    return live, archive


def project(deliveries: Iterable[Delivery], viewer: Optional[Identity]) -> Tuple[List[Delivery], List[Delivery]]:
    return partition(visible_deliveries(deliveries, viewer))


def dashboard_counters(deliveries: Iterable[Delivery]) -> DashboardCounters:
    deliveries = list(deliveries)
    live, archive = partition(deliveries)
    delivered = sum(1 for d in archive if d.canonical_status == DeliveryStatus.DELIVERED)
    return DashboardCounters(
        total=len(deliveries),
        active=len(live),
        delivered=delivered,
        failed=len(archive) - delivered,
    )


def visible_users(users: Iterable[Identity], viewer: Optional[Identity]) -> List[Identity]:
    """Staff manage the whole directory; everyone else only sees themselves."""
    if viewer is None:
        return []
    if viewer.is_staff:
        return list(users)
    return [u for u in users if u.id == viewer.id]


def message_query_for(viewer: Union[Identity, str]) -> Query:
    """
    Admins subscribe to every thread; anyone else (identity or guest id)
    only to the thread keyed by their own id.
    """
    if isinstance(viewer, Identity):
        if viewer.is_staff:
            return Query.all(MESSAGES)
        viewer = viewer.id
    return Query.all(MESSAGES).where("threadId", "==", viewer)
