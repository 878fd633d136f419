"""
Purpose: Legal states, transitions and role gates for a delivery.
What it does:
Every function validates a proposed mutation and returns the partial document
(patch) to write. Nothing here touches the store; DeliveryService applies the
patch with a compare-and-swap on the prior status.

Pending --(Admin assigns an active Rider)--> Assigned
Assigned -> Picked Up -> In Transit -> Delivered   (assigned Rider only, one step at a time)
any non-terminal --(Admin)--> Failed
payment: Unpaid --(Admin verifies)--> Paid          (orthogonal to status, never reversed)
"""

from typing import Any, Dict, List, Optional

from accounts.models import Identity, Role
from accounts.validation import ValidationFailed
from store import SERVER_TIMESTAMP

from .models import RIDER_TRACK, Delivery, DeliveryStatus, PaymentStatus, RiderSnapshot

Patch = Dict[str, Any]


class DeliveryStateException(ValidationFailed):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, message: str):
        super().__init__(message, field="status")


class TransitionNotPermitted(DeliveryStateException):
    """Raised when the acting identity may not perform the transition."""
    pass


def _require_staff(actor: Identity, action: str) -> None:
    if actor is None or not actor.is_staff:
        raise TransitionNotPermitted(f"Only Admin or Super Admin may {action}")


def next_rider_status(delivery: Delivery) -> Optional[DeliveryStatus]:
    """The single status the assigned rider may move to next, if any."""
    current = delivery.canonical_status
    if current not in RIDER_TRACK:
        return None
    index = RIDER_TRACK.index(current)
    if index + 1 >= len(RIDER_TRACK):
        return None
    return RIDER_TRACK[index + 1]


def assign_rider(delivery: Delivery, actor: Identity, rider: Identity) -> Patch:
    """
    Called when an admin picks a rider for a Pending delivery.
    The rider is embedded as a snapshot, not a reference.
    """
    _require_staff(actor, "assign riders")

    if delivery.canonical_status != DeliveryStatus.PENDING:
        raise DeliveryStateException(f"Cannot assign delivery {delivery.id} from {delivery.status.value}")

    if rider.role != Role.RIDER:
        raise DeliveryStateException(f"{rider.name} is not a rider")

    if not rider.active:
        raise DeliveryStateException(f"Rider {rider.name} is not an approved, active rider")

    snapshot = RiderSnapshot(id=rider.id, name=rider.name, phone=rider.phone, picture=rider.profile_picture)
    return {
        "status": DeliveryStatus.ASSIGNED.value,
        "rider": snapshot.to_document(),
    }


def advance_status(delivery: Delivery, actor: Identity, new_status: DeliveryStatus) -> Patch:
    """
    Called when the assigned rider moves the delivery along its track.
    Skipping steps or moving backwards is rejected.
    """
    new_status = DeliveryStatus(new_status).canonical

    if actor is None or actor.role != Role.RIDER or delivery.rider is None or delivery.rider.id != actor.id:
        raise TransitionNotPermitted(f"Only the assigned rider may update delivery {delivery.id}")

    expected = next_rider_status(delivery)
    if expected is None or new_status != expected:
        raise DeliveryStateException(
            f"Cannot move delivery {delivery.id} from {delivery.status.value} to {new_status.value}"
        )

    patch: Patch = {"status": new_status.value}
    if new_status == DeliveryStatus.DELIVERED:
        patch["deliveredAt"] = SERVER_TIMESTAMP
    return patch


def mark_failed(delivery: Delivery, actor: Identity) -> Patch:
    """Admin-only escape hatch from any non-terminal status."""
    _require_staff(actor, "fail deliveries")

    if delivery.is_archived:
        raise DeliveryStateException(f"Delivery {delivery.id} is already {delivery.status.value}")
    return {"status": DeliveryStatus.FAILED.value}


def verify_payment(delivery: Delivery, actor: Identity) -> Patch:
    """
    Manual payment verification. Returns an empty patch when the delivery is
    already Paid (Paid is never reversed).
    """
    _require_staff(actor, "verify payments")

    if delivery.payment_status == PaymentStatus.PAID:
        return {}
    return {"paymentStatus": PaymentStatus.PAID.value}


def allowed_transitions(delivery: Delivery, actor: Optional[Identity]) -> List[DeliveryStatus]:
    """
    The statuses the control surface may offer to `actor` for this delivery.
    Mirrors the checks above so the UI never offers an illegal option.
    """
    if actor is None or delivery.is_archived:
        return []

    if actor.is_staff:
        options = [DeliveryStatus.FAILED]
        if delivery.canonical_status == DeliveryStatus.PENDING:
            options.insert(0, DeliveryStatus.ASSIGNED)
        return options

    if actor.role == Role.RIDER and delivery.rider is not None and delivery.rider.id == actor.id:
        upcoming = next_rider_status(delivery)
        return [upcoming] if upcoming else []

    return []
