"""
Purpose: Domain models for the Deliveries capability.
What it does:
- Defines core data structures:
- Delivery (customer info, rider snapshot, vendor, addresses, status, payment, price, ETA)
- CustomerInfo (immutable after creation)
- RiderSnapshot (copy of the rider at assignment time, never live-synced)

Defines enums/constants:
- DeliveryStatus = Pending | Assigned | Picked Up | In Transit | Delivered | Failed
  plus the legacy aliases In Progress (= In Transit) and Completed (= Delivered)
- PaymentStatus = Unpaid | Paid
- TransportMode = Bike | Truck | Public Transport

Rule: No store calls, no transition logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class DeliveryStatus(str, Enum):
    PENDING = "Pending"
    ASSIGNED = "Assigned"
    PICKED_UP = "Picked Up"
    IN_PROGRESS = "In Progress"  # legacy alias of IN_TRANSIT
    IN_TRANSIT = "In Transit"
    COMPLETED = "Completed"  # legacy alias of DELIVERED
    DELIVERED = "Delivered"
    FAILED = "Failed"

    @property
    def canonical(self) -> DeliveryStatus:
        return STATUS_ALIASES.get(self, self)

    @property
    def is_terminal(self) -> bool:
        return self.canonical in TERMINAL_STATUSES


STATUS_ALIASES = {
    DeliveryStatus.IN_PROGRESS: DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.COMPLETED: DeliveryStatus.DELIVERED,
}

TERMINAL_STATUSES = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.FAILED})

# the rider's forward-only track; each status may only move to the next one
RIDER_TRACK = (
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
)


class PaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


class TransportMode(str, Enum):
    BIKE = "Bike"
    TRUCK = "Truck"
    PUBLIC_TRANSPORT = "Public Transport"


GUEST_VENDOR_ID = "guest-dispatch"


@dataclass(frozen=True)
class CustomerInfo:
    id: str
    name: str
    phone: str

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> CustomerInfo:
        return cls(id=data.get("id", ""), name=data.get("name", ""), phone=data.get("phone", ""))

    def to_document(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "phone": self.phone}


@dataclass(frozen=True)
class RiderSnapshot:
    """
    Copy of a rider's identity fields taken when the delivery was assigned.
    It is NOT a live reference: later profile edits do not reach it.
    """
    id: str
    name: str
    phone: str
    picture: Optional[str] = None

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> Optional[RiderSnapshot]:
        if not data or not data.get("id"):
            return None
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            picture=data.get("picture", data.get("profilePicture")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "phone": self.phone, "picture": self.picture}


@dataclass(frozen=True)
class Delivery:
    """
    One shipment order as last seen in the `deliveries` collection.
    price / estimated_minutes are frozen at creation and never recomputed.
    """
    id: str
    customer: CustomerInfo
    pickup_address: str
    dropoff_address: str
    status: DeliveryStatus = DeliveryStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    price: float = 0.0
    estimated_minutes: Optional[int] = None
    package_notes: str = ""
    rider: Optional[RiderSnapshot] = None
    vendor_id: Optional[str] = None
    transport_mode: Optional[TransportMode] = None

    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    @property
    def canonical_status(self) -> DeliveryStatus:
        return self.status.canonical

    @property
    def is_archived(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> Delivery:
        mode = data.get("transportMode")
        return cls(
            id=data["id"],
            customer=CustomerInfo.from_document(data.get("customer") or {}),
            pickup_address=data.get("pickupAddress", ""),
            dropoff_address=data.get("dropoffAddress", ""),
            status=DeliveryStatus(data.get("status", DeliveryStatus.PENDING.value)),
            payment_status=PaymentStatus(data.get("paymentStatus", PaymentStatus.UNPAID.value)),
            price=float(data.get("price") or 0),
            estimated_minutes=data.get("estimatedMinutes"),
            package_notes=data.get("packageNotes", ""),
            rider=RiderSnapshot.from_document(data.get("rider")),
            vendor_id=data.get("vendorId"),
            transport_mode=TransportMode(mode) if mode else None,
            created_at=data.get("createdAt"),
            delivered_at=data.get("deliveredAt"),
        )

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "customer": self.customer.to_document(),
            "pickupAddress": self.pickup_address,
            "dropoffAddress": self.dropoff_address,
            "packageNotes": self.package_notes,
            "status": self.status.value,
            "paymentStatus": self.payment_status.value,
            "price": self.price,
            "estimatedMinutes": self.estimated_minutes,
        }
        if self.rider is not None:
            document["rider"] = self.rider.to_document()
        if self.vendor_id is not None:
            document["vendorId"] = self.vendor_id
        if self.transport_mode is not None:
            document["transportMode"] = self.transport_mode.value
        if self.created_at is not None:
            document["createdAt"] = self.created_at
        if self.delivered_at is not None:
            document["deliveredAt"] = self.delivered_at
        return document
