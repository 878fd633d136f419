"""
Purpose: Identity models for every principal in the network.
What it does:
- Role = Super Admin | Admin | Vendor | Rider | Customer
- RiderStatus = Available | On Delivery | Offline
- Identity: one record of the `users` collection, with the role-specific
  attributes (vendor commission fields, rider vehicle/location/status)

Documents use the store's camelCase field names; Identity converts both ways.

Rule: Models only. No store calls, no validation rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    SUPER_ADMIN = "Super Admin"
    ADMIN = "Admin"
    VENDOR = "Vendor"
    RIDER = "Rider"
    CUSTOMER = "Customer"


STAFF_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN})


class RiderStatus(str, Enum):
    AVAILABLE = "Available"
    ON_DELIVERY = "On Delivery"
    OFFLINE = "Offline"


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> Optional[Location]:
        if not data or data.get("lat") is None or data.get("lng") is None:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))

    def to_document(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Identity:
    """
    A principal as last seen in the `users` collection.

    `active = False` means the enrollment still awaits approval. A document
    without the flag is treated as active.
    """
    id: str
    name: str
    phone: str
    role: Role
    email: Optional[str] = None
    pin: Optional[str] = None
    active: bool = True
    profile_picture: Optional[str] = None
    bank_details: Optional[Dict[str, str]] = None

    # Vendor
    commission_balance: float = 0.0
    total_withdrawn: float = 0.0
    commission_rate: Optional[float] = None

    # Rider
    vehicle: Optional[str] = None
    location: Optional[Location] = None
    rider_status: Optional[RiderStatus] = None

    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> Identity:
        rider_status = data.get("riderStatus")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            role=Role(data.get("role", Role.CUSTOMER.value)),
            email=data.get("email"),
            pin=data.get("pin"),
            active=data.get("active") is not False,
            profile_picture=data.get("profilePicture"),
            bank_details=data.get("bankDetails"),
            commission_balance=float(data.get("commissionBalance") or 0),
            total_withdrawn=float(data.get("totalWithdrawn") or 0),
            commission_rate=data.get("commissionRate"),
            vehicle=data.get("vehicle"),
            location=Location.from_document(data.get("location")),
            rider_status=RiderStatus(rider_status) if rider_status else None,
            extra={key: value for key, value in data.items() if key in ("createdAt", "updatedAt")},
        )

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "name": self.name,
            "phone": self.phone,
            "role": self.role.value,
            "active": self.active,
        }
        optional = {
            "email": self.email,
            "pin": self.pin,
            "profilePicture": self.profile_picture,
            "bankDetails": self.bank_details,
            "commissionRate": self.commission_rate,
            "vehicle": self.vehicle,
        }
        document.update({key: value for key, value in optional.items() if value is not None})

        if self.role == Role.VENDOR:
            document["commissionBalance"] = self.commission_balance
            document["totalWithdrawn"] = self.total_withdrawn
        if self.location is not None:
            document["location"] = self.location.to_document()
        if self.rider_status is not None:
            document["riderStatus"] = self.rider_status.value
        return document
