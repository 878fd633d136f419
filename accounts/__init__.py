"""
Accounts domain package.

Public API:
- Identity, Role, RiderStatus, Location
- AccountRegistry (enrollment, approval, authentication)
- ValidationFailed and its subclasses
"""
from .models import STAFF_ROLES, Identity, Location, RiderStatus, Role
from .registry import AccountRegistry
from .validation import (
    ApprovalPending,
    AuthenticationFailed,
    PermissionDenied,
    ValidationFailed,
)

__all__ = [
    "STAFF_ROLES",
    "Identity",
    "Location",
    "RiderStatus",
    "Role",
    "AccountRegistry",
    "ApprovalPending",
    "AuthenticationFailed",
    "PermissionDenied",
    "ValidationFailed",
]
