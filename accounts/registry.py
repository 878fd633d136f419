"""
Purpose: Enrollment, approval and authentication against the `users` collection.
What it does:
- register(): validates input, writes a pending profile (the configured
  super-admin email is approved immediately as Super Admin)
- authenticate(): phone-or-email + PIN, refusing pending enrollments
- staff actions: approve / reject / remove / change role / rotate PIN /
  set a vendor's commission rate

The registry never caches users itself; `directory` returns the current
users snapshot kept by the application state.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from config import Config, load_config
from store import USERS, DocumentStore, NotFound

from .models import Identity, Role, RiderStatus
from .validation import (
    ApprovalPending,
    AuthenticationFailed,
    PermissionDenied,
    ValidationFailed,
    require_staff,
    require_text,
    validate_phone,
    validate_pin,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_RATE = 0.1
MAX_COMMISSION_RATE = 0.5


class AccountRegistry:
    def __init__(self, store: DocumentStore, directory: Callable[[], List[Identity]], config: Optional[Config] = None):
        self.store = store
        self.directory = directory
        self.config = config or load_config()

    # --- Enrollment ---

    def register(
        self,
        name: str,
        phone: str,
        pin: str,
        role: Role = Role.CUSTOMER,
        email: Optional[str] = None,
        vehicle: Optional[str] = None,
    ) -> Identity:
        name = require_text(name, "name", "Display name")
        phone = validate_phone(phone, self.config.phone_region)
        validate_pin(pin)
        email = email.strip().lower() if email and email.strip() else None

        lowered = name.lower()
        if any(user.name.strip().lower() == lowered for user in self.directory()):
            raise ValidationFailed(f"Display name {name!r} is already taken", field="name")

        is_super_admin = email is not None and email == self.config.super_admin_email
        role = Role.SUPER_ADMIN if is_super_admin else Role(role)

        profile = Identity(
            id="",
            name=name,
            phone=phone,
            role=role,
            email=email,
            pin=pin,
            active=is_super_admin,
            commission_rate=DEFAULT_COMMISSION_RATE if role == Role.VENDOR else None,
            vehicle=vehicle if role == Role.RIDER else None,
            rider_status=RiderStatus.OFFLINE if role == Role.RIDER else None,
        )
        user_id = self.store.create(USERS, profile.to_document())
        logger.info(f"Enrollment {user_id} logged as {role.value} (active={is_super_admin})")

        return Identity.from_document({**profile.to_document(), "id": user_id})

    def authenticate(self, login: str, pin: str) -> Identity:
        login = (login or "").strip()
        lowered = login.lower()
        for user in self.directory():
            if user.phone == login or (user.email and user.email.lower() == lowered):
                if user.pin != pin:
                    continue
                if not user.active:
                    raise ApprovalPending("Enrollment is still awaiting Super Admin verification", field="login")
                return user
        raise AuthenticationFailed("Invalid phone/email or PIN", field="login")

    # --- Staff actions ---

    def approve(self, actor: Identity, user_id: str) -> None:
        require_staff(actor, "approve enrollments")
        self.store.update(USERS, user_id, {"active": True})
        logger.info(f"{actor.id} approved {user_id}")

    def reject(self, actor: Identity, user_id: str) -> None:
        """Discard a pending enrollment. Approved accounts go through remove_user()."""
        require_staff(actor, "reject enrollments")
        user = self._get(user_id)
        if user.active:
            raise ValidationFailed("Only pending enrollments can be rejected", field="active")
        self.store.delete(USERS, user_id)
        logger.info(f"{actor.id} rejected enrollment {user_id}")

    def remove_user(self, actor: Identity, user_id: str) -> None:
        require_staff(actor, "remove users")
        if user_id == actor.id:
            raise PermissionDenied("Staff cannot remove their own account", field="id")
        self.store.delete(USERS, user_id)
        logger.info(f"{actor.id} removed user {user_id}")

    def change_role(self, actor: Identity, user_id: str, role: Role) -> None:
        require_staff(actor, "change roles")
        role = Role(role)
        target = self._get(user_id)
        if Role.SUPER_ADMIN in (role, target.role) and not actor.is_super_admin:
            raise PermissionDenied("Only a Super Admin may grant or revoke Super Admin", field="role")
        self.store.update(USERS, user_id, {"role": role.value})

    def rotate_pin(self, actor: Identity, user_id: str, pin: str) -> None:
        require_staff(actor, "rotate PINs")
        validate_pin(pin)
        self.store.update(USERS, user_id, {"pin": pin})

    def set_commission_rate(self, actor: Identity, user_id: str, percent: float) -> float:
        """
        Set a vendor's commission from a percentage, clamped to [0, 50]%.
        Returns the stored fractional rate.
        """
        require_staff(actor, "set commission rates")
        target = self._get(user_id)
        if target.role != Role.VENDOR:
            raise ValidationFailed("Commission rates apply to vendors only", field="role")

        rate = min(max(float(percent) / 100, 0.0), MAX_COMMISSION_RATE)
        self.store.update(USERS, user_id, {"commissionRate": rate})
        return rate

    def _get(self, user_id: str) -> Identity:
        document = self.store.get(USERS, user_id)
        if document is None:
            raise NotFound(f"User {user_id} no longer exists", USERS, user_id)
        return Identity.from_document(document)
