"""
Purpose: Input validation for identity and order entry.
What it does:
ValidationFailed is recovered at the point of input (inline message, no
mutation attempted). Every check here runs before any store write.
"""

import re

import phonenumbers

PIN_PATTERN = re.compile(r"^\d{4}$")


class ValidationFailed(Exception):
    """Raised when user input is rejected before any write is attempted."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class AuthenticationFailed(ValidationFailed):
    """Unknown principal or wrong PIN."""
    pass


class ApprovalPending(ValidationFailed):
    """The enrollment exists but an admin has not approved it yet."""
    pass


def validate_pin(pin: str) -> str:
    if pin is None or not PIN_PATTERN.match(pin):
        raise ValidationFailed("PIN must be exactly 4 digits", field="pin")
    return pin


def validate_phone(phone: str, region: str = "NG") -> str:
    """
    Accept any number that is *possible* for the region (length/prefix check),
    and return it trimmed. Stored as typed so phone matching stays exact.
    """
    phone = (phone or "").strip()
    if not phone:
        raise ValidationFailed("Phone number is required", field="phone")
    try:
        parsed = phonenumbers.parse(phone, region)
    except phonenumbers.NumberParseException as exc:
        raise ValidationFailed(f"Phone number {phone!r} could not be parsed: {exc}", field="phone") from exc
    if not phonenumbers.is_possible_number(parsed):
        raise ValidationFailed(f"Phone number {phone!r} is not a possible {region} number", field="phone")
    return phone


def require_text(value: str, field: str, label: str = None) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailed(f"{label or field} is required", field=field)
    return value


class PermissionDenied(ValidationFailed):
    """The acting identity's role does not allow this action."""
    pass


def require_staff(actor, action: str) -> None:
    if actor is None or not actor.is_staff:
        raise PermissionDenied(f"Only Admin or Super Admin may {action}", field="role")
