"""
Purpose: The settings/global singleton.
What it does:
SystemSettings is edited elsewhere and consumed here read-only (pricing,
commission, branding, sound choices). Loading falls back to defaults for
any missing key; saving overwrites the whole document.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

from accounts.models import Identity
from accounts.validation import ValidationFailed, require_staff
from store import SETTINGS, DocumentStore, Query, document_id_query

SETTINGS_DOC_ID = "global"


@dataclass(frozen=True)
class SystemSettings:
    # --- Branding ---
    business_name: str = "CLESTIN LOGISTICS"
    business_address: str = "123 Logistics Way, Asaba, Delta State"
    hero_title: str = "Fast, Reliable Delivery Across Asaba"
    hero_subtext: str = "Book a dispatch rider in seconds and track your package live."
    logo_url: str = ""
    primary_color: str = "indigo"
    footer_text: str = "© 2024 CLESTIN LOGISTICS. Premium Delivery Intelligence."
    theme: str = "dark"

    # --- Payment account shown to customers ---
    payment_account_name: str = "Celstine Logistics"
    payment_account_number: str = "9022786275"
    payment_bank: str = "Moniepoint MFB"

    # --- Pricing / commission ---
    standard_commission_rate: float = 0.1
    price_per_km: float = 150
    minimum_base_price: float = 1500

    # --- Sound choices ---
    login_sound: str = "chime"
    new_order_sound: str = "bell"
    status_change_sound: str = "pop"
    payment_sound: str = "cash"

    def validate(self) -> None:
        if self.price_per_km < 0:
            raise ValidationFailed("Price per km must be >= 0", field="pricePerKm")
        if self.minimum_base_price < 0:
            raise ValidationFailed("Minimum base price must be >= 0", field="minimumBasePrice")
        if not 0 <= self.standard_commission_rate <= 1:
            raise ValidationFailed("Standard commission rate must be between 0 and 1", field="standardCommissionRate")
        if self.theme not in ("light", "dark"):
            raise ValidationFailed("Theme must be light or dark", field="theme")

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> SystemSettings:
        data = data or {}
        values = {f.name: data[_camel(f.name)] for f in fields(cls) if data.get(_camel(f.name)) is not None}
        return replace(cls(), **values)

    def to_document(self) -> Dict[str, Any]:
        return {_camel(key): value for key, value in asdict(self).items()}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def settings_query() -> Query:
    return document_id_query(SETTINGS, SETTINGS_DOC_ID)


def load_settings(store: DocumentStore) -> SystemSettings:
    return SystemSettings.from_document(store.get(SETTINGS, SETTINGS_DOC_ID))


def save_settings(store: DocumentStore, actor: Identity, settings: SystemSettings) -> None:
    require_staff(actor, "change system settings")
    settings.validate()
    store.set(SETTINGS, SETTINGS_DOC_ID, settings.to_document())
