"""
Purpose: Central configuration for delivery pricing and time estimates.
What it does:

Stores all tunable pricing parameters:

PRICE_PER_KM = 150
MINIMUM_BASE_PRICE = 1500
MODE_MULTIPLIERS = Bike 2.5 | Truck 4 | Public Transport 6 (minutes per km)

price_per_km and minimum_base_price are normally taken from the
settings/global document; mode multipliers are fixed.

Rule: No logic here—just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .models import TransportMode


@dataclass(frozen=True)
class PricingPolicy:
    """
    Central configuration for quoting a delivery.
    """

    # --- Price ---
    price_per_km: float = 150
    # Floor applied after the per-km price.
    minimum_base_price: float = 1500

    # --- Time estimate ---
    # Minutes per estimated km for each transport mode.
    mode_multipliers: Dict[TransportMode, float] = field(
        default_factory=lambda: {
            TransportMode.BIKE: 2.5,
            TransportMode.TRUCK: 4,
            TransportMode.PUBLIC_TRANSPORT: 6,
        }
    )
    default_mode: TransportMode = TransportMode.BIKE

    # --- Placeholder distance estimate ---
    # km = base_km + (len(origin) + len(destination)) mod spread_km
    placeholder_base_km: int = 5
    placeholder_spread_km: int = 15

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.price_per_km < 0:
            raise ValueError("price_per_km must be >= 0")

        if self.minimum_base_price < 0:
            raise ValueError("minimum_base_price must be >= 0")

        missing = [mode.value for mode in TransportMode if mode not in self.mode_multipliers]
        if missing:
            raise ValueError(f"Missing mode multipliers for: {', '.join(missing)}")

        if self.placeholder_spread_km <= 0:
            raise ValueError("placeholder_spread_km must be > 0")

    @classmethod
    def from_settings(cls, settings) -> PricingPolicy:
        """
        Build a policy from a SystemSettings-like object (anything with
        price_per_km / minimum_base_price attributes).
        """
        policy = cls(
            price_per_km=float(settings.price_per_km),
            minimum_base_price=float(settings.minimum_base_price),
        )
        policy.validate()
        return policy


def default_pricing_policy() -> PricingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = PricingPolicy()
    p.validate()
    return p
