"""
Purpose: Price and ETA quoting for a new delivery.
What it does:
- estimate distance between two free-text addresses (pluggable estimator)
- price = max(minimum_base_price, km * price_per_km)
- minutes = round(km * mode multiplier), halves rounded up

The default estimator is a deterministic placeholder, not a routing call:
a real geocoding/routing provider can be injected as any callable
(origin, destination) -> km without touching the price formula.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from .models import TransportMode
from .policy import PricingPolicy, default_pricing_policy

DistanceEstimator = Callable[[str, str], float]


@dataclass(frozen=True)
class Quote:
    estimated_km: float
    price: float
    estimated_minutes: int
    transport_mode: TransportMode


class PlaceholderDistanceEstimator:
    """
    Stand-in for a geocoding/routing call:
    km = base + (len(origin.strip()) + len(destination.strip())) mod spread
    """

    def __init__(self, base_km: int = 5, spread_km: int = 15):
        self.base_km = base_km
        self.spread_km = spread_km

    def __call__(self, origin: str, destination: str) -> float:
        seed = (len(origin.strip()) + len(destination.strip())) % self.spread_km
        return self.base_km + seed


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def quote(
    origin: str,
    destination: str,
    mode: TransportMode = None,
    policy: Optional[PricingPolicy] = None,
    estimator: Optional[DistanceEstimator] = None,
) -> Quote:
    policy = policy or default_pricing_policy()
    mode = TransportMode(mode) if mode else policy.default_mode
    estimator = estimator or PlaceholderDistanceEstimator(policy.placeholder_base_km, policy.placeholder_spread_km)

    estimated_km = estimator(origin, destination)
    price = max(policy.minimum_base_price, estimated_km * policy.price_per_km)
    minutes = _round_half_up(estimated_km * policy.mode_multipliers[mode])

    return Quote(estimated_km=estimated_km, price=price, estimated_minutes=minutes, transport_mode=mode)


def preview_price(origin: str, destination: str, policy: Optional[PricingPolicy] = None, estimator: Optional[DistanceEstimator] = None) -> float:
    """
    Live price shown while the form is being filled in. Until both addresses
    are present the minimum price is shown.
    """
    policy = policy or default_pricing_policy()
    if not (origin or "").strip() or not (destination or "").strip():
        return policy.minimum_base_price
    return quote(origin, destination, policy=policy, estimator=estimator).price
