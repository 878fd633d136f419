"""
Deliveries domain package.

Public API:
- Domain models: Delivery, DeliveryStatus, PaymentStatus, TransportMode, CustomerInfo, RiderSnapshot
- Pricing: PricingPolicy, quote, preview_price, PlaceholderDistanceEstimator
- State machine exceptions
- DeliveryService
"""
from .models import (
    GUEST_VENDOR_ID,
    CustomerInfo,
    Delivery,
    DeliveryStatus,
    PaymentStatus,
    RiderSnapshot,
    TransportMode,
)
from .policy import PricingPolicy, default_pricing_policy
from .pricing import PlaceholderDistanceEstimator, Quote, preview_price, quote
from .service import DeliveryService
from .state_machine import DeliveryStateException, TransitionNotPermitted, allowed_transitions

__all__ = [
    "GUEST_VENDOR_ID",
    "CustomerInfo",
    "Delivery",
    "DeliveryStatus",
    "PaymentStatus",
    "RiderSnapshot",
    "TransportMode",
    "PricingPolicy",
    "default_pricing_policy",
    "PlaceholderDistanceEstimator",
    "Quote",
    "preview_price",
    "quote",
    "DeliveryService",
    "DeliveryStateException",
    "TransitionNotPermitted",
    "allowed_transitions",
]
