"""
Purpose: Issues delivery mutations through the document store.
What it does:
- create(): validate the order form, quote it, write a Pending/Unpaid delivery
- assign() / advance() / fail() / verify_payment(): run the state machine,
  then write the patch guarded by a compare-and-swap on the prior status
- track(): live single-delivery subscription for the customer receipt view

Transition legality lives in state_machine.py; this module only loads the
current documents, applies patches and reports failures.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from accounts.models import Identity, Role
from accounts.validation import require_text
from store import (
    DELIVERIES,
    SERVER_TIMESTAMP,
    USERS,
    ConditionFailed,
    DocumentStore,
    NotFound,
    Subscription,
    document_id_query,
)

from . import state_machine
from .models import GUEST_VENDOR_ID, CustomerInfo, Delivery, DeliveryStatus, PaymentStatus, TransportMode
from .policy import PricingPolicy, default_pricing_policy
from .pricing import DistanceEstimator, quote

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_NOTES = "General Package"


class DeliveryService:
    """
    Validates and issues delivery mutations. `on_delivered` is called with the
    updated Delivery once a rider completes it (used for commission accrual).
    """

    def __init__(
        self,
        store: DocumentStore,
        policy_provider: Callable[[], PricingPolicy] = default_pricing_policy,
        estimator: Optional[DistanceEstimator] = None,
        on_delivered: Optional[Callable[[Delivery], None]] = None,
    ):
        self.store = store
        self.policy_provider = policy_provider
        self.estimator = estimator
        self.on_delivered = on_delivered

    # --- Creation ---

    def create(
        self,
        actor: Optional[Identity],
        customer_name: str,
        customer_phone: str,
        pickup_address: str,
        dropoff_address: str,
        package_notes: str = "",
        mode: TransportMode = None,
    ) -> Delivery:
        """
        Customer/Vendor/Staff order entry. `actor=None` is the public guest form.
        Price and minutes are frozen into the document here.
        """
        customer = CustomerInfo(
            id=f"cust-{int(time.time() * 1000)}",
            name=require_text(customer_name, "customerName", "Customer name"),
            phone=require_text(customer_phone, "customerPhone", "Customer phone"),
        )
        pickup_address = require_text(pickup_address, "pickupAddress", "Pickup address")
        dropoff_address = require_text(dropoff_address, "dropoffAddress", "Dropoff address")

        priced = quote(pickup_address, dropoff_address, mode, policy=self.policy_provider(), estimator=self.estimator)

        if actor is None:
            vendor_id = GUEST_VENDOR_ID
        elif actor.role == Role.VENDOR:
            vendor_id = actor.id
        else:
            vendor_id = None

        delivery = Delivery(
            id="",
            customer=customer,
            pickup_address=pickup_address,
            dropoff_address=dropoff_address,
            package_notes=(package_notes or "").strip() or DEFAULT_PACKAGE_NOTES,
            status=DeliveryStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            price=priced.price,
            estimated_minutes=priced.estimated_minutes,
            vendor_id=vendor_id,
            transport_mode=priced.transport_mode,
        )
        document = delivery.to_document()
        document["createdAt"] = SERVER_TIMESTAMP

        delivery_id = self.store.create(DELIVERIES, document)
        logger.info(f"Delivery {delivery_id} created at {priced.price} ({priced.estimated_km} km, {priced.estimated_minutes} min)")
        return self.get(delivery_id)

    # --- Transitions ---

    def assign(self, delivery_id: str, actor: Identity, rider_id: str) -> Delivery:
        delivery = self.get(delivery_id)
        rider_document = self.store.get(USERS, rider_id)
        if rider_document is None:
            raise NotFound(f"Rider {rider_id} no longer exists", USERS, rider_id)

        patch = self._check(state_machine.assign_rider, delivery, actor, Identity.from_document(rider_document))
        return self._apply(delivery, patch)

    def advance(self, delivery_id: str, actor: Identity, new_status: DeliveryStatus) -> Delivery:
        delivery = self.get(delivery_id)
        patch = self._check(state_machine.advance_status, delivery, actor, new_status)
        updated = self._apply(delivery, patch)

        if updated.canonical_status == DeliveryStatus.DELIVERED and self.on_delivered:
            self.on_delivered(updated)
        return updated

    def fail(self, delivery_id: str, actor: Identity) -> Delivery:
        delivery = self.get(delivery_id)
        return self._apply(delivery, self._check(state_machine.mark_failed, delivery, actor))

    def verify_payment(self, delivery_id: str, actor: Identity) -> Delivery:
        delivery = self.get(delivery_id)
        patch = self._check(state_machine.verify_payment, delivery, actor)
        if not patch:
            return delivery
        self.store.update(DELIVERIES, delivery.id, patch)
        logger.info(f"Payment verified for delivery {delivery.id} by {actor.id}")
        return self.get(delivery.id)

    # --- Reads ---

    def get(self, delivery_id: str) -> Delivery:
        document = self.store.get(DELIVERIES, delivery_id)
        if document is None:
            raise NotFound(f"Delivery {delivery_id} does not exist", DELIVERIES, delivery_id)
        return Delivery.from_document(document)

    def track(
        self,
        delivery_id: str,
        on_change: Callable[[Optional[Delivery]], None],
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> Subscription:
        """Live view of a single delivery (None while it is not visible)."""

        def _on_documents(documents):
            on_change(Delivery.from_document(documents[0]) if documents else None)

        return self.store.subscribe(document_id_query(DELIVERIES, delivery_id), _on_documents, on_error)

    # --- Internal helpers ---

    def _check(self, rule, delivery: Delivery, actor: Identity, *args) -> dict:
        try:
            return rule(delivery, actor, *args)
        except state_machine.DeliveryStateException as exc:
            logger.warning(f"Rejected {rule.__name__} on delivery {delivery.id} by {getattr(actor, 'id', None)}: {exc}")
            raise

    def _apply(self, delivery: Delivery, patch: dict) -> Delivery:
        try:
            self.store.update_if(DELIVERIES, delivery.id, {"status": delivery.status.value}, patch)
        except ConditionFailed as exc:
            logger.warning(f"Delivery {delivery.id} changed underneath transition to {patch.get('status')}: {exc}")
            raise state_machine.DeliveryStateException(
                f"Delivery {delivery.id} was updated by someone else; reload and retry"
            ) from exc

        logger.info(f"Delivery {delivery.id}: {delivery.status.value} -> {patch.get('status')}")
        return self.get(delivery.id)
