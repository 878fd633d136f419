"""
Purpose: Vendor commission accrual and settlement.
What it does:
- accrue_for_delivery(): when a vendor's delivery completes, add
  price * commissionRate to commissionBalance (atomic increment)
- accrue_outstanding(): credit delivered vendor orders a failed accrual
  left behind
- settle(): move the whole balance into totalWithdrawn

Settlement is a compare-and-swap on the balance that was read:

    read b -> update_if(commissionBalance == b,
                        commissionBalance = 0, totalWithdrawn += b)

If another writer changed the balance in between, the guard fails and the
loop re-reads. Two concurrent settlements can therefore never both credit
the same balance: Δ totalWithdrawn == b and the balance ends at 0.

A zero balance is not settleable; settle() returns a no-op result without
writing, and can_settle() is the gate for the control surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from accounts.models import Identity, Role
from accounts.validation import ValidationFailed, require_staff
from config import Config, load_config
from deliveries.models import GUEST_VENDOR_ID, Delivery, DeliveryStatus
from store import DELIVERIES, USERS, ConditionFailed, DocumentStore, Increment, NotFound, Query

logger = logging.getLogger(__name__)

STANDARD_COMMISSION_RATE = 0.1


class SettlementConflict(Exception):
    """The balance kept changing underneath every settlement attempt."""

    def __init__(self, vendor_id: str, attempts: int):
        self.vendor_id = vendor_id
        self.attempts = attempts
        super().__init__(f"Vendor {vendor_id} balance changed during {attempts} settlement attempts")


@dataclass(frozen=True)
class SettlementResult:
    vendor_id: str
    amount: float
    total_withdrawn: float
    attempts: int = 1

    @property
    def settled(self) -> bool:
        return self.amount > 0


def can_settle(vendor: Optional[Identity]) -> bool:
    return vendor is not None and vendor.role == Role.VENDOR and vendor.commission_balance > 0


class SettlementReconciler:
    def __init__(
        self,
        store: DocumentStore,
        standard_rate: Callable[[], float] = lambda: STANDARD_COMMISSION_RATE,
        config: Optional[Config] = None,
    ):
        self.store = store
        self.standard_rate = standard_rate
        self.max_attempts = (config or load_config()).settlement_max_attempts

    # --- Settlement ---

    def settle(self, actor: Identity, vendor_id: str) -> SettlementResult:
        require_staff(actor, "settle vendor commission")

        for attempt in range(1, self.max_attempts + 1):
            vendor = self._vendor(vendor_id)
            balance = vendor.commission_balance
            if balance <= 0:
                logger.info(f"Vendor {vendor_id} has nothing to settle")
                return SettlementResult(vendor_id=vendor_id, amount=0.0, total_withdrawn=vendor.total_withdrawn, attempts=attempt)

            try:
                self.store.update_if(
                    USERS,
                    vendor_id,
                    {"commissionBalance": balance},
                    {"commissionBalance": 0, "totalWithdrawn": Increment(balance)},
                )
            except ConditionFailed as exc:
                logger.warning(f"Settlement attempt {attempt} for vendor {vendor_id} lost a race: {exc}")
                continue

            total = self._vendor(vendor_id).total_withdrawn
            logger.info(f"Settled {balance} for vendor {vendor_id} by {actor.id} (lifetime {total})")
            return SettlementResult(vendor_id=vendor_id, amount=balance, total_withdrawn=total, attempts=attempt)

        raise SettlementConflict(vendor_id, self.max_attempts)

    # --- Accrual ---

    def accrue_for_delivery(self, delivery: Delivery) -> float:
        """
        Credit the delivery's vendor. Guest and staff orders carry no vendor
        and accrue nothing. Returns the amount credited.

        The increment and the vendor's accruedDeliveryIds list are written
        in one conditional update, so a delivery is credited at most once and
        a failed attempt can simply be run again.
        """
        if not delivery.vendor_id or delivery.vendor_id == GUEST_VENDOR_ID:
            return 0.0

        for attempt in range(1, self.max_attempts + 1):
            document = self.store.get(USERS, delivery.vendor_id)
            if document is None or document.get("role") != Role.VENDOR.value:
                logger.warning(f"Delivery {delivery.id} references missing vendor {delivery.vendor_id}; no commission accrued")
                return 0.0

            credited = document.get("accruedDeliveryIds")
            if delivery.id in (credited or []):
                logger.debug(f"Delivery {delivery.id} already credited to vendor {delivery.vendor_id}")
                return 0.0

            rate = document.get("commissionRate")
            if rate is None:
                rate = self.standard_rate()
            amount = round(delivery.price * rate, 2)
            if amount <= 0:
                return 0.0

            try:
                self.store.update_if(
                    USERS,
                    delivery.vendor_id,
                    {"accruedDeliveryIds": credited},
                    {"commissionBalance": Increment(amount), "accruedDeliveryIds": list(credited or []) + [delivery.id]},
                )
            except ConditionFailed as exc:
                logger.warning(f"Accrual attempt {attempt} for delivery {delivery.id} lost a race: {exc}")
                continue

            logger.info(f"Accrued {amount} commission to vendor {delivery.vendor_id} for delivery {delivery.id}")
            return amount

        raise SettlementConflict(delivery.vendor_id, self.max_attempts)

    def accrue_outstanding(self) -> float:
        """Credit every delivered vendor order that has not been credited yet."""
        total = 0.0
        for document in self.store.fetch(Query.all(DELIVERIES)):
            delivery = Delivery.from_document(document)
            if delivery.canonical_status == DeliveryStatus.DELIVERED:
                total += self.accrue_for_delivery(delivery)
        if total:
            logger.info(f"Caught up {total} of outstanding commission")
        return round(total, 2)

    # --- Internal helpers ---

    def _vendor(self, vendor_id: str) -> Identity:
        document = self.store.get(USERS, vendor_id)
        if document is None:
            raise NotFound(f"Vendor {vendor_id} does not exist", USERS, vendor_id)
        vendor = Identity.from_document(document)
        if vendor.role != Role.VENDOR:
            raise ValidationFailed(f"{vendor.name} is not a vendor", field="role")
        return vendor
