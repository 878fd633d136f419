import pytest

from deliveries import GUEST_VENDOR_ID, DeliveryService, DeliveryStatus, PaymentStatus, TransportMode
from deliveries import state_machine
from deliveries.state_machine import DeliveryStateException
from accounts.validation import ValidationFailed
from store import DELIVERIES, USERS, NotFound, Query


def test_guest_order_is_pending_unpaid_and_priced(seeded_store, clock):
    service = DeliveryService(seeded_store)
    delivery = service.create(None, "Grace Hopper", "09011223344", "123 Cable Point, Asaba", "456 Nnebisi Road, Asaba")

    assert delivery.status == DeliveryStatus.PENDING
    assert delivery.payment_status == PaymentStatus.UNPAID
    assert delivery.vendor_id == GUEST_VENDOR_ID
    assert delivery.price == 1500
    assert delivery.package_notes == "General Package"
    assert delivery.transport_mode == TransportMode.BIKE
    assert delivery.created_at == clock.now
    assert delivery.customer.id.startswith("cust-")


def test_vendor_order_carries_vendor_id(seeded_store, vendor):
    service = DeliveryService(seeded_store)
    delivery = service.create(vendor, "Ada", "09022334455", "a", "b", "Docs", mode=TransportMode.TRUCK)

    assert delivery.vendor_id == vendor.id
    assert delivery.transport_mode == TransportMode.TRUCK


def test_blank_fields_are_rejected_without_a_write(seeded_store):
    service = DeliveryService(seeded_store)
    before = len(seeded_store.fetch(Query.all(DELIVERIES)))

    with pytest.raises(ValidationFailed) as exc_info:
        service.create(None, "Grace", "0901", "  ", "b")
    assert exc_info.value.field == "pickupAddress"
    assert len(seeded_store.fetch(Query.all(DELIVERIES))) == before


def test_admin_assigns_charlie_and_snapshot_does_not_follow_later_changes(seeded_store, admin):
    service = DeliveryService(seeded_store)

    delivery = service.assign("del-103", admin, "user-3")
    assert delivery.status == DeliveryStatus.ASSIGNED
    assert (delivery.rider.id, delivery.rider.name, delivery.rider.phone) == ("user-3", "Rider Charlie", "08012345673")

    seeded_store.update(USERS, "user-3", {"phone": "08099999999"})
    assert service.get("del-103").rider.phone == "08012345673"


def test_assigning_missing_rider_raises_not_found(seeded_store, admin):
    with pytest.raises(NotFound):
        DeliveryService(seeded_store).assign("del-103", admin, "user-404")


def test_rider_walks_the_track_and_delivery_triggers_callback(seeded_store, rider, clock):
    delivered = []
    service = DeliveryService(seeded_store, on_delivered=delivered.append)

    service.advance("del-104", rider, DeliveryStatus.PICKED_UP)
    service.advance("del-104", rider, DeliveryStatus.IN_TRANSIT)
    clock.advance(minutes=20)
    final = service.advance("del-104", rider, DeliveryStatus.DELIVERED)

    assert final.status == DeliveryStatus.DELIVERED
    assert final.delivered_at == clock.now
    assert [d.id for d in delivered] == ["del-104"]


def test_racing_transition_is_rejected(seeded_store, admin):
    service = DeliveryService(seeded_store)
    stale = service.get("del-103")

    service.assign("del-103", admin, "user-3")

    patch = state_machine.mark_failed(stale, admin)
    with pytest.raises(DeliveryStateException):
        service._apply(stale, patch)
    assert service.get("del-103").status == DeliveryStatus.ASSIGNED


def test_verify_payment_once(seeded_store, admin):
    service = DeliveryService(seeded_store)
    assert service.verify_payment("del-103", admin).payment_status == PaymentStatus.PAID
    assert service.verify_payment("del-103", admin).payment_status == PaymentStatus.PAID


def test_track_follows_a_single_delivery(seeded_store, admin):
    service = DeliveryService(seeded_store)
    seen = []
    subscription = service.track("del-103", seen.append)

    service.assign("del-103", admin, "user-3")
    service.verify_payment("del-104", admin)
    subscription.unsubscribe()
    service.fail("del-103", admin)

    assert [d.status for d in seen] == [DeliveryStatus.PENDING, DeliveryStatus.ASSIGNED]


def test_unknown_delivery(seeded_store):
    with pytest.raises(NotFound):
        DeliveryService(seeded_store).get("del-999")
