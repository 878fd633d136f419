import pytest

from accounts.models import Identity
from deliveries.models import Delivery, DeliveryStatus
from projection import dashboard_counters, message_query_for, partition, project, visible_deliveries, visible_users
from store import DELIVERIES, MESSAGES, Query


@pytest.fixture
def deliveries(seeded_store):
    return [Delivery.from_document(d) for d in seeded_store.fetch(Query.all(DELIVERIES))]


def ids(deliveries):
    return sorted(d.id for d in deliveries)


def test_staff_see_everything(deliveries, admin, super_admin):
    assert ids(visible_deliveries(deliveries, admin)) == ["del-101", "del-102", "del-103", "del-104"]
    assert ids(visible_deliveries(deliveries, super_admin)) == ids(deliveries)


def test_customer_sees_deliveries_by_phone(deliveries, customer):
    assert customer.phone == "08012345674"
    assert ids(visible_deliveries(deliveries, customer)) == ["del-104"]


def test_rider_sees_assigned_deliveries(deliveries, rider):
    assert ids(visible_deliveries(deliveries, rider)) == ["del-101", "del-104"]


def test_vendor_sees_own_orders(deliveries, vendor):
    assert ids(visible_deliveries(deliveries, vendor)) == ["del-101", "del-104"]


def test_guest_sees_nothing(deliveries):
    assert visible_deliveries(deliveries, None) == []


def test_every_delivery_lands_in_exactly_one_partition(deliveries):
    extra = [
        Delivery.from_document({"id": f"x-{status.name}", "status": status.value, "customer": {}})
        for status in DeliveryStatus
    ]
    everything = deliveries + extra
    live, archive = partition(everything)

    assert len(live) + len(archive) == len(everything)
    assert not set(ids(live)) & set(ids(archive))
    assert "x-COMPLETED" in ids(archive)
    assert "x-IN_PROGRESS" in ids(live)


def test_project_splits_the_visible_set(deliveries, rider):
    live, archive = project(deliveries, rider)
    assert ids(live) == ["del-101", "del-104"]
    assert archive == []


def test_dashboard_counters(deliveries):
    counters = dashboard_counters(deliveries)
    assert (counters.total, counters.active, counters.delivered, counters.failed) == (4, 3, 1, 0)


def test_user_directory_visibility(seeded_store, admin, customer):
    users = [Identity.from_document(d) for d in seeded_store.fetch(Query.all("users"))]

    assert len(visible_users(users, admin)) == len(users)
    assert [u.id for u in visible_users(users, customer)] == ["user-4"]
    assert visible_users(users, None) == []


def test_message_queries(admin, customer):
    assert message_query_for(admin) == Query.all(MESSAGES)
    assert message_query_for(customer) == Query.all(MESSAGES).where("threadId", "==", "user-4")
    assert message_query_for("guest-abc") == Query.all(MESSAGES).where("threadId", "==", "guest-abc")
