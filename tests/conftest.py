import pytest
from datetime import datetime, timedelta, timezone

from accounts.models import Identity
from config import Config
from store import DELIVERIES, USERS, InMemoryDocumentStore


class FakeClock:
    """Deterministic server clock; advance() moves it forward."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, minutes=0, seconds=0):
        self.now = self.now + timedelta(minutes=minutes, seconds=seconds)
        return self.now


SAMPLE_USERS = {
    "user-0": {"name": "CELSTIN TECH SUPPORT", "phone": "08012345670", "role": "Super Admin", "email": "support@celstin.com", "pin": "1234"},
    "user-1": {"name": "Admin Alice", "phone": "08012345671", "role": "Admin", "email": "alice@celstin.com", "pin": "0000"},
    "user-2": {
        "name": "Vendor Bob", "phone": "08012345672", "role": "Vendor", "email": "bob@vendor.com", "pin": "1111",
        "bankDetails": {"bankName": "GTBank", "accountNumber": "0123456789", "accountName": "Bob Vendor"},
        "commissionBalance": 0, "totalWithdrawn": 0, "commissionRate": 0.1,
    },
    "user-3": {
        "name": "Rider Charlie", "phone": "08012345673", "role": "Rider", "pin": "2222", "vehicle": "Motorcycle",
        "active": True, "location": {"lat": 6.2088, "lng": 6.7222}, "riderStatus": "Available",
    },
    "user-4": {"name": "David Customer", "phone": "08012345674", "role": "Customer", "email": "david@customer.com", "pin": "3333"},
    "user-5": {
        "name": "Rider Diana", "phone": "08012345675", "role": "Rider", "pin": "4444", "vehicle": "Van",
        "active": False, "location": {"lat": 6.1895, "lng": 6.7511},
    },
    "user-6": {
        "name": "Vendor Eve", "phone": "08012345676", "role": "Vendor", "email": "eve@vendor.com", "pin": "5555",
        "commissionBalance": 0, "totalWithdrawn": 0,
    },
}

CHARLIE_SNAPSHOT = {"id": "user-3", "name": "Rider Charlie", "phone": "08012345673"}

SAMPLE_DELIVERIES = {
    "del-101": {
        "customer": {"id": "cust-1", "name": "Grace Hopper", "phone": "09011223344"},
        "rider": CHARLIE_SNAPSHOT,
        "pickupAddress": "123 Cable Point, Asaba", "dropoffAddress": "456 Nnebisi Road, Asaba",
        "packageNotes": "Fragile electronics", "status": "In Transit", "paymentStatus": "Paid", "price": 2100,
        "vendorId": "user-2",
    },
    "del-102": {
        "customer": {"id": "cust-2", "name": "Ada Lovelace", "phone": "09022334455"},
        "pickupAddress": "789 Okpanam Road, Asaba", "dropoffAddress": "101 DLA Road, Asaba",
        "packageNotes": "Important documents", "status": "Delivered", "paymentStatus": "Paid", "price": 1800,
        "vendorId": "user-6",
    },
    "del-103": {
        "customer": {"id": "cust-3", "name": "Margaret Hamilton", "phone": "09033445566"},
        "pickupAddress": "222 Summit Road, Asaba", "dropoffAddress": "333 Dennis Osadebay Way, Asaba",
        "packageNotes": "Box of clothes", "status": "Pending", "paymentStatus": "Unpaid", "price": 1650,
    },
    "del-104": {
        "customer": {"id": "cust-4", "name": "David Customer", "phone": "08012345674"},
        "rider": CHARLIE_SNAPSHOT,
        "pickupAddress": "555 DBS Road, Asaba", "dropoffAddress": "666 Mariam Babangida Way, Asaba",
        "packageNotes": "Food items", "status": "Assigned", "paymentStatus": "Unpaid", "price": 1950,
        "vendorId": "user-2", "estimatedMinutes": 25,
    },
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def config(tmp_path):
    return Config(guest_id_path=str(tmp_path / "guest.json"))


@pytest.fixture
def seeded_store(store):
    with store.batch():
        for user_id, fields in SAMPLE_USERS.items():
            store.set(USERS, user_id, fields)
        for delivery_id, fields in SAMPLE_DELIVERIES.items():
            store.set(DELIVERIES, delivery_id, fields)
    return store


def _identity(store, user_id):
    return Identity.from_document(store.get(USERS, user_id))


@pytest.fixture
def super_admin(seeded_store):
    return _identity(seeded_store, "user-0")


@pytest.fixture
def admin(seeded_store):
    return _identity(seeded_store, "user-1")


@pytest.fixture
def vendor(seeded_store):
    return _identity(seeded_store, "user-2")


@pytest.fixture
def rider(seeded_store):
    return _identity(seeded_store, "user-3")


@pytest.fixture
def customer(seeded_store):
    return _identity(seeded_store, "user-4")
