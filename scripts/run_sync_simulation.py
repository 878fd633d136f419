import os
from datetime import datetime, timedelta, timezone

import pandas as pd

from accounts import AccountRegistry, Identity
from config import load_config
from deliveries import DeliveryStatus, TransportMode
from logconfig import configure_logging
from riders import FleetTelemetrySynchronizer
from settlement import can_settle, vendor_performance
from store import DELIVERIES, USERS, InMemoryDocumentStore, Query
from sync import ClientSession


class SimulationClock:
    def __init__(self):
        self.now = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def tick(self, minutes):
        self.now += timedelta(minutes=minutes)


class PrintingMarkerSink:
    def add_marker(self, marker):
        print(f"  [map] + {marker.name} at {marker.position}")

    def move_marker(self, marker):
        print(f"  [map] ~ {marker.name} -> {marker.position}")

    def remove_marker(self, rider_id):
        print(f"  [map] - {rider_id}")


SEED_USERS = {
    "user-0": {"name": "CELSTIN TECH SUPPORT", "phone": "08012345670", "role": "Super Admin", "email": "support@celstin.com", "pin": "1234"},
    "user-1": {"name": "Admin Alice", "phone": "08012345671", "role": "Admin", "email": "alice@celstin.com", "pin": "0000"},
    "user-2": {"name": "Vendor Bob", "phone": "08012345672", "role": "Vendor", "pin": "1111", "commissionBalance": 0, "totalWithdrawn": 0, "commissionRate": 0.1},
    "user-3": {"name": "Rider Charlie", "phone": "08012345673", "role": "Rider", "pin": "2222", "vehicle": "Motorcycle", "active": True,
               "location": {"lat": 6.2088, "lng": 6.7222}, "riderStatus": "Available"},
    "user-4": {"name": "David Customer", "phone": "08012345674", "role": "Customer", "pin": "3333"},
    "user-5": {"name": "Rider Diana", "phone": "08012345675", "role": "Rider", "pin": "4444", "vehicle": "Van", "active": False,
               "location": {"lat": 6.1895, "lng": 6.7511}},
}


def seed(store):
    with store.batch():
        for user_id, fields in SEED_USERS.items():
            store.set(USERS, user_id, fields)


def replay_telemetry(store, filepath):
    """Feed recorded rider positions through the store, one tick per batch."""
    df = pd.read_csv(filepath)
    fleet = FleetTelemetrySynchronizer()
    fleet.attach(store)

    for tick, rows in df.groupby("tick"):
        with store.batch():
            reporting = set(rows["rider_id"])
            for row in rows.itertuples():
                store.set(USERS, row.rider_id, {"name": row.name, "role": "Rider", "active": True,
                                                "location": {"lat": float(row.lat), "lng": float(row.lng)}})
            for rider_id in fleet.marker_ids() - reporting:
                if rider_id.startswith("rider-"):
                    store.update(USERS, rider_id, {"location": None})
        print(f"  tick {tick}: {len(fleet.marker_ids())} markers")

    fleet.detach()


def run_simulation():
    config = load_config()
    configure_logging(config.log_level)
    print("=== STARTING DISPATCH SYNC SIMULATION ===")

    clock = SimulationClock()
    store = InMemoryDocumentStore(clock=clock)
    seed(store)

    registry = AccountRegistry(store, lambda: [Identity.from_document(d) for d in store.fetch(Query.all(USERS))], config)
    alice = registry.authenticate("alice@celstin.com", "0000")

    with ClientSession(store, viewer=alice, config=config, marker_sink=PrintingMarkerSink()) as staff:
        bob = staff.accounts.authenticate("08012345672", "1111")
        charlie = staff.accounts.authenticate("08012345673", "2222")

        # 1. Orders come in
        print("\n--- Orders ---")
        with ClientSession(store, viewer=bob, config=config) as vendor_session:
            for dropoff in ("456 Nnebisi Road, Asaba", "101 DLA Road, Asaba", "333 Dennis Osadebay Way, Asaba"):
                outcome = vendor_session.write(vendor_session.deliveries.create, bob, "David Customer", "08012345674",
                                               "123 Cable Point, Asaba", dropoff, mode=TransportMode.BIKE)
                d = outcome.result
                print(f"Order {d.id}: {d.dropoff_address} -> {d.price} NGN, ~{d.estimated_minutes} min")

        # 2. Admin assigns, rider delivers
        print("\n--- Dispatch ---")
        staff.open_map()
        pending = [d for d in staff.live_queue() if d.status == DeliveryStatus.PENDING]
        for delivery in pending[:2]:
            staff.write(staff.deliveries.assign, delivery.id, alice, charlie.id)
            for status in (DeliveryStatus.PICKED_UP, DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED):
                clock.tick(7)
                staff.deliveries.advance(delivery.id, charlie, status)
            staff.deliveries.verify_payment(delivery.id, alice)
            print(f"Delivery {delivery.id} delivered by {charlie.name}")
        staff.write(staff.deliveries.fail, pending[2].id, alice)
        store.update(USERS, charlie.id, {"location": {"lat": 6.2101, "lng": 6.7301}})
        staff.close_map()

        counters = staff.counters()
        print(f"Live: {counters.active}  Delivered: {counters.delivered}  Failed: {counters.failed}")

        # 3. Vendor commission
        print("\n--- Settlement ---")
        bob = staff.state.user(bob.id)
        print(f"{bob.name} balance {bob.commission_balance}, settleable: {can_settle(bob)}")
        result = staff.settlement.settle(alice, bob.id)
        print(f"Settled {result.amount}; lifetime withdrawn {result.total_withdrawn}")
        print(f"Second settle is a no-op: {not staff.settlement.settle(alice, bob.id).settled}")

        for vendor_id, stats in vendor_performance(staff.state.deliveries).items():
            print(f"{vendor_id}: {stats.completed_orders}/{stats.total_orders} completed, {stats.on_time_rate}% on time")

        # 4. Chat
        print("\n--- Chat ---")
        with ClientSession.for_guest(store, config=config) as guest:
            guest.send_message("Hi, do you deliver to Okpanam?")
            clock.tick(1)
            staff.send_message("Yes we do!", thread_id=staff.active_thread())
            for message in guest.conversation():
                print(f"  {message.sender_name}: {message.text}")

        # 5. Outage
        print("\n--- Connectivity ---")
        store.disconnect()
        print(f"Banner: {staff.state.banner}")
        store.reconnect()
        print(f"Banner after reconnect: {staff.state.banner}")

    # 6. Telemetry replay
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    telemetry_path = os.path.join(base_dir, "mock_rider_telemetry.csv")
    if os.path.exists(telemetry_path):
        print("\n--- Telemetry replay ---")
        replay_telemetry(store, telemetry_path)
    else:
        print("\nNo telemetry CSV found; run scripts/generate_mock_telemetry.py to create one.")

    print(f"\nDeliveries in store: {len(store.fetch(Query.all(DELIVERIES)))}")
    print("\n=== SIMULATION COMPLETE ===")


if __name__ == "__main__":
    run_simulation()
