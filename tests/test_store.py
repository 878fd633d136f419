import pytest

from store import (
    DELIVERIES,
    SERVER_TIMESTAMP,
    USERS,
    ConditionFailed,
    Increment,
    NotFound,
    Query,
    StoreUnavailable,
    WriteDenied,
)


class Recorder:
    def __init__(self):
        self.batches = []
        self.errors = []

    def on_change(self, documents):
        self.batches.append(documents)

    def on_error(self, error):
        self.errors.append(error)

    @property
    def last_ids(self):
        return sorted(d["id"] for d in self.batches[-1])


def test_subscribe_delivers_full_result_set_on_every_change(store):
    rec = Recorder()
    store.subscribe(Query.all(DELIVERIES), rec.on_change, rec.on_error)
    assert rec.batches == [[]]

    first = store.create(DELIVERIES, {"status": "Pending"})
    second = store.create(DELIVERIES, {"status": "Pending"})

    assert len(rec.batches) == 3
    assert rec.last_ids == sorted([first, second])


def test_writes_stamp_server_timestamps(store, clock):
    doc_id = store.create(DELIVERIES, {"status": "Pending", "createdAt": SERVER_TIMESTAMP})
    created = store.get(DELIVERIES, doc_id)
    assert created["createdAt"] == clock.now
    assert created["updatedAt"] == clock.now

    later = clock.advance(minutes=5)
    store.update(DELIVERIES, doc_id, {"status": "Assigned"})
    updated = store.get(DELIVERIES, doc_id)
    assert updated["createdAt"] != later
    assert updated["updatedAt"] == later


def test_update_merges_fields_last_write_wins(store):
    doc_id = store.create(USERS, {"name": "Bob", "phone": "1"})
    store.update(USERS, doc_id, {"phone": "2"})
    store.update(USERS, doc_id, {"phone": "3", "vehicle": "Van"})

    doc = store.get(USERS, doc_id)
    assert doc["name"] == "Bob"
    assert doc["phone"] == "3"
    assert doc["vehicle"] == "Van"


def test_update_missing_document_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update(USERS, "nope", {"name": "x"})


def test_increment_is_applied_by_the_store(store):
    doc_id = store.create(USERS, {"commissionBalance": 100})
    store.update(USERS, doc_id, {"commissionBalance": Increment(50)})
    store.update(USERS, doc_id, {"totalWithdrawn": Increment(25)})

    doc = store.get(USERS, doc_id)
    assert doc["commissionBalance"] == 150
    assert doc["totalWithdrawn"] == 25


def test_update_if_rejects_stale_expectation(store):
    doc_id = store.create(USERS, {"commissionBalance": 100})

    store.update_if(USERS, doc_id, {"commissionBalance": 100}, {"commissionBalance": 0})
    with pytest.raises(ConditionFailed) as exc_info:
        store.update_if(USERS, doc_id, {"commissionBalance": 100}, {"commissionBalance": 0})

    assert exc_info.value.actual == {"commissionBalance": 0}


def test_set_overwrites_whole_document(store):
    store.set("settings", "global", {"pricePerKm": 150, "theme": "dark"})
    store.set("settings", "global", {"pricePerKm": 200})

    doc = store.get("settings", "global")
    assert doc["pricePerKm"] == 200
    assert "theme" not in doc


def test_filtered_query_with_dotted_path(store):
    store.set(DELIVERIES, "a", {"rider": {"id": "user-3"}})
    store.set(DELIVERIES, "b", {"rider": {"id": "user-9"}})
    store.set(DELIVERIES, "c", {})

    rec = Recorder()
    store.subscribe(Query.all(DELIVERIES).where("rider.id", "==", "user-3"), rec.on_change)
    assert rec.last_ids == ["a"]


def test_unchanged_result_set_is_not_redelivered(store):
    store.set(USERS, "r1", {"role": "Rider"})
    rec = Recorder()
    store.subscribe(Query.all(USERS).where("role", "==", "Rider"), rec.on_change)

    # a write outside the query's result set
    store.set(USERS, "c1", {"role": "Customer"})
    assert len(rec.batches) == 1


def test_batch_coalesces_notifications(store):
    rec = Recorder()
    store.subscribe(Query.all(DELIVERIES), rec.on_change)

    with store.batch():
        for _ in range(5):
            store.create(DELIVERIES, {"status": "Pending"})

    assert len(rec.batches) == 2
    assert len(rec.batches[-1]) == 5


def test_unsubscribe_stops_callbacks(store):
    rec = Recorder()
    subscription = store.subscribe(Query.all(DELIVERIES), rec.on_change)
    subscription.unsubscribe()

    store.create(DELIVERIES, {"status": "Pending"})
    assert len(rec.batches) == 1
    assert store.listener_count() == 0


def test_callbacks_run_to_completion_before_the_next_delivery(store):
    seen = []

    def on_change(documents):
        seen.append(("start", len(documents)))
        if len(documents) == 1:
            store.create(DELIVERIES, {"status": "Pending"})
        seen.append(("end", len(documents)))

    store.subscribe(Query.all(DELIVERIES), on_change)
    store.create(DELIVERIES, {"status": "Pending"})

    assert seen == [("start", 0), ("end", 0), ("start", 1), ("end", 1), ("start", 2), ("end", 2)]


def test_write_inside_the_initial_snapshot_waits_for_the_callback(store):
    seen = []

    def on_change(documents):
        seen.append(("start", len(documents)))
        if not documents:
            store.create(DELIVERIES, {"status": "Pending"})
        seen.append(("end", len(documents)))

    store.subscribe(Query.all(DELIVERIES), on_change)

    assert seen == [("start", 0), ("end", 0), ("start", 1), ("end", 1)]


def test_write_inside_a_resync_waits_for_the_callback(store):
    seen = []

    def on_change(documents):
        seen.append(("start", len(documents)))
        if len(seen) == 3:
            store.create(DELIVERIES, {"status": "Pending"})
        seen.append(("end", len(documents)))

    store.subscribe(Query.all(DELIVERIES), on_change)
    store.disconnect()
    store.reconnect()

    assert seen == [("start", 0), ("end", 0), ("start", 0), ("end", 0), ("start", 1), ("end", 1)]


def test_failing_listener_does_not_break_the_writer_or_other_listeners(store):
    errors = []

    def crashing_view(documents):
        if documents:
            raise RuntimeError("view crashed")

    store.subscribe(Query.all(DELIVERIES), crashing_view, errors.append)
    rec = Recorder()
    store.subscribe(Query.all(DELIVERIES), rec.on_change, rec.on_error)

    doc_id = store.create(DELIVERIES, {"status": "Pending"})

    assert store.get(DELIVERIES, doc_id) is not None
    assert [len(batch) for batch in rec.batches] == [0, 1]
    assert rec.errors == []
    assert [str(e) for e in errors] == ["view crashed"]


def test_denied_and_unavailable_are_distinct(store):
    store.deny_writes(DELIVERIES)
    with pytest.raises(WriteDenied):
        store.create(DELIVERIES, {"status": "Pending"})
    store.allow_writes(DELIVERIES)

    store.disconnect()
    with pytest.raises(StoreUnavailable):
        store.create(DELIVERIES, {"status": "Pending"})


def test_disconnect_reports_to_subscribers_and_reconnect_resyncs(store):
    rec = Recorder()
    store.subscribe(Query.all(DELIVERIES), rec.on_change, rec.on_error)

    store.disconnect()
    assert isinstance(rec.errors[-1], StoreUnavailable)

    store.reconnect()
    assert len(rec.batches) == 2


def test_fetch_returns_one_snapshot_and_releases(store):
    store.set(USERS, "u1", {"name": "A"})
    documents = store.fetch(Query.all(USERS))

    assert [d["id"] for d in documents] == ["u1"]
    assert store.listener_count() == 0


def test_fetch_while_offline_raises(store):
    store.disconnect()
    with pytest.raises(StoreUnavailable):
        store.fetch(Query.all(USERS))


def test_delete(store):
    store.set(USERS, "u1", {"name": "A"})
    store.delete(USERS, "u1")
    assert store.get(USERS, "u1") is None
    with pytest.raises(NotFound):
        store.delete(USERS, "u1")
