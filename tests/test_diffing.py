from store import DELIVERIES, Query, SnapshotDiffer, diffing_callback


def test_first_snapshot_is_all_added():
    differ = SnapshotDiffer()
    changes = differ.apply([{"id": "a", "v": 1}, {"id": "b", "v": 1}])

    assert [d["id"] for d in changes.added] == ["a", "b"]
    assert changes.modified == []
    assert changes.removed == []


def test_modified_and_removed_are_detected():
    differ = SnapshotDiffer()
    differ.apply([{"id": "a", "v": 1}, {"id": "b", "v": 1}])

    changes = differ.apply([{"id": "a", "v": 2}, {"id": "c", "v": 1}])

    assert [d["id"] for d in changes.added] == ["c"]
    assert [d["id"] for d in changes.modified] == ["a"]
    assert [d["id"] for d in changes.removed] == ["b"]
    assert differ.keys() == {"a", "c"}


def test_redelivery_of_same_set_is_empty():
    differ = SnapshotDiffer()
    batch = [{"id": "a", "v": 1}]
    differ.apply(batch)

    assert differ.apply(list(batch)).is_empty


def test_reset_forgets_previous_set():
    differ = SnapshotDiffer()
    differ.apply([{"id": "a"}])
    differ.reset()

    assert [d["id"] for d in differ.apply([{"id": "a"}]).added] == ["a"]


def test_diffing_callback_feeds_deltas_from_the_store(store):
    deltas = []
    store.subscribe(Query.all(DELIVERIES), diffing_callback(SnapshotDiffer(), deltas.append))

    doc_id = store.create(DELIVERIES, {"status": "Pending"})
    store.update(DELIVERIES, doc_id, {"status": "Assigned"})

    assert deltas[0].is_empty
    assert [d["id"] for d in deltas[1].added] == [doc_id]
    assert deltas[2].modified[0]["status"] == "Assigned"
