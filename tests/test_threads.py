from datetime import datetime, timezone

from messaging import GUEST_LABEL, Message, ThreadResolver, default_active_thread, resolve_threads, thread_messages


def at(minute):
    return datetime(2024, 6, 1, 9, minute, tzinfo=timezone.utc)


def msg(msg_id, thread_id, sender_id, text, minute=None, sender_name=None, is_admin=False):
    return Message(
        id=msg_id,
        thread_id=thread_id,
        sender_id=sender_id,
        sender_name=sender_name or sender_id,
        text=text,
        is_admin=is_admin,
        timestamp=at(minute) if minute is not None else None,
    )


MESSAGES = [
    msg("m1", "user-4", "user-4", "Where is my parcel?", 1, "David Customer"),
    msg("m2", "user-4", "user-1", "On its way", 3, "Admin Alice", is_admin=True),
    msg("m3", "guest-1", "guest-1", "Hello", 2, "Guest Customer"),
    msg("m4", "guest-2", "user-1", "Following up", 5, "Admin Alice", is_admin=True),
]


def test_threads_are_grouped_and_ordered_newest_first():
    threads = resolve_threads(MESSAGES)

    assert [t.id for t in threads] == ["guest-2", "user-4", "guest-1"]
    assert threads[1].last_text == "On its way"
    assert threads[1].timestamp == at(3)


def test_thread_name_prefers_owner_message():
    names = {t.id: t.name for t in resolve_threads(MESSAGES)}

    assert names["user-4"] == "David Customer"
    # only an admin has written in guest-2
    assert names["guest-2"] == GUEST_LABEL


def test_learned_name_survives_later_admin_messages():
    messages = [
        msg("a", "user-4", "user-4", "hi", 1, "David Customer"),
        msg("b", "user-4", "user-1", "hello", 2, "Admin Alice", is_admin=True),
        msg("c", "user-4", "ai-assistant", "Here is a map", 3, "Dispatch Assistant", is_admin=True),
    ]
    assert resolve_threads(messages)[0].name == "David Customer"


def test_resolution_is_deterministic():
    first = resolve_threads(MESSAGES)
    second = resolve_threads(list(reversed(MESSAGES)))

    assert [(t.id, t.name, t.last_text) for t in first] == [(t.id, t.name, t.last_text) for t in second]


def test_pending_timestamp_sorts_as_earliest():
    messages = [msg("late", "user-4", "user-4", "sent", 4), msg("pending", "user-4", "user-4", "pending write")]

    assert [m.id for m in thread_messages(messages, "user-4")] == ["pending", "late"]
    assert resolve_threads(messages)[0].last_text == "sent"


def test_equal_timestamps_break_ties_by_thread_id():
    messages = [msg("x", "b", "b", "1", 1), msg("y", "a", "a", "2", 1)]
    assert [t.id for t in resolve_threads(messages)] == ["a", "b"]


def test_default_active_thread():
    threads = resolve_threads(MESSAGES)

    assert default_active_thread("user-4", False, threads) == "user-4"
    assert default_active_thread("user-1", True, threads) == "guest-2"
    assert default_active_thread("user-1", True, threads, selected="guest-1") == "guest-1"
    assert default_active_thread("user-1", True, threads, selected="gone") == "guest-2"
    assert default_active_thread("user-1", True, []) is None


def test_resolver_tracks_feed_deltas():
    resolver = ThreadResolver()
    docs = [
        {"id": "m1", "threadId": "user-4", "senderId": "user-4", "senderName": "David Customer", "text": "hi", "timestamp": at(1)},
    ]
    resolver.reconcile(docs)
    docs = docs + [
        {"id": "m2", "threadId": "guest-1", "senderId": "guest-1", "senderName": "Guest Customer", "text": "yo", "timestamp": at(2)},
    ]
    threads = resolver.reconcile(docs)
    assert [t.id for t in threads] == ["guest-1", "user-4"]

    threads = resolver.reconcile(docs[1:])
    assert [t.id for t in threads] == ["guest-1"]
    assert [m.id for m in resolver.messages()] == ["m2"]
