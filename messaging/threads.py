"""
Purpose: Group a flat message stream into conversation threads.
What it does:
- resolve_threads(): one Thread per threadId, most recent first
- thread_messages(): one thread's messages, oldest first
- default_active_thread(): which thread a viewer lands on
- ThreadResolver: keeps the message set current from change-feed deltas

Messages whose server timestamp has not resolved yet sort as time zero.
Display name comes from the message the thread owner sent (senderId ==
threadId); otherwise the last learned name sticks, else the guest label.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from store import ChangeSet, SnapshotDiffer

from .models import Message, Thread

GUEST_LABEL = "Guest Customer"


def _time_key(message: Message) -> float:
    return message.timestamp.timestamp() if message.timestamp is not None else 0.0


def order_messages(messages: Iterable[Message]) -> List[Message]:
    # Stable: equal timestamps keep their feed order
    return sorted(messages, key=_time_key)


@dataclass
class _ThreadAccumulator:
    id: str
    name: Optional[str] = None
    last_text: str = ""
    last_message: Optional[Message] = None


def resolve_threads(messages: Iterable[Message]) -> List[Thread]:
    accumulators: Dict[str, _ThreadAccumulator] = {}

    for message in order_messages(messages):
        acc = accumulators.setdefault(message.thread_id, _ThreadAccumulator(id=message.thread_id))
        acc.last_text = message.text
        acc.last_message = message
        if message.sender_id == message.thread_id and message.sender_name:
            acc.name = message.sender_name

    threads = [
        Thread(
            id=acc.id,
            name=acc.name or GUEST_LABEL,
            last_text=acc.last_text,
            timestamp=acc.last_message.timestamp if acc.last_message else None,
        )
        for acc in accumulators.values()
    ]
    # newest first; id breaks ties so the order never depends on dict order
    threads.sort(key=lambda t: t.id)
    threads.sort(key=lambda t: t.timestamp.timestamp() if t.timestamp is not None else 0.0, reverse=True)
    return threads


def thread_messages(messages: Iterable[Message], thread_id: str) -> List[Message]:
    return order_messages(m for m in messages if m.thread_id == thread_id)


def default_active_thread(
    viewer_id: str,
    is_admin: bool,
    threads: List[Thread],
    selected: Optional[str] = None,
) -> Optional[str]:
    """
    Non-admins only ever have their own thread. Admins keep an explicit
    selection while it still exists, else fall back to the newest thread.
    """
    if not is_admin:
        return viewer_id
    if selected and any(t.id == selected for t in threads):
        return selected
    return threads[0].id if threads else None


class ThreadResolver:
    """Maintains the current message set from deltas and recomputes threads."""

    def __init__(self):
        self._differ = SnapshotDiffer()
        self._messages: Dict[str, Message] = {}

    def reconcile(self, documents: Iterable[Dict]) -> List[Thread]:
        return self.apply_changes(self._differ.apply(list(documents)))

    def apply_changes(self, changes: ChangeSet) -> List[Thread]:
        for document in list(changes.added) + list(changes.modified):
            message = Message.from_document(document)
            self._messages[message.id] = message
        for document in changes.removed:
            self._messages.pop(document["id"], None)
        return self.threads()

    def threads(self) -> List[Thread]:
        return resolve_threads(self._messages.values())

    def messages(self, thread_id: Optional[str] = None) -> List[Message]:
        if thread_id is None:
            return order_messages(self._messages.values())
        return thread_messages(self._messages.values(), thread_id)

    def reset(self) -> None:
        self._differ.reset()
        self._messages.clear()
