"""
Purpose: Chat writes.
What it does:
- send(): persist a customer/guest/admin message, then (customers only) ask the
  assistant for a grounded reply when the text looks like a location question
- attach(): turn raw file bytes into an Attachment (2 MB limit)
- wipe_history(): Super Admin clears every message

The user's message is written before the assistant is called; an assistant
failure is logged and never undoes or blocks that write. Store failures
(WriteDenied / StoreUnavailable) propagate to the caller.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from accounts.models import Identity, Location
from accounts.validation import PermissionDenied, ValidationFailed
from store import MESSAGES, SERVER_TIMESTAMP, DocumentStore, Query, StoreUnavailable, WriteDenied

from .assistant import ASSISTANT_SENDER_ID, ASSISTANT_SENDER_NAME, AssistantClient, ExternalServiceFailure, should_trigger
from .models import Attachment
from .threads import GUEST_LABEL

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_BYTES = 2 * 1024 * 1024


@dataclass(frozen=True)
class ChatParticipant:
    """Who is typing: a signed-in identity or a local guest."""
    id: str
    name: str
    is_admin: bool = False
    is_super_admin: bool = False

    @classmethod
    def from_identity(cls, identity: Identity) -> ChatParticipant:
        return cls(id=identity.id, name=identity.name, is_admin=identity.is_staff, is_super_admin=identity.is_super_admin)

    @classmethod
    def guest(cls, guest_id: str) -> ChatParticipant:
        return cls(id=guest_id, name=GUEST_LABEL)


def attach(name: str, content_type: str, payload: bytes) -> Attachment:
    if len(payload) > MAX_ATTACHMENT_BYTES:
        raise ValidationFailed(f"{name} is larger than 2MB", field="attachment")
    encoded = base64.b64encode(payload).decode("ascii")
    return Attachment(name=name, content_type=content_type, data=f"data:{content_type};base64,{encoded}")


class ChatService:
    def __init__(
        self,
        store: DocumentStore,
        assistant: Optional[AssistantClient] = None,
        location_hint: Optional[Callable[[], Optional[Location]]] = None,
    ):
        self.store = store
        self.assistant = assistant
        self.location_hint = location_hint

    def send(
        self,
        sender: ChatParticipant,
        text: str,
        thread_id: Optional[str] = None,
        attachment: Optional[Attachment] = None,
    ) -> str:
        """
        Non-admins always write into their own thread. Admins reply into the
        thread they have open, so `thread_id` is required for them.
        """
        text = (text or "").strip()
        if not text and attachment is None:
            raise ValidationFailed("Message is empty", field="text")

        if sender.is_admin:
            if not thread_id:
                raise ValidationFailed("Select a conversation before replying", field="threadId")
        else:
            thread_id = sender.id

        document = {
            "threadId": thread_id,
            "senderId": sender.id,
            "senderName": sender.name,
            "text": text,
            "isAdmin": sender.is_admin,
            "timestamp": SERVER_TIMESTAMP,
        }
        if attachment is not None:
            document["attachment"] = attachment.to_document()

        message_id = self.store.create(MESSAGES, document)
        logger.info(f"Message {message_id} posted to thread {thread_id} by {sender.id}")

        if not sender.is_admin and self.assistant is not None and should_trigger(text):
            self._assist(thread_id, text)
        return message_id

    def wipe_history(self, actor: Identity) -> int:
        if actor is None or not actor.is_super_admin:
            raise PermissionDenied("Only a Super Admin may clear the chat history", field="role")

        documents = self.store.fetch(Query.all(MESSAGES))
        for document in documents:
            self.store.delete(MESSAGES, document["id"])
        logger.info(f"Chat history cleared by {actor.id} ({len(documents)} messages)")
        return len(documents)

    # --- Internal helpers ---

    def _assist(self, thread_id: str, prompt: str) -> Optional[str]:
        location = self.location_hint() if self.location_hint else None
        try:
            reply = self.assistant.ask(prompt, location)
        except ExternalServiceFailure as exc:
            logger.warning(f"Assistant reply skipped for thread {thread_id}: {exc}")
            return None

        document = {
            "threadId": thread_id,
            "senderId": ASSISTANT_SENDER_ID,
            "senderName": ASSISTANT_SENDER_NAME,
            "text": reply.text,
            "isAdmin": True,
            "timestamp": SERVER_TIMESTAMP,
            "links": [link.to_document() for link in reply.links],
        }
        try:
            return self.store.create(MESSAGES, document)
        except (WriteDenied, StoreUnavailable) as exc:
            # the customer message is already saved; resending it would duplicate it
            logger.warning(f"Assistant reply for thread {thread_id} could not be saved: {exc}")
            return None
