"""
Messaging package.

Public API:
- Message, Thread, GroundingLink, Attachment
- Thread resolution: resolve_threads, thread_messages, default_active_thread, ThreadResolver
- ChatService, ChatParticipant, attach
- AssistantClient, ExternalServiceFailure, should_trigger
- Guest identity persistence
"""
from .assistant import (
    ASSISTANT_SENDER_ID,
    AssistantClient,
    AssistantReply,
    ExternalServiceFailure,
    should_trigger,
)
from .guest import is_guest_id, load_or_create_guest_id, new_guest_id
from .models import Attachment, GroundingLink, Message, Thread
from .service import MAX_ATTACHMENT_BYTES, ChatParticipant, ChatService, attach
from .threads import GUEST_LABEL, ThreadResolver, default_active_thread, resolve_threads, thread_messages

__all__ = [
    "ASSISTANT_SENDER_ID",
    "AssistantClient",
    "AssistantReply",
    "ExternalServiceFailure",
    "should_trigger",
    "is_guest_id",
    "load_or_create_guest_id",
    "new_guest_id",
    "Attachment",
    "GroundingLink",
    "Message",
    "Thread",
    "MAX_ATTACHMENT_BYTES",
    "ChatParticipant",
    "ChatService",
    "attach",
    "GUEST_LABEL",
    "ThreadResolver",
    "default_active_thread",
    "resolve_threads",
    "thread_messages",
]
