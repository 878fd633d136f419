"""
Purpose: Chat models.
What it does:
- Message: one persisted chat line, belonging to exactly one thread
  (threadId = the customer/guest identity that opened the conversation)
- GroundingLink: (title, uri) location reference attached by the assistant
- Attachment: small file sent with a message
- Thread: derived grouping, never persisted

Rule: Models only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class GroundingLink:
    title: str
    uri: str

    def to_document(self) -> Dict[str, str]:
        return {"title": self.title, "uri": self.uri}


@dataclass(frozen=True)
class Attachment:
    name: str
    content_type: str
    data: str  # data: URL (base64)

    def to_document(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.content_type, "data": self.data}

    @classmethod
    def from_document(cls, data: Optional[Dict[str, Any]]) -> Optional[Attachment]:
        if not data:
            return None
        return cls(name=data.get("name", ""), content_type=data.get("type", ""), data=data.get("data", ""))


@dataclass(frozen=True)
class Message:
    id: str
    thread_id: str
    sender_id: str
    sender_name: str
    text: str
    is_admin: bool = False
    # None until the server timestamp resolves
    timestamp: Optional[datetime] = None
    links: List[GroundingLink] = field(default_factory=list)
    attachment: Optional[Attachment] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> Message:
        return cls(
            id=data["id"],
            thread_id=data.get("threadId") or data.get("senderId", ""),
            sender_id=data.get("senderId", ""),
            sender_name=data.get("senderName", ""),
            text=data.get("text", ""),
            is_admin=bool(data.get("isAdmin", False)),
            timestamp=data.get("timestamp"),
            links=[GroundingLink(title=link.get("title", ""), uri=link.get("uri", "")) for link in data.get("links") or []],
            attachment=Attachment.from_document(data.get("attachment")),
        )


@dataclass(frozen=True)
class Thread:
    id: str
    name: str
    last_text: str
    timestamp: Optional[datetime]
