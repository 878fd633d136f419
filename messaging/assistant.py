"""
Purpose: The natural-language assistant adapter/client.
Sole responsibility: talk to the assistant service over HTTP and return
normalized replies.

Request:  POST {base_url}/v1/respond  {"prompt": str, "location": {"lat", "lng"} | null}
Response: {"text": str, "links": [{"title": str, "uri": str}, ...]}

Every failure mode (timeout, connection error, non-2xx, malformed JSON) is
raised as ExternalServiceFailure. Callers decide whether that matters; the
chat service logs it and moves on.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from accounts.models import Location
from config import Config, load_config

from .models import GroundingLink

logger = logging.getLogger(__name__)

ASSISTANT_SENDER_ID = "ai-assistant"
ASSISTANT_SENDER_NAME = "Dispatch Assistant"

# Best-effort: a message that misses these words simply gets no automated reply.
TRIGGER_KEYWORDS = frozenset({
    "where", "location", "locate", "direction", "directions", "address",
    "near", "nearby", "nearest", "map", "route", "landmark", "find",
})
_WORD = re.compile(r"[a-z]+")


class ExternalServiceFailure(Exception):
    """The assistant call failed, timed out or answered with garbage."""
    pass


@dataclass(frozen=True)
class AssistantReply:
    text: str
    links: List[GroundingLink] = field(default_factory=list)


def should_trigger(text: str) -> bool:
    words = set(_WORD.findall((text or "").lower()))
    return bool(words & TRIGGER_KEYWORDS)


class AssistantClient:
    """
    Assistant Adapter / Client

    - Build the request body from prompt + optional location hint
    - POST with a timeout
    - Parse the reply into AssistantReply
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[int] = None, config: Optional[Config] = None):
        config = config or load_config()
        self.base_url = (base_url or config.assistant_base_url or "").rstrip("/")
        self.api_key = api_key or config.assistant_api_key
        self.timeout = timeout or config.assistant_timeout

        if not self.base_url:
            raise ValueError("Assistant base URL not set. Please set ASSISTANT_BASE_URL in the .env file.")

    def ask(self, prompt: str, location: Optional[Location] = None) -> AssistantReply:
        payload = {
            "prompt": prompt,
            "location": location.to_document() if location is not None else None,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        try:
            response = requests.post(f"{self.base_url}/v1/respond", json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ExternalServiceFailure(f"Assistant request failed: {exc}") from exc

        if response.status_code >= 400:
            raise ExternalServiceFailure(f"Assistant error {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalServiceFailure("Assistant returned malformed JSON") from exc

        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ExternalServiceFailure("Assistant response is missing 'text'")

        links = [
            GroundingLink(title=link.get("title") or link.get("uri", ""), uri=link["uri"])
            for link in data.get("links") or []
            if isinstance(link, dict) and link.get("uri")
        ]
        logger.debug(f"Assistant replied with {len(links)} link(s)")
        return AssistantReply(text=data["text"], links=links)
