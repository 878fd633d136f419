"""
Purpose: Local identity for unauthenticated chat users.
What it does:
A guest gets a generated `guest-<hex>` id the first time they open the chat.
The id is kept in a small JSON file so the same guest keeps the same thread
across sessions. It is never written to the users collection.
"""

from __future__ import annotations

import json
import logging
import os
import uuid

logger = logging.getLogger(__name__)

GUEST_PREFIX = "guest-"


def new_guest_id() -> str:
    return f"{GUEST_PREFIX}{uuid.uuid4().hex[:12]}"


def is_guest_id(value: str) -> bool:
    return bool(value) and value.startswith(GUEST_PREFIX)


def load_or_create_guest_id(path: str) -> str:
    """
    Return the persisted guest id, creating (and saving) one if the file is
    missing or unreadable.
    """
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                guest_id = json.load(f).get("guestId")
            if is_guest_id(guest_id):
                return guest_id
            logger.warning(f"Guest id file {path} has no usable id; issuing a new one")
        except (OSError, ValueError, AttributeError) as exc:
            logger.warning(f"Could not read guest id file {path}: {exc}")

    guest_id = new_guest_id()
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"guestId": guest_id}, f)
    logger.info(f"Issued guest id {guest_id}")
    return guest_id
