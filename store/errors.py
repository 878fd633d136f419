"""
Purpose: Failure taxonomy for the document store surface.
What it does:
Every write path distinguishes "denied" (needs a configuration/permission fix)
from "unavailable" (expected to heal on reconnect). Callers must never collapse
the two into a generic error.
"""


class StoreError(Exception):
    """Base class for all store-surface failures."""

    def __init__(self, message: str, collection: str = None, doc_id: str = None):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(message)


class WriteDenied(StoreError):
    """The store rejected the write for permission reasons."""
    pass


class StoreUnavailable(StoreError):
    """The backing store is offline or misconfigured."""
    pass


class NotFound(StoreError):
    """A referenced document does not exist (e.g. deleted concurrently)."""
    pass


class ConditionFailed(StoreError):
    """
    A conditional update found a different value than expected.
    Raised by update_if; retry loops catch it, it is not meant for end users.
    """

    def __init__(self, message: str, collection: str = None, doc_id: str = None, actual: dict = None):
        self.actual = actual or {}
        super().__init__(message, collection, doc_id)
