"""
Purpose: Explicit application state for one client.
What it does:
Holds the latest snapshots of the shared collections plus the connection
banner. Components receive the state (or a narrow callable into it) through
their constructor; nothing reads it ambiently.

Banner policy:
- WriteDenied      -> DENIED banner (needs a configuration fix, stays until dismissed)
- StoreUnavailable -> UNAVAILABLE banner (cleared by the next fresh snapshot)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from accounts.models import Identity, Role
from deliveries.models import Delivery
from messaging.models import Message
from store import StoreUnavailable, WriteDenied

from .settings import SystemSettings

logger = logging.getLogger(__name__)


class BannerKind(str, Enum):
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Banner:
    kind: BannerKind
    message: str
    collection: Optional[str] = None


@dataclass(frozen=True)
class WriteOutcome:
    ok: bool
    result: Any = None
    error: Optional[Exception] = None


@dataclass
class AppState:
    users: List[Identity] = field(default_factory=list)
    deliveries: List[Delivery] = field(default_factory=list)
    messages: List[Message] = field(default_factory=list)
    settings: SystemSettings = field(default_factory=SystemSettings)
    banner: Optional[Banner] = None

    # --- Snapshot intake ---

    def replace_users(self, documents: List[Dict[str, Any]]) -> None:
        self.users = [Identity.from_document(d) for d in documents]
        self._healed()

    def replace_deliveries(self, documents: List[Dict[str, Any]]) -> None:
        self.deliveries = [Delivery.from_document(d) for d in documents]
        self._healed()

    def replace_messages(self, messages: List[Message]) -> None:
        self.messages = list(messages)
        self._healed()

    def replace_settings(self, documents: List[Dict[str, Any]]) -> None:
        self.settings = SystemSettings.from_document(documents[0] if documents else None)
        self._healed()

    # --- Banner ---

    def report(self, error: Exception) -> None:
        if isinstance(error, WriteDenied):
            self.banner = Banner(BannerKind.DENIED, str(error), error.collection)
        elif isinstance(error, StoreUnavailable):
            # a denial is the more important message; don't bury it
            if self.banner is None or self.banner.kind != BannerKind.DENIED:
                self.banner = Banner(BannerKind.UNAVAILABLE, str(error), error.collection)
        else:
            raise error

    def dismiss_banner(self) -> None:
        self.banner = None

    @property
    def connected(self) -> bool:
        return self.banner is None or self.banner.kind != BannerKind.UNAVAILABLE

    # --- Lookups ---

    def user(self, user_id: str) -> Optional[Identity]:
        return next((u for u in self.users if u.id == user_id), None)

    def vendors(self) -> List[Identity]:
        return [u for u in self.users if u.role == Role.VENDOR]

    def riders(self, active_only: bool = True) -> List[Identity]:
        return [u for u in self.users if u.role == Role.RIDER and (u.active or not active_only)]

    def _healed(self) -> None:
        if self.banner is not None and self.banner.kind == BannerKind.UNAVAILABLE:
            logger.info("Store connection restored")
            self.banner = None
