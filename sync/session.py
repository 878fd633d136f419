"""
Purpose: One client's live connection to the dispatch core.
What it does:
- start(): subscribe users, deliveries, the viewer's messages and the
  settings singleton; every snapshot lands in AppState
- services (deliveries, accounts, chat, settlement) wired to read pricing,
  commission rate and the user directory from that state
- derived views: Live Queue / Archive, counters, visible users, threads
- open_map() / close_map(): fleet telemetry for the map view
- write(): run a mutation and turn WriteDenied / StoreUnavailable into the
  banner instead of an exception
- close(): release every listener synchronously

Subscription callbacks run to completion one at a time (the store delivers
them from a single queue), so derived state never sees a half-applied batch.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from accounts.models import Identity
from accounts.registry import AccountRegistry
from config import Config, load_config
from deliveries.models import Delivery
from deliveries.policy import PricingPolicy
from deliveries.pricing import DistanceEstimator
from deliveries.service import DeliveryService
from messaging.assistant import AssistantClient
from messaging.guest import load_or_create_guest_id
from messaging.models import Message, Thread
from messaging.service import ChatParticipant, ChatService
from messaging.threads import ThreadResolver, default_active_thread
from projection import visibility
from riders.geolocation import LocationReporter
from riders.telemetry import FleetTelemetrySynchronizer
from settlement.reconciler import SettlementConflict, SettlementReconciler
from store import DELIVERIES, USERS, DocumentStore, Query, StoreUnavailable, Subscription, WriteDenied

from .settings import settings_query
from .state import AppState, WriteOutcome

logger = logging.getLogger(__name__)


class ClientSession:
    def __init__(
        self,
        store: DocumentStore,
        viewer: Optional[Identity] = None,
        guest_id: Optional[str] = None,
        config: Optional[Config] = None,
        assistant: Optional[AssistantClient] = None,
        marker_sink=None,
        estimator: Optional[DistanceEstimator] = None,
    ):
        if viewer is None and not guest_id:
            raise ValueError("A session needs a signed-in viewer or a guest id")

        self.store = store
        self.viewer = viewer
        self.guest_id = guest_id
        self.config = config or load_config()
        self.state = AppState()

        self.settlement = SettlementReconciler(
            store,
            standard_rate=lambda: self.state.settings.standard_commission_rate,
            config=self.config,
        )
        self.deliveries = DeliveryService(
            store,
            policy_provider=lambda: PricingPolicy.from_settings(self.state.settings),
            estimator=estimator,
            on_delivered=self._accrue,
        )
        self.accounts = AccountRegistry(store, directory=lambda: list(self.state.users), config=self.config)
        if assistant is None and self.config.assistant_base_url:
            assistant = AssistantClient(config=self.config)
        self.chat = ChatService(store, assistant=assistant, location_hint=self._location_hint)

        self.threads = ThreadResolver()
        self.fleet = FleetTelemetrySynchronizer(sink=marker_sink)
        self._subscriptions: List[Subscription] = []

    @classmethod
    def for_guest(cls, store: DocumentStore, config: Optional[Config] = None, **kwargs) -> ClientSession:
        """Unauthenticated session keyed by the guest id persisted on this device."""
        config = config or load_config()
        return cls(store, guest_id=load_or_create_guest_id(config.guest_id_path), config=config, **kwargs)

    # --- Lifecycle ---

    def start(self) -> None:
        if self._subscriptions:
            return
        self._subscriptions = [
            self.store.subscribe(Query.all(USERS), self._on_users, self.state.report),
            self.store.subscribe(Query.all(DELIVERIES), self.state.replace_deliveries, self.state.report),
            self.store.subscribe(visibility.message_query_for(self.viewer or self.guest_id), self._on_messages, self.state.report),
            self.store.subscribe(settings_query(), self.state.replace_settings, self.state.report),
        ]
        logger.info(f"Session started for {self.participant.id}")

    def close(self) -> None:
        self.close_map()
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self.threads.reset()
        logger.info(f"Session closed for {self.participant.id}")

    def __enter__(self) -> ClientSession:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open_map(self) -> Subscription:
        return self.fleet.attach(self.store, self.state.report)

    def close_map(self) -> None:
        self.fleet.detach()

    # --- Writes ---

    def write(self, action: Callable, *args, **kwargs) -> WriteOutcome:
        """
        Run a mutation. Denied / unavailable writes raise the banner and
        come back as a failed outcome; validation errors still propagate so
        the caller can show them inline.
        """
        try:
            result = action(*args, **kwargs)
        except (WriteDenied, StoreUnavailable) as exc:
            logger.warning(f"Write {getattr(action, '__name__', action)} failed: {exc}")
            self.state.report(exc)
            return WriteOutcome(ok=False, error=exc)
        return WriteOutcome(ok=True, result=result)

    def catch_up_commissions(self) -> WriteOutcome:
        return self.write(self.settlement.accrue_outstanding)

    def send_message(self, text: str, thread_id: Optional[str] = None, attachment=None) -> WriteOutcome:
        return self.write(self.chat.send, self.participant, text, thread_id=thread_id, attachment=attachment)

    def location_reporter(self, sensor=None) -> LocationReporter:
        return LocationReporter(self.store, self.viewer, sensor)

    # --- Derived views ---

    @property
    def participant(self) -> ChatParticipant:
        if self.viewer is not None:
            return ChatParticipant.from_identity(self.viewer)
        return ChatParticipant.guest(self.guest_id)

    def visible_deliveries(self) -> List[Delivery]:
        return visibility.visible_deliveries(self.state.deliveries, self.viewer)

    def live_queue(self) -> List[Delivery]:
        return visibility.partition(self.visible_deliveries())[0]

    def archive(self) -> List[Delivery]:
        return visibility.partition(self.visible_deliveries())[1]

    def counters(self) -> visibility.DashboardCounters:
        return visibility.dashboard_counters(self.visible_deliveries())

    def visible_users(self) -> List[Identity]:
        return visibility.visible_users(self.state.users, self.viewer)

    def thread_list(self) -> List[Thread]:
        return self.threads.threads()

    def active_thread(self, selected: Optional[str] = None) -> Optional[str]:
        participant = self.participant
        return default_active_thread(participant.id, participant.is_admin, self.thread_list(), selected)

    def conversation(self, selected: Optional[str] = None) -> List[Message]:
        thread_id = self.active_thread(selected)
        return self.threads.messages(thread_id) if thread_id else []

    # --- Subscription handlers ---

    def _on_users(self, documents) -> None:
        self.state.replace_users(documents)
        if self.viewer is not None:
            # role / balance changes made by others show up on the next snapshot
            refreshed = self.state.user(self.viewer.id)
            if refreshed is not None:
                self.viewer = refreshed

    def _accrue(self, delivery: Delivery) -> None:
        # the delivery is already Delivered; a failed credit is picked up
        # later by catch_up_commissions()
        try:
            self.settlement.accrue_for_delivery(delivery)
        except (WriteDenied, StoreUnavailable) as exc:
            logger.warning(f"Commission for delivery {delivery.id} deferred: {exc}")
            self.state.report(exc)
        except SettlementConflict as exc:
            logger.warning(f"Commission for delivery {delivery.id} deferred: {exc}")

    def _on_messages(self, documents) -> None:
        self.threads.reconcile(documents)
        self.state.replace_messages(self.threads.messages())

    def _location_hint(self):
        if self.viewer is not None:
            return self.viewer.location
        return None
