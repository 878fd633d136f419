"""
Purpose: Push a rider's own device position into the users collection.
What it does:
The geolocation sensor periodically supplies (lat, lng). A missing or denied
sensor is its own state (UNAVAILABLE / DENIED): nothing is written and no
default coordinate is ever substituted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from accounts.models import Identity, Location, RiderStatus, Role
from accounts.validation import PermissionDenied
from store import USERS, DocumentStore

logger = logging.getLogger(__name__)


class SensorState(str, Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"  # no sensor / no fix
    DENIED = "denied"  # user refused the permission


class GeolocationUnavailable(Exception):
    """Raised by a sensor that cannot produce a fix."""

    def __init__(self, message: str = "Geolocation unavailable", denied: bool = False):
        self.denied = denied
        super().__init__(message)


class LocationReporter:
    """
    Writes sensor fixes for one rider. `sensor` is any object with a read()
    method returning (lat, lng) or raising GeolocationUnavailable.
    """

    def __init__(self, store: DocumentStore, rider: Identity, sensor=None):
        if rider.role != Role.RIDER:
            raise PermissionDenied("Only riders report fleet telemetry", field="role")
        self.store = store
        self.rider = rider
        self.sensor = sensor
        self.state = SensorState.UNKNOWN
        self.last_location: Optional[Location] = None

    def poll(self) -> SensorState:
        """Read the sensor once and report the fix, if any."""
        if self.sensor is None:
            return self._unavailable(SensorState.UNAVAILABLE, "no geolocation sensor")
        try:
            lat, lng = self.sensor.read()
        except GeolocationUnavailable as exc:
            return self._unavailable(SensorState.DENIED if exc.denied else SensorState.UNAVAILABLE, str(exc))
        return self.report(lat, lng)

    def report(self, lat: float, lng: float) -> SensorState:
        location = Location(lat=float(lat), lng=float(lng))
        self.store.update(USERS, self.rider.id, {"location": location.to_document()})
        self.last_location = location
        self.state = SensorState.AVAILABLE
        return self.state

    def set_status(self, status: RiderStatus) -> None:
        self.store.update(USERS, self.rider.id, {"riderStatus": RiderStatus(status).value})

    def _unavailable(self, state: SensorState, reason: str) -> SensorState:
        if self.state != state:
            logger.info(f"Rider {self.rider.id} location {state.value}: {reason}")
        self.state = state
        return state
