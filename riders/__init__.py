"""
Riders / fleet telemetry package.

Public API:
- FleetTelemetrySynchronizer, Marker, FleetDelta, rider_location_query
- LocationReporter, SensorState, GeolocationUnavailable
"""
from .geolocation import GeolocationUnavailable, LocationReporter, SensorState
from .telemetry import FleetDelta, FleetTelemetrySynchronizer, Marker, rider_location_query

__all__ = [
    "GeolocationUnavailable",
    "LocationReporter",
    "SensorState",
    "FleetDelta",
    "FleetTelemetrySynchronizer",
    "Marker",
    "rider_location_query",
]
