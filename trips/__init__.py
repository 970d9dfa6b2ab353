"""
Trips package: rider trips, the trip store boundary and trip use-cases.
"""

from .models import TERMINAL_TRIP_STATUSES, Rider, Trip, TripStatus
from .store import InMemoryTripStore, TripStore, TripStoreError
from .service import (
    TripNotFoundError,
    build_stops_from_orders,
    cancel_trip,
    complete_trip,
    complete_trip_stop,
    optimize_trip_route,
    reserve_trip_capacity,
    start_trip,
)

__all__ = [
    "TERMINAL_TRIP_STATUSES",
    "Rider",
    "Trip",
    "TripStatus",
    "InMemoryTripStore",
    "TripStore",
    "TripStoreError",
    "TripNotFoundError",
    "build_stops_from_orders",
    "cancel_trip",
    "complete_trip",
    "complete_trip_stop",
    "optimize_trip_route",
    "reserve_trip_capacity",
    "start_trip",
]
