from .trip_state import (
    CapacityError,
    TripOwnershipError,
    TripStateException,
    release_capacity,
    reserve_capacity,
    transition_trip_to_cancelled,
    transition_trip_to_completed,
    transition_trip_to_in_transit,
)
