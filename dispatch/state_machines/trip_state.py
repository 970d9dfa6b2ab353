from trips.models import Trip, TripStatus


class TripStateException(Exception):
    """Raised when an invalid trip transition is attempted."""
    pass


class TripOwnershipError(TripStateException):
    """Raised when the acting rider does not own the trip."""
    pass


class CapacityError(ValueError):
    """Raised when a reservation does not fit the trip's remaining capacity."""
    pass


def _require_owner(trip: Trip, rider_id: str, action: str) -> None:
    if trip.rider_id != rider_id:
        raise TripOwnershipError(f"Rider {rider_id} can only {action} their own trips (trip {trip.id})")


def transition_trip_to_in_transit(trip: Trip, rider_id: str) -> Trip:
    """
    Called when the rider departs. Only scheduled trips can be started.
    """
    _require_owner(trip, rider_id, "start")
    if trip.status != TripStatus.SCHEDULED:
        raise TripStateException(f"Cannot start trip {trip.id} from {trip.status.value}")

    trip.status = TripStatus.IN_TRANSIT
    return trip


def transition_trip_to_completed(trip: Trip, rider_id: str) -> Trip:
    """
    Called when the rider reaches the destination. Only in-transit trips can be completed.
    """
    _require_owner(trip, rider_id, "complete")
    if trip.status != TripStatus.IN_TRANSIT:
        raise TripStateException(f"Cannot complete trip {trip.id} from {trip.status.value}")

    trip.status = TripStatus.COMPLETED
    return trip


def transition_trip_to_cancelled(trip: Trip, rider_id: str) -> Trip:
    """
    Only a trip that has not departed can be cancelled; once cancelled or
    completed it is never resurrected.
    """
    _require_owner(trip, rider_id, "cancel")
    if trip.status != TripStatus.SCHEDULED:
        raise TripStateException(f"Cannot cancel trip {trip.id} from {trip.status.value}")

    trip.status = TripStatus.CANCELLED
    return trip


def reserve_capacity(trip: Trip, weight_kg: float) -> Trip:
    """
    Deduct an accepted order's weight from the trip's remaining capacity.
    """
    if weight_kg < 0:
        raise CapacityError("weight_kg must be >= 0")
    if trip.is_terminal:
        raise TripStateException(f"Cannot reserve capacity on {trip.status.value} trip {trip.id}")
    if weight_kg > trip.remaining_capacity_kg:
        raise CapacityError(
            f"Trip {trip.id} has {trip.remaining_capacity_kg}kg left, order needs {weight_kg}kg"
        )

    trip.remaining_capacity_kg -= weight_kg
    return trip


def release_capacity(trip: Trip, weight_kg: float) -> Trip:
    """
    Give capacity back when an order leaves the trip. Never exceeds the trip's available capacity.
    """
    if weight_kg < 0:
        raise CapacityError("weight_kg must be >= 0")

    trip.remaining_capacity_kg = min(trip.available_capacity_kg, trip.remaining_capacity_kg + weight_kg)
    return trip
