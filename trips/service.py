"""
Purpose: Trip use-cases on top of the trip store.
What it does:

- lifecycle: start / complete / cancel a trip on behalf of the acting rider
- capacity: reserve an accepted order's weight on a trip
- stops: rebuild a trip's stops from the orders matched to it
- optimization: sequence the trip's stops and persist the plan in one commit
- stop completion: mark a stop as reached

Every operation takes the acting rider explicitly; nothing here assumes a
logged-in user.

Rule: Re-optimizing the same trip concurrently is the caller's problem to
serialize. Each run replaces the previous plan wholesale.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from dispatch.state_machines.trip_state import (
    reserve_capacity,
    transition_trip_to_cancelled,
    transition_trip_to_completed,
    transition_trip_to_in_transit,
)
from orders.models import ACTIVE_ORDER_STATUSES, Stop
from orders.sequencing import SequencingPolicy, SequencingResult, sequence_stops
from orders.stops import build_trip_stops
from routing.route_service import RoutingProvider
from .models import Trip
from .store import TripStore, TripStoreError

logger = logging.getLogger(__name__)

TRIP_NOT_FOUND = "Trip not found"
NOT_TRIP_OWNER = "You can only optimize your own trips"
TRIP_CLOSED = "Completed or cancelled trips cannot be optimized"
NO_STOPS_TO_OPTIMIZE = "No stops to optimize"
PLAN_NOT_SAVED = "Optimized route could not be saved"
TRIP_UNAVAILABLE = "Could not load trip, try again later"


class TripNotFoundError(LookupError):
    pass


async def _load_trip(store: TripStore, trip_id: str) -> Trip:
    trip = await store.get_trip(trip_id)
    if trip is None:
        raise TripNotFoundError(f"trip {trip_id} not found")
    return trip


# -------------------------
# Lifecycle
# -------------------------

async def start_trip(store: TripStore, trip_id: str, *, rider_id: str) -> Trip:
    trip = transition_trip_to_in_transit(await _load_trip(store, trip_id), rider_id)
    logger.info("trip %s started by rider %s", trip.id, rider_id)
    return await store.save_trip(trip)


async def complete_trip(store: TripStore, trip_id: str, *, rider_id: str) -> Trip:
    trip = transition_trip_to_completed(await _load_trip(store, trip_id), rider_id)
    logger.info("trip %s completed by rider %s", trip.id, rider_id)
    return await store.save_trip(trip)


async def cancel_trip(store: TripStore, trip_id: str, *, rider_id: str) -> Trip:
    trip = transition_trip_to_cancelled(await _load_trip(store, trip_id), rider_id)
    logger.info("trip %s cancelled by rider %s", trip.id, rider_id)
    return await store.save_trip(trip)


async def reserve_trip_capacity(store: TripStore, trip_id: str, weight_kg: float) -> Trip:
    """
    Deduct `weight_kg` from the trip's remaining capacity.
    Raises CapacityError when it does not fit.
    """
    trip = reserve_capacity(await _load_trip(store, trip_id), weight_kg)
    return await store.save_trip(trip)


# -------------------------
# Stops
# -------------------------

async def build_stops_from_orders(store: TripStore, trip_id: str) -> List[Stop]:
    """
    Replace the trip's stops with ones derived from its active orders.
    Idempotent: running it twice leaves the same stop set (fresh ids).
    """
    await _load_trip(store, trip_id)

    orders = await store.list_orders_for_trip(trip_id, ACTIVE_ORDER_STATUSES)
    stops = build_trip_stops(trip_id, orders)

    await store.replace_stops(trip_id, stops)
    logger.info("trip %s: built %d stops from %d orders", trip_id, len(stops), len(orders))
    return stops


async def complete_trip_stop(store: TripStore, stop_id: str, now: Optional[datetime] = None) -> Stop:
    stop = await store.get_stop(stop_id)
    if stop is None:
        raise LookupError(f"stop {stop_id} not found")

    stop.completed = True
    stop.actual_arrival = now or datetime.now(timezone.utc)
    return await store.save_stop(stop)


# -------------------------
# Optimization
# -------------------------

async def optimize_trip_route(
    store: TripStore,
    routing_provider: RoutingProvider,
    trip_id: str,
    *,
    rider_id: str,
    now: Optional[datetime] = None,
    policy: Optional[SequencingPolicy] = None,
) -> SequencingResult:
    """
    Sequence the trip's current stops and persist the result.

    On success the stops get new positions and arrival estimates, and the
    trip gets the new route geometry, distance, duration and stop count, all
    in one commit_route_plan call. On failure nothing is written.
    """
    try:
        trip = await store.get_trip(trip_id)
    except TripStoreError as exc:
        logger.error("trip %s: could not load trip for optimization: %s", trip_id, exc)
        return SequencingResult(reason=TRIP_UNAVAILABLE)
    if trip is None:
        return SequencingResult(reason=TRIP_NOT_FOUND)
    if trip.rider_id != rider_id:
        return SequencingResult(reason=NOT_TRIP_OWNER)
    if trip.is_terminal:
        return SequencingResult(reason=TRIP_CLOSED)

    try:
        stops = await store.list_stops(trip_id)
    except TripStoreError as exc:
        logger.error("trip %s: could not load stops for optimization: %s", trip_id, exc)
        return SequencingResult(reason=TRIP_UNAVAILABLE)
    if not stops:
        return SequencingResult(reason=NO_STOPS_TO_OPTIMIZE)

    result = await sequence_stops(trip.origin, trip.destination, stops, routing_provider, policy=policy)
    if not result.ok:
        logger.warning("trip %s: optimization failed: %s", trip_id, result.reason)
        return result

    route = result.route
    departure = now or datetime.now(timezone.utc)

    planned: List[Stop] = []
    for sequenced in route.stops:
        stop = sequenced.stop
        stop.sequence_order = sequenced.sequence_order
        stop.estimated_arrival = departure + timedelta(seconds=sequenced.estimated_arrival_s)
        planned.append(stop)

    if len(route.geometry) >= 2:
        trip.route = list(route.geometry)
    trip.total_distance_km = route.total_distance_km
    trip.estimated_duration_minutes = route.total_duration_minutes
    trip.total_stops = len(planned)

    try:
        await store.commit_route_plan(trip, planned)
    except TripStoreError as exc:
        logger.error("trip %s: could not persist optimized route: %s", trip_id, exc)
        return SequencingResult(reason=PLAN_NOT_SAVED)

    logger.info(
        "trip %s optimized (%s): %d stops, %.2f km, %d min",
        trip_id, route.strategy.value, len(planned), route.total_distance_km, route.total_duration_minutes,
    )
    return result
