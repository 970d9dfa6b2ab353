"""
Purpose: The capacity/order store boundary.
What it does:

Defines the async CRUD surface the routing core reads and writes
(TripStore) and an in-memory implementation used by tests, scripts and
single-process deployments.

The store owns wire formats (WKT, GeoJSON, row shapes); everything crossing
this boundary is already a GeoPoint / Polyline / dataclass.

Rule: Route plans are written with commit_route_plan only, which swaps the
trip aggregate and the whole stop sequence in one step. No per-stop
re-sequencing.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Protocol, Sequence

from orders.models import Order, OrderStatus, Stop
from .models import Rider, Trip, TripStatus

if TYPE_CHECKING:
    from tracking.models import TrackingSample


class TripStoreError(Exception):
    """Backend failure while reading or writing trips, stops or orders."""
    pass


class TripStore(Protocol):

    async def list_trips(
        self,
        *,
        status: Optional[TripStatus] = None,
        min_remaining_capacity_kg: Optional[float] = None,
        rider_id: Optional[str] = None,
    ) -> List[Trip]: ...

    async def get_trip(self, trip_id: str) -> Optional[Trip]: ...

    async def save_trip(self, trip: Trip) -> Trip: ...

    async def get_rider(self, rider_id: str) -> Optional[Rider]: ...

    async def list_stops(self, trip_id: str) -> List[Stop]: ...

    async def get_stop(self, stop_id: str) -> Optional[Stop]: ...

    async def save_stop(self, stop: Stop) -> Stop: ...

    async def replace_stops(self, trip_id: str, stops: Sequence[Stop]) -> List[Stop]: ...

    async def commit_route_plan(self, trip: Trip, stops: Sequence[Stop]) -> None: ...

    async def list_orders_for_trip(self, trip_id: str, statuses: Iterable[OrderStatus]) -> List[Order]: ...

    async def latest_sample(self, trip_id: str) -> Optional[TrackingSample]: ...


class InMemoryTripStore:
    """
    Dict-backed TripStore. Every read and write copies, so callers can never
    mutate stored state behind the store's back. Methods never await
    internally, which makes each call atomic on a single event loop.
    """

    def __init__(self):
        self._trips: Dict[str, Trip] = {}
        self._riders: Dict[str, Rider] = {}
        self._stops: Dict[str, Dict[str, Stop]] = {}  # trip_id -> stop_id -> stop
        self._orders: Dict[str, Order] = {}
        self._samples: Dict[str, List[TrackingSample]] = {}

    # --- seeding helpers (sync) ---

    def add_trip(self, trip: Trip) -> Trip:
        self._trips[trip.id] = copy.deepcopy(trip)
        self._stops.setdefault(trip.id, {})
        return trip

    def add_rider(self, rider: Rider) -> Rider:
        self._riders[rider.id] = rider
        return rider

    def add_order(self, order: Order) -> Order:
        self._orders[order.id] = copy.deepcopy(order)
        return order

    def append_sample(self, sample: TrackingSample) -> None:
        self._samples.setdefault(sample.trip_id, []).append(sample)

    # --- trips ---

    async def list_trips(
        self,
        *,
        status: Optional[TripStatus] = None,
        min_remaining_capacity_kg: Optional[float] = None,
        rider_id: Optional[str] = None,
    ) -> List[Trip]:
        trips = []
        for trip in self._trips.values():
            if status is not None and trip.status != status:
                continue
            if min_remaining_capacity_kg is not None and trip.remaining_capacity_kg < min_remaining_capacity_kg:
                continue
            if rider_id is not None and trip.rider_id != rider_id:
                continue
            trips.append(copy.deepcopy(trip))
        trips.sort(key=lambda trip: trip.departure_at)
        return trips

    async def get_trip(self, trip_id: str) -> Optional[Trip]:
        trip = self._trips.get(trip_id)
        return copy.deepcopy(trip) if trip is not None else None

    async def save_trip(self, trip: Trip) -> Trip:
        trip.validate()
        self._trips[trip.id] = copy.deepcopy(trip)
        self._stops.setdefault(trip.id, {})
        return trip

    async def get_rider(self, rider_id: str) -> Optional[Rider]:
        return self._riders.get(rider_id)

    # --- stops ---

    async def list_stops(self, trip_id: str) -> List[Stop]:
        stops = [copy.deepcopy(stop) for stop in self._stops.get(trip_id, {}).values()]
        stops.sort(key=lambda stop: stop.sequence_order)
        return stops

    async def get_stop(self, stop_id: str) -> Optional[Stop]:
        for stops in self._stops.values():
            if stop_id in stops:
                return copy.deepcopy(stops[stop_id])
        return None

    async def save_stop(self, stop: Stop) -> Stop:
        stops = self._stops.get(stop.trip_id)
        if stops is None or stop.id not in stops:
            raise TripStoreError(f"stop {stop.id} does not exist on trip {stop.trip_id}")
        stops[stop.id] = copy.deepcopy(stop)
        return stop

    async def replace_stops(self, trip_id: str, stops: Sequence[Stop]) -> List[Stop]:
        if trip_id not in self._trips:
            raise TripStoreError(f"trip {trip_id} not found")
        self._stops[trip_id] = {stop.id: copy.deepcopy(stop) for stop in stops}
        return list(stops)

    async def commit_route_plan(self, trip: Trip, stops: Sequence[Stop]) -> None:
        if trip.id not in self._trips:
            raise TripStoreError(f"trip {trip.id} not found")
        trip.validate()
        # build both replacements first, then swap them in together
        new_trip = copy.deepcopy(trip)
        new_stops = {stop.id: copy.deepcopy(stop) for stop in stops}
        self._trips[trip.id] = new_trip
        self._stops[trip.id] = new_stops

    # --- orders ---

    async def list_orders_for_trip(self, trip_id: str, statuses: Iterable[OrderStatus]) -> List[Order]:
        wanted = set(statuses)
        return [
            copy.deepcopy(order)
            for order in self._orders.values()
            if order.trip_id == trip_id and order.status in wanted
        ]

    # --- tracking ---

    async def latest_sample(self, trip_id: str) -> Optional[TrackingSample]:
        samples = self._samples.get(trip_id)
        if not samples:
            return None
        return max(samples, key=lambda sample: sample.recorded_at)
