import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set, Tuple, Union

import pytest

from orders.models import Stop, StopType
from routing.geo import GeoPoint, haversine_m
from routing.geofence import GeoProximityError
from routing.route_service import RouteLeg, RouteResult, RoutingProviderError
from tracking.stream import InMemoryPositionStream
from trips.models import Rider, Trip
from trips.store import InMemoryTripStore

# A straight east-west corridor (~53 km) used by most scenarios.
ROUTE_START = GeoPoint(-17.80, 31.00)
ROUTE_END = GeoPoint(-17.80, 31.50)
DEPARTURE = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)

RIDER_SPEED_MS = 10.0


def corridor(points: int = 11) -> List[GeoPoint]:
    step = (ROUTE_END.lng - ROUTE_START.lng) / (points - 1)
    return [GeoPoint(ROUTE_START.lat, round(ROUTE_START.lng + i * step, 6)) for i in range(points)]


def make_trip(trip_id: str, rider_id: str = "rider-1", capacity: float = 100.0, **kwargs) -> Trip:
    return Trip(
        id=trip_id,
        rider_id=rider_id,
        origin=kwargs.pop("origin", ROUTE_START),
        destination=kwargs.pop("destination", ROUTE_END),
        departure_at=kwargs.pop("departure_at", DEPARTURE),
        available_capacity_kg=capacity,
        route=kwargs.pop("route", corridor()),
        **kwargs,
    )


def make_stop(stop_type: StopType, point: GeoPoint, *order_ids: str, trip_id: str = "trip-1", stop_id: str = None) -> Stop:
    stop = Stop(trip_id=trip_id, stop_type=stop_type, point=point, sequence_order=0, order_ids=tuple(order_ids))
    if stop_id:
        stop.id = stop_id
    return stop


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRoutingProvider:
    """
    Routing provider with scripted answers.

    optimize: list of indices, a callable(points) -> indices, or an exception to raise.
    route_error: exception raised by route().
    manual_routes: when True every route() call parks on a future in `pending`
                   until the test resolves it.
    ignore_cancel: with manual_routes, a cancelled route() call keeps waiting
                   and still answers once its future is resolved (a backend
                   that cannot abort an in-flight request).
    """

    def __init__(
        self,
        optimize: Union[List[int], Callable, Exception, None] = None,
        route_error: Optional[Exception] = None,
        manual_routes: bool = False,
        leg_count_delta: int = 0,
        ignore_cancel: bool = False,
    ):
        self.optimize = optimize
        self.route_error = route_error
        self.manual_routes = manual_routes
        self.leg_count_delta = leg_count_delta
        self.ignore_cancel = ignore_cancel
        self.optimize_calls: List[List[GeoPoint]] = []
        self.route_calls: List[List[GeoPoint]] = []
        self.pending: List[Tuple[List[GeoPoint], asyncio.Future]] = []

    async def optimize_order(self, points):
        self.optimize_calls.append(list(points))
        if isinstance(self.optimize, Exception):
            raise self.optimize
        if callable(self.optimize):
            return list(self.optimize(points))
        if self.optimize is not None:
            return list(self.optimize)
        return list(range(len(points)))

    async def route(self, points, *, geometry=True):
        self.route_calls.append(list(points))
        if self.manual_routes:
            future = asyncio.get_running_loop().create_future()
            self.pending.append((list(points), future))
            if not self.ignore_cancel:
                return await future
            while True:
                try:
                    return await asyncio.shield(future)
                except asyncio.CancelledError:
                    continue
        if isinstance(self.route_error, Exception):
            raise self.route_error
        return straight_line_route(points, extra_legs=self.leg_count_delta)


def straight_line_route(points, extra_legs: int = 0) -> RouteResult:
    legs = []
    for a, b in zip(points[:-1], points[1:]):
        distance = haversine_m(a, b)
        legs.append(RouteLeg(distance_m=distance, duration_s=distance / RIDER_SPEED_MS))
    if extra_legs < 0:
        legs = legs[:extra_legs]
    return RouteResult(
        distance_m=sum(leg.distance_m for leg in legs),
        duration_s=sum(leg.duration_s for leg in legs),
        legs=legs,
        geometry=list(points),
    )


class FakeOracle:
    """
    Proximity oracle answering from explicit sets.

    near: {(trip_id, location_key)} pairs considered on the route.
    failing: {(trip_id, location_key)} pairs that raise GeoProximityError.
    fractions: {location_key: fraction} for fraction_along_route.
    """

    def __init__(self, near: Set[Tuple[str, str]] = None, failing: Set[Tuple[str, str]] = None, fractions=None):
        self.near = near or set()
        self.failing = failing or set()
        self.fractions = fractions or {}
        self.calls: List[Tuple[str, str]] = []

    async def is_near_route(self, trip_id, point, max_distance_m):
        key = (trip_id, point.location_key())
        self.calls.append(key)
        await asyncio.sleep(0)
        if key in self.failing:
            raise GeoProximityError(f"no route for {trip_id}")
        return key in self.near

    async def fraction_along_route(self, trip_id, point):
        if (trip_id, point.location_key()) in self.failing:
            raise GeoProximityError(f"no route for {trip_id}")
        return self.fractions[point.location_key()]


@pytest.fixture
def store():
    trip_store = InMemoryTripStore()
    trip_store.add_rider(Rider(id="rider-1", name="Tendai", rating_avg=4.2))
    trip_store.add_rider(Rider(id="rider-2", name="Nyasha", rating_avg=4.9))
    return trip_store


@pytest.fixture
def stream():
    return InMemoryPositionStream()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def routing_error():
    return RoutingProviderError("routing backend down")
