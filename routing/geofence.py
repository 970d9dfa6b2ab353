#Purpose: Route-corridor geofencing (the Geo-Proximity Oracle).
#Answers two questions about a trip's stored route geometry:
#is a point "on the way" (within the detour threshold of the line)?
#where along the route does the point project (0 = origin, 1 = destination)?
#Typical backing: a geospatial store's line-distance / line-locate primitives.
#This module ships the interface plus a local implementation that computes the
#same answers from the polyline held by the trip store.

from __future__ import annotations

import logging
from typing import Protocol

from routing.geo import GeoPoint, project_onto_polyline

logger = logging.getLogger(__name__)


class GeoProximityError(Exception):
    """The oracle could not answer (unknown trip, no route, backend failure)."""
    pass


class GeoProximityOracle(Protocol):
    """
    Callers must treat any raised error as "not covered" (fail closed).
    """

    async def is_near_route(self, trip_id: str, point: GeoPoint, max_distance_m: float) -> bool:
        ...

    async def fraction_along_route(self, trip_id: str, point: GeoPoint) -> float:
        ...


class PolylineProximityOracle:
    """
    Geo-proximity oracle computed in-process from the trip's route polyline.

    Args:
        store: any trip store exposing `async get_trip(trip_id)` returning a
               trip with a `.route` polyline (or None).
    """

    def __init__(self, store):
        self.store = store

    async def _route_for(self, trip_id: str):
        trip = await self.store.get_trip(trip_id)
        if trip is None:
            raise GeoProximityError(f"trip {trip_id} not found")
        #fail closed: a trip with no (or degenerate) route cannot cover anything
        if not trip.route:
            raise GeoProximityError(f"trip {trip_id} has no route geometry")
        return trip.route

    async def is_near_route(self, trip_id: str, point: GeoPoint, max_distance_m: float) -> bool:
        route = await self._route_for(trip_id)
        projection = project_onto_polyline(point, route)
        logger.debug(
            "trip %s: point %s is %.0fm from route (threshold %.0fm)",
            trip_id, point.location_key(), projection.distance_m, max_distance_m,
        )
        return projection.distance_m <= max_distance_m

    async def fraction_along_route(self, trip_id: str, point: GeoPoint) -> float:
        route = await self._route_for(trip_id)
        return project_onto_polyline(point, route).fraction
