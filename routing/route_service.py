#Purpose: Route computation for downstream use.
#Returns the "actual route" information needed by:
#stop sequencing (visiting order + per-leg durations)
#map display (polyline geometry)
#live ETA (remaining distance/duration)
#It is the async capability layer the core talks to; osrm_client.py is the
#HTTP detail behind one implementation of it.

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from routing.geo import GeoPoint, Polyline
from routing.osrm_client import OSRMClient, OSRMError

logger = logging.getLogger(__name__)


class RoutingProviderError(Exception):
    """Any failure of the routing provider: network, non-OK status, malformed body."""
    pass


@dataclass(frozen=True)
class RouteLeg:
    distance_m: float
    duration_s: float


@dataclass(frozen=True)
class RouteResult:
    """
    Fixed-order route across N waypoints.
    legs[i] goes from waypoint i to waypoint i+1, so len(legs) == N - 1.
    """
    distance_m: float
    duration_s: float
    legs: List[RouteLeg]
    geometry: Polyline = field(default_factory=list)


class RoutingProvider(Protocol):
    """
    Capability interface for any routing backend (OSRM, a commercial API,
    or a local exact solver for small N).
    """

    async def optimize_order(self, points: List[GeoPoint]) -> List[int]:
        """
        Best-effort visiting order for `points` where points[0] is the start and
        points[-1] the end. Returns input indices in visiting order.
        """
        ...

    async def route(self, points: List[GeoPoint], *, geometry: bool = True) -> RouteResult:
        """Route through `points` in the given order."""
        ...


class OSRMRoutingProvider:
    """
    RoutingProvider backed by the blocking OSRMClient.

    Each HTTP call runs in a worker thread. Cancelling the awaiting task abandons the call: its eventual
    response is dropped, never delivered.
    """

    def __init__(self, osrm: Optional[OSRMClient] = None):
        self.osrm = osrm or OSRMClient()

    async def optimize_order(self, points: List[GeoPoint]) -> List[int]:
        try:
            return await asyncio.to_thread(self.osrm.compute_trip, list(points))
        except (OSRMError, ValueError) as exc:
            raise RoutingProviderError(str(exc)) from exc

    async def route(self, points: List[GeoPoint], *, geometry: bool = True) -> RouteResult:
        try:
            data = await asyncio.to_thread(self.osrm.compute_route, list(points), overview=geometry)
        except (OSRMError, ValueError) as exc:
            raise RoutingProviderError(str(exc)) from exc

        return RouteResult(
            distance_m=data["distance"],
            duration_s=data["duration"],
            legs=[RouteLeg(distance_m=leg["distance"], duration_s=leg["duration"]) for leg in data["legs"]],
            geometry=data["geometry"],
        )
