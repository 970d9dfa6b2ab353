"""
Purpose: The sequencing "orchestrator" (single entry point).
What it does:

Coordinates the pipeline end-to-end for one trip:

- takes the trip origin, destination and an unordered set of stops

- asks the routing provider for an approximate TSP order (optimizer)

- repairs pickup-before-delivery precedence (feasibility.py)

- falls back to greedy nearest neighbour when the optimizer fails (heuristics.py)

- routes the final fixed order and derives per-stop arrival offsets

- returns an OptimizedRoute, or a SequencingResult carrying the failure reason

Typical public function signature:

- sequence_stops(origin, destination, stops, routing_provider, policy) -> SequencingResult

Rule: Engine is the only file other modules should call directly for sequencing.
"""

# orders/sequencing/engine.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from routing.geo import GeoPoint, Polyline
from routing.route_service import RouteLeg, RoutingProvider, RoutingProviderError
from ..models import Stop
from .feasibility import precedence_violations, repair_precedence
from .heuristics import greedy_nearest_neighbor
from .policy import SequencingPolicy, default_sequencing_policy

logger = logging.getLogger(__name__)

NO_STOPS = "no stops to sequence"
ROUTE_UNAVAILABLE = "route optimization unavailable, try again later"


class SequencingStrategy(str, Enum):
    SINGLE = "single"        # one stop, optimizer skipped
    OPTIMIZER = "optimizer"  # provider TSP order + precedence repair
    GREEDY = "greedy"        # local nearest-neighbour fallback


@dataclass(frozen=True)
class SequencedStop:
    stop: Stop
    sequence_order: int
    estimated_arrival_s: float  # seconds from departure


@dataclass(frozen=True)
class OptimizedRoute:
    """
    Ephemeral result of one optimization run. Never patched: a new run
    produces a new OptimizedRoute that replaces the old one wholesale.
    """
    stops: List[SequencedStop]
    total_distance_m: float
    total_duration_s: float
    legs: List[RouteLeg]
    geometry: Polyline = field(default_factory=list)
    strategy: SequencingStrategy = SequencingStrategy.OPTIMIZER

    @property
    def total_distance_km(self) -> float:
        return round(self.total_distance_m / 1000.0, 2)

    @property
    def total_duration_minutes(self) -> int:
        return int(round(self.total_duration_s / 60.0))

    def leg_summaries(self) -> List[Dict[str, float]]:
        """Legs leading into each stop, in km / minutes (the final leg to the destination is dropped)."""
        return [
            {
                "distance_km": round(leg.distance_m / 1000.0, 2),
                "duration_minutes": int(round(leg.duration_s / 60.0)),
            }
            for leg in self.legs[: len(self.stops)]
        ]


@dataclass(frozen=True)
class SequencingResult:
    """
    Either a route or the reason there is none. Callers present
    `reason` as "try again"; an empty-but-valid plan is never returned.
    """
    route: Optional[OptimizedRoute] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.route is not None


async def sequence_stops(
    origin: GeoPoint,
    destination: GeoPoint,
    stops: Sequence[Stop],
    routing_provider: RoutingProvider,
    *,
    policy: Optional[SequencingPolicy] = None,
) -> SequencingResult:
    """
    Main sequencing entry point.

    Parameters
    ----------
    origin, destination:
        Trip start and end; they bracket the stop sequence and are never reordered.
    stops:
        Unordered pickups and deliveries, each tagged with its order id(s).
    routing_provider:
        Supplies optimize_order (best effort) and route (required).
    policy:
        SequencingPolicy controlling optimizer use and the repair bound.

    Returns
    -------
    SequencingResult:
        route: OptimizedRoute with stops in visiting order, 0-based positions
        reason: set when no route could be produced
    """
    policy = policy or default_sequencing_policy()
    policy.validate()

    if not stops:
        return SequencingResult(reason=NO_STOPS)

    if len(stops) == 1:
        ordered = list(stops)
        strategy = SequencingStrategy.SINGLE
    else:
        ordered = await _optimized_order(origin, destination, stops, routing_provider, policy)
        strategy = SequencingStrategy.OPTIMIZER
        if ordered is None:
            ordered = greedy_nearest_neighbor(origin, stops)
            strategy = SequencingStrategy.GREEDY

    if policy.strict_precedence:
        violated = precedence_violations(ordered)
        if violated:
            logger.error("refusing to route a sequence that breaks precedence for orders %s", violated)
            return SequencingResult(reason=f"precedence violated for orders: {', '.join(violated)}")

    return await _route_sequence(origin, destination, ordered, routing_provider, strategy)


# -------------------------
# Internal helpers
# -------------------------

async def _optimized_order(
    origin: GeoPoint,
    destination: GeoPoint,
    stops: Sequence[Stop],
    routing_provider: RoutingProvider,
    policy: SequencingPolicy,
) -> Optional[List[Stop]]:
    """
    Provider TSP order with precedence repaired, or None when the greedy
    fallback should take over.
    """
    if not policy.use_optimizer:
        return None

    points = [origin] + [stop.point for stop in stops] + [destination]
    try:
        order = await routing_provider.optimize_order(points)
    except RoutingProviderError as exc:
        logger.warning("optimizer unavailable, falling back to greedy sequencing: %s", exc)
        return None

    last = len(points) - 1
    if sorted(order) != list(range(len(points))) or order[0] != 0 or order[-1] != last:
        logger.warning("optimizer returned a malformed order %s, falling back to greedy sequencing", order)
        return None

    # indices 1..n are stops; origin/destination stay pinned at the ends
    candidate = [stops[index - 1] for index in order[1:-1]]

    repaired = repair_precedence(candidate, policy.repair_bound(len(candidate)))
    if repaired.moves:
        logger.debug("precedence repair moved %d deliveries in %d passes", repaired.moves, repaired.iterations)

    if policy.strict_precedence and not repaired.converged and precedence_violations(repaired.stops):
        logger.warning(
            "precedence repair hit its bound after %d passes with violations left, using greedy order",
            repaired.iterations,
        )
        return None

    return repaired.stops


async def _route_sequence(
    origin: GeoPoint,
    destination: GeoPoint,
    ordered: List[Stop],
    routing_provider: RoutingProvider,
    strategy: SequencingStrategy,
) -> SequencingResult:
    points = [origin] + [stop.point for stop in ordered] + [destination]
    try:
        route = await routing_provider.route(points)
    except RoutingProviderError as exc:
        logger.error("fixed-order routing failed for %d stops: %s", len(ordered), exc)
        return SequencingResult(reason=ROUTE_UNAVAILABLE)

    if len(route.legs) != len(points) - 1:
        logger.error("routing returned %d legs for %d waypoints", len(route.legs), len(points))
        return SequencingResult(reason=ROUTE_UNAVAILABLE)

    # legs[0] = origin -> stop 0, legs[1] = stop 0 -> stop 1, ...
    sequenced: List[SequencedStop] = []
    elapsed = 0.0
    for position, (stop, leg) in enumerate(zip(ordered, route.legs)):
        elapsed += leg.duration_s
        sequenced.append(SequencedStop(stop=stop, sequence_order=position, estimated_arrival_s=elapsed))

    return SequencingResult(
        route=OptimizedRoute(
            stops=sequenced,
            total_distance_m=route.distance_m,
            total_duration_s=route.duration_s,
            legs=list(route.legs),
            geometry=list(route.geometry),
            strategy=strategy,
        )
    )
