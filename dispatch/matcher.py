"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts an order's farmer pickups, delivery point and total weight, pulls the
schedulable trips from the store, asks the geo-proximity oracle which of them
pass near the delivery point and which pickups they cover, and returns the
surviving trips ranked.

Every proximity check for every trip runs concurrently; a trip's decision is
only taken once all of its own checks have finished.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from orders.models import PickupPoint
from routing.geo import GeoPoint
from routing.geofence import GeoProximityOracle
from trips.models import Trip, TripStatus
from trips.store import TripStore, TripStoreError
from .candidate_filter import build_base_candidates
from .policy import MatchingPolicy, default_matching_policy
from .scoring import RankedTrip, rank_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    ranked_trips: List[RankedTrip] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PickupSequenceEntry:
    farmer_id: str
    sequence: int  # 1-based position along the route


@dataclass(frozen=True)
class PickupSequenceResult:
    entries: List[PickupSequenceEntry] = field(default_factory=list)
    reason: Optional[str] = None  # set when the input order was used as a fallback


def _validate_request(pickup_points: Sequence[PickupPoint], total_weight_kg) -> Optional[str]:
    if not pickup_points:
        return "At least one pickup point is required"
    if isinstance(total_weight_kg, bool) or not isinstance(total_weight_kg, (int, float)):
        return "total_weight_kg must be a number"
    if total_weight_kg != total_weight_kg or total_weight_kg < 0:
        return "total_weight_kg must be a non-negative number"
    return None


async def _near_route(oracle: GeoProximityOracle, trip_id: str, point: GeoPoint, max_distance_m: float) -> bool:
    """
    One oracle query. Any failure, timeouts included, means "not covered".
    """
    try:
        return await oracle.is_near_route(trip_id, point, max_distance_m)
    except Exception as exc:
        logger.warning("proximity check failed for trip %s at %s: %s", trip_id, point.location_key(), exc)
        return False


async def _evaluate_trip(
    trip: Trip,
    pickup_points: Sequence[PickupPoint],
    delivery_point: GeoPoint,
    *,
    store: TripStore,
    oracle: GeoProximityOracle,
    policy: MatchingPolicy,
) -> Optional[RankedTrip]:
    if not await _near_route(oracle, trip.id, delivery_point, policy.max_detour_m):
        logger.debug("trip %s rejected: delivery point off route", trip.id)
        return None

    coverage = await asyncio.gather(
        *(_near_route(oracle, trip.id, pickup.point, policy.max_detour_m) for pickup in pickup_points)
    )
    covered = [pickup.farmer_id for pickup, near in zip(pickup_points, coverage) if near]
    if not covered:
        logger.debug("trip %s rejected: covers no pickup", trip.id)
        return None

    rider = await store.get_rider(trip.rider_id)

    return RankedTrip(
        trip_id=trip.id,
        rider_id=trip.rider_id,
        rider_name=rider.name if rider else "Unknown",
        rider_rating=rider.rating_avg if rider else 0.0,
        departure_at=trip.departure_at,
        remaining_capacity_kg=trip.remaining_capacity_kg,
        covered_farmer_ids=covered,
        covers_all_pickups=len(covered) == len(pickup_points),
        origin_name=trip.origin_name,
        destination_name=trip.destination_name,
    )


async def find_matching_trips(
    pickup_points: Sequence[PickupPoint],
    delivery_point: GeoPoint,
    total_weight_kg: float,
    *,
    store: TripStore,
    oracle: GeoProximityOracle,
    policy: Optional[MatchingPolicy] = None,
) -> MatchResult:
    """
    Find scheduled trips that can carry an order from its farmers to its delivery point.

    Returns a MatchResult with trips ranked full coverage first, then by rider
    rating. Validation problems and store failures come back as `error`;
    nothing is raised for collaborator failures.
    """
    policy = policy or default_matching_policy()

    problem = _validate_request(pickup_points, total_weight_kg)
    if problem:
        return MatchResult(error=problem)

    try:
        trips = await store.list_trips(
            status=TripStatus.SCHEDULED,
            min_remaining_capacity_kg=total_weight_kg,
        )
    except TripStoreError as exc:
        logger.error("could not list scheduled trips: %s", exc)
        return MatchResult(error="Could not load available trips")

    candidates = build_base_candidates(trips, total_weight_kg)
    logger.info("matching %d pickups against %d candidate trips", len(pickup_points), len(candidates))

    try:
        evaluated = await asyncio.gather(
            *(
                _evaluate_trip(
                    trip,
                    pickup_points,
                    delivery_point,
                    store=store,
                    oracle=oracle,
                    policy=policy,
                )
                for trip in candidates
            )
        )
    except TripStoreError as exc:
        logger.error("could not load riders for matched trips: %s", exc)
        return MatchResult(error="Could not load available trips")

    return MatchResult(ranked_trips=rank_candidates([trip for trip in evaluated if trip is not None]))


async def compute_pickup_sequence(
    trip_id: str,
    farmer_points: Sequence[PickupPoint],
    *,
    oracle: GeoProximityOracle,
) -> PickupSequenceResult:
    """
    Order farmer pickups by how far along the trip's route they sit (1 = first).
    A single pickup needs no query. If any projection fails, the input order is kept.
    """
    if not farmer_points:
        return PickupSequenceResult()

    if len(farmer_points) == 1:
        return PickupSequenceResult(entries=[PickupSequenceEntry(farmer_points[0].farmer_id, 1)])

    try:
        fractions = await asyncio.gather(
            *(oracle.fraction_along_route(trip_id, pickup.point) for pickup in farmer_points)
        )
    except Exception as exc:
        logger.warning("pickup sequencing failed for trip %s, keeping input order: %s", trip_id, exc)
        return PickupSequenceResult(
            entries=[PickupSequenceEntry(pickup.farmer_id, i + 1) for i, pickup in enumerate(farmer_points)],
            reason=str(exc),
        )

    # sorted() is stable, so equal fractions keep input order
    ordered = sorted(zip(farmer_points, fractions), key=lambda pair: pair[1])
    return PickupSequenceResult(
        entries=[PickupSequenceEntry(pickup.farmer_id, i + 1) for i, (pickup, _) in enumerate(ordered)]
    )
