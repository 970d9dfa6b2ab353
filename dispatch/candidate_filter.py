#Purpose: Non-routing hard eligibility filtering (rule gates).
#Builds the base candidate set before any geospatial check.
#Responsibilities:
#trip is still schedulable (not departed, not cancelled/completed)
#remaining cargo capacity covers the shipment weight
#trip has a route geometry to test proximity against

#Output: "rule-qualified trips" (still not covered-checked, still not ranked).

from typing import List, Sequence

from trips.models import Trip, TripStatus


def is_schedulable(trip: Trip) -> bool:
    return trip.status == TripStatus.SCHEDULED


def has_capacity_for(trip: Trip, total_weight_kg: float) -> bool:
    return trip.remaining_capacity_kg >= total_weight_kg


def build_base_candidates(trips: Sequence[Trip], total_weight_kg: float) -> List[Trip]:
    """
    Returns only trips that are scheduled, can carry `total_weight_kg`
    and have a route. Applied even when the store query already filtered.
    """
    candidates = []

    for trip in trips:
        if not is_schedulable(trip):
            continue

        if not has_capacity_for(trip, total_weight_kg):
            continue

        if not trip.has_route:
            continue

        candidates.append(trip)

    return candidates
