#Purpose: Ranking model (the "which trip first" layer).
#Takes trips that already cover the delivery and at least one pickup.
#Ordering rules:
#trips covering every requested pickup come before partial coverage
#within a coverage tier, higher-rated riders first (tie-break, not a filter)
#remaining ties keep a deterministic order (earlier departure, then trip id)

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence


@dataclass(frozen=True)
class RankedTrip:
    """
    A trip that can serve the order, with the pickups it covers.
    `covers_all_pickups=False` is partial coverage, not an error;
    callers decide whether partial coverage is acceptable.
    """
    trip_id: str
    rider_id: str
    rider_name: str
    rider_rating: float
    departure_at: datetime
    remaining_capacity_kg: float
    covered_farmer_ids: List[str] = field(default_factory=list)
    covers_all_pickups: bool = False
    origin_name: str = ""
    destination_name: str = ""


def rank_candidates(candidates: Sequence[RankedTrip]) -> List[RankedTrip]:
    return sorted(
        candidates,
        key=lambda candidate: (
            not candidate.covers_all_pickups,
            -candidate.rider_rating,
            candidate.departure_at,
            candidate.trip_id,
        ),
    )
