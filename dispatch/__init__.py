#Expose the high-level matching pieces:
#Candidate filtering (hard rules)
#Scoring / ranking
#Matcher orchestrator (the "one call" entry point)

from .candidate_filter import build_base_candidates
from .scoring import RankedTrip, rank_candidates
from .policy import MatchingPolicy, default_matching_policy
from .matcher import (
    MatchResult,
    PickupSequenceEntry,
    PickupSequenceResult,
    compute_pickup_sequence,
    find_matching_trips, #the main function to call to match an order to trips
)

__all__ = [
    "build_base_candidates",
    "RankedTrip",
    "rank_candidates",
    "MatchingPolicy",
    "default_matching_policy",
    "MatchResult",
    "PickupSequenceEntry",
    "PickupSequenceResult",
    "compute_pickup_sequence",
    "find_matching_trips",
]
