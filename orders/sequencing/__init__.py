"""
Sequencing subpackage for the Orders domain.

Public API:
- sequence_stops
- OptimizedRoute, SequencedStop, SequencingResult, SequencingStrategy
- SequencingPolicy
"""

from .engine import (
    OptimizedRoute,
    SequencedStop,
    SequencingResult,
    SequencingStrategy,
    sequence_stops,
)
from .feasibility import precedence_violations, repair_precedence, respects_precedence
from .heuristics import greedy_nearest_neighbor
from .policy import SequencingPolicy, default_sequencing_policy, offline_sequencing_policy

__all__ = [
    "sequence_stops",
    "OptimizedRoute",
    "SequencedStop",
    "SequencingResult",
    "SequencingStrategy",
    "precedence_violations",
    "repair_precedence",
    "respects_precedence",
    "greedy_nearest_neighbor",
    "SequencingPolicy",
    "default_sequencing_policy",
    "offline_sequencing_policy",
]
