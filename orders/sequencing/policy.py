"""
Purpose: Central configuration for stop sequencing behavior (single source of truth).
What it does:

Stores the tunable knobs of the sequencer:

USE_OPTIMIZER = True (ask the routing provider's TSP endpoint first)

MAX_REPAIR_ITERATIONS = None (None -> len(stops) ** 2)

STRICT_PRECEDENCE = True (never route a sequence that breaks pickup-before-delivery)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SequencingPolicy:
    """
    Central configuration for route sequencing.

    Notes:
    - the repair loop is a safety valve, not a proof of convergence; with
      strict_precedence a residual violation switches to the greedy order
      (valid by construction) and a final check refuses to route anything
      that still breaks precedence.
    """

    # Ask the routing provider for an approximate TSP order before falling back.
    use_optimizer: bool = True

    # Upper bound on precedence-repair passes. None means len(stops) ** 2.
    max_repair_iterations: Optional[int] = None

    # Check the invariant after repair and before routing.
    strict_precedence: bool = True

    def repair_bound(self, stop_count: int) -> int:
        if self.max_repair_iterations is not None:
            return self.max_repair_iterations
        return stop_count * stop_count

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.max_repair_iterations is not None and self.max_repair_iterations < 1:
            raise ValueError("max_repair_iterations must be >= 1")


def default_sequencing_policy() -> SequencingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = SequencingPolicy()
    p.validate()
    return p


def offline_sequencing_policy() -> SequencingPolicy:
    """
    Skip the TSP endpoint entirely (e.g. a routing backend without /trip).
    Sequencing goes straight to the greedy heuristic.
    """
    p = SequencingPolicy(use_optimizer=False)
    p.validate()
    return p
