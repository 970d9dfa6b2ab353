"""
Purpose: Central configuration for trip matching.
What it does:

Stores all tunable thresholds for deciding whether a trip is "on the way":

MAX_DETOUR_M = 5000 (pickup/delivery must lie within 5km of the trip route)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingPolicy:
    """
    Central configuration for order-to-trip matching.
    """

    # --- Detour threshold ---
    # Max distance (meters) between a point and a trip route for the point to be
    # considered "along the route".
    max_detour_m: float = 5000.0

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.max_detour_m <= 0:
            raise ValueError("max_detour_m must be > 0")


def default_matching_policy() -> MatchingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = MatchingPolicy()
    p.validate()
    return p
