"""
Purpose: Central configuration for live rider tracking.
What it does:

Stores the timing knobs of the tracking estimator:

STALE_THRESHOLD_S = 30 (no position for this long -> "stale")

ETA_THROTTLE_S = 15 (at most one ETA recomputation per window)

MOVING_SPEED_THRESHOLD_KMH = 5 (above: ETA from live speed, below: provider duration)

STALE_CHECK_INTERVAL_S = 5 (how often staleness is re-evaluated)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TrackingPolicy:
    stale_threshold_s: float = 30.0
    eta_throttle_s: float = 15.0
    moving_speed_threshold_kmh: float = 5.0
    stale_check_interval_s: float = 5.0

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.stale_threshold_s <= 0:
            raise ValueError("stale_threshold_s must be > 0")
        if self.eta_throttle_s < 0:
            raise ValueError("eta_throttle_s must be >= 0")
        if self.moving_speed_threshold_kmh < 0:
            raise ValueError("moving_speed_threshold_kmh must be >= 0")
        if self.stale_check_interval_s <= 0:
            raise ValueError("stale_check_interval_s must be > 0")
        if self.stale_check_interval_s > self.stale_threshold_s:
            raise ValueError("stale_check_interval_s must be <= stale_threshold_s")


def default_tracking_policy() -> TrackingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = TrackingPolicy()
    p.validate()
    return p
