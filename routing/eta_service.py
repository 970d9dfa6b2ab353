#Purpose: ETA estimation policy.
#Converts routing outputs (remaining road distance + provider duration) and the
#rider's reported speed into the "arrives in X" number shown to customers.
#Keeps ETA logic separate from route computation and from the tracking state.

from __future__ import annotations

from typing import Optional


def kmh_to_ms(speed_kmh: float) -> float:
    return speed_kmh * 1000.0 / 3600.0


def estimate_eta_seconds(
    remaining_distance_m: float,
    provider_duration_s: float,
    speed_kmh: Optional[float],
    *,
    moving_threshold_kmh: float = 5.0,
) -> int:
    """
    Seconds until arrival at the delivery point.

    A rider moving faster than `moving_threshold_kmh` is timed at their own
    live pace (distance / speed). A stopped or idle rider (or one whose device
    reports no speed) gets the routing provider's estimate instead.
    """
    if speed_kmh is not None and speed_kmh > moving_threshold_kmh:
        return int(round(remaining_distance_m / kmh_to_ms(speed_kmh)))
    return int(round(provider_duration_s))
