"""
Purpose: Data models for live rider tracking.
What it does:
- TrackingSample: one timestamped rider position on a trip (append-only stream)
- TripRouteData: the route snapshot fetched once when tracking starts
- RiderTrackingState: what the order-tracking view renders
- TrackingPhase: loading -> live, loading -> error
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from routing.geo import GeoPoint, Polyline


class TrackingPhase(str, Enum):
    LOADING = "loading"
    LIVE = "live"
    ERROR = "error"


@dataclass(frozen=True)
class TrackingSample:
    trip_id: str
    point: GeoPoint
    speed_kmh: Optional[float] = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class TripRouteData:
    trip_id: str
    rider_id: str
    origin: GeoPoint
    destination: GeoPoint
    route: Optional[Polyline]
    status: str
    origin_name: str = ""
    destination_name: str = ""


@dataclass
class RiderTrackingState:
    rider_location: Optional[TrackingSample] = None
    trip_route: Optional[TripRouteData] = None
    eta_seconds: Optional[int] = None
    remaining_distance_m: Optional[float] = None
    is_stale: bool = False
    loading: bool = True
    error: Optional[str] = None

    @property
    def phase(self) -> TrackingPhase:
        if self.error is not None:
            return TrackingPhase.ERROR
        if self.rider_location is not None:
            return TrackingPhase.LIVE
        return TrackingPhase.LOADING
