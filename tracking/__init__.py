"""
Tracking package: live rider position, staleness and ETA for a trip.
"""

from .models import RiderTrackingState, TrackingPhase, TrackingSample, TripRouteData
from .policy import TrackingPolicy, default_tracking_policy
from .stream import InMemoryPositionStream, PositionStream, PositionStreamError, Subscription
from .estimator import RiderTrackingEstimator, subscribe_rider_tracking

__all__ = [
    "RiderTrackingState",
    "TrackingPhase",
    "TrackingSample",
    "TripRouteData",
    "TrackingPolicy",
    "default_tracking_policy",
    "InMemoryPositionStream",
    "PositionStream",
    "PositionStreamError",
    "Subscription",
    "RiderTrackingEstimator",
    "subscribe_rider_tracking",
]
