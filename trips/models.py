"""
Purpose: Core data models for the trips domain.
What it does:
Defines a rider's planned journey (Trip), its lifecycle status and the rider
profile fields the matcher ranks by, without relying on any ORM.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from routing.geo import GeoPoint, Polyline


class TripStatus(str, Enum):
    """
    scheduled -> in_transit -> completed
    scheduled -> cancelled
    Transitions are one-directional (see dispatch.state_machines.trip_state).
    """
    SCHEDULED = "scheduled"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_TRIP_STATUSES = (TripStatus.COMPLETED, TripStatus.CANCELLED)


@dataclass(frozen=True)
class Rider:
    id: str
    name: str = "Unknown"
    rating_avg: float = 0.0


@dataclass
class Trip:
    """
    A rider's trip. Owned by its rider; mutated only through the lifecycle
    transitions and through route optimization, which rewrites route,
    distance, duration and stop count together.
    """
    rider_id: str
    origin: GeoPoint
    destination: GeoPoint
    departure_at: datetime
    available_capacity_kg: float
    remaining_capacity_kg: Optional[float] = None
    status: TripStatus = TripStatus.SCHEDULED
    route: Optional[Polyline] = None
    origin_name: str = ""
    destination_name: str = ""
    total_distance_km: Optional[float] = None
    estimated_duration_minutes: Optional[int] = None
    total_stops: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = TripStatus(self.status)
        if self.remaining_capacity_kg is None:
            self.remaining_capacity_kg = self.available_capacity_kg
        self.validate()

    def validate(self) -> None:
        if self.available_capacity_kg < 0:
            raise ValueError("available_capacity_kg must be >= 0")
        if not 0 <= self.remaining_capacity_kg <= self.available_capacity_kg:
            raise ValueError(
                f"remaining_capacity_kg must be within [0, {self.available_capacity_kg}], "
                f"got {self.remaining_capacity_kg}"
            )

    @property
    def has_route(self) -> bool:
        return bool(self.route) and len(self.route) >= 2

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRIP_STATUSES
