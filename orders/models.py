"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, status, matched trip, delivery point/address, items)
- OrderItem (id, farmer, pickup point, weight)
- PickupPoint (farmer id + point, the matcher's input unit)
- Stop (PICKUP/DELIVERY, point, sequence position, order ids, arrival times)

Defines enums/constants:
- OrderStatus = pending | matched | picked_up | in_transit | delivered | cancelled
- StopType = pickup | delivery

Rule: No routing calls, no sequencing logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple
import uuid

from routing.geo import GeoPoint


class OrderStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


#orders a rider is still carrying out; these produce stops on the trip
ACTIVE_ORDER_STATUSES = (OrderStatus.MATCHED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT)


class StopType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


@dataclass(frozen=True)
class PickupPoint:
    """One farmer's pickup location for an order."""
    farmer_id: str
    point: GeoPoint


@dataclass(frozen=True)
class OrderItem:
    id: str
    farmer_id: str
    pickup_point: Optional[GeoPoint]
    quantity_kg: float = 0.0


@dataclass
class Order:
    """
    A consumer order: one delivery point, one or more farmer pickups.
    The routing core treats it as a unit whose pickups precede its delivery.
    """
    id: str
    delivery_point: Optional[GeoPoint]
    items: List[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    trip_id: Optional[str] = None
    delivery_address: Optional[str] = None

    @property
    def total_weight_kg(self) -> float:
        return sum(item.quantity_kg for item in self.items)

    def pickup_points(self) -> List[PickupPoint]:
        """One pickup point per distinct farmer (first located item wins)."""
        seen: dict[str, PickupPoint] = {}
        for item in self.items:
            if item.pickup_point is None or item.farmer_id in seen:
                continue
            seen[item.farmer_id] = PickupPoint(farmer_id=item.farmer_id, point=item.pickup_point)
        return list(seen.values())


@dataclass
class Stop:
    """
    A pickup or delivery waypoint on a trip. For precedence constraints:
    every PICKUP carrying an order id must be sequenced before the DELIVERY
    carrying the same order id.

    A pickup merged across orders (same farmer location) carries every
    order id it serves; a delivery always carries exactly one.
    """
    trip_id: str
    stop_type: StopType
    point: GeoPoint
    sequence_order: int
    order_ids: Tuple[str, ...] = ()
    order_item_ids: List[str] = field(default_factory=list)
    address: Optional[str] = None
    address_ne: Optional[str] = None
    estimated_arrival: Optional[datetime] = None
    actual_arrival: Optional[datetime] = None
    completed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_pickup(self) -> bool:
        return self.stop_type == StopType.PICKUP

    @property
    def is_delivery(self) -> bool:
        return self.stop_type == StopType.DELIVERY
