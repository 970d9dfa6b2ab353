"""
Orders domain package.

Public API:
- Domain models: Order, OrderItem, PickupPoint, Stop, OrderStatus, StopType
- Stop building: build_trip_stops
- Sequencing entry: sequence_stops (see orders.sequencing)
"""
from .models import (
    ACTIVE_ORDER_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    PickupPoint,
    Stop,
    StopType,
)
from .stops import build_trip_stops

__all__ = ["ACTIVE_ORDER_STATUSES",
           "Order",
           "OrderItem",
           "OrderStatus",
           "PickupPoint",
           "Stop",
           "StopType",
           "build_trip_stops",
           ]
