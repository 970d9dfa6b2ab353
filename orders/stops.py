"""
Purpose: Derive a trip's stop set from the orders matched to it.
What it does:

- one PICKUP stop per farmer per order
- pickups at the same location (6-decimal key) are merged, across orders too,
  so the rider stops once; the merged stop carries every order id it serves
- one DELIVERY stop per order, carrying all of the order's item ids

Initial sequence positions follow creation order, which already satisfies the
pickup-before-delivery rule (an order's pickups are created before its
delivery). Optimization rewrites them later.

Rule: Pure function. Persisting (and replacing prior stops) is the caller's job.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from routing.geo import GeoPoint
from .models import Order, Stop, StopType


def build_trip_stops(trip_id: str, orders: Sequence[Order]) -> List[Stop]:
    stops: List[Stop] = []
    pickup_by_location: Dict[str, Stop] = {}

    for order in orders:
        farmer_items: Dict[str, List[str]] = {}
        farmer_locations: Dict[str, GeoPoint] = {}

        #group items by farmer
        for item in order.items:
            farmer_items.setdefault(item.farmer_id, []).append(item.id)
            if item.pickup_point is not None:
                farmer_locations[item.farmer_id] = item.pickup_point

        for farmer_id, item_ids in farmer_items.items():
            location = farmer_locations.get(farmer_id)
            #items without a pickup location cannot be routed
            if location is None:
                continue

            key = location.location_key()
            existing = pickup_by_location.get(key)
            if existing is not None:
                existing.order_item_ids.extend(item_ids)
                if order.id not in existing.order_ids:
                    existing.order_ids = existing.order_ids + (order.id,)
                continue

            stop = Stop(
                trip_id=trip_id,
                stop_type=StopType.PICKUP,
                point=location,
                sequence_order=len(stops),
                order_ids=(order.id,),
                order_item_ids=list(item_ids),
            )
            pickup_by_location[key] = stop
            stops.append(stop)

        if order.delivery_point is None:
            continue

        stops.append(
            Stop(
                trip_id=trip_id,
                stop_type=StopType.DELIVERY,
                point=order.delivery_point,
                sequence_order=len(stops),
                order_ids=(order.id,),
                order_item_ids=[item.id for item in order.items],
                address=order.delivery_address,
            )
        )

    return stops
