"""
Purpose: Local sequencing heuristic used when the routing provider's optimizer
is unavailable.

Greedy nearest neighbour with the pickup-before-delivery constraint:
repeatedly visit the closest unvisited stop (straight-line distance from the
current position), never choosing a delivery while one of its order's pickups
is still unvisited. Degraded but always precedence-valid.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from routing.geo import GeoPoint, haversine_m
from ..models import Stop


def greedy_nearest_neighbor(origin: GeoPoint, stops: Sequence[Stop]) -> List[Stop]:
    remaining = list(range(len(stops)))
    result: List[Stop] = []
    current = origin

    while remaining:
        best_index = -1
        best_distance = math.inf

        for index in remaining:
            stop = stops[index]

            if stop.is_delivery and _has_pending_pickup(stops, remaining, stop):
                continue

            distance = haversine_m(current, stop.point)
            if distance < best_distance:
                best_distance = distance
                best_index = index

        if best_index == -1:
            # unreachable with well-formed input; keep the rest in input order
            result.extend(stops[index] for index in remaining)
            break

        chosen = stops[best_index]
        result.append(chosen)
        remaining.remove(best_index)
        current = chosen.point

    return result


def _has_pending_pickup(stops: Sequence[Stop], remaining: List[int], delivery: Stop) -> bool:
    for index in remaining:
        candidate = stops[index]
        if candidate.is_pickup and any(order_id in candidate.order_ids for order_id in delivery.order_ids):
            return True
    return False
