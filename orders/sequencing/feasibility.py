# orders/sequencing/feasibility.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..models import Stop


@dataclass(frozen=True)
class RepairResult:
    """
    Output of precedence repair over a candidate stop order.
    """
    stops: List[Stop]
    moves: int
    iterations: int

    # False when the iteration bound stopped the loop while it was still moving stops
    converged: bool


def precedence_violations(stops: Sequence[Stop]) -> List[str]:
    """
    Order ids whose delivery is not strictly after every pickup carrying them.

    Feasibility constraint (precedence):
      For each order o: every PICKUP(o) must occur before DELIVERY(o)
    """
    last_pickup: Dict[str, int] = {}
    for position, stop in enumerate(stops):
        if stop.is_pickup:
            for order_id in stop.order_ids:
                last_pickup[order_id] = position

    violated: List[str] = []
    for position, stop in enumerate(stops):
        if not stop.is_delivery:
            continue
        for order_id in stop.order_ids:
            if last_pickup.get(order_id, -1) > position and order_id not in violated:
                violated.append(order_id)
    return violated


def respects_precedence(stops: Sequence[Stop]) -> bool:
    return not precedence_violations(stops)


def repair_precedence(stops: Sequence[Stop], max_iterations: Optional[int] = None) -> RepairResult:
    """
    Fix up an optimizer's visiting order so every delivery follows its pickups.

    Scans the sequence; the first delivery found ahead of the last pickup for
    its order is moved to immediately after that pickup, then the scan
    restarts (positions shifted). Stops when a full pass moves nothing or
    after `max_iterations` passes (default len(stops) ** 2).
    """
    result = list(stops)
    bound = max_iterations if max_iterations is not None else len(result) * len(result)

    moves = 0
    iterations = 0
    modified = True

    while modified and iterations < bound:
        modified = False
        iterations += 1

        for index, stop in enumerate(result):
            if not stop.is_delivery or not stop.order_ids:
                continue

            last_pickup_index = _last_pickup_index(result, stop.order_ids)
            if last_pickup_index > index:
                # after the pop the pickup sits at last_pickup_index - 1,
                # so inserting at last_pickup_index lands right behind it
                delivery = result.pop(index)
                result.insert(last_pickup_index, delivery)
                moves += 1
                modified = True
                break # restart the scan since positions shifted

    return RepairResult(stops=result, moves=moves, iterations=iterations, converged=not modified)


# -------------------------
# Internal helpers
# -------------------------

def _last_pickup_index(stops: Sequence[Stop], order_ids) -> int:
    last = -1
    for position, candidate in enumerate(stops):
        if candidate.is_pickup and any(order_id in candidate.order_ids for order_id in order_ids):
            last = position
    return last
