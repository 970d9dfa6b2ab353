import asyncio
import os
import time
from datetime import datetime, timezone
from typing import Dict, List

import pandas as pd

from dispatch.matcher import find_matching_trips
from dispatch.state_machines.trip_state import CapacityError
from orders.models import Order, OrderItem, OrderStatus
from routing.geo import GeoPoint
from routing.geofence import PolylineProximityOracle
from routing.osrm_client import OSRMClient
from routing.route_service import OSRMRoutingProvider, RoutingProviderError
from trips.models import Rider, Trip
from trips.service import build_stops_from_orders, optimize_trip_route, reserve_trip_capacity
from trips.store import InMemoryTripStore

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


async def load_trips(store: InMemoryTripStore, provider: OSRMRoutingProvider, filepath="trips_generated.csv") -> List[Trip]:
    df = pd.read_csv(os.path.join(BASE_DIR, filepath))
    trips = []

    for row in df.itertuples(index=False):
        store.add_rider(Rider(id=row.rider_id, name=row.rider_name, rating_avg=float(row.rating_avg)))

        origin = GeoPoint(float(row.origin_lat), float(row.origin_lon))
        destination = GeoPoint(float(row.destination_lat), float(row.destination_lon))

        # the trip's corridor is the road route OSRM would drive
        try:
            route = await provider.route([origin, destination])
        except RoutingProviderError as exc:
            print(f"[SKIP] Trip {row.trip_id}: no route ({exc})")
            continue

        trip = Trip(
            id=row.trip_id,
            rider_id=row.rider_id,
            origin=origin,
            destination=destination,
            departure_at=datetime.fromisoformat(row.departure_at),
            available_capacity_kg=float(row.available_capacity_kg),
            remaining_capacity_kg=float(row.remaining_capacity_kg),
            route=route.geometry,
            origin_name=row.origin_name,
            destination_name=row.destination_name,
        )
        store.add_trip(trip)
        trips.append(trip)
    return trips


def load_orders(filepath="order_items_generated.csv", limit=50) -> List[Order]:
    df = pd.read_csv(os.path.join(BASE_DIR, filepath))
    orders = []

    for order_id, items in df.groupby("order_id", sort=True):
        if len(orders) >= limit:
            break
        first = items.iloc[0]
        orders.append(
            Order(
                id=order_id,
                delivery_point=GeoPoint(float(first["delivery_lat"]), float(first["delivery_lon"])),
                delivery_address=first["delivery_address"],
                items=[
                    OrderItem(
                        id=item["item_id"],
                        farmer_id=item["farmer_id"],
                        pickup_point=GeoPoint(float(item["pickup_lat"]), float(item["pickup_lon"])),
                        quantity_kg=float(item["quantity_kg"]),
                    )
                    for _, item in items.iterrows()
                ],
            )
        )
    return orders


async def run_simulation():
    print("=== STARTING END-TO-END MATCHING SIMULATION ===")

    # 1. Configure System
    provider = OSRMRoutingProvider(OSRMClient(profile="driving", timeout=10))
    store = InMemoryTripStore()
    oracle = PolylineProximityOracle(store)

    # 2. Load Data
    trips = await load_trips(store, provider)
    orders = load_orders(limit=50)
    print(f"Loaded {len(trips)} Trips and {len(orders)} Orders.\n")

    # 3. Step 1: Match every order against the scheduled trips
    print("Matching orders to trips...")
    start_time = time.time()
    rows: List[Dict] = []
    assigned_trip_ids = set()

    for order in orders:
        result = await find_matching_trips(
            order.pickup_points(),
            order.delivery_point,
            order.total_weight_kg,
            store=store,
            oracle=oracle,
        )
        if not result.ok:
            print(f"[ERROR] Order {order.id}: {result.error}")
            continue

        full_matches = [match for match in result.ranked_trips if match.covers_all_pickups]
        if not full_matches:
            rows.append({"order_id": order.id, "trip_id": None, "candidates": len(result.ranked_trips), "covers_all": False})
            print(f"[NO MATCH] Order {order.id} -> {len(result.ranked_trips)} partial candidates")
            continue

        # Simulation: the best ranked rider always accepts.
        winner = full_matches[0]
        try:
            await reserve_trip_capacity(store, winner.trip_id, order.total_weight_kg)
        except CapacityError as exc:
            print(f"[FAILED] Order {order.id} -> {winner.trip_id}: {exc}")
            continue

        order.trip_id = winner.trip_id
        order.status = OrderStatus.MATCHED
        store.add_order(order)
        assigned_trip_ids.add(winner.trip_id)

        rows.append({"order_id": order.id, "trip_id": winner.trip_id, "candidates": len(result.ranked_trips), "covers_all": True})
        print(f"[SUCCESS] Order {order.id} ({order.total_weight_kg:.1f}kg) -> Trip {winner.trip_id} ({winner.rider_name}, {winner.rider_rating})")

    print(f"Matched in {time.time() - start_time:.2f}s.\n")

    # 4. Step 2: Build and optimize the stop sequence of every trip that got orders
    print("Optimizing trip routes...")
    plans: List[Dict] = []
    for trip_id in sorted(assigned_trip_ids):
        trip = await store.get_trip(trip_id)
        await build_stops_from_orders(store, trip_id)
        result = await optimize_trip_route(store, provider, trip_id, rider_id=trip.rider_id, now=datetime.now(timezone.utc))

        if not result.ok:
            print(f"[FAILED] Trip {trip_id}: {result.reason}")
            continue

        route = result.route
        sequence = " -> ".join(f"{s.stop.stop_type.value}({','.join(s.stop.order_ids)})" for s in route.stops)
        print(f"Trip {trip_id} [{route.strategy.value}] {route.total_distance_km} km, {route.total_duration_minutes} min: {sequence}")
        plans.append({
            "trip_id": trip_id,
            "strategy": route.strategy.value,
            "stops": len(route.stops),
            "total_distance_km": route.total_distance_km,
            "total_duration_minutes": route.total_duration_minutes,
        })

    # 5. Save results next to the project root
    pd.DataFrame(rows).to_csv(os.path.join(BASE_DIR, "matching_results.csv"), index=False)
    pd.DataFrame(plans).to_csv(os.path.join(BASE_DIR, "route_plans.csv"), index=False)

    matched = sum(1 for row in rows if row["trip_id"])
    print("\n=== SIMULATION COMPLETE ===")
    print(f"Orders Matched: {matched} / {len(orders)}")
    print(f"Trips Optimized: {len(plans)} / {len(assigned_trip_ids)}")
    print("Results written to 'matching_results.csv' and 'route_plans.csv'.")


if __name__ == "__main__":
    asyncio.run(run_simulation())
