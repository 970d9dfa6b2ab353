import pandas as pd
import numpy as np
import uuid
from datetime import datetime, timezone, timedelta

# Harare, Zimbabwe
CENTER_LAT = -17.824858
CENTER_LON = 31.053028

# Market towns riders commonly drive to from Harare
DESTINATIONS = [
    ("Marondera", -18.185380, 31.551927),
    ("Chitungwiza", -18.012740, 31.075554),
    ("Norton", -17.883410, 30.700450),
    ("Bindura", -17.301920, 31.330560),
    ("Ruwa", -17.889720, 31.244720),
]


def generate_mock_trips(num_trips=40, num_riders=15, output_file="trips_generated.csv"):
    """
    Generates scheduled rider trips leaving Harare for nearby market towns,
    each with a cargo capacity and a rider rating for the matcher to rank by.
    """
    riders = []
    for rider_index in range(num_riders):
        riders.append({
            "rider_id": f"r_{str(uuid.uuid4())[:8]}",
            "rider_name": f"Rider {rider_index + 1}",
            "rating_avg": np.round(np.random.uniform(3.0, 5.0), 1),
        })

    data = []
    now = datetime.now(timezone.utc)

    for trip_index in range(num_trips):
        rider = riders[np.random.randint(0, num_riders)]
        name, dest_lat, dest_lon = DESTINATIONS[np.random.randint(0, len(DESTINATIONS))]
        capacity = float(np.random.choice([50, 100, 200, 500]))

        data.append({
            "trip_id": f"t_{str(trip_index + 1).zfill(4)}",
            "rider_id": rider["rider_id"],
            "rider_name": rider["rider_name"],
            "rating_avg": rider["rating_avg"],
            # origins scattered ~2km around the city centre
            "origin_lat": np.round(CENTER_LAT + np.random.uniform(-0.02, 0.02), 6),
            "origin_lon": np.round(CENTER_LON + np.random.uniform(-0.02, 0.02), 6),
            "origin_name": "Harare",
            "destination_lat": dest_lat,
            "destination_lon": dest_lon,
            "destination_name": name,
            "departure_at": (now + timedelta(hours=int(np.random.randint(1, 48)))).isoformat(),
            "available_capacity_kg": capacity,
            "remaining_capacity_kg": np.round(capacity * np.random.uniform(0.3, 1.0), 1),
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_trips} trips for {num_riders} riders and saved to '{output_file}'")

    print("\nTrips per destination:")
    for name, count in df["destination_name"].value_counts().items():
        print(f"  {name}: {count} trips")
    return df


def generate_mock_orders(num_orders=200, num_farmers=60, output_file="order_items_generated.csv"):
    """
    Generates order line items. Each order has one delivery point near a
    destination town and one to three farmers along the road out of Harare,
    so that some trips cover every pickup and some only part of them.
    One row per item; rows sharing an order_id form one order.
    """
    farmers = []
    for farmer_index in range(num_farmers):
        name, dest_lat, dest_lon = DESTINATIONS[farmer_index % len(DESTINATIONS)]
        # somewhere between the city and the town, jittered off the straight line
        t = np.random.uniform(0.1, 0.9)
        farmers.append({
            "farmer_id": f"f_{str(uuid.uuid4())[:8]}",
            "corridor": name,
            "lat": CENTER_LAT + t * (dest_lat - CENTER_LAT) + np.random.uniform(-0.04, 0.04),
            "lon": CENTER_LON + t * (dest_lon - CENTER_LON) + np.random.uniform(-0.04, 0.04),
        })

    data = []
    for order_index in range(num_orders):
        order_id = f"o_{str(order_index + 1).zfill(6)}"
        name, dest_lat, dest_lon = DESTINATIONS[np.random.randint(0, len(DESTINATIONS))]
        corridor_farmers = [farmer for farmer in farmers if farmer["corridor"] == name]

        delivery_lat = dest_lat + np.random.uniform(-0.02, 0.02)
        delivery_lon = dest_lon + np.random.uniform(-0.02, 0.02)

        farmer_count = min(len(corridor_farmers), int(np.random.randint(1, 4)))
        chosen = np.random.choice(len(corridor_farmers), size=farmer_count, replace=False)

        for item_index, farmer_pos in enumerate(chosen):
            farmer = corridor_farmers[farmer_pos]
            data.append({
                "order_id": order_id,
                "item_id": f"{order_id}_i{item_index + 1}",
                "farmer_id": farmer["farmer_id"],
                "pickup_lat": np.round(farmer["lat"], 6),
                "pickup_lon": np.round(farmer["lon"], 6),
                "delivery_lat": np.round(delivery_lat, 6),
                "delivery_lon": np.round(delivery_lon, 6),
                "delivery_address": f"{np.random.randint(1, 200)} Market Rd, {name}",
                "quantity_kg": np.round(np.random.uniform(2.0, 25.0), 1),
            })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"✅ Generated {num_orders} orders ({len(df)} items) and saved to '{output_file}'")

    print("\nFarmers per order:")
    for farmer_count, orders in df.groupby("order_id")["farmer_id"].nunique().value_counts().sort_index().items():
        print(f"  {farmer_count} farmer(s): {orders} orders")
    return df


if __name__ == "__main__":
    generate_mock_trips(num_trips=40, num_riders=15)
    generate_mock_orders(num_orders=200, num_farmers=60)
