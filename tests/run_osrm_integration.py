import asyncio

from orders.models import Stop, StopType
from orders.sequencing import sequence_stops
from routing.geo import GeoPoint
from routing.osrm_client import OSRMClient
from routing.route_service import OSRMRoutingProvider
from tracking.models import TrackingSample
from routing.eta_service import estimate_eta_seconds


async def main():
    provider = OSRMRoutingProvider(OSRMClient(profile="driving", timeout=10))

    origin = GeoPoint(52.517037, 13.388860)
    destination = GeoPoint(52.529407, 13.397634)

    stops = [
        Stop(trip_id="t1", stop_type=StopType.DELIVERY, point=GeoPoint(52.525000, 13.410000), sequence_order=0, order_ids=("o1",)),
        Stop(trip_id="t1", stop_type=StopType.PICKUP, point=GeoPoint(52.518000, 13.389500), sequence_order=1, order_ids=("o1",)),
        Stop(trip_id="t1", stop_type=StopType.PICKUP, point=GeoPoint(52.515800, 13.386000), sequence_order=2, order_ids=("o2",)),
        Stop(trip_id="t1", stop_type=StopType.DELIVERY, point=GeoPoint(52.522000, 13.395000), sequence_order=3, order_ids=("o2",)),
    ]

    result = await sequence_stops(origin, destination, stops, provider)
    if not result.ok:
        print(f"Sequencing failed: {result.reason}")
        return

    route = result.route
    print(f"\nStrategy: {route.strategy.value}, {route.total_distance_km} km, {route.total_duration_minutes} min\n")
    for sequenced in route.stops:
        stop = sequenced.stop
        print(
            f"{sequenced.sequence_order}: {stop.stop_type.value} {stop.order_ids} "
            f"@ {stop.point.lat:.5f},{stop.point.lng:.5f} | arrives +{sequenced.estimated_arrival_s:.0f}s"
        )

    # ETA from a rider halfway along to the last stop
    sample = TrackingSample(trip_id="t1", point=GeoPoint(52.520000, 13.392000), speed_kmh=25.0)
    eta_route = await provider.route([sample.point, route.stops[-1].stop.point], geometry=False)
    eta = estimate_eta_seconds(eta_route.distance_m, eta_route.duration_s, sample.speed_kmh)
    print(f"\nETA to final stop: {eta}s ({eta_route.distance_m:.0f}m remaining)")


if __name__ == "__main__":
    asyncio.run(main())
