"""
Purpose: Live tracking estimator for one trip (what the customer's tracking view shows).
What it does:

- subscribes to the trip's position stream while loading the route snapshot
  and the latest stored position; a live sample received meanwhile wins
- follows the position stream for the trip and keeps the latest sample
- recomputes remaining distance / ETA to the delivery point, throttled
  to one request per window; a newer request cancels and supersedes the
  one in flight, so only the most recent sample's answer is ever applied
- flags the position as stale when no sample arrived for a while

Only a failed initial route fetch (or a failed subscription) is surfaced as
an error; a failed or cancelled ETA request keeps the last good ETA.

Rule: Single event loop. Stream callbacks, the staleness poller and ETA
tasks all run on it; nothing here is thread-safe.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Tuple

from routing.eta_service import estimate_eta_seconds
from routing.geo import GeoPoint
from routing.route_service import RoutingProvider, RoutingProviderError
from trips.store import TripStore, TripStoreError
from .models import RiderTrackingState, TrackingSample, TripRouteData
from .policy import TrackingPolicy, default_tracking_policy
from .stream import PositionStream, PositionStreamError, Subscription

logger = logging.getLogger(__name__)

TRIP_NOT_FOUND = "Trip not found"
ROUTE_UNAVAILABLE = "Could not load trip route"
CONNECTION_FAILED = "Live tracking connection failed. Try refreshing."


class RiderTrackingEstimator:
    """
    Args:
        trip_id: the trip being followed
        delivery_point: the customer's delivery location (ETA target); None
                        disables ETA and only tracks position
        store: trip store (route snapshot + latest stored sample)
        stream: position stream to subscribe to
        routing_provider: answers the rider -> delivery route for ETA
        policy: TrackingPolicy
        clock: monotonic seconds; injectable for tests
    """

    def __init__(
        self,
        trip_id: str,
        delivery_point: Optional[GeoPoint],
        *,
        store: TripStore,
        stream: PositionStream,
        routing_provider: RoutingProvider,
        policy: Optional[TrackingPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.trip_id = trip_id
        self.delivery_point = delivery_point
        self.store = store
        self.stream = stream
        self.routing_provider = routing_provider
        self.policy = policy or default_tracking_policy()
        self.policy.validate()
        self.clock = clock

        self.state = RiderTrackingState()

        self._last_update: Optional[float] = None
        self._last_eta_at: Optional[float] = None
        self._generation = 0
        self._eta_task: Optional[asyncio.Task] = None
        self._stale_task: Optional[asyncio.Task] = None
        self._subscription: Optional[Subscription] = None
        self._held: Optional[Tuple[TrackingSample, float]] = None  # latest sample received while loading
        self._closed = False

    # -------------------------
    # Startup / teardown
    # -------------------------

    async def start(self) -> RiderTrackingState:
        """
        Fetch the route snapshot and the latest stored position while already
        subscribed; samples arriving during the fetch are held until it ends.
        """
        route_data, latest, subscribed = await asyncio.gather(
            self._load_route(), self._load_latest_sample(), self._subscribe()
        )

        if self._closed:
            self._drop_subscription()
            return self.state

        if route_data is None:
            # _load_route recorded the error
            self._drop_subscription()
            self._held = None
            self.state.loading = False
            return self.state

        self.state.trip_route = route_data

        held, self._held = self._held, None
        if held is not None:
            # a live sample beats the stored one
            first, received_at = held
        elif latest is not None:
            first, received_at = latest, self.clock()
        else:
            first = None

        if first is not None:
            self.state.rider_location = first
            self._last_update = received_at
            #first ETA is never throttled
            self._request_eta(first, force=True)

        self.state.loading = False

        if not subscribed:
            self.state.error = CONNECTION_FAILED
            return self.state

        self._stale_task = asyncio.create_task(self._watch_staleness())
        return self.state

    async def close(self) -> None:
        """Stop listening: cancels in-flight ETA work, the staleness poller and the subscription."""
        if self._closed:
            return
        self._closed = True
        self._held = None

        self._drop_subscription()

        tasks = [task for task in (self._eta_task, self._stale_task) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _subscribe(self) -> bool:
        try:
            subscription = await self.stream.subscribe(self.trip_id, self.handle_sample)
        except PositionStreamError as exc:
            logger.error("trip %s: position stream subscription failed: %s", self.trip_id, exc)
            return False

        if self._closed:
            # close() ran while the subscription was being set up
            subscription.unsubscribe()
            return False

        self._subscription = subscription
        return True

    def _drop_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _load_route(self) -> Optional[TripRouteData]:
        try:
            trip = await self.store.get_trip(self.trip_id)
        except TripStoreError as exc:
            logger.error("trip %s: route fetch failed: %s", self.trip_id, exc)
            self.state.error = ROUTE_UNAVAILABLE
            return None

        if trip is None:
            logger.error("trip %s: not found, cannot track", self.trip_id)
            self.state.error = TRIP_NOT_FOUND
            return None

        return TripRouteData(
            trip_id=trip.id,
            rider_id=trip.rider_id,
            origin=trip.origin,
            destination=trip.destination,
            route=trip.route,
            status=trip.status.value,
            origin_name=trip.origin_name,
            destination_name=trip.destination_name,
        )

    async def _load_latest_sample(self) -> Optional[TrackingSample]:
        try:
            return await self.store.latest_sample(self.trip_id)
        except TripStoreError as exc:
            # no stored position yet is fine; live samples will fill it in
            logger.warning("trip %s: could not load latest position: %s", self.trip_id, exc)
            return None

    # -------------------------
    # Samples and ETA
    # -------------------------

    def handle_sample(self, sample: TrackingSample) -> None:
        """Stream callback. Applies the sample and (throttled) kicks off an ETA recomputation."""
        if self._closed or sample.trip_id != self.trip_id:
            return

        if self.state.loading:
            self._held = (sample, self.clock())
            return

        self.state.rider_location = sample
        self.state.is_stale = False
        self._last_update = self.clock()

        self._request_eta(sample)

    def _request_eta(self, sample: TrackingSample, force: bool = False) -> None:
        if self.delivery_point is None:
            return

        now = self.clock()
        if not force and self._last_eta_at is not None and now - self._last_eta_at < self.policy.eta_throttle_s:
            logger.debug("trip %s: ETA throttled (%.1fs since last)", self.trip_id, now - self._last_eta_at)
            return
        self._last_eta_at = now

        if self._eta_task is not None and not self._eta_task.done():
            self._eta_task.cancel()

        self._generation += 1
        self._eta_task = asyncio.create_task(self._compute_eta(sample, self._generation))

    async def _compute_eta(self, sample: TrackingSample, generation: int) -> None:
        try:
            route = await self.routing_provider.route([sample.point, self.delivery_point], geometry=False)
        except asyncio.CancelledError:
            logger.debug("trip %s: ETA request %d superseded", self.trip_id, generation)
            raise
        except RoutingProviderError as exc:
            logger.debug("trip %s: ETA request %d failed, keeping last ETA: %s", self.trip_id, generation, exc)
            return

        # a newer request owns the state now
        if self._closed or generation != self._generation:
            return

        self.state.remaining_distance_m = route.distance_m
        self.state.eta_seconds = estimate_eta_seconds(
            route.distance_m,
            route.duration_s,
            sample.speed_kmh,
            moving_threshold_kmh=self.policy.moving_speed_threshold_kmh,
        )

    async def wait_for_eta(self) -> None:
        """Wait for the current ETA request (if any) to settle."""
        task = self._eta_task
        if task is None:
            return
        await asyncio.gather(task, return_exceptions=True)

    # -------------------------
    # Staleness
    # -------------------------

    def refresh_staleness(self) -> bool:
        if self._last_update is not None and self.clock() - self._last_update >= self.policy.stale_threshold_s:
            self.state.is_stale = True
        return self.state.is_stale

    async def _watch_staleness(self) -> None:
        while not self._closed:
            await asyncio.sleep(self.policy.stale_check_interval_s)
            self.refresh_staleness()


async def subscribe_rider_tracking(
    trip_id: str,
    delivery_point: Optional[GeoPoint],
    *,
    store: TripStore,
    stream: PositionStream,
    routing_provider: RoutingProvider,
    policy: Optional[TrackingPolicy] = None,
    clock: Callable[[], float] = time.monotonic,
) -> RiderTrackingEstimator:
    """
    Start following a trip. The returned estimator's `.state` is live until
    `close()` is awaited.
    """
    estimator = RiderTrackingEstimator(
        trip_id,
        delivery_point,
        store=store,
        stream=stream,
        routing_provider=routing_provider,
        policy=policy,
        clock=clock,
    )
    await estimator.start()
    return estimator
