#Purpose: The position stream boundary.
#Riders' devices append TrackingSamples; subscribers get each new sample for
#one trip pushed to a callback, in arrival order.
#Production backing is a realtime channel on the location log; the in-memory
#stream below is used by tests, scripts and single-process deployments.

from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict, Protocol

from .models import TrackingSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[TrackingSample], None]


class PositionStreamError(Exception):
    """Subscribing to the position stream failed (timeout, channel error)."""
    pass


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class PositionStream(Protocol):
    async def subscribe(self, trip_id: str, callback: SampleCallback) -> Subscription: ...


class InMemorySubscription:
    def __init__(self, stream: "InMemoryPositionStream", trip_id: str, token: int):
        self._stream = stream
        self.trip_id = trip_id
        self.token = token
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._stream._remove(self.trip_id, self.token)


class InMemoryPositionStream:
    """
    Fan-out of published samples to per-trip subscribers.
    Callbacks run synchronously inside publish(), in subscription order.
    """

    def __init__(self):
        self._subscribers: Dict[str, Dict[int, SampleCallback]] = {}
        self._tokens = itertools.count(1)

    async def subscribe(self, trip_id: str, callback: SampleCallback) -> InMemorySubscription:
        token = next(self._tokens)
        self._subscribers.setdefault(trip_id, {})[token] = callback
        logger.debug("subscriber %d listening on trip %s", token, trip_id)
        return InMemorySubscription(self, trip_id, token)

    def publish(self, sample: TrackingSample) -> int:
        """Deliver `sample` to every subscriber of its trip. Returns how many got it."""
        callbacks = list(self._subscribers.get(sample.trip_id, {}).values())
        for callback in callbacks:
            callback(sample)
        return len(callbacks)

    def subscriber_count(self, trip_id: str) -> int:
        return len(self._subscribers.get(trip_id, {}))

    def _remove(self, trip_id: str, token: int) -> None:
        subscribers = self._subscribers.get(trip_id)
        if subscribers is None:
            return
        subscribers.pop(token, None)
        if not subscribers:
            del self._subscribers[trip_id]
