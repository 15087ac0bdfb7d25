"""In-process fan-out of events to live viewers."""

import asyncio
from collections import defaultdict

from leadcapture_common.logging import setup_logging

from domain.events import BroadcastEvent

logger = setup_logging()


class BroadcastChannel:
    """
    Delivers events to per-call and all-calls subscribers.

    Each subscriber owns a bounded queue. Publishing never waits: when a
    viewer's queue is full the event is dropped for that viewer only.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._call_subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._all_subscribers: set[asyncio.Queue] = set()

    def subscribe(self, call_id: str | None = None) -> asyncio.Queue:
        """Registers a viewer for one call, or for all calls when call_id is None."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        if call_id is None:
            self._all_subscribers.add(queue)
        else:
            self._call_subscribers[call_id].add(queue)
        logger.info("Viewer subscribed", extra={"call_id": call_id})
        return queue

    def unsubscribe(self, queue: asyncio.Queue, call_id: str | None = None) -> None:
        if call_id is None:
            self._all_subscribers.discard(queue)
            return
        subscribers = self._call_subscribers.get(call_id)
        if subscribers is not None:
            subscribers.discard(queue)
            if not subscribers:
                del self._call_subscribers[call_id]

    def subscriber_count(self, call_id: str | None = None) -> int:
        if call_id is None:
            return len(self._all_subscribers)
        return len(self._call_subscribers.get(call_id, ()))

    def publish(self, event: BroadcastEvent) -> int:
        """
        Enqueues an event for every matching subscriber.

        Returns:
            The number of viewers the event was delivered to.
        """
        targets = list(self._all_subscribers)
        if event.call_id is not None:
            targets.extend(self._call_subscribers.get(event.call_id, ()))

        delivered = 0
        for queue in targets:
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Viewer queue full, dropping event",
                    extra={"event": event.event, "call_id": event.call_id},
                )
        return delivered
