"""Live run event delivery to at most one subscriber per run."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import AsyncIterator, Dict, Optional

from .models import RunEvent, StreamName

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Receiving end of a run channel.

    Iterating yields events until the channel is closed, either by the run
    finishing or by a newer subscriber taking over the same run id.
    """

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: RunEvent) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self, timeout: Optional[float] = None) -> Optional[RunEvent]:
        """Next event, or None once the channel is closed and drained.

        Raises ``asyncio.TimeoutError`` if nothing arrives within ``timeout``.
        """
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if item is _CLOSED:
            # keep the sentinel for any later reader
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def __aiter__(self) -> AsyncIterator[RunEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[RunEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event


class LogBroadcaster:
    def __init__(self) -> None:
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def subscribe(self, run_id: str) -> Subscription:
        subscription = Subscription(run_id)
        with self._lock:
            previous = self._subscriptions.get(run_id)
            self._subscriptions[run_id] = subscription
        if previous is not None:
            previous.close()
            logger.info("Run %s subscriber replaced", run_id)
        else:
            logger.info("Run %s subscriber attached", run_id)
        return subscription

    def unsubscribe(self, run_id: str, subscription: Optional[Subscription] = None) -> bool:
        with self._lock:
            current = self._subscriptions.get(run_id)
            if current is None or (subscription is not None and current is not subscription):
                return False
            del self._subscriptions[run_id]
        current.close()
        logger.debug("Run %s subscriber detached", run_id)
        return True

    def publish(self, run_id: str, event: RunEvent) -> bool:
        with self._lock:
            subscription = self._subscriptions.get(run_id)
            if subscription is None:
                return False
            return subscription.put(event)

    def has_subscriber(self, run_id: str) -> bool:
        with self._lock:
            return run_id in self._subscriptions

    def close_all(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.close()
