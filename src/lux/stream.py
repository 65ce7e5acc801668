"""Fan-out of a single host brightness subscription to many listeners."""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from typing import Any

from lux.constants import is_in_range

logger = logging.getLogger(__name__)

_CLOSED = object()


def as_brightness(payload: Any) -> float | None:
    """Cast a raw host event payload to a brightness value.

    Returns None for payloads that are not real numbers (bools included)
    or that fall outside [0.0, 1.0].
    """
    if isinstance(payload, bool) or not isinstance(payload, (int, float)):
        return None
    value = float(payload)
    if not is_in_range(value):
        return None
    return value


class LoopQueue:
    """Unbounded queue that follows whichever event loop waits on it.

    A plain asyncio.Queue binds to the first loop that awaits it. Pending
    items move to a fresh queue when a different loop starts waiting.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None

    def put_nowait(self, item: Any) -> None:
        self._queue.put_nowait(item)

    async def get(self) -> Any:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            if self._loop is not None:
                old, self._queue = self._queue, asyncio.Queue()
                while not old.empty():
                    self._queue.put_nowait(old.get_nowait())
            self._loop = loop
        return await self._queue.get()


class BrightnessBroadcast:
    """Shares one host event iterator between any number of listeners.

    A single pump task drains the host iterator and copies each valid value
    to every live listener. Listeners are held weakly: a subscription that
    is dropped, e.g. by breaking out of ``async for``, stops receiving.

    The pump runs on the loop that started it. If that loop shuts down the
    pump is restarted by the next listener on its own loop; only the end or
    failure of the host iterator closes the broadcast.
    """

    def __init__(self, source: AsyncIterator[Any]) -> None:
        self._source = source
        self._listeners: weakref.WeakSet[BrightnessSubscription] = weakref.WeakSet()
        self._pump: asyncio.Task | None = None
        self._closed = False

    @property
    def listener_count(self) -> int:
        """Number of currently registered listeners."""
        return len(self._listeners)

    @property
    def is_closed(self) -> bool:
        """True once the host stream has ended."""
        return self._closed

    def subscribe(self) -> "BrightnessSubscription":
        """Register a new listener and return its async iterator."""
        subscription = BrightnessSubscription(self)
        if self._closed:
            subscription.deliver(_CLOSED)
        else:
            self._listeners.add(subscription)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet, the pump starts on the first __anext__
            return subscription
        self.ensure_started()
        return subscription

    def ensure_started(self) -> None:
        """Start the pump task on the running loop if it is not running."""
        if self._closed:
            return
        if self._pump is not None and (self._pump.done() or self._pump.get_loop().is_closed()):
            self._pump = None
        if self._pump is None:
            self._pump = asyncio.get_running_loop().create_task(self._run())

    def unsubscribe(self, subscription: "BrightnessSubscription") -> None:
        self._listeners.discard(subscription)

    async def _run(self) -> None:
        try:
            async for payload in self._source:
                value = as_brightness(payload)
                if value is None:
                    logger.debug("Dropping brightness event %r", payload)
                    continue
                self._deliver_all(value)
        except asyncio.CancelledError:
            logger.debug("Brightness change pump cancelled, restarts with the next listener")
            if self._pump is asyncio.current_task():
                self._pump = None
            raise
        except Exception:
            logger.exception("Brightness change subscription failed")
        self._close()

    def _deliver_all(self, item: Any) -> None:
        for subscription in list(self._listeners):
            subscription.deliver(item)

    def _close(self) -> None:
        self._closed = True
        self._deliver_all(_CLOSED)
        self._listeners.clear()


class BrightnessSubscription:
    """One listener's view of a BrightnessBroadcast.

    Values are buffered from the moment the subscription is created, so
    changes that happen before the first ``await`` are not lost.
    """

    def __init__(self, broadcast: BrightnessBroadcast) -> None:
        self._broadcast = broadcast
        self._queue = LoopQueue()
        self._done = False

    def deliver(self, item: Any) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> "BrightnessSubscription":
        return self

    async def __anext__(self) -> float:
        if self._done:
            raise StopAsyncIteration
        self._broadcast.ensure_started()
        value = await self._queue.get()
        if value is _CLOSED:
            self._done = True
            raise StopAsyncIteration
        return value

    async def aclose(self) -> None:
        """Stop listening. Other listeners are unaffected."""
        self._done = True
        self._broadcast.unsubscribe(self)
