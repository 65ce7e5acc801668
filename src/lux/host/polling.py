"""Shared host behaviour: method dispatch, read-back verification, change polling.

Concrete hosts only read and write a normalized level; this module turns that
into the method channel and event channel the gateway talks to.
"""

import asyncio
import logging
import weakref
from abc import abstractmethod
from collections.abc import Callable
from typing import Any

from lux.constants import (
    ARG_BRIGHTNESS,
    METHOD_GET_BRIGHTNESS,
    METHOD_GET_SYSTEM_BRIGHTNESS,
    METHOD_HAS_CHANGED,
    METHOD_RESET_BRIGHTNESS,
    METHOD_SET_BRIGHTNESS,
)
from lux.host.base import (
    BrightnessEventChannel,
    BrightnessMethodChannel,
    ChangeVerificationError,
    NullParameterError,
)
from lux.stream import LoopQueue

logger = logging.getLogger(__name__)


class PollingBrightnessHost(BrightnessMethodChannel, BrightnessEventChannel):
    """Base class for hosts backed by a readable and writable brightness level.

    Subclasses implement :meth:`read_level` and :meth:`write_level`. Values
    written through this host are published to subscribers immediately;
    changes made elsewhere are picked up by polling every ``poll_interval``
    seconds (``None`` disables polling).
    """

    name: str = "polling"

    def __init__(self, poll_interval: float | None = 0.5, resolution: float = 0.0) -> None:
        """Initialize the host.

        Args:
            poll_interval: Seconds between polls for external changes.
            resolution: Smallest level step the device can represent; read-backs
                within this distance of the requested value count as equal.
        """
        self.poll_interval = poll_interval
        self.resolution = resolution
        self._system: float | None = None
        self._system_read = False
        self._applied: float | None = None
        self._subscribers: weakref.WeakSet[_HostSubscription] = weakref.WeakSet()

    # ── Device access ──────────────────────────────────────────────

    @abstractmethod
    def read_level(self) -> float:
        """Read the device brightness as a fraction of its maximum (blocking)."""

    @abstractmethod
    def write_level(self, level: float) -> None:
        """Write a brightness fraction to the device (blocking)."""

    async def _read(self) -> float:
        level = await asyncio.to_thread(self.read_level)
        logger.debug("[%s] read level %.3f", self.name, level)
        return level

    async def _write(self, level: float) -> None:
        logger.debug("[%s] writing level %.3f", self.name, level)
        await asyncio.to_thread(self.write_level, level)

    def _same(self, a: float, b: float) -> bool:
        return abs(a - b) <= self.resolution + 1e-9

    # ── Method channel ─────────────────────────────────────────────

    async def invoke_method(self, method: str, arguments: dict | None = None) -> Any:
        handlers: dict[str, Callable] = {
            METHOD_GET_SYSTEM_BRIGHTNESS: self._get_system,
            METHOD_GET_BRIGHTNESS: self._get_current,
            METHOD_SET_BRIGHTNESS: self._set,
            METHOD_RESET_BRIGHTNESS: self._reset,
            METHOD_HAS_CHANGED: self._has_changed,
        }
        handler = handlers.get(method)
        if handler is None:
            raise NotImplementedError(f"{self.name} host has no method {method!r}")
        if method == METHOD_SET_BRIGHTNESS:
            return await handler(arguments)
        return await handler()

    async def _get_system(self) -> float | None:
        if not self._system_read:
            self._system = await self._read()
            self._system_read = True
            logger.info("[%s] system brightness recorded: %.3f", self.name, self._system)
        return self._system

    async def _get_current(self) -> float:
        await self._get_system()
        level = await self._read()
        if self._applied is not None and self._same(level, self._applied):
            return self._applied
        return level

    async def _set(self, arguments: dict | None) -> None:
        brightness = (arguments or {}).get(ARG_BRIGHTNESS)
        if isinstance(brightness, bool) or not isinstance(brightness, (int, float)):
            raise NullParameterError()
        await self._get_system()
        await self._apply(float(brightness))
        self._applied = float(brightness)
        self.publish(self._applied)

    async def _reset(self) -> None:
        system = await self._get_system()
        if system is None:
            raise NullParameterError()
        await self._apply(system)
        self._applied = None
        self.publish(system)

    async def _has_changed(self) -> bool:
        return self._applied is not None

    async def _apply(self, level: float) -> None:
        await self._write(level)
        actual = await self._read()
        if not self._same(actual, level):
            raise ChangeVerificationError(
                f"Unable to change screen brightness: requested {level:.3f}, "
                f"device reports {actual:.3f}"
            )

    # ── Event channel ──────────────────────────────────────────────

    def receive_broadcast_stream(self) -> "_HostSubscription":
        subscription = _HostSubscription(self)
        self._subscribers.add(subscription)
        logger.debug("[%s] new change subscriber (%d total)", self.name, len(self._subscribers))
        return subscription

    def publish(self, level: float) -> None:
        """Push a brightness value to every subscriber."""
        for subscription in list(self._subscribers):
            subscription.push(level)

    def _unsubscribe(self, subscription: "_HostSubscription") -> None:
        self._subscribers.discard(subscription)


class _HostSubscription:
    """Async iterator over one subscriber's brightness changes.

    Consecutive equal values are delivered once. The first poll only records
    the starting level.
    """

    def __init__(self, host: PollingBrightnessHost) -> None:
        self._host = host
        self._queue = LoopQueue()
        self._last: float | None = None

    def push(self, level: float) -> None:
        self._queue.put_nowait(level)

    def __aiter__(self) -> "_HostSubscription":
        return self

    async def __anext__(self) -> float:
        while True:
            level, polled = await self._next_level()
            if level is None:
                continue
            if self._last is None and polled:
                self._last = level
                continue
            if self._last is not None and self._host._same(level, self._last):
                continue
            self._last = level
            return level

    async def _next_level(self) -> tuple[float | None, bool]:
        interval = self._host.poll_interval
        if interval is None:
            return await self._queue.get(), False
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=interval), False
        except TimeoutError:
            pass
        try:
            return await self._host._read(), True
        except Exception as e:
            logger.debug("[%s] poll failed: %s", self._host.name, e)
            return None, True

    async def aclose(self) -> None:
        self._host._unsubscribe(self)
