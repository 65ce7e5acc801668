"""Brightness gateway — the async API application code talks to.

Translates brightness operations into calls on an injected host method
channel, validating every value that crosses the boundary, and shares one
host change subscription between all stream listeners.
"""

import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from lux.constants import (
    ARG_BRIGHTNESS,
    METHOD_GET_BRIGHTNESS,
    METHOD_GET_SYSTEM_BRIGHTNESS,
    METHOD_HAS_CHANGED,
    METHOD_RESET_BRIGHTNESS,
    METHOD_SET_BRIGHTNESS,
    is_in_range,
)
from lux.host.base import (
    BrightnessEventChannel,
    BrightnessMethodChannel,
    MissingValueError,
    OutOfRangeError,
)
from lux.stream import BrightnessBroadcast, BrightnessSubscription

logger = logging.getLogger(__name__)


class BrightnessGateway:
    """Async screen brightness control over a host capability.

    Errors are never swallowed: host failures propagate unchanged and range
    violations raise OutOfRangeError. Concurrent set and reset calls race at
    the host; the last write to reach it wins.
    """

    def __init__(
        self,
        method_channel: BrightnessMethodChannel,
        event_channel: BrightnessEventChannel,
    ) -> None:
        """Initialize the gateway.

        Args:
            method_channel: Outbound request/response channel.
            event_channel: Inbound brightness-change channel.
        """
        self._methods = method_channel
        self._events = event_channel
        self._broadcast: BrightnessBroadcast | None = None
        self._broadcast_lock = threading.Lock()

    async def _get_brightness(self, method: str) -> float:
        logger.debug("Invoking %s", method)
        value = await self._methods.invoke_method(method)
        if value is None:
            raise MissingValueError()
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MissingValueError(f"Brightness value is not a number: {value!r}")
        value = float(value)
        if not is_in_range(value):
            raise OutOfRangeError(value)
        return value

    async def get_system_brightness(self) -> float:
        """Return the brightness recorded when the host was started.

        This is the baseline restored by :meth:`reset_brightness`.

        Raises:
            MissingValueError: When the host returns no value or a non-number.
            OutOfRangeError: When the host value is outside [0.0, 1.0].
        """
        return await self._get_brightness(METHOD_GET_SYSTEM_BRIGHTNESS)

    async def get_current_brightness(self) -> float:
        """Return the brightness currently in effect.

        Right after :meth:`reset_brightness` some hosts may still report the
        previous value.

        Raises:
            MissingValueError: When the host returns no value or a non-number.
            OutOfRangeError: When the host value is outside [0.0, 1.0].
            ActivityBindingError: When the host display is unavailable.
            SettingLookupError: When the host cannot locate the value.
        """
        return await self._get_brightness(METHOD_GET_BRIGHTNESS)

    async def set_brightness(self, brightness: float) -> None:
        """Change the screen brightness.

        Args:
            brightness: Target value in [0.0, 1.0].

        Raises:
            OutOfRangeError: Before any host call, when out of range.
            NullParameterError: When the host cannot decode the value.
            ChangeVerificationError: When the host reads back another value.
            ActivityBindingError: When the host display is unavailable.
        """
        if not is_in_range(brightness):
            raise OutOfRangeError(brightness)
        logger.debug("Invoking %s(%s)", METHOD_SET_BRIGHTNESS, brightness)
        await self._methods.invoke_method(
            METHOD_SET_BRIGHTNESS, {ARG_BRIGHTNESS: brightness},
        )

    async def reset_brightness(self) -> None:
        """Restore the host's default brightness.

        Raises the same errors as :meth:`set_brightness`, except the range check.
        """
        logger.debug("Invoking %s", METHOD_RESET_BRIGHTNESS)
        await self._methods.invoke_method(METHOD_RESET_BRIGHTNESS)

    async def has_changed(self) -> bool:
        """Return True if brightness was changed through the host and not reset."""
        changed = await self._methods.invoke_method(METHOD_HAS_CHANGED)
        if changed is None:
            raise MissingValueError()
        return bool(changed)

    def brightness_change_stream(self) -> BrightnessSubscription:
        """Return a new async iterator of brightness changes.

        All iterators share one host subscription, created on the first call.
        Host payloads that are not valid brightness values are dropped.
        """
        with self._broadcast_lock:
            if self._broadcast is None:
                logger.debug("Subscribing to host brightness changes")
                self._broadcast = BrightnessBroadcast(
                    self._events.receive_broadcast_stream()
                )
            broadcast = self._broadcast
        return broadcast.subscribe()

    @asynccontextmanager
    async def applied(self, brightness: float) -> AsyncIterator["BrightnessGateway"]:
        """Set brightness for the duration of a block, then reset it.

        Usage::

            async with gateway.applied(1.0):
                await show_qr_code()
        """
        await self.set_brightness(brightness)
        try:
            yield self
        finally:
            await self.reset_brightness()
