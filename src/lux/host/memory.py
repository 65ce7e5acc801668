"""In-process virtual display, used for demos and as a test host."""

import logging

from lux.host.polling import PollingBrightnessHost

logger = logging.getLogger(__name__)


class MemoryBrightnessHost(PollingBrightnessHost):
    """A display whose brightness lives in memory.

    Reads and writes never fail. Use :meth:`simulate_external_change` to model
    hardware keys or the OS settings panel changing the brightness.
    """

    name = "memory"

    def __init__(self, system_brightness: float = 0.5, resolution: float = 0.0) -> None:
        super().__init__(poll_interval=None, resolution=resolution)
        self._level = system_brightness

    def read_level(self) -> float:
        return self._level

    def write_level(self, level: float) -> None:
        self._level = level

    def simulate_external_change(self, level: float) -> None:
        """Change the level behind the host's back and notify subscribers."""
        logger.debug("[memory] external change to %.3f", level)
        self._level = level
        self.publish(level)
