"""Build a host and a gateway from configuration."""

import logging

from lux.config import LuxConfig, get_config
from lux.gateway import BrightnessGateway
from lux.host.polling import PollingBrightnessHost

logger = logging.getLogger(__name__)


def _display(value: int | str | None) -> int | str | None:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


def build_host(config: LuxConfig | None = None) -> PollingBrightnessHost:
    """Create the host selected by ``config.backend``.

    Backend modules are imported lazily so an unused backend's library is
    never loaded.

    Raises:
        ValueError: For an unknown backend name.
    """
    config = config or get_config()
    config.validate_backend()

    if config.backend == "memory":
        from lux.host.memory import MemoryBrightnessHost

        return MemoryBrightnessHost(system_brightness=config.memory_system_brightness)

    if config.backend == "sysfs":
        from lux.host.sysfs import SysfsBrightnessHost

        return SysfsBrightnessHost(
            device=config.backlight_device or None,
            root=config.backlight_root,
            poll_interval=config.poll_interval,
        )

    from lux.host.sbc import SbcBrightnessHost

    return SbcBrightnessHost(
        display=_display(config.display),
        poll_interval=config.poll_interval,
    )


def create_gateway(config: LuxConfig | None = None) -> BrightnessGateway:
    """Create a BrightnessGateway wired to the configured host."""
    host = build_host(config)
    logger.debug("Gateway bound to %s host", host.name)
    return BrightnessGateway(host, host)
