"""lux configuration system — typed settings loaded from .env."""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_config_instance: "LuxConfig | None" = None

BACKENDS = ("sbc", "sysfs", "memory")


class LuxConfig(BaseSettings):
    """All lux settings, loaded from environment variables with LUX_ prefix."""

    # Host backend: "sbc", "sysfs" or "memory"
    backend: str = "sbc"

    # screen_brightness_control
    display: int | str | None = None  # Index or name; None = primary display

    # Linux kernel backlight
    backlight_device: str = ""  # Empty = first device found
    backlight_root: str = "/sys/class/backlight"

    # In-memory virtual display
    memory_system_brightness: float = 0.5

    # Seconds between polls for changes made outside this process
    poll_interval: float = 0.5

    # System
    log_level: str = "INFO"
    log_dir: str = ""  # Empty = ~/.lux/logs

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LUX_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def validate_backend(self) -> None:
        """Validate that the configured backend is known.

        Raises:
            ValueError: If the backend name is not supported.
        """
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown brightness backend {self.backend!r}. "
                f"Set LUX_BACKEND to one of: {', '.join(BACKENDS)}"
            )
        logger.info("Brightness backend: %s", self.backend)


def get_config() -> LuxConfig:
    """Get the singleton LuxConfig instance.

    Returns:
        The shared LuxConfig loaded from environment.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = LuxConfig()
    return _config_instance
