"""Host backed by a Linux kernel backlight (``/sys/class/backlight/<device>``)."""

import logging
from pathlib import Path

from lux.host.base import ActivityBindingError, ChangeVerificationError, SettingLookupError
from lux.host.polling import PollingBrightnessHost

logger = logging.getLogger(__name__)

DEFAULT_BACKLIGHT_ROOT = Path("/sys/class/backlight")


class SysfsBrightnessHost(PollingBrightnessHost):
    """Brightness of a kernel backlight device.

    Writing ``brightness`` normally needs root or a udev rule granting the
    video group write access.
    """

    name = "sysfs"

    def __init__(
        self,
        device: str | None = None,
        root: str | Path = DEFAULT_BACKLIGHT_ROOT,
        poll_interval: float | None = 0.5,
    ) -> None:
        """Initialize the host.

        Args:
            device: Backlight device name; the first one under ``root`` if None.
            root: Directory holding backlight devices.
            poll_interval: Seconds between polls for external changes.

        Raises:
            ActivityBindingError: If no backlight device can be found.
            SettingLookupError: If ``max_brightness`` cannot be read.
        """
        super().__init__(poll_interval=poll_interval)
        self.device_dir = self._find_device(Path(root), device)
        self.max_brightness = self._read_int(self.device_dir / "max_brightness")
        if self.max_brightness <= 0:
            raise SettingLookupError(
                f"Invalid max_brightness {self.max_brightness} in {self.device_dir}"
            )
        self.resolution = 1 / self.max_brightness
        logger.debug(
            "[sysfs] using %s (max_brightness=%d)", self.device_dir, self.max_brightness,
        )

    @staticmethod
    def _find_device(root: Path, device: str | None) -> Path:
        if device:
            path = root / device
            if not path.is_dir():
                raise ActivityBindingError(f"Backlight device not found: {path}")
            return path
        try:
            devices = sorted(p for p in root.iterdir() if p.is_dir())
        except OSError as e:
            raise ActivityBindingError(f"Cannot list {root}: {e}") from e
        if not devices:
            raise ActivityBindingError(f"No backlight device under {root}")
        return devices[0]

    @staticmethod
    def _read_int(path: Path) -> int:
        try:
            return int(path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as e:
            raise SettingLookupError(f"Could not read {path}: {e}") from e

    def read_level(self) -> float:
        return self._read_int(self.device_dir / "brightness") / self.max_brightness

    def write_level(self, level: float) -> None:
        raw = round(level * self.max_brightness)
        path = self.device_dir / "brightness"
        try:
            path.write_text(str(raw), encoding="utf-8")
        except OSError as e:
            raise ChangeVerificationError(f"Could not write {path}: {e}") from e


def list_devices(root: str | Path = DEFAULT_BACKLIGHT_ROOT) -> list[str]:
    """Return the backlight device names under root (empty if none)."""
    root = Path(root)
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir())
