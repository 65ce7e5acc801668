"""Host backed by the screen_brightness_control library.

Covers Windows (WMI, VCP) and Linux (sysfs, DDC/CI, light) displays. The
library works in whole percents, so levels are quantized to 0.01.
"""

import logging

import screen_brightness_control as sbc
from screen_brightness_control.exceptions import NoValidDisplayError, ScreenBrightnessError

from lux.host.base import ActivityBindingError, ChangeVerificationError, SettingLookupError
from lux.host.polling import PollingBrightnessHost

logger = logging.getLogger(__name__)


class SbcBrightnessHost(PollingBrightnessHost):
    """Brightness of one display as seen by screen_brightness_control."""

    name = "sbc"

    def __init__(self, display: int | str | None = None, poll_interval: float | None = 0.5) -> None:
        """Initialize the host.

        Args:
            display: Display index or name (EDID, serial or model); None for the
                primary display.
            poll_interval: Seconds between polls for external changes.
        """
        super().__init__(poll_interval=poll_interval, resolution=0.01)
        self.display = 0 if display is None else display

    def read_level(self) -> float:
        try:
            current = sbc.get_brightness(display=self.display)
        except NoValidDisplayError as e:
            raise ActivityBindingError(f"No display {self.display!r}: {e}") from e
        except ScreenBrightnessError as e:
            raise SettingLookupError(str(e)) from e
        # sbc.get_brightness() returns a list of values (one per display)
        level = current[0] if isinstance(current, list) else current
        if level is None:
            raise SettingLookupError()
        return level / 100

    def write_level(self, level: float) -> None:
        percent = round(level * 100)
        try:
            # force=True lets 0% through on Linux
            sbc.set_brightness(percent, display=self.display, force=True)
        except NoValidDisplayError as e:
            raise ActivityBindingError(f"No display {self.display!r}: {e}") from e
        except ScreenBrightnessError as e:
            raise ChangeVerificationError(str(e)) from e


def list_displays() -> list[str]:
    """Return the names of displays screen_brightness_control can reach."""
    return [str(name) for name in sbc.list_monitors()]
