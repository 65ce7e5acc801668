"""Brightness bounds and host method names shared by the gateway and hosts."""

MIN_BRIGHTNESS = 0.0
MAX_BRIGHTNESS = 1.0

# Outbound method channel
METHOD_GET_SYSTEM_BRIGHTNESS = "getSystemScreenBrightness"
METHOD_GET_BRIGHTNESS = "getScreenBrightness"
METHOD_SET_BRIGHTNESS = "setScreenBrightness"
METHOD_RESET_BRIGHTNESS = "resetScreenBrightness"
METHOD_HAS_CHANGED = "hasScreenBrightnessChanged"

ARG_BRIGHTNESS = "brightness"


def is_in_range(value: float) -> bool:
    """Return True if value lies in the closed brightness interval."""
    return MIN_BRIGHTNESS <= value <= MAX_BRIGHTNESS
