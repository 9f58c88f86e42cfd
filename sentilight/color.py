"""
HSB -> RGB preview colors for UI feedback.
"""
import colorsys
import logging
import re

from .models import PreviewColor

logger = logging.getLogger(__name__)

FALLBACK_COLOR_HEX = "#181B1C"
FALLBACK_COLOR = PreviewColor.from_hex(FALLBACK_COLOR_HEX)

HSB_PATTERN = re.compile(r"HSBCOLOR\s*(\d+),(\d+),(\d+)", re.IGNORECASE)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def hsb_to_preview_color(command: str) -> PreviewColor:
    """
    Derive an opaque preview color from the first HSBCOLOR triple in a command.

    Hue is in degrees (0-359), saturation and brightness in percent. Returns
    FALLBACK_COLOR when no triple is found or conversion fails; never raises.
    """
    try:
        match = HSB_PATTERN.search(command)
        if match:
            hue = float(match.group(1))
            saturation = _clamp(float(match.group(2)) / 100.0, 0.0, 1.0)
            brightness = _clamp(float(match.group(3)) / 100.0, 0.0, 1.0)
            if hue >= 360.0:
                hue = 0.0

            red, green, blue = colorsys.hsv_to_rgb(hue / 360.0, saturation, brightness)
            return PreviewColor(
                red=int(round(red * 255)),
                green=int(round(green * 255)),
                blue=int(round(blue * 255)),
            )
    except Exception as e:
        logger.error(f"HSB to RGB conversion failed for command {command!r}: {e}")

    return FALLBACK_COLOR
