# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Color parsing and contrast utilities.

Implements the WCAG relative luminance / contrast ratio formulas and the
HSL lighten/darken steps used by the contrast remediation.
"""

import colorsys
import re
from typing import NamedTuple, Optional


class Color(NamedTuple):
    """An sRGB color with 0-255 channels and a 0-1 alpha."""

    r: int
    g: int
    b: int
    a: float = 1.0


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)

NAMED_COLORS = {
    "black": "#000000",
    "silver": "#c0c0c0",
    "gray": "#808080",
    "grey": "#808080",
    "white": "#ffffff",
    "maroon": "#800000",
    "red": "#ff0000",
    "purple": "#800080",
    "fuchsia": "#ff00ff",
    "magenta": "#ff00ff",
    "green": "#008000",
    "lime": "#00ff00",
    "olive": "#808000",
    "yellow": "#ffff00",
    "navy": "#000080",
    "blue": "#0000ff",
    "teal": "#008080",
    "aqua": "#00ffff",
    "cyan": "#00ffff",
    "orange": "#ffa500",
    "darkgray": "#a9a9a9",
    "darkgrey": "#a9a9a9",
    "lightgray": "#d3d3d3",
    "lightgrey": "#d3d3d3",
    "dimgray": "#696969",
    "dimgrey": "#696969",
    "whitesmoke": "#f5f5f5",
    "gainsboro": "#dcdcdc",
    "darkblue": "#00008b",
    "darkred": "#8b0000",
    "darkgreen": "#006400",
    "lightblue": "#add8e6",
    "lightyellow": "#ffffe0",
    "pink": "#ffc0cb",
    "brown": "#a52a2a",
    "gold": "#ffd700",
    "beige": "#f5f5dc",
}

_RGB_PATTERN = re.compile(
    r"rgba?\(\s*([\d.]+)\s*[, ]\s*([\d.]+)\s*[, ]\s*([\d.]+)\s*(?:[,/]\s*([\d.]+%?)\s*)?\)",
    re.IGNORECASE,
)


def parse_color(value: Optional[str]) -> Optional[Color]:
    """
    Parse a CSS color value.

    Args:
        value: CSS color (hex, rgb()/rgba(), a named color or ``transparent``)

    Returns:
        The parsed Color, or None if the value cannot be interpreted
    """
    if not value:
        return None

    color = value.strip().lower().replace("!important", "").strip()

    if color == "transparent":
        return Color(0, 0, 0, 0.0)

    color = NAMED_COLORS.get(color, color)

    if color.startswith("#"):
        digits = color[1:]
        if len(digits) in (3, 4):
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) not in (6, 8):
            return None
        try:
            r = int(digits[0:2], 16)
            g = int(digits[2:4], 16)
            b = int(digits[4:6], 16)
            a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
        except ValueError:
            return None
        return Color(r, g, b, round(a, 3))

    match = _RGB_PATTERN.match(color)
    if match:
        r, g, b = (min(255, int(float(match.group(i)))) for i in (1, 2, 3))
        alpha = match.group(4)
        if alpha is None:
            a = 1.0
        elif alpha.endswith("%"):
            a = float(alpha[:-1]) / 100
        else:
            a = float(alpha)
        return Color(r, g, b, a)

    return None


def is_transparent(color: Optional[Color]) -> bool:
    """Return True for a missing or fully transparent color."""
    return color is None or color.a == 0


def relative_luminance(color: Color) -> float:
    """WCAG 2.x relative luminance of the color's RGB channels."""

    def channel(value: int) -> float:
        c = value / 255
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    return 0.2126 * channel(color.r) + 0.7152 * channel(color.g) + 0.0722 * channel(color.b)


def contrast_ratio(first: Color, second: Color) -> float:
    """
    Calculate the WCAG contrast ratio between two colors.

    Args:
        first: One color of the pair
        second: The other color of the pair

    Returns:
        Ratio between 1.0 and 21.0
    """
    l1 = relative_luminance(first)
    l2 = relative_luminance(second)
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def brightness(color: Color) -> float:
    """Perceived brightness on a 0-255 scale."""
    return (color.r * 299 + color.g * 587 + color.b * 114) / 1000


def is_dark(color: Color) -> bool:
    return brightness(color) < 128


def _shift_lightness(color: Color, amount: float) -> Color:
    h, l, s = colorsys.rgb_to_hls(color.r / 255, color.g / 255, color.b / 255)
    l = min(1.0, max(0.0, l + amount / 100))
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return Color(round(r * 255), round(g * 255), round(b * 255), color.a)


def lighten(color: Color, amount: float) -> Color:
    """Raise HSL lightness by ``amount`` percentage points."""
    return _shift_lightness(color, amount)


def darken(color: Color, amount: float) -> Color:
    """Lower HSL lightness by ``amount`` percentage points."""
    return _shift_lightness(color, -amount)


def to_css(color: Color) -> str:
    """Format as ``#rrggbb`` for opaque colors, ``rgba(...)`` otherwise."""
    if color.a >= 1:
        return f"#{color.r:02x}{color.g:02x}{color.b:02x}"
    return f"rgba({color.r}, {color.g}, {color.b}, {color.a:g})"
