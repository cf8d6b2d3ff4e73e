"""Color conversion and palette matching for design variables.

Remote colors arrive as 0-1 float channels. Everything stored in the index
uses lowercase ``#rrggbb`` hex plus CSS ``rgb()``/``hsl()`` strings.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class DaisyUIColor:
    """A semantic color of the default DaisyUI theme."""

    name: str
    css_var: str
    category: str


DAISYUI_COLORS: dict[str, DaisyUIColor] = {
    "#570df8": DaisyUIColor("primary", "--p", "brand"),
    "#f000b8": DaisyUIColor("secondary", "--s", "brand"),
    "#37cdbe": DaisyUIColor("accent", "--a", "brand"),
    "#3d4451": DaisyUIColor("neutral", "--n", "base"),
    "#2a2e37": DaisyUIColor("neutral-focus", "--nf", "base"),
    "#ffffff": DaisyUIColor("base-100", "--b1", "base"),
    "#f2f2f2": DaisyUIColor("base-200", "--b2", "base"),
    "#e5e5e5": DaisyUIColor("base-300", "--b3", "base"),
    "#1f2937": DaisyUIColor("base-content", "--bc", "base"),
    "#36d399": DaisyUIColor("success", "--su", "state"),
    "#3abff8": DaisyUIColor("info", "--in", "state"),
    "#fbbd23": DaisyUIColor("warning", "--wa", "state"),
    "#f87272": DaisyUIColor("error", "--er", "state"),
}

# Maximum RGB distance for a fuzzy palette match
DAISYUI_MATCH_THRESHOLD = 50.0

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def rgb_to_hex(color: dict[str, Any]) -> str:
    """Convert a remote ``{r, g, b}`` color (0-1 channels) to hex.

    Args:
        color: Mapping with ``r``, ``g`` and ``b`` floats in [0, 1].

    Returns:
        Lowercase ``#rrggbb`` string.
    """
    channels = [round(float(color.get(c, 0)) * 255) for c in ("r", "g", "b")]
    return "#" + "".join(f"{max(0, min(255, c)):02x}" for c in channels)


def hex_to_rgb(hex_value: str) -> tuple[int, int, int]:
    """Parse a hex color into 0-255 channels; malformed input yields black."""
    match = _HEX_RE.match(hex_value.strip())
    if not match:
        return (0, 0, 0)
    return tuple(int(part, 16) for part in match.groups())  # type: ignore[return-value]


def hex_to_hsl(hex_value: str) -> tuple[int, int, int]:
    """Convert hex to rounded (hue degrees, saturation %, lightness %)."""
    r, g, b = (c / 255 for c in hex_to_rgb(hex_value))
    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2

    if high == low:
        return (0, 0, round(lightness * 100))

    delta = high - low
    if lightness > 0.5:
        saturation = delta / (2 - high - low)
    else:
        saturation = delta / (high + low)

    if high == r:
        hue = ((g - b) / delta + (6 if g < b else 0)) / 6
    elif high == g:
        hue = ((b - r) / delta + 2) / 6
    else:
        hue = ((r - g) / delta + 4) / 6

    return (round(hue * 360), round(saturation * 100), round(lightness * 100))


def hsl_to_string(hsl: tuple[int, int, int]) -> str:
    h, s, l = hsl
    return f"hsl({h}, {s}%, {l}%)"


def rgb_to_string(hex_value: str) -> str:
    r, g, b = hex_to_rgb(hex_value)
    return f"rgb({r}, {g}, {b})"


def color_distance(hex_a: str, hex_b: str) -> float:
    """Euclidean distance between two colors in RGB space."""
    return math.dist(hex_to_rgb(hex_a), hex_to_rgb(hex_b))


def contrast_ratio(hex_a: str, hex_b: str) -> float:
    """WCAG 2 contrast ratio between two colors."""

    def luminance(hex_value: str) -> float:
        linear = []
        for channel in hex_to_rgb(hex_value):
            srgb = channel / 255
            if srgb <= 0.03928:
                linear.append(srgb / 12.92)
            else:
                linear.append(((srgb + 0.055) / 1.055) ** 2.4)
        r, g, b = linear
        return 0.2126 * r + 0.7152 * g + 0.0722 * b

    lighter, darker = sorted((luminance(hex_a), luminance(hex_b)), reverse=True)
    return (lighter + 0.05) / (darker + 0.05)


def match_daisyui_color(hex_value: str) -> Optional[str]:
    """Match a hex color to a DaisyUI semantic color name.

    Exact palette hits win; otherwise the nearest palette color closer than
    DAISYUI_MATCH_THRESHOLD is returned.

    Args:
        hex_value: Color to match.

    Returns:
        DaisyUI color name, or None when nothing is close enough.
    """
    normalized = hex_value.lower()
    if normalized in DAISYUI_COLORS:
        return DAISYUI_COLORS[normalized].name

    closest: Optional[str] = None
    best = DAISYUI_MATCH_THRESHOLD
    for palette_hex, info in DAISYUI_COLORS.items():
        distance = color_distance(normalized, palette_hex)
        if distance < best:
            best = distance
            closest = info.name
    return closest
