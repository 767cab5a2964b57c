"""Colour validation and palette helpers for brand identities and graphics."""

import colorsys
import re
from typing import List, NamedTuple, Optional, Tuple

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_BRAND_COLORS = {
    "primary1": "#c0f425",
    "primary2": "#a3d615",
    "accent1": "#ffffff",
    "accent2": "#f0f0f0",
    "neutral_white": "#ffffff",
    "neutral_black": "#161811",
    "neutral_gray": "#888888",
    "highlight_neon": "#00ffcc",
}


class Gradient(NamedTuple):
    """A two-stop linear gradient at a fixed angle (degrees, CSS convention)."""

    start: str
    end: str
    angle: float = 135.0
    label: str = ""


def is_valid_hex_color(value: object) -> bool:
    """True for ``#RRGGBB`` values; 3/8-digit forms and ``#000000`` are rejected."""
    if not isinstance(value, str) or not HEX_COLOR_PATTERN.match(value):
        return False
    return value[1:] != "000000"


def normalize_hex_color(value: object, default: str) -> str:
    """Return ``value`` stripped if it is a valid brand colour, otherwise ``default``."""
    if isinstance(value, str):
        value = value.strip()
    return value if is_valid_hex_color(value) else default


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert ``#RRGGBB`` (or ``#RGB``) to an RGB tuple."""
    h = hex_color.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"Not a hex colour: {hex_color!r}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(max(0, min(255, int(round(c)))) for c in rgb))


def hex_to_hsl(hex_color: str) -> Tuple[float, float, float]:
    """Convert to HSL with hue in degrees and saturation/lightness in percent."""
    try:
        r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    except ValueError:
        return 0.0, 0.0, 0.0
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return h * 360, s * 100, l * 100


def hsl_to_hex(h: float, s: float, l: float) -> str:
    r, g, b = colorsys.hls_to_rgb((h % 360) / 360, l / 100, s / 100)
    return rgb_to_hex((r * 255, g * 255, b * 255))


def contrast_color(hex_color: Optional[str]) -> str:
    """Pick black or white text for a background using the YIQ brightness formula."""
    if not hex_color or not re.match(r"^#([A-Fa-f0-9]{3}){1,2}$", hex_color):
        return "#ffffff"
    r, g, b = hex_to_rgb(hex_color)
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return "#000000" if yiq >= 128 else "#ffffff"


def brand_gradients(primary1: str, accent1: str) -> List[Gradient]:
    """
    Derive the four background gradients offered for store graphics.

    Args:
        primary1: Brand primary colour
        accent1: Brand accent colour

    Returns:
        Gradients in fixed order: primary shift, primary to accent,
        accent energy, neutral tint
    """
    p_h, p_s, p_l = hex_to_hsl(primary1)
    lighter_primary = hsl_to_hex(p_h, p_s, min(p_l + 25, 75))

    a_h, a_s, a_l = hex_to_hsl(accent1)
    vibrant_accent = hsl_to_hex(a_h, min(a_s + 10, 90), max(a_l - 20, 40))

    neutral_tint = hsl_to_hex(p_h, 15, 25)
    lighter_neutral = hsl_to_hex(p_h, 12, 45)

    return [
        Gradient(primary1, lighter_primary, label="Primary Shift"),
        Gradient(primary1, accent1, label="Primary→Accent"),
        Gradient(vibrant_accent, accent1, label="Accent Energy"),
        Gradient(neutral_tint, lighter_neutral, label="Neutral Tint"),
    ]
