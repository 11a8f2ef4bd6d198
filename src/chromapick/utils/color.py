"""Color conversion and formatting utilities for Chromapick."""

import math
from typing import Sequence

import numpy as np

DARK_TEXT_COLOR = "#1B1B1B"
LIGHT_TEXT_COLOR = "#FFFFFF"
LUMINANCE_THRESHOLD = 0.6


def rgb_to_hex(rgb: Sequence[int]) -> str:
    """Convert an RGB triplet to an uppercase ``#RRGGBB`` string."""
    r, g, b = [int(c) for c in rgb[:3]]
    return f"#{r:02X}{g:02X}{b:02X}"


def relative_luminance(rgb: Sequence[int]) -> float:
    """Weighted luma of an RGB color, normalized to [0, 1]."""
    r, g, b = rgb[:3]
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def readable_text_color(rgb: Sequence[int]) -> str:
    """Pick dark or light text for a swatch background.

    This is a fixed binary threshold on luminance, not a WCAG contrast ratio.
    """
    if relative_luminance(rgb) > LUMINANCE_THRESHOLD:
        return DARK_TEXT_COLOR
    return LIGHT_TEXT_COLOR


def hsl_saturation_array(pixels: np.ndarray) -> np.ndarray:
    """HSL saturation of every row of an (N, 3) 8-bit pixel array."""
    norm = pixels.astype(np.float64) / 255
    high = norm.max(axis=1)
    low = norm.min(axis=1)
    delta = high - low
    lightness = (high + low) / 2

    # Gray pixels (delta == 0) would divide by zero at pure black or white.
    denominator = np.where(lightness > 0.5, 2 - high - low, high + low)
    safe = np.where(delta == 0, 1.0, denominator)
    saturation = np.where(delta == 0, 0.0, delta / safe)
    return saturation


def color_distance(a: Sequence[int], b: Sequence[int]) -> float:
    """Euclidean distance between two RGB colors."""
    dr = int(a[0]) - int(b[0])
    dg = int(a[1]) - int(b[1])
    db = int(a[2]) - int(b[2])
    return math.sqrt(dr * dr + dg * dg + db * db)


def format_percentage(value: float) -> str:
    """Render a share in [0, 1] as a whole percentage label.

    Non-zero shares that round down to 0% are shown as ``<1%``.
    """
    percentage = math.floor(value * 100 + 0.5)
    if percentage == 0 and value > 0:
        return "<1%"
    return f"{percentage}%"
