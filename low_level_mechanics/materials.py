"""Surface colours and the palette the colour sensor classifies against."""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

Color = Tuple[int, int, int]

NO_COLOR = "none"

NAMED_COLORS: Dict[str, Color] = {
    "black": (10, 10, 10),
    "white": (235, 235, 235),
    "gray": (120, 120, 120),
    "red": (220, 70, 70),
    "green": (80, 200, 80),
    "blue": (70, 120, 220),
    "yellow": (230, 200, 80),
}


def resolve_color(value: str | Sequence[int]) -> Color:
    """Accept a palette name or an RGB triple and return the RGB triple."""
    if isinstance(value, str):
        try:
            return NAMED_COLORS[value]
        except KeyError:
            raise ValueError(f"Unknown color name '{value}'") from None
    r, g, b = value
    return (int(r), int(g), int(b))


def classify_color(rgb: Optional[Sequence[int]]) -> str:
    """Return the palette name closest to ``rgb`` (squared RGB distance)."""
    if rgb is None:
        return NO_COLOR
    r, g, b = rgb
    best_name = NO_COLOR
    best_dist = float("inf")
    for name, (pr, pg, pb) in NAMED_COLORS.items():
        dist = (r - pr) ** 2 + (g - pg) ** 2 + (b - pb) ** 2
        if dist < best_dist:
            best_dist = dist
            best_name = name
    return best_name


__all__ = ["Color", "NO_COLOR", "NAMED_COLORS", "resolve_color", "classify_color"]
