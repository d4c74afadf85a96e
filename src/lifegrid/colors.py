"""Color helpers — colors are packed ``0xRRGGBB`` ints inside the engine.

The wire form is ``#RRGGBB``.  Averaging rounds half up, so the mean of
``#000000`` and ``#FFFFFF`` is ``#808080``.
"""

from __future__ import annotations

import numbers
import re
from typing import Iterable

from .errors import MalformedInput

Color = int

WHITE: Color = 0xFFFFFF
MAX_COLOR: Color = 0xFFFFFF

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def parse_color(value: str) -> Color:
    """Parse ``#RRGGBB`` (``#`` optional, any case) into a packed int."""
    if not isinstance(value, str):
        raise MalformedInput(f"color must be a string, got {type(value).__name__}")
    match = _HEX_RE.match(value.strip())
    if match is None:
        raise MalformedInput(f"invalid color: {value!r}")
    return int(match.group(1), 16)


def format_color(color: Color | None) -> str | None:
    """Packed int -> ``#RRGGBB``.  ``None`` (empty) passes through."""
    if color is None:
        return None
    return f"#{color:06X}"


def is_color(value) -> bool:
    """True for an integer between 0 and ``MAX_COLOR`` inclusive."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and 0 <= value <= MAX_COLOR


def split_rgb(color: Color) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def average_colors(colors: Iterable[Color]) -> Color:
    """Channel-wise mean, rounded half up.  White for an empty input."""
    total_r = total_g = total_b = 0
    n = 0
    for color in colors:
        r, g, b = split_rgb(color)
        total_r += r
        total_g += g
        total_b += b
        n += 1
    if n == 0:
        return WHITE

    def _mean(total: int) -> int:
        # floor(total / n + 0.5) in integer arithmetic
        return (2 * total + n) // (2 * n)

    return (_mean(total_r) << 16) | (_mean(total_g) << 8) | _mean(total_b)
