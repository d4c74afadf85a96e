"""NeighborColorResolver — color assigned to a newly born cell.

Dominant color rule: the color held by strictly the most live neighbors
wins.  On a tie for the top tally the tied colors are averaged channel by
channel, rounding half up.  No live neighbors gives white.

The resolver only ever looks at the pre-tick grid it is handed, so the
order in which newborn cells are evaluated within a tick cannot matter.
"""

from __future__ import annotations

from collections import Counter

import numpy as np

from .board import EMPTY
from .colors import WHITE, Color, average_colors

# Moore neighborhood offsets, (dx, dy)
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)


class NeighborColorResolver:
    """Resolves newborn colors from the previous generation's grid."""

    def live_neighbor_colors(self, x: int, y: int, board: np.ndarray) -> list[Color]:
        height, width = board.shape
        colors: list[Color] = []
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if 0 <= nx < width and 0 <= ny < height:
                value = int(board[ny, nx])
                if value != EMPTY:
                    colors.append(value)
        return colors

    def resolve(self, x: int, y: int, board: np.ndarray) -> Color:
        colors = self.live_neighbor_colors(x, y, board)
        if not colors:
            return WHITE

        tally = Counter(colors)
        top = max(tally.values())
        leaders = [color for color, count in tally.items() if count == top]
        if len(leaders) == 1:
            return leaders[0]

        # Tied leaders share the same tally, so a plain mean weights them equally
        return average_colors(leaders)
