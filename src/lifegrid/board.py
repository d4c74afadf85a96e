"""BoardStore — the authoritative grid and generation counter.

The grid is a ``(height, width)`` numpy ``int32`` array.  Empty cells hold
``EMPTY`` (-1); live cells hold a packed ``0xRRGGBB`` color.  Every access
goes through the store's re-entrant lock, so a reader never sees a
half-written grid.  Callers that need a multi-step read-modify-write (the
tick, a batch of draws) hold ``store.lock`` across the whole sequence.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import numpy as np

from .colors import Color, format_color, is_color
from .errors import MalformedInput, OutOfBounds

EMPTY = -1


@dataclass(frozen=True)
class BoardSnapshot:
    """Generation-stamped, read-only copy of the board."""

    grid: np.ndarray
    generation: int

    @property
    def height(self) -> int:
        return int(self.grid.shape[0])

    @property
    def width(self) -> int:
        return int(self.grid.shape[1])

    def get(self, x: int, y: int) -> Color | None:
        value = int(self.grid[y, x])
        return None if value == EMPTY else value

    def to_rows(self) -> list[list[str | None]]:
        """Row-major grid of ``#RRGGBB`` / ``None`` for JSON."""
        rows: list[list[str | None]] = []
        for row in self.grid.tolist():
            rows.append([None if v == EMPTY else format_color(v) for v in row])
        return rows


class BoardStore:
    """Owns the board and the generation counter for the process lifetime."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"board dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._grid = np.full((height, width), EMPTY, dtype=np.int32)
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def lock(self) -> threading.RLock:
        """Lock serializing every mutation of the grid."""
        return self._lock

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def _check(self, x: int, y: int) -> None:
        if not self.contains(x, y):
            raise OutOfBounds(x, y, self._width, self._height)

    # -- Single-cell access -------------------------------------------------

    def get(self, x: int, y: int) -> Color | None:
        """Color at (x, y), or ``None`` when the cell is empty."""
        self._check(x, y)
        with self._lock:
            value = int(self._grid[y, x])
        return None if value == EMPTY else value

    def set(self, x: int, y: int, color: Color | None) -> None:
        """Overwrite (x, y).  ``None`` empties the cell.

        Raises OutOfBounds off the board and MalformedInput for anything
        that is not a packed ``0xRRGGBB`` color.
        """
        self._check(x, y)
        if color is not None and not is_color(color):
            raise MalformedInput(f"invalid color value: {color!r}")
        value = EMPTY if color is None else int(color)
        with self._lock:
            self._grid[y, x] = value

    # -- Whole-grid access (used by the simulation step) ---------------------

    def read_grid(self) -> np.ndarray:
        """Copy of the current grid."""
        with self._lock:
            return self._grid.copy()

    def replace_grid(self, grid: np.ndarray) -> None:
        """Swap in a complete next grid.  Shape must match the board."""
        if grid.shape != self._grid.shape:
            raise ValueError(
                f"grid shape {grid.shape} does not match board {self._grid.shape}"
            )
        with self._lock:
            self._grid = grid.astype(np.int32, copy=True)

    def advance_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def snapshot(self) -> BoardSnapshot:
        """Grid copy and generation captured at the same instant."""
        with self._lock:
            grid = self._grid.copy()
            generation = self._generation
        grid.setflags(write=False)
        return BoardSnapshot(grid=grid, generation=generation)

    def live_count(self) -> int:
        with self._lock:
            return int(np.count_nonzero(self._grid != EMPTY))
