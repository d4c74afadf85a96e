"""SimulationEngine — advances the shared board one generation per step.

Rules
-----
Liveness is structural and color-agnostic (standard B3/S23):

  - a live cell with 2 or 3 live neighbors survives, otherwise it dies
  - a dead cell with exactly 3 live neighbors is born, otherwise stays dead

Cells beyond the board edge count as dead; the board does not wrap.

Survivors keep their pre-tick color.  Newborns are colored by
NeighborColorResolver against the *pre-tick* grid.  Deaths become empty.

Data flow
---------
``step()`` holds the BoardStore lock for the whole read-compute-write, so a
draw that races a tick lands either entirely before or entirely after it.
The transition itself lives in ``next_generation()``, a pure function of
the previous grid and the resolver, which is what the tests drive directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from loguru import logger

from .board import EMPTY, BoardStore
from .colors import Color, format_color
from .resolver import NeighborColorResolver


@dataclass(frozen=True)
class DeltaChange:
    """A position whose color changed this tick (``None`` = now empty)."""

    x: int
    y: int
    color: Color | None

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "color": format_color(self.color)}


class StepResult(NamedTuple):
    changes: list[DeltaChange]
    generation: int


def neighbor_counts(alive: np.ndarray) -> np.ndarray:
    """Live Moore-neighbor count for every cell of a boolean grid."""
    padded = np.pad(alive.astype(np.uint8), 1, mode="constant")
    height, width = alive.shape
    counts = np.zeros((height, width), dtype=np.uint8)
    for dy in (0, 1, 2):
        for dx in (0, 1, 2):
            if dy == 1 and dx == 1:
                continue
            counts += padded[dy:dy + height, dx:dx + width]
    return counts


def next_generation(
    grid: np.ndarray, resolver: NeighborColorResolver
) -> tuple[np.ndarray, list[DeltaChange]]:
    """Compute the grid after one tick and the cells that changed color."""
    alive = grid != EMPTY
    counts = neighbor_counts(alive)

    survives = alive & ((counts == 2) | (counts == 3))
    born = ~alive & (counts == 3)

    nxt = np.where(survives, grid, EMPTY).astype(np.int32)
    for y, x in zip(*np.nonzero(born)):
        nxt[y, x] = resolver.resolve(int(x), int(y), grid)

    changes: list[DeltaChange] = []
    for y, x in zip(*np.nonzero(nxt != grid)):
        value = int(nxt[y, x])
        changes.append(DeltaChange(int(x), int(y), None if value == EMPTY else value))
    return nxt, changes


class SimulationEngine:
    """Steps a BoardStore forward; the only writer besides DrawIngest."""

    def __init__(self, board: BoardStore, resolver: NeighborColorResolver | None = None) -> None:
        self._board = board
        self._resolver = resolver or NeighborColorResolver()

    @property
    def board(self) -> BoardStore:
        return self._board

    def step(self) -> StepResult:
        """Run one tick.  Returns the changed cells and the new generation."""
        with self._board.lock:
            grid = self._board.read_grid()
            nxt, changes = next_generation(grid, self._resolver)
            self._board.replace_grid(nxt)
            generation = self._board.advance_generation()

        if changes:
            logger.debug(f"Generation {generation}: {len(changes)} cells changed")
        return StepResult(changes, generation)
