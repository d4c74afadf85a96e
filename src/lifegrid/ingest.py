"""DrawIngest — applies client-drawn cells to the board between ticks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from .board import BoardStore
from .colors import Color, format_color, is_color
from .errors import OutOfBounds


@dataclass(frozen=True)
class Cell:
    """A request to paint one position."""

    x: int
    y: int
    color: Color

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "color": format_color(self.color)}


class DrawIngest:
    """Writes drawn cells straight into the BoardStore.

    Out-of-bounds cells and cells whose color is not a packed ``0xRRGGBB``
    value (including ``None``) are dropped one by one; the rest of the
    batch still applies.  Concurrent draws to the same cell resolve
    last-write-wins.
    """

    def __init__(self, board: BoardStore) -> None:
        self._board = board

    def commit(self, cells: Iterable[Cell]) -> list[Cell]:
        """Apply ``cells`` and return the ones that landed on the board."""
        accepted: list[Cell] = []
        rejected = 0
        with self._board.lock:
            for cell in cells:
                if not is_color(cell.color):
                    rejected += 1
                    continue
                try:
                    self._board.set(cell.x, cell.y, cell.color)
                except OutOfBounds:
                    rejected += 1
                    continue
                accepted.append(cell)
        if rejected:
            logger.debug(f"Discarded {rejected} out-of-bounds or invalid cells")
        return accepted

    def apply(self, cells: Iterable[Cell]) -> int:
        """Apply ``cells``; returns how many were valid and written."""
        return len(self.commit(cells))
