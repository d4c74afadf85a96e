"""Error taxonomy for the board engine.

None of these are fatal.  ``OutOfBounds`` is recovered where a cell is
applied, ``MalformedInput`` at the transport boundary, and
``DeliveryFailure`` by dropping the observer that raised it.
"""

from __future__ import annotations


class LifeGridError(Exception):
    """Base class for all board engine errors."""


class OutOfBounds(LifeGridError, IndexError):
    """A coordinate fell outside the board."""

    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        super().__init__(f"({x}, {y}) outside {width}x{height} board")
        self.x = x
        self.y = y


class MalformedInput(LifeGridError, ValueError):
    """A submission could not be parsed or is structurally invalid."""


class DeliveryFailure(LifeGridError):
    """An observer's transport refused a message."""
