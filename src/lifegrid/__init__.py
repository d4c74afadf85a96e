"""LifeGrid — shared colored Game-of-Life board: state, rules, and sync."""
from .board import EMPTY, BoardSnapshot, BoardStore
from .broadcaster import Observer, SyncBroadcaster
from .colors import WHITE, Color, average_colors, format_color, parse_color
from .engine import DeltaChange, SimulationEngine, StepResult, neighbor_counts, next_generation
from .errors import DeliveryFailure, LifeGridError, MalformedInput, OutOfBounds
from .ingest import Cell, DrawIngest
from .resolver import NeighborColorResolver

__all__ = [
    "BoardSnapshot",
    "BoardStore",
    "Cell",
    "Color",
    "DeliveryFailure",
    "DeltaChange",
    "DrawIngest",
    "EMPTY",
    "LifeGridError",
    "MalformedInput",
    "NeighborColorResolver",
    "Observer",
    "OutOfBounds",
    "SimulationEngine",
    "StepResult",
    "SyncBroadcaster",
    "WHITE",
    "average_colors",
    "format_color",
    "neighbor_counts",
    "next_generation",
    "parse_color",
]
