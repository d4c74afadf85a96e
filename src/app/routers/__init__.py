"""API routers for LIFEGRID."""

from app.routers.board import router as board_router
from app.routers.ws import router as ws_router

__all__ = ["board_router", "ws_router"]
