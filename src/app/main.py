"""LIFEGRID - shared colored Game of Life.

Main FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app.config import Settings, settings
from app.routers import board_router, ws_router
from lifegrid.board import BoardStore
from lifegrid.broadcaster import SyncBroadcaster
from lifegrid.engine import SimulationEngine
from lifegrid.ingest import DrawIngest


def create_broadcaster(config: Settings) -> SyncBroadcaster:
    """Build the board, engine, and broadcaster for one process."""
    board = BoardStore(config.board_width, config.board_height)
    broadcaster = SyncBroadcaster(
        board,
        engine=SimulationEngine(board),
        ingest=DrawIngest(board),
        tick_interval=config.tick_interval_ms / 1000.0,
    )
    logger.info(f"Board created ({config.board_width}x{config.board_height})")
    return broadcaster


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info("  LIFEGRID v0.1.0 - INITIALIZING")
    logger.info("=" * 60)

    broadcaster = create_broadcaster(settings)
    app.state.broadcaster = broadcaster

    if settings.simulation_enabled:
        broadcaster.start()
    else:
        logger.info("Simulation disabled: board accepts draws but does not tick")

    logger.info("=" * 60)
    logger.info("  LIFEGRID ONLINE")
    logger.info("=" * 60)

    yield

    logger.info("LIFEGRID shutting down...")
    broadcaster.stop()


# Create FastAPI app
app = FastAPI(
    title="LIFEGRID",
    description="Shared colored Game of Life board",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include routers
app.include_router(board_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": "0.1.0",
        "system": "LIFEGRID",
    }


@app.get("/api/status")
async def status(request: Request):
    """Simulation status endpoint."""
    broadcaster = getattr(request.app.state, "broadcaster", None)
    if broadcaster is None:
        return {"name": settings.app_name, "version": "0.1.0", "board": None}
    board = broadcaster.board
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "board": {
            "width": board.width,
            "height": board.height,
            "generation": board.generation,
            "live_cells": board.live_count(),
        },
        "running": broadcaster.running,
        "observers": broadcaster.observer_count,
        "tick_interval_ms": settings.tick_interval_ms,
    }


# Static client, mounted last so the API routes take precedence
if settings.static_dir is not None and settings.static_dir.exists():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    logger.info(f"Serving client from {settings.static_dir}")
