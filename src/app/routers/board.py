"""Board API — full-state query and the HTTP draw fallback."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.concurrency import run_in_threadpool

from lifegrid.errors import MalformedInput
from lifegrid.protocol import decode_draw_payload

router = APIRouter(prefix="/api", tags=["board"])


def _get_broadcaster(request: Request):
    """Retrieve the SyncBroadcaster from app state."""
    broadcaster = getattr(request.app.state, "broadcaster", None)
    if broadcaster is None:
        raise HTTPException(503, "Board not available")
    return broadcaster


@router.get("/board-state")
def board_state(request: Request):
    """Whole board plus the generation it belongs to.

    Runs in the threadpool: serializing a large board takes a while.
    """
    snapshot = _get_broadcaster(request).snapshot()
    return {"board": snapshot.to_rows(), "generation": snapshot.generation}


@router.post("/draw")
async def draw(request: Request):
    """Paint cells, for clients without a WebSocket."""
    broadcaster = _get_broadcaster(request)
    body = await request.body()
    try:
        payload = decode_draw_payload(body)
    except MalformedInput as e:
        logger.debug(f"Rejected draw request: {e}")
        return JSONResponse(status_code=400, content={"error": f"Invalid cells data: {e}"})

    drawn = await run_in_threadpool(
        broadcaster.submit_draw, payload.to_cells(), payload.submitter_id
    )
    return {"success": True, "cellsDrawn": drawn}
