"""WebSocket endpoint for live board updates.

Each socket is wrapped in a WebSocketObserver and registered with the
SyncBroadcaster.  The tick thread hands messages to the observer through
``deliver``, which only schedules a put onto the connection's queue; a
writer task on the event loop drains that queue into the socket.  A socket
that falls ``max_pending`` messages behind raises DeliveryFailure on the
next ``deliver`` and is dropped by the broadcaster.
"""

import asyncio
import threading
import uuid
from typing import Dict, Optional, Union

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger
from starlette.concurrency import run_in_threadpool

from app.config import settings
from lifegrid.errors import DeliveryFailure, MalformedInput
from lifegrid.protocol import (
    DrawMessage,
    PingMessage,
    decode_client_message,
    encode,
    error_message,
    pong_message,
)

router = APIRouter(tags=["websocket"])

# Close code for "try again later" (RFC 6455 registry)
_CLOSE_TRY_AGAIN = 1013
_CLOSE_INTERNAL_ERROR = 1011

_CLOSE = object()


class WebSocketObserver:
    """Thread-safe, non-blocking observer backed by one WebSocket."""

    def __init__(
        self,
        websocket: WebSocket,
        loop: asyncio.AbstractEventLoop,
        max_pending: int = 256,
        observer_id: Optional[str] = None,
    ):
        self.observer_id = observer_id or uuid.uuid4().hex[:8]
        self._websocket = websocket
        self._loop = loop
        self._max_pending = max_pending
        self._queue: asyncio.Queue = asyncio.Queue()
        self._pending = 0
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    def deliver(self, message: dict) -> None:
        """Queue ``message`` for the writer task.  Never blocks."""
        if self._closed:
            raise DeliveryFailure(f"observer {self.observer_id} is closed")
        with self._lock:
            if self._pending >= self._max_pending:
                raise DeliveryFailure(
                    f"observer {self.observer_id} has {self._pending} undelivered messages"
                )
            self._pending += 1
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, message)
        except RuntimeError as e:
            # Event loop already closed
            self._closed = True
            raise DeliveryFailure(str(e)) from e

    async def run_writer(self) -> None:
        """Drain queued messages into the socket until closed or broken."""
        try:
            while True:
                message = await self._queue.get()
                if message is _CLOSE:
                    break
                with self._lock:
                    self._pending -= 1
                await self._websocket.send_text(encode(message))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Observer {self.observer_id} send failed: {e}")
        finally:
            self._closed = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSE)
        except RuntimeError:
            pass


class ConnectionManager:
    """Tracks open WebSocket connections and enforces the observer cap."""

    def __init__(self, max_connections: int = 500):
        self.max_connections = max_connections
        self.active_connections: Dict[WebSocket, WebSocketObserver] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> Optional[WebSocketObserver]:
        """Accept ``websocket`` and wrap it in an observer.

        Returns None (after closing the socket) when the cap is reached.
        """
        async with self._lock:
            if len(self.active_connections) >= self.max_connections:
                full = True
            else:
                full = False
                observer = WebSocketObserver(
                    websocket,
                    asyncio.get_running_loop(),
                    max_pending=settings.observer_queue_size,
                )
                self.active_connections[websocket] = observer
        if full:
            logger.warning(
                f"Refusing WebSocket: {self.max_connections} connections already open"
            )
            await websocket.close(code=_CLOSE_TRY_AGAIN)
            return None
        await websocket.accept()
        logger.info(f"WebSocket connected. Total connections: {len(self.active_connections)}")
        return observer

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            observer = self.active_connections.pop(websocket, None)
        if observer is not None:
            observer.close()
        logger.info(f"WebSocket disconnected. Total connections: {len(self.active_connections)}")


# Global connection manager
manager = ConnectionManager(max_connections=settings.max_observers)


@router.websocket("/ws")
async def websocket_board(websocket: WebSocket):
    """Snapshot on connect, then deltas and draw echoes until the client leaves."""
    broadcaster = getattr(websocket.app.state, "broadcaster", None)
    if broadcaster is None:
        await websocket.close(code=_CLOSE_INTERNAL_ERROR)
        return

    observer = await manager.connect(websocket)
    if observer is None:
        return

    writer = asyncio.create_task(observer.run_writer())
    try:
        await run_in_threadpool(broadcaster.register, observer)
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            data = frame.get("text")
            if data is None:
                data = frame.get("bytes") or b""
            await handle_client_message(broadcaster, observer, data)
    except WebSocketDisconnect:
        pass
    except DeliveryFailure as e:
        logger.warning(f"Closing observer {observer.observer_id}: {e}")
    finally:
        broadcaster.unregister(observer)
        await manager.disconnect(websocket)
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass


def _decode_frame(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInput(f"binary frame is not UTF-8: {e}") from e


async def handle_client_message(broadcaster, observer: WebSocketObserver, data: Union[str, bytes]):
    """Handle one frame from a client.  Binary frames are read as UTF-8 JSON."""
    try:
        if isinstance(data, bytes):
            data = _decode_frame(data)
        message = decode_client_message(data)
    except MalformedInput as e:
        observer.deliver(error_message(f"Invalid message: {e}"))
        return

    if isinstance(message, PingMessage):
        observer.deliver(pong_message())
    elif isinstance(message, DrawMessage):
        await run_in_threadpool(
            broadcaster.submit_draw, message.to_cells(), message.submitter_id
        )
