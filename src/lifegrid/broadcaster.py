"""SyncBroadcaster — tick timer, observer registry, and fan-out.

The broadcaster is the only component that pushes state to observers.  It
runs one daemon thread (``board-tick``) that calls ``SimulationEngine.step``
every ``tick_interval`` seconds and sends a ``delta`` to every observer when
anything changed.  Quiescent ticks send nothing.

Observers
---------
An observer is anything with an ``observer_id`` and a non-blocking
``deliver(message: dict)``.  ``deliver`` must only hand the message off
(queue it); it raises ``DeliveryFailure`` (or anything else) when the peer
is gone or too far behind.  A raising observer is dropped from the active
set; the rest of the round still goes out.

Ordering
--------
``register`` delivers the snapshot and adds the observer while holding the
fan-out lock, the same lock every tick and draw echo holds while it steps
and fans out.  An observer therefore sees its snapshot at generation N and
then deltas N+1, N+2, ... with nothing skipped or repeated.
"""

from __future__ import annotations

import threading
import time
from typing import Iterable, Protocol

from loguru import logger

from .board import BoardSnapshot, BoardStore
from .engine import SimulationEngine, StepResult
from .ingest import Cell, DrawIngest
from .protocol import delta_message, immediate_draw_message, snapshot_message


class Observer(Protocol):
    observer_id: str

    def deliver(self, message: dict) -> None: ...


class SyncBroadcaster:
    """Drives the tick loop and keeps every observer in sync."""

    join_timeout = 2.0

    def __init__(
        self,
        board: BoardStore,
        engine: SimulationEngine | None = None,
        ingest: DrawIngest | None = None,
        tick_interval: float = 0.1,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")
        self._board = board
        self._engine = engine or SimulationEngine(board)
        self._ingest = ingest or DrawIngest(board)
        self._tick_interval = tick_interval

        self._observers: dict[str, Observer] = {}
        self._observers_lock = threading.Lock()
        self._fanout_lock = threading.Lock()

        self._lifecycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def board(self) -> BoardStore:
        return self._board

    @property
    def tick_interval(self) -> float:
        return self._tick_interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def observer_count(self) -> int:
        with self._observers_lock:
            return len(self._observers)

    def snapshot(self) -> BoardSnapshot:
        return self._board.snapshot()

    # -- Observers ----------------------------------------------------------

    def register(self, observer: Observer) -> dict:
        """Send ``observer`` a snapshot and start including it in fan-out.

        Returns the snapshot message.  If the snapshot cannot be delivered
        the observer is not registered and the failure propagates.
        """
        with self._fanout_lock:
            message = snapshot_message(self._board.snapshot())
            observer.deliver(message)
            with self._observers_lock:
                self._observers[observer.observer_id] = observer
                total = len(self._observers)
        logger.info(
            f"Observer {observer.observer_id} registered at generation "
            f"{message['generation']} ({total} active)"
        )
        return message

    def unregister(self, observer: Observer) -> None:
        with self._observers_lock:
            removed = self._observers.pop(observer.observer_id, None)
            total = len(self._observers)
        if removed is not None:
            logger.info(f"Observer {observer.observer_id} unregistered ({total} active)")

    def _fan_out(self, message: dict) -> int:
        """Deliver ``message`` to every observer; drop the ones that fail."""
        with self._observers_lock:
            targets = list(self._observers.values())

        failed: list[Observer] = []
        for observer in targets:
            try:
                observer.deliver(message)
            except Exception as e:
                logger.warning(f"Delivery to observer {observer.observer_id} failed: {e}")
                failed.append(observer)

        if failed:
            with self._observers_lock:
                for observer in failed:
                    if self._observers.get(observer.observer_id) is observer:
                        del self._observers[observer.observer_id]
            logger.info(f"Dropped {len(failed)} observer(s) after failed delivery")
        return len(targets) - len(failed)

    # -- Draws --------------------------------------------------------------

    def submit_draw(self, cells: Iterable[Cell], submitter_id: str | None = None) -> int:
        """Apply drawn cells and echo the accepted ones to every observer."""
        with self._fanout_lock:
            accepted = self._ingest.commit(cells)
            if accepted:
                self._fan_out(immediate_draw_message(accepted, submitter_id))
        logger.debug(f"Client {submitter_id or 'unknown'} drew {len(accepted)} cells")
        return len(accepted)

    # -- Ticking ------------------------------------------------------------

    def tick(self) -> StepResult:
        """Run one generation and broadcast its delta if anything changed."""
        with self._fanout_lock:
            result = self._engine.step()
            if result.changes:
                self._fan_out(delta_message(result.changes, result.generation))
        return result

    def start(self) -> None:
        with self._lifecycle_lock:
            if self.running:
                return
            # Each loop owns its event, so a loop that outlived stop() stays stopped
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._tick_loop, args=(self._stop_event,), name="board-tick", daemon=True
            )
            self._thread.start()
        logger.info(f"Tick loop started ({self._tick_interval * 1000:.0f}ms interval)")

    def stop(self) -> None:
        with self._lifecycle_lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            if thread is not threading.current_thread():
                thread.join(timeout=self.join_timeout)
            self._thread = None
        logger.info("Tick loop stopped")

    def _tick_loop(self, stop_event: threading.Event) -> None:
        next_at = time.monotonic() + self._tick_interval
        while not stop_event.wait(max(0.0, next_at - time.monotonic())):
            try:
                self.tick()
            except Exception:
                logger.exception("Error in simulation tick")
            next_at += self._tick_interval
            now = time.monotonic()
            if next_at < now:
                # Fell behind; skip the missed ticks instead of bursting
                next_at = now + self._tick_interval
