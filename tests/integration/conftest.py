"""Shared fixtures for integration tests.

Provides a session-scoped LifeGridServer on a small board so the tick
loop stays cheap.  Integration tests are deselected by default; run with:

    pytest -m integration
"""

from __future__ import annotations

import pytest

from tests.lib.server_manager import LifeGridServer


@pytest.fixture(scope="session")
def server() -> LifeGridServer:
    """Session-scoped fixture: starts LIFEGRID on a 32x32 board, 50ms ticks."""
    srv = LifeGridServer(
        env={
            "LIFEGRID_BOARD_WIDTH": "32",
            "LIFEGRID_BOARD_HEIGHT": "32",
            "LIFEGRID_TICK_INTERVAL_MS": "50",
        },
    )
    srv.start()
    yield srv
    srv.stop()


@pytest.fixture(scope="session")
def base_url(server: LifeGridServer) -> str:
    """Convenience: the server's base URL as a plain string."""
    return server.base_url
