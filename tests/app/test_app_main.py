"""Unit tests for app.main — app wiring, routes, lifespan."""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings


@pytest.fixture
def app():
    """Import the actual app instance (no lifespan execution)."""
    from app.main import app as real_app
    return real_app


@pytest.mark.unit
class TestAppCreation:

    def test_app_is_fastapi_instance(self, app):
        assert isinstance(app, FastAPI)

    def test_app_title(self, app):
        assert app.title == "LIFEGRID"

    def test_app_has_lifespan(self, app):
        assert app.router.lifespan_context is not None

    def test_http_routes_registered(self, app):
        paths = app.openapi()["paths"]
        for expected in ("/api/board-state", "/api/draw", "/health", "/api/status"):
            assert expected in paths

    def test_websocket_route_registered(self, app):
        assert app.url_path_for("websocket_board") == "/ws"


@pytest.mark.unit
class TestEndpointsWithoutLifespan:

    def test_health(self, app):
        resp = TestClient(app).get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "operational"


@pytest.mark.unit
class TestCreateBroadcaster:

    def test_uses_configured_dimensions_and_interval(self):
        from app.main import create_broadcaster
        bc = create_broadcaster(Settings(board_width=7, board_height=3, tick_interval_ms=250))
        assert bc.board.width == 7
        assert bc.board.height == 3
        assert bc.tick_interval == pytest.approx(0.25)
        assert not bc.running


@pytest.mark.unit
class TestLifespan:

    def test_lifespan_starts_and_stops_tick_loop(self, app, monkeypatch):
        from app import main
        monkeypatch.setattr(main.settings, "board_width", 16)
        monkeypatch.setattr(main.settings, "board_height", 16)
        monkeypatch.setattr(main.settings, "simulation_enabled", True)

        with TestClient(app) as client:
            broadcaster = app.state.broadcaster
            assert broadcaster.running
            data = client.get("/api/status").json()
            assert data["board"]["width"] == 16
            assert data["running"] is True
            assert data["observers"] == 0
        assert not broadcaster.running

    def test_simulation_disabled_does_not_tick(self, app, monkeypatch):
        from app import main
        monkeypatch.setattr(main.settings, "board_width", 8)
        monkeypatch.setattr(main.settings, "board_height", 8)
        monkeypatch.setattr(main.settings, "simulation_enabled", False)

        with TestClient(app) as client:
            assert client.get("/api/status").json()["running"] is False
            resp = client.post("/api/draw", json={"cells": [{"x": 1, "y": 1, "color": "#FFFFFF"}]})
            assert resp.json()["cellsDrawn"] == 1
            state = client.get("/api/board-state").json()
            assert state["generation"] == 0
            assert state["board"][1][1] == "#FFFFFF"
