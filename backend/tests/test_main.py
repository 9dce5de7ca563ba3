"""Tests for health checks and the live order WebSocket."""

import asyncio
from unittest.mock import patch

import pytest
from starlette.websockets import WebSocketDisconnect

WS_QUERY = "tenant_id=tenant-1&branch_id=branch-1"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["store"] == "healthy"

    def test_not_ready_when_store_fails(self, client, store):
        with patch.object(store, "get", side_effect=RuntimeError("database is locked")):
            response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not ready"

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestOrderWebSocket:
    def test_first_message_is_current_state(self, client, seat_order):
        seat_order("ORD-1", table_id="T2")

        with client.websocket_connect(f"/ws/orders/ORD-1?{WS_QUERY}") as websocket:
            message = websocket.receive_json()

        assert message["type"] == "changes"
        by_path = {change["path"]: change for change in message["changes"]}
        assert by_path["branches/branch-1/orders/ORD-1"]["type"] == "added"
        assert by_path["branches/branch-1/orders/ORD-1"]["data"]["status"] == "open"
        assert "branches/branch-1/orders/ORD-1/items/ORD-1-line" in by_path

    def test_ping(self, client, seat_order):
        seat_order("ORD-1", table_id="T2")

        with client.websocket_connect(f"/ws/orders/ORD-1?{WS_QUERY}") as websocket:
            websocket.receive_json()
            websocket.send_text("ping")
            assert websocket.receive_json() == {"type": "pong"}

    def test_rejected_without_context(self, client, seat_order):
        seat_order("ORD-1", table_id="T2")
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/orders/ORD-1") as websocket:
                websocket.receive_json()

    def test_rejected_for_missing_order(self, client, cafe):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"/ws/orders/nope?{WS_QUERY}") as websocket:
                websocket.receive_json()

    def test_store_reads_stay_off_the_event_loop(self, client, seat_order, store):
        seat_order("ORD-1", table_id="T2")
        real_get = store.get
        reads_on_loop = []

        def tracking_get(path):
            try:
                asyncio.get_running_loop()
                reads_on_loop.append(path)
            except RuntimeError:
                pass
            return real_get(path)

        with patch.object(store, "get", side_effect=tracking_get):
            with client.websocket_connect(f"/ws/orders/ORD-1?{WS_QUERY}") as websocket:
                websocket.receive_json()

        assert reads_on_loop == []
