"""End-to-end /ws tests through Starlette's TestClient.

Learn: `with TestClient(app)` runs the real lifespan, so the hub (and
its liveness monitor) is started and stopped exactly as in production.
Rejected handshakes are accepted first, then closed with 4001/4003,
which the client sees as WebSocketDisconnect on its first receive.
"""

import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from intraportal.auth.jwt import create_access_token
from intraportal.config import settings
from intraportal.main import app
from intraportal.realtime.hub import close_hub


@pytest.fixture()
def tc():
    with TestClient(app) as client:
        yield client


def _token(user_id: str | None = None) -> str:
    return create_access_token(user_id or str(uuid.uuid4()))


def _stats(tc) -> dict:
    resp = tc.get(
        "/api/v1/realtime/stats",
        headers={"Authorization": f"Bearer {_token()}"},
    )
    assert resp.status_code == 200
    return resp.json()


def test_connect_without_token_closed_4001(tc):
    with tc.websocket_connect("/ws") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 4001
    assert exc.value.reason == "Unauthorized: Token required"


def test_connect_with_bad_token_closed_4003(tc):
    with tc.websocket_connect("/ws?token=not-a-jwt") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 4003
    assert exc.value.reason == "Invalid token"


def test_connect_ack_carries_user_id(tc):
    with tc.websocket_connect(f"/ws?token={_token('user-7')}") as ws:
        assert ws.receive_json() == {
            "type": "connection",
            "message": "Connected to real-time updates",
            "userId": "user-7",
        }


def test_ping_pong_and_subscribe(tc):
    with tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()

        ws.send_json({"type": "ping"})
        pong = ws.receive_json()
        assert pong["type"] == "pong"
        assert isinstance(pong["timestamp"], int)

        ws.send_json({"type": "subscribe", "data": {"channel": "news"}})
        assert ws.receive_json() == {"type": "subscribed", "channel": "news"}


def test_malformed_and_unknown_frames_keep_connection_open(tc):
    with tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()

        ws.send_text("{definitely not json")
        ws.send_json({"type": "teleport"})
        ws.send_json({"type": "heartbeat"})
        ws.send_json({"type": "ping"})

        # The first reply is the pong: nothing was sent for the others
        assert ws.receive_json()["type"] == "pong"


def test_update_broadcast_to_every_client(tc):
    with tc.websocket_connect(f"/ws?token={_token('a')}") as a, \
            tc.websocket_connect(f"/ws?token={_token('b')}") as b:
        a.receive_json()
        b.receive_json()

        a.send_json({
            "type": "update",
            "data": {"resource": "news", "action": "created", "payload": {"id": "n1"}},
        })

        frame_a = a.receive_json()
        frame_b = b.receive_json()
        assert frame_a == frame_b
        assert frame_a["type"] == "update"
        assert frame_a["resource"] == "news"
        assert frame_a["data"] == {"id": "n1"}
        assert "timestamp" in frame_a


def test_registry_tracks_open_sockets(tc):
    with tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()
        assert _stats(tc)["connections"] == 1

    assert _stats(tc)["connections"] == 0


def test_rejected_handshake_never_registered(tc):
    with tc.websocket_connect("/ws?token=bad") as ws:
        with pytest.raises(WebSocketDisconnect):
            ws.receive_text()
    assert _stats(tc)["connections"] == 0


def test_health_counts_connections(tc):
    with tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()
        data = tc.get("/api/v1/health").json()
        assert data["realtime"] == {"connections": 1, "running": True}


def test_stats_count_subscribers_per_channel(tc):
    with tc.websocket_connect(f"/ws?token={_token('a')}") as a, \
            tc.websocket_connect(f"/ws?token={_token('b')}") as b:
        a.receive_json()
        b.receive_json()
        for ws, channel in ((a, "news"), (b, "news"), (b, "events")):
            ws.send_json({"type": "subscribe", "data": {"channel": channel}})
            ws.receive_json()

        stats = _stats(tc)
        assert stats["connections"] == 2
        assert stats["users"] == 2
        assert stats["channels"] == {"news": 2, "events": 1}


# ═══════════════════════════════════════════════════════════
# Liveness and shutdown over a real socket
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def fast_tc(monkeypatch):
    monkeypatch.setattr(settings, "ws_heartbeat_interval", 0.2)
    with TestClient(app) as client:
        yield client


def test_silent_client_evicted_after_one_missed_heartbeat(fast_tc):
    with fast_tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()
        assert ws.receive_json() == {"type": "heartbeat"}

        # No answer: the next sweep terminates the socket
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 1008
    assert exc.value.reason == "Connection terminated"
    assert _stats(fast_tc)["connections"] == 0


def test_answering_client_survives_heartbeats(fast_tc):
    with fast_tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()
        for _ in range(5):
            assert ws.receive_json() == {"type": "heartbeat"}
            ws.send_json({"type": "heartbeat"})

        ws.send_json({"type": "ping"})
        frame = ws.receive_json()
        while frame["type"] == "heartbeat":
            frame = ws.receive_json()
        assert frame["type"] == "pong"
        assert _stats(fast_tc)["connections"] == 1


def test_shutdown_closes_open_sockets_1001(tc):
    with tc.websocket_connect(f"/ws?token={_token()}") as ws:
        ws.receive_json()

        tc.portal.call(close_hub)

        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 1001
    assert exc.value.reason == "Server shutting down"

    resp = tc.get(
        "/api/v1/realtime/stats",
        headers={"Authorization": f"Bearer {_token()}"},
    )
    assert resp.status_code == 503
