"""
Tests for the realtime room WebSocket and the connection manager.
"""

import asyncio

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from backend.auth.jwt import create_access_token
from backend.broadcast import RoomConnectionManager
from routes.dice_fastapi import get_roll_delay


@pytest.fixture
def test_client(delay):
    from backend.app import application

    application.dependency_overrides[get_roll_delay] = lambda: delay

    with TestClient(application) as client:
        yield client

    application.dependency_overrides.clear()


def token(player_id, admin=False):
    return create_access_token(player_id, admin)


def join(ws, room):
    ws.send_json({"type": "room_join", "room": room})
    return ws.receive_json()


# ============================================================================
# ROOMS
# ============================================================================

def test_portrait_room_is_open(test_client):
    with test_client.websocket_connect("/api/socket/ws") as ws:
        assert join(ws, "portrait4") == {"event": "roomJoined", "args": ["portrait4"]}


def test_admin_room_requires_admin_token(test_client):
    with test_client.websocket_connect("/api/socket/ws") as ws:
        assert join(ws, "admin") == {"event": "error", "args": ["unauthorized"]}

    with test_client.websocket_connect(f"/api/socket/ws?token={token(3)}") as ws:
        assert join(ws, "admin") == {"event": "error", "args": ["unauthorized"]}

    with test_client.websocket_connect(f"/api/socket/ws?token={token(1, admin=True)}") as ws:
        assert join(ws, "admin") == {"event": "roomJoined", "args": ["admin"]}


def test_invalid_token_is_refused(test_client):
    with pytest.raises(WebSocketDisconnect):
        with test_client.websocket_connect("/api/socket/ws?token=garbage") as ws:
            ws.receive_json()


def test_bad_frames_get_errors(test_client):
    with test_client.websocket_connect("/api/socket/ws") as ws:
        ws.send_json({"type": "dance"})
        assert ws.receive_json() == {"event": "error", "args": ["unknown_type"]}

        ws.send_json({"type": "room_join"})
        assert ws.receive_json() == {"event": "error", "args": ["invalid_room"]}

        ws.send_text("not json")
        assert ws.receive_json() == {"event": "error", "args": ["invalid_message"]}

        ws.send_json(["room_join"])
        assert ws.receive_json() == {"event": "error", "args": ["invalid_message"]}


def test_binary_frame_is_rejected_and_socket_cleaned_up(test_client):
    manager = test_client.app.state.broadcaster

    with test_client.websocket_connect("/api/socket/ws") as ws:
        join(ws, "portrait9")
        ws.send_bytes(b"\x00\x01")
        assert ws.receive_json() == {"event": "error", "args": ["invalid_message"]}

        # Still usable after the bad frame
        assert join(ws, "portrait10") == {"event": "roomJoined", "args": ["portrait10"]}
        assert manager.room_size("portrait9") == 1

    assert manager.room_size("portrait9") == 0
    assert manager.room_size("portrait10") == 0
    assert manager.connections == []


def test_leave_room(test_client):
    with test_client.websocket_connect("/api/socket/ws") as ws:
        join(ws, "portrait2")
        ws.send_json({"type": "room_leave", "room": "portrait2"})
        assert ws.receive_json() == {"event": "roomLeft", "args": ["portrait2"]}


# ============================================================================
# END TO END
# ============================================================================

def test_dice_roll_reaches_portrait_room(test_client):
    headers = {"Authorization": f"Bearer {token(1, admin=True)}"}

    with test_client.websocket_connect("/api/socket/ws") as ws:
        join(ws, "portrait7")

        resp = test_client.post("/api/dice", headers=headers, json={"dices": {"num": 3, "roll": 6}, "npcId": 7})
        results = resp.json()["results"]

        assert ws.receive_json() == {"event": "diceRoll", "args": []}
        assert ws.receive_json() == {"event": "diceResult", "args": [7, results, {"num": 3, "roll": 6}]}


def test_player_roll_reaches_admin_room(test_client):
    headers = {"Authorization": f"Bearer {token(3)}"}

    with test_client.websocket_connect(f"/api/socket/ws?token={token(1, admin=True)}") as ws:
        join(ws, "admin")

        resp = test_client.post("/api/dice", headers=headers, json={"dices": [{"num": 1, "roll": 20}]})
        results = resp.json()["results"]

        assert ws.receive_json() == {"event": "diceResult", "args": [3, results, [{"num": 1, "roll": 20}]]}


def test_environment_change_reaches_every_socket(test_client):
    headers = {"Authorization": f"Bearer {token(1, admin=True)}"}

    with test_client.websocket_connect("/api/socket/ws") as ws:
        resp = test_client.post("/api/config/environment", headers=headers, json={"value": "combat"})
        assert resp.status_code == 200
        assert ws.receive_json() == {"event": "environmentChange", "args": ["combat"]}


# ============================================================================
# CONNECTION MANAGER
# ============================================================================

class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def accept(self):
        pass

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def test_manager_emits_only_to_room_members():
    manager = RoomConnectionManager()
    inside, outside = FakeSocket(), FakeSocket()
    asyncio.run(manager.connect(inside))
    asyncio.run(manager.connect(outside))
    manager.join("portrait1", inside)

    asyncio.run(manager.emit("portrait1", "diceRoll"))
    asyncio.run(manager.emit("portrait9", "diceRoll"))

    assert inside.sent == [{"event": "diceRoll", "args": []}]
    assert outside.sent == []


def test_manager_drops_dead_sockets():
    manager = RoomConnectionManager()
    alive, dead = FakeSocket(), FakeSocket(fail=True)
    for socket in (alive, dead):
        asyncio.run(manager.connect(socket))
        manager.join("admin", socket)

    asyncio.run(manager.emit_all("environmentChange", "idle"))

    assert alive.sent == [{"event": "environmentChange", "args": ["idle"]}]
    assert manager.room_size("admin") == 1
    assert dead not in manager.connections


def test_manager_disconnect_cleans_empty_rooms():
    manager = RoomConnectionManager()
    socket = FakeSocket()
    asyncio.run(manager.connect(socket))
    manager.join("portrait1", socket)
    manager.join("portrait2", socket)

    manager.disconnect(socket)

    assert manager.rooms == {}
    assert manager.connections == []
