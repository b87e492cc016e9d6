"""
WebSocket endpoint for realtime sheet and portrait updates.

Clients connect, then join the rooms they want events from:
- "portrait<id>": one character's rolls (open, used by stream overlays)
- "admin": every player's results (game master only)

Client frames:
    {"type": "room_join", "room": "portrait3"}
    {"type": "room_leave", "room": "portrait3"}
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from typing import Optional
import json
import logging

from backend.auth.jwt import SessionPlayer, verify_token
from backend.broadcast import ADMIN_ROOM, RoomConnectionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/socket", tags=["Socket"])


@router.websocket("/ws")
async def room_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),  # JWT token passed as query param
):
    """
    URL: ws://localhost:8000/api/socket/ws?token={jwt_token}

    The token is optional; without one only portrait rooms can be joined.
    """
    player = None
    if token:
        player = verify_token(token)
        if player is None:
            await websocket.close(code=1008, reason="Invalid or expired token")
            return

    manager: RoomConnectionManager = websocket.app.state.broadcaster
    await manager.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            # Binary frames carry no "text"
            text = message.get("text")
            try:
                data = json.loads(text) if text is not None else None
            except ValueError:
                data = None

            if not isinstance(data, dict):
                await send_error(websocket, "invalid_message")
                continue

            message_type = data.get("type")

            if message_type == "room_join":
                await handle_room_join(manager, websocket, data, player)

            elif message_type == "room_leave":
                await handle_room_leave(manager, websocket, data)

            else:
                logger.warning(f"Unknown message type: {message_type}")
                await send_error(websocket, "unknown_type")

    except WebSocketDisconnect:
        logger.info("Socket disconnected")
    finally:
        manager.disconnect(websocket)


async def send_error(websocket: WebSocket, reason: str):
    await websocket.send_json({"event": "error", "args": [reason]})


async def handle_room_join(
    manager: RoomConnectionManager,
    websocket: WebSocket,
    data: dict,
    player: Optional[SessionPlayer],
):
    room = data.get("room")
    if not isinstance(room, str) or not room:
        await send_error(websocket, "invalid_room")
        return

    if room == ADMIN_ROOM and (player is None or not player.admin):
        await send_error(websocket, "unauthorized")
        return

    manager.join(room, websocket)
    await websocket.send_json({"event": "roomJoined", "args": [room]})


async def handle_room_leave(manager: RoomConnectionManager, websocket: WebSocket, data: dict):
    room = data.get("room")
    if not isinstance(room, str) or not room:
        await send_error(websocket, "invalid_room")
        return

    manager.leave(room, websocket)
    await websocket.send_json({"event": "roomLeft", "args": [room]})
