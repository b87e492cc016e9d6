"""
Realtime fan-out over WebSocket rooms.

Rooms are named groups of sockets ("admin", "portrait<playerId>", ...).
Every frame sent to a client is JSON: {"event": <name>, "args": [...]}.
"""

import logging
from typing import Any, Dict, List, Protocol

from fastapi import Request, WebSocket

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin"


def portrait_room(player_id: int) -> str:
    """Private room of a character (player or NPC)."""
    return f"portrait{player_id}"


class Broadcaster(Protocol):
    """Pub/sub sink used by request handlers. Emits are fire-and-forget."""

    async def emit(self, room: str, event: str, *args: Any) -> None:
        ...

    async def emit_all(self, event: str, *args: Any) -> None:
        ...


class RoomConnectionManager:
    """Tracks WebSocket connections per room and fans events out to them."""

    def __init__(self):
        # room name → list of websockets
        self.rooms: Dict[str, List[WebSocket]] = {}
        self.connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        """Accept the WebSocket; it receives global events until it disconnects."""
        await websocket.accept()
        self.connections.append(websocket)

    def join(self, room: str, websocket: WebSocket):
        members = self.rooms.setdefault(room, [])
        if websocket not in members:
            members.append(websocket)
            logger.info(f"Socket joined room {room} ({len(members)} members)")

    def leave(self, room: str, websocket: WebSocket):
        if room not in self.rooms:
            return
        if websocket in self.rooms[room]:
            self.rooms[room].remove(websocket)
        # Clean up empty rooms
        if not self.rooms[room]:
            del self.rooms[room]

    def disconnect(self, websocket: WebSocket):
        """Remove the WebSocket from every room it joined."""
        for room in list(self.rooms):
            self.leave(room, websocket)
        if websocket in self.connections:
            self.connections.remove(websocket)

    def room_size(self, room: str) -> int:
        return len(self.rooms.get(room, []))

    async def emit(self, room: str, event: str, *args: Any) -> None:
        """Send an event to every socket in a room."""
        await self._send(list(self.rooms.get(room, [])), event, args)

    async def emit_all(self, event: str, *args: Any) -> None:
        """Send an event to every connected socket."""
        await self._send(list(self.connections), event, args)

    async def _send(self, sockets: List[WebSocket], event: str, args) -> None:
        message = {"event": event, "args": list(args)}
        disconnected = []
        for websocket in sockets:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send {event}: {e}")
                disconnected.append(websocket)

        # Clean up dead connections
        for websocket in disconnected:
            self.disconnect(websocket)


def get_broadcaster(request: Request) -> Broadcaster:
    """FastAPI dependency returning the application's broadcaster."""
    return request.app.state.broadcaster
