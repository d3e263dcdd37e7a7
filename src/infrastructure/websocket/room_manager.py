from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

from src.application.notifications.types import ADMIN_ROOM, user_room
from src.domain.value_objects.role import Role
from src.interfaces.http.schemas.notifications import SocketMessage

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConnectedUser:
    user_id: str
    role: Role
    name: str | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RoomManager:
    """Tracks live WebSocket connections and the rooms each one belongs to."""

    def __init__(self) -> None:
        self.users: dict[WebSocket, ConnectedUser] = {}
        self.rooms: dict[str, set[WebSocket]] = {}

    async def connect(
        self, websocket: WebSocket, user_id: str, role: Role, name: str | None = None
    ) -> None:
        """Accept the connection and place it in its personal (and admin) room."""
        await websocket.accept()
        self.users[websocket] = ConnectedUser(user_id=user_id, role=role, name=name)
        self.join(websocket, user_room(user_id))
        if role.receives_admin_broadcasts():
            self.join(websocket, ADMIN_ROOM)
        logger.info(
            f"WebSocket connected: user={user_id} role={role.value} total={len(self.users)}"
        )

    def disconnect(self, websocket: WebSocket) -> None:
        user = self.users.pop(websocket, None)
        for room in list(self.rooms):
            self._discard(room, websocket)
        if user is not None:
            logger.info(
                f"WebSocket disconnected: user={user.user_id} remaining={len(self.users)}"
            )

    async def close_all(self, code: int = 1001) -> None:
        """Close every live connection (server shutdown) and empty the rooms."""
        for websocket in list(self.users):
            try:
                await websocket.close(code=code)
            except Exception as e:
                logger.debug(f"WebSocket already closed on shutdown: {e}")
            self.disconnect(websocket)

    def join(self, websocket: WebSocket, room: str) -> None:
        if websocket not in self.users:
            return
        self.rooms.setdefault(room, set()).add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        self._discard(room, websocket)

    def rooms_of(self, websocket: WebSocket) -> set[str]:
        return {room for room, members in self.rooms.items() if websocket in members}

    def members(self, room: str) -> int:
        return len(self.rooms.get(room, ()))

    async def emit_to_room(self, room: str, event: str, data: Any = None) -> int:
        """Send to every member of ``room``. Returns how many sends succeeded."""
        members = list(self.rooms.get(room, ()))
        if not members:
            logger.debug(f"No members in room: {room}")
            return 0
        message = SocketMessage(event=event, data=data).model_dump_json()
        sent = 0
        for ws in members:
            if await self._send(ws, message):
                sent += 1
        return sent

    async def emit_to_user(self, user_id: str, event: str, data: Any = None) -> int:
        return await self.emit_to_room(user_room(user_id), event, data)

    async def broadcast(self, event: str, data: Any = None) -> int:
        message = SocketMessage(event=event, data=data).model_dump_json()
        sent = 0
        for ws in list(self.users):
            if await self._send(ws, message):
                sent += 1
        return sent

    async def send(self, websocket: WebSocket, event: str, data: Any = None) -> bool:
        return await self._send(websocket, SocketMessage(event=event, data=data).model_dump_json())

    def is_connected(self, user_id: str) -> bool:
        return self.members(user_room(user_id)) > 0

    def connected_users_count(self) -> int:
        return len({u.user_id for u in self.users.values()})

    def connected_admins(self) -> list[ConnectedUser]:
        return [u for u in self.users.values() if u.role.receives_admin_broadcasts()]

    async def _send(self, websocket: WebSocket, message: str) -> bool:
        try:
            await websocket.send_text(message)
            return True
        except Exception as e:
            user = self.users.get(websocket)
            logger.warning(
                f"Error sending to one connection user={user.user_id if user else '?'}: {e}"
            )
            # Broken connection is dropped from every room
            self.disconnect(websocket)
            return False

    def _discard(self, room: str, websocket: WebSocket) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]
