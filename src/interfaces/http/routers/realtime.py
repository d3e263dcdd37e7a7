from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from src.application.errors import AuthError
from src.application.notifications.types import SocketEvent, order_room, payment_room
from src.domain.models.session_user import SessionUser
from src.infrastructure.websocket.room_manager import RoomManager
from src.interfaces.http.deps import get_room_manager, require_admin
from src.interfaces.http.schemas.notifications import SocketMessage
from src.interfaces.http.schemas.realtime import ConnectedAdminSchema, RealtimeStatsResponse

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)

_JOIN_EVENTS = {
    SocketEvent.JOIN_ORDER_ROOM: order_room,
    SocketEvent.JOIN_PAYMENT_ROOM: payment_room,
}
_LEAVE_EVENTS = {
    SocketEvent.LEAVE_ORDER_ROOM: order_room,
    SocketEvent.LEAVE_PAYMENT_ROOM: payment_room,
}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str | None = None) -> None:
    """
    Live updates endpoint.
    Requires JWT access token as query parameter: /ws?token=<jwt_token>
    """
    rooms: RoomManager = websocket.app.state.room_manager
    try:
        jwt_service = getattr(websocket.app.state, "jwt_service", None)
        if jwt_service is None:
            raise RuntimeError("JWT service not configured")
        if not token:
            raise AuthError("Authentication error: No token provided")
        user = jwt_service.authenticate(token)
    except (AuthError, RuntimeError) as e:
        logger.warning(f"WebSocket authentication failed: {e}")
        await websocket.close(code=1008, reason="Authentication failed")
        return

    await rooms.connect(websocket, user.id, user.role, user.name)

    try:
        while True:
            data = await websocket.receive_text()
            if data == SocketEvent.PING:
                await websocket.send_text(SocketEvent.PONG)
                continue
            try:
                message = SocketMessage.model_validate_json(data)
            except PydanticValidationError:
                logger.debug(f"Ignoring malformed frame from user={user.id}")
                continue
            handle_room_control(rooms, websocket, message)

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected: user={user.id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)
    finally:
        rooms.disconnect(websocket)


def handle_room_control(rooms: RoomManager, websocket: WebSocket, message: SocketMessage) -> None:
    """Apply a join/leave request. Anything else from the client is ignored."""
    if message.data is None or message.data == "":
        return
    scope = str(message.data)
    if message.event in _JOIN_EVENTS:
        rooms.join(websocket, _JOIN_EVENTS[message.event](scope))
    elif message.event in _LEAVE_EVENTS:
        rooms.leave(websocket, _LEAVE_EVENTS[message.event](scope))


stats_router = APIRouter(prefix="/realtime", tags=["realtime"])


@stats_router.get("/stats", response_model=RealtimeStatsResponse)
async def realtime_stats(
    _: SessionUser = Depends(require_admin),
    rooms: RoomManager = Depends(get_room_manager),
) -> RealtimeStatsResponse:
    """Connected users and admins (admin only)."""
    return RealtimeStatsResponse(
        connected_users=rooms.connected_users_count(),
        connected_admins=[
            ConnectedAdminSchema(
                user_id=admin.user_id, name=admin.name, connected_at=admin.connected_at
            )
            for admin in rooms.connected_admins()
        ],
    )
