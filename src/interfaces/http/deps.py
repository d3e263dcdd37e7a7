from __future__ import annotations

from fastapi import Depends, Request

from src.application.errors import AuthError, PermissionDenied
from src.config.settings import Settings, get_settings
from src.domain.models.session_user import SessionUser
from src.infrastructure.auth.jwt_service import JWTService
from src.infrastructure.websocket.room_manager import RoomManager


def get_app_settings() -> Settings:
    return get_settings()


def get_room_manager(request: Request) -> RoomManager:
    rooms = getattr(request.app.state, "room_manager", None)
    if rooms is None:
        raise RuntimeError("Room manager not configured")
    return rooms


def get_current_user(request: Request) -> SessionUser:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Authentication required")
    jwt_service: JWTService = request.app.state.jwt_service
    return jwt_service.authenticate(token)


def require_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if not user.is_admin:
        raise PermissionDenied("Role not allowed for this action")
    return user
