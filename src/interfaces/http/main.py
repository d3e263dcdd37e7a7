from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.logging_config import configure_logging
from src.config.settings import Settings, get_settings
from src.infrastructure.auth.jwt_service import JWTService
from src.infrastructure.services.socket_service import SocketService
from src.infrastructure.websocket.room_manager import RoomManager
from src.interfaces.http.deps import get_app_settings
from src.interfaces.http.routers import realtime
from src.interfaces.middleware.error_handler import register_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        rooms: RoomManager = app.state.room_manager
        await rooms.close_all()


def create_app(
    *,
    settings: Settings | None = None,
    jwt_service: JWTService | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Live Orders Socket Service",
        version="0.1.0",
        description="Real-time order, payment and notification pushes",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.jwt_service = jwt_service or JWTService(
        secret_key=settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
        access_token_expires_minutes=settings.jwt_access_token_expires_minutes,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )
    # One room registry per app; the socket service publishes through it
    app.state.room_manager = RoomManager()
    app.state.socket_service = SocketService(app.state.room_manager)
    register_error_handlers(app)

    api = APIRouter(prefix="/api/v1")
    api.include_router(realtime.stats_router)

    @api.get("/health", tags=["health"])
    async def health(_: Settings = Depends(get_app_settings)) -> dict[str, str]:  # noqa: ANN001
        return {"status": "ok"}

    app.include_router(api)
    app.include_router(realtime.router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    return app


app = create_app()
