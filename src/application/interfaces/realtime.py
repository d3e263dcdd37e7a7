from __future__ import annotations

from typing import Any, Callable, Protocol

from src.domain.models.session_user import SessionUser

EventHandler = Callable[[Any], None]


class RealtimeConnection(Protocol):
    @property
    def is_connected(self) -> bool: ...

    @property
    def user(self) -> SessionUser | None: ...

    def on(self, event: str, handler: EventHandler) -> None: ...
    def off(self, event: str, handler: EventHandler) -> None: ...
    def emit(self, event: str, payload: Any = None) -> bool: ...
