from __future__ import annotations

import logging
from typing import Any, Callable

from src.application.interfaces.realtime import EventHandler
from src.application.notifications.types import SocketEvent
from src.domain.models.session_user import SessionUser
from src.infrastructure.realtime.transport import Dispatch, Transport, WebSocketTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Transport]

RECONNECT_FAILED_MESSAGE = "Failed to reconnect to server"


class ConnectionManager:
    """Owns the single live connection of the signed-in user.

    Consumers register handlers with ``on``/``off`` and send with ``emit``;
    they never open or close the connection themselves. The handler registry
    outlives individual connections, so handlers stay in place across
    reconnects and credential changes.
    """

    def __init__(
        self,
        url: str,
        *,
        transport_factory: TransportFactory = WebSocketTransport,
        reconnection_attempts: int = 5,
        reconnection_delay: float = 1.0,
        reconnection_delay_max: float = 5.0,
        connect_timeout: float = 20.0,
    ) -> None:
        self.url = url
        self._transport_factory = transport_factory
        self._transport_options = {
            "reconnection_attempts": reconnection_attempts,
            "reconnection_delay": reconnection_delay,
            "reconnection_delay_max": reconnection_delay_max,
            "connect_timeout": connect_timeout,
        }
        self._handlers: dict[str, list[EventHandler]] = {}
        self._transport: Transport | None = None
        self._generation = 0
        self._connected = False
        self.user: SessionUser | None = None
        self._token: str | None = None
        self.last_error: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def authenticate(self, user: SessionUser | None, token: str | None) -> None:
        """Bring the connection in line with the current identity."""
        if user is None or not token:
            await self.disconnect()
            return
        if self._transport is not None and user == self.user and token == self._token:
            return

        # Old connection is fully closed before the new one starts
        await self.disconnect()
        self.user = user
        self._token = token
        self.last_error = None
        self._transport = self._transport_factory(
            self.url, token, self._make_dispatch(), **self._transport_options
        )
        self._transport.start()
        logger.info("Live connection starting: user=%s", user.id)

    async def disconnect(self) -> None:
        transport, self._transport = self._transport, None
        self.user = None
        self._token = None
        if transport is None:
            return
        # Late events from the closed transport are dropped
        self._generation += 1
        was_connected = self._connected
        self._connected = False
        await transport.close()
        logger.info("Live connection closed")
        if was_connected:
            self._notify(SocketEvent.DISCONNECT, "io client disconnect")

    def emit(self, event: str, payload: Any = None) -> bool:
        if self._transport is None or not self._connected:
            logger.debug("Emit skipped while disconnected: event=%s", event)
            return False
        return self._transport.send(event, payload)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._handlers[event]

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def _make_dispatch(self) -> Dispatch:
        generation = self._generation

        def dispatch(event: str, data: Any) -> None:
            if generation != self._generation:
                return
            self._on_transport_event(event, data)

        return dispatch

    def _on_transport_event(self, event: str, data: Any) -> None:
        if event == SocketEvent.CONNECT:
            self._connected = True
            self.last_error = None
        elif event == SocketEvent.DISCONNECT:
            self._connected = False
            logger.info("Live connection lost: %s", data)
        elif event == SocketEvent.CONNECT_ERROR:
            self._connected = False
            self.last_error = str(data) if data is not None else "Connection error"
        elif event == SocketEvent.RECONNECT_FAILED:
            self._connected = False
            self.last_error = RECONNECT_FAILED_MESSAGE
        self._notify(event, data)

    def _notify(self, event: str, data: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(data)
            except Exception as e:
                logger.error("Error in handler for event %s: %s", event, e, exc_info=True)
