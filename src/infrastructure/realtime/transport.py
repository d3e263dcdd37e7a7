from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Callable, Protocol
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import ValidationError as PydanticValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from src.application.notifications.types import SocketEvent
from src.interfaces.http.schemas.notifications import SocketMessage

logger = logging.getLogger(__name__)

Dispatch = Callable[[str, Any], None]


class Transport(Protocol):
    connected: bool

    def start(self) -> None: ...
    def send(self, event: str, data: Any = None) -> bool: ...
    async def close(self) -> None: ...


def with_token(url: str, token: str) -> str:
    parts = urlsplit(url)
    query = "&".join(q for q in (parts.query, urlencode({"token": token})) if q)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class WebSocketTransport:
    """Single live connection with bounded, backed-off reconnection.

    Frames are JSON text ``{"event": ..., "data": ...}``. Every inbound event
    and every lifecycle change (``connect``, ``disconnect``, ``connect_error``,
    ``reconnect_failed``) is reported through ``dispatch``; nothing is raised
    to the caller. A handshake rejected by the server is not retried.
    """

    def __init__(
        self,
        url: str,
        token: str,
        dispatch: Dispatch,
        *,
        reconnection_attempts: int = 5,
        reconnection_delay: float = 1.0,
        reconnection_delay_max: float = 5.0,
        connect_timeout: float = 20.0,
    ) -> None:
        self.url = url
        self._token = token
        self._dispatch = dispatch
        self.reconnection_attempts = reconnection_attempts
        self.reconnection_delay = reconnection_delay
        self.reconnection_delay_max = reconnection_delay_max
        self.connect_timeout = connect_timeout
        self.connected = False
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def send(self, event: str, data: Any = None) -> bool:
        if not self.connected:
            return False
        self._outbox.put_nowait(SocketMessage(event=event, data=data).model_dump_json())
        return True

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        self.connected = False

    def backoff(self, failures: int) -> float:
        return min(self.reconnection_delay * 2 ** max(failures - 1, 0), self.reconnection_delay_max)

    async def _run(self) -> None:
        failures = 0
        while True:
            try:
                ws = await connect(
                    with_token(self.url, self._token), open_timeout=self.connect_timeout
                )
            except InvalidStatus as exc:
                logger.error(
                    "WebSocket handshake rejected: url=%s status=%s",
                    self.url,
                    exc.response.status_code,
                )
                self._dispatch(
                    SocketEvent.CONNECT_ERROR,
                    f"Connection rejected (HTTP {exc.response.status_code})",
                )
                return
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                failures += 1
                logger.warning(
                    "WebSocket connect failed: url=%s attempt=%s error=%s",
                    self.url,
                    failures,
                    exc,
                )
                self._dispatch(SocketEvent.CONNECT_ERROR, str(exc) or type(exc).__name__)
                if failures > self.reconnection_attempts:
                    logger.error("WebSocket reconnection failed after %s attempts", failures - 1)
                    self._dispatch(SocketEvent.RECONNECT_FAILED, None)
                    return
                await asyncio.sleep(self.backoff(failures))
                continue

            failures = 0
            reason = await self._serve(ws)
            self._dispatch(SocketEvent.DISCONNECT, reason)
            await asyncio.sleep(self.reconnection_delay)

    async def _serve(self, ws: ClientConnection) -> str:
        # Emits queued for an earlier connection are not replayed
        self._outbox = asyncio.Queue()
        self.connected = True
        logger.info("WebSocket connected: url=%s", self.url)
        self._dispatch(SocketEvent.CONNECT, None)
        writer = asyncio.create_task(self._write(ws))
        try:
            async for raw in ws:
                self._handle_frame(raw)
            return "io server disconnect"
        except ConnectionClosed as exc:
            return f"transport close: {exc}"
        finally:
            self.connected = False
            writer.cancel()
            with suppress(asyncio.CancelledError, ConnectionClosed):
                await writer
            await ws.close()

    async def _write(self, ws: ClientConnection) -> None:
        while True:
            message = await self._outbox.get()
            await ws.send(message)

    def _handle_frame(self, raw: str | bytes) -> None:
        if raw == SocketEvent.PONG:
            return
        try:
            message = SocketMessage.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("Ignoring malformed WebSocket frame: %s", exc)
            return
        self._dispatch(message.event, message.data)
