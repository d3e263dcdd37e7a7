from __future__ import annotations

import asyncio

from src.application.notifications.types import SocketEvent
from src.infrastructure.realtime import transport as transport_module
from src.infrastructure.realtime.transport import WebSocketTransport, with_token


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def __call__(self, event, data) -> None:
        self.events.append((event, data))

    def names(self) -> list[str]:
        return [event for event, _ in self.events]


def test_with_token_appends_query_parameter():
    assert with_token("ws://host/ws", "abc") == "ws://host/ws?token=abc"
    assert with_token("wss://host/ws?v=2", "a b") == "wss://host/ws?v=2&token=a+b"


def test_backoff_doubles_up_to_maximum():
    transport = WebSocketTransport(
        "ws://host/ws", "t", Recorder(), reconnection_delay=1.0, reconnection_delay_max=5.0
    )
    assert [transport.backoff(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_send_is_refused_while_not_connected():
    transport = WebSocketTransport("ws://host/ws", "t", Recorder())
    assert transport.send("ping") is False


def test_frames_are_dispatched_and_pong_ignored():
    recorder = Recorder()
    transport = WebSocketTransport("ws://host/ws", "t", recorder)

    transport._handle_frame("pong")
    transport._handle_frame('{"event": "menu-updated", "data": {"menu": []}}')
    transport._handle_frame("not json")
    transport._handle_frame('{"data": 1}')

    assert recorder.events == [("menu-updated", {"menu": []})]


async def test_gives_up_after_configured_attempts(monkeypatch):
    attempts: list[str] = []

    async def refuse(url, **kwargs):
        attempts.append(url)
        raise OSError("Connection refused")

    monkeypatch.setattr(transport_module, "connect", refuse)
    recorder = Recorder()
    transport = WebSocketTransport(
        "ws://host/ws",
        "tok",
        recorder,
        reconnection_attempts=2,
        reconnection_delay=0,
        reconnection_delay_max=0,
    )

    transport.start()
    await asyncio.wait_for(transport._task, timeout=1)

    assert len(attempts) == 3
    assert attempts[0] == "ws://host/ws?token=tok"
    assert recorder.names() == [
        SocketEvent.CONNECT_ERROR,
        SocketEvent.CONNECT_ERROR,
        SocketEvent.CONNECT_ERROR,
        SocketEvent.RECONNECT_FAILED,
    ]
    assert recorder.events[0][1] == "Connection refused"


async def test_close_cancels_pending_reconnect(monkeypatch):
    async def refuse(url, **kwargs):
        raise OSError("Connection refused")

    monkeypatch.setattr(transport_module, "connect", refuse)
    transport = WebSocketTransport(
        "ws://host/ws", "tok", Recorder(), reconnection_delay=10, reconnection_delay_max=10
    )
    transport.start()
    await asyncio.sleep(0)

    await transport.close()

    assert transport._task is None
    assert transport.connected is False
