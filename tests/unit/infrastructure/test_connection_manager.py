from __future__ import annotations

import pytest

from src.application.notifications.types import SocketEvent
from src.domain.models.session_user import SessionUser
from src.domain.value_objects.role import Role
from src.infrastructure.realtime.connection_manager import (
    RECONNECT_FAILED_MESSAGE,
    ConnectionManager,
)


class FakeTransport:
    def __init__(self, url, token, dispatch, **options) -> None:
        self.url = url
        self.token = token
        self.dispatch = dispatch
        self.options = options
        self.connected = False
        self.started = False
        self.closed = False
        self.sent: list[tuple[str, object]] = []

    def start(self) -> None:
        self.started = True

    def send(self, event, data=None) -> bool:
        if not self.connected:
            return False
        self.sent.append((event, data))
        return True

    async def close(self) -> None:
        self.closed = True
        self.connected = False

    def open(self) -> None:
        self.connected = True
        self.dispatch(SocketEvent.CONNECT, None)

    def push(self, event, data) -> None:
        self.dispatch(event, data)


class TransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url, token, dispatch, **options) -> FakeTransport:
        transport = FakeTransport(url, token, dispatch, **options)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture()
def factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture()
def manager(factory) -> ConnectionManager:
    return ConnectionManager(
        "ws://testserver/ws", transport_factory=factory, reconnection_attempts=3
    )


ALICE = SessionUser(id="u1", role=Role.CUSTOMER)
BOB = SessionUser(id="u2", role=Role.CUSTOMER)


async def test_authenticate_starts_one_transport(manager, factory):
    await manager.authenticate(ALICE, "tok-1")

    assert len(factory.created) == 1
    transport = factory.last
    assert transport.started
    assert transport.token == "tok-1"
    assert transport.options["reconnection_attempts"] == 3
    assert not manager.is_connected

    transport.open()
    assert manager.is_connected


async def test_same_identity_does_not_reconnect(manager, factory):
    await manager.authenticate(ALICE, "tok-1")
    await manager.authenticate(ALICE, "tok-1")
    assert len(factory.created) == 1


async def test_new_identity_closes_old_connection_first(manager, factory):
    await manager.authenticate(ALICE, "tok-1")
    first = factory.last
    first.open()

    await manager.authenticate(BOB, "tok-2")

    assert first.closed
    assert len(factory.created) == 2
    assert factory.last.token == "tok-2"
    assert manager.user == BOB


async def test_missing_credentials_disconnect(manager, factory):
    disconnects: list = []
    manager.on(SocketEvent.DISCONNECT, disconnects.append)
    await manager.authenticate(ALICE, "tok-1")
    factory.last.open()

    await manager.authenticate(ALICE, None)

    assert factory.last.closed
    assert not manager.is_connected
    assert manager.user is None
    assert disconnects == ["io client disconnect"]


async def test_emit_is_noop_while_disconnected(manager, factory):
    assert manager.emit("join-order-room", "o1") is False

    await manager.authenticate(ALICE, "tok-1")
    assert manager.emit("join-order-room", "o1") is False

    factory.last.open()
    assert manager.emit("join-order-room", "o1") is True
    assert factory.last.sent == [("join-order-room", "o1")]


async def test_handlers_receive_events_and_survive_reconnects(manager, factory):
    received: list = []
    manager.on(SocketEvent.ORDER_STATUS_UPDATED, received.append)

    await manager.authenticate(ALICE, "tok-1")
    factory.last.open()
    factory.last.push(SocketEvent.ORDER_STATUS_UPDATED, {"status": "ready"})

    await manager.authenticate(BOB, "tok-2")
    factory.last.open()
    factory.last.push(SocketEvent.ORDER_STATUS_UPDATED, {"status": "delivered"})

    assert received == [{"status": "ready"}, {"status": "delivered"}]
    assert manager.handler_count(SocketEvent.ORDER_STATUS_UPDATED) == 1


async def test_events_from_closed_transport_are_dropped(manager, factory):
    received: list = []
    manager.on(SocketEvent.NOTIFICATION_CREATED, received.append)
    await manager.authenticate(ALICE, "tok-1")
    stale = factory.last
    await manager.authenticate(BOB, "tok-2")

    stale.push(SocketEvent.NOTIFICATION_CREATED, {"_id": "n1"})
    stale.open()

    assert received == []
    assert not manager.is_connected


async def test_off_removes_only_that_handler(manager):
    first: list = []
    second: list = []
    manager.on("menu-updated", first.append)
    manager.on("menu-updated", second.append)

    manager.off("menu-updated", first.append)
    manager.off("menu-updated", first.append)
    manager.off("never-registered", first.append)

    assert manager.handler_count("menu-updated") == 1


async def test_failing_handler_does_not_block_others(manager, factory):
    received: list = []

    def boom(_):
        raise RuntimeError("handler failed")

    manager.on("menu-updated", boom)
    manager.on("menu-updated", received.append)
    await manager.authenticate(ALICE, "tok-1")
    factory.last.push("menu-updated", {"menu": []})

    assert received == [{"menu": []}]


async def test_connect_error_and_reconnect_failed_record_last_error(manager, factory):
    errors: list = []
    manager.on(SocketEvent.RECONNECT_FAILED, errors.append)
    await manager.authenticate(ALICE, "tok-1")

    factory.last.push(SocketEvent.CONNECT_ERROR, "Connection refused")
    assert manager.last_error == "Connection refused"

    factory.last.push(SocketEvent.RECONNECT_FAILED, None)
    assert manager.last_error == RECONNECT_FAILED_MESSAGE
    assert errors == [None]
    assert not manager.is_connected


async def test_transport_disconnect_marks_offline(manager, factory):
    await manager.authenticate(ALICE, "tok-1")
    factory.last.open()

    factory.last.push(SocketEvent.DISCONNECT, "transport close")

    assert not manager.is_connected
    assert manager.emit("ping") is False
