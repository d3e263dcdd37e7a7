from __future__ import annotations

import logging
from typing import Any, Callable

from src.application.interfaces.realtime import EventHandler, RealtimeConnection
from src.application.notifications.types import SocketEvent
from src.domain.models.session_user import SessionUser

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class RoomSubscription:
    """Interest of one view in a scoped stream of live events.

    ``activate`` registers the listeners and joins the server room as soon as
    the connection is live; ``deactivate`` leaves the room and removes every
    listener it added. Join and leave are fire-and-forget emits, sent once per
    scope key. Rooms do not survive a new connection, so a ``connect`` after
    a drop joins again.
    """

    join_event: str | None = None
    leave_event: str | None = None

    def __init__(self, connection: RealtimeConnection, scope_key: str | None = None) -> None:
        self.connection = connection
        self.scope_key = scope_key
        self.active = False
        self._joined_key: str | None = None
        self._bound: list[tuple[str, EventHandler]] = []

    def listeners(self) -> list[tuple[str, EventHandler]]:
        return []

    @property
    def joined(self) -> bool:
        return self._joined_key is not None

    def activate(self) -> None:
        if self.active:
            return
        self.active = True
        self._bound = [
            (SocketEvent.CONNECT, self._on_connect),
            (SocketEvent.DISCONNECT, self._on_disconnect),
            *self.listeners(),
        ]
        for event, handler in self._bound:
            self.connection.on(event, handler)
        if self.connection.is_connected:
            self._join()

    def deactivate(self) -> None:
        if not self.active:
            return
        self._leave()
        for event, handler in self._bound:
            self.connection.off(event, handler)
        self._bound = []
        self.active = False

    def set_scope(self, scope_key: str | None) -> None:
        if scope_key == self.scope_key:
            return
        if self.active:
            self._leave()
        self.scope_key = scope_key
        if self.active and self.connection.is_connected:
            self._join()

    async def __aenter__(self) -> RoomSubscription:
        self.activate()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.deactivate()

    def _join(self) -> None:
        if self.join_event is None or self.scope_key is None or self._joined_key is not None:
            return
        if self.connection.emit(self.join_event, self.scope_key):
            self._joined_key = self.scope_key
            logger.debug("Joined room: %s %s", self.join_event, self.scope_key)

    def _leave(self) -> None:
        if self.leave_event is None or self._joined_key is None:
            return
        self.connection.emit(self.leave_event, self._joined_key)
        logger.debug("Left room: %s %s", self.leave_event, self._joined_key)
        self._joined_key = None

    def _on_connect(self, _: Any = None) -> None:
        self._join()

    def _on_disconnect(self, _: Any = None) -> None:
        self._joined_key = None


def _invoke(callback: Callback | None, data: Any) -> None:
    if callback is not None:
        callback(data)


class OrderUpdatesSubscription(RoomSubscription):
    join_event = SocketEvent.JOIN_ORDER_ROOM
    leave_event = SocketEvent.LEAVE_ORDER_ROOM

    def __init__(
        self,
        connection: RealtimeConnection,
        order_id: str | None,
        on_update: Callback | None = None,
    ) -> None:
        super().__init__(connection, order_id)
        self.on_update = on_update

    def listeners(self) -> list[tuple[str, EventHandler]]:
        return [(SocketEvent.ORDER_STATUS_UPDATED, self._handle_status_update)]

    def _handle_status_update(self, data: Any) -> None:
        _invoke(self.on_update, data)


class PaymentUpdatesSubscription(RoomSubscription):
    join_event = SocketEvent.JOIN_PAYMENT_ROOM
    leave_event = SocketEvent.LEAVE_PAYMENT_ROOM

    def __init__(
        self,
        connection: RealtimeConnection,
        order_id: str | None,
        on_success: Callback | None = None,
        on_failure: Callback | None = None,
    ) -> None:
        super().__init__(connection, order_id)
        self.on_success = on_success
        self.on_failure = on_failure

    def listeners(self) -> list[tuple[str, EventHandler]]:
        return [
            (SocketEvent.PAYMENT_SUCCESS, self._handle_success),
            (SocketEvent.PAYMENT_FAILED, self._handle_failure),
        ]

    def _handle_success(self, data: Any) -> None:
        _invoke(self.on_success, data)

    def _handle_failure(self, data: Any) -> None:
        _invoke(self.on_failure, data)


class AdminUpdatesSubscription(RoomSubscription):
    """Admin-wide stream. The server places admins in the admin room on connect.

    Without an explicit ``user`` the role is read from the connection each
    time the subscription is activated.
    """

    def __init__(
        self,
        connection: RealtimeConnection,
        user: SessionUser | None = None,
        on_new_order: Callback | None = None,
        on_order_update: Callback | None = None,
    ) -> None:
        super().__init__(connection, "admin")
        self.user = user
        self.on_new_order = on_new_order
        self.on_order_update = on_order_update

    def listeners(self) -> list[tuple[str, EventHandler]]:
        user = self.user if self.user is not None else self.connection.user
        if user is None or not user.is_admin:
            return []
        return [
            (SocketEvent.NEW_ORDER, self._handle_new_order),
            (SocketEvent.ORDER_STATUS_UPDATED, self._handle_order_update),
        ]

    def _handle_new_order(self, data: Any) -> None:
        _invoke(self.on_new_order, data)

    def _handle_order_update(self, data: Any) -> None:
        _invoke(self.on_order_update, data)


class MenuUpdatesSubscription(RoomSubscription):
    def __init__(
        self, connection: RealtimeConnection, on_menu_update: Callback | None = None
    ) -> None:
        super().__init__(connection)
        self.on_menu_update = on_menu_update

    def listeners(self) -> list[tuple[str, EventHandler]]:
        return [
            (SocketEvent.DISH_UPDATED, self._handle_update),
            (SocketEvent.MENU_UPDATED, self._handle_update),
        ]

    def _handle_update(self, data: Any) -> None:
        _invoke(self.on_menu_update, data)
