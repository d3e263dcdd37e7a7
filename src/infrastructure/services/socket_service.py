from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from src.application.notifications.types import (
    ADMIN_ROOM,
    SocketEvent,
    order_room,
    payment_room,
)
from src.domain.models.notification import Notification
from src.infrastructure.websocket.room_manager import RoomManager
from src.interfaces.http.schemas.notifications import NotificationSchema

logger = logging.getLogger(__name__)

Order = Mapping[str, Any]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _order_id(order: Order) -> str | None:
    value = order.get("_id", order.get("id"))
    return str(value) if value is not None else None


def _customer(order: Order, key: str) -> str:
    user = order.get("user") or {}
    return user.get(key) or "Unknown"


class SocketService:
    """Fans order, payment, menu and notification events out to socket rooms."""

    def __init__(self, rooms: RoomManager) -> None:
        self.rooms = rooms

    async def notify_payment_success(self, order_id: str, order: Order) -> None:
        await self.rooms.emit_to_room(
            payment_room(order_id),
            SocketEvent.PAYMENT_SUCCESS,
            {
                "type": SocketEvent.PAYMENT_SUCCESS,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "paymentStatus": "paid",
                "status": "preparing",
                "totalAmount": order.get("totalAmount"),
                "paymentMethod": order.get("paymentMethodType"),
                "timestamp": _now(),
            },
        )
        await self.rooms.emit_to_room(
            ADMIN_ROOM,
            SocketEvent.NEW_PAID_ORDER,
            {
                "type": SocketEvent.NEW_PAID_ORDER,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "customerName": _customer(order, "name"),
                "customerEmail": _customer(order, "email"),
                "totalAmount": order.get("totalAmount"),
                "paymentMethod": order.get("paymentMethodType"),
                "timestamp": _now(),
            },
        )
        logger.info(f"Payment success pushed: order={order_id}")

    async def notify_payment_failure(
        self, order_id: str, order: Order, error: str | None = None
    ) -> None:
        await self.rooms.emit_to_room(
            payment_room(order_id),
            SocketEvent.PAYMENT_FAILED,
            {
                "type": SocketEvent.PAYMENT_FAILED,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "paymentStatus": "failed",
                "status": "cancelled",
                "error": error or "Payment could not be processed",
                "timestamp": _now(),
            },
        )
        logger.info(f"Payment failure pushed: order={order_id}")

    async def notify_order_placed(self, order_id: str, order: Order) -> None:
        await self.rooms.emit_to_room(
            order_room(order_id),
            SocketEvent.ORDER_PLACED,
            {
                "type": SocketEvent.ORDER_PLACED,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "status": order.get("status"),
                "paymentStatus": order.get("paymentStatus"),
                "statusTimestamps": order.get("statusTimestamps"),
                "totalAmount": order.get("totalAmount"),
                "timestamp": _now(),
            },
        )
        # Admins get the full order document
        await self.rooms.emit_to_room(ADMIN_ROOM, SocketEvent.NEW_ORDER, dict(order))

    async def notify_order_status_update(self, order_id: str, order: Order) -> None:
        await self.rooms.emit_to_room(
            order_room(order_id),
            SocketEvent.ORDER_STATUS_UPDATED,
            {
                "type": SocketEvent.ORDER_STATUS_UPDATED,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "status": order.get("status"),
                "paymentStatus": order.get("paymentStatus"),
                "statusTimestamps": order.get("statusTimestamps"),
                "timestamp": _now(),
            },
        )
        await self.rooms.emit_to_room(
            ADMIN_ROOM,
            SocketEvent.ORDER_STATUS_UPDATED,
            {
                "type": SocketEvent.ORDER_STATUS_UPDATED,
                "orderId": _order_id(order),
                "orderNumber": order.get("orderNumber"),
                "status": order.get("status"),
                "customerName": _customer(order, "name"),
                "statusTimestamps": order.get("statusTimestamps"),
                "timestamp": _now(),
            },
        )

    async def send_notification(self, user_id: str, notification: Notification) -> bool:
        """Push a persisted notification to the owner's personal room."""
        payload = NotificationSchema.from_domain(notification).to_payload()
        sent = await self.rooms.emit_to_user(user_id, SocketEvent.NOTIFICATION_CREATED, payload)
        if sent:
            logger.info(f"Notification sent via WebSocket: id={notification.id}")
        else:
            logger.debug(
                f"User not connected, notification will be retrieved later: user={user_id}"
            )
        return sent > 0

    async def broadcast_notification(self, notification: Notification) -> None:
        payload = NotificationSchema.from_domain(notification).to_payload()
        await self.rooms.broadcast(SocketEvent.NOTIFICATION_CREATED, payload)

    async def send_notification_update(
        self, user_id: str, update_type: str, data: Mapping[str, Any] | None = None
    ) -> None:
        await self.rooms.emit_to_user(
            user_id, SocketEvent.NOTIFICATION_UPDATED, {"type": update_type, **(data or {})}
        )

    async def send_unread_count_update(self, user_id: str, unread_count: int) -> None:
        await self.rooms.emit_to_user(
            user_id, SocketEvent.UNREAD_COUNT_UPDATED, {"unreadCount": unread_count}
        )

    async def send_refund_notification(self, user_id: str, refund: Mapping[str, Any]) -> None:
        await self.rooms.emit_to_user(user_id, SocketEvent.REFUND_PROCESSED, dict(refund))

    async def send_refund_request_to_admin(self, refund: Mapping[str, Any]) -> None:
        await self.rooms.emit_to_room(ADMIN_ROOM, SocketEvent.REFUND_REQUESTED, dict(refund))

    async def notify_dish_update(self, dish: Mapping[str, Any], action: str) -> None:
        await self.rooms.broadcast(
            SocketEvent.DISH_UPDATED,
            {
                "type": SocketEvent.DISH_UPDATED,
                "action": action,
                "dish": dict(dish),
                "timestamp": _now(),
            },
        )

    async def notify_menu_update(self, update_type: str, data: Any = None) -> None:
        await self.rooms.broadcast(
            SocketEvent.MENU_UPDATED,
            {
                "type": SocketEvent.MENU_UPDATED,
                "updateType": update_type,
                "data": data,
                "timestamp": _now(),
            },
        )
