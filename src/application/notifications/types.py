from __future__ import annotations


class NotificationType:
    """Canonical notification type names shared with the order backend."""

    ORDER_PLACED = "order-placed"
    KITCHEN_STARTED = "kitchen-started"
    READY_PICKUP = "ready-pickup"
    READY_DELIVERY = "ready-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    PAYMENT_SUCCESS = "payment-success"
    PAYMENT_FAILED = "payment-failed"
    REFUND_REQUESTED = "refund-requested"
    REFUND_PROCESSED = "refund-processed"
    REFUND_ISSUED = "refund-issued"


ALL_TYPES = {
    NotificationType.ORDER_PLACED,
    NotificationType.KITCHEN_STARTED,
    NotificationType.READY_PICKUP,
    NotificationType.READY_DELIVERY,
    NotificationType.DELIVERED,
    NotificationType.CANCELLED,
    NotificationType.PAYMENT_SUCCESS,
    NotificationType.PAYMENT_FAILED,
    NotificationType.REFUND_REQUESTED,
    NotificationType.REFUND_PROCESSED,
    NotificationType.REFUND_ISSUED,
}


class NotificationPriority:
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


ALL_PRIORITIES = {
    NotificationPriority.URGENT,
    NotificationPriority.HIGH,
    NotificationPriority.MEDIUM,
    NotificationPriority.LOW,
}


class NotificationUpdateType:
    """Sub-types carried by the ``notification-updated`` push event."""

    MARKED_READ = "notifications-marked-read"
    ALL_MARKED_READ = "all-notifications-marked-read"
    DELETED = "notification-deleted"


class SocketEvent:
    """Event names exchanged over the live connection."""

    # lifecycle, emitted locally by the transport
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    CONNECT_ERROR = "connect_error"
    RECONNECT_FAILED = "reconnect_failed"

    # notification pushes
    NOTIFICATION_CREATED = "notification-created"
    NOTIFICATION_UPDATED = "notification-updated"
    UNREAD_COUNT_UPDATED = "unread-count-updated"

    # domain pushes
    NEW_ORDER = "new-order"
    NEW_PAID_ORDER = "new-paid-order"
    ORDER_PLACED = "order-placed"
    ORDER_STATUS_UPDATED = "order-status-updated"
    DISH_UPDATED = "dish-updated"
    MENU_UPDATED = "menu-updated"
    PAYMENT_SUCCESS = "payment-success"
    PAYMENT_FAILED = "payment-failed"
    REFUND_PROCESSED = "refund-processed"
    REFUND_REQUESTED = "refund-requested"

    # room control, client -> server
    JOIN_ORDER_ROOM = "join-order-room"
    LEAVE_ORDER_ROOM = "leave-order-room"
    JOIN_PAYMENT_ROOM = "join-payment-room"
    LEAVE_PAYMENT_ROOM = "leave-payment-room"

    PING = "ping"
    PONG = "pong"


LIFECYCLE_EVENTS = {
    SocketEvent.CONNECT,
    SocketEvent.DISCONNECT,
    SocketEvent.CONNECT_ERROR,
    SocketEvent.RECONNECT_FAILED,
}


def order_room(order_id: str) -> str:
    return f"order-{order_id}"


def payment_room(order_id: str) -> str:
    return f"payment-{order_id}"


def user_room(user_id: str) -> str:
    return f"user-{user_id}"


ADMIN_ROOM = "admin-room"
UNREAD_COUNT_KEY = "unreadCount"
