from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.domain.models.notification import Notification

from .types import NotificationPriority, NotificationType

TOAST_DURATION_SECONDS = 4.0
TOAST_POSITION = "top-right"


class SoundPattern(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    TONE = "tone"


class ToastKind(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SoundCue:
    pattern: SoundPattern
    notification_type: str


@dataclass(frozen=True, slots=True)
class Toast:
    kind: ToastKind
    message: str
    icon: str | None = None
    duration: float = TOAST_DURATION_SECONDS
    position: str = TOAST_POSITION


@dataclass(frozen=True, slots=True)
class Feedback:
    sound: SoundCue
    toast: Toast | None


_PRIORITY_PATTERNS = {
    NotificationPriority.URGENT: SoundPattern.ERROR,
    NotificationPriority.HIGH: SoundPattern.SUCCESS,
    NotificationPriority.MEDIUM: SoundPattern.INFO,
}


def sound_for(priority: str | None, notification_type: str) -> SoundCue:
    """Low or unknown priorities fall back to the tone of the notification type."""
    pattern = _PRIORITY_PATTERNS.get(priority or "", SoundPattern.TONE)
    return SoundCue(pattern=pattern, notification_type=notification_type)


def toast_for(notification: Notification) -> Toast | None:
    """
    One toast per notification type. Payment success stays silent because
    the order-placed toast for the same order already covers it.
    """
    number = notification.order_number or "Unknown"
    ntype = notification.type

    if ntype == NotificationType.ORDER_PLACED:
        return Toast(ToastKind.SUCCESS, f"Order #{number} placed successfully! 🎉")
    if ntype == NotificationType.KITCHEN_STARTED:
        return Toast(ToastKind.INFO, f"Order #{number} is being prepared! 👨‍🍳", icon="👨‍🍳")
    if ntype == NotificationType.READY_PICKUP:
        return Toast(ToastKind.SUCCESS, f"Order #{number} is ready for pickup! 📦")
    if ntype == NotificationType.READY_DELIVERY:
        return Toast(ToastKind.SUCCESS, f"Order #{number} is ready and out for delivery! 🚚")
    if ntype == NotificationType.DELIVERED:
        return Toast(ToastKind.SUCCESS, f"Order #{number} has been delivered! ✅")
    if ntype == NotificationType.CANCELLED:
        return Toast(ToastKind.ERROR, "Order cancelled")
    if ntype == NotificationType.REFUND_REQUESTED:
        return Toast(ToastKind.SUCCESS, "Refund request submitted successfully")
    return None


def build_feedback(notification: Notification) -> Feedback:
    return Feedback(
        sound=sound_for(notification.priority, notification.type),
        toast=toast_for(notification),
    )
