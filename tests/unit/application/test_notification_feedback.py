from __future__ import annotations

import pytest

from src.application.notifications.feedback import (
    SoundPattern,
    ToastKind,
    build_feedback,
    sound_for,
    toast_for,
)
from src.domain.models.notification import Notification


def notification(ntype: str, *, priority: str = "medium", order_number: str | None = "1001") -> Notification:
    data = {"orderNumber": order_number} if order_number else {}
    return Notification(id="n1", type=ntype, title="t", message="m", priority=priority, data=data)


@pytest.mark.parametrize(
    "priority, pattern",
    [
        ("urgent", SoundPattern.ERROR),
        ("high", SoundPattern.SUCCESS),
        ("medium", SoundPattern.INFO),
        ("low", SoundPattern.TONE),
        (None, SoundPattern.TONE),
    ],
)
def test_sound_pattern_follows_priority(priority, pattern):
    cue = sound_for(priority, "delivered")
    assert cue.pattern is pattern
    assert cue.notification_type == "delivered"


def test_order_placed_toast_mentions_order_number():
    toast = toast_for(notification("order-placed"))
    assert toast.kind is ToastKind.SUCCESS
    assert toast.message == "Order #1001 placed successfully! 🎉"
    assert toast.duration == 4.0
    assert toast.position == "top-right"


def test_kitchen_started_toast_is_info_with_icon():
    toast = toast_for(notification("kitchen-started"))
    assert toast.kind is ToastKind.INFO
    assert toast.icon == "👨‍🍳"


def test_missing_order_number_reads_unknown():
    toast = toast_for(notification("delivered", order_number=None))
    assert "#Unknown" in toast.message


def test_cancelled_toast_is_error():
    assert toast_for(notification("cancelled")).kind is ToastKind.ERROR


@pytest.mark.parametrize("ntype", ["payment-success", "payment-failed", "refund-processed"])
def test_types_without_toast(ntype):
    assert toast_for(notification(ntype)) is None


def test_build_feedback_combines_sound_and_toast():
    feedback = build_feedback(notification("ready-pickup", priority="high"))
    assert feedback.sound.pattern is SoundPattern.SUCCESS
    assert feedback.toast is not None
    assert "pickup" in feedback.toast.message
