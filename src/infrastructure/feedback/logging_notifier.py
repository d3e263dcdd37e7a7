from __future__ import annotations

import logging

from src.application.interfaces.notifier import Notifier
from src.application.notifications.feedback import SoundCue, Toast

logger = logging.getLogger(__name__)


class LoggingNotifier(Notifier):
    def play_sound(self, cue: SoundCue) -> None:  # pragma: no cover - side effect only
        logger.info(
            "Playing notification sound (logging notifier): pattern=%s type=%s",
            cue.pattern.value,
            cue.notification_type,
        )

    def show_toast(self, toast: Toast) -> None:  # pragma: no cover - side effect only
        logger.info(
            "Showing toast (logging notifier): kind=%s position=%s duration=%ss message=%s",
            toast.kind.value,
            toast.position,
            toast.duration,
            toast.message,
        )
