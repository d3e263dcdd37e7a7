from __future__ import annotations

from typing import Protocol

from src.application.notifications.feedback import SoundCue, Toast


class Notifier(Protocol):
    def play_sound(self, cue: SoundCue) -> None: ...
    def show_toast(self, toast: Toast) -> None: ...
