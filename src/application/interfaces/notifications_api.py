from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from src.domain.models.notification import Notification


@dataclass(slots=True)
class NotificationPage:
    notifications: list[Notification]
    page: int = 1
    total_pages: int = 1
    total: int = 0
    has_more: bool = False


class NotificationsApi(Protocol):
    async def list_notifications(
        self, *, page: int, limit: int, filters: Mapping[str, Any] | None = None
    ) -> NotificationPage: ...
    async def get_unread_count(self) -> int: ...
    async def mark_as_read(self, notification_ids: list[str]) -> None: ...
    async def mark_all_as_read(self) -> None: ...
    async def delete_notification(self, notification_id: str) -> None: ...
