from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.application.notifications.types import (
    ALL_PRIORITIES,
    ALL_TYPES,
    NotificationPriority,
)
from src.domain.models.notification import Notification


class NotificationSchema(BaseModel):
    """Notification record as it travels over REST and the live connection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="id")
    type: str
    title: str = ""
    message: str = ""
    priority: str = NotificationPriority.MEDIUM
    data: dict[str, Any] | None = None
    read: bool = False
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )
    read_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("readAt", "read_at"),
        serialization_alias="readAt",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if value is None or value == "":
            raise ValueError("notification id is required")
        return str(value)

    @field_validator("type")
    @classmethod
    def known_type(cls, value: str) -> str:
        if value not in ALL_TYPES:
            raise ValueError(f"unknown notification type: {value}")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, value: Any) -> str:
        if value not in ALL_PRIORITIES:
            return NotificationPriority.MEDIUM
        return value

    def to_domain(self) -> Notification:
        return Notification(
            id=self.id,
            type=self.type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            data=dict(self.data or {}),
            read=self.read,
            created_at=self.created_at or datetime.now(timezone.utc),
            read_at=self.read_at,
        )

    @classmethod
    def from_domain(cls, notification: Notification) -> NotificationSchema:
        return cls(
            id=notification.id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            priority=notification.priority,
            data=notification.data or None,
            read=notification.read,
            created_at=notification.created_at,
            read_at=notification.read_at,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PaginationSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_page: int = Field(default=1, alias="currentPage")
    total_pages: int = Field(default=1, alias="totalPages")
    total_notifications: int = Field(default=0, alias="totalNotifications")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    has_prev_page: bool = Field(default=False, alias="hasPrevPage")


class NotificationListData(BaseModel):
    """Page body. Records are kept raw and validated one by one by the caller."""

    model_config = ConfigDict(extra="ignore")

    notifications: list[Any] = Field(default_factory=list)
    pagination: PaginationSchema | None = None


class UnreadCountSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    unread_count: int = Field(alias="unreadCount", ge=0)


class NotificationUpdateSchema(BaseModel):
    """Payload of the ``notification-updated`` push."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    notification_ids: list[str] = Field(default_factory=list, alias="notificationIds")
    notification_id: str | None = Field(default=None, alias="notificationId")

    @field_validator("notification_ids", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        if value is None:
            return []
        return [str(v) for v in value]


class ApiEnvelope(BaseModel):
    """``{"success": ..., "data": ..., "message": ...}`` wrapper used by the REST API."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    data: Any = None
    message: str | None = None


class SocketMessage(BaseModel):
    """Text frame exchanged over the live connection."""

    event: str = Field(min_length=1)
    data: Any = None
