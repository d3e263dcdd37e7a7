from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from src.application.errors import AppError, NotFound
from src.application.interfaces.key_value_store import KeyValueStore
from src.application.interfaces.notifications_api import NotificationPage, NotificationsApi
from src.application.interfaces.notifier import Notifier
from src.application.interfaces.realtime import RealtimeConnection
from src.application.notifications.deduplicator import NotificationDeduplicator
from src.application.notifications.feedback import build_feedback
from src.application.notifications.types import (
    UNREAD_COUNT_KEY,
    NotificationUpdateType,
    SocketEvent,
)
from src.domain.models.notification import Notification
from src.interfaces.http.schemas.notifications import (
    NotificationSchema,
    NotificationUpdateSchema,
    UnreadCountSchema,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class NotificationStore:
    """In-memory notification list and unread counter for the signed-in user.

    Mutated by live pushes (``apply_*``) and by user actions (``mark_read``,
    ``mark_all_read``, ``delete``). User actions update local state first and
    then call the API; an API failure is reported through :attr:`error`
    without reverting the local change.
    """

    def __init__(
        self,
        api: NotificationsApi,
        deduplicator: NotificationDeduplicator,
        notifier: Notifier,
        storage: KeyValueStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.api = api
        self.deduplicator = deduplicator
        self.notifier = notifier
        self.storage = storage
        self.page_size = page_size
        self.notifications: list[Notification] = []
        self.unread_count = 0
        self.loading = False
        self.error: str | None = None
        self._deleted_ids: set[str] = set()
        self._connection: RealtimeConnection | None = None

    # ------------------------------------------------------------------
    # queries

    def get(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    @property
    def attached(self) -> bool:
        return self._connection is not None

    # ------------------------------------------------------------------
    # session lifecycle

    async def start_session(self) -> None:
        self.deduplicator.clear()
        stored = self._stored_unread_count()
        if stored is not None:
            self.unread_count = stored
        await self.fetch_page()
        await self.fetch_unread_count()

    def end_session(self) -> None:
        self.notifications = []
        self.unread_count = 0
        self.error = None
        self._deleted_ids.clear()

    def attach(self, connection: RealtimeConnection) -> bool:
        """Register the notification listeners unless another store already did."""
        if self._connection is not None:
            return True
        if not self.deduplicator.try_attach_listener():
            logger.debug("Live notification listener already attached, skipping")
            return False
        connection.on(SocketEvent.NOTIFICATION_CREATED, self.apply_push)
        connection.on(SocketEvent.NOTIFICATION_UPDATED, self.apply_update)
        connection.on(SocketEvent.UNREAD_COUNT_UPDATED, self.apply_unread_count)
        self._connection = connection
        return True

    def detach(self) -> None:
        connection = self._connection
        if connection is None:
            return
        connection.off(SocketEvent.NOTIFICATION_CREATED, self.apply_push)
        connection.off(SocketEvent.NOTIFICATION_UPDATED, self.apply_update)
        connection.off(SocketEvent.UNREAD_COUNT_UPDATED, self.apply_unread_count)
        self._connection = None
        self.deduplicator.release_listener()

    # ------------------------------------------------------------------
    # REST-backed operations

    async def fetch_page(
        self,
        page: int = 1,
        limit: int | None = None,
        filters: Mapping[str, Any] | None = None,
        replace: bool = False,
    ) -> NotificationPage | None:
        clean_filters = {k: v for k, v in (filters or {}).items() if v is not None}
        self.loading = True
        self.error = None
        try:
            result = await self.api.list_notifications(
                page=page, limit=limit or self.page_size, filters=clean_filters
            )
        except AppError as exc:
            logger.error("Error fetching notifications: %s", exc.message)
            self.error = exc.message or "Failed to fetch notifications"
            return None
        finally:
            self.loading = False

        if replace or page == 1:
            self.notifications = list(result.notifications)
            self._deleted_ids.clear()
        else:
            # Pages shift when pushes arrive between requests
            known = {n.id for n in self.notifications}
            fresh = [n for n in result.notifications if n.id not in known]
            self.notifications = self.notifications + fresh
        return result

    async def fetch_unread_count(self) -> int:
        try:
            count = await self.api.get_unread_count()
        except AppError as exc:
            logger.warning("Error fetching unread count, using stored value: %s", exc.message)
            stored = self._stored_unread_count()
            if stored is not None:
                self.unread_count = stored
            return self.unread_count
        self._set_unread_count(count)
        return count

    async def mark_read(self, notification_ids: str | Iterable[str]) -> bool:
        ids = {notification_ids} if isinstance(notification_ids, str) else set(notification_ids)
        if not ids:
            return True
        now = datetime.now(timezone.utc)
        flipped = {n.id for n in self.notifications if n.id in ids and n.mark_as_read(now)}
        self._set_unread_count(self.unread_count - len(flipped))
        try:
            await self.api.mark_as_read(sorted(ids))
        except AppError as exc:
            logger.error("Error marking notifications as read: %s", exc.message)
            self.error = exc.message or "Failed to mark notifications as read"
            return False
        return True

    async def mark_all_read(self) -> bool:
        now = datetime.now(timezone.utc)
        for notification in self.notifications:
            notification.mark_as_read(now)
        self._set_unread_count(0)
        try:
            await self.api.mark_all_as_read()
        except AppError as exc:
            logger.error("Error marking all notifications as read: %s", exc.message)
            self.error = exc.message or "Failed to mark all notifications as read"
            return False
        return True

    async def delete(self, notification_id: str) -> bool:
        if notification_id in self._deleted_ids:
            return True

        notification = self._remove(notification_id)
        if notification is not None and not notification.read:
            self._set_unread_count(self.unread_count - 1)

        try:
            await self.api.delete_notification(notification_id)
        except NotFound:
            logger.info("Notification already deleted: id=%s", notification_id)
        except AppError as exc:
            logger.error("Error deleting notification %s: %s", notification_id, exc.message)
            self.error = exc.message or "Failed to delete notification"
            return False
        self._deleted_ids.add(notification_id)
        return True

    # ------------------------------------------------------------------
    # live push handlers

    def apply_push(self, payload: Any) -> bool:
        """Apply a ``notification-created`` push. Returns False for duplicates."""
        try:
            notification = NotificationSchema.model_validate(payload).to_domain()
        except PydanticValidationError as exc:
            logger.warning("Ignoring malformed notification push: %s", exc)
            return False

        # Check-and-mark happens before anything else can run
        if not self.deduplicator.claim(notification.id):
            logger.debug("Duplicate notification push ignored: id=%s", notification.id)
            return False

        self.notifications = [notification, *self.notifications]
        self._set_unread_count(self.unread_count + 1)

        feedback = build_feedback(notification)
        self.notifier.play_sound(feedback.sound)
        if feedback.toast is not None:
            self.notifier.show_toast(feedback.toast)
        logger.info(
            "Notification received: id=%s type=%s priority=%s",
            notification.id,
            notification.type,
            notification.priority,
        )
        return True

    def apply_update(self, payload: Any) -> None:
        try:
            update = NotificationUpdateSchema.model_validate(payload)
        except PydanticValidationError as exc:
            logger.warning("Ignoring malformed notification update: %s", exc)
            return

        if update.type == NotificationUpdateType.MARKED_READ:
            ids = set(update.notification_ids)
            now = datetime.now(timezone.utc)
            for notification in self.notifications:
                if notification.id in ids:
                    notification.mark_as_read(now)
        elif update.type == NotificationUpdateType.ALL_MARKED_READ:
            now = datetime.now(timezone.utc)
            for notification in self.notifications:
                notification.mark_as_read(now)
            self._set_unread_count(0)
        elif update.type == NotificationUpdateType.DELETED and update.notification_id:
            self._remove(update.notification_id)
            self._deleted_ids.add(update.notification_id)
        else:
            logger.debug("Unhandled notification update type: %s", update.type)

    def apply_unread_count(self, payload: Any) -> None:
        try:
            count = UnreadCountSchema.model_validate(payload).unread_count
        except PydanticValidationError as exc:
            logger.warning("Ignoring malformed unread count push: %s", exc)
            return
        self._set_unread_count(count)

    # ------------------------------------------------------------------
    # helpers

    def _remove(self, notification_id: str) -> Notification | None:
        removed = self.get(notification_id)
        if removed is not None:
            self.notifications = [n for n in self.notifications if n.id != notification_id]
        return removed

    def _set_unread_count(self, count: int) -> None:
        count = max(0, count)
        if count == self.unread_count:
            return
        self.unread_count = count
        # Storage may be a file; it is only written when the value moves
        self.storage.set(UNREAD_COUNT_KEY, str(count))

    def _stored_unread_count(self) -> int | None:
        raw = self.storage.get(UNREAD_COUNT_KEY)
        if raw is None:
            return None
        try:
            return max(0, int(raw))
        except ValueError:
            return None
