from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from src.application.interfaces.key_value_store import KeyValueStore
from src.application.interfaces.notifier import Notifier
from src.application.notifications.deduplicator import NotificationDeduplicator
from src.application.notifications.store import NotificationStore
from src.application.realtime.subscriptions import (
    AdminUpdatesSubscription,
    Callback,
    MenuUpdatesSubscription,
    OrderUpdatesSubscription,
    PaymentUpdatesSubscription,
)
from src.config.logging_config import configure_logging
from src.config.settings import Settings, get_settings
from src.domain.models.session_user import SessionUser
from src.infrastructure.feedback.logging_notifier import LoggingNotifier
from src.infrastructure.http.notifications_api import HttpNotificationsApi
from src.infrastructure.realtime.connection_manager import ConnectionManager
from src.infrastructure.storage.key_value import JsonFileKeyValueStore

logger = logging.getLogger(__name__)


class LiveOrdersClient:
    """Wires the live notification pipeline for one application instance.

    The de-duplicator, connection and store are created here once and shared
    by every subscription handed out by this client.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        api: HttpNotificationsApi | None = None,
        connection: ConnectionManager | None = None,
        notifier: Notifier | None = None,
        storage: KeyValueStore | None = None,
        deduplicator: NotificationDeduplicator | None = None,
        configure_logs: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        if configure_logs:
            configure_logging(self.settings.log_level)
        self.api = api or HttpNotificationsApi(
            self.settings.api_base_url, timeout=self.settings.request_timeout_seconds
        )
        self.connection = connection or ConnectionManager(
            self.settings.ws_url,
            reconnection_attempts=self.settings.reconnection_attempts,
            reconnection_delay=self.settings.reconnection_delay,
            reconnection_delay_max=self.settings.reconnection_delay_max,
            connect_timeout=self.settings.connect_timeout,
        )
        self.deduplicator = deduplicator or NotificationDeduplicator(
            window_seconds=self.settings.dedup_window_seconds
        )
        self.store = NotificationStore(
            api=self.api,
            deduplicator=self.deduplicator,
            notifier=notifier or LoggingNotifier(),
            storage=storage or JsonFileKeyValueStore(self.settings.unread_count_store_path),
            page_size=self.settings.notifications_page_size,
        )
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def user(self) -> SessionUser | None:
        return self.connection.user

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    async def login(self, user: SessionUser, token: str) -> None:
        same_user = self.connection.user is not None and self.connection.user.id == user.id
        self.api.set_token(token)
        await self.connection.authenticate(user, token)
        self.store.attach(self.connection)
        if self._sweeper is None:
            self._sweeper = asyncio.get_running_loop().create_task(
                self.deduplicator.run_sweeper(self.settings.dedup_sweep_interval_seconds)
            )
        if not same_user:
            await self.store.start_session()
        logger.info("Signed in to live updates: user=%s role=%s", user.id, user.role.value)

    async def logout(self) -> None:
        await self._stop_sweeper()
        self.store.detach()
        await self.connection.disconnect()
        self.api.set_token(None)
        self.store.end_session()
        logger.info("Signed out of live updates")

    async def aclose(self) -> None:
        await self.logout()
        await self.api.aclose()

    def order_updates(
        self, order_id: str | None, on_update: Callback | None = None
    ) -> OrderUpdatesSubscription:
        return OrderUpdatesSubscription(self.connection, order_id, on_update)

    def payment_updates(
        self,
        order_id: str | None,
        on_success: Callback | None = None,
        on_failure: Callback | None = None,
    ) -> PaymentUpdatesSubscription:
        return PaymentUpdatesSubscription(self.connection, order_id, on_success, on_failure)

    def admin_updates(
        self, on_new_order: Callback | None = None, on_order_update: Callback | None = None
    ) -> AdminUpdatesSubscription:
        return AdminUpdatesSubscription(
            self.connection, on_new_order=on_new_order, on_order_update=on_order_update
        )

    def menu_updates(self, on_menu_update: Callback | None = None) -> MenuUpdatesSubscription:
        return MenuUpdatesSubscription(self.connection, on_menu_update)

    async def _stop_sweeper(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
