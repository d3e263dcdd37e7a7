from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError as PydanticValidationError

from src.application.errors import AuthError, InfrastructureError, NotFound
from src.application.interfaces.notifications_api import NotificationPage
from src.domain.models.notification import Notification
from src.interfaces.http.schemas.notifications import (
    ApiEnvelope,
    NotificationListData,
    NotificationSchema,
    UnreadCountSchema,
)

logger = logging.getLogger(__name__)


class HttpNotificationsApi:
    """Client for the ``/notifications`` REST resource of the order backend."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )
        self.set_token(token)

    def set_token(self, token: str | None) -> None:
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_notifications(
        self, *, page: int, limit: int, filters: Mapping[str, Any] | None = None
    ) -> NotificationPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        for key, value in (filters or {}).items():
            if value is None:
                continue
            params[key] = str(value).lower() if isinstance(value, bool) else value
        data = await self._request("GET", "/notifications", params=params)
        try:
            parsed = NotificationListData.model_validate(data)
        except PydanticValidationError as exc:
            raise InfrastructureError("Invalid notifications payload") from exc

        notifications = _parse_records(parsed.notifications)
        pagination = parsed.pagination
        if pagination is None:
            return NotificationPage(
                notifications=notifications,
                page=page,
                total=len(notifications),
                has_more=len(parsed.notifications) >= limit,
            )
        return NotificationPage(
            notifications=notifications,
            page=pagination.current_page,
            total_pages=pagination.total_pages,
            total=pagination.total_notifications,
            has_more=pagination.has_next_page,
        )

    async def get_unread_count(self) -> int:
        data = await self._request("GET", "/notifications/unread-count")
        try:
            return UnreadCountSchema.model_validate(data).unread_count
        except PydanticValidationError as exc:
            raise InfrastructureError("Invalid unread count payload") from exc

    async def mark_as_read(self, notification_ids: list[str]) -> None:
        await self._request(
            "PUT", "/notifications/mark-read", json={"notificationIds": list(notification_ids)}
        )

    async def mark_all_as_read(self) -> None:
        await self._request("PUT", "/notifications/mark-all-read")

    async def delete_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"/notifications/{notification_id}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Notifications API unreachable: %s %s: %s", method, path, exc)
            raise InfrastructureError("Notifications service unavailable") from exc

        message = _error_message(resp)
        if resp.status_code == 404:
            raise NotFound(message or "Notification not found")
        if resp.status_code == 401:
            raise AuthError(message or "Not authorized")
        if resp.status_code >= 400:
            logger.error("Notifications API error %s: %s %s", resp.status_code, method, path)
            raise InfrastructureError(
                message or f"Request failed with status {resp.status_code}",
                details={"status_code": resp.status_code},
            )

        try:
            envelope = ApiEnvelope.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as exc:
            raise InfrastructureError("Invalid response from notifications service") from exc
        if not envelope.success:
            raise InfrastructureError(envelope.message or "Request was not successful")
        return envelope.data


def _parse_records(records: list[Any]) -> list[Notification]:
    # A record that does not validate is skipped, the rest of the page is kept
    notifications: list[Notification] = []
    for record in records:
        try:
            notifications.append(NotificationSchema.model_validate(record).to_domain())
        except PydanticValidationError as exc:
            logger.warning("Skipping malformed notification record: %s", exc)
    return notifications


def _error_message(resp: httpx.Response) -> str | None:
    if resp.status_code < 400:
        return None
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None
