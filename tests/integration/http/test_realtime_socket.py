from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from src.application.notifications.types import SocketEvent
from src.domain.models.notification import Notification

ORDER = {
    "_id": "o1",
    "orderNumber": "1001",
    "status": "preparing",
    "paymentStatus": "paid",
    "user": {"name": "Sam", "email": "sam@example.com"},
}


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


def sync(ws) -> None:
    """Round-trip a ping so earlier frames have been handled by the server."""
    ws.send_text("ping")
    assert ws.receive_text() == "pong"


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_socket_rejects_missing_and_invalid_tokens(client):
    for url in ("/ws", "/ws?token=not-a-jwt"):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(url):
                pass
        assert exc.value.code == 1008


def test_order_room_receives_status_updates(client, app, customer_token):
    rooms = app.state.room_manager
    service = app.state.socket_service
    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        ws.send_json({"event": SocketEvent.JOIN_ORDER_ROOM, "data": "o1"})
        sync(ws)
        assert rooms.members("order-o1") == 1

        client.portal.call(service.notify_order_status_update, "o1", ORDER)

        frame = ws.receive_json()
        assert frame["event"] == SocketEvent.ORDER_STATUS_UPDATED
        assert frame["data"]["orderId"] == "o1"
        assert frame["data"]["status"] == "preparing"

        ws.send_json({"event": SocketEvent.LEAVE_ORDER_ROOM, "data": "o1"})
        sync(ws)
        assert rooms.members("order-o1") == 0

    assert rooms.users == {}


def test_malformed_frames_are_ignored(client, app, customer_token):
    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        ws.send_text("{broken")
        ws.send_json({"event": SocketEvent.JOIN_PAYMENT_ROOM})
        sync(ws)
        assert set(app.state.room_manager.rooms) == {"user-user-1"}


def test_notification_push_reaches_owner(client, app, customer_token):
    service = app.state.socket_service
    notification = Notification(
        id="n1",
        type="kitchen-started",
        title="Preparing",
        message="Your order is being prepared",
        priority="high",
        data={"orderNumber": "1001"},
    )
    with client.websocket_connect(f"/ws?token={customer_token}") as ws:
        sync(ws)
        assert client.portal.call(service.send_notification, "user-1", notification) is True

        frame = ws.receive_json()
        assert frame["event"] == SocketEvent.NOTIFICATION_CREATED
        assert frame["data"]["id"] == "n1"
        assert frame["data"]["priority"] == "high"


def test_admin_joins_admin_room_and_sees_new_orders(client, app, admin_token):
    service = app.state.socket_service
    with client.websocket_connect(f"/ws?token={admin_token}") as ws:
        sync(ws)
        assert app.state.room_manager.members("admin-room") == 1

        client.portal.call(service.notify_order_placed, "o1", ORDER)

        frame = ws.receive_json()
        assert frame == {"event": SocketEvent.NEW_ORDER, "data": ORDER}


def test_stats_requires_admin(client, app, customer_token, admin_token):
    assert client.get("/api/v1/realtime/stats").status_code == 401

    resp = client.get(
        "/api/v1/realtime/stats", headers={"Authorization": f"Bearer {customer_token}"}
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"

    with client.websocket_connect(f"/ws?token={admin_token}") as ws:
        sync(ws)
        resp = client.get(
            "/api/v1/realtime/stats", headers={"Authorization": f"Bearer {admin_token}"}
        )

    assert resp.status_code == 200
    body = resp.json()
    assert body["connected_users"] == 1
    assert [a["user_id"] for a in body["connected_admins"]] == ["admin-1"]
    assert body["connected_admins"][0]["name"] == "Ada"
