"""
Tests for notifications: REST ownership rules, the connection registries and
the push socket.
"""

import json
from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketDisconnect, WebSocketState

from pizza_api.main import app
from pizza_api.models import Notification
from pizza_api.realtime import InMemoryConnectionRegistry, RedisConnectionRegistry
from pizza_api.realtime.redis_registry import validate_message
from pizza_api.repositories import InMemoryUnitOfWork
from pizza_api.routers._common import get_session_factory
from pizza_api.services.domain import NotificationService
from pizza_shared.infrastructure.db import get_db
from pizza_shared.security.auth import sign_session_token
from tests.conftest import login, make_user, order_payload


def _fake_socket(connected=True):
    ws = MagicMock()
    state = WebSocketState.CONNECTED if connected else WebSocketState.DISCONNECTED
    ws.client_state = state
    ws.application_state = state
    ws.send_json = AsyncMock()
    return ws


def _add_notification(db_session, user_id, title="Order Placed", is_read=False):
    notification = Notification(
        user_id=user_id,
        title=title,
        message="Your order has been placed.",
        type="order_created",
        is_read=is_read,
    )
    db_session.add(notification)
    db_session.commit()
    return notification


class TestNotificationService:

    def test_push_runs_after_commit(self):
        uow = InMemoryUnitOfWork()
        dispatcher = MagicMock()
        service = NotificationService(uow, dispatcher)

        service.notify(1, "order_created", "Order Placed", "Placed.")

        dispatcher.dispatch.assert_called_once()
        user_id, payload = dispatcher.dispatch.call_args.args
        assert user_id == 1
        assert payload["type"] == "notification"
        assert payload["data"]["title"] == "Order Placed"

    def test_no_push_when_flow_rolls_back(self):
        uow = InMemoryUnitOfWork()
        dispatcher = MagicMock()
        service = NotificationService(uow, dispatcher)

        with pytest.raises(RuntimeError):
            with uow:
                service.notify(1, "order_created", "Order Placed", "Placed.")
                raise RuntimeError("stock check failed")

        dispatcher.dispatch.assert_not_called()
        assert uow.notifications.find_by(user_id=1) == []


class TestNotificationEndpoints:

    def test_list_and_unread(self, customer_client, seed_customer, db_session):
        _add_notification(db_session, seed_customer.id, title="First")
        _add_notification(db_session, seed_customer.id, title="Second", is_read=True)

        listed = customer_client.get("/api/notifications").json()
        unread = customer_client.get("/api/notifications/unread").json()

        assert {n["title"] for n in listed} == {"First", "Second"}
        assert unread["count"] == 1
        assert unread["notifications"][0]["title"] == "First"

    def test_mark_read(self, customer_client, seed_customer, db_session):
        notification = _add_notification(db_session, seed_customer.id)

        response = customer_client.patch(f"/api/notifications/{notification.id}/read")

        assert response.status_code == 200
        assert response.json()["is_read"] is True

    def test_read_all(self, customer_client, seed_customer, db_session):
        for _ in range(3):
            _add_notification(db_session, seed_customer.id)

        response = customer_client.post("/api/notifications/read-all")

        assert response.json()["data"] == {"updated": 3}
        assert customer_client.get("/api/notifications/unread").json()["count"] == 0

    def test_other_users_notification_is_not_found(self, client, db_session):
        owner = make_user(db_session, "alice")
        make_user(db_session, "eve")
        notification = _add_notification(db_session, owner.id)

        login(client, "eve")

        assert client.patch(f"/api/notifications/{notification.id}/read").status_code == 404
        assert client.delete(f"/api/notifications/{notification.id}").status_code == 404
        assert client.get("/api/notifications").json() == []

    def test_delete(self, customer_client, seed_customer, db_session):
        notification = _add_notification(db_session, seed_customer.id)

        response = customer_client.delete(f"/api/notifications/{notification.id}")

        assert response.status_code == 200
        assert customer_client.get("/api/notifications").json() == []

    def test_order_placement_creates_notification(self, customer_client, seed_catalog):
        customer_client.post("/api/orders", json=order_payload(seed_catalog))

        types = [n["type"] for n in customer_client.get("/api/notifications").json()]
        assert types == ["order_created"]


class TestInMemoryRegistry:

    @pytest.mark.asyncio
    async def test_send_reaches_every_socket(self):
        registry = InMemoryConnectionRegistry()
        first, second = _fake_socket(), _fake_socket()
        await registry.register(1, first)
        await registry.register(1, second)

        sent = await registry.send_to_user(1, {"type": "notification"})

        assert sent == 2
        first.send_json.assert_awaited_once_with({"type": "notification"})
        assert registry.connection_count(1) == 2

    @pytest.mark.asyncio
    async def test_connection_limit(self):
        registry = InMemoryConnectionRegistry()
        for _ in range(registry.MAX_CONNECTIONS_PER_USER):
            await registry.register(1, _fake_socket())

        with pytest.raises(ConnectionError):
            await registry.register(1, _fake_socket())

        assert registry.connection_count() == registry.MAX_CONNECTIONS_PER_USER

    @pytest.mark.asyncio
    async def test_dead_sockets_dropped(self):
        registry = InMemoryConnectionRegistry()
        closed = _fake_socket(connected=False)
        failing = _fake_socket()
        failing.send_json.side_effect = RuntimeError("broken pipe")
        await registry.register(1, closed)
        await registry.register(1, failing)

        sent = await registry.send_to_user(1, {"type": "notification"})

        assert sent == 0
        closed.send_json.assert_not_called()
        assert 1 not in registry.by_user

    @pytest.mark.asyncio
    async def test_send_to_user_without_sockets(self):
        assert await InMemoryConnectionRegistry().send_to_user(42, {}) == 0


class TestRedisRegistry:

    @pytest.mark.parametrize(
        "data, valid",
        [
            ({"user_id": 1, "payload": {"type": "notification"}}, True),
            ({"user_id": "1", "payload": {}}, False),
            ({"user_id": 1, "payload": "x"}, False),
            (["not", "a", "dict"], False),
        ],
    )
    def test_validate_message(self, data, valid):
        assert validate_message(data)[0] is valid

    @pytest.mark.asyncio
    async def test_send_publishes_to_channel(self):
        client = MagicMock()
        client.publish = AsyncMock()
        registry = RedisConnectionRegistry(client, "pizza:test")

        await registry.send_to_user(7, {"type": "notification"})

        channel, raw = client.publish.await_args.args
        assert channel == "pizza:test"
        assert json.loads(raw) == {"user_id": 7, "payload": {"type": "notification"}}

    @pytest.mark.asyncio
    async def test_publish_failure_is_not_raised(self):
        client = MagicMock()
        client.publish = AsyncMock(side_effect=ConnectionError("redis down"))
        registry = RedisConnectionRegistry(client, "pizza:test")

        assert await registry.send_to_user(7, {}) == 0

    @pytest.mark.asyncio
    async def test_handle_message_delivers_locally(self):
        registry = RedisConnectionRegistry(MagicMock(), "pizza:test")
        ws = _fake_socket()
        await registry.register(7, ws)

        sent = await registry.handle_message(json.dumps({"user_id": 7, "payload": {"type": "notification"}}))
        ignored = await registry.handle_message("{broken")

        assert sent == 1
        assert ignored == 0
        ws.send_json.assert_awaited_once_with({"type": "notification"})


class TestNotificationSocket:

    def _token(self, user):
        return sign_session_token(user.id, user.is_admin, user.session_version)

    def test_rejects_without_session(self, client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/api/ws/notifications") as ws:
                ws.receive_json()

        assert exc.value.code == 1008

    def test_rejects_revoked_token(self, client, seed_customer, db_session):
        token = self._token(seed_customer)
        seed_customer.session_version += 1
        db_session.commit()

        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"/api/ws/notifications?token={token}") as ws:
                ws.receive_json()

        assert exc.value.code == 1008

    def test_connect_and_ping(self, client, seed_customer):
        with client.websocket_connect(f"/api/ws/notifications?token={self._token(seed_customer)}") as ws:
            assert ws.receive_json() == {"type": "connected", "data": {"user_id": seed_customer.id}}

            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_order_notification_is_pushed(self, customer_client, seed_customer, seed_catalog):
        url = f"/api/ws/notifications?token={self._token(seed_customer)}"
        with customer_client.websocket_connect(url) as ws:
            ws.receive_json()

            customer_client.post("/api/orders", json=order_payload(seed_catalog))
            message = ws.receive_json()

        assert message["type"] == "notification"
        assert message["data"]["type"] == "order_created"

    def test_socket_releases_db_session_before_listening(self, client, seed_customer, db_session):
        events = []

        @contextmanager
        def tracked_session():
            events.append("open")
            try:
                yield db_session
            finally:
                events.append("close")

        def counting_get_db():
            events.append("request-scoped")
            yield db_session

        app.dependency_overrides[get_session_factory] = lambda: tracked_session
        app.dependency_overrides[get_db] = counting_get_db

        with client.websocket_connect(f"/api/ws/notifications?token={self._token(seed_customer)}") as ws:
            assert ws.receive_json()["type"] == "connected"
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

            assert events == ["open", "close"]
