"""
Tests for the HTTP interface.

Runs the FastAPI app with the engine dependency overridden by an engine
over the in-memory friend graph, so the error-kind to status-code mapping
is exercised end to end. The lifespan is not entered (no FalkorDB).
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from redis.asyncio import BlockingConnectionPool

from friend_graph_service.errors import NotFoundError
from friend_graph_service.graph.client import GraphClient
from friend_graph_service.models.notifications import Notification
from friend_graph_service.services.friendship_engine import FriendshipEngine
from friend_graph_service.web.app import app
from friend_graph_service.web.dependencies import get_engine, get_notification_store


def as_user(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def client(friend_graph, repository_factory):
    counter = iter(range(1, 1000))
    engine = FriendshipEngine(
        graph=friend_graph,
        repository_factory=repository_factory,
        id_factory=lambda: f"req-{next(counter)}",
    )
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _send(client, sender, receiver):
    return client.post("/api/friends/requests", json={"receiver_id": receiver}, headers=as_user(sender))


class TestFriendRoutes:
    def test_send_request_created(self, client):
        response = _send(client, "alice", "bob")

        assert response.status_code == 201
        data = response.json()
        assert data["request_id"] == "req-1"
        assert data["status"] == "pending"

    def test_missing_identity_header(self, client):
        response = client.post("/api/friends/requests", json={"receiver_id": "bob"})
        assert response.status_code == 401

    def test_self_request_is_400(self, client):
        response = _send(client, "alice", "alice")

        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"

    def test_unknown_user_is_404(self, client):
        response = _send(client, "alice", "mallory")

        assert response.status_code == 404
        assert response.json() == {"detail": "One or both users not found", "kind": "not_found"}

    def test_duplicate_is_409(self, client):
        _send(client, "alice", "bob")
        response = _send(client, "bob", "alice")

        assert response.status_code == 409
        assert response.json()["kind"] == "conflict"

    def test_accept_flow(self, client):
        _send(client, "alice", "bob")

        response = client.post(
            "/api/friends/requests/req-1/accept", json={"status": "accepted"}, headers=as_user("bob")
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Friend request accepted successfully"

        friends = client.get("/api/friends", headers=as_user("alice")).json()
        assert friends["count"] == 1
        assert friends["friends"][0]["id"] == "bob"

    def test_accept_by_sender_is_403(self, client):
        _send(client, "alice", "bob")

        response = client.post(
            "/api/friends/requests/req-1/accept", json={"status": "accepted"}, headers=as_user("alice")
        )

        assert response.status_code == 403
        assert response.json()["kind"] == "unauthorized"

    def test_invalid_decision_is_400(self, client):
        _send(client, "alice", "bob")

        response = client.post(
            "/api/friends/requests/req-1/accept", json={"status": "maybe"}, headers=as_user("bob")
        )

        assert response.status_code == 400

    def test_incoming_and_sent_lists(self, client):
        _send(client, "alice", "bob")

        incoming = client.get("/api/friends/requests", headers=as_user("bob")).json()
        sent = client.get("/api/friends/requests/sent", headers=as_user("alice")).json()

        assert incoming["count"] == 1
        assert incoming["requests"][0]["sender_email"] == "alice@example.com"
        assert sent["requests"][0]["receiver_id"] == "bob"

    def test_invalid_status_filter_is_400(self, client):
        response = client.get("/api/friends/requests?status=archived", headers=as_user("bob"))
        assert response.status_code == 400

    def test_get_request_by_third_party_is_403(self, client):
        _send(client, "alice", "bob")

        assert client.get("/api/friends/requests/req-1", headers=as_user("bob")).status_code == 200
        assert client.get("/api/friends/requests/req-1", headers=as_user("carol")).status_code == 403

    def test_cancel_request(self, client):
        _send(client, "alice", "bob")

        response = client.delete("/api/friends/requests/sent/bob", headers=as_user("alice"))
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        again = client.delete("/api/friends/requests/sent/bob", headers=as_user("alice"))
        assert again.status_code == 409

    def test_remove_friend(self, client):
        _send(client, "alice", "bob")
        client.post("/api/friends/requests/req-1/accept", json={"status": "accepted"}, headers=as_user("bob"))

        response = client.delete("/api/friends/bob", headers=as_user("alice"))
        assert response.status_code == 200
        assert response.json()["deleted_relationships"] == 2

        assert client.delete("/api/friends/bob", headers=as_user("alice")).status_code == 409


class TestUnavailable:
    def test_engine_missing_is_503(self):
        app.dependency_overrides.clear()
        with patch("friend_graph_service.web.dependencies.get_shared_engine", return_value=None):
            response = TestClient(app).get("/api/friends", headers=as_user("alice"))
        assert response.status_code == 503

    def test_unreachable_graph_store_is_503(self, closed_port):
        client = GraphClient(port=closed_port)
        client._pool = BlockingConnectionPool(host="127.0.0.1", port=closed_port, max_connections=2)
        engine = FriendshipEngine(graph=client, operation_timeout=5.0)
        app.dependency_overrides[get_engine] = lambda: engine
        try:
            response = TestClient(app).get("/api/friends", headers=as_user("alice"))
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.json()["kind"] == "infrastructure"

    def test_health_without_graph(self):
        with patch("friend_graph_service.web.app.get_graph_client", return_value=None):
            response = TestClient(app).get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"

    def test_health_operational(self):
        graph = MagicMock()
        graph.health = AsyncMock(return_value={"status": "operational", "user_count": 3})
        with patch("friend_graph_service.web.app.get_graph_client", return_value=graph):
            response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json()["graph"]["user_count"] == 3


class TestNotificationRoutes:
    @pytest.fixture
    def store(self):
        store = AsyncMock()
        app.dependency_overrides[get_notification_store] = lambda: store
        yield store
        app.dependency_overrides.clear()

    def test_list_notifications(self, store):
        read = Notification.friend_request("bob", "alice", "r1").model_copy(update={"is_read": True})
        unread = Notification.friend_request("bob", "carol", "r2")
        store.list_for_user.return_value = [unread, read]

        response = TestClient(app).get("/api/notifications?limit=5", headers=as_user("bob"))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["unread_count"] == 1
        store.list_for_user.assert_awaited_once_with("bob", limit=5)

    def test_mark_all_read(self, store):
        store.mark_all_read.return_value = 3

        response = TestClient(app).post("/api/notifications/read-all", headers=as_user("bob"))

        assert response.json() == {"success": True, "marked": 3}

    def test_bulk_read(self, store):
        store.mark_read.return_value = 2

        response = TestClient(app).post(
            "/api/notifications/bulk-read", json={"ids": ["n1", "n2", "n3"]}, headers=as_user("bob")
        )

        assert response.json() == {"success": True, "marked": 2}
        store.mark_read.assert_awaited_once_with("bob", ["n1", "n2", "n3"])

    def test_bulk_read_requires_ids(self, store):
        response = TestClient(app).post("/api/notifications/bulk-read", json={"ids": []}, headers=as_user("bob"))

        assert response.status_code == 422
        store.mark_read.assert_not_called()

    def test_mark_one_read(self, store):
        item = Notification.friend_request("bob", "alice", "r1").model_copy(update={"is_read": True})
        store.mark_one_read.return_value = item

        response = TestClient(app).post(f"/api/notifications/{item.id}/read", headers=as_user("bob"))

        assert response.status_code == 200
        assert response.json()["is_read"] is True
        store.mark_one_read.assert_awaited_once_with("bob", item.id)

    def test_mark_one_read_unknown_is_404(self, store):
        store.mark_one_read.side_effect = NotFoundError("Notification not found or does not belong to user")

        response = TestClient(app).post("/api/notifications/n-x/read", headers=as_user("alice"))

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"
