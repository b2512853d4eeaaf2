import asyncio
import os
import socket
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from unittest.mock import AsyncMock

import pytest

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

from friend_graph_service.models.friends import Friend, FriendRequest, IncomingRequest, OutgoingRequest  # noqa: E402
from friend_graph_service.repositories.friendship_repository import (  # noqa: E402
    CancelledRequest,
    CreateRequestOutcome,
    ResolvedRequest,
)


# ---------------------------------------------------------------------------
# In-memory friend graph
#
# Mirrors the conditional Cypher statements: every repository method yields
# to the event loop once (the I/O suspension point) and then applies its
# check and mutation without awaiting, the way FalkorDB applies one write
# query atomically.
# ---------------------------------------------------------------------------


@dataclass
class InMemoryFriendGraph:
    users: dict[str, dict] = field(default_factory=dict)
    requests: dict[str, dict] = field(default_factory=dict)
    friends: set[tuple[str, str]] = field(default_factory=set)
    sessions_opened: int = 0
    sessions_released: int = 0

    def add_user(self, user_id: str, email: str | None = None, name: str | None = None) -> None:
        self.users[user_id] = {"id": user_id, "email": email or f"{user_id}@example.com", "name": name or user_id}

    def friend_edges(self, a: str, b: str) -> int:
        return sum(1 for edge in ((a, b), (b, a)) if edge in self.friends)

    def pending_between(self, a: str, b: str) -> list[dict]:
        return [
            r
            for r in self.requests.values()
            if r["status"] == "pending" and {r["sender_id"], r["receiver_id"]} == {a, b}
        ]

    @asynccontextmanager
    async def session(self):
        self.sessions_opened += 1
        try:
            yield object()
        finally:
            self.sessions_released += 1


class FakeRelationshipRepository:
    """Drop-in for RelationshipRepository backed by InMemoryFriendGraph."""

    def __init__(self, graph: InMemoryFriendGraph, session=None):
        self._g = graph
        self._session = session

    async def upsert_user(self, user_id, email, name):
        await asyncio.sleep(0)
        self._g.add_user(user_id, email, name)
        return user_id

    async def create_request(self, sender_id, receiver_id, request_id, created_at):
        await asyncio.sleep(0)
        g = self._g
        if sender_id not in g.users or receiver_id not in g.users or sender_id == receiver_id:
            return CreateRequestOutcome(users_found=False)
        outcome = CreateRequestOutcome(
            users_found=True,
            friend_edges=g.friend_edges(sender_id, receiver_id),
            pending_requests=len(g.pending_between(sender_id, receiver_id)),
        )
        if outcome.created:
            g.requests[request_id] = {
                "id": request_id,
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "status": "pending",
                "created_at": created_at,
                "updated_at": None,
            }
        return outcome

    async def fetch_request(self, request_id):
        await asyncio.sleep(0)
        r = self._g.requests.get(request_id)
        return FriendRequest(**r) if r else None

    async def list_incoming(self, user_id, status):
        await asyncio.sleep(0)
        return [
            IncomingRequest(**r, sender_email=self._g.users[r["sender_id"]]["email"])
            for r in self._g.requests.values()
            if r["receiver_id"] == user_id and r["status"] == status
        ]

    async def list_outgoing(self, user_id, status):
        await asyncio.sleep(0)
        return [
            OutgoingRequest(**r, receiver_email=self._g.users[r["receiver_id"]]["email"])
            for r in self._g.requests.values()
            if r["sender_id"] == user_id and r["status"] == status
        ]

    async def _resolve(self, request_id, receiver_id, updated_at, status):
        await asyncio.sleep(0)
        r = self._g.requests.get(request_id)
        if r is None or r["receiver_id"] != receiver_id or r["status"] != "pending":
            return None
        r["status"] = status
        r["updated_at"] = updated_at
        if status == "accepted":
            self._g.friends.add((r["sender_id"], r["receiver_id"]))
            self._g.friends.add((r["receiver_id"], r["sender_id"]))
        return ResolvedRequest(id=request_id, status=status, updated_at=updated_at)

    async def resolve_accepted(self, request_id, receiver_id, updated_at):
        return await self._resolve(request_id, receiver_id, updated_at, "accepted")

    async def resolve_rejected(self, request_id, receiver_id, updated_at):
        return await self._resolve(request_id, receiver_id, updated_at, "rejected")

    async def cancel_request(self, sender_id, receiver_id):
        await asyncio.sleep(0)
        doomed = [
            r
            for r in self._g.requests.values()
            if r["sender_id"] == sender_id and r["receiver_id"] == receiver_id and r["status"] == "pending"
        ]
        for r in doomed:
            del self._g.requests[r["id"]]
        return [CancelledRequest(id=r["id"], created_at=r["created_at"]) for r in doomed]

    async def list_friends(self, user_id):
        await asyncio.sleep(0)
        ids = {b for a, b in self._g.friends if a == user_id} | {a for a, b in self._g.friends if b == user_id}
        return [Friend(**self._g.users[i]) for i in sorted(ids)]

    async def remove_friendship(self, user_id, friend_id):
        await asyncio.sleep(0)
        deleted = 0
        for edge in ((user_id, friend_id), (friend_id, user_id)):
            if edge in self._g.friends:
                self._g.friends.discard(edge)
                deleted += 1
        return deleted


@pytest.fixture
def friend_graph():
    graph = InMemoryFriendGraph()
    for user_id in ("alice", "bob", "carol"):
        graph.add_user(user_id)
    return graph


@pytest.fixture
def notifier():
    """Mock NotificationQueue."""
    queue = AsyncMock()
    queue.publish = AsyncMock()
    return queue


@pytest.fixture
def repository_factory(friend_graph):
    return lambda session: FakeRelationshipRepository(friend_graph, session)


@pytest.fixture
def engine(friend_graph, notifier, repository_factory):
    from friend_graph_service.services.friendship_engine import FriendshipEngine

    counter = iter(range(1, 10_000))
    return FriendshipEngine(
        graph=friend_graph,
        notifier=notifier,
        repository_factory=repository_factory,
        operation_timeout=2.0,
        clock=lambda: 1_700_000_000.0,
        id_factory=lambda: f"req-{next(counter)}",
    )


@pytest.fixture
def closed_port():
    """A local TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
