"""
Relationship repository: friend operations expressed as graph queries.

One method per prepared query. The repository knows query shapes and how
to decode their rows into records; it does not decide what a result means
for the friendship state machine. Backend errors propagate unchanged
(already wrapped as InfrastructureError by the session).
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..graph.client import GraphSession
from ..graph.queries import get_query
from ..models.friends import Friend, FriendRequest, IncomingRequest, OutgoingRequest
from ..models.validators import RequestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateRequestOutcome:
    """Result of the conditional request-creating write."""

    users_found: bool
    friend_edges: int = 0
    pending_requests: int = 0

    @property
    def created(self) -> bool:
        return self.users_found and self.friend_edges == 0 and self.pending_requests == 0


@dataclass(frozen=True)
class ResolvedRequest:
    id: str
    status: str
    updated_at: float


@dataclass(frozen=True)
class CancelledRequest:
    id: str
    created_at: float | None


def _float(value: Any) -> float | None:
    return float(value) if value is not None else None


class RelationshipRepository:
    """Friend request and friendship queries bound to one graph session."""

    def __init__(self, session: GraphSession):
        self._session = session

    async def _run(self, name: str, /, **params: Any) -> list[dict[str, Any]]:
        return await self._session.run(get_query(name).bind(**params))

    # ── Users ───────────────────────────────────────────────────────────

    async def upsert_user(self, user_id: str, email: str | None, name: str | None) -> str:
        """Create or refresh a :User node (MERGE = idempotent)."""
        rows = await self._run("upsert_user", user_id=user_id, email=email, name=name)
        return rows[0]["id"] if rows else user_id

    # ── Requests ────────────────────────────────────────────────────────

    async def create_request(
        self,
        sender_id: str,
        receiver_id: str,
        request_id: str,
        created_at: float,
    ) -> CreateRequestOutcome:
        """
        Conditionally create a pending REQUESTED_FRIENDSHIP edge.

        Returns the counts observed by the same statement that performed (or
        skipped) the write. No row means one of the users does not exist.
        """
        rows = await self._run(
            "create_request",
            sender_id=sender_id,
            receiver_id=receiver_id,
            request_id=request_id,
            created_at=created_at,
        )
        if not rows:
            return CreateRequestOutcome(users_found=False)

        row = rows[0]
        return CreateRequestOutcome(
            users_found=True,
            friend_edges=int(row["friend_edges"] or 0),
            pending_requests=int(row["pending_requests"] or 0),
        )

    async def fetch_request(self, request_id: str) -> FriendRequest | None:
        rows = await self._run("fetch_request", request_id=request_id)
        if not rows:
            return None
        if len(rows) > 1:
            logger.warning(f"Request id {request_id} matched {len(rows)} edges; using the first")

        row = rows[0]
        return FriendRequest(
            id=row["id"],
            sender_id=row["sender_id"],
            receiver_id=row["receiver_id"],
            status=row["status"],
            created_at=float(row["created_at"]),
            updated_at=_float(row["updated_at"]),
        )

    async def list_incoming(self, user_id: str, status: RequestStatus) -> list[IncomingRequest]:
        rows = await self._run("list_incoming", user_id=user_id, status=status)
        return [
            IncomingRequest(
                id=row["id"],
                sender_id=row["sender_id"],
                receiver_id=user_id,
                status=row["status"],
                created_at=float(row["created_at"]),
                updated_at=_float(row["updated_at"]),
                sender_email=row["sender_email"],
            )
            for row in rows
        ]

    async def list_outgoing(self, user_id: str, status: RequestStatus) -> list[OutgoingRequest]:
        rows = await self._run("list_outgoing", user_id=user_id, status=status)
        return [
            OutgoingRequest(
                id=row["id"],
                sender_id=user_id,
                receiver_id=row["receiver_id"],
                status=row["status"],
                created_at=float(row["created_at"]),
                updated_at=_float(row["updated_at"]),
                receiver_email=row["receiver_email"],
            )
            for row in rows
        ]

    async def resolve_accepted(self, request_id: str, receiver_id: str, updated_at: float) -> ResolvedRequest | None:
        """Accept a pending request and create both FRIENDS edges in one statement."""
        rows = await self._run("resolve_accepted", request_id=request_id, receiver_id=receiver_id, updated_at=updated_at)
        return self._resolved(rows)

    async def resolve_rejected(self, request_id: str, receiver_id: str, updated_at: float) -> ResolvedRequest | None:
        rows = await self._run("resolve_rejected", request_id=request_id, receiver_id=receiver_id, updated_at=updated_at)
        return self._resolved(rows)

    @staticmethod
    def _resolved(rows: list[dict[str, Any]]) -> ResolvedRequest | None:
        # No row: the request was no longer pending for this receiver when the write ran.
        if not rows:
            return None
        row = rows[0]
        return ResolvedRequest(id=row["id"], status=row["status"], updated_at=float(row["updated_at"]))

    async def cancel_request(self, sender_id: str, receiver_id: str) -> list[CancelledRequest]:
        """Delete the pending sender -> receiver request, returning what was deleted."""
        rows = await self._run("cancel_request", sender_id=sender_id, receiver_id=receiver_id)
        return [CancelledRequest(id=row["id"], created_at=_float(row["created_at"])) for row in rows]

    # ── Friendships ─────────────────────────────────────────────────────

    async def list_friends(self, user_id: str) -> list[Friend]:
        rows = await self._run("list_friends", user_id=user_id)
        return [Friend(id=row["id"], email=row["email"], name=row["name"]) for row in rows]

    async def remove_friendship(self, user_id: str, friend_id: str) -> int:
        """Delete every FRIENDS edge between the pair; returns the number deleted."""
        rows = await self._run("remove_friendship", user_id=user_id, friend_id=friend_id)
        return int(rows[0]["deleted"] or 0) if rows else 0
