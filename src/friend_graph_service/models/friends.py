"""Friend relationship records.

Immutable Pydantic models for everything that crosses the repository
boundary. The repository maps decoded graph rows into these records; the
engine and HTTP layer only ever see these types.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .validators import RequestId, RequestStatus, Timestamp, UserId


def _iso(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Stored entities
# ---------------------------------------------------------------------------


class FriendRequest(_Record):
    """A directed REQUESTED_FRIENDSHIP edge."""

    id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus
    created_at: Timestamp
    updated_at: Timestamp | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def created_at_iso(self) -> str | None:
        return _iso(self.created_at)

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class IncomingRequest(_Record):
    """A request addressed to the listing user."""

    id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus
    created_at: Timestamp
    updated_at: Timestamp | None = None
    sender_email: str | None = None


class OutgoingRequest(_Record):
    """A request sent by the listing user."""

    id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus
    created_at: Timestamp
    updated_at: Timestamp | None = None
    receiver_email: str | None = None


class Friend(_Record):
    """A user on the other end of a FRIENDS edge pair."""

    id: UserId
    email: str | None = None
    name: str | None = None


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


class FriendRequestCreated(_Record):
    request_id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus = "pending"
    created_at: Timestamp


class FriendRequestResolved(_Record):
    """Outcome of accepting or rejecting a pending request."""

    request_id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus
    created_at: Timestamp
    resolved_at: Timestamp
    message: str


class FriendRequestCancelled(_Record):
    request_id: RequestId
    sender_id: UserId
    receiver_id: UserId
    status: RequestStatus = "cancelled"
    created_at: Timestamp | None = None
    cancelled_at: Timestamp


class FriendRemoved(_Record):
    user_id: UserId
    friend_id: UserId
    removed: bool = True
    deleted_relationships: int = Field(ge=0)
    message: str = "Friend removed successfully"


class FriendList(_Record):
    friends: list[Friend] = Field(default_factory=list)
    count: int = 0


class IncomingRequestList(_Record):
    requests: list[IncomingRequest] = Field(default_factory=list)
    count: int = 0


class OutgoingRequestList(_Record):
    requests: list[OutgoingRequest] = Field(default_factory=list)
    count: int = 0
