"""Notification event records emitted on friend relationship transitions."""

from __future__ import annotations

import time
import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationType = Literal["friend_request", "friend_request_accepted"]

NOTIFICATION_TITLES: dict[str, str] = {
    "friend_request": "Friend request received",
    "friend_request_accepted": "Friend request accepted",
}


class Notification(BaseModel):
    """An event addressed to one recipient."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = Field(..., min_length=1, description="Recipient user id")
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.time)
    is_read: bool = False

    @classmethod
    def friend_request(cls, receiver_id: str, sender_id: str, request_id: str) -> Notification:
        return cls(
            user_id=receiver_id,
            type="friend_request",
            title=NOTIFICATION_TITLES["friend_request"],
            message=f"User {sender_id} sent you a friend request",
            data={"request_id": request_id, "sender_id": sender_id},
        )

    @classmethod
    def friend_request_accepted(cls, sender_id: str, receiver_id: str, request_id: str) -> Notification:
        return cls(
            user_id=sender_id,
            type="friend_request_accepted",
            title=NOTIFICATION_TITLES["friend_request_accepted"],
            message=f"User {receiver_id} accepted your friend request",
            data={"request_id": request_id, "receiver_id": receiver_id},
        )


class NotificationList(BaseModel):
    notifications: list[Notification] = Field(default_factory=list)
    count: int = 0
    unread_count: int = 0
