from .friends import (
    Friend,
    FriendList,
    FriendRemoved,
    FriendRequest,
    FriendRequestCancelled,
    FriendRequestCreated,
    FriendRequestResolved,
    IncomingRequest,
    IncomingRequestList,
    OutgoingRequest,
    OutgoingRequestList,
)
from .notifications import Notification, NotificationList

__all__ = [
    "Friend",
    "FriendList",
    "FriendRemoved",
    "FriendRequest",
    "FriendRequestCancelled",
    "FriendRequestCreated",
    "FriendRequestResolved",
    "IncomingRequest",
    "IncomingRequestList",
    "Notification",
    "NotificationList",
    "OutgoingRequest",
    "OutgoingRequestList",
]
