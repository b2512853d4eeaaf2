"""
Notification collaborator for friend relationship events.

- NotificationQueue: Redis LPUSH/BRPOP event queue sharing the graph's pool
- NotificationStore: append-only per-recipient inbox
"""

from .queue import NotificationQueue
from .store import NotificationStore

__all__ = ["NotificationQueue", "NotificationStore"]
