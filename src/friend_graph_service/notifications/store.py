"""
Append-only notification inbox per recipient.

Each recipient has a Redis list (newest first, trimmed to a maximum
length), a read watermark key and a set of ids read individually.
Marking everything read moves the watermark and clears the set; marking
single notifications adds their ids to the set. Entries themselves are
never rewritten.
"""

import logging

import redis.asyncio as aioredis

from ..errors import NotFoundError
from ..models.notifications import Notification

logger = logging.getLogger(__name__)


class NotificationStore:
    """Redis-backed inbox keyed by recipient user id."""

    def __init__(
        self,
        pool: aioredis.BlockingConnectionPool,
        key_prefix: str = "friends:notify:inbox:",
        max_length: int = 1000,
    ):
        self._pool = pool
        self._key_prefix = key_prefix
        self._max_length = max_length

    def _inbox_key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}"

    def _watermark_key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}:read_at"

    def _read_ids_key(self, user_id: str) -> str:
        return f"{self._key_prefix}{user_id}:read_ids"

    async def append(self, notification: Notification) -> None:
        """Record a notification at the head of the recipient's inbox."""
        key = self._inbox_key(notification.user_id)
        conn = aioredis.Redis(connection_pool=self._pool)
        try:
            await conn.lpush(key, notification.model_dump_json())
            await conn.ltrim(key, 0, self._max_length - 1)
        finally:
            await conn.aclose()

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        """Newest-first notifications with read state from the watermark and the read-id set."""
        conn = aioredis.Redis(connection_pool=self._pool)
        try:
            raw_items = await conn.lrange(self._inbox_key(user_id), 0, max(limit, 1) - 1)
            watermark = await conn.get(self._watermark_key(user_id))
            read_ids = await conn.smembers(self._read_ids_key(user_id))
        finally:
            await conn.aclose()

        read_before = float(watermark) if watermark is not None else 0.0
        notifications = []
        for raw in raw_items:
            try:
                item = Notification.model_validate_json(raw)
            except ValueError as e:
                logger.warning(f"Skipping malformed notification for {user_id}: {e}")
                continue
            is_read = item.created_at <= read_before or item.id in read_ids
            notifications.append(item.model_copy(update={"is_read": is_read}))
        return notifications

    async def unread_count(self, user_id: str) -> int:
        items = await self.list_for_user(user_id, limit=self._max_length)
        return sum(1 for n in items if not n.is_read)

    async def mark_all_read(self, user_id: str, now: float) -> int:
        """Move the read watermark to ``now``; returns how many became read."""
        unread = await self.unread_count(user_id)
        conn = aioredis.Redis(connection_pool=self._pool)
        try:
            await conn.set(self._watermark_key(user_id), repr(now))
            await conn.delete(self._read_ids_key(user_id))
        finally:
            await conn.aclose()
        logger.info(f"Marked {unread} notifications as read for user {user_id}")
        return unread

    async def mark_read(self, user_id: str, notification_ids: list[str]) -> int:
        """Mark the given notifications read; ids not in the user's inbox are ignored.

        Returns how many of them were unread before the call.
        """
        wanted = set(notification_ids)
        items = await self.list_for_user(user_id, limit=self._max_length)
        unread = [n.id for n in items if n.id in wanted and not n.is_read]
        if unread:
            conn = aioredis.Redis(connection_pool=self._pool)
            try:
                await conn.sadd(self._read_ids_key(user_id), *unread)
            finally:
                await conn.aclose()
        logger.info(f"Marked {len(unread)} of {len(wanted)} notifications as read for user {user_id}")
        return len(unread)

    async def mark_one_read(self, user_id: str, notification_id: str) -> Notification:
        """Mark one notification read and return it; NotFound if it is not in the user's inbox."""
        items = await self.list_for_user(user_id, limit=self._max_length)
        for item in items:
            if item.id == notification_id:
                break
        else:
            raise NotFoundError("Notification not found or does not belong to user")

        if not item.is_read:
            conn = aioredis.Redis(connection_pool=self._pool)
            try:
                await conn.sadd(self._read_ids_key(user_id), notification_id)
            finally:
                await conn.aclose()
        return item.model_copy(update={"is_read": True})
