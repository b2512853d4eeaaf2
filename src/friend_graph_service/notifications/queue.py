"""
Notification queue for friend relationship events.

Producers (the relationship engine on any instance) LPUSH events as JSON
onto a Redis list on the same FalkorDB/Redis instance; a single consumer
BRPOPs batches and appends each event to the recipient's inbox.

Delivery is best-effort from the engine's point of view: a relationship
transition that has committed in the graph is never undone because an
event could not be enqueued or delivered.
"""

import asyncio
import logging
from typing import Any

import redis.asyncio as aioredis

from ..models.notifications import Notification
from .store import NotificationStore

logger = logging.getLogger(__name__)


class NotificationQueue:
    """
    Redis-backed queue of notification events.

    Uses LPUSH to enqueue from any instance, BRPOP to dequeue from the
    single consumer.
    """

    def __init__(
        self,
        pool: aioredis.BlockingConnectionPool,
        store: NotificationStore,
        queue_key: str = "friends:notify:queue",
        batch_size: int = 50,
        poll_interval: float = 0.5,
    ):
        """
        Args:
            pool: Shared Redis connection pool (from GraphClient)
            store: Inbox store the consumer delivers into
            queue_key: Redis key for the event queue
            batch_size: Max events per consumer tick
            poll_interval: Seconds to wait on empty BRPOP
        """
        self._pool = pool
        self._store = store
        self._queue_key = queue_key
        self._batch_size = batch_size
        self._poll_interval = poll_interval
        self._running = False
        self._consumer_task: asyncio.Task | None = None
        self._stats = {"enqueued": 0, "delivered": 0, "errors": 0}

    @property
    def store(self) -> NotificationStore:
        return self._store

    # ── Producer ────────────────────────────────────────────────────────

    async def publish(self, notification: Notification) -> None:
        """LPUSH a JSON-encoded notification to the queue."""
        conn = aioredis.Redis(connection_pool=self._pool)
        try:
            await conn.lpush(self._queue_key, notification.model_dump_json())
            self._stats["enqueued"] += 1
        finally:
            await conn.aclose()

    # ── Consumer (runs on single instance) ──────────────────────────────

    async def start_consumer(self) -> None:
        """Start the background consumer loop."""
        if self._running:
            logger.warning("Notification consumer already running")
            return

        self._running = True
        self._consumer_task = asyncio.create_task(self._consumer_loop())
        logger.info(f"Notification consumer started (queue={self._queue_key})")

    async def stop_consumer(self) -> None:
        self._running = False
        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None
        logger.info("Notification consumer stopped")

    async def _consumer_loop(self) -> None:
        """Main consumer loop: BRPOP → deliver batch → repeat."""
        conn = aioredis.Redis(connection_pool=self._pool)

        try:
            while self._running:
                try:
                    batch = await self._pop_batch(conn)
                    await self._deliver(batch)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Notification consumer loop error: {e}")
                    await asyncio.sleep(1.0)  # Back off on unexpected errors
        finally:
            await conn.aclose()

    async def _pop_batch(self, conn: aioredis.Redis) -> list[Notification]:
        """Pop up to batch_size events from the queue."""
        raw_items: list[Any] = []

        # First item: blocking wait
        result = await conn.brpop(self._queue_key, timeout=self._poll_interval)
        if result is None:
            return []
        raw_items.append(result[1])

        # Drain up to batch_size - 1 more without blocking
        for _ in range(self._batch_size - 1):
            raw = await conn.rpop(self._queue_key)
            if raw is None:
                break
            raw_items.append(raw)

        batch = []
        for raw in raw_items:
            try:
                batch.append(Notification.model_validate_json(raw))
            except ValueError as e:
                self._stats["errors"] += 1
                logger.error(f"Dropping malformed notification event: {e}")
        return batch

    async def _deliver(self, batch: list[Notification]) -> None:
        for notification in batch:
            try:
                await self._store.append(notification)
                self._stats["delivered"] += 1
            except Exception as e:
                self._stats["errors"] += 1
                logger.error(f"Notification delivery failed: {notification.type} -> {notification.user_id}: {e}")

    # ── Stats ───────────────────────────────────────────────────────────

    async def get_queue_depth(self) -> int:
        conn = aioredis.Redis(connection_pool=self._pool)
        try:
            return await conn.llen(self._queue_key)
        finally:
            await conn.aclose()

    def get_stats(self) -> dict[str, Any]:
        """Get consumer statistics."""
        return {
            "queue_key": self._queue_key,
            "running": self._running,
            **self._stats,
        }
