"""
Shared graph runtime for the friend graph service.

Holds the singleton GraphClient, notification queue and relationship
engine so every HTTP worker in the process reuses one connection pool.
"""

import asyncio
import logging
from threading import Lock
from typing import Optional

from .config import Settings, settings
from .graph.client import GraphClient
from .graph.factory import create_graph_client
from .notifications.queue import NotificationQueue
from .notifications.store import NotificationStore
from .services.friendship_engine import FriendshipEngine

logger = logging.getLogger(__name__)


class GraphRuntime:
    """Manages the shared graph client, notification queue and engine."""

    _instance: Optional["GraphRuntime"] = None
    _lock: Lock = Lock()

    def __init__(self, config: Settings | None = None):
        self._config = config or settings
        self._graph_client: GraphClient | None = None
        self._notifications: NotificationQueue | None = None
        self._engine: FriendshipEngine | None = None
        self._initialization_lock: asyncio.Lock = asyncio.Lock()
        self._initialized: bool = False

    @classmethod
    def get_instance(cls) -> "GraphRuntime":
        """Get singleton instance of GraphRuntime (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.info("Created new GraphRuntime singleton instance")
        return cls._instance

    async def initialize(self) -> FriendshipEngine | None:
        """Create the graph client, notification queue and engine once.

        Returns:
            The engine, or None when the graph layer is disabled.
        """
        if self._initialized:
            return self._engine

        async with self._initialization_lock:
            if self._initialized:
                return self._engine

            logger.info("Initializing shared graph runtime...")
            self._graph_client = await create_graph_client(self._config.falkordb)

            if self._graph_client is not None:
                notify = self._config.notifications
                if notify.enabled:
                    store = NotificationStore(
                        pool=self._graph_client.pool,
                        key_prefix=notify.inbox_key_prefix,
                        max_length=notify.inbox_max_length,
                    )
                    self._notifications = NotificationQueue(
                        pool=self._graph_client.pool,
                        store=store,
                        queue_key=notify.queue_key,
                        batch_size=notify.batch_size,
                        poll_interval=notify.poll_interval,
                    )
                    await self._notifications.start_consumer()
                else:
                    logger.info("Notifications disabled (FRIENDS_NOTIFY_ENABLED=false)")

                self._engine = FriendshipEngine(
                    graph=self._graph_client,
                    notifier=self._notifications,
                    operation_timeout=self._config.engine.operation_timeout,
                )

            self._initialized = True
            return self._engine

    @property
    def graph_client(self) -> GraphClient | None:
        return self._graph_client

    @property
    def notifications(self) -> NotificationQueue | None:
        return self._notifications

    @property
    def engine(self) -> FriendshipEngine | None:
        return self._engine

    async def close(self) -> None:
        """Close all managed instances. Safe to call even if never initialized."""
        if self._engine is not None:
            await self._engine.flush_notifications()
            self._engine = None

        if self._notifications is not None:
            try:
                await self._notifications.stop_consumer()
            except Exception as e:
                logger.warning(f"Error stopping notification consumer: {e}")
            self._notifications = None

        if self._graph_client is not None:
            await self._graph_client.close()
            self._graph_client = None

        self._initialized = False


_runtime = GraphRuntime.get_instance()


async def initialize_runtime() -> FriendshipEngine | None:
    return await _runtime.initialize()


async def close_runtime() -> None:
    await _runtime.close()


def get_graph_client() -> GraphClient | None:
    """Get the shared graph client if the graph layer is enabled."""
    return _runtime.graph_client


def get_notification_queue() -> NotificationQueue | None:
    return _runtime.notifications


def get_shared_engine() -> FriendshipEngine | None:
    return _runtime.engine
