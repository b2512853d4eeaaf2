"""
FalkorDB graph client for the friend relationship graph.

One GraphSession is acquired per logical operation, pinned to a single
connection checked out of the shared pool, and released on every exit
path: success, business error, infrastructure error, or cancellation of
the surrounding task. Acquiring a session does no blocking I/O; the
FalkorDB handle (and its cluster-mode check) is built once in initialize().

The client performs exactly one attempt per query. Retry policy belongs
to the caller.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as aioredis
from falkordb.asyncio import FalkorDB
from falkordb.asyncio.graph import AsyncGraph
from redis.asyncio import BlockingConnectionPool
from redis.exceptions import RedisError

from ..errors import InfrastructureError
from .queries import BoundQuery
from .schema import FRIENDS_REL, REQUEST_REL, SCHEMA_STATEMENTS, USER_LABEL

logger = logging.getLogger(__name__)


class GraphSession:
    """
    Session-scoped handle on the graph for one logical operation.

    Decodes FalkorDB result sets into dicts keyed by the query's declared
    columns so no backend cursor or result object escapes the adapter.
    """

    def __init__(self, conn: aioredis.Redis, graph_name: str):
        self._conn = conn
        self._graph = AsyncGraph(conn, graph_name)
        self._closed = False
        self.queries_run = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def acquire(self) -> None:
        """Check a connection out of the pool and pin it to this session."""
        try:
            await self._conn.initialize()
        except RedisError as e:
            logger.error(f"Graph session acquisition failed: {e}")
            raise InfrastructureError("Graph store unreachable") from e

    async def run(self, query: BoundQuery) -> list[dict[str, Any]]:
        """Execute a bound query once and return its rows."""
        if self._closed:
            raise InfrastructureError(f"Graph session already released (query {query.name})")

        try:
            result = await self._graph.query(query.text, params=query.params)
        except RedisError as e:
            logger.error(f"Graph query {query.name} failed: {e}")
            raise InfrastructureError(f"Graph store failure during {query.name}") from e

        self.queries_run += 1
        columns = query.columns
        return [dict(zip(columns, row)) for row in result.result_set or []]

    async def release(self) -> None:
        """Return the pinned connection to the pool. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._conn.aclose()
        except Exception as e:
            logger.warning(f"Error releasing graph session: {e}")


class GraphClient:
    """
    Async FalkorDB client for the friend relationship graph.

    Manages a Redis connection pool shared between graph sessions and the
    notification queue (which uses the same FalkorDB/Redis instance).
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        graph_name: str = "friend_graph",
        max_connections: int = 16,
    ):
        self.host = host
        self.port = port
        self.password = password
        self.graph_name = graph_name
        self.max_connections = max_connections

        self._pool: BlockingConnectionPool | None = None
        self._db: FalkorDB | None = None
        self._graph = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize connection pool, select graph, and apply schema."""
        if self._initialized:
            return

        self._pool = BlockingConnectionPool(
            host=self.host,
            port=self.port,
            password=self.password,
            max_connections=self.max_connections,
            timeout=None,
            decode_responses=True,
        )

        try:
            # The constructor checks for cluster mode over a synchronous client; only done here.
            self._db = FalkorDB(connection_pool=self._pool)
        except RedisError as e:
            await self._pool.aclose()
            self._pool = None
            logger.error(f"FalkorDB unreachable at {self.host}:{self.port}: {e}")
            raise InfrastructureError(f"Graph store unreachable at {self.host}:{self.port}") from e
        self._graph = self._db.select_graph(self.graph_name)

        for stmt in SCHEMA_STATEMENTS:
            try:
                await self._graph.query(stmt)
            except Exception as e:
                # Index already exists is not an error
                if "already indexed" not in str(e).lower():
                    logger.warning(f"Schema statement warning: {stmt} -> {e}")

        self._initialized = True
        logger.info(f"GraphClient initialized: {self.host}:{self.port}/{self.graph_name}")

    @property
    def pool(self) -> BlockingConnectionPool:
        """Expose pool for the notification queue to share the same connection."""
        if self._pool is None:
            raise RuntimeError("GraphClient not initialized. Call initialize() first.")
        return self._pool

    @asynccontextmanager
    async def session(self) -> AsyncIterator[GraphSession]:
        """
        Acquire a session for one logical operation.

        The session is released when the block exits, whatever the reason.
        """
        if self._pool is None:
            raise InfrastructureError("Graph store not initialized")

        graph_session = GraphSession(
            aioredis.Redis(connection_pool=self._pool, single_connection_client=True),
            self.graph_name,
        )
        try:
            await graph_session.acquire()
            yield graph_session
        finally:
            await graph_session.release()

    async def health(self) -> dict[str, Any]:
        """Get graph statistics for health checks."""
        try:
            users = await self._graph.query(f"MATCH (u:{USER_LABEL}) RETURN count(u)")
            requests = await self._graph.query(f"MATCH ()-[r:{REQUEST_REL}]->() RETURN r.status, count(r)")
            friends = await self._graph.query(f"MATCH ()-[f:{FRIENDS_REL}]->() RETURN count(f)")

            return {
                "graph_name": self.graph_name,
                "user_count": int(users.result_set[0][0]) if users.result_set else 0,
                "request_counts": {row[0]: int(row[1]) for row in requests.result_set},
                # Each friendship is stored as two directed edges
                "friendship_count": (int(friends.result_set[0][0]) if friends.result_set else 0) // 2,
                "status": "operational",
            }
        except Exception as e:
            logger.error(f"Failed to get graph stats: {e}")
            return {
                "graph_name": self.graph_name,
                "status": "error",
                "error": str(e),
            }

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            try:
                await self._pool.aclose()
                logger.info("GraphClient connection pool closed")
            except Exception as e:
                logger.warning(f"Error closing GraphClient pool: {e}")
            finally:
                self._pool = None
                self._db = None
                self._graph = None
                self._initialized = False
