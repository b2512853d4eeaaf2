"""
Factory for creating and initializing the graph layer.

Creates a GraphClient from FalkorDBSettings config.
Returns None if the graph layer is disabled (FRIENDS_FALKORDB_ENABLED=false).
"""

import logging

from ..config import FalkorDBSettings, settings
from .client import GraphClient

logger = logging.getLogger(__name__)


async def create_graph_client(config: FalkorDBSettings | None = None) -> GraphClient | None:
    """
    Create and initialize the FalkorDB graph client if enabled.

    Returns:
        An initialized GraphClient, or None when the graph layer is disabled.
    """
    config = config or settings.falkordb

    if not config.enabled:
        logger.info("FalkorDB graph layer disabled (FRIENDS_FALKORDB_ENABLED=false)")
        return None

    password = config.password.get_secret_value() if config.password else None

    client = GraphClient(
        host=config.host,
        port=config.port,
        password=password,
        graph_name=config.graph_name,
        max_connections=config.max_connections,
    )

    await client.initialize()

    logger.info(f"Graph layer initialized: {config.host}:{config.port}/{config.graph_name}")
    return client
