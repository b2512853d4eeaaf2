"""
HTTP server entry point.

Usage:
    FRIENDS_FALKORDB_HOST=localhost FRIENDS_HTTP_PORT=8000 friend-graph-service
"""

import logging

import uvicorn

from .config import settings


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.http.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger(__name__).info(f"Starting friend graph service on {settings.http.host}:{settings.http.port}")
    uvicorn.run(
        "friend_graph_service.web.app:app",
        host=settings.http.host,
        port=settings.http.port,
        log_level=settings.http.log_level.lower(),
    )


if __name__ == "__main__":
    main()
