#!/usr/bin/env python3
"""Mirror users from the identity store into the friend graph.

Reads a JSON-lines export (one object per line with ``id``, ``email`` and
optional ``name``) and MERGEs a :User node for each. Idempotent, so safe
to re-run after every export.

Usage:
    FRIENDS_FALKORDB_HOST=localhost FRIENDS_FALKORDB_PORT=6379 \
        python scripts/seed_users.py users.jsonl [--dry-run]
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from pathlib import Path

from friend_graph_service.errors import InfrastructureError
from friend_graph_service.graph.client import GraphClient
from friend_graph_service.repositories.friendship_repository import RelationshipRepository

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def read_users(path: Path) -> list[dict]:
    """Parse the export, skipping blank or malformed lines."""
    users = []
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Line {lineno}: invalid JSON, skipping ({e})")
                continue
            if not isinstance(record, dict) or not str(record.get("id") or "").strip():
                logger.warning(f"Line {lineno}: no id, skipping")
                continue
            users.append(record)
    return users


async def seed_users(
    users: list[dict],
    host: str,
    port: int,
    password: str | None,
    graph_name: str,
    dry_run: bool,
) -> dict[str, int]:
    """Upsert each user node. Returns created/error counts."""
    stats = {"seen": len(users), "upserted": 0, "errors": 0}
    if dry_run:
        stats["upserted"] = len(users)
        return stats

    client = GraphClient(host=host, port=port, password=password, graph_name=graph_name, max_connections=4)
    await client.initialize()
    try:
        async with client.session() as session:
            repo = RelationshipRepository(session)
            for user in users:
                try:
                    await repo.upsert_user(str(user["id"]).strip(), user.get("email"), user.get("name"))
                    stats["upserted"] += 1
                except InfrastructureError as e:
                    logger.error(f"Failed to upsert user {user['id']}: {e}")
                    stats["errors"] += 1
    finally:
        await client.close()
    return stats


def main():
    parser = argparse.ArgumentParser(description="Seed :User nodes in the friend graph from a JSON-lines export")
    parser.add_argument("path", type=Path, help="JSON-lines file with id/email/name per line")
    parser.add_argument("--dry-run", action="store_true", help="Parse and count without writing")
    parser.add_argument("--host", default=os.getenv("FRIENDS_FALKORDB_HOST", "localhost"))
    parser.add_argument("--port", type=int, default=int(os.getenv("FRIENDS_FALKORDB_PORT", "6379")))
    parser.add_argument("--password", default=os.getenv("FRIENDS_FALKORDB_PASSWORD"))
    parser.add_argument("--graph-name", default=os.getenv("FRIENDS_FALKORDB_GRAPH_NAME", "friend_graph"))
    args = parser.parse_args()

    if not args.path.exists():
        logger.error(f"No such file: {args.path}")
        sys.exit(1)

    users = read_users(args.path)
    logger.info(f"Read {len(users)} users from {args.path}")

    start = time.monotonic()
    stats = asyncio.run(
        seed_users(
            users,
            host=args.host,
            port=args.port,
            password=args.password,
            graph_name=args.graph_name,
            dry_run=args.dry_run,
        )
    )
    logger.info(f"Done in {time.monotonic() - start:.1f}s: {stats}")


if __name__ == "__main__":
    main()
