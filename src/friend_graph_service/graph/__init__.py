"""
Graph layer for the friend graph service.

Provides the FalkorDB-backed store adapter:
- Session-per-operation access pinned to one pooled connection
- A registry of prepared, parameterized Cypher statements
"""

from .client import GraphClient, GraphSession
from .queries import QUERIES, BoundQuery, QueryTemplate, get_query

__all__ = [
    "GraphClient",
    "GraphSession",
    "QUERIES",
    "BoundQuery",
    "QueryTemplate",
    "get_query",
]
