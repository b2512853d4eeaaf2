"""
Prepared Cypher statements for the friend relationship graph.

Every query the repository issues is registered here under an operation
name together with the parameter names it accepts and the columns it
returns. Callers bind values through ``QueryTemplate.bind()``; values are
always sent as query parameters and never formatted into the text.

The write statements are conditional: the guard (pending status, absence
of an existing friendship, receiver identity) lives in the same statement
as the mutation. FalkorDB executes each write query atomically, so the
check and the act cannot interleave with a concurrent writer.
"""

from dataclasses import dataclass, field
from typing import Any

from .schema import FRIENDS_REL, REQUEST_REL, STATUS_ACCEPTED, STATUS_PENDING, STATUS_REJECTED, USER_LABEL


@dataclass(frozen=True)
class QueryTemplate:
    """A named, parameterized Cypher statement."""

    name: str
    text: str
    params: frozenset[str]
    columns: tuple[str, ...]
    write: bool = False

    def bind(self, **values: Any) -> "BoundQuery":
        """Attach parameter values, rejecting missing or unexpected names."""
        supplied = frozenset(values)
        missing = self.params - supplied
        if missing:
            raise ValueError(f"Query {self.name!r} missing parameters: {', '.join(sorted(missing))}")
        unexpected = supplied - self.params
        if unexpected:
            raise ValueError(f"Query {self.name!r} got unexpected parameters: {', '.join(sorted(unexpected))}")
        return BoundQuery(template=self, params=dict(values))


@dataclass(frozen=True)
class BoundQuery:
    """A query template with its parameter values."""

    template: QueryTemplate
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def text(self) -> str:
        return self.template.text

    @property
    def columns(self) -> tuple[str, ...]:
        return self.template.columns


_REQUEST_COLUMNS = ("id", "status", "created_at", "updated_at")


def _template(
    name: str,
    text: str,
    params: tuple[str, ...],
    columns: tuple[str, ...],
    write: bool = False,
) -> QueryTemplate:
    return QueryTemplate(name=name, text=" ".join(text.split()), params=frozenset(params), columns=columns, write=write)


_TEMPLATES = [
    _template(
        "upsert_user",
        f"""
        MERGE (u:{USER_LABEL} {{id: $user_id}})
        SET u.email = $email, u.name = $name
        RETURN u.id
        """,
        ("user_id", "email", "name"),
        ("id",),
        write=True,
    ),
    # Creates the request only when no friendship and no pending request
    # (either direction) exists between the pair. No row means a user is missing.
    _template(
        "create_request",
        f"""
        MATCH (s:{USER_LABEL} {{id: $sender_id}}), (r:{USER_LABEL} {{id: $receiver_id}})
        WHERE s.id <> r.id
        OPTIONAL MATCH (s)-[f:{FRIENDS_REL}]-(r)
        WITH s, r, count(f) AS friend_edges
        OPTIONAL MATCH (s)-[p:{REQUEST_REL}]-(r)
        WHERE p.status = '{STATUS_PENDING}'
        WITH s, r, friend_edges, count(p) AS pending_requests
        FOREACH (ignored IN CASE WHEN friend_edges = 0 AND pending_requests = 0 THEN [1] ELSE [] END |
            CREATE (s)-[:{REQUEST_REL} {{id: $request_id, status: '{STATUS_PENDING}', created_at: $created_at}}]->(r)
        )
        RETURN friend_edges, pending_requests
        """,
        ("sender_id", "receiver_id", "request_id", "created_at"),
        ("friend_edges", "pending_requests"),
        write=True,
    ),
    _template(
        "fetch_request",
        f"""
        MATCH (s:{USER_LABEL})-[r:{REQUEST_REL} {{id: $request_id}}]->(t:{USER_LABEL})
        RETURN r.id, r.status, r.created_at, r.updated_at, s.id, t.id
        """,
        ("request_id",),
        _REQUEST_COLUMNS + ("sender_id", "receiver_id"),
    ),
    _template(
        "list_incoming",
        f"""
        MATCH (s:{USER_LABEL})-[r:{REQUEST_REL}]->(t:{USER_LABEL} {{id: $user_id}})
        WHERE r.status = $status
        RETURN r.id, r.status, r.created_at, r.updated_at, s.id, s.email
        """,
        ("user_id", "status"),
        _REQUEST_COLUMNS + ("sender_id", "sender_email"),
    ),
    _template(
        "list_outgoing",
        f"""
        MATCH (s:{USER_LABEL} {{id: $user_id}})-[r:{REQUEST_REL}]->(t:{USER_LABEL})
        WHERE r.status = $status
        RETURN r.id, r.status, r.created_at, r.updated_at, t.id, t.email
        """,
        ("user_id", "status"),
        _REQUEST_COLUMNS + ("receiver_id", "receiver_email"),
    ),
    _template(
        "resolve_accepted",
        f"""
        MATCH (s:{USER_LABEL})-[r:{REQUEST_REL} {{id: $request_id}}]->(t:{USER_LABEL} {{id: $receiver_id}})
        WHERE r.status = '{STATUS_PENDING}'
        SET r.status = '{STATUS_ACCEPTED}', r.updated_at = $updated_at
        WITH s, r, t
        MERGE (s)-[:{FRIENDS_REL}]->(t)
        MERGE (t)-[:{FRIENDS_REL}]->(s)
        RETURN r.id, r.status, r.updated_at
        """,
        ("request_id", "receiver_id", "updated_at"),
        ("id", "status", "updated_at"),
        write=True,
    ),
    _template(
        "resolve_rejected",
        f"""
        MATCH (s:{USER_LABEL})-[r:{REQUEST_REL} {{id: $request_id}}]->(t:{USER_LABEL} {{id: $receiver_id}})
        WHERE r.status = '{STATUS_PENDING}'
        SET r.status = '{STATUS_REJECTED}', r.updated_at = $updated_at
        RETURN r.id, r.status, r.updated_at
        """,
        ("request_id", "receiver_id", "updated_at"),
        ("id", "status", "updated_at"),
        write=True,
    ),
    _template(
        "list_friends",
        f"""
        MATCH (u:{USER_LABEL} {{id: $user_id}})-[:{FRIENDS_REL}]-(f:{USER_LABEL})
        RETURN DISTINCT f.id, f.email, f.name
        """,
        ("user_id",),
        ("id", "email", "name"),
    ),
    _template(
        "remove_friendship",
        f"""
        MATCH (u:{USER_LABEL} {{id: $user_id}})-[f:{FRIENDS_REL}]-(v:{USER_LABEL} {{id: $friend_id}})
        DELETE f
        RETURN count(f)
        """,
        ("user_id", "friend_id"),
        ("deleted",),
        write=True,
    ),
    _template(
        "cancel_request",
        f"""
        MATCH (s:{USER_LABEL} {{id: $sender_id}})-[r:{REQUEST_REL}]->(t:{USER_LABEL} {{id: $receiver_id}})
        WHERE r.status = '{STATUS_PENDING}'
        WITH r, r.id AS request_id, r.created_at AS created_at
        DELETE r
        RETURN request_id, created_at
        """,
        ("sender_id", "receiver_id"),
        ("id", "created_at"),
        write=True,
    ),
]

QUERIES: dict[str, QueryTemplate] = {t.name: t for t in _TEMPLATES}


def get_query(name: str) -> QueryTemplate:
    """Look up a registered query by operation name."""
    try:
        return QUERIES[name]
    except KeyError:
        raise ValueError(f"Unknown graph query: {name!r}. Must be one of: {', '.join(sorted(QUERIES))}") from None
