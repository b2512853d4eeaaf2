"""
Graph schema for the friend relationship graph.

Node Labels:
    :User  - A user mirrored from the identity store (id, email, name)

Relationship Types:
    :REQUESTED_FRIENDSHIP - Directed sender -> receiver request edge carrying
                            id, status, created_at and updated_at.
    :FRIENDS              - Directed half of a friendship. A friendship is
                            always stored as the pair A->B and B->A.

Indices:
    User(id) - Lookup for user nodes
"""

USER_LABEL = "User"
REQUEST_REL = "REQUESTED_FRIENDSHIP"
FRIENDS_REL = "FRIENDS"

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"

# Cypher statements executed idempotently on graph initialization.
SCHEMA_STATEMENTS: list[str] = [
    f"CREATE INDEX IF NOT EXISTS FOR (u:{USER_LABEL}) ON (u.id)",
]
