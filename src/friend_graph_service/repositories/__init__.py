from .friendship_repository import CancelledRequest, CreateRequestOutcome, RelationshipRepository, ResolvedRequest

__all__ = [
    "CancelledRequest",
    "CreateRequestOutcome",
    "RelationshipRepository",
    "ResolvedRequest",
]
